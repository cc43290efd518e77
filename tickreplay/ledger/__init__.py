from tickreplay.ledger.contract_position import ContractPosition, DealResult, ProfitRecord
from tickreplay.ledger.spot_account import SpotAccount
from tickreplay.ledger.valuation import exchange_to_ccy, nav, resolve_baseline_ccy

__all__ = [
    "ContractPosition",
    "DealResult",
    "ProfitRecord",
    "SpotAccount",
    "exchange_to_ccy",
    "nav",
    "resolve_baseline_ccy",
]
