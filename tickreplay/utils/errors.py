# tickreplay/utils/errors.py
class UserInputError(RuntimeError):
    """
    Raised for invalid user-provided config (dates, instruments, balances, etc).
    Should NOT print traceback.
    """


class DataCoverageError(RuntimeError):
    """
    Local data does not cover the requested instrument / kind / time range.
    Fatal for the run: raised before replay starts.
    """

    def __init__(self, exchange: str, inst_id: str, kind: str, reason: str):
        self.exchange = exchange
        self.inst_id = inst_id
        self.kind = kind
        self.reason = reason
        super().__init__(f"{reason}: {kind} data for {inst_id}@{exchange}")


class NoDataLoadedError(RuntimeError):
    """Sequencer produced an empty event stream."""


class PayloadMismatchError(TypeError):
    """MarketEvent payload does not match its declared kind."""


class LedgerContractError(ArithmeticError):
    """
    Position ledger reached a state the accounting formulas cannot handle
    (zero amount, non-positive price, zero average-price denominator).
    """


class ReentrantReplayError(RuntimeError):
    """A strategy callback tried to start another replay on the same engine."""
