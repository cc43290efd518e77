#!filepath: tickreplay/cli.py
import typer
from pydantic import ValidationError
from rich import print
from rich.markup import escape
from rich.table import Table

from tickreplay import __version__
from tickreplay.config.app_config import AppConfig
from tickreplay.utils.errors import DataCoverageError, UserInputError
from tickreplay.utils.logger import init_logging

app = typer.Typer(help="TickReplay backtest CLI")

# 用户侧错误：只打印一行，不打 traceback
_USER_ERRORS = (UserInputError, DataCoverageError, FileNotFoundError, ValidationError)


def _load(config_path: str) -> AppConfig:
    cfg = AppConfig.load(config_path)
    init_logging(cfg.log)
    return cfg


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def run(config_path: str):
    """
    按配置文件运行一次完整回测，并打印指标
    """
    from tickreplay.workflows.run_backtest import run_backtest

    try:
        cfg = _load(config_path)
        print(f"[green]Running backtest {cfg.backtest.name}[/green]")
        out = run_backtest(cfg)
    except _USER_ERRORS as e:
        print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    table = Table(title=f"Backtest {out.result.name}")
    table.add_column("metric")
    table.add_column("value", justify="right")
    for k, v in out.metrics.items():
        table.add_row(k, f"{v:.6g}")
    print(table)

    if out.output_dir is not None:
        print(f"[blue]Reports: {out.output_dir}[/blue]")


@app.command()
def coverage(config_path: str):
    """
    只做数据覆盖检查 + 加载，报告事件数
    """
    from tickreplay.workflows.run_backtest import build_stream

    try:
        cfg = _load(config_path)
        stream = build_stream(cfg.backtest)
    except _USER_ERRORS as e:
        print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    print(f"[green]coverage ok[/green]: {len(stream)} events for {stream.registry.inst_ids}")


if __name__ == "__main__":
    app()

# python -m tickreplay.cli run config/base.yml
