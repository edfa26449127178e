from datetime import datetime

from pydantic import BaseModel
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from partial_deploy.schema.schema import DeployConfig, DeployDecision, DeployMode

# stdoutは結果の1行専用なので、表示は全てstderrに出す
console = Console(width=120, stderr=True)

# 表示しない(マスクする)項目
SECRET_KEYS = ["github_token"]

DECISION_STYLES = {
    DeployMode.NONE: "white",
    DeployMode.FULL: "yellow",
    DeployMode.PARTIAL: "green",
}


def prepare_table_common(title: str, title_style: str = "bold") -> Table:
    table = Table(title=title, title_style=title_style)
    table.add_column("項目", style="cyan", no_wrap=True)
    table.add_column("値")

    # ローカルマシンに設定されているタイムゾーンを取得
    local_tz = datetime.now().astimezone().tzinfo
    table.caption = f"取得日時: {datetime.now(tz=local_tz).strftime('%Y-%m-%d %H:%M:%S')}"
    table.caption_justify = "left"
    return table


def display_info_full(any_info: BaseModel, title: str = "詳細", table_title: str = ""):
    """
    pydanticモデルの全項目を整形して表示します。
    """
    table = prepare_table_common(table_title)

    for key, value in any_info.model_dump().items():
        if key in SECRET_KEYS:
            value = "***" if value else ""  # noqa: PLW2901
        table.add_row(key, str(value))

    console.print(Panel(table, title=title, border_style="white"))


def display_config(config: DeployConfig):
    display_info_full(config, title="DeployConfig", table_title="設定値")
    missing_fields = config.missing_fields()
    if missing_fields:
        console.print(Panel("\n".join(missing_fields), title="未設定の必須項目", border_style="red"))


def display_decision(decision: DeployDecision):
    """
    デプロイ判定の結果を整形して表示します。
    """
    table = prepare_table_common("デプロイ判定")
    table.add_row("モード", str(decision.mode))
    table.add_row("理由", decision.reason)
    table.add_row("ユニット数", str(len(decision.units)))
    for unit in decision.units:
        table.add_row("  ユニット", unit)
    table.add_row("出力", repr(decision.render()))

    console.print(Panel(table, title="デプロイ判定(結果)", border_style=DECISION_STYLES[decision.mode]))
