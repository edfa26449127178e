import argparse
import sys

import anyio

import partial_deploy
from partial_deploy import settings
from partial_deploy.core.deploy_workflow import DeployWorkflow
from partial_deploy.errors import PatternConfigError
from partial_deploy.schema.schema import DeployConfig, DeployDecision
from partial_deploy.utils.log_util import log, log_e, log_i, log_w
from partial_deploy.utils.rich_console import display_config, display_decision


def main() -> None:
    """メイン処理(設定読み込み、判定実行、結果の1行を出力)

    出力:
        ""          影響を受けるユニットなし、または全体デプロイ
        ":a,b,c"    指定したユニットのみデプロイ
        (出力なし)  設定不足、または処理中のエラー(呼び出し側は全体デプロイとして扱う)
    """
    parser = argparse.ArgumentParser(
        description="変更ファイルから再デプロイが必要なfunctionを判定します(設定は環境変数で指定)",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("-v", "--version", action="store_true", help="バージョン情報を表示")
    parser.add_argument("--env-file", help="追加で読み込む.envファイル", default="")
    parser.add_argument("--show-config", action="store_true", help="設定値を表示して終了")
    args = parser.parse_args()
    if args.version:
        show_version_and_exit()

    if args.env_file:
        settings.load_env_file(args.env_file)

    config = settings.load_config()
    if settings.is_debug or args.show_config:
        display_config(config)
    if args.show_config:
        sys.exit(0)

    decision = main_exec(config)
    if decision is None:
        return

    if settings.is_debug:
        display_decision(decision)
    print(decision.render())


def main_exec(config: DeployConfig) -> DeployDecision | None:
    """判定を実行する(設定不足やエラーの場合はNone)"""
    if not config.is_complete():
        log_i("必須の設定が不足しているためスキップします: %s", ", ".join(config.missing_fields()))
        return None

    try:
        workflow = DeployWorkflow(config)
    except PatternConfigError as e:
        show_pattern_error_and_exit(e)

    try:
        decision = anyio.run(workflow.run)
    except Exception as e:  # noqa: BLE001
        # 部分デプロイの出力をしないことで、呼び出し側は全体デプロイにフォールバックする
        log_w("判定に失敗したため出力しません(%s: %s)", type(e).__name__, e)
        return None

    log("decision mode=%s, units=%s, reason=%s", decision.mode, decision.units, decision.reason)
    return decision


def show_version_and_exit():
    print(f"partial_deploy version {partial_deploy.__version__}")
    sys.exit(0)


def show_pattern_error_and_exit(error: PatternConfigError):
    log_e("%s", error)
    print(f"\033[31mエラー: {error}\033[0m", file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
    main()
