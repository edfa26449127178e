import os
from collections.abc import Mapping
from os.path import dirname, join

from dotenv import load_dotenv

from partial_deploy.schema.schema import (
    DEFAULT_EXCLUDED_PATH_SEGMENTS,
    DEFAULT_FULL_DEPLOYMENT_REGEX,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_INDIVIDUAL_FUNCTION_REGEX,
    DEFAULT_UNIT_NAME_QUALIFIER,
    DeployConfig,
    SourceAnalyzerKind,
)

load_dotenv(verbose=False)

dotenv_path = join(dirname(__file__), ".env")
load_dotenv(dotenv_path)

# mode
is_debug = os.getenv("IS_DEBUG", "False").lower() in ("true", "1", "t")  # デバッグモード(例: IS_DEBUG=True)

# log(空ならファイル出力しない)
log_file = os.getenv("LOG_FILE", "")


def load_env_file(env_file: str) -> bool:
    # 既に設定済みの環境変数は上書きしない
    return load_dotenv(env_file, override=False)


def _split_csv(value: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


def _parse_float(name: str, value: str | None, default: float) -> float:
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        # log_utilはこのモジュールを読み込むので関数内でimportする
        from partial_deploy.utils.log_util import log_w

        log_w("%s=%r は数値ではないためデフォルト値 %s を使います", name, value, default)
        return default


def load_config(environ: Mapping[str, str] | None = None) -> DeployConfig:
    """環境変数からDeployConfigを構築する(プロセス開始時に1回だけ呼ぶ)

    未設定の正規表現はデフォルト値を使う。空文字で設定された場合は空のまま(=設定不足)とする。
    """
    env = os.environ if environ is None else environ
    return DeployConfig(
        compare_url=env.get("COMPARE_URL", ""),
        before_sha=env.get("BEFORE_SHA", ""),
        after_sha=env.get("AFTER_SHA", ""),
        github_token=env.get("GITHUB_TOKEN", ""),
        http_timeout=_parse_float("HTTP_TIMEOUT", env.get("HTTP_TIMEOUT"), DEFAULT_HTTP_TIMEOUT),
        workspace=env.get("GITHUB_WORKSPACE", ""),
        full_deployment_regex=env.get("FULL_DEPLOYMENT_REGEX", DEFAULT_FULL_DEPLOYMENT_REGEX),
        individual_function_regex=env.get("INDIVIDUAL_FUNCTION_REGEX", DEFAULT_INDIVIDUAL_FUNCTION_REGEX),
        individual_function_glob=env.get("INDIVIDUAL_FUNCTION_GLOB", ""),
        file_changes_regex_filter=env.get("FILE_CHANGES_REGEX_FILTER", ""),
        source_analyzer=SourceAnalyzerKind.new(env.get("SOURCE_ANALYZER", "madge")),
        excluded_path_segments=_split_csv(env.get("EXCLUDED_PATH_SEGMENTS"), DEFAULT_EXCLUDED_PATH_SEGMENTS),
        unit_name_qualifier=env.get("UNIT_NAME_QUALIFIER", DEFAULT_UNIT_NAME_QUALIFIER),
    )
