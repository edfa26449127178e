"""partial_deploy のエラー階層"""

from __future__ import annotations


class PartialDeployError(Exception):
    """partial_deploy が送出する例外の基底クラス"""


class ConfigError(PartialDeployError):
    """設定値が不正"""


class PatternConfigError(ConfigError):
    """正規表現パターンのコンパイルに失敗(起動時の致命的エラー)"""

    def __init__(self, name: str, pattern: str, reason: str):
        super().__init__(f"{name} の正規表現が不正です: {pattern!r} ({reason})")
        self.name = name
        self.pattern = pattern
        self.reason = reason


class ComparisonError(PartialDeployError):
    """リビジョン比較サービスの呼び出し失敗、またはレスポンス不正"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AnalysisError(PartialDeployError):
    """ソース解析(参照グラフ構築)の失敗"""
