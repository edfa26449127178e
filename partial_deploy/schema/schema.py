from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# デフォルトのパターン(TypeScriptのfunctions構成を想定)
DEFAULT_INDIVIDUAL_FUNCTION_REGEX = r"(functions/(?!index\.ts$).*\.ts|(.*)\.function\.ts)$"
DEFAULT_FULL_DEPLOYMENT_REGEX = r"((tsconfig|package).json|yarn.lock|src/(functions/)?index.ts)$"
DEFAULT_EXCLUDED_PATH_SEGMENTS = ("node_modules",)
DEFAULT_UNIT_NAME_QUALIFIER = ".function"
DEFAULT_HTTP_TIMEOUT = 30.0

# 部分デプロイ時に出力行の先頭に付ける目印
PARTIAL_DEPLOY_MARKER = ":"


class SourceAnalyzerKind(str, Enum):
    MADGE = "madge"  # madge(外部CLI)でTypeScript/JavaScriptを解析
    PYTHON = "python"  # astでPythonのimportを解析

    def __str__(self):
        return self.value

    @staticmethod
    def new(kind_str: str) -> SourceAnalyzerKind:
        # 文字列からSourceAnalyzerKindを取得する(見つからなければmadge)
        for kind in SourceAnalyzerKind:
            if kind_str.strip().lower() == kind.value:
                return kind
        return SourceAnalyzerKind.MADGE


class DeployMode(str, Enum):
    NONE = "none"  # 影響を受けるユニットなし(または機能無効)
    FULL = "full"  # 全体デプロイ
    PARTIAL = "partial"  # 指定ユニットのみデプロイ

    def __str__(self):
        return self.value


class DeployConfig(BaseModel):
    """起動時に一度だけ構築し、各コンポーネントへ明示的に渡す設定値"""

    model_config = ConfigDict(frozen=True)

    # リビジョン比較
    compare_url: str = Field(default="", description="比較APIのURLテンプレート({base}と{head}を置換)")
    before_sha: str = Field(default="", description="比較元のリビジョン")
    after_sha: str = Field(default="", description="比較先のリビジョン")
    github_token: str = Field(default="", description="比較APIのBearerトークン", repr=False)
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, description="比較APIのタイムアウト(秒)")

    # ワークスペース
    workspace: str = Field(default="", description="ワークスペースのルートパス")

    # パターン
    full_deployment_regex: str = Field(default=DEFAULT_FULL_DEPLOYMENT_REGEX, description="全体デプロイの条件")
    individual_function_regex: str = Field(
        default=DEFAULT_INDIVIDUAL_FUNCTION_REGEX, description="ユニット(function)ファイルの条件"
    )
    individual_function_glob: str = Field(default="", description="ユニットファイルを列挙するglob")
    file_changes_regex_filter: str = Field(default="", description="変更ファイルの絞り込み条件(任意)")

    # 参照グラフ
    source_analyzer: SourceAnalyzerKind = Field(default=SourceAnalyzerKind.MADGE, description="ソース解析器")
    excluded_path_segments: tuple[str, ...] = Field(
        default=DEFAULT_EXCLUDED_PATH_SEGMENTS, description="プロジェクト外とみなすパス要素"
    )
    unit_name_qualifier: str = Field(default=DEFAULT_UNIT_NAME_QUALIFIER, description="ユニット名から除く修飾子")

    def missing_fields(self) -> list[str]:
        required = {
            "compare_url": self.compare_url,
            "before_sha": self.before_sha,
            "after_sha": self.after_sha,
            "github_token": self.github_token,
            "workspace": self.workspace,
            "full_deployment_regex": self.full_deployment_regex,
            "individual_function_regex": self.individual_function_regex,
            "individual_function_glob": self.individual_function_glob,
        }
        return [name for name, value in required.items() if not value]

    def is_complete(self) -> bool:
        return not self.missing_fields()


class ChangedFile(BaseModel):
    filename: str
    status: str = ""
    additions: int = 0
    deletions: int = 0
    changes: int = 0


class CommitComparison(BaseModel):
    """比較APIのレスポンス(使う項目のみ)"""

    status: str = ""
    total_commits: int = 0
    files: list[ChangedFile] = Field(default_factory=list)

    def filenames(self) -> list[str]:
        return [file.filename for file in self.files]


class DeployDecision(BaseModel):
    mode: DeployMode = DeployMode.NONE
    units: list[str] = Field(default_factory=list)
    reason: str = Field(default="", description="判定理由(ログ用)")

    @classmethod
    def none(cls, reason: str = "") -> DeployDecision:
        return cls(mode=DeployMode.NONE, reason=reason)

    @classmethod
    def full(cls, reason: str = "") -> DeployDecision:
        return cls(mode=DeployMode.FULL, reason=reason)

    @classmethod
    def partial(cls, units: list[str], reason: str = "") -> DeployDecision:
        if not units:
            return cls.none(reason or "影響を受けるユニットなし")
        return cls(mode=DeployMode.PARTIAL, units=list(units), reason=reason)

    def render(self) -> str:
        """呼び出し側(CI)に渡す1行を生成する

        NONEとFULLはどちらも空文字になる。呼び出し側は空文字を全体デプロイとして扱う。
        """
        if self.mode == DeployMode.PARTIAL:
            return PARTIAL_DEPLOY_MARKER + ",".join(self.units)
        return ""
