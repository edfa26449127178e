import os
import re
from collections.abc import Iterable
from pathlib import PurePath

from partial_deploy.errors import PatternConfigError
from partial_deploy.schema.schema import DeployConfig


def compile_pattern(name: str, pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatternConfigError(name, pattern, str(e)) from e


class PathClassifier:
    """パスをパターンで分類する(状態を持たない純粋な判定のみ)

    パターンは起動時に一度だけコンパイルし、不正なパターンはPatternConfigErrorとする。
    判定はre.searchで行う(パス中のどこかにマッチすればよい)。
    ユニット判定はworkspace_root配下の絶対パスを相対パスにしてから行う。
    """

    def __init__(
        self,
        unit_file_pattern: str,
        full_deployment_pattern: str,
        inclusion_filter_pattern: str = "",
        workspace_root: str = "",
    ):
        self.workspace_root = os.path.abspath(workspace_root) if workspace_root else ""
        self.unit_file_re = compile_pattern("INDIVIDUAL_FUNCTION_REGEX", unit_file_pattern)
        self.full_deployment_re = compile_pattern("FULL_DEPLOYMENT_REGEX", full_deployment_pattern)
        self.inclusion_filter_re = (
            compile_pattern("FILE_CHANGES_REGEX_FILTER", inclusion_filter_pattern) if inclusion_filter_pattern else None
        )

    @classmethod
    def from_config(cls, config: DeployConfig) -> "PathClassifier":
        return cls(
            unit_file_pattern=config.individual_function_regex,
            full_deployment_pattern=config.full_deployment_regex,
            inclusion_filter_pattern=config.file_changes_regex_filter,
            workspace_root=config.workspace,
        )

    def is_unit_file(self, path: str) -> bool:
        return self.unit_file_re.search(self._relative_path(path)) is not None

    def _relative_path(self, path: str) -> str:
        # ワークスペース自体のパス(例: /work/functions/functions)にパターンがマッチしないようにする
        if self.workspace_root and PurePath(path).is_relative_to(self.workspace_root):
            return PurePath(path).relative_to(self.workspace_root).as_posix()
        return path

    def triggers_full_deployment(self, paths: Iterable[str]) -> bool:
        """1つでも全体デプロイの条件にマッチすればTrue"""
        return any(self.full_deployment_re.search(path) for path in paths)

    def passes_inclusion_filter(self, path: str) -> bool:
        if self.inclusion_filter_re is None:
            return True
        return self.inclusion_filter_re.search(path) is not None

    def filter_changed_files(self, paths: Iterable[str]) -> list[str]:
        return [path for path in paths if self.passes_inclusion_filter(path)]
