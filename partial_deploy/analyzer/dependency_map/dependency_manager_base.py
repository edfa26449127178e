import os
from collections.abc import Iterable
from pathlib import Path

from partial_deploy.analyzer.dependency_map.dependency_types import RefFileMap
from partial_deploy.analyzer.dependency_map.reference_graph import ReferenceGraph
from partial_deploy.schema.schema import DEFAULT_EXCLUDED_PATH_SEGMENTS
from partial_deploy.utils.file_util import FileUtil
from partial_deploy.utils.log_util import log, log_inout, log_list


class DependencyManagerBase:
    """ソース解析器の基底クラス

    サブクラスは build_ref_file_map() で、rootsから推移的に到達できる全ファイルについて
    origin => originを参照している箇所 の対応を返す。
    """

    def __init__(self, project_root: str | Path):
        self.root = Path(os.path.abspath(project_root))

    def find_unit_files(self, pattern: str) -> list[str]:
        """globでユニットファイルを列挙する(project_root基準の相対パス)"""
        unit_files = FileUtil.find_files(str(self.root), pattern)
        log_list("unit_files", unit_files)
        return unit_files

    def build_ref_file_map(self, roots: list[str]) -> RefFileMap:
        raise NotImplementedError

    @log_inout
    def build_graph(
        self, roots: list[str], excluded_segments: Iterable[str] = DEFAULT_EXCLUDED_PATH_SEGMENTS
    ) -> ReferenceGraph:
        ref_file_map = self.build_ref_file_map(roots)
        graph = ReferenceGraph.from_ref_file_map(ref_file_map, excluded_segments)
        log("build_graph roots=%d, nodes=%d", len(roots), len(graph))
        return graph

    def _abs_path(self, file_path: str) -> str:
        return FileUtil.resolve_path(str(self.root), file_path)
