"""ソース解析の結果から参照グラフ(dependents map)を構築する

エッジの向きは origin -> dependent。
graph[origin] は origin を参照している(originが変わると影響を受ける)ファイルを返す。
originが参照しているファイル(依存先)ではないので注意。
"""

from collections.abc import Iterable, Mapping

import networkx as nx

from partial_deploy.analyzer.dependency_map.dependency_types import RefFileMap
from partial_deploy.schema.schema import DEFAULT_EXCLUDED_PATH_SEGMENTS
from partial_deploy.utils.file_util import FileUtil
from partial_deploy.utils.log_util import log


class ReferenceGraph:
    def __init__(self, graph: nx.DiGraph | None = None):
        if graph is None:
            graph = nx.DiGraph()
        # 構築後は変更しない
        self.graph: nx.DiGraph = nx.freeze(graph)

    @classmethod
    def from_ref_file_map(
        cls,
        ref_file_map: RefFileMap,
        excluded_segments: Iterable[str] = DEFAULT_EXCLUDED_PATH_SEGMENTS,
    ) -> "ReferenceGraph":
        """解析結果(origin => 参照箇所のリスト)からグラフを構築する

        origin、参照元ファイル、参照時のファイル名のいずれかがプロジェクト外
        (excluded_segmentsを含むパス)にあるエッジは捨てる。
        """
        excluded = tuple(excluded_segments)
        graph = nx.DiGraph()
        dropped = 0
        for origin, references in ref_file_map.items():
            if FileUtil.has_path_segment(origin, excluded):
                dropped += len(references)
                continue
            for ref in references:
                if FileUtil.has_path_segment(ref.file, excluded) or FileUtil.has_path_segment(
                    ref.referenced_file_name, excluded
                ):
                    dropped += 1
                    continue
                graph.add_edge(origin, ref.file)
        log("from_ref_file_map origins=%d, edges=%d, dropped=%d", len(ref_file_map), graph.number_of_edges(), dropped)
        return cls(graph)

    @classmethod
    def from_dependents(cls, dependents_map: Mapping[str, Iterable[str]]) -> "ReferenceGraph":
        """origin => dependentsのリスト からグラフを構築する(フィルタなし)"""
        graph = nx.DiGraph()
        for origin, dependents in dependents_map.items():
            graph.add_node(origin)
            for dependent in dependents:
                graph.add_edge(origin, dependent)
        return cls(graph)

    def dependents_of(self, origin: str) -> list[str]:
        """originを参照しているファイルを発見順に返す(未登録なら空リスト)"""
        if origin not in self.graph:
            return []
        return list(self.graph.successors(origin))

    def __getitem__(self, origin: str) -> list[str]:
        return self.dependents_of(origin)

    def __contains__(self, origin: object) -> bool:
        return origin in self.graph

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    def origins(self) -> list[str]:
        """1つ以上のdependentを持つファイル"""
        return [node for node in self.graph.nodes if self.graph.out_degree(node) > 0]

    def to_dict(self) -> dict[str, list[str]]:
        return {origin: self.dependents_of(origin) for origin in self.origins()}
