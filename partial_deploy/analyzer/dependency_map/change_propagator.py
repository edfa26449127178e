from collections.abc import Iterable

from partial_deploy.analyzer.dependency_map.dependency_types import PropagationResult
from partial_deploy.analyzer.dependency_map.path_classifier import PathClassifier
from partial_deploy.analyzer.dependency_map.reference_graph import ReferenceGraph
from partial_deploy.utils.log_util import log


def _unique(items: Iterable[str]) -> list[str]:
    # 順序を保ったまま重複を除く
    return list(dict.fromkeys(items))


class ChangePropagator:
    """変更ファイルから影響を受けるユニットファイルを求める

    フロンティア(展開中のファイル群)を参照グラフに沿って広げていき、
    ユニットファイルに到達したらそこで止める。ユニット以外のファイルはさらに上流へ伝播する。
    訪問済みのoriginは再展開しないので、循環参照があっても終了する。
    """

    def __init__(self, classifier: PathClassifier):
        self.classifier = classifier

    def propagate(self, changed_paths: Iterable[str], graph: ReferenceGraph) -> list[str]:
        return self.analyze(changed_paths, graph).unit_files

    def analyze(self, changed_paths: Iterable[str], graph: ReferenceGraph) -> PropagationResult:
        result = PropagationResult()
        visited_origins: set[str] = set()
        collected_unit_files: dict[str, None] = {}  # 発見順を保つ順序付き集合

        frontier = _unique(changed_paths)
        while frontier:
            # 訪問済みのoriginは飛ばす
            frontier = [origin for origin in frontier if origin not in visited_origins]
            if not frontier:
                break
            visited_origins.update(frontier)
            result.visited_origins.extend(frontier)
            result.iterations += 1

            dependents = _unique(dependent for origin in frontier for dependent in graph.dependents_of(origin))
            unit_dependents = [path for path in dependents if self.classifier.is_unit_file(path)]
            non_unit_dependents = [path for path in dependents if not self.classifier.is_unit_file(path)]

            # dependents側のユニットを先に、フロンティア自身のユニット(直接変更されたもの)を後に追加
            for path in unit_dependents:
                collected_unit_files.setdefault(path, None)
            for path in frontier:
                if self.classifier.is_unit_file(path):
                    collected_unit_files.setdefault(path, None)

            log(
                "iteration=%d frontier=%d dependents=%d units=%d non_units=%d",
                result.iterations,
                len(frontier),
                len(dependents),
                len(unit_dependents),
                len(non_unit_dependents),
            )
            frontier = non_unit_dependents

        result.unit_files = list(collected_unit_files)
        return result
