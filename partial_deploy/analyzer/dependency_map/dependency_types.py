from dataclasses import dataclass, field
from typing import TypeAlias


@dataclass(frozen=True)
class RawReference:
    """ソース解析器が見つけた参照1件

    origin(参照されるファイル)に対して、
    file: originを参照しているファイル
    referenced_file_name: fileの中でoriginを参照しているときのファイル名
    """

    file: str
    referenced_file_name: str


# origin => originを参照している箇所のリスト
RefFileMap: TypeAlias = dict[str, list[RawReference]]


@dataclass
class PropagationResult:
    unit_files: list[str] = field(default_factory=list)  # 影響を受けるユニットファイル(発見順)
    visited_origins: list[str] = field(default_factory=list)  # 展開したorigin(訪問順)
    iterations: int = 0  # フロンティアを展開した回数
