import os
from collections.abc import Iterable

from partial_deploy.schema.schema import DEFAULT_UNIT_NAME_QUALIFIER


class UnitNameResolver:
    def __init__(self, qualifier: str = DEFAULT_UNIT_NAME_QUALIFIER):
        self.qualifier = qualifier

    def unit_name(self, unit_file: str) -> str:
        """ユニットファイルのパスからユニット名を求める

        ディレクトリと拡張子を除き、さらに末尾の修飾子(.function)を除く。
        例: src/a/Foo.function.ts => Foo, src/functions/bar.ts => bar
        """
        base_name = os.path.basename(unit_file.replace("\\", "/"))
        name = os.path.splitext(base_name)[0]
        if self.qualifier and name.endswith(self.qualifier) and len(name) > len(self.qualifier):
            name = name[: -len(self.qualifier)]
        return name

    def resolve(self, unit_files: Iterable[str]) -> list[str]:
        """ユニット名のリストを返す(最初に出現した順で重複を除く)"""
        return list(dict.fromkeys(self.unit_name(unit_file) for unit_file in unit_files))
