import ast
from pathlib import Path

from partial_deploy.analyzer.dependency_map.dependency_manager_base import DependencyManagerBase
from partial_deploy.analyzer.dependency_map.dependency_types import RawReference, RefFileMap
from partial_deploy.utils.file_util import FileUtil
from partial_deploy.utils.log_util import log, log_d, log_w

# 除外キーワード(.git配下やインストール済みパッケージは対象外)
IGNORE_KEYWORDS = (".git", "__pycache__", ".venv", "venv", "site-packages")


def ast_parse(content: str, file_path: str = "") -> ast.AST | None:
    try:
        return ast.parse(content)
    except SyntaxError as e:
        log_w("SyntaxError in %s: %s", file_path, e)
        return None


class DependencyManagerPy(DependencyManagerBase):
    """Pythonのimport文からファイル間の参照を解析する

    importは実行せず、プロジェクトルート(およびsrc/)と相対importの位置からファイルを探して解決する。
    """

    def __init__(self, project_root):
        super().__init__(project_root)
        self.search_roots = [self.root, self.root / "src"]

    def build_ref_file_map(self, roots: list[str]) -> RefFileMap:
        ref_file_map: RefFileMap = {}
        pending = [self._abs_path(root) for root in roots]
        analyzed: set[str] = set()
        while pending:
            file_path = pending.pop(0)
            if file_path in analyzed:
                continue
            analyzed.add(file_path)

            for import_name, resolved_path in self._analyze_file(Path(file_path)).items():
                ref_file_map.setdefault(resolved_path, []).append(
                    RawReference(file=file_path, referenced_file_name=import_name)
                )
                if resolved_path not in analyzed:
                    pending.append(resolved_path)
        log("build_ref_file_map analyzed=%d, origins=%d", len(analyzed), len(ref_file_map))
        return ref_file_map

    def _analyze_file(self, file_path: Path) -> dict[str, str]:
        """個別ファイルの解析(import名 => 解決したファイルパス)"""
        content = FileUtil.read_file(str(file_path))
        tree = ast_parse(content, str(file_path))
        if tree is None:
            return {}
        import_map = self._extract_imports(tree, file_path)
        log_d("_analyze_file %s imports=%s", file_path, list(import_map))
        return import_map

    def _extract_imports(self, tree: ast.AST, file_path: Path) -> dict[str, str]:
        """ASTからimport文を抽出してプロジェクト内のファイルに解決する"""
        import_map: dict[str, str] = {}

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    resolved_path = self._resolve_import_path(alias.name, file_path)
                    if resolved_path:
                        import_map[alias.name] = resolved_path

            elif isinstance(node, ast.ImportFrom):
                module = node.module or ""
                prefix = "." * node.level
                for alias in node.names:
                    # from x import y は x.y(サブモジュール) を優先し、なければ x を探す
                    candidates = [f"{module}.{alias.name}" if module else alias.name, module]
                    for candidate in candidates:
                        if not candidate and node.level == 0:
                            continue
                        resolved_path = self._resolve_import_path(prefix + candidate, file_path, node.level)
                        if resolved_path:
                            import_map[prefix + candidate] = resolved_path
                            break

        # import時に実行される親パッケージの__init__.pyも参照先とする
        for resolved_path in list(import_map.values()):
            import_map.update(self._package_inits(resolved_path))
        return import_map

    def _package_inits(self, resolved_path: str) -> dict[str, str]:
        """resolved_pathを含むパッケージの__init__.py(検索ルート直下まで)を返す"""
        package_inits: dict[str, str] = {}
        package_dir = Path(resolved_path).parent
        while package_dir not in self.search_roots and package_dir.is_relative_to(self.root):
            init_path = package_dir / "__init__.py"
            if init_path.is_file() and str(init_path) != resolved_path:
                package_inits[init_path.relative_to(self.root).as_posix()] = str(init_path)
            package_dir = package_dir.parent
        return package_inits

    def _resolve_import_path(self, import_name: str, current_file: Path, level: int = 0) -> str | None:
        """
        import文の文字列をファイルパスに解決する

        Args:
            import_name: 'package.module' 形式のimport文字列(相対importは先頭に'.')
            current_file: 解析対象のPythonファイルのパス
            level: 相対importの階層(0なら絶対import)
        """
        parts = [part for part in import_name.lstrip(".").split(".") if part]

        if level > 0:
            base = current_file.parent
            for _ in range(level - 1):
                base = base.parent
            bases = [base]
        else:
            bases = [*self.search_roots, current_file.parent]

        for base in bases:
            if parts:
                module_path = base.joinpath(*parts)
                # モジュール、パッケージの順に探す
                possible_paths = [module_path.with_suffix(".py"), module_path / "__init__.py"]
            else:
                # from . import x で x がモジュールでない場合はパッケージ自身
                possible_paths = [base / "__init__.py"]
            for path in possible_paths:
                if path.is_file() and self._is_valid_path(str(path)):
                    return FileUtil.resolve_path(str(self.root), str(path))
        return None

    def _is_valid_path(self, file_path: str) -> bool:
        if FileUtil.has_path_segment(file_path, IGNORE_KEYWORDS):
            return False
        # プロジェクト外のファイルは対象外
        return Path(FileUtil.resolve_path(str(self.root), file_path)).is_relative_to(self.root)
