import json

from partial_deploy.analyzer.dependency_map.dependency_manager_base import DependencyManagerBase
from partial_deploy.analyzer.dependency_map.dependency_types import RawReference, RefFileMap
from partial_deploy.errors import AnalysisError
from partial_deploy.utils.log_util import log
from partial_deploy.utils.subprocess_util import SubprocessUtil

MADGE_EXTENSIONS = "ts,tsx,js,jsx"
MADGE_TIMEOUT = 600.0


class MadgeDependencyManager(DependencyManagerBase):
    """madge(外部CLI)でTypeScript/JavaScriptの参照を解析する

    madge --json は rootsから推移的に辿った 各ファイル => importしているファイル を出力する。
    これを origin => originを参照している箇所 に反転してRefFileMapにする。
    """

    def __init__(self, project_root, extensions: str = MADGE_EXTENSIONS, timeout: float = MADGE_TIMEOUT):
        super().__init__(project_root)
        self.extensions = extensions
        self.timeout = timeout

    def get_command(self, roots: list[str]) -> list[str]:
        executable = ["madge"] if SubprocessUtil.which("madge") else ["npx", "--yes", "madge"]
        command = [*executable, "--json", "--basedir", str(self.root), "--extensions", self.extensions]
        tsconfig_path = self.root / "tsconfig.json"
        if tsconfig_path.is_file():
            command += ["--ts-config", str(tsconfig_path)]
        return command + roots

    def build_ref_file_map(self, roots: list[str]) -> RefFileMap:
        if not roots:
            return {}
        dependency_map = self._run_madge(roots)

        ref_file_map: RefFileMap = {}
        for file_path, imports in dependency_map.items():
            referencing_file = self._abs_path(file_path)
            for imported in imports:
                origin = self._abs_path(imported)
                ref_file_map.setdefault(origin, []).append(
                    RawReference(file=referencing_file, referenced_file_name=imported)
                )
        log("build_ref_file_map files=%d, origins=%d", len(dependency_map), len(ref_file_map))
        return ref_file_map

    def _run_madge(self, roots: list[str]) -> dict[str, list[str]]:
        command = self.get_command(roots)
        try:
            result = SubprocessUtil.run(command, cwd=str(self.root), timeout=self.timeout)
        except FileNotFoundError as e:
            raise AnalysisError(f"madgeを実行できません: {e}") from e
        except SubprocessUtil.CalledProcessError as e:
            raise AnalysisError(f"madgeが失敗しました(exit={e.returncode}): {e.stderr}") from e
        except SubprocessUtil.TimeoutExpired as e:
            raise AnalysisError(f"madgeがタイムアウトしました({self.timeout}秒)") from e

        try:
            dependency_map = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise AnalysisError(f"madgeの出力がJSONではありません: {e}") from e
        if not isinstance(dependency_map, dict):
            raise AnalysisError("madgeの出力が想定外の形式です")
        return {file_path: list(imports) for file_path, imports in dependency_map.items()}
