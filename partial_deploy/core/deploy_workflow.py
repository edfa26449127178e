from partial_deploy.analyzer.dependency_map.change_propagator import ChangePropagator
from partial_deploy.analyzer.dependency_map.dependency_manager_base import DependencyManagerBase
from partial_deploy.analyzer.dependency_map.path_classifier import PathClassifier
from partial_deploy.analyzer.dependency_map.python.dependency_manager_py import DependencyManagerPy
from partial_deploy.analyzer.dependency_map.typescript.dependency_manager_ts import MadgeDependencyManager
from partial_deploy.analyzer.dependency_map.unit_name_resolver import UnitNameResolver
from partial_deploy.schema.schema import DeployConfig, DeployDecision, SourceAnalyzerKind
from partial_deploy.utils.file_util import FileUtil
from partial_deploy.utils.log_util import log, log_i, log_inout, log_list
from partial_deploy.vcs.compare_client import CompareClient, build_compare_url


def create_dependency_manager(config: DeployConfig) -> DependencyManagerBase:
    if config.source_analyzer == SourceAnalyzerKind.PYTHON:
        return DependencyManagerPy(config.workspace)
    return MadgeDependencyManager(config.workspace)


class DeployWorkflow:
    """変更ファイルの取得 => 全体デプロイ判定 => 参照グラフで伝播 => ユニット名 の一連の処理

    パターンはコンストラクタでコンパイルするので、不正なパターンはここでPatternConfigErrorになる。
    """

    def __init__(
        self,
        config: DeployConfig,
        compare_client: CompareClient | None = None,
        dependency_manager: DependencyManagerBase | None = None,
    ):
        self.config = config
        self.classifier = PathClassifier.from_config(config)
        self.propagator = ChangePropagator(self.classifier)
        self.resolver = UnitNameResolver(config.unit_name_qualifier)
        if compare_client is None:
            compare_client = CompareClient(config.github_token, config.http_timeout)
        self.compare_client = compare_client
        if dependency_manager is None:
            dependency_manager = create_dependency_manager(config)
        self.dependency_manager = dependency_manager

    async def run(self) -> DeployDecision:
        filepaths = await self.fetch_changed_files()
        return self.process_changed_files(filepaths)

    async def fetch_changed_files(self) -> list[str]:
        """比較APIから変更ファイルを取得し、絞り込み条件を適用する"""
        compare_url = build_compare_url(self.config.compare_url, self.config.before_sha, self.config.after_sha)
        filepaths = await self.compare_client.fetch_changed_files(compare_url)
        filtered = self.classifier.filter_changed_files(filepaths)
        log("fetch_changed_files all=%d, filtered=%d", len(filepaths), len(filtered))
        return filtered

    @log_inout
    def process_changed_files(self, filepaths: list[str]) -> DeployDecision:
        if not self.config.individual_function_glob:
            return DeployDecision.none("INDIVIDUAL_FUNCTION_GLOB が未設定")
        if not filepaths:
            return DeployDecision.none("変更ファイルなし")

        if self.classifier.triggers_full_deployment(filepaths):
            log_i("全体デプロイの条件に一致する変更があります")
            return DeployDecision.full("全体デプロイの条件に一致")

        changed_paths = FileUtil.resolve_paths(self.config.workspace, filepaths)
        unit_files = self.dependency_manager.find_unit_files(self.config.individual_function_glob)
        graph = self.dependency_manager.build_graph(unit_files, self.config.excluded_path_segments)

        affected_unit_files = self.propagator.propagate(changed_paths, graph)
        log_list("affected_unit_files", affected_unit_files)
        unit_names = self.resolver.resolve(affected_unit_files)
        return DeployDecision.partial(unit_names, reason=f"{len(filepaths)}件の変更から伝播")
