import os
import tempfile
from unittest.mock import MagicMock

import anyio

from partial_deploy.analyzer.dependency_map.python.dependency_manager_py import DependencyManagerPy
from partial_deploy.analyzer.dependency_map.reference_graph import ReferenceGraph
from partial_deploy.analyzer.dependency_map.typescript.dependency_manager_ts import MadgeDependencyManager
from partial_deploy.core.deploy_workflow import DeployWorkflow, create_dependency_manager
from partial_deploy.schema.schema import (
    DEFAULT_INDIVIDUAL_FUNCTION_REGEX,
    DeployConfig,
    DeployMode,
    SourceAnalyzerKind,
)
from tests.unit_tests.helper import BaseTestCase

WORKSPACE = "/work/repo"


class FakeCompareClient:
    def __init__(self, filenames: list[str]):
        self.filenames = filenames
        self.urls: list[str] = []

    async def fetch_changed_files(self, url: str) -> list[str]:
        self.urls.append(url)
        return list(self.filenames)


def new_config(**kwargs) -> DeployConfig:
    values = {
        "compare_url": "https://api.github.com/repos/acme/app/compare/{base}...{head}",
        "before_sha": "1111111aaaa",
        "after_sha": "2222222bbbb",
        "github_token": "token",
        "workspace": WORKSPACE,
        "individual_function_glob": "src/**/*.ts",
    }
    values.update(kwargs)
    return DeployConfig(**values)


def new_dependency_manager(dependents_map: dict[str, list[str]]) -> MagicMock:
    dm = MagicMock()
    dm.find_unit_files.return_value = ["src/functions/a.function.ts", "src/functions/b.function.ts"]
    dm.build_graph.return_value = ReferenceGraph.from_dependents(
        {
            os.path.join(WORKSPACE, origin): [os.path.join(WORKSPACE, dep) for dep in deps]
            for origin, deps in dependents_map.items()
        }
    )
    return dm


SCENARIO_DEPENDENTS = {
    "src/shared.ts": ["src/functions/a.function.ts", "src/shared2.ts"],
    "src/shared2.ts": ["src/functions/b.function.ts"],
}


class TestDeployWorkflow(BaseTestCase):
    def new_workflow(self, filenames: list[str], config: DeployConfig | None = None) -> DeployWorkflow:
        self.compare_client = FakeCompareClient(filenames)
        self.dm = new_dependency_manager(SCENARIO_DEPENDENTS)
        return DeployWorkflow(config or new_config(), self.compare_client, self.dm)

    def test_partial_deployment(self):
        workflow = self.new_workflow(["src/shared.ts"])
        decision = anyio.run(workflow.run)
        self.assertEqual(decision.mode, DeployMode.PARTIAL)
        self.assertEqual(decision.units, ["a", "b"])
        self.assertEqual(decision.render(), ":a,b")
        self.assertEqual(self.compare_client.urls, ["https://api.github.com/repos/acme/app/compare/1111111...2222222"])
        self.dm.find_unit_files.assert_called_once_with("src/**/*.ts")
        self.dm.build_graph.assert_called_once_with(
            ["src/functions/a.function.ts", "src/functions/b.function.ts"], ("node_modules",)
        )

    def test_full_deployment_skips_propagation(self):
        workflow = self.new_workflow(["src/shared.ts", "package.json"])
        workflow.propagator = MagicMock()
        decision = anyio.run(workflow.run)
        self.assertEqual(decision.mode, DeployMode.FULL)
        self.assertEqual(decision.render(), "")
        workflow.propagator.propagate.assert_not_called()
        self.dm.build_graph.assert_not_called()

    def test_no_affected_units(self):
        workflow = self.new_workflow(["README.md"])
        decision = anyio.run(workflow.run)
        self.assertEqual(decision.mode, DeployMode.NONE)
        self.assertEqual(decision.render(), "")

    def test_empty_change_set(self):
        workflow = self.new_workflow([])
        decision = anyio.run(workflow.run)
        self.assertEqual(decision.mode, DeployMode.NONE)
        self.dm.find_unit_files.assert_not_called()

    def test_inclusion_filter_applied_before_full_deployment_check(self):
        # 絞り込みでpackage.jsonが除外されるので全体デプロイにならない
        config = new_config(file_changes_regex_filter=r"^src/")
        workflow = self.new_workflow(["package.json", "src/shared2.ts"], config)
        decision = anyio.run(workflow.run)
        self.assertEqual(decision.mode, DeployMode.PARTIAL)
        self.assertEqual(decision.units, ["b"])

    def test_inclusion_filter_removes_everything(self):
        config = new_config(file_changes_regex_filter=r"^lib/")
        workflow = self.new_workflow(["src/shared.ts"], config)
        decision = anyio.run(workflow.run)
        self.assertEqual(decision.mode, DeployMode.NONE)

    def test_without_unit_glob(self):
        workflow = self.new_workflow(["src/shared.ts"], new_config(individual_function_glob=""))
        decision = workflow.process_changed_files(["src/shared.ts"])
        self.assertEqual(decision.mode, DeployMode.NONE)
        self.dm.build_graph.assert_not_called()

    def test_changed_unit_file(self):
        workflow = self.new_workflow(["src/functions/b.function.ts"])
        decision = anyio.run(workflow.run)
        self.assertEqual(decision.units, ["b"])

    def test_create_dependency_manager(self):
        self.assertIsInstance(create_dependency_manager(new_config()), MadgeDependencyManager)
        self.assertIsInstance(
            create_dependency_manager(new_config(source_analyzer=SourceAnalyzerKind.PYTHON)), DependencyManagerPy
        )


class TestDeployWorkflowPython(BaseTestCase):
    """Pythonプロジェクトを実際に解析して判定する"""

    def setUp(self):
        super().setUp()
        self.temp_dir = tempfile.TemporaryDirectory()
        files = {
            "lib/__init__.py": "",
            "lib/util.py": "X = 1\n",
            "handlers/__init__.py": "",
            "handlers/orders.py": "from lib.util import X\n",
            "handlers/health.py": "",
        }
        for rel_path, content in files.items():
            file_path = os.path.join(self.temp_dir.name, rel_path)
            os.makedirs(os.path.dirname(file_path), exist_ok=True)
            with open(file_path, "w", encoding="utf-8") as f:
                f.write(content)

    def tearDown(self):
        super().tearDown()
        self.temp_dir.cleanup()

    def test_python_project(self):
        config = new_config(
            workspace=self.temp_dir.name,
            individual_function_glob="handlers/*.py",
            individual_function_regex=r"handlers/(?!__init__)[^/]+\.py$",
            full_deployment_regex=r"(pyproject\.toml|requirements\.txt)$",
            source_analyzer=SourceAnalyzerKind.PYTHON,
        )
        workflow = DeployWorkflow(config, FakeCompareClient(["lib/util.py", "handlers/health.py"]))
        decision = anyio.run(workflow.run)
        self.assertEqual(decision.render(), ":orders,health")


class TestDeployWorkflowWorkspacePath(BaseTestCase):
    """ワークスペースのパスにfunctions/を含んでもユニット判定に影響しない"""

    def test_workspace_path_containing_functions(self):
        workspace = "/home/runner/work/functions/functions"
        config = new_config(workspace=workspace, individual_function_regex=DEFAULT_INDIVIDUAL_FUNCTION_REGEX)
        dm = MagicMock()
        dm.find_unit_files.return_value = ["src/functions/sendMail.ts"]
        dm.build_graph.return_value = ReferenceGraph.from_dependents(
            {os.path.join(workspace, "src/utils/shared.ts"): [os.path.join(workspace, "src/functions/sendMail.ts")]}
        )
        workflow = DeployWorkflow(config, FakeCompareClient(["src/utils/shared.ts"]), dm)
        decision = anyio.run(workflow.run)
        self.assertEqual(decision.render(), ":sendMail")
