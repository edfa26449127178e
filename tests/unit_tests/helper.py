import unittest
from typing import Any
from unittest.mock import MagicMock, patch

from partial_deploy.analyzer.dependency_map.path_classifier import PathClassifier
from partial_deploy.schema.schema import DEFAULT_FULL_DEPLOYMENT_REGEX

# モック用の定義
# from import文で使っている場合は、使っている側のモジュールのパスを指定すること
MOCK_SUBPROCESS_RUN = "partial_deploy.utils.subprocess_util.SubprocessUtil.run"
MOCK_SUBPROCESS_WHICH = "partial_deploy.utils.subprocess_util.SubprocessUtil.which"

# テストで使うパターン(*.function.ts をユニットとする)
UNIT_FUNCTION_TS_REGEX = r"\.function\.ts$"


def new_classifier(
    unit_file_pattern: str = UNIT_FUNCTION_TS_REGEX,
    full_deployment_pattern: str = DEFAULT_FULL_DEPLOYMENT_REGEX,
    inclusion_filter_pattern: str = "",
) -> PathClassifier:
    return PathClassifier(unit_file_pattern, full_deployment_pattern, inclusion_filter_pattern)


class MockManager:
    """複数のモックをmock_nameという名前でアクセスできるようにするクラス"""

    def __init__(self):
        self.mock_dict: dict[str, MagicMock] = {}
        self._init_default_mocks()

    def _init_default_mocks(self):
        # 外部コマンド(madgeなど)の呼び出しを無効化するfixtureを生成
        self._set_mock("fixture_subprocess_run", MOCK_SUBPROCESS_RUN, return_value=MagicMock(stdout="{}"))

    def _set_mock(self, mock_name: str, mock_target: str, return_value: Any = ""):
        # モックを生成してreturn_valueを設定
        self.mock_dict[mock_name] = self._parameterized_mock_factory(mock_target, return_value)

    def _parameterized_mock_factory(self, mock_target: str, return_value: Any):
        instance = MagicMock()
        instance.return_value = return_value
        patcher = patch(mock_target, instance)
        return patcher.start()

    def _get_mock(self, mock_name: str) -> None | MagicMock:
        return self.mock_dict.get(mock_name)

    def get_mock(self, mock_name: str) -> MagicMock:
        return self.mock_dict[mock_name]

    def get_mock_call_count(self, mock_name: str):
        return self._get_mock(mock_name).call_count

    def set_mock_return_value(self, mock_target: str = "", mock_alias: str = "", return_value: Any = "") -> None:
        # モックをmock_dictから取り出すときの名前
        mock_name = mock_alias if mock_alias else mock_target
        if not mock_name:
            return

        mock = self._get_mock(mock_name)
        if mock:
            # 既存のモックに値だけ設定
            mock.return_value = return_value
        else:
            self._set_mock(mock_name, mock_target, return_value)

    def set_mock_side_effect(
        self, mock_target: str = "", mock_alias: str = "", side_effect: Any = lambda: None
    ) -> None:
        mock_name = mock_alias if mock_alias else mock_target
        if mock_name and mock_name not in self.mock_dict:
            self._set_mock(mock_name, mock_target, 0)
        self.mock_dict[mock_name].side_effect = side_effect


class BaseTestCase(unittest.TestCase):
    def setUp(self):
        # 外部コマンド呼び出しを無効化するmockをセットアップ
        self.mock_manager = MockManager()

    def tearDown(self):
        patch.stopall()

    def check_mock_call_count(self, mock_name: str, expected_count: int):
        self.assertEqual(self.mock_manager.get_mock_call_count(mock_name), expected_count, mock_name)

    def check_mock_call_count_subprocess_run(self, expected_count: int):
        self.check_mock_call_count("fixture_subprocess_run", expected_count)

    def set_mock_return_value(self, mock_target: str = "", mock_alias: str = "", return_value: Any = ""):
        self.mock_manager.set_mock_return_value(
            mock_target=mock_target, mock_alias=mock_alias, return_value=return_value
        )

    def set_mock_side_effect(self, mock_target: str = "", mock_alias: str = "", side_effect: Any = lambda: None):
        self.mock_manager.set_mock_side_effect(mock_target=mock_target, mock_alias=mock_alias, side_effect=side_effect)
