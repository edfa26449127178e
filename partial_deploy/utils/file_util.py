import os
import pathlib

from partial_deploy.utils.log_util import log


class FileUtil:
    @staticmethod
    def read_file(file_path: str) -> str:
        if os.path.isfile(file_path):
            with open(file_path, encoding="utf-8") as file:
                return file.read()
        return ""

    @staticmethod
    def resolve_path(root_path: str, file_path: str) -> str:
        """root_pathを基準にfile_pathを絶対パスに解決する(file_pathが絶対パスならそのまま)"""
        return os.path.abspath(os.path.join(root_path, file_path))

    @staticmethod
    def resolve_paths(root_path: str, file_paths: list[str]) -> list[str]:
        return [FileUtil.resolve_path(root_path, file_path) for file_path in file_paths]

    @staticmethod
    def find_files(root_path: str, pattern: str) -> list[str]:
        """Find files matching the glob pattern under root_path

        Args:
            root_path (str): root path to find files (glob cwd)
            pattern (str): glob pattern relative to root_path (``**`` is recursive)

        Returns:
            list[str]: sorted relative file paths (posix style)
        """
        file_paths = []
        if os.path.isdir(root_path):  # noqa: PTH112
            root = pathlib.Path(root_path)
            for path in root.glob(pattern):
                if path.is_file():
                    file_paths.append(path.relative_to(root).as_posix())
        file_paths.sort()
        log("find_files root_path=%s, pattern=%s, found=%d", root_path, pattern, len(file_paths))
        return file_paths

    @staticmethod
    def has_path_segment(file_path: str, segments: tuple[str, ...] | list[str]) -> bool:
        """file_pathのディレクトリ要素(またはファイル名)にsegmentsのいずれかが含まれるか"""
        parts = pathlib.PurePath(file_path.replace("\\", "/")).parts
        return any(segment in parts for segment in segments)
