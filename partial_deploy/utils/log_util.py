import functools
import inspect
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

import partial_deploy
from partial_deploy import settings

default_level = logging.INFO if settings.is_debug else logging.WARNING
logging.basicConfig(level=default_level, stream=sys.stderr)


# PidFunctionFormatter.format() によるフォーマット指定子
#     %(file_name)s       log関連を除いた呼び出し元のファイル名
#     %(function_name)s   log関連を除いた呼び出し元の関数名
# stdoutは結果の1行専用なので、ログは必ずstderr(またはファイル)に出す

FORMATTER_CONSOLE = "%(asctime)s - %(file_name)s - %(function_name)s - %(levelname)s - %(message)s"
FORMATTER_WITH_PID = "%(asctime)s - PID:%(process)d - %(file_name)s - %(function_name)s - %(levelname)s - %(message)s"


def get_logger(name: str, level: int = default_level, log_file: str = settings.log_file) -> logging.Logger:
    logger_ = logging.getLogger(name)
    logger_.propagate = False
    logger_.setLevel(level)
    if not logger_.handlers:
        _add_handler(logger_, level=level)
        if log_file:
            _add_file_handler(logger_, log_file=log_file, level=level)
    return logger_


# ロギング呼び出し関数を取るときに対象外とするソースファイルの名前部分
IGNORE_MODULES = ["__init__", "handlers", "log_util"]


class PidFunctionFormatter(logging.Formatter):
    def format(self, record):
        record.pid = os.getpid()
        # デフォルトのfuncNameではlog_iなどの共通部分しか出ないため、呼び出し元の関数名を取得する
        record.file_name, record.function_name = self.get_function_name()
        return super().format(record)

    def get_function_name(self) -> tuple[str, str]:
        frame = inspect.currentframe()
        while frame:
            code = frame.f_code
            filename = os.path.basename(code.co_filename)
            filename_without_ext = os.path.splitext(filename)[0]
            if filename_without_ext not in IGNORE_MODULES:
                return filename, code.co_name
            frame = frame.f_back
        return "unknown_file", "unknown_function"


def _add_handler(logger_: logging.Logger, level: int = default_level) -> None:
    # コンソール出力用のハンドラの設定(stderr)
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(PidFunctionFormatter(FORMATTER_CONSOLE))
    logger_.addHandler(handler)


def _add_file_handler(logger_: logging.Logger, log_file: str, level: int = default_level) -> None:
    file_handler = RotatingFileHandler(log_file, maxBytes=1024 * 1024, backupCount=5)  # 1MB, 最大5ファイル
    file_handler.setLevel(level)
    file_handler.setFormatter(PidFunctionFormatter(FORMATTER_WITH_PID))
    logger_.addHandler(file_handler)


logger = get_logger(partial_deploy.__name__)

DEF_MAX_SHOW_RETURN_LEN = 100


def log_inout(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger.debug("  --> Calling %s with args: %s, kwargs: %s", func.__name__, args, kwargs)
        result = func(*args, **kwargs)
        result_str = str(result)
        if len(result_str) > DEF_MAX_SHOW_RETURN_LEN:
            result_str = result_str[:DEF_MAX_SHOW_RETURN_LEN] + " ..."
        logger.debug("  --> %s returned: %s", func.__name__, result_str)
        return result

    return wrapper


def log(msg: str, *args, **kwargs):
    if settings.is_debug:
        logger.info(msg, *args, **kwargs)


def log_e(msg: str, *args, **kwargs):
    logger.error(msg, *args, **kwargs)


def log_w(msg: str, *args, **kwargs):
    logger.warning(msg, *args, **kwargs)


def log_i(msg: str, *args, **kwargs):
    logger.info(msg, *args, **kwargs)


def log_d(msg: str, *args, **kwargs):
    logger.debug(msg, *args, **kwargs)


def log_list(title: str, items: list[str], max_items: int = 20):
    """リストを1行1要素で出力する(デバッグ時のみ、長いリストは省略)"""
    if settings.is_debug:
        separator_part = "\n" + "=" * 80 + "\n"
        shown = items[:max_items]
        body = "\n".join(f"  - {item}" for item in shown)
        if len(items) > max_items:
            body += f"\n  ... (他 {len(items) - max_items} 件)"
        logger.info(f"{title}({len(items)}件)" + separator_part + body + separator_part)
