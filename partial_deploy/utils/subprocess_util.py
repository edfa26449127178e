import shutil
import subprocess
from typing import Any

from partial_deploy.utils.log_util import log


class SubprocessUtil:
    CompletedProcess = subprocess.CompletedProcess
    CalledProcessError = subprocess.CalledProcessError
    TimeoutExpired = subprocess.TimeoutExpired

    @staticmethod
    def which(command: str) -> str | None:
        """コマンドの実行ファイルパスを返す(見つからなければNone)"""
        return shutil.which(command)

    @staticmethod
    def run(
        args: list[str],
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        encoding: str = "utf-8",
        timeout: float | None = None,
        *,  # ↑位置引数(args=とか省略可) ココから後はキーワード引数↓
        capture_output: bool = True,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """
        サブプロセスで外部の解析ツールを実行します。シェルは経由しません。

        引数:
            args (list[str]): 実行するコマンドと引数。
            cwd (Optional[str]): コマンドの作業ディレクトリ。
            env (Optional[Dict[str, str]]): 新しいプロセスの環境変数。
            encoding (str): stdoutとstderrのデコードに使うエンコーディング。
            timeout (Optional[float]): プロセスがtimeout秒後に終了しない場合、TimeoutExpired例外を発生させます。
            capture_output (bool): Trueの場合、stdoutとstderrをキャプチャします。
            check (bool): Trueの場合、終了コードが0以外ならCalledProcessErrorを発生させます。

        戻り値:
            subprocess.CompletedProcess: CompletedProcessインスタンス。

        例外:
            subprocess.CalledProcessError: checkがTrueで、プロセスが非ゼロの終了ステータスを返した場合。
            subprocess.TimeoutExpired: タイムアウトが発生した場合。
            FileNotFoundError: コマンドが存在しない場合。
        """
        kwargs: dict[str, Any] = {
            "args": args,
            "cwd": cwd,
            "env": env,
            "timeout": timeout,
            "capture_output": capture_output,
            "text": True,
            "encoding": encoding,
        }

        # Remove None values to use default subprocess.run behavior
        kwargs = {k: v for k, v in kwargs.items() if v is not None}
        log("run args=%s, cwd=%s", args, cwd)

        # Avoid W1510: https://pylint.readthedocs.io/en/latest/user_guide/messages/warning/subprocess-run-check.html
        return subprocess.run(**kwargs, check=check)  # noqa: S603
