"""リビジョン比較サービス(GitHub compare API)のクライアント"""

import httpx
from pydantic import ValidationError

from partial_deploy.errors import ComparisonError
from partial_deploy.schema.schema import DEFAULT_HTTP_TIMEOUT, CommitComparison
from partial_deploy.utils.log_util import log, log_list

SHORT_SHA_LEN = 7


def build_compare_url(template: str, base: str, head: str) -> str:
    """URLテンプレートの{base}と{head}を短縮SHA(先頭7文字)で置換する"""
    return template.replace("{base}", base[:SHORT_SHA_LEN]).replace("{head}", head[:SHORT_SHA_LEN])


class CompareClient:
    def __init__(
        self,
        token: str,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": "Bearer " + self.token,
            "Accept": "application/vnd.github+json",
        }

    async def fetch_comparison(self, url: str) -> CommitComparison:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(url, headers=self._headers())
            except httpx.HTTPError as e:
                raise ComparisonError(f"比較APIの呼び出しに失敗しました: {e}") from e

        if response.is_error:
            raise ComparisonError(
                f"比較APIがエラーを返しました: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            return CommitComparison.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ComparisonError(f"比較APIのレスポンスが不正です: {e}", status_code=response.status_code) from e

    async def fetch_changed_files(self, url: str) -> list[str]:
        """変更されたファイルのパスを比較APIの順序のまま返す"""
        comparison = await self.fetch_comparison(url)
        filenames = comparison.filenames()
        log("fetch_changed_files url=%s, status=%s, commits=%d", url, comparison.status, comparison.total_commits)
        log_list("changed_files", filenames)
        return filenames
