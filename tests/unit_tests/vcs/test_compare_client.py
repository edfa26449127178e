import unittest

import anyio
import httpx

from partial_deploy.errors import ComparisonError
from partial_deploy.vcs.compare_client import CompareClient, build_compare_url

COMPARE_URL_TEMPLATE = "https://api.github.com/repos/acme/app/compare/{base}...{head}"
BEFORE_SHA = "0123456789abcdef0123456789abcdef01234567"
AFTER_SHA = "fedcba9876543210fedcba9876543210fedcba98"

COMPARISON_JSON = {
    "status": "ahead",
    "total_commits": 2,
    "files": [
        {"filename": "src/shared.ts", "status": "modified", "additions": 3, "deletions": 1, "changes": 4},
        {"filename": "src/functions/a.function.ts", "status": "added", "additions": 10},
        {"filename": "README.md"},
    ],
}


def new_client(handler) -> CompareClient:
    return CompareClient("secret-token", transport=httpx.MockTransport(handler))


class TestBuildCompareUrl(unittest.TestCase):
    def test_short_sha(self):
        url = build_compare_url(COMPARE_URL_TEMPLATE, BEFORE_SHA, AFTER_SHA)
        self.assertEqual(url, "https://api.github.com/repos/acme/app/compare/0123456...fedcba9")

    def test_template_without_placeholders(self):
        self.assertEqual(build_compare_url("https://example.com/x", BEFORE_SHA, AFTER_SHA), "https://example.com/x")


class TestCompareClient(unittest.TestCase):
    def test_fetch_changed_files(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=COMPARISON_JSON)

        client = new_client(handler)
        filenames = anyio.run(client.fetch_changed_files, "https://api.github.com/repos/acme/app/compare/a...b")

        self.assertEqual(filenames, ["src/shared.ts", "src/functions/a.function.ts", "README.md"])
        self.assertEqual(len(requests), 1)
        self.assertEqual(requests[0].headers["Authorization"], "Bearer secret-token")

    def test_fetch_comparison_metadata(self):
        client = new_client(lambda request: httpx.Response(200, json=COMPARISON_JSON))
        comparison = anyio.run(client.fetch_comparison, "https://example.com/compare")
        self.assertEqual(comparison.total_commits, 2)
        self.assertEqual(comparison.files[0].changes, 4)
        self.assertEqual(comparison.files[2].status, "")

    def test_http_error_status(self):
        client = new_client(lambda request: httpx.Response(404, json={"message": "Not Found"}))
        with self.assertRaises(ComparisonError) as cm:
            anyio.run(client.fetch_changed_files, "https://example.com/compare")
        self.assertEqual(cm.exception.status_code, 404)

    def test_malformed_json(self):
        client = new_client(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
        with self.assertRaises(ComparisonError):
            anyio.run(client.fetch_changed_files, "https://example.com/compare")

    def test_unexpected_shape(self):
        client = new_client(lambda request: httpx.Response(200, json={"files": [{"status": "added"}]}))
        with self.assertRaises(ComparisonError):
            anyio.run(client.fetch_changed_files, "https://example.com/compare")

    def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = new_client(handler)
        with self.assertRaises(ComparisonError):
            anyio.run(client.fetch_changed_files, "https://example.com/compare")
