"""Pytest configuration and fixtures."""
import json
import os
from pathlib import Path

import httpx
import pytest

# Configure the app before anything imports the settings
os.environ["ENVIRONMENT"] = "test"
os.environ["GITHUB_TOKEN"] = "test-token"
os.environ["GITHUB_OWNER"] = "acme"
os.environ["GITHUB_REPO"] = "survey"
os.environ["GITHUB_LABELS"] = "survey,tsc"
os.environ["ALLOWED_ORIGINS"] = ""
os.environ["REPORT_CSV_URL"] = ""
os.environ["REPORT_CSV_PATH"] = ""
os.environ["LOG_DIR"] = str(Path(__file__).resolve().parent.parent / "logs")

from tsc_survey.config import get_settings

get_settings.cache_clear()

from tsc_survey.services.github_client import GitHubIssueClient

ISSUES_PATH = "/repos/acme/survey/issues"


class FakeGitHub:
    """In-memory stand-in for the GitHub Issues API behind an httpx.MockTransport."""

    def __init__(self):
        self.issues: list[dict] = []
        self.calls: list[tuple[str, str]] = []
        self.failures: dict = {}
        self.unreachable: set[str] = set()
        self._next_number = 1

    def add_issue(self, title: str, state: str = "open", pull_request: bool = False) -> int:
        number = self._next_number
        self._next_number += 1
        issue = {
            "number": number,
            "title": title,
            "state": state,
            "body": "",
            "labels": [],
            "html_url": f"https://github.com/acme/survey/issues/{number}",
        }
        if pull_request:
            issue["pull_request"] = {"url": f"https://api.github.com/repos/acme/survey/pulls/{number}"}
        self.issues.append(issue)
        return number

    def fail(self, operation, status_code: int, body: str = '{"message": "Validation Failed"}'):
        """Make ``operation`` ("list", "create" or ("close", n)) answer with ``status_code``."""
        self.failures[operation] = (status_code, body)

    def open_titles(self) -> list[str]:
        return [issue["title"] for issue in self.issues if issue["state"] == "open" and "pull_request" not in issue]

    def _failure(self, operation):
        if operation in self.failures:
            status_code, body = self.failures[operation]
            return httpx.Response(status_code, text=body)
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))
        if request.method in self.unreachable:
            raise httpx.ConnectTimeout("timed out", request=request)

        assert request.headers["authorization"] == "Bearer test-token"

        if request.method == "GET" and path == ISSUES_PATH:
            failure = self._failure("list")
            if failure:
                return failure
            per_page = int(request.url.params.get("per_page", 30))
            page = int(request.url.params.get("page", 1))
            open_issues = [issue for issue in self.issues if issue["state"] == "open"]
            return httpx.Response(200, json=open_issues[(page - 1) * per_page:page * per_page])

        if request.method == "PATCH" and path.startswith(ISSUES_PATH + "/"):
            number = int(path.rsplit("/", 1)[1])
            failure = self._failure(("close", number))
            if failure:
                return failure
            issue = next(issue for issue in self.issues if issue["number"] == number)
            issue.update(json.loads(request.content))
            return httpx.Response(200, json=issue)

        if request.method == "POST" and path == ISSUES_PATH:
            failure = self._failure("create")
            if failure:
                return failure
            payload = json.loads(request.content)
            number = self.add_issue(payload["title"])
            issue = self.issues[-1]
            issue["body"] = payload["body"]
            issue["labels"] = payload.get("labels", [])
            return httpx.Response(201, json=issue)

        return httpx.Response(404, json={"message": "Not Found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self, **kwargs) -> GitHubIssueClient:
        return GitHubIssueClient(token="test-token", owner="acme", repo="survey", transport=self.transport, **kwargs)


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def test_app(fake_github):
    """App with the GitHub client routed to the in-memory fake."""
    from tsc_survey.main import app
    from tsc_survey.dependencies import get_issue_client

    async def override_get_issue_client():
        client = fake_github.client()
        try:
            yield client
        finally:
            await client.close()

    app.dependency_overrides[get_issue_client] = override_get_issue_client
    yield app
    app.dependency_overrides.clear()


SAMPLE_CSV = (
    "timestamp,language,player_name,Q2_time,Q3_time,Q4_day\n"
    "2025-01-01T00:00:00Z,en,Alice,A,B,A. Monday\n"
    "2025-01-02T00:00:00Z,ja,Alice,B,B,C\n"
    "2025-01-01T10:00:00Z,JA,Bob,a,E,H\n"
    "2025-01-01T10:00:00Z,xx,Bob,C,Z,Any day\n"
    "2025-01-03T00:00:00Z,de,\"Carol, the Great\",D,A,ｇ\n"
    "not-a-date,en,  ,A,A,A\n"
)


@pytest.fixture
def sample_csv_path(tmp_path) -> Path:
    path = tmp_path / "responses.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path


@pytest.fixture
def sample_csv_text() -> str:
    return SAMPLE_CSV
