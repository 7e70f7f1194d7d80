"""Upsert-by-player submission flow on top of GitHub Issues."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from tsc_survey.schemas.submission import IssueRef, SubmissionRecord
from tsc_survey.services.github_client import GitHubIssueClient
from tsc_survey.utils.exceptions import UpstreamError

logger = logging.getLogger(__name__)

ISSUE_TITLE_PREFIX = "Survey Response: "
ISSUE_HEADING = "TSC Event Survey Submission"


class SubmissionStatus(str, Enum):
    CREATED = "created"
    CREATED_WITH_CLOSE_FAILURES = "created_with_close_failures"
    CREATE_FAILED = "create_failed"


@dataclass
class SubmissionOutcome:
    """Result of the two-phase close-then-create operation."""

    status: SubmissionStatus
    issue: Optional[IssueRef] = None
    closed: list[int] = field(default_factory=list)
    close_failures: list[int] = field(default_factory=list)
    error: Optional[UpstreamError] = None

    @property
    def succeeded(self) -> bool:
        return self.status != SubmissionStatus.CREATE_FAILED


def issue_title(player_name: str) -> str:
    return f"{ISSUE_TITLE_PREFIX}{player_name}"


def build_issue_body(record: SubmissionRecord) -> str:
    """Plain ``key: value`` listing plus a raw JSON block, kept easy to parse for the CSV export."""
    row = record.as_row()
    lines = [ISSUE_HEADING, ""]
    lines.extend(f"{key}: {value}" for key, value in row.items())
    lines.extend([
        "",
        "raw_json:",
        "```json",
        json.dumps(row, indent=2, ensure_ascii=False),
        "```",
        "",
    ])
    return "\n".join(lines)


class SubmissionService:
    """Persist survey submissions, keeping at most one open issue per player."""

    def __init__(self, client: GitHubIssueClient, labels: Optional[list[str]] = None):
        self.client = client
        self.labels = list(labels or [])

    async def submit(self, record: SubmissionRecord) -> SubmissionOutcome:
        """
        Close stale open issues for the player, then create a fresh one.

        Listing failures propagate as :class:`UpstreamError` since nothing has
        been changed yet. Close failures are recorded and do not stop the
        creation. Closes that succeeded are never undone if creation fails.
        Concurrent submissions for the same player are not serialized and can
        leave two open issues.
        """
        title = issue_title(record.player_name)

        stale = await self.client.find_open_issues_by_title(title)
        closed: list[int] = []
        close_failures: list[int] = []
        for issue in stale:
            number = int(issue["number"])
            try:
                await self.client.close_issue(number)
            except UpstreamError as exc:
                logger.warning(f"Could not close stale issue #{number} for {record.player_name!r}: {exc}")
                close_failures.append(number)
            else:
                closed.append(number)

        try:
            created = await self.client.create_issue(title, build_issue_body(record), self.labels)
        except UpstreamError as exc:
            logger.error(f"Failed to create issue for {record.player_name!r}: {exc}")
            return SubmissionOutcome(
                status=SubmissionStatus.CREATE_FAILED,
                closed=closed,
                close_failures=close_failures,
                error=exc,
            )

        issue = IssueRef(number=int(created["number"]), url=str(created.get("html_url", "")))
        status = (
            SubmissionStatus.CREATED_WITH_CLOSE_FAILURES if close_failures else SubmissionStatus.CREATED
        )
        logger.info(
            f"Stored survey response for {record.player_name!r} as issue #{issue.number} "
            f"(closed={closed}, close_failures={close_failures})"
        )
        return SubmissionOutcome(
            status=status,
            issue=issue,
            closed=closed,
            close_failures=close_failures,
        )
