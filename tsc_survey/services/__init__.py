"""Service layer: issue store, submissions, reporting and translations."""
from tsc_survey.services.github_client import GitHubIssueClient, build_issue_client
from tsc_survey.services.submission_service import (
    SubmissionOutcome,
    SubmissionService,
    SubmissionStatus,
)
from tsc_survey.services.csv_loader import SurveyRow, latest_per_player, parse_survey_csv
from tsc_survey.services.report_service import ReportService, build_report
from tsc_survey.services.translation_service import Translations, load_translations

__all__ = [
    "GitHubIssueClient",
    "build_issue_client",
    "SubmissionOutcome",
    "SubmissionService",
    "SubmissionStatus",
    "SurveyRow",
    "latest_per_player",
    "parse_survey_csv",
    "ReportService",
    "build_report",
    "Translations",
    "load_translations",
]
