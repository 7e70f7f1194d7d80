"""FastAPI dependencies."""
import logging
from functools import lru_cache
from typing import AsyncIterator

from fastapi import Depends

from tsc_survey.config import Settings, get_settings
from tsc_survey.services.github_client import GitHubIssueClient, build_issue_client
from tsc_survey.services.report_service import ReportService
from tsc_survey.services.submission_service import SubmissionService
from tsc_survey.services.translation_service import Translations, load_translations

logger = logging.getLogger(__name__)


def get_app_settings() -> Settings:
    return get_settings()


async def get_issue_client(
    settings: Settings = Depends(get_app_settings),
) -> AsyncIterator[GitHubIssueClient]:
    """Yield a GitHub client for one request; missing secrets raise ConfigurationError."""
    client = build_issue_client(settings)
    try:
        yield client
    finally:
        await client.close()


def get_submission_service(
    client: GitHubIssueClient = Depends(get_issue_client),
    settings: Settings = Depends(get_app_settings),
) -> SubmissionService:
    return SubmissionService(client, labels=settings.github_labels)


def get_report_service(settings: Settings = Depends(get_app_settings)) -> ReportService:
    return ReportService(settings)


@lru_cache()
def _cached_translations(path: str, default_language: str) -> Translations:
    return load_translations(path, default_language=default_language)


def get_translations(settings: Settings = Depends(get_app_settings)) -> Translations:
    return _cached_translations(str(settings.translations_path), settings.default_language)
