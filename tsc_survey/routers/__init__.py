"""API routers."""
from tsc_survey.routers import health, report, submit, translations

__all__ = [
    "health",
    "report",
    "submit",
    "translations",
]
