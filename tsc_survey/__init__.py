"""TSC event survey service: submission endpoint and respondent reporting."""
from tsc_survey.version import APP_VERSION

__all__ = ["APP_VERSION"]
