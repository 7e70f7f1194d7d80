"""Client-side survey form controller."""
from tsc_survey.client.form import FormConfig, FormPhase, SubmitResult, SurveyFormController

__all__ = ["FormConfig", "FormPhase", "SubmitResult", "SurveyFormController"]
