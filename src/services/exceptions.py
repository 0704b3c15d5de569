"""
Exception hierarchy for the AI generation service.
Per-model failures are returned as outcomes; only these conditions are raised.
"""


class AIServiceError(Exception):
    """Base class for all AI service errors."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class ConfigurationError(AIServiceError):
    """
    The configuration store could not be read.
    Recovered inside the config store by switching to the built-in snapshot.
    """

    pass


class GenerationFailedError(AIServiceError):
    """Every candidate model failed for a generation request."""

    pass


class TemplateNotFoundError(AIServiceError):
    """No enabled prompt template exists for the requested key."""

    def __init__(self, key: str):
        super().__init__(f'Prompt template "{key}" not found')
        self.key = key


class ResearchError(AIServiceError):
    """The company research call failed."""

    pass
