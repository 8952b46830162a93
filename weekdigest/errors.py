class WeekDigestError(Exception):
    """Base class for errors raised by the week digest pipeline"""


class CompletionError(WeekDigestError):
    """The generative model call failed (network, provider or timeout)"""

    def __init__(self, message: str, model: str = ""):
        super().__init__(message)
        self.model = model


class CacheUnavailableError(WeekDigestError):
    """The relation backing a cache store does not exist"""

    def __init__(self, relation: str):
        super().__init__(f"Cache relation '{relation}' is not available")
        self.relation = relation


class DocumentExtractionError(WeekDigestError, ValueError):
    """Text could not be extracted from an uploaded document"""
