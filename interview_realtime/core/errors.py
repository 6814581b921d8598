"""Exception hierarchy for the interview orchestration library."""

from typing import Optional

from .interfaces import Stage


class InterviewError(Exception):
    """Base error."""

    def __init__(self, message: str, code: str = "INTERVIEW_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ProviderError(InterviewError):
    """A transcription, generation or synthesis call failed."""

    def __init__(
        self,
        message: str,
        stage: Stage,
        provider: Optional[str] = None,
        code: str = "PROVIDER_ERROR"
    ):
        self.stage = Stage(stage)
        self.provider = provider
        super().__init__(message, code=code)

    def to_dict(self) -> dict:
        return {"stage": self.stage.value, "error": self.message}


class ProviderConfigurationError(ProviderError):
    """A required provider credential or setting is absent."""

    def __init__(self, message: str, stage: Stage, provider: Optional[str] = None):
        super().__init__(message, stage, provider=provider, code="PROVIDER_CONFIG_ERROR")


class PersistenceError(InterviewError):
    """Transcript store unreachable or a write failed."""

    def __init__(self, message: str = "Transcript store unavailable"):
        super().__init__(message, code="PERSISTENCE_ERROR")


class InvalidTransitionError(InterviewError):
    """A connection was driven through a transition its state forbids."""

    def __init__(self, message: str):
        super().__init__(message, code="INVALID_TRANSITION")
