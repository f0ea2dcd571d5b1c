"""Exception types shared by the generation client, agents and API"""

from typing import List, Optional

# HTTP statuses a provider may return for conditions that usually clear up on retry
TRANSIENT_STATUS_CODES = {403, 404, 408, 429}

# Provider messages that mean the model is temporarily unavailable
MODEL_UNAVAILABLE_MARKERS = (
    "model is overloaded",
    "model_not_available",
    "model unavailable",
    "deploymentnotfound",
    "resource_exhausted",
    "unavailable",
)


class ShowrunnerError(Exception):
    """Base class for all errors raised by this package"""


class ProviderError(ShowrunnerError):
    """A text or video provider rejected or failed a request"""

    def __init__(self, message: str, status: Optional[int] = None,
                 provider: str = "unknown", model: str = "unknown",
                 transient: Optional[bool] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.provider = provider
        self.model = model
        self._transient = transient

    @property
    def is_transient(self) -> bool:
        if self._transient is not None:
            return self._transient
        if self.status is not None:
            if self.status in TRANSIENT_STATUS_CODES or 500 <= self.status < 600:
                return True
        lowered = self.message.lower()
        return any(marker in lowered for marker in MODEL_UNAVAILABLE_MARKERS)

    def __str__(self):
        status = f"HTTP {self.status} " if self.status is not None else ""
        return f"[{self.provider}:{self.model}] {status}{self.message}"


class GenerationError(ShowrunnerError):
    """Every model in the fallback chain failed for one generation call"""

    def __init__(self, message: str, attempts: Optional[List[ProviderError]] = None):
        super().__init__(message)
        self.message = message
        self.attempts = attempts or []

    @property
    def last_error(self) -> Optional[ProviderError]:
        return self.attempts[-1] if self.attempts else None


class RequestValidationFailed(ShowrunnerError):
    """Caller input is missing required fields or has out-of-range values"""

    def __init__(self, errors: List[str]):
        super().__init__(", ".join(errors))
        self.errors = errors
