"""Error taxonomy for the retrieval engine."""
from typing import Any, Optional


class CorpusRagError(Exception):
    """Base error with a machine-readable code."""

    error_code = "internal_error"
    retryable = False

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        detail: Optional[dict[str, Any]] = None,
        retryable: Optional[bool] = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        if retryable is not None:
            self.retryable = retryable
        self.detail = detail or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logs and API responses."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "detail": self.detail,
            "retryable": self.retryable,
        }

    def __str__(self) -> str:
        return f"{self.error_code}: {self.message}"


class ConfigurationError(CorpusRagError, ValueError):
    """Invalid retrieval options, rejected at request entry."""

    error_code = "bad_request"


class RetrievalError(CorpusRagError):
    """Vector or lexical backend failed."""

    error_code = "external_dependency"
    retryable = True

    def __init__(self, message: str, *, source: str, **kwargs):
        detail = kwargs.pop("detail", None) or {}
        detail.setdefault("source", source)
        super().__init__(message, detail=detail, **kwargs)
        self.source = source


class RetrievalTimeoutError(RetrievalError):
    """Retrieval fan-out exceeded its deadline."""

    def __init__(self, timeout: float):
        super().__init__(
            f"Retrieval timed out after {timeout:.1f}s",
            source="retrieval",
            detail={"timeout": timeout},
        )
        self.timeout = timeout
