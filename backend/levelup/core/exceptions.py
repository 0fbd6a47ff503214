"""
LevelUp Learning - Domain Exceptions
Error taxonomy shared by services and rendered by the API layer
"""
from typing import Any, Dict, Optional

from fastapi import status


class LevelUpError(Exception):
    """
    Base error for the platform.

    Each error carries a machine-readable ``kind``, a short human ``reason``
    and the HTTP status the API layer should answer with.
    """

    kind: str = "error"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, reason: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(reason)
        self.reason = reason
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "detail": self.reason, **self.extra}


class GenerationFailed(LevelUpError):
    """The content generator could not produce usable output after retries."""

    kind = "generation_failed"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class TopicOutOfScope(LevelUpError):
    """A custom quiz topic was judged inappropriate for the requested level."""

    kind = "topic_out_of_scope"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: str, suggested_topic: Optional[str] = None):
        super().__init__(
            f"Topic is outside current level: {reason}",
            extra={"reason": reason, "suggested_topic": suggested_topic},
        )
        self.suggested_topic = suggested_topic


class AlreadyCompleted(LevelUpError):
    """Finalizing or answering an assessment that is already completed."""

    kind = "already_completed"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: str = "Assessment already completed"):
        super().__init__(reason)


class NotFound(LevelUpError):
    """A referenced entity does not exist."""

    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: Any = None):
        super().__init__(
            f"{entity} not found",
            extra={"id": str(entity_id)} if entity_id is not None else None,
        )


class Unauthorized(LevelUpError):
    """The current user does not own the requested resource."""

    kind = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, reason: str = "Unauthorized"):
        super().__init__(reason)


class ValidationFailed(LevelUpError):
    """A request violates a business rule (counts, missing answers...)."""

    kind = "validation_failed"
    status_code = status.HTTP_400_BAD_REQUEST
