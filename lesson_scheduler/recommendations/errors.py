from __future__ import annotations


class RecommendationError(Exception):
    """Base class for errors raised by the recommendation engine."""


class ValidationError(RecommendationError):
    """Raised when a slot request or snapshot is malformed."""

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or []


class NotFoundError(RecommendationError):
    """Raised when a referenced student or teacher is absent from the snapshot."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id
