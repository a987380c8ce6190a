class DomainError(Exception):
    """Base exception for ledger and attendance rule violations."""


class ValidationError(DomainError):
    """Raised when input is malformed or would break an invariant. Nothing is written."""


class NotFoundError(DomainError):
    """Raised when a referenced student, session or grade does not exist."""


class ConflictError(DomainError):
    """Raised when an optimistic write lost a race against another writer."""


class StoreError(DomainError):
    """Raised when the persistence backend fails.

    Carries the entity kind, the operation and the id (when there is one) so the
    caller can decide on retry or backoff.
    """

    def __init__(self, kind: str, operation: str, entity_id=None, detail: str = ""):
        self.kind = kind
        self.operation = operation
        self.entity_id = entity_id
        self.detail = detail
        message = f"{kind}.{operation} failed"
        if entity_id is not None:
            message += f" (id={entity_id})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
