class ServiceError(Exception):
    """Base exception for service-layer failures that map to a client error."""


class RecordNotFoundError(ServiceError):
    def __init__(self, kind: str, record_id) -> None:
        super().__init__(f"{kind} {record_id} not found.")
        self.kind = kind
        self.record_id = record_id


class PermissionDeniedError(ServiceError):
    """Raised when an actor tries to change a record they don't own."""
