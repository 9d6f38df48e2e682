"""
Typed ledger errors.

Every error carries a machine-readable `kind` and the HTTP status the API
maps it to. None of them are transient, so callers adjust the request and
resubmit instead of retrying.
"""

from fastapi import status


class LedgerError(Exception):
    kind = "LedgerError"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class NotFound(LedgerError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id, message: str | None = None):
        super().__init__(message or f"{entity} with id {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class CapacityExceeded(LedgerError):
    kind = "CapacityExceeded"
    status_code = status.HTTP_409_CONFLICT


class InvalidQuantity(LedgerError):
    kind = "InvalidQuantity"
    status_code = status.HTTP_400_BAD_REQUEST


class StorageAlreadyAttached(LedgerError):
    kind = "StorageAlreadyAttached"
    status_code = status.HTTP_409_CONFLICT


class StorageNotAttached(LedgerError):
    kind = "StorageNotAttached"
    status_code = status.HTTP_409_CONFLICT


class InventoryNotEmpty(LedgerError):
    kind = "InventoryNotEmpty"
    status_code = status.HTTP_409_CONFLICT
