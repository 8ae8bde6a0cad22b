"""Trainee ledger errors. All are recoverable by correcting input and retrying."""
import uuid


class TraineeLedgerError(Exception):
    """Base exception for trainee ledger errors."""

    pass


class RecordValidationError(TraineeLedgerError):
    """Submitted fields are invalid. Nothing was written.

    ``errors`` maps field name to a human readable message, the same shape
    the enrollment forms display next to each input.
    """

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class NotFoundError(TraineeLedgerError):
    """Trainee or record id does not resolve."""

    def __init__(self, entity: str, entity_id: uuid.UUID | str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidTransitionError(TraineeLedgerError):
    """Requested state change is not allowed from the record's current state."""

    def __init__(self, entity: str, entity_id: uuid.UUID, reason: str):
        self.entity = entity
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"{entity} {entity_id}: {reason}")
