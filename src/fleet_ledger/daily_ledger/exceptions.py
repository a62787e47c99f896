from src.fleet_ledger.exceptions import LedgerNotFoundError, LedgerValidationError
from src.fleet_ledger.trip_records.schemas import BatchKey


class BatchNotFoundError(LedgerNotFoundError):
    """No trip record (visible to the caller) belongs to the batch."""

    def __init__(self, key: BatchKey):
        self.key = key
        super().__init__(f"Batch has no trip records. Batch: {key}")


class MissingRemarkError(LedgerValidationError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"A remark is required when adjusting {field}.")


class InvalidAdjustmentError(LedgerValidationError):
    def __init__(self, field: str, value: float):
        self.field = field
        self.value = value
        super().__init__(f"Invalid value {value} for {field} adjustment.")


class InvalidBatchMoveError(LedgerValidationError):
    def __init__(self, message: str = "Nothing to move."):
        super().__init__(message)
