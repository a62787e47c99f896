from decimal import Decimal

from src.fleet_ledger.exceptions import LedgerNotFoundError, LedgerValidationError


class TareAboveGrossError(LedgerValidationError):
    def __init__(self, side: str, gross: Decimal, tare: Decimal):
        self.side = side
        super().__init__(
            f"{side.capitalize()} tare weight {tare} is above gross weight {gross}."
        )


class NegativeWeightError(LedgerValidationError):
    def __init__(self, field: str, value: Decimal):
        self.field = field
        super().__init__(f"{field} must not be negative, got {value}.")


class MissingNetWeightError(LedgerValidationError):
    """DISPATCH trips need a loading weight, PURCHASE trips an unloading one."""

    def __init__(self, transaction_type: str, field: str):
        self.transaction_type = transaction_type
        self.field = field
        super().__init__(f"{transaction_type} trips require {field}.")


class TripRecordNotFoundError(LedgerNotFoundError):
    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Trip record does not exist. Record ID: {record_id}")
