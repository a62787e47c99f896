from src.fleet_ledger.exceptions import LedgerNotFoundError, LedgerValidationError


class OdometerBelowBaselineError(LedgerValidationError):
    """The new reading would make the truck drive backwards."""

    def __init__(self, odometer: int, baseline: int):
        self.odometer = odometer
        self.baseline = baseline
        super().__init__(
            f"Odometer {odometer} is below the previous reading {baseline}."
        )


class InvalidFuelQuantityError(LedgerValidationError):
    def __init__(self, liters: float):
        self.liters = liters
        super().__init__(f"Liters must be greater than zero, got {liters}.")


class InvalidUnitPriceError(LedgerValidationError):
    def __init__(self, unit_price: float):
        self.unit_price = unit_price
        super().__init__(f"Unit price must not be negative, got {unit_price}.")


class TruckNotFoundError(LedgerNotFoundError):
    def __init__(self, truck_id: str):
        self.truck_id = truck_id
        super().__init__(f"Truck ID does not exist. Truck ID: {truck_id}")


class FuelEventNotFoundError(LedgerNotFoundError):
    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Fuel event does not exist. Event ID: {event_id}")


class FuelEventForbiddenError(LedgerNotFoundError):
    """Non-admin agents cannot see other agents' fills, so they get a 404."""

    def __init__(self, event_id: str, agent_id: str):
        self.agent_id = agent_id
        super().__init__(
            f"Fuel event does not exist. Event ID: {event_id}, agent: {agent_id}"
        )
