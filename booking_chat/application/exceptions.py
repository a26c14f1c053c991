from booking_chat.domain.entities.appointment import BookingRuleCode


class StoreError(RuntimeError):
    """Raised when the clinic data store fails (network errors, bad responses, rejected writes)."""
    pass


class AppointmentRejectedError(StoreError):
    """Raised when the appointment store refuses an insert on a named business rule."""

    def __init__(self, code: BookingRuleCode, detail: str | None = None) -> None:
        super().__init__(detail or code.value)
        self.code = code
