from pydantic import BaseModel


class BookingChatRequest(BaseModel):
    clinic_id: str | None = None
    phone: str | None = None
    message: str | None = None


class BookingChatResponse(BaseModel):
    response: str
    state: str | None = None
    booking_complete: bool | None = None
