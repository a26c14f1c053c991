from dataclasses import dataclass

from booking_chat.domain.entities.booking_session import BookingState


@dataclass(frozen=True)
class DialogueReply:
    text: str
    state: BookingState
    booking_complete: bool = False
