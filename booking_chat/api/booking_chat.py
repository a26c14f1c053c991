from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from booking_chat.api.schemas import BookingChatRequest, BookingChatResponse
from booking_chat.application.use_cases.booking_dialogue import HandleBookingMessageUseCase
from booking_chat.application.use_cases.reply_composer import GENERIC_ERROR
from booking_chat.wiring.dependencies import get_booking_dialogue


router = APIRouter()
logger = logging.getLogger(__name__)


@router.options("/booking-web-chat")
def booking_chat_preflight() -> Response:
    return Response(status_code=200)


@router.post("/booking-web-chat", response_model=BookingChatResponse, response_model_exclude_none=True)
def booking_chat(
    req: BookingChatRequest,
    uc: HandleBookingMessageUseCase = Depends(get_booking_dialogue),
):
    if not req.clinic_id or not req.phone:
        return JSONResponse(status_code=400, content={"error": "clinic_id and phone are required"})

    try:
        reply = uc.handle(req.clinic_id, req.phone, req.message)
    except Exception as e:
        logger.exception("Booking chat failed", extra={"clinic_id": req.clinic_id, "error": str(e)})
        return JSONResponse(
            status_code=500,
            content={"error": str(e) or e.__class__.__name__, "response": GENERIC_ERROR},
        )

    return BookingChatResponse(
        response=reply.text,
        state=reply.state.value,
        booking_complete=True if reply.booking_complete else None,
    )
