from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BookingRuleCode(str, Enum):
    """Business rules enforced by the appointment store on insert.

    Values are the tokens the store's triggers raise.
    """

    MONTHLY_LIMIT_MEMBER = "LIMITE_AGENDAMENTO_CPF"
    MONTHLY_LIMIT_DEPENDENT = "LIMITE_AGENDAMENTO_DEPENDENTE"
    CARD_EXPIRED = "CARTEIRINHA_VENCIDA"
    SLOT_UNAVAILABLE = "HORARIO_INVALIDO"
    HOLIDAY = "FERIADO"
    PATIENT_BLOCKED = "PACIENTE_BLOQUEADO"

    @classmethod
    def from_store_message(cls, message: str | None) -> "BookingRuleCode | None":
        if not message:
            return None
        for code in cls:
            if code.value in message:
                return code
        return None


@dataclass(frozen=True)
class NewAppointment:
    clinic_id: str
    patient_id: str
    professional_id: str
    appointment_date: str  # YYYY-MM-DD
    start_time: str  # HH:MM:SS
    end_time: str  # HH:MM:SS
    duration_minutes: int
    dependent_id: str | None = None
    status: str = "scheduled"
    type: str = "primeira-consulta"

    def to_record(self) -> dict[str, object]:
        record: dict[str, object] = {
            "clinic_id": self.clinic_id,
            "patient_id": self.patient_id,
            "professional_id": self.professional_id,
            "appointment_date": self.appointment_date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration_minutes": self.duration_minutes,
            "status": self.status,
            "type": self.type,
        }
        if self.dependent_id:
            record["dependent_id"] = self.dependent_id
        return record
