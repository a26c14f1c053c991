from __future__ import annotations

from booking_chat.application.use_cases.identity import IdentityResult
from booking_chat.application.utils.formatting import (
    format_date_br,
    format_expiry_date_br,
    format_time,
    numbered_list,
)
from booking_chat.domain.entities.appointment import BookingRuleCode
from booking_chat.domain.entities.booking_session import (
    BookingFor,
    BookingSession,
    BookingState,
    DateOption,
    DependentOption,
    ProfessionalOption,
    TimeOption,
)

ASK_IDENTITY = "Para agendar sua consulta, informe seu CPF ou número da carteirinha (apenas números):"
INVALID_IDENTITY_INPUT = (
    "Entrada inválida. Por favor, informe:\n• CPF: 11 números\n• Carteirinha: apenas os números da carteirinha"
)
CARD_NOT_FOUND = "Carteirinha não encontrada. Verifique o número ou informe seu CPF (11 números)."
PATIENT_NOT_FOUND = (
    "Não encontrei seu cadastro. Para agendar, é necessário estar cadastrado no sistema. "
    "Procure o atendimento do sindicato."
)
PATIENT_INACTIVE = "Seu cadastro está inativo. Por favor, procure o atendimento do sindicato para regularizar."
TITULAR_INACTIVE = "Cadastro do titular inativo. Por favor, procure o atendimento para regularizar."
IDENTITY_DENIED = "Sem problemas. Informe novamente o CPF do titular (11 números) ou o número da carteirinha:"
NO_PROFESSIONALS = "No momento não há profissionais disponíveis para agendamento."
NO_DEPENDENTS = "Não encontrei dependentes ativos no seu cadastro. Escolha 1 para agendar para você."
LOST_CONTEXT = "Ops, perdi o contexto. Vamos recomeçar: informe seu CPF (11 números)."
APPOINTMENT_CANCELLED = "Ok, cancelado. Se quiser tentar novamente, informe seu CPF."
RESTART = "Vamos recomeçar. Informe seu CPF (11 números) ou o número da carteirinha:"
COMMIT_FAILED = "❌ Não foi possível criar o agendamento. Tente novamente ou procure o atendimento."
GENERIC_ERROR = "Desculpe, ocorreu um erro no agendamento. Tente novamente."


def identity_rejection(result: IdentityResult) -> str:
    if result.action == "card_not_found":
        return CARD_NOT_FOUND
    if result.action == "not_found":
        return PATIENT_NOT_FOUND
    if result.action == "inactive":
        return PATIENT_INACTIVE
    if result.action == "titular_inactive":
        return TITULAR_INACTIVE
    if result.action in ("card_expired", "dependent_card_expired"):
        expired_on = format_expiry_date_br(result.expires_at) if result.expires_at else "data desconhecida"
        owner = "A carteirinha do dependente" if result.action == "dependent_card_expired" else "Sua carteirinha"
        return f"{owner} ({result.card_number}) expirou em {expired_on}. Por favor, renove para poder agendar."
    if result.action == "blocked":
        until = format_date_br(result.blocked_until) if result.blocked_until else "nova liberação"
        return (
            f"Seu cadastro está bloqueado para novos agendamentos até {until} devido a não comparecimento "
            "anterior. Para liberação, procure o atendimento do sindicato."
        )
    return INVALID_IDENTITY_INPUT


def confirm_identity(name: str | None, is_dependent: bool) -> str:
    found = "Encontrei o cadastro do dependente" if is_dependent else "Encontrei o cadastro"
    return f"{found}: *{name}*\n\n1 - Confirmar\n2 - Não sou eu"


def ask_booking_for(patient_name: str | None) -> str:
    return f"Para quem é o agendamento?\n\n1 - Para mim (*{patient_name}*)\n2 - Para um dependente"


def ask_dependent(dependents: tuple[DependentOption, ...]) -> str:
    return f"Escolha o dependente:\n\n{numbered_list([d.name for d in dependents])}"


def ask_professional(professionals: tuple[ProfessionalOption, ...], attendee_name: str | None = None) -> str:
    lead = f"Agendando para *{attendee_name}*.\n\n" if attendee_name else "Perfeito. "
    listing = numbered_list([f"{p.name} ({p.specialty})" for p in professionals])
    return f"{lead}Com qual profissional você quer agendar?\n\n{listing}"


def ask_date(professional_name: str | None, dates: tuple[DateOption, ...]) -> str:
    listing = numbered_list([f"{d.formatted} ({d.weekday})" for d in dates])
    return f"✅ Selecionado: *{professional_name}*\n\nAgora escolha a data:\n\n{listing}"


def no_dates(professional_name: str) -> str:
    return f"Não encontrei datas disponíveis para *{professional_name}*. Escolha outro profissional."


def ask_time(professional_name: str | None, date_iso: str, times: tuple[TimeOption, ...]) -> str:
    listing = numbered_list([t.formatted for t in times])
    return (
        f"Agora escolha o horário para *{professional_name}* em *{format_date_br(date_iso)}*:\n\n{listing}"
    )


def no_times(date_formatted: str) -> str:
    return f"Não há horários disponíveis em {date_formatted}. Escolha outra data."


def confirm_appointment(session: BookingSession) -> str:
    return (
        "Confirma o agendamento?\n\n"
        f"{_appointment_summary(session)}\n\n"
        "1 - Confirmar\n2 - Cancelar"
    )


def booking_confirmed(session: BookingSession) -> str:
    return (
        "✅ Agendamento confirmado!\n\n"
        f"{_appointment_summary(session)}\n\n"
        "Compareça com 10 minutos de antecedência."
    )


def invalid_choice(option_count: int) -> str:
    return f"Opção inválida. Escolha um número de 1 a {option_count}."


def commit_rejected(code: BookingRuleCode, session: BookingSession) -> str:
    professional = session.selected_professional_name or "este profissional"
    if code is BookingRuleCode.MONTHLY_LIMIT_MEMBER:
        return f"❌ Você já atingiu o limite de agendamentos com *{professional}* neste mês."
    if code is BookingRuleCode.MONTHLY_LIMIT_DEPENDENT:
        dependent = session.selected_dependent_name or "O dependente"
        return f"❌ {dependent} já atingiu o limite de agendamentos com *{professional}* neste mês."
    if code is BookingRuleCode.CARD_EXPIRED:
        return "❌ Sua carteirinha está vencida. Renove para poder agendar."
    if code is BookingRuleCode.SLOT_UNAVAILABLE:
        return "❌ Este horário não está mais disponível. Por favor, tente novamente."
    if code is BookingRuleCode.HOLIDAY:
        return "❌ Esta data é feriado e não há atendimento."
    if code is BookingRuleCode.PATIENT_BLOCKED:
        return "❌ Seu cadastro está bloqueado devido a não comparecimento anterior."
    return COMMIT_FAILED


def prompt_for(session: BookingSession) -> str:
    """Re-render the question the caller is currently expected to answer."""
    state = session.state
    if state is BookingState.CONFIRM_IDENTITY:
        if session.booking_for is BookingFor.DEPENDENT:
            return confirm_identity(session.selected_dependent_name, is_dependent=True)
        return confirm_identity(session.patient_name, is_dependent=False)
    if state is BookingState.SELECT_BOOKING_FOR:
        return ask_booking_for(session.patient_name)
    if state is BookingState.SELECT_DEPENDENT:
        return ask_dependent(session.available_dependents)
    if state is BookingState.SELECT_PROFESSIONAL:
        return ask_professional(session.available_professionals, session.attendee_name)
    if state is BookingState.SELECT_DATE:
        return ask_date(session.selected_professional_name, session.available_dates)
    if state is BookingState.SELECT_TIME and session.selected_date:
        return ask_time(session.selected_professional_name, session.selected_date, session.available_times)
    if state is BookingState.CONFIRM_APPOINTMENT and session.selected_date and session.selected_time:
        return confirm_appointment(session)
    return ASK_IDENTITY


def _appointment_summary(session: BookingSession) -> str:
    return (
        f"Paciente: *{session.attendee_name}*\n"
        f"Profissional: *{session.selected_professional_name}*\n"
        f"Data: *{format_date_br(session.selected_date or '')}*\n"
        f"Horário: *{format_time(session.selected_time or '')}*"
    )
