from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
import logging

from booking_chat.core.config import settings
from booking_chat.application.ports.appointment_store import AppointmentStorePort
from booking_chat.application.ports.holiday_calendar import HolidayCalendarPort
from booking_chat.application.ports.member_directory import MemberDirectoryPort
from booking_chat.application.ports.professional_directory import ProfessionalDirectoryPort
from booking_chat.application.ports.session_store import SessionStorePort
from booking_chat.application.use_cases.availability import AvailabilityCalculator
from booking_chat.application.use_cases.booking_dialogue import HandleBookingMessageUseCase
from booking_chat.application.use_cases.commit import AppointmentCommitUseCase
from booking_chat.application.use_cases.dependents import DependentSelector
from booking_chat.application.use_cases.identity import IdentityResolver
from booking_chat.application.utils.clock import BusinessClock, fixed_offset
from booking_chat.infrastructure.clinic.memory_directory import InMemoryClinicDirectory
from booking_chat.infrastructure.store.json_store import JsonSessionStore
from booking_chat.infrastructure.supabase.clinic_directory import (
    SupabaseAppointmentStore,
    SupabaseHolidayCalendar,
    SupabaseMemberDirectory,
    SupabaseProfessionalDirectory,
)
from booking_chat.infrastructure.supabase.postgrest_client import PostgrestClient
from booking_chat.infrastructure.supabase.session_store import SupabaseSessionStore


@dataclass(frozen=True)
class ClinicDirectories:
    members: MemberDirectoryPort
    professionals: ProfessionalDirectoryPort
    holidays: HolidayCalendarPort
    appointments: AppointmentStorePort


_session_store: SessionStorePort | None = None
_directories: ClinicDirectories | None = None


def _is_local() -> bool:
    return settings.ENV.lower() in {"dev", "local"}


def _has_supabase() -> bool:
    return bool(settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY)


@lru_cache
def get_postgrest_client() -> PostgrestClient:
    return PostgrestClient(
        base_url=settings.SUPABASE_URL or "",
        service_key=settings.SUPABASE_SERVICE_ROLE_KEY or "",
        timeout=settings.SUPABASE_TIMEOUT_SECONDS,
    )


def get_clock() -> BusinessClock:
    return BusinessClock(fixed_offset(settings.BUSINESS_UTC_OFFSET_HOURS))


def get_session_store() -> SessionStorePort:
    global _session_store
    if _session_store is None:
        logger = logging.getLogger(__name__)
        if _has_supabase():
            logger.info("Using SupabaseSessionStore")
            _session_store = SupabaseSessionStore(client=get_postgrest_client())
        elif _is_local():
            logger.info("Using JsonSessionStore (Supabase not configured, ENV=dev/local)")
            _session_store = JsonSessionStore(data_dir=settings.SESSION_DATA_DIR)
        else:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required outside dev/local.")
    return _session_store


def get_clinic_directories() -> ClinicDirectories:
    global _directories
    if _directories is None:
        logger = logging.getLogger(__name__)
        if _has_supabase():
            client = get_postgrest_client()
            _directories = ClinicDirectories(
                members=SupabaseMemberDirectory(client),
                professionals=SupabaseProfessionalDirectory(client),
                holidays=SupabaseHolidayCalendar(client),
                appointments=SupabaseAppointmentStore(client),
            )
        elif _is_local():
            if settings.DEV_SEED_FILE:
                logger.info("Loading clinic seed", extra={"reason": settings.DEV_SEED_FILE})
                directory = InMemoryClinicDirectory.from_seed_file(settings.DEV_SEED_FILE)
            else:
                directory = InMemoryClinicDirectory()
            _directories = ClinicDirectories(
                members=directory,
                professionals=directory,
                holidays=directory,
                appointments=directory,
            )
        else:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required outside dev/local.")
    return _directories


def build_booking_dialogue(
    sessions: SessionStorePort,
    directories: ClinicDirectories,
    clock: BusinessClock,
) -> HandleBookingMessageUseCase:
    availability = AvailabilityCalculator(
        professionals=directories.professionals,
        holidays=directories.holidays,
        appointments=directories.appointments,
        clock=clock,
        lookahead_days=settings.BOOKING_LOOKAHEAD_DAYS,
        max_dates=settings.BOOKING_MAX_DATES,
        max_times=settings.BOOKING_MAX_TIMES,
        min_lead_minutes=settings.BOOKING_MIN_LEAD_MINUTES,
        default_duration_minutes=settings.DEFAULT_APPOINTMENT_MINUTES,
    )
    return HandleBookingMessageUseCase(
        sessions=sessions,
        professionals=directories.professionals,
        identity=IdentityResolver(members=directories.members, clock=clock),
        dependents=DependentSelector(members=directories.members),
        availability=availability,
        commit=AppointmentCommitUseCase(appointments=directories.appointments),
        clock=clock,
        session_ttl=timedelta(minutes=settings.SESSION_TTL_MINUTES),
    )


def get_booking_dialogue() -> HandleBookingMessageUseCase:
    return build_booking_dialogue(
        sessions=get_session_store(),
        directories=get_clinic_directories(),
        clock=get_clock(),
    )
