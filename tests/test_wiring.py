"""
Tests for adapter selection from settings.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from booking_chat.infrastructure.clinic.memory_directory import InMemoryClinicDirectory
from booking_chat.infrastructure.store.json_store import JsonSessionStore
from booking_chat.infrastructure.supabase.clinic_directory import SupabaseMemberDirectory
from booking_chat.infrastructure.supabase.session_store import SupabaseSessionStore
from booking_chat.wiring import dependencies

SEED_FILE = Path(__file__).resolve().parents[1] / "scripts" / "seed_clinic.json"


@pytest.fixture(autouse=True)
def fresh_wiring(monkeypatch):
    monkeypatch.setattr(dependencies, "_session_store", None)
    monkeypatch.setattr(dependencies, "_directories", None)
    monkeypatch.setattr(dependencies.settings, "SUPABASE_URL", None)
    monkeypatch.setattr(dependencies.settings, "SUPABASE_SERVICE_ROLE_KEY", None)
    monkeypatch.setattr(dependencies.settings, "DEV_SEED_FILE", None)
    dependencies.get_postgrest_client.cache_clear()
    yield
    dependencies.get_postgrest_client.cache_clear()


def test_dev_uses_json_store_and_seeded_directory(monkeypatch, tmp_path):
    """Without Supabase credentials, dev runs on local files and the seed."""
    monkeypatch.setattr(dependencies.settings, "ENV", "dev")
    monkeypatch.setattr(dependencies.settings, "SESSION_DATA_DIR", str(tmp_path))
    monkeypatch.setattr(dependencies.settings, "DEV_SEED_FILE", str(SEED_FILE))

    assert isinstance(dependencies.get_session_store(), JsonSessionStore)

    directories = dependencies.get_clinic_directories()
    assert isinstance(directories.members, InMemoryClinicDirectory)
    names = [p.name for p in directories.professionals.list_active_professionals("clinic-local")]
    assert names == ["Dr. Diego Ramos", "Dra. Carla Mendes"]
    assert directories.members.find_patient_by_cpf("clinic-local", "11144477735").name == "Bruno Lima"


def test_credentials_select_supabase_adapters(monkeypatch):
    monkeypatch.setattr(dependencies.settings, "ENV", "production")
    monkeypatch.setattr(dependencies.settings, "SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setattr(dependencies.settings, "SUPABASE_SERVICE_ROLE_KEY", "service-key")

    assert isinstance(dependencies.get_session_store(), SupabaseSessionStore)
    assert isinstance(dependencies.get_clinic_directories().members, SupabaseMemberDirectory)


def test_production_without_credentials_fails(monkeypatch):
    monkeypatch.setattr(dependencies.settings, "ENV", "production")

    with pytest.raises(ValueError):
        dependencies.get_session_store()
    with pytest.raises(ValueError):
        dependencies.get_clinic_directories()


def test_booking_dialogue_is_composed(monkeypatch, tmp_path):
    monkeypatch.setattr(dependencies.settings, "ENV", "local")
    monkeypatch.setattr(dependencies.settings, "SESSION_DATA_DIR", str(tmp_path))
    monkeypatch.setattr(dependencies.settings, "DEV_SEED_FILE", str(SEED_FILE))

    reply = dependencies.get_booking_dialogue().handle("clinic-local", "5511999990000", "529.982.247-25")

    assert "*Ana Souza*" in reply.text
