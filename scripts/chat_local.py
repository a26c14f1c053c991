#!/usr/bin/env python3
"""
Interactive local booking chat harness (no HTTP).

Usage:
  python3 scripts/chat_local.py

What it does:
- Keeps a stable phone for the session
- Sends your typed messages through the same HandleBookingMessageUseCase the API uses
- Prints the reply text and the resulting dialogue state

Clinic data comes from DEV_SEED_FILE (defaults to scripts/seed_clinic.json).
"""

from __future__ import annotations

import os
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

load_dotenv()
os.environ.setdefault("DEV_SEED_FILE", str(ROOT / "scripts" / "seed_clinic.json"))

from booking_chat.wiring.dependencies import get_booking_dialogue, get_session_store  # noqa: E402


def _print_header(clinic_id: str, phone: str) -> None:
    print("\nLocal Booking Chat")
    print("-" * 60)
    print(f"clinic_id: {clinic_id}")
    print(f"phone: {phone}")
    print("Type your message and press Enter (empty line re-shows the prompt).")
    print("Commands: /new (new phone), /state, /quit, /help")
    print("-" * 60)


def main() -> None:
    clinic_id = os.getenv("CHAT_CLINIC_ID", "clinic-local")
    phone = os.getenv("CHAT_PHONE", "5511999990000")
    use_case = get_booking_dialogue()
    store = get_session_store()
    _print_header(clinic_id, phone)

    while True:
        try:
            user_text = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        cmd = user_text.lower()
        if cmd in ("/quit", "/exit"):
            print("Bye!")
            return
        if cmd == "/help":
            print("Commands:")
            print("  /new   -> start over with a new phone number")
            print("  /state -> show the stored session")
            print("  /quit  -> exit")
            continue
        if cmd == "/new":
            phone = f"55119{int(time.time()) % 100000000:08d}"
            print(f"New phone: {phone}")
            continue
        if cmd == "/state":
            session = store.get(clinic_id, phone)
            if session is None:
                print("(no session)")
            else:
                print(f"state: {session.state.value}")
                print(f"expires_at: {session.expires_at.isoformat()}")
                print(f"patient: {session.patient_name or '-'}")
                print(f"professional: {session.selected_professional_name or '-'}")
                print(f"date/time: {session.selected_date or '-'} {session.selected_time or ''}")
            continue

        try:
            reply = use_case.handle(clinic_id, phone, user_text)
        except Exception as e:
            print(f"ERROR: {e}")
            continue

        print("\n--- Reply ---")
        print(reply.text.strip())
        print(f"\n[state={reply.state.value} booking_complete={reply.booking_complete}]")
        print("-" * 60)


if __name__ == "__main__":
    main()
