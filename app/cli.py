"""
Operator console for the attendance tracker

Usage:
    python -m app.cli events create "Gala"
    python -m app.cli scan 1          # read card numbers from stdin until 'stop'
    python -m app.cli export 1 --dir ./exports
    python -m app.cli menu            # interactive menu
"""

import argparse
import logging
import sys
from typing import Callable, Optional

from app.core.config import settings
from app.core.db import init_db, session_scope
from app.core.errors import AttendanceError, NotFound
from app.schemas.attendance import ScanResult
from app.services.attendance_engine import get_attendance_engine
from app.services.event_service import EventLifecycleManager
from app.services.export_service import ExportService
from app.services.reporting_service import ReportingService
from app.services.repositories import EventRepo
from app.services.scan_session import ScanSession

logger = logging.getLogger(__name__)

Reader = Callable[[str], str]


def _confirm(prompt: str, read: Optional[Reader] = None) -> bool:
    return (read or input)(f"{prompt} (y/n): ").strip().lower() == "y"


def _print_events(events) -> None:
    if not events:
        print("⚠ No events have been created yet.")
        return
    print("ID   | Event Name                     | Created At")
    print("-" * 60)
    for event in events:
        print(f"{event.id:<4} | {event.name:<30} | {event.created_at:%Y-%m-%d %H:%M:%S}")


def _print_scan_result(result: ScanResult) -> None:
    if result.accepted:
        print(f"✅ {result.card_number}: {result.message}")
    else:
        print(f"⏳ {result.message}")


def select_event(db, read: Optional[Reader] = None) -> Optional[int]:
    """Prompt until a listed event number or 0 (go back) is entered"""
    read = read or input
    events = EventLifecycleManager.list(db)
    if not events:
        print("⚠ No events have been created yet.")
        return None

    options = {number: event.id for number, event in enumerate(events, start=1)}
    print("  #  | Event Name")
    print("-" * 40)
    for number, event in enumerate(events, start=1):
        print(f" {number:<3} | {event.name}")
    print("  0  | Go Back")

    while True:
        choice = read("Select an event (enter number): ").strip()
        if choice == "0":
            return None
        if choice.isdigit() and int(choice) in options:
            return options[int(choice)]
        print("❌ Invalid selection. Try again.")


# -------- Command handlers --------

def cmd_init_db(args) -> int:
    init_db()
    print(f"Database ready at {settings.DATABASE_URL}")
    return 0


def cmd_events_list(args) -> int:
    with session_scope() as db:
        _print_events(EventLifecycleManager.list(db))
    return 0


def cmd_events_create(args) -> int:
    with session_scope() as db:
        event = EventLifecycleManager.create(db, args.name)
        print(f"✅ Event '{event.name}' has been successfully created (id={event.id}).")
    return 0


def cmd_events_rename(args) -> int:
    with session_scope() as db:
        event = EventLifecycleManager.rename(db, args.event_id, args.name)
        print(f"✅ Event ID {event.id} renamed to '{event.name}'.")
    return 0


def cmd_events_delete(args) -> int:
    if not args.yes and not _confirm(f"⚠ Delete event {args.event_id} and all its transactions?"):
        print("❌ Event deletion canceled.")
        return 0
    with session_scope() as db:
        removed = EventLifecycleManager.delete(db, args.event_id)
        print(f"✅ Event {args.event_id} and its {removed} transactions have been deleted.")
    return 0


def cmd_events_bulk_delete(args) -> int:
    ids = EventLifecycleManager.parse_id_list(args.ids)
    with session_scope() as db:
        for outcome in EventLifecycleManager.bulk_delete(db, ids):
            if outcome.deleted:
                print(f"🗑 Deleted event {outcome.event_id}.")
            else:
                print(f"❌ Event {outcome.event_id}: {outcome.error}")
    print("✅ Bulk deletion complete.")
    return 0


def cmd_scan(args, lines=None) -> int:
    session = ScanSession(get_attendance_engine(), args.stop_keyword)
    print(f"📌 Now scanning for Event {args.event_id}. "
          f"Type '{session.stop_keyword}' and press Enter to exit.")
    with session_scope() as db:
        if not EventRepo.get(db, args.event_id):
            raise NotFound("Event", args.event_id)
        if lines is None:
            lines = sys.stdin
        summary = session.run(db, args.event_id, lines, on_result=_print_scan_result)
    print(f"🛑 Session ended: {summary.check_ins} check-ins, {summary.check_outs} check-outs, "
          f"{summary.rejected} rejected.")
    return 0


def cmd_attendees(args) -> int:
    with session_scope() as db:
        attendees = ReportingService.live_attendees(db, args.event_id)
    if not attendees:
        print("⚠ No attendees currently checked in.")
        return 0
    print("Card Number    | Check-In Time")
    print("-" * 36)
    for attendee in attendees:
        print(f"{attendee.card_number:<14} | {attendee.check_in_time:%Y-%m-%d %H:%M:%S}")
    return 0


def cmd_export(args) -> int:
    with session_scope() as db:
        path = ExportService.export_transactions(db, args.event_id, export_dir=args.dir)
    print(f"✅ Data exported successfully to: {path}")
    return 0


def cmd_force_close(args) -> int:
    print("⚠ This will force-check out all attendees for all events!")
    if not args.yes and not _confirm("Are you sure?"):
        print("❌ Operation cancelled.")
        return 0
    with session_scope() as db:
        count = EventLifecycleManager.force_close_all(db)
    print(f"✅ {count} open check-ins have been marked as checked out.")
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT)
    return 0


# -------- Interactive menu --------

MAIN_MENU = """
Event Management System
1. Create Event
2. List Events
3. Select Event for Check-In/Out
4. View Live Attendee List
5. Export Event Data to CSV
6. Delete Event
7. Admin Dashboard
8. Exit"""

ADMIN_MENU = """
Admin Dashboard
1. Bulk Delete Events
2. Edit Event Name
3. Force Close All Check-Ins
0. Return to Main Menu"""


def _menu_with_event(handler, read: Reader, **extra) -> None:
    with session_scope() as db:
        event_id = select_event(db, read)
    if event_id is None:
        return
    handler(argparse.Namespace(event_id=event_id, **extra))


def run_admin_menu(read: Optional[Reader] = None) -> None:
    read = read or input
    while True:
        print(ADMIN_MENU)
        choice = read("Select an option: ").strip()
        try:
            if choice == "1":
                with session_scope() as db:
                    _print_events(EventLifecycleManager.list(db))
                ids = read("Enter Event IDs to delete (comma-separated): ")
                cmd_events_bulk_delete(argparse.Namespace(ids=ids))
            elif choice == "2":
                with session_scope() as db:
                    event_id = select_event(db, read)
                if event_id is not None:
                    name = read("Enter new event name: ")
                    cmd_events_rename(argparse.Namespace(event_id=event_id, name=name))
            elif choice == "3":
                yes = _confirm("⚠ Force-check out all attendees for all events?", read)
                if yes:
                    cmd_force_close(argparse.Namespace(yes=True))
                else:
                    print("❌ Operation cancelled.")
            elif choice == "0":
                return
            else:
                print("❌ Invalid option. Please try again.")
        except AttendanceError as e:
            print(f"❌ {e.message}")


def run_menu(read: Optional[Reader] = None) -> int:
    read = read or input
    while True:
        print(MAIN_MENU)
        choice = read("Select an option: ").strip()
        try:
            if choice == "1":
                name = read("📌 Enter event name (or press Enter to cancel): ").strip()
                if name:
                    cmd_events_create(argparse.Namespace(name=name))
                else:
                    print("🔙 Event creation canceled.")
            elif choice == "2":
                cmd_events_list(None)
            elif choice == "3":
                _menu_with_event(cmd_scan, read, stop_keyword=settings.STOP_KEYWORD)
            elif choice == "4":
                _menu_with_event(cmd_attendees, read)
            elif choice == "5":
                _menu_with_event(cmd_export, read, dir=None)
            elif choice == "6":
                with session_scope() as db:
                    event_id = select_event(db, read)
                if event_id is not None:
                    if _confirm(f"⚠ Delete event {event_id} and all its transactions?", read):
                        cmd_events_delete(argparse.Namespace(event_id=event_id, yes=True))
                    else:
                        print("❌ Event deletion canceled.")
            elif choice == "7":
                run_admin_menu(read)
            elif choice == "8":
                return 0
            else:
                print("❌ Invalid option.")
        except AttendanceError as e:
            print(f"❌ {e.message}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Event check-in/check-out attendance tracker")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create database tables").set_defaults(func=cmd_init_db)

    events = commands.add_parser("events", help="Manage events")
    event_commands = events.add_subparsers(dest="event_command", required=True)

    event_commands.add_parser("list", help="List events").set_defaults(func=cmd_events_list)

    create = event_commands.add_parser("create", help="Create an event")
    create.add_argument("name", type=str, help="Event name")
    create.set_defaults(func=cmd_events_create)

    rename = event_commands.add_parser("rename", help="Rename an event")
    rename.add_argument("event_id", type=int)
    rename.add_argument("name", type=str, help="New event name")
    rename.set_defaults(func=cmd_events_rename)

    delete = event_commands.add_parser("delete", help="Delete an event and its transactions")
    delete.add_argument("event_id", type=int)
    delete.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    delete.set_defaults(func=cmd_events_delete)

    bulk = event_commands.add_parser("bulk-delete", help="Delete several events")
    bulk.add_argument("ids", type=str, help="Comma-separated event ids")
    bulk.set_defaults(func=cmd_events_bulk_delete)

    scan = commands.add_parser("scan", help="Check cards in/out from standard input")
    scan.add_argument("event_id", type=int)
    scan.add_argument("--stop-keyword", type=str, default=settings.STOP_KEYWORD,
                      help="Line that ends the session (case-insensitive)")
    scan.set_defaults(func=cmd_scan)

    attendees = commands.add_parser("attendees", help="Show attendees currently checked in")
    attendees.add_argument("event_id", type=int)
    attendees.set_defaults(func=cmd_attendees)

    export = commands.add_parser("export", help="Export an event's transactions to CSV")
    export.add_argument("event_id", type=int)
    export.add_argument("--dir", type=str, default=None, help="Output directory")
    export.set_defaults(func=cmd_export)

    force_close = commands.add_parser("force-close", help="Check out every open check-in")
    force_close.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    force_close.set_defaults(func=cmd_force_close)

    commands.add_parser("serve", help="Run the HTTP API").set_defaults(func=cmd_serve)
    commands.add_parser("menu", help="Interactive menu").set_defaults(func=lambda args: run_menu())

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else settings.LOG_LEVEL)
    init_db()

    try:
        return args.func(args)
    except AttendanceError as e:
        print(f"❌ {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
