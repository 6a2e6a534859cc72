# app.py
# Description: Command-line entry point for the vinotes note board
#
# Imports
import argparse
import asyncio
import sys
from typing import List, Optional
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from .config import get_cli_setting, get_data_dir, get_log_file_path
from .DB.local_store import LocalStore
from .DB.session_store import SessionStore
from .Notes.board_service import NotesBoardService
from .Notes.errors import AuthError, LocalStoreError, NotesBoardError
from .Notes.note_models import Note
from .Notes.sync_engine import SyncProgress, SyncReport, SyncStatus
from .Remote.auth import TokenProvider
from .Remote.drive_client import DriveAPIClient
from .Utils.logging_config import configure_logging
#
########################################################################################################################
#
# Functions:

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="vinotes - a note board mirrored to Google Drive",
        prog="vinotes"
    )
    parser.add_argument("--log-level", type=str, help="Override the [logging] level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="Show notes, important first")
    p.add_argument("--folder", help="Only notes in this folder id ('root' for unfiled notes)")

    p = sub.add_parser("add", help="Create a note")
    p.add_argument("title")
    p.add_argument("--content", default="")
    p.add_argument("--important", action="store_true")
    p.add_argument("--folder")

    p = sub.add_parser("edit", help="Edit a note")
    p.add_argument("id", type=int)
    p.add_argument("--title")
    p.add_argument("--content")
    p.add_argument("--important", action=argparse.BooleanOptionalAction, default=None)
    p.add_argument("--folder")

    for name, help_text in (("delete", "Delete a note"), ("pin", "Mark a note important"),
                            ("unpin", "Clear the important mark"), ("share", "Print a public share link")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("id", type=int)

    sub.add_parser("folders", help="List folders")
    p = sub.add_parser("folder-add", help="Create a folder")
    p.add_argument("name")
    p = sub.add_parser("folder-rm", help="Delete a folder; its notes move to the root")
    p.add_argument("id")

    p = sub.add_parser("login", help="Store a Drive access token")
    p.add_argument("--token", required=True)
    p.add_argument("--expires-in", type=float, default=3600.0, help="Token lifetime in seconds")
    sub.add_parser("logout", help="Forget the session and clear the local board")

    sub.add_parser("sync", help="Upload local-only notes, then download and merge")
    sub.add_parser("push", help="Write every note to Drive")
    p = sub.add_parser("import", help="Import a shared note")
    p.add_argument("ref")
    p = sub.add_parser("attach", help="Upload a file and print its markup link")
    p.add_argument("path")
    sub.add_parser("whoami", help="Show the connected Drive account")
    return parser


def _format_note(note: Note) -> str:
    pin = "*" if note.important else " "
    synced = "synced" if note.remote_file_id else "local"
    folder = f" [{note.folder_id}]" if note.folder_id else ""
    return f"{pin} {note.id}  {note.title or '(untitled)'}{folder}  ({synced})"


def _print_progress(progress: SyncProgress) -> None:
    print(f"  {progress.phase.value}: {progress.current}/{progress.total} {progress.label}")


def _print_report(report: SyncReport) -> None:
    if report.status == SyncStatus.SKIPPED:
        print("A sync is already running.")
        return
    if report.status == SyncStatus.FAILED:
        print(f"Sync failed: {report.error}")
    print(f"Uploaded {report.uploaded}, downloaded {report.downloaded}, {report.merged_count} notes on the board.")
    if report.failed_count:
        print(f"{report.failed_count} item(s) failed; see the log for details.")


async def run_command(args: argparse.Namespace, service: NotesBoardService) -> int:
    command = args.command

    if command == "list":
        if args.folder is None:
            notes = service.sorted_notes()
        else:
            folder_id = None if args.folder == "root" else args.folder
            notes = service.sorted_notes(folder_id=folder_id, all_folders=False)
        for note in notes:
            print(_format_note(note))
        if not notes:
            print("No notes yet.")
    elif command == "add":
        note = service.save_note(args.title, args.content, args.important, folder_id=args.folder)
        print(f"Saved note {note.id}")
    elif command == "edit":
        current = service.get_note(args.id)
        if current is None:
            print(f"No note with id {args.id}")
            return 1
        note = service.save_note(
            args.title if args.title is not None else current.title,
            args.content if args.content is not None else current.content,
            args.important if args.important is not None else current.important,
            note_id=args.id,
            folder_id=args.folder,
        )
        print(f"Saved note {note.id}")
    elif command == "delete":
        await service.delete_note(args.id)
        print(f"Deleted note {args.id}")
    elif command in ("pin", "unpin"):
        service.set_important(args.id, command == "pin")
    elif command == "folders":
        for folder in service.state.folders:
            mirrored = " (on Drive)" if folder.drive_folder_id else ""
            print(f"{folder.id}  {folder.name}{mirrored}")
    elif command == "folder-add":
        folder = await service.create_folder(args.name)
        print(f"Created folder {folder.id}")
    elif command == "folder-rm":
        moved = service.delete_folder(args.id)
        print(f"Deleted folder {args.id}; {len(moved)} note(s) moved to the root")
    elif command == "login":
        service.token_provider.session_store.save(args.token, args.expires_in)
        print("Session saved.")
    elif command == "logout":
        service.destroy_session()
        print("Session destroyed and local notes cleared.")
    elif command == "sync":
        report = await service.sync()
        _print_report(report)
        return 0 if report.status == SyncStatus.COMPLETED else 1
    elif command == "push":
        report = await service.push_all()
        _print_report(report)
        return 0 if report.status == SyncStatus.COMPLETED else 1
    elif command == "import":
        note = await service.import_shared_note(args.ref)
        print(f"Imported note {note.id}: {note.title}")
    elif command == "share":
        print(await service.share_note(args.id))
    elif command == "attach":
        print(await service.attach_file(args.path))
    elif command == "whoami":
        print(await service.account_label())
    return 0


async def _run(args: argparse.Namespace) -> int:
    data_dir = get_data_dir()
    token_provider = TokenProvider(SessionStore(data_dir))
    service = NotesBoardService(
        store=LocalStore(data_dir),
        gateway=DriveAPIClient(),
        token_provider=token_provider,
        progress_callback=_print_progress,
    )
    try:
        return await run_command(args, service)
    finally:
        await service.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(
        level=(args.log_level or get_cli_setting("logging", "level", "INFO")).upper(),
        log_file=get_log_file_path(),
        console=bool(get_cli_setting("logging", "console", True)),
    )

    try:
        return asyncio.run(_run(args))
    except AuthError as e:
        print(f"Not connected: {e}. Run 'vinotes login' first.", file=sys.stderr)
        return 2
    except LocalStoreError as e:
        logger.critical(f"Local store failure: {e}")
        print(f"Could not read or write the local note store: {e}", file=sys.stderr)
        return 3
    except NotesBoardError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("--- KeyboardInterrupt received ---")
        return 130

#
# End of app.py
########################################################################################################################
