# board_service.py
# Description: User-facing note board operations over the local store and remote storage
#
# Imports
import mimetypes
from dataclasses import replace
from pathlib import Path
from typing import Callable, List, Optional, Union
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from ..config import get_cli_setting
from ..DB.local_store import LocalStore
from ..Remote.auth import TokenProvider
from ..Remote.gateway import RemoteGateway
from .errors import AuthError, NetworkError, ValidationError
from .note_codec import extract_shared_content
from .note_models import Folder, Note, NoteBoardState, now_millis, sort_for_display, utc_now_iso
from .sync_engine import NotesSyncEngine, SyncProgress, SyncReport
#
########################################################################################################################
#
# Classes:

DEFAULT_ACCOUNT_LABEL = "Drive Active"
SHARED_NOTE_TITLE = "Shared Note"


class NotesBoardService:
    """
    The note board: every local mutation is persisted immediately, and remote
    storage is touched only when a session exists. Remote failures are logged
    and reported but never undo a local change.
    """

    def __init__(self,
                 store: LocalStore,
                 gateway: RemoteGateway,
                 token_provider: TokenProvider,
                 progress_callback: Optional[Callable[[SyncProgress], None]] = None,
                 on_notes_changed: Optional[Callable[[NoteBoardState], None]] = None):
        self.store = store
        self.gateway = gateway
        self.token_provider = token_provider
        self.state = store.load_state()

        self.notes_folder_name = get_cli_setting("drive", "notes_folder_name", "Vinotes")
        self.board_folder_name = get_cli_setting("drive", "board_folder_name", "ViNotes")
        self.attachments_folder_name = get_cli_setting("drive", "attachments_folder_name", "ViNotes_Files")
        self.share_base_url = get_cli_setting("drive", "share_base_url", "https://vinotes.app/")

        self.sync_engine = NotesSyncEngine(
            state=self.state,
            store=store,
            gateway=gateway,
            token_provider=token_provider,
            notes_folder_name=self.notes_folder_name,
            checkpoint_every=get_cli_setting("sync", "checkpoint_every", 3),
            max_concurrent_downloads=get_cli_setting("sync", "max_concurrent_downloads", 1),
            progress_callback=progress_callback,
            on_notes_changed=on_notes_changed,
        )

    # --- Session helpers ---

    def _connect_if_possible(self) -> bool:
        """Hand the persisted token to the gateway; False when there is no valid session."""
        self.gateway.set_access_token(self.token_provider.current_token())
        return self.gateway.has_token

    async def _require_connection(self) -> None:
        token = await self.token_provider.obtain_token()
        self.gateway.set_access_token(token)

    # --- Notes ---

    def _require_note(self, note_id: int) -> Note:
        note = self.state.find_note(note_id)
        if note is None:
            raise ValidationError(f"No note with id {note_id}")
        return note

    def _require_folder(self, folder_id: Optional[str]) -> None:
        if folder_id is not None and self.state.find_folder(folder_id) is None:
            raise ValidationError(f"No folder with id {folder_id}")

    def get_note(self, note_id: int) -> Optional[Note]:
        return self.state.find_note(note_id)

    def sorted_notes(self, folder_id: Optional[str] = None, all_folders: bool = True) -> List[Note]:
        """
        Notes in display order.

        With all_folders False only the notes of `folder_id` are returned
        (None meaning the root).
        """
        notes = self.state.notes
        if not all_folders:
            notes = [n for n in notes if n.folder_id == folder_id]
        return sort_for_display(notes)

    def save_note(self, title: str, content: str, important: bool = False,
                  note_id: Optional[int] = None, folder_id: Optional[str] = None) -> Note:
        """
        Create a note, or edit the note `note_id` in place.

        An edit keeps the note's remote handle, share reference and folder
        (unless `folder_id` names a new one). A synced note is marked for push so
        the next sync writes the edit back before reading the remote copy.

        Raises:
            ValidationError: Both title and content are blank, or the note or
                folder does not exist.
        """
        title = (title or "").strip()
        content = content or ""
        if not title and not content.strip():
            raise ValidationError("A note needs a title or some content")
        self._require_folder(folder_id)

        if note_id is None:
            note = Note(
                id=self.state.next_note_id(),
                title=title,
                content=content,
                important=important,
                folder_id=folder_id,
                last_modified=utc_now_iso(),
            )
            self.state.notes.append(note)
            logger.info(f"Created note {note.id}")
        else:
            existing = self._require_note(note_id)
            note = replace(
                existing,
                title=title,
                content=content,
                important=important,
                folder_id=folder_id if folder_id is not None else existing.folder_id,
                last_modified=utc_now_iso(),
                needs_push=bool(existing.remote_file_id),
            )
            self.state.replace_note(note)
            logger.info(f"Updated note {note.id}")

        self.store.save_notes(self.state.notes)
        return note

    def set_important(self, note_id: int, important: bool) -> Note:
        existing = self._require_note(note_id)
        note = replace(existing, important=important, last_modified=utc_now_iso(),
                       needs_push=bool(existing.remote_file_id))
        self.state.replace_note(note)
        self.store.save_notes(self.state.notes)
        return note

    def move_note(self, note_id: int, folder_id: Optional[str]) -> Note:
        self._require_folder(folder_id)
        note = replace(self._require_note(note_id), folder_id=folder_id)
        self.state.replace_note(note)
        self.store.save_notes(self.state.notes)
        return note

    async def delete_note(self, note_id: int) -> Note:
        """Remove a note locally, then delete its remote file if possible."""
        note = self.state.remove_note(note_id)
        if note is None:
            raise ValidationError(f"No note with id {note_id}")
        self.store.save_notes(self.state.notes)
        logger.info(f"Deleted note {note_id}")

        if note.remote_file_id and self._connect_if_possible():
            try:
                await self.gateway.delete_file(note.remote_file_id)
            except (AuthError, NetworkError) as e:
                logger.warning(f"Remote file {note.remote_file_id} of deleted note {note_id} was not removed: {e}")
        return note

    # --- Folders ---

    async def create_folder(self, name: str) -> Folder:
        """
        Add a board folder, mirrored under the board root folder when a
        session exists. A remote failure leaves a local-only folder.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("A folder needs a name")

        stamp = now_millis()
        while self.state.find_folder(f"fld_{stamp}") is not None:
            stamp += 1
        folder = Folder(id=f"fld_{stamp}", name=name)

        if self._connect_if_possible():
            try:
                root_id = await self.gateway.get_or_create_folder(self.board_folder_name)
                folder.drive_folder_id = await self.gateway.get_or_create_folder(name, parent_id=root_id)
            except (AuthError, NetworkError) as e:
                logger.warning(f"Folder '{name}' was not mirrored remotely: {e}")

        self.state.folders.append(folder)
        self.store.save_folders(self.state.folders)
        logger.info(f"Created folder {folder.id} ('{name}')")
        return folder

    def delete_folder(self, folder_id: str) -> List[Note]:
        """
        Remove a folder; its notes move to the root.

        Returns:
            The notes that were moved.
        """
        folder = self.state.find_folder(folder_id)
        if folder is None:
            raise ValidationError(f"No folder with id {folder_id}")

        moved = []
        for i, note in enumerate(self.state.notes):
            if note.folder_id == folder_id:
                self.state.notes[i] = replace(note, folder_id=None)
                moved.append(self.state.notes[i])
        self.state.folders = [f for f in self.state.folders if f.id != folder_id]

        self.store.save_notes(self.state.notes)
        self.store.save_folders(self.state.folders)
        logger.info(f"Deleted folder {folder_id}; moved {len(moved)} notes to the root")
        return moved

    # --- Remote operations ---

    async def sync(self) -> SyncReport:
        return await self.sync_engine.sync()

    async def push_note(self, note_id: int) -> SyncReport:
        return await self.sync_engine.push_notes([self._require_note(note_id)])

    async def push_all(self) -> SyncReport:
        return await self.sync_engine.push_notes(list(self.state.notes))

    async def import_shared_note(self, share_ref: str) -> Note:
        """
        Import the note behind a share reference.

        Importing the same reference again updates the earlier import in place.
        """
        share_ref = (share_ref or "").strip()
        if not share_ref:
            raise ValidationError("A share reference is required")

        shared = await self.gateway.fetch_shared_file(share_ref)
        title, content = extract_shared_content(shared.content, SHARED_NOTE_TITLE)

        existing = self.state.find_note_by_share_id(share_ref)
        if existing is not None:
            note = replace(existing, title=title, content=content, last_modified=utc_now_iso(),
                           needs_push=bool(existing.remote_file_id))
            self.state.replace_note(note)
            logger.info(f"Updated note {note.id} from share {share_ref} (owner {shared.owner_label})")
        else:
            note = Note(
                id=self.state.next_note_id(),
                title=title,
                content=content,
                important=False,
                original_share_id=share_ref,
                last_modified=utc_now_iso(),
            )
            self.state.notes.append(note)
            logger.info(f"Imported note {note.id} from share {share_ref} (owner {shared.owner_label})")

        self.store.save_notes(self.state.notes)
        return note

    async def share_note(self, note_id: int) -> str:
        """Make the note's remote file public and return its share link."""
        note = self._require_note(note_id)
        if not note.remote_file_id:
            raise ValidationError(f"Note {note_id} has not been synced yet; sync it before sharing")
        await self._require_connection()
        await self.gateway.share_file(note.remote_file_id)
        return f"{self.share_base_url}?view={note.remote_file_id}"

    async def attach_file(self, path: Union[str, Path]) -> str:
        """
        Upload a file to the attachments folder with public read access.

        Returns:
            A link in note markup, `[File: name](link)`.
        """
        path = Path(path).expanduser()
        if not path.is_file():
            raise ValidationError(f"No such file: {path}")
        data = path.read_bytes()
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

        await self._require_connection()
        folder_id = await self.gateway.get_or_create_folder(self.attachments_folder_name)
        uploaded = await self.gateway.upload_attachment(folder_id, path.name, data, mime_type)
        await self.gateway.share_file(uploaded.id)
        link = uploaded.web_view_link or f"https://drive.google.com/file/d/{uploaded.id}/view"
        logger.info(f"Attached {path.name} as {uploaded.id}")
        return f"[File: {uploaded.name or path.name}]({link})"

    async def account_label(self) -> str:
        if not self._connect_if_possible():
            raise AuthError("Not connected to Google Drive")
        try:
            return await self.gateway.get_account_label()
        except (AuthError, NetworkError) as e:
            logger.warning(f"Could not read account label: {e}")
            return DEFAULT_ACCOUNT_LABEL

    def destroy_session(self) -> None:
        """Forget the session and wipe the local note board."""
        self.token_provider.forget()
        self.gateway.set_access_token(None)
        self.store.clear()
        self.state.notes = []
        self.state.folders = []
        logger.info("Session destroyed and local board cleared")

    async def close(self) -> None:
        await self.gateway.close()

#
# End of board_service.py
########################################################################################################################
