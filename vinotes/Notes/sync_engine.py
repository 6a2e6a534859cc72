# sync_engine.py
# Description: Orchestration of a note sync cycle against remote storage
#
# Imports
import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from ..DB.local_store import LocalStore
from ..Remote.auth import TokenProvider
from ..Remote.drive_models import RemoteFile
from ..Remote.gateway import RemoteGateway
from .errors import AuthError, DecodeError, NetworkError
from .note_codec import decode_note, encode_note, file_name_for_note, file_properties_for_note
from .note_models import Note, NoteBoardState, now_millis
from .reconciliation import notes_needing_update, notes_needing_upload, reconcile
#
logger = logger.bind(module="sync_engine")
#
########################################################################################################################
#
# Classes and Functions:

# Failures that are isolated per item or per phase; anything else propagates.
REMOTE_ERRORS = (AuthError, NetworkError, DecodeError)


class SyncPhase(Enum):
    """Where a sync cycle currently is."""
    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    UPLOADING = "uploading"
    DOWNLOADING = "downloading"
    MERGING = "merging"
    ERROR = "error"


class SyncStatus(Enum):
    """Outcome of a sync cycle or push."""
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class SyncProgress:
    """Progress snapshot handed to the observer after every item."""
    phase: SyncPhase
    current: int
    total: int
    label: str = ""


@dataclass
class SyncReport:
    """What one sync cycle or push did."""
    status: SyncStatus = SyncStatus.COMPLETED
    uploaded: int = 0
    upload_errors: List[Tuple[int, Exception]] = field(default_factory=list)
    downloaded: int = 0
    download_errors: List[Tuple[str, Exception]] = field(default_factory=list)
    merged_count: int = 0
    error: Optional[Exception] = None
    duration: float = 0.0

    @property
    def failed_count(self) -> int:
        return len(self.upload_errors) + len(self.download_errors)


class NotesSyncEngine:
    """
    Runs sync cycles: authenticate, upload local-only and locally edited notes,
    download the remote set, merge it into the local state and persist.

    The engine mutates the NoteBoardState it is given and persists through the
    LocalStore; it keeps no copy of the collections between cycles.
    """

    def __init__(self,
                 state: NoteBoardState,
                 store: LocalStore,
                 gateway: RemoteGateway,
                 token_provider: TokenProvider,
                 notes_folder_name: str = "Vinotes",
                 checkpoint_every: int = 3,
                 max_concurrent_downloads: int = 1,
                 progress_callback: Optional[Callable[[SyncProgress], None]] = None,
                 on_notes_changed: Optional[Callable[[NoteBoardState], None]] = None):
        """
        Initialize the sync engine.

        Args:
            state: The owned note and folder collections
            store: Local persistence for the collections
            gateway: Remote file store
            token_provider: Source of the access token
            notes_folder_name: Remote folder holding one file per note
            checkpoint_every: Persist uploaded handles after this many successful uploads
            max_concurrent_downloads: Upper bound on in-flight downloads; 1 is sequential
            progress_callback: Optional observer for per-item progress
            on_notes_changed: Optional hook called after the merged set is persisted
        """
        self.state = state
        self.store = store
        self.gateway = gateway
        self.token_provider = token_provider
        self.notes_folder_name = notes_folder_name
        self.checkpoint_every = max(1, int(checkpoint_every))
        self.max_concurrent_downloads = max(1, int(max_concurrent_downloads))
        self.progress_callback = progress_callback
        self.on_notes_changed = on_notes_changed
        self._phase = SyncPhase.IDLE
        self._in_flight = False

    @property
    def phase(self) -> SyncPhase:
        return self._phase

    @property
    def is_syncing(self) -> bool:
        return self._in_flight

    def _set_phase(self, phase: SyncPhase) -> None:
        if phase != self._phase:
            logger.info(f"Sync phase: {self._phase.value} -> {phase.value}")
        self._phase = phase

    def _report_progress(self, current: int, total: int, label: str) -> None:
        logger.debug(f"{self._phase.value} {current}/{total}: {label}")
        if self.progress_callback:
            self.progress_callback(SyncProgress(phase=self._phase, current=current, total=total, label=label))

    async def _authenticate(self) -> None:
        self._set_phase(SyncPhase.AUTHENTICATING)
        token = await self.token_provider.obtain_token()
        self.gateway.set_access_token(token)

    async def sync(self) -> SyncReport:
        """
        Run one full cycle.

        Upload finishes (every item settled) before download starts, so notes
        created before the first connection come back with their handle instead
        of as duplicates, and local edits to synced notes reach their remote file
        before the remote copy is merged back. Remote failures end up in the
        report; LocalStoreError propagates.

        Returns:
            SyncReport; status SKIPPED when a cycle is already running.
        """
        if self._in_flight:
            logger.info("Sync requested while another sync is running; ignoring")
            return SyncReport(status=SyncStatus.SKIPPED)

        self._in_flight = True
        report = SyncReport()
        start_time = time.time()
        try:
            logger.info("Starting sync cycle")
            await self._authenticate()

            self._set_phase(SyncPhase.UPLOADING)
            folder_id = await self.gateway.get_or_create_folder(self.notes_folder_name)
            candidates = notes_needing_upload(self.state.notes) + notes_needing_update(self.state.notes)
            await self._upload(folder_id, candidates, report)

            self._set_phase(SyncPhase.DOWNLOADING)
            remote_notes = await self._download(folder_id, report)

            self._set_phase(SyncPhase.MERGING)
            self._merge(remote_notes, report)

            logger.info(
                f"Sync completed: {report.uploaded} uploaded, {report.downloaded} downloaded, "
                f"{report.merged_count} notes, {report.failed_count} failed items"
            )
        except REMOTE_ERRORS as e:
            self._set_phase(SyncPhase.ERROR)
            report.status = SyncStatus.FAILED
            report.error = e
            logger.error(f"Sync failed: {e}")
        finally:
            report.duration = time.time() - start_time
            self._set_phase(SyncPhase.IDLE)
            self._in_flight = False

        return report

    async def _write_note(self, folder_id: Optional[str], note: Note) -> bool:
        """Replace the remote file of a synced note or create one; True when created."""
        if note.remote_file_id:
            await self.gateway.update_file_content(note.remote_file_id, encode_note(note))
            note.needs_push = False
            return False
        note.remote_file_id = await self.gateway.create_file(
            folder_id, file_name_for_note(note), encode_note(note), file_properties_for_note(note),
        )
        note.needs_push = False
        return True

    async def _upload(self, folder_id: str, candidates: List[Note], report: SyncReport) -> None:
        """Write every candidate to its remote file, one at a time."""
        total = len(candidates)
        pending_checkpoint = 0
        for index, note in enumerate(candidates, start=1):
            label = note.title or str(note.id)
            try:
                created = await self._write_note(folder_id, note)
                report.uploaded += 1
                pending_checkpoint += 1
                logger.debug(f"{'Uploaded' if created else 'Updated'} note {note.id} as {note.remote_file_id}")
            except REMOTE_ERRORS as e:
                logger.warning(f"Upload of note {note.id} ('{label}') failed: {e}")
                report.upload_errors.append((note.id, e))

            if pending_checkpoint >= self.checkpoint_every:
                self.store.save_notes(self.state.notes)
                pending_checkpoint = 0

            self._report_progress(index, total, label)

        if pending_checkpoint:
            self.store.save_notes(self.state.notes)

    async def _fetch_remote_note(self, remote_file: RemoteFile) -> Note:
        body = await self.gateway.get_file_content(remote_file.id)
        fallback_title = remote_file.name[:-3] if remote_file.name.endswith(".md") else remote_file.name
        fallback_id = remote_file.created_at_millis or now_millis()
        note = decode_note(body, fallback_title, fallback_id)
        note.remote_file_id = remote_file.id
        return note

    async def _download(self, folder_id: str, report: SyncReport) -> List[Note]:
        """
        Fetch and decode every file in the notes folder.

        Failed items are left out of the result. The result keeps listing order
        even when downloads overlap.
        """
        remote_files = await self.gateway.list_files(folder_id)
        total = len(remote_files)
        results: List[Optional[Note]] = [None] * total
        completed = 0
        semaphore = asyncio.Semaphore(self.max_concurrent_downloads)

        async def fetch(position: int, remote_file: RemoteFile) -> None:
            nonlocal completed
            async with semaphore:
                try:
                    results[position] = await self._fetch_remote_note(remote_file)
                    report.downloaded += 1
                except REMOTE_ERRORS as e:
                    logger.warning(f"Download of '{remote_file.name}' ({remote_file.id}) failed: {e}")
                    report.download_errors.append((remote_file.name or remote_file.id, e))
                completed += 1
                self._report_progress(completed, total, remote_file.name)

        if self.max_concurrent_downloads == 1:
            for position, remote_file in enumerate(remote_files):
                await fetch(position, remote_file)
        else:
            await asyncio.gather(*(fetch(i, f) for i, f in enumerate(remote_files)))

        return [note for note in results if note is not None]

    def _merge(self, remote_notes: List[Note], report: SyncReport) -> None:
        result = reconcile(self.state.notes, remote_notes)
        self.state.notes = result.merged
        self.store.save_notes(self.state.notes)
        report.merged_count = len(result.merged)
        if result.promoted_ids:
            logger.info(f"Kept local importance for notes {result.promoted_ids}")
        if self.on_notes_changed:
            self.on_notes_changed(self.state)

    async def push_notes(self, notes: List[Note]) -> SyncReport:
        """
        Write notes to remote storage without downloading anything.

        Notes with a remote handle get their file content replaced; the others
        get a new file and the returned handle.
        """
        if self._in_flight:
            logger.info("Push requested while a sync is running; ignoring")
            return SyncReport(status=SyncStatus.SKIPPED)

        self._in_flight = True
        report = SyncReport()
        start_time = time.time()
        try:
            await self._authenticate()
            self._set_phase(SyncPhase.UPLOADING)

            folder_id: Optional[str] = None
            if any(not n.remote_file_id for n in notes):
                folder_id = await self.gateway.get_or_create_folder(self.notes_folder_name)

            total = len(notes)
            for index, note in enumerate(notes, start=1):
                label = note.title or str(note.id)
                try:
                    await self._write_note(folder_id, note)
                    report.uploaded += 1
                except REMOTE_ERRORS as e:
                    logger.warning(f"Push of note {note.id} ('{label}') failed: {e}")
                    report.upload_errors.append((note.id, e))
                self._report_progress(index, total, label)

            if report.uploaded:
                self.store.save_notes(self.state.notes)
            logger.info(f"Pushed {report.uploaded} of {total} notes")
        except REMOTE_ERRORS as e:
            self._set_phase(SyncPhase.ERROR)
            report.status = SyncStatus.FAILED
            report.error = e
            logger.error(f"Push failed: {e}")
        finally:
            report.duration = time.time() - start_time
            self._set_phase(SyncPhase.IDLE)
            self._in_flight = False

        return report

#
# End of sync_engine.py
########################################################################################################################
