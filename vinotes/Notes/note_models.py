# note_models.py
# Description: Note and folder records plus the owned in-memory board state
#
# Imports
import time
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any
#
########################################################################################################################
#
# Classes and Functions:

def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Note:
    """
    A single note on the board.

    `remote_file_id` is the handle of the note's file in remote storage; a note
    without one has never been uploaded. `needs_push` marks a synced note edited
    locally since its file was last written.
    """
    id: int
    title: str = ""
    content: str = ""
    important: bool = False
    remote_file_id: Optional[str] = None
    folder_id: Optional[str] = None
    original_share_id: Optional[str] = None
    last_modified: Optional[str] = None
    needs_push: bool = False

    @property
    def is_local_only(self) -> bool:
        return not self.remote_file_id

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Note':
        """Build a note from a stored record, tolerating the older camelCase keys."""
        return cls(
            id=int(data['id']),
            title=data.get('title') or "",
            content=data.get('content') or "",
            important=bool(data.get('important', False)),
            remote_file_id=data.get('remote_file_id', data.get('driveFileId')),
            folder_id=data.get('folder_id', data.get('folderId')),
            original_share_id=data.get('original_share_id', data.get('originalShareId')),
            last_modified=data.get('last_modified', data.get('lastModified')),
            needs_push=bool(data.get('needs_push', False)),
        )


@dataclass
class Folder:
    """A board folder, optionally mirrored by a remote folder."""
    id: str
    name: str
    drive_folder_id: Optional[str] = None
    created_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Folder':
        return cls(
            id=str(data['id']),
            name=data.get('name') or "",
            drive_folder_id=data.get('drive_folder_id', data.get('driveFolderId')),
            created_at=data.get('created_at', data.get('createdAt')) or utc_now_iso(),
        )


@dataclass
class NoteBoardState:
    """The authoritative in-memory note and folder collections, in stored order."""
    notes: List[Note] = field(default_factory=list)
    folders: List[Folder] = field(default_factory=list)

    def find_note(self, note_id: int) -> Optional[Note]:
        for note in self.notes:
            if note.id == note_id:
                return note
        return None

    def find_note_by_share_id(self, share_id: str) -> Optional[Note]:
        for note in self.notes:
            if note.original_share_id == share_id:
                return note
        return None

    def replace_note(self, updated: Note) -> bool:
        """Swap in `updated` at the position of the note with the same id."""
        for i, note in enumerate(self.notes):
            if note.id == updated.id:
                self.notes[i] = updated
                return True
        return False

    def remove_note(self, note_id: int) -> Optional[Note]:
        note = self.find_note(note_id)
        if note is not None:
            self.notes = [n for n in self.notes if n.id != note_id]
        return note

    def find_folder(self, folder_id: str) -> Optional[Folder]:
        return next((f for f in self.folders if f.id == folder_id), None)

    def next_note_id(self) -> int:
        """
        A fresh id derived from the current time.

        Two saves within the same millisecond (or a clock that moved backwards)
        still get distinct, increasing ids.
        """
        candidate = now_millis()
        highest = max((n.id for n in self.notes), default=0)
        return candidate if candidate > highest else highest + 1


def sort_for_display(notes: List[Note]) -> List[Note]:
    """Important notes first, then newest (highest id) first."""
    return sorted(notes, key=lambda n: (not n.important, -n.id))

#
# End of note_models.py
########################################################################################################################
