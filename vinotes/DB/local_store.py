# local_store.py
# Description: JSON persistence of the note and folder collections
#
# Imports
import json
from pathlib import Path
from typing import List, Tuple, Union
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from ..Notes.errors import LocalStoreError
from ..Notes.note_models import Note, Folder, NoteBoardState
from ..Utils.atomic_file_ops import atomic_write_json
#
########################################################################################################################
#
# Classes:

class LocalStore:
    """
    Stores notes and folders as two JSON arrays in the data directory.

    Each collection is written atomically as a whole, so a crash leaves either
    the previous or the new version on disk. Any read or write failure raises
    LocalStoreError.
    """

    NOTES_FILENAME = "notes.json"
    FOLDERS_FILENAME = "folders.json"

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir).expanduser()
        self.notes_path = self.data_dir / self.NOTES_FILENAME
        self.folders_path = self.data_dir / self.FOLDERS_FILENAME

    def _read_records(self, path: Path) -> List[dict]:
        if not path.exists():
            return []
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise LocalStoreError(f"Could not read {path}: {e}") from e
        if not isinstance(data, list):
            raise LocalStoreError(f"Expected a JSON array in {path}, found {type(data).__name__}")
        return data

    def _write_records(self, path: Path, records: List[dict]) -> None:
        try:
            atomic_write_json(path, records)
        except (OSError, TypeError, ValueError) as e:
            raise LocalStoreError(f"Could not write {path}: {e}") from e

    def load(self) -> Tuple[List[Note], List[Folder]]:
        """Load both collections; missing files are empty collections."""
        try:
            notes = [Note.from_dict(r) for r in self._read_records(self.notes_path)]
            folders = [Folder.from_dict(r) for r in self._read_records(self.folders_path)]
        except (KeyError, TypeError, ValueError) as e:
            raise LocalStoreError(f"Malformed record in {self.data_dir}: {e}") from e
        logger.debug(f"Loaded {len(notes)} notes and {len(folders)} folders from {self.data_dir}")
        return notes, folders

    def load_state(self) -> NoteBoardState:
        notes, folders = self.load()
        return NoteBoardState(notes=notes, folders=folders)

    def save_notes(self, notes: List[Note]) -> None:
        self._write_records(self.notes_path, [n.to_dict() for n in notes])

    def save_folders(self, folders: List[Folder]) -> None:
        self._write_records(self.folders_path, [f.to_dict() for f in folders])

    def clear(self) -> None:
        """Remove both collections from disk."""
        for path in (self.notes_path, self.folders_path):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                raise LocalStoreError(f"Could not remove {path}: {e}") from e
        logger.info(f"Cleared local store at {self.data_dir}")

#
# End of local_store.py
########################################################################################################################
