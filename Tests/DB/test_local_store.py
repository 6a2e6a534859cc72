"""
test_local_store.py
Tests for JSON persistence of notes and folders
"""
import json
from unittest.mock import patch

import pytest

from vinotes.DB.local_store import LocalStore
from vinotes.Notes.errors import LocalStoreError
from vinotes.Notes.note_models import Folder, Note


class TestLocalStore:

    def test_missing_files_load_empty(self, store):
        assert store.load() == ([], [])

    def test_save_and_load(self, store, data_dir):
        notes = [Note(id=2, title="b", remote_file_id="f2", folder_id="fld_1", needs_push=True),
                 Note(id=1, title="a", important=True)]
        folders = [Folder(id="fld_1", name="Work", drive_folder_id="d1")]

        store.save_notes(notes)
        store.save_folders(folders)

        assert LocalStore(data_dir).load() == (notes, folders)

    def test_order_is_preserved(self, store):
        notes = [Note(id=i) for i in (5, 1, 3)]
        store.save_notes(notes)
        assert [n.id for n in store.load()[0]] == [5, 1, 3]

    def test_load_state(self, store):
        store.save_notes([Note(id=1)])
        state = store.load_state()
        assert state.find_note(1) == Note(id=1)
        assert state.folders == []

    def test_legacy_camel_case_records(self, store):
        store.notes_path.write_text(json.dumps([
            {"id": 1, "title": "t", "content": "c", "important": True,
             "driveFileId": "f", "folderId": "fld_1", "originalShareId": "s", "lastModified": "x"}
        ]))
        store.folders_path.write_text(json.dumps([
            {"id": "fld_1", "name": "Work", "driveFolderId": "d", "createdAt": "2024-01-01T00:00:00+00:00"}
        ]))

        notes, folders = store.load()

        assert notes == [Note(id=1, title="t", content="c", important=True, remote_file_id="f",
                              folder_id="fld_1", original_share_id="s", last_modified="x")]
        assert folders == [Folder(id="fld_1", name="Work", drive_folder_id="d",
                                  created_at="2024-01-01T00:00:00+00:00")]

    @pytest.mark.parametrize("content", ["{not json", '{"id": 1}', '[{"title": "no id"}]'])
    def test_unreadable_notes_raise(self, store, content):
        store.notes_path.write_text(content)
        with pytest.raises(LocalStoreError):
            store.load()

    def test_write_failure_raises(self, store):
        with patch("vinotes.DB.local_store.atomic_write_json", side_effect=OSError("disk full")):
            with pytest.raises(LocalStoreError):
                store.save_notes([Note(id=1)])

    def test_failed_write_keeps_previous_version(self, store):
        store.save_notes([Note(id=1, title="kept")])
        with patch("vinotes.Utils.atomic_file_ops.os.replace", side_effect=OSError("no space")):
            with pytest.raises(LocalStoreError):
                store.save_notes([Note(id=2, title="lost")])

        assert store.load()[0] == [Note(id=1, title="kept")]
        assert sorted(p.name for p in store.data_dir.iterdir()) == ["notes.json"]

    def test_clear(self, store):
        store.save_notes([Note(id=1)])
        store.save_folders([Folder(id="f", name="n")])

        store.clear()
        store.clear()

        assert store.load() == ([], [])
