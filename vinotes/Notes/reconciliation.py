# reconciliation.py
# Description: Merge of a freshly downloaded remote note set with the local note set
#
"""
Reconciliation rules
--------------------

Once a note exists remotely its remote copy is authoritative for the fields the
remote file carries (title, content, important, handle). The important flag is
the exception: it is OR-merged, so a note pinned locally stays pinned even when
the remote copy says otherwise. Fields the remote file does not carry (folder,
share reference, modification stamp) are kept from the local record.

A note with a local edit not yet written back (`needs_push`) keeps its local
fields instead; only the remote handle is taken. Its edit is the user's latest
intent and is pushed on the next cycle.

Notes the remote set does not know about are kept unchanged. That covers notes
never uploaded and notes whose remote file failed to download this time.

Both inputs are left untouched; the merged list is made of copies.
"""
#
# Imports
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from .note_models import Note
#
########################################################################################################################
#
# Classes and Functions:

@dataclass
class ReconcileResult:
    """Outcome of one merge."""
    merged: List[Note] = field(default_factory=list)
    promoted_ids: List[int] = field(default_factory=list)
    local_only_ids: List[int] = field(default_factory=list)


def _merge_pair(local: Note, remote: Note) -> Note:
    if local.needs_push:
        return replace(local, remote_file_id=remote.remote_file_id)
    return replace(
        remote,
        important=remote.important or local.important,
        folder_id=local.folder_id,
        original_share_id=remote.original_share_id or local.original_share_id,
        last_modified=remote.last_modified or local.last_modified,
    )


def reconcile(local_notes: Iterable[Note], remote_notes: Iterable[Note]) -> ReconcileResult:
    """
    Merge remote notes into the local set.

    Every remote note is expected to carry its remote_file_id. A local note
    matches a remote one by id; failing that, by remote handle, which keeps at
    most one note per remote file even when a remote file lost its id metadata.

    Returns:
        ReconcileResult whose `merged` list holds the remote notes in download
        order followed by the local-only notes in local order. Callers sort for
        display.
    """
    remote_by_id: Dict[int, Note] = {}
    remote_order: List[int] = []
    for remote in remote_notes:
        if remote.id in remote_by_id:
            logger.warning(f"Remote set holds note id {remote.id} twice; keeping the first file")
            continue
        remote_by_id[remote.id] = replace(remote)
        remote_order.append(remote.id)

    remote_id_by_handle: Dict[str, int] = {
        note.remote_file_id: note_id
        for note_id, note in remote_by_id.items()
        if note.remote_file_id
    }

    result = ReconcileResult()
    local_only: List[Note] = []

    for local in local_notes:
        match_id: Optional[int] = local.id if local.id in remote_by_id else None
        if match_id is None and local.remote_file_id:
            match_id = remote_id_by_handle.get(local.remote_file_id)

        if match_id is None:
            local_only.append(replace(local))
            result.local_only_ids.append(local.id)
            continue

        remote = remote_by_id[match_id]
        if local.important and not remote.important and not local.needs_push:
            result.promoted_ids.append(match_id)
        remote_by_id[match_id] = _merge_pair(local, remote)

    result.merged = [remote_by_id[note_id] for note_id in remote_order] + local_only

    logger.debug(
        f"Reconciled {len(remote_order)} remote and {len(local_only)} local-only notes "
        f"({len(result.promoted_ids)} importance promotions)"
    )
    return result


def notes_needing_upload(notes: Iterable[Note]) -> List[Note]:
    """Notes without a remote handle, in collection order."""
    return [note for note in notes if note.is_local_only]


def notes_needing_update(notes: Iterable[Note]) -> List[Note]:
    """Synced notes with local edits their remote file does not have yet."""
    return [note for note in notes if note.remote_file_id and note.needs_push]

#
# End of reconciliation.py
########################################################################################################################
