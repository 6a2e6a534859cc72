"""
Property-based tests for note decoding and reconciliation using hypothesis.
"""

import re

from hypothesis import HealthCheck, given, settings, strategies as st

from vinotes.Notes.note_codec import decode_note, encode_note
from vinotes.Notes.note_models import Note
from vinotes.Notes.reconciliation import reconcile

# The autouse config fixture is function scoped; none of these properties read config.
property_settings = settings(suppress_health_check=[HealthCheck.function_scoped_fixture])

DELIMITER_LINE = re.compile(r"^---[ \t]*$", re.MULTILINE)

line_text = st.characters(exclude_categories=("Cc", "Cs", "Zl", "Zp"))


def title_strategy():
    """Single-line titles without surrounding whitespace."""
    return st.text(alphabet=line_text, max_size=40).filter(lambda t: t == t.strip())


def content_strategy():
    """Content with no line that reads as the metadata delimiter."""
    return st.text(
        alphabet=st.one_of(line_text, st.sampled_from(["\n", "\t", "-", " "])),
        max_size=200,
    ).filter(lambda c: not DELIMITER_LINE.search(c))


def note_strategy(handle=st.none()):
    return st.builds(
        Note,
        id=st.integers(min_value=0, max_value=12),
        title=st.sampled_from(["", "a", "b"]),
        content=st.sampled_from(["", "x", "y"]),
        important=st.booleans(),
        remote_file_id=handle,
        folder_id=st.sampled_from([None, "fld_1"]),
        original_share_id=st.sampled_from([None, "s1"]),
    )


local_notes = st.lists(
    note_strategy(handle=st.one_of(st.none(), st.sampled_from(["h1", "h2", "h3", "h9"]))),
    max_size=8,
    unique_by=lambda n: n.id,
)

remote_notes = st.lists(
    note_strategy(),
    max_size=8,
    unique_by=lambda n: n.id,
).map(lambda notes: [Note(**{**n.to_dict(), "remote_file_id": f"h{n.id}"}) for n in notes])


class TestCodecProperties:

    @property_settings
    @given(
        note_id=st.integers(min_value=0, max_value=2**53),
        title=title_strategy(),
        content=content_strategy(),
        important=st.booleans(),
    )
    def test_decode_inverts_encode(self, note_id, title, content, important):
        note = Note(id=note_id, title=title, content=content, important=important)

        decoded = decode_note(encode_note(note), "fallback", -1)

        assert (decoded.id, decoded.title, decoded.content, decoded.important) == \
            (note_id, title, content, important)


class TestReconcileProperties:

    @property_settings
    @given(local=local_notes, remote=remote_notes)
    def test_merge_is_idempotent(self, local, remote):
        once = reconcile(local, remote).merged
        assert reconcile(once, remote).merged == once

    @property_settings
    @given(local=local_notes, remote=remote_notes)
    def test_importance_never_downgraded(self, local, remote):
        merged = {n.id: n for n in reconcile(local, remote).merged}
        local_by_id = {n.id: n for n in local}

        for r in remote:
            assert r.id in merged
            expected = r.important or (r.id in local_by_id and local_by_id[r.id].important)
            if expected:
                assert merged[r.id].important

    @property_settings
    @given(local=local_notes, remote=remote_notes)
    def test_at_most_one_note_per_handle_and_id(self, local, remote):
        merged = reconcile(local, remote).merged

        ids = [n.id for n in merged]
        assert len(ids) == len(set(ids))
        remote_handles = {r.remote_file_id for r in remote}
        handles = [n.remote_file_id for n in merged if n.remote_file_id in remote_handles]
        assert len(handles) == len(set(handles))

    @property_settings
    @given(local=local_notes, remote=remote_notes)
    def test_no_note_is_lost(self, local, remote):
        merged_ids = {n.id for n in reconcile(local, remote).merged}
        remote_handles = {r.remote_file_id for r in remote}

        for note in local:
            assert note.id in merged_ids or note.remote_file_id in remote_handles
