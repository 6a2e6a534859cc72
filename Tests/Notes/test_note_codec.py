"""
test_note_codec.py
Tests for the mapping between notes and remote markdown bodies
"""
import pytest

from vinotes.Notes.errors import DecodeError
from vinotes.Notes.note_codec import (
    decode_note, display_title, encode_note, extract_shared_content,
    file_name_for_note, file_properties_for_note, parse_metadata, split_body,
)
from vinotes.Notes.note_models import Note


class TestEncode:

    def test_layout(self):
        note = Note(id=42, title="Shopping list", content="milk\neggs", important=True)
        body = encode_note(note)

        assert body.startswith("SHOPPING LIST\n\nmilk\neggs\n\n---\n")
        meta = parse_metadata(body.split("\n---\n", 1)[1])
        assert meta == {
            "format": "vinotes/1",
            "id": "42",
            "important": "true",
            "title": "Shopping list",
        }

    def test_empty_title_is_displayed_as_untitled(self):
        assert display_title("") == "UNTITLED"
        assert encode_note(Note(id=1)).startswith("UNTITLED\n")

    def test_encode_is_deterministic(self):
        note = Note(id=7, title="a", content="b")
        assert encode_note(note) == encode_note(note)

    def test_file_name(self):
        assert file_name_for_note(Note(id=5, title="Hello, World!")) == "Hello__World__5.md"
        assert file_name_for_note(Note(id=6)) == "Untitled_6.md"

    def test_file_properties(self):
        assert file_properties_for_note(Note(id=9, important=False)) == {
            "vi_note_id": "9", "important": "false",
        }


class TestDecode:

    def test_round_trip(self):
        note = Note(id=1718000000000, title="Shopping list", content="milk\n\neggs\n", important=True)
        decoded = decode_note(encode_note(note), "fallback", 1)

        assert (decoded.id, decoded.title, decoded.content, decoded.important) == \
            (note.id, note.title, note.content, note.important)
        assert decoded.remote_file_id is None

    def test_round_trip_empty_title(self):
        decoded = decode_note(encode_note(Note(id=3, content="text")), "fallback", 1)
        assert decoded.title == ""
        assert decoded.content == "text"

    def test_without_metadata_uses_fallbacks(self):
        decoded = decode_note("My title\n\nsome text", "file_name", 99)

        assert decoded.title == "My title"
        assert decoded.content == "some text"
        assert decoded.id == 99
        assert decoded.important is False

    def test_blank_title_line_uses_fallback_title(self):
        decoded = decode_note("\n\ncontent\n\n---\nid: 7", "from_file_name", 1)

        assert decoded.title == "from_file_name"
        assert decoded.content == "content"
        assert decoded.id == 7

    @pytest.mark.parametrize("value", ["abc", "12abc", ""])
    def test_malformed_id_keeps_fallback(self, value):
        decoded = decode_note(f"T\n\nc\n\n---\nid: {value}", "t", 55)
        assert decoded.id == 55

    @pytest.mark.parametrize("value,expected", [
        ("true", True),
        ("yes true", True),
        ("false", False),
        ("TRUE", False),
        ("untrue", True),
        ("istrue", True),
        ("yes", False),
    ])
    def test_important_when_value_contains_true(self, value, expected):
        decoded = decode_note(f"T\n\nc\n\n---\nimportant: {value}", "t", 1)
        assert decoded.important is expected

    def test_only_first_delimiter_ends_content(self):
        note = Note(id=12, title="Cut", content="above\n---\nbelow")
        decoded = decode_note(encode_note(note), "t", 1)

        assert decoded.content == "above"
        assert decoded.id == 12
        assert decoded.title == "Cut"

    def test_title_line_of_dashes_is_not_a_delimiter(self):
        note = Note(id=4, title="---", content="body")
        decoded = decode_note(encode_note(note), "t", 1)

        assert decoded.title == "---"
        assert decoded.content == "body"

    def test_unknown_keys_are_ignored(self):
        decoded = decode_note("T\n\nc\n\n---\ncolor: red\nid: 8", "t", 1)
        assert decoded.id == 8

    def test_non_text_body_raises(self):
        with pytest.raises(DecodeError):
            decode_note(b"bytes", "t", 1)


class TestHelpers:

    def test_split_body_without_delimiter(self):
        assert split_body("just text") == ("just text", None)

    def test_parse_metadata_first_key_wins(self):
        assert parse_metadata("id: 1\nid: 2\n  Important : true  ") == {"id": "1", "important": "true"}

    def test_extract_shared_content(self):
        title, content = extract_shared_content("\n\nMy Note\n\nbody\n\n---\nid: 1")
        assert title == "My Note"
        assert content == "My Note\n\nbody"

    def test_extract_shared_content_default_title(self):
        assert extract_shared_content("") == ("Shared Note", "")
