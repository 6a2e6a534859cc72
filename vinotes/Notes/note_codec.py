# note_codec.py
# Description: Mapping between note records and the markdown bodies stored remotely
#
"""
Note file format
----------------

Each note is stored remotely as one markdown file::

    SHOPPING LIST

    milk, eggs

    ---
    format: vinotes/1
    id: 1718000000000
    important: true
    title: Shopping list

Line 1 is the title in display (upper) case. Everything between line 1 and the
first `---` line is the content. The block after the delimiter holds one
`key: value` per line; `title` keeps the original casing so decoding restores
the exact title.

Limitation: content containing a line that is exactly `---` is cut at that
line when decoded. Only the first delimiter line ends the content; anything
after it is parsed as metadata.
"""
#
# Imports
import re
from typing import Dict, Optional, Tuple
#
# Local Imports
from .errors import DecodeError
from .note_models import Note
#
########################################################################################################################
#
# Constants:

DELIMITER = "---"
FORMAT_VERSION = "vinotes/1"
UNTITLED = "Untitled"

_DELIMITER_LINE = re.compile(r"^---[ \t]*$", re.MULTILINE)
_META_LINE = re.compile(r"^\s*([A-Za-z_]+)\s*:\s?(.*?)\s*$")
_ID_VALUE = re.compile(r"^\s*(-?\d+)\b")
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)

#
########################################################################################################################
#
# Functions:

def _single_line(text: str) -> str:
    return " ".join(text.splitlines()).strip() if text else ""


def display_title(title: str) -> str:
    """The title as shown on line 1 of the file."""
    return (_single_line(title) or UNTITLED).upper()


def file_name_for_note(note: Note) -> str:
    """Remote file name, e.g. `Shopping_list_1718000000000.md`."""
    safe_title = _UNSAFE_FILENAME_CHARS.sub("_", note.title or UNTITLED)
    return f"{safe_title}_{note.id}.md"


def file_properties_for_note(note: Note) -> Dict[str, str]:
    """File-level properties attached to the remote file when it is created."""
    return {
        'vi_note_id': str(note.id),
        'important': 'true' if note.important else 'false',
    }


def encode_note(note: Note) -> str:
    """Render a note as its remote file body."""
    meta_lines = [
        f"format: {FORMAT_VERSION}",
        f"id: {note.id}",
        f"important: {'true' if note.important else 'false'}",
        f"title: {_single_line(note.title)}",
    ]
    return f"{display_title(note.title)}\n\n{note.content}\n\n{DELIMITER}\n" + "\n".join(meta_lines)


def split_body(body: str) -> Tuple[str, Optional[str]]:
    """
    Split a body at the first delimiter line.

    Returns:
        (main part, metadata part); the metadata part is None when the body has
        no delimiter line.
    """
    # line 1 is always the title, even when it reads "---"
    first_newline = body.find("\n")
    if first_newline == -1:
        return body, None
    match = _DELIMITER_LINE.search(body, first_newline)
    if not match:
        return body, None
    return body[:match.start()], body[match.end():]


def parse_metadata(block: Optional[str]) -> Dict[str, str]:
    """Collect `key: value` lines; the first occurrence of a key wins."""
    meta: Dict[str, str] = {}
    if not block:
        return meta
    for line in block.splitlines():
        match = _META_LINE.match(line)
        if match:
            meta.setdefault(match.group(1).lower(), match.group(2))
    return meta


def _strip_framing(text: str) -> str:
    # encode_note puts one blank line before the content and one after it
    if text.startswith("\n"):
        text = text[1:]
    for _ in range(2):
        if text.endswith("\n"):
            text = text[:-1]
    return text


def decode_note(body: str, fallback_title: str, fallback_id: int) -> Note:
    """
    Parse a remote file body into a note.

    Decoding is lenient: a missing or malformed `id` keeps `fallback_id`, a
    blank title line uses `fallback_title`, and `important` is true whenever
    its value contains `true` anywhere (case-sensitive).

    Raises:
        DecodeError: If body is not text at all.
    """
    if not isinstance(body, str):
        raise DecodeError(f"Expected a text body, got {type(body).__name__}")

    main, meta_block = split_body(body)
    meta = parse_metadata(meta_block)

    first_line, _, rest = main.partition("\n")
    content = _strip_framing(rest)

    if 'title' in meta:
        title = meta['title']
    else:
        title = first_line.strip() or fallback_title

    note_id = fallback_id
    if 'id' in meta:
        id_match = _ID_VALUE.match(meta['id'])
        if id_match:
            note_id = int(id_match.group(1))

    important = 'true' in meta.get('important', "")

    return Note(id=note_id, title=title, content=content, important=important)


def extract_shared_content(body: str, default_title: str = "Shared Note") -> Tuple[str, str]:
    """
    Title and content of a note imported through a share reference.

    The content is everything before the first delimiter line; the title is the
    first non-blank line of it.
    """
    main, _ = split_body(body)
    main = main.strip()
    title = next((line.strip() for line in main.splitlines() if line.strip()), default_title)
    return title, main

#
# End of note_codec.py
########################################################################################################################
