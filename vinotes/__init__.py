"""
vinotes - a note board that keeps its notes locally and mirrors them to Google Drive.

Notes are stored on disk as JSON collections and, once the user connects a Drive
account, pushed to a dedicated Drive folder as one markdown file per note. A sync
cycle uploads local-only notes first, downloads every remote note file, and merges
both sides without dropping locally pinned notes.
"""

__version__ = "0.1.0"
