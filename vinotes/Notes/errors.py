# errors.py
# Description: Exception types shared by the note board, the gateway and the sync engine
#
"""
Error taxonomy
--------------

- AuthError, NetworkError and DecodeError are remote-side failures. They are
  logged, counted and never fatal to data already saved locally.
- ValidationError rejects user input before anything is persisted.
- LocalStoreError is the only fatal class: once the store cannot be written the
  in-memory state and the disk disagree, so it always propagates.
"""

from typing import Optional


class NotesBoardError(Exception):
    """Base exception for note board operations."""
    pass


class AuthError(NotesBoardError):
    """No access token, an expired one, or the remote service rejected it."""
    pass


class NetworkError(NotesBoardError):
    """A remote request failed in transport or returned a non-auth error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(NotesBoardError):
    """A remote note body could not be read as text."""
    pass


class ValidationError(NotesBoardError):
    """User input was rejected before any persistence or remote call."""
    pass


class LocalStoreError(NotesBoardError):
    """The local note store could not be read or written."""
    pass

#
# End of errors.py
########################################################################################################################
