# auth.py
# Description: The "obtain token" operation the sync engine awaits
#
# Imports
from typing import Awaitable, Callable, Optional, Tuple
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from ..DB.session_store import SessionStore
from ..Notes.errors import AuthError, NotesBoardError
#
########################################################################################################################
#
# Classes:

# Runs the external consent flow and returns (access_token, expires_in_seconds)
Authorizer = Callable[[], Awaitable[Tuple[str, float]]]


class TokenProvider:
    """
    Hands out a Drive access token.

    A valid persisted session is reused until it expires. Otherwise the
    injected authorizer (the OAuth consent flow, which lives outside this
    package) is awaited and its token persisted for the next run.
    """

    def __init__(self, session_store: SessionStore, authorizer: Optional[Authorizer] = None):
        self.session_store = session_store
        self.authorizer = authorizer

    def current_token(self) -> Optional[str]:
        """The persisted token if it is still valid; never prompts."""
        session = self.session_store.load()
        return session.access_token if session else None

    async def obtain_token(self) -> str:
        token = self.current_token()
        if token:
            return token

        if self.authorizer is None:
            raise AuthError("Not connected to Google Drive; sign in first")

        try:
            access_token, expires_in = await self.authorizer()
        except NotesBoardError:
            raise
        except Exception as e:
            raise AuthError(f"Authorization failed: {e}") from e

        if not access_token:
            raise AuthError("Authorization returned no access token")

        self.session_store.save(access_token, expires_in)
        logger.info("Obtained a new Drive access token")
        return access_token

    def forget(self) -> None:
        self.session_store.clear()

#
# End of auth.py
########################################################################################################################
