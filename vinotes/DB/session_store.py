# session_store.py
# Description: Persistence of the Drive access token between runs
#
# Imports
import json
import time
from pathlib import Path
from typing import Optional, Union
#
# Third-Party Imports
from loguru import logger
from pydantic import BaseModel, ValidationError as PydanticValidationError
#
# Local Imports
from ..Utils.atomic_file_ops import atomic_write_json
#
########################################################################################################################
#
# Classes:

class Session(BaseModel):
    """An access token and the instant (epoch millis) it stops being valid."""
    access_token: str
    expires_at: int

    def is_valid(self, now_ms: Optional[int] = None) -> bool:
        now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
        return bool(self.access_token) and now_ms < self.expires_at


class SessionStore:
    """Keeps at most one session in `session.json`; expired sessions are discarded, never refreshed."""

    FILENAME = "session.json"

    def __init__(self, data_dir: Union[str, Path]):
        self.path = Path(data_dir).expanduser() / self.FILENAME

    def load(self) -> Optional[Session]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                session = Session.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            logger.warning(f"Discarding unreadable session file {self.path}: {e}")
            self.clear()
            return None

        if not session.is_valid():
            logger.info("Stored Drive session has expired; discarding it")
            self.clear()
            return None
        return session

    def save(self, access_token: str, expires_in_seconds: float) -> Session:
        session = Session(
            access_token=access_token,
            expires_at=int(time.time() * 1000 + expires_in_seconds * 1000),
        )
        atomic_write_json(self.path, session.model_dump())
        logger.info("Saved Drive session")
        return session

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Could not remove session file {self.path}: {e}")

#
# End of session_store.py
########################################################################################################################
