import logging
import time
from typing import Any, Dict, Optional

from diskcache import Cache

from mear.utils.exceptions import DraftPersistenceError

logger = logging.getLogger(__name__)

KEY_PREFIX = "mear-form-draft:"


def mirror_key(draft_id: Optional[str] = None, hospital_no: Optional[str] = None) -> str:
    """Namespaced key: by draft id, else by hospital number, else a scratch slot."""
    if draft_id is not None:
        return f"{KEY_PREFIX}{draft_id}"
    if hospital_no:
        return f"{KEY_PREFIX}hn:{hospital_no}"
    return f"{KEY_PREFIX}unsaved"


class LocalDraftMirror:
    """
    On-disk mirror of in-progress drafts (diskcache).

    Written on every save so a backend outage never loses data; read only
    when the backend cannot serve a draft.  Entries look like
    ``{data, currentPhase, timestamp, draftId, hospitalNo}``.
    """

    def __init__(self, directory: str):
        self.directory = directory
        self._cache = Cache(directory)

    def write(
        self,
        data: Dict[str, Any],
        current_phase: str,
        draft_id: Optional[str] = None,
        hospital_no: Optional[str] = None,
        timestamp: Optional[float] = None,
    ) -> str:
        key = mirror_key(draft_id, hospital_no)
        entry = {
            "data": data,
            "currentPhase": current_phase,
            "timestamp": timestamp if timestamp is not None else time.time(),
            "draftId": draft_id,
            "hospitalNo": hospital_no,
        }
        try:
            self._cache.set(key, entry)
        except Exception as e:
            raise DraftPersistenceError(f"Could not write local draft mirror: {e}", key=key) from e
        logger.debug(f"Local draft mirror written: {key}")
        return key

    def read(self, draft_id: Optional[str] = None, hospital_no: Optional[str] = None) -> Optional[Dict[str, Any]]:
        key = mirror_key(draft_id, hospital_no)
        try:
            return self._cache.get(key)
        except Exception as e:
            raise DraftPersistenceError(f"Could not read local draft mirror: {e}", key=key) from e

    def find(self, draft_id: Optional[str] = None, hospital_no: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Entry for the draft id, else the newest entry for the hospital number."""
        if draft_id is not None:
            entry = self.read(draft_id=draft_id)
            if entry is not None:
                return entry
        if hospital_no:
            entry = self.read(hospital_no=hospital_no)
            if entry is not None:
                return entry
            return self.latest(hospital_no=hospital_no)
        return None

    def latest(self, hospital_no: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Most recently written entry (optionally for one hospital number)."""
        newest: Optional[Dict[str, Any]] = None
        try:
            for key in self._cache.iterkeys():
                if not isinstance(key, str) or not key.startswith(KEY_PREFIX):
                    continue
                entry = self._cache.get(key)
                if not entry:
                    continue
                if hospital_no and entry.get("hospitalNo") != hospital_no:
                    continue
                if newest is None or entry.get("timestamp", 0) > newest.get("timestamp", 0):
                    newest = entry
        except Exception as e:
            raise DraftPersistenceError(f"Could not scan local draft mirror: {e}", key=KEY_PREFIX) from e
        return newest

    def remove(self, draft_id: Optional[str] = None, hospital_no: Optional[str] = None) -> None:
        """Drop the entries for this draft id and / or hospital number."""
        keys = {mirror_key(draft_id=draft_id)} if draft_id is not None else set()
        if hospital_no:
            keys.add(mirror_key(hospital_no=hospital_no))
        if draft_id is None and not hospital_no:
            keys.add(mirror_key())
        try:
            for key in keys:
                self._cache.delete(key)
        except Exception as e:
            raise DraftPersistenceError(f"Could not clear local draft mirror: {e}", key=",".join(keys)) from e

    def drop_provisional(self, hospital_no: Optional[str] = None) -> None:
        """Drop the scratch entry and the hospital-number entry once a draft id exists."""
        keys = {mirror_key()}
        if hospital_no:
            keys.add(mirror_key(hospital_no=hospital_no))
        try:
            for key in keys:
                self._cache.delete(key)
        except Exception as e:
            raise DraftPersistenceError(f"Could not clear local draft mirror: {e}", key=",".join(keys)) from e
        logger.debug(f"Provisional draft mirror entries dropped: {sorted(keys)}")

    def close(self) -> None:
        self._cache.close()
