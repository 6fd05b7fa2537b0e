"""
Save-game persistence. A save is one JSON document:
``{"version": ..., "timestamp": <ms>, "state": {...}}``.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)


class JsonFileStorage:
    """Stores the save document in a single JSON file.

    save() raises OSError, load() raises OSError or ValueError on a corrupt
    file; callers decide how to report that.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def save(self, payload: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self.path)
        logger.debug(f"Saved game to {self.path}")

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        return json.loads(self.path.read_text(encoding="utf-8"))

    def exists(self) -> bool:
        return self.path.exists()

    def delete(self) -> None:
        if self.path.exists():
            self.path.unlink()


class MemoryStorage:
    """In-process storage (tests, Streamlit sessions without disk)"""

    def __init__(self):
        self._payload: Optional[str] = None

    def save(self, payload: Dict[str, Any]) -> None:
        self._payload = json.dumps(payload, ensure_ascii=False)

    def load(self) -> Optional[Dict[str, Any]]:
        if self._payload is None:
            return None
        return json.loads(self._payload)

    def exists(self) -> bool:
        return self._payload is not None

    def delete(self) -> None:
        self._payload = None
