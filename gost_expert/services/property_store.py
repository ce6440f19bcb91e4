"""
Persisted key-value property store.
Holds the Gemini API key, the usage log spreadsheet id and the long-term memory.
"""
import os
import json
import logging
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# Documented property keys
GEMINI_API_KEY = 'GEMINI_API_KEY'
LOG_SHEET_ID = 'LOG_SHEET_ID'
LONG_TERM_MEMORY = 'LONG_TERM_MEMORY'


class PropertyStore:
    """Interface for the deployment-wide property storage."""

    def get_property(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_property(self, key: str, value: str) -> None:
        raise NotImplementedError


class InMemoryPropertyStore(PropertyStore):
    """Dict-backed store, used in tests and local runs without persistence."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._storage = dict(initial or {})

    def get_property(self, key: str) -> Optional[str]:
        return self._storage.get(key)

    def set_property(self, key: str, value: str) -> None:
        self._storage[key] = value


class JsonFilePropertyStore(PropertyStore):
    """
    Properties persisted to a JSON file.

    Keys never written to the file are looked up in the environment, so the
    API key and sheet id can come from .env while the memory is edited at runtime.
    Concurrent writers are not coordinated: the last write wins.
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open('r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read property file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Property file {self.path} does not hold a JSON object, ignoring it")
            return {}
        return data

    def get_property(self, key: str) -> Optional[str]:
        data = self._load()
        if key in data:
            return data[key]
        return os.getenv(key)

    def set_property(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        with tmp_path.open('w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

        logger.info(f"Property '{key}' updated ({len(value)} chars)")
