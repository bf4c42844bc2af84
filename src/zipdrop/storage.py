"""Small key-value stores for state that outlives a session.

Values are JSON-serializable Python objects. The JSON file store keeps every key
in one document, which matches the amount of state involved: a pattern list,
usage statistics, a short history and an anonymous client id.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from zipdrop.types import PathType

logger = logging.getLogger(__name__)

PATTERNS_KEY = "zipdrop:excludePatterns"


class KeyValueStore(ABC):
    """Abstract string-keyed store of JSON-serializable values."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``. Removing a missing key is not an error."""
        pass


class MemoryStore(KeyValueStore):
    """Store that lives only as long as the object.

    Values are round-tripped through JSON on write so the store behaves like the
    file-backed one, including rejecting values that cannot be serialized.

    Example:
        >>> store = MemoryStore({"a": [1, 2]})
        >>> store.get("a")
        [1, 2]
        >>> store.get("missing", "fallback")
        'fallback'
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return json.loads(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JSONFileStore(KeyValueStore):
    """Store persisted as a single JSON object in a file.

    The file is read on every access and rewritten atomically on every change. A
    missing file reads as empty. A file that does not hold a JSON object is logged
    and also read as empty; it is replaced on the next write.

    Attributes:
        path (Path): Location of the JSON document.
    """

    def __init__(self, path: PathType) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable state file %s: %s", self.path, e)
            return {}

        if not isinstance(data, dict):
            logger.warning("Ignoring state file %s: expected a JSON object", self.path)
            return {}
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(temp_name, self.path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class PatternStore:
    """Persisted exclusion pattern list.

    Example:
        >>> patterns = PatternStore(MemoryStore())
        >>> patterns.load()
        []
        >>> patterns.save(["node_modules", "*.log"])
        >>> patterns.load()
        ['node_modules', '*.log']
    """

    def __init__(self, store: KeyValueStore, key: str = PATTERNS_KEY) -> None:
        self.store = store
        self.key = key

    def load(self) -> List[str]:
        """Return the saved patterns, or an empty list if none are saved or they are malformed."""
        value = self.store.get(self.key)
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
            logger.warning("Ignoring malformed pattern list under %s", self.key)
            return []
        return list(value)

    def save(self, patterns: Sequence[str]) -> None:
        self.store.set(self.key, list(patterns))
