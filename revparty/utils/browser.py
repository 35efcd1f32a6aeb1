# revparty/utils/browser.py

"""
Capabilities normally taken from browser globals (local storage, location),
passed in explicitly so routing and caching logic runs without a DOM.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class MemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class LocationProvider(ABC):
    hostname: str = ""

    @abstractmethod
    def navigate(self, url: str) -> None:
        ...


class RecordingLocation(LocationProvider):
    """Keeps the navigation history instead of changing a real page."""

    def __init__(self, hostname: str = "localhost", path: str = "/"):
        self.hostname = hostname
        self.path = path
        self.history: List[str] = []

    def navigate(self, url: str) -> None:
        self.history.append(url)
        self.path = url
