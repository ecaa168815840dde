"""
Event persistence for the analytics recorder.

The recorder only talks to the EventStore interface; the backends here
cover tests (in memory) and single-host use (a JSON file).
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence, Union

from .models import AnalyticsEvent
from ..errors import MediaSightError

logger = logging.getLogger(__name__)


class EventStoreError(MediaSightError):
    """Raised when a persisted event log cannot be read or written."""
    pass


class EventStore(ABC):
    """Persistence capability for an event log snapshot."""

    @abstractmethod
    def load(self) -> List[AnalyticsEvent]:
        """Return every persisted event in stored order."""
        pass

    @abstractmethod
    def save(self, events: Sequence[AnalyticsEvent]) -> None:
        """Replace the persisted log with `events`."""
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class InMemoryEventStore(EventStore):
    """Keeps the last saved snapshot in process memory."""

    def __init__(self):
        self._events: List[AnalyticsEvent] = []
        self._lock = threading.Lock()
        self.save_count = 0

    def load(self) -> List[AnalyticsEvent]:
        with self._lock:
            return list(self._events)

    def save(self, events: Sequence[AnalyticsEvent]) -> None:
        with self._lock:
            self._events = list(events)
            self.save_count += 1

    def clear(self) -> None:
        with self._lock:
            self._events = []


class JsonFileEventStore(EventStore):
    """
    Stores the log as a JSON document.

    Writes go to a temporary file in the same directory and are renamed
    into place, so readers never see a half-written log.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> List[AnalyticsEvent]:
        with self._lock:
            if not self.path.exists():
                return []
            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    payload = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise EventStoreError(f"Failed to read event log {self.path}: {e}") from e

        records = payload.get('events', []) if isinstance(payload, dict) else payload
        events = [AnalyticsEvent.from_dict(record) for record in records]
        logger.debug(f"Loaded {len(events)} events from {self.path}")
        return events

    def save(self, events: Sequence[AnalyticsEvent]) -> None:
        payload = {
            'version': 1,
            'events': [event.to_dict() for event in events],
        }
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix='.events-', suffix='.json', dir=str(self.path.parent))
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(payload, f, indent=2, default=str)
                os.replace(tmp_name, self.path)
            except OSError as e:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise EventStoreError(f"Failed to write event log {self.path}: {e}") from e
        logger.info(f"Saved {len(events)} events to {self.path}")

    def clear(self) -> None:
        with self._lock:
            if self.path.exists():
                self.path.unlink()
