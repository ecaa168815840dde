"""
Interaction event recording.

EventRecorder owns the session's event log: a bounded list kept in
(timestamp, insertion) order. Appends are serialized with a lock; readers
get immutable snapshots.
"""

import bisect
import math
import secrets
import threading
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .models import AnalyticsEvent, EngagementWeights, EventType, as_utc, check_label, check_number
from .store import EventStore
from ..clock import Clock, SystemClock
from ..config import config_section
from ..errors import ValidationError
from ..utils.logging import StructuredLogger


class EngagementScorer:
    """
    Scores a single event 0-100 from its duration, viewport position,
    interaction type and device.
    """

    INTERACTION_WEIGHTS = {
        'download': 4,
        'zoom': 3,
        'share': 3,
        'click': 2,
        'hover': 1,
    }
    MAX_INTERACTION_WEIGHT = 4

    POSITION_FACTORS = {
        'above-fold': 1.0,
        'visible': 1.0,
        'below-fold': 0.5,
    }

    DEVICE_FACTORS = {
        'desktop': 1.0,
        'tablet': 0.9,
        'mobile': 0.8,
    }
    UNKNOWN_DEVICE_FACTOR = 0.8

    def __init__(self, weights: Optional[EngagementWeights] = None,
                 reference_duration_ms: float = 5000.0):
        self.weights = weights or EngagementWeights()
        check_number('reference_duration_ms', reference_duration_ms)
        if reference_duration_ms <= 0:
            raise ValidationError('reference_duration_ms', "must be positive")
        self.reference_duration_ms = reference_duration_ms

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'EngagementScorer':
        engagement = config.get('analytics', {}).get('engagement', {})
        return cls(
            weights=EngagementWeights(**config_section(config, 'analytics.engagement.weights', EngagementWeights)),
            reference_duration_ms=engagement.get('reference_duration_ms', 5000.0),
        )

    def duration_factor(self, duration_ms: float) -> float:
        """Log-scaled against the reference duration, saturating at 1."""
        check_number('duration_ms', duration_ms)
        return min(1.0, math.log1p(duration_ms) / math.log1p(self.reference_duration_ms))

    def position_factor(self, position: Optional[str]) -> float:
        return self.POSITION_FACTORS.get((position or 'below-fold').lower(), 0.5)

    def interaction_factor(self, interaction_type: Optional[str]) -> float:
        weight = self.INTERACTION_WEIGHTS.get((interaction_type or '').lower(), 1)
        return weight / self.MAX_INTERACTION_WEIGHT

    def device_factor(self, device_type: Optional[str]) -> float:
        return self.DEVICE_FACTORS.get((device_type or '').lower(), self.UNKNOWN_DEVICE_FACTOR)

    def score(self, duration_ms: float = 0.0, viewport_position: Optional[str] = None,
              interaction_type: Optional[str] = None, device_type: Optional[str] = None) -> float:
        w = self.weights
        blended = (w.duration * self.duration_factor(duration_ms) +
                   w.position * self.position_factor(viewport_position) +
                   w.interaction * self.interaction_factor(interaction_type) +
                   w.device * self.device_factor(device_type))
        score = 100.0 * blended / w.total
        return round(min(100.0, max(0.0, score)), 2)


def engagement_level(action_count: int) -> str:
    if action_count <= 0:
        return 'none'
    if action_count == 1:
        return 'low'
    if action_count <= 3:
        return 'medium'
    return 'high'


def download_speed_mbps(size_bytes: float, time_ms: float) -> float:
    if time_ms <= 0:
        return 0.0
    return round(size_bytes * 8 / time_ms / 1000, 3)


def new_session_id(now: datetime) -> str:
    return f"session_{int(now.timestamp() * 1000)}_{secrets.token_hex(5)[:9]}"


class EventRecorder:
    """
    Append-only, bounded event log for one session.

    Events are ordered by timestamp with ties kept in insertion order.
    Once the log is over `max_events` the oldest events are evicted, and
    with `max_age_seconds` set, events older than that are dropped on
    every append.
    """

    def __init__(self,
                 scorer: Optional[EngagementScorer] = None,
                 store: Optional[EventStore] = None,
                 clock: Optional[Clock] = None,
                 max_events: int = 1000,
                 max_age_seconds: Optional[float] = None,
                 session_id: Optional[str] = None):
        if max_events <= 0:
            raise ValidationError('max_events', "must be positive")
        if max_age_seconds is not None:
            check_number('max_age_seconds', max_age_seconds)

        self.scorer = scorer or EngagementScorer()
        self.store = store
        self.clock = clock or SystemClock()
        self.max_events = max_events
        self.max_age_seconds = max_age_seconds
        self.session_id = session_id or new_session_id(self.clock.now())
        self.log = StructuredLogger(__name__).bind(session_id=self.session_id)

        self._lock = threading.RLock()
        self._events: List[AnalyticsEvent] = []
        self._keys: List[Tuple[datetime, int]] = []
        self._sequence = 0
        self.evicted_count = 0

        if store is not None:
            for event in store.load():
                self._insert(event)
                self._sequence = max(self._sequence, event.sequence + 1)
            self._enforce_retention()
            self.log.debug("Restored event log", events=len(self._events))

    @classmethod
    def from_config(cls, config: Dict[str, Any], store: Optional[EventStore] = None,
                    clock: Optional[Clock] = None, session_id: Optional[str] = None) -> 'EventRecorder':
        recorder = config.get('analytics', {}).get('recorder', {})
        return cls(
            scorer=EngagementScorer.from_config(config),
            store=store,
            clock=clock,
            max_events=recorder.get('max_events', 1000),
            max_age_seconds=recorder.get('max_age_seconds'),
            session_id=session_id,
        )

    def record(self, event_type: Union[EventType, str], image_id: str,
               details: Optional[Mapping[str, Any]] = None,
               timestamp: Optional[datetime] = None) -> AnalyticsEvent:
        """
        Score and append one event.

        Args:
            event_type: 'view', 'download' or 'interaction'
            image_id: Image the event concerns
            details: Event details; recognized keys are duration_ms,
                viewport_position, interaction_type, device_type,
                load_time_ms, action_count, download_size and download_time_ms
            timestamp: Event time; defaults to the recorder's clock

        Returns:
            The recorded AnalyticsEvent

        Raises:
            ValidationError: If the type is unknown or a numeric detail is invalid
        """
        event_type = EventType.parse(event_type)
        if not image_id:
            raise ValidationError('image_id')
        details = dict(details or {})

        duration_ms = check_number('duration_ms', details.get('duration_ms', 0))
        load_time_ms = check_number('load_time_ms', details.get('load_time_ms', 0))
        device_type = (check_label('device_type', details.get('device_type')) or 'unknown').lower()
        viewport_position = check_label('viewport_position', details.get('viewport_position'))

        interaction_type = check_label('interaction_type', details.get('interaction_type'))
        if interaction_type is None and event_type is EventType.DOWNLOAD:
            interaction_type = 'download'

        if event_type is EventType.INTERACTION:
            action_count = int(check_number('action_count', details.get('action_count', 1)))
            details['engagement_level'] = engagement_level(action_count)
        elif event_type is EventType.DOWNLOAD and 'download_size' in details:
            size = check_number('download_size', details['download_size'])
            elapsed = check_number('download_time_ms', details.get('download_time_ms', 0))
            details['download_speed_mbps'] = download_speed_mbps(size, elapsed)

        score = self.scorer.score(
            duration_ms=duration_ms,
            viewport_position=viewport_position,
            interaction_type=interaction_type,
            device_type=device_type,
        )

        with self._lock:
            event = AnalyticsEvent(
                timestamp=as_utc(timestamp) if timestamp else self.clock.now(),
                event_type=event_type,
                image_id=str(image_id),
                device_type=device_type,
                duration_ms=duration_ms,
                engagement_score=score,
                load_time_ms=load_time_ms,
                details=details,
                session_id=self.session_id,
                sequence=self._sequence,
            )
            self._sequence += 1
            self._insert(event)
            self._enforce_retention()

        self.log.debug(f"Recorded {event_type.value} event", image_id=event.image_id,
                       engagement=score)
        return event

    def record_view(self, image_id: str, **details) -> AnalyticsEvent:
        return self.record(EventType.VIEW, image_id, details)

    def record_download(self, image_id: str, **details) -> AnalyticsEvent:
        return self.record(EventType.DOWNLOAD, image_id, details)

    def record_interaction(self, image_id: str, **details) -> AnalyticsEvent:
        return self.record(EventType.INTERACTION, image_id, details)

    def snapshot(self) -> Tuple[AnalyticsEvent, ...]:
        """Consistent copy of the log at call time."""
        with self._lock:
            return tuple(self._events)

    def events_for(self, image_id: str, start: Optional[datetime] = None,
                   end: Optional[datetime] = None) -> Tuple[AnalyticsEvent, ...]:
        """Events for one image, optionally limited to [start, end)."""
        start = as_utc(start) if start else None
        end = as_utc(end) if end else None
        return tuple(
            event for event in self.snapshot()
            if event.image_id == image_id
            and (start is None or event.timestamp >= start)
            and (end is None or event.timestamp < end)
        )

    def flush(self) -> int:
        """
        Persist a snapshot to the store.

        Returns:
            Number of events written
        """
        if self.store is None:
            raise ValidationError('store', "recorder has no event store to flush to")
        events = self.snapshot()
        self.store.save(events)
        self.log.info("Flushed event log", events=len(events))
        return len(events)

    def clear(self) -> None:
        """Empty the log and the store."""
        with self._lock:
            self._events.clear()
            self._keys.clear()
        if self.store is not None:
            self.store.clear()
        self.log.info("Cleared event log")

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def _insert(self, event: AnalyticsEvent) -> None:
        index = bisect.bisect_right(self._keys, event.sort_key)
        self._keys.insert(index, event.sort_key)
        self._events.insert(index, event)

    def _enforce_retention(self) -> None:
        if self.max_age_seconds is not None and self._events:
            cutoff = self.clock.now() - timedelta(seconds=self.max_age_seconds)
            expired = bisect.bisect_left(self._keys, (cutoff, -1))
            if expired:
                del self._events[:expired]
                del self._keys[:expired]
                self.evicted_count += expired

        overflow = len(self._events) - self.max_events
        if overflow > 0:
            del self._events[:overflow]
            del self._keys[:overflow]
            self.evicted_count += overflow
