"""
Collection notifications.

Every committed state transition that off-chain observers care about is
published as one of the records below. Records are appended to an EventSink
only after the operation that produced them commits; an aborted operation
publishes nothing.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionEvent:
    """Base class for all notifications."""

    name = "event"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["event"] = self.name
        return data


@dataclass(frozen=True)
class RevealOccurred(CollectionEvent):
    name = "reveal_occurred"


@dataclass(frozen=True)
class RevealTimestampChanged(CollectionEvent):
    old: int
    new: int
    name = "reveal_timestamp_changed"


@dataclass(frozen=True)
class PlaceholderUriChanged(CollectionEvent):
    old: str
    new: str
    name = "placeholder_uri_changed"


@dataclass(frozen=True)
class BaseUriChanged(CollectionEvent):
    old: str
    new: str
    name = "base_uri_changed"


@dataclass(frozen=True)
class MerkleRootChanged(CollectionEvent):
    old: Optional[str]
    new: str
    name = "merkle_root_changed"


@dataclass(frozen=True)
class PresaleClosed(CollectionEvent):
    name = "presale_closed"


@dataclass(frozen=True)
class PriceChanged(CollectionEvent):
    old: int
    new: int
    name = "price_changed"


@dataclass(frozen=True)
class MintLimitChanged(CollectionEvent):
    old: int
    new: int
    name = "mint_limit_changed"


@dataclass(frozen=True)
class TokensIssued(CollectionEvent):
    recipient: str
    start: int
    amount: int
    source: str
    name = "tokens_issued"


@dataclass(frozen=True)
class FundsCollected(CollectionEvent):
    recipient: str
    amount: int
    name = "funds_collected"


E = TypeVar("E", bound=CollectionEvent)


@dataclass
class RecordedEvent:
    seq: int
    timestamp: float
    event: CollectionEvent

    def to_dict(self) -> Dict[str, Any]:
        return {"seq": self.seq, "timestamp": self.timestamp, **self.event.to_dict()}


# ----------------------------------------------------------------------
# GENERIC EVENT SINK INTERFACE
# ----------------------------------------------------------------------
class EventSink:
    def record(self, event: CollectionEvent) -> None:
        raise NotImplementedError

    def get_events(self) -> List[RecordedEvent]:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


# ----------------------------------------------------------------------
# IN-MEMORY EVENT LOG
# ----------------------------------------------------------------------
class EventLog(EventSink):
    """
    In-memory, ordered event log with optional subscribers.

    Subscribers are called synchronously after the event is stored. Events
    are only recorded for operations that already committed, so a subscriber
    that raises is logged and skipped; it never reaches the caller of the
    committed operation and never stops later subscribers or events.
    """

    def __init__(self) -> None:
        self._events: List[RecordedEvent] = []
        self._subscribers: List[Callable[[CollectionEvent], None]] = []

    def subscribe(self, callback: Callable[[CollectionEvent], None]) -> None:
        self._subscribers.append(callback)

    def record(self, event: CollectionEvent) -> None:
        self._events.append(RecordedEvent(seq=len(self._events), timestamp=time.time(), event=event))
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Subscriber %r failed on %s", callback, event.name)

    def get_events(self) -> List[RecordedEvent]:
        return list(self._events)

    def of_type(self, event_type: Type[E]) -> List[E]:
        return [r.event for r in self._events if isinstance(r.event, event_type)]

    def __len__(self) -> int:
        return len(self._events)

    def clear(self) -> None:
        self._events.clear()
