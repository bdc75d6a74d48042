"""
RocksDB-backed journal of the rollup event stream
"""

import json
import logging
from typing import Iterator, Optional

import rocksdict

from errors.exceptions import DatabaseError
from events.event_bus import Event, EventBus

logger = logging.getLogger(__name__)

EVENT_PREFIX = b"event:"


def event_key(sequence: int) -> bytes:
    return EVENT_PREFIX + f"{sequence:012d}".encode()


class EventJournal:
    """
    Persists every event it receives under ``event:{sequence}``. Events are
    stored as JSON so the journal can be replayed without this process.
    """

    def __init__(self, path: str):
        self.path = path
        try:
            self.db = rocksdict.Rdict(path)
            logger.info(f"Journal initialized at {path}")
        except Exception as e:
            logger.error(f"Failed to initialize RocksDB journal at {path}: {e}")
            raise DatabaseError(f"Cannot open journal at {path}: {e}")

    def attach(self, bus: EventBus) -> None:
        """Journal every event on ``bus``. A failed write faults the bus."""
        bus.subscribe(EventBus.WILDCARD, self.append, critical=True)

    def detach(self, bus: EventBus) -> None:
        bus.unsubscribe(EventBus.WILDCARD, self.append)

    def append(self, event: Event) -> None:
        key = event_key(event.sequence)
        try:
            self.db[key] = json.dumps(event.to_dict()).encode()
        except Exception as e:
            logger.error(f"Error journaling event #{event.sequence}: {e}")
            raise DatabaseError(f"Failed to journal event #{event.sequence}: {e}")

    def get(self, sequence: int) -> Optional[Event]:
        raw = self.db.get(event_key(sequence))
        if raw is None:
            return None
        return Event.from_dict(json.loads(raw.decode()))

    def events(self) -> Iterator[Event]:
        """Stored events in sequence order"""
        entries = sorted(
            (k, v) for k, v in self.db.items()
            if isinstance(k, bytes) and k.startswith(EVENT_PREFIX)
        )
        for _, raw in entries:
            yield Event.from_dict(json.loads(raw.decode()))

    def __len__(self) -> int:
        return sum(1 for _ in self.events())

    def close(self) -> None:
        if self.db is not None:
            self.db.close()
            logger.info("Journal closed")
            self.db = None
