"""
Rebuild ledger history from the event stream alone.

Observers that only see the events (live or from the journal) use this to
recover which signatures went into which batch and the resulting L2 state.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from config.config import ZERO_ROOT
from errors.exceptions import ReplayError
from events.event_bus import Event, EventTypes
from log_utils import get_logger, log_performance
from rollup.records import Batch, SignatureSubmission, L2State

logger = logging.getLogger(__name__)
perf_logger = get_logger(__name__)


def _root(value: str) -> bytes:
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


@dataclass
class ReplayedLedger:
    state_root: bytes = ZERO_ROOT
    block_number: int = 0
    batch_count: int = 0
    batches: List[Batch] = field(default_factory=list)
    batch_submissions: Dict[int, List[int]] = field(default_factory=dict)
    submissions: List[SignatureSubmission] = field(default_factory=list)
    verifier_history: List[str] = field(default_factory=list)

    @property
    def submission_count(self) -> int:
        return len(self.submissions)

    def l2_state(self) -> L2State:
        return L2State(self.state_root, self.block_number, self.batch_count)


class _Replayer:
    def __init__(self, genesis_root: bytes):
        self.ledger = ReplayedLedger(state_root=genesis_root)
        self.expected_sequence: Optional[int] = None
        # Batch whose submission/state records are still expected
        self.open_batch: Optional[Batch] = None

    def apply(self, event: Event) -> None:
        if self.expected_sequence is not None and event.sequence != self.expected_sequence:
            raise ReplayError(f"Gap in event stream: expected #{self.expected_sequence}, got #{event.sequence}")
        self.expected_sequence = event.sequence + 1

        handler = getattr(self, f"_on_{event.type}", None)
        if handler is None:
            logger.debug(f"Skipping unknown event type {event.type}")
            return
        if self.open_batch is not None and event.type not in (EventTypes.SUBMISSION_ACCEPTED,
                                                              EventTypes.STATE_ADVANCED):
            raise ReplayError(f"Batch {self.open_batch.id} interrupted by {event.type} #{event.sequence}")
        handler(event.data)

    def _check_submission_id(self, submission_id: int) -> None:
        if submission_id != self.ledger.submission_count:
            raise ReplayError(f"Submission id {submission_id} out of order, expected {self.ledger.submission_count}")

    def _on_batch_accepted(self, data: dict) -> None:
        if data["batch_id"] != self.ledger.batch_count:
            raise ReplayError(f"Batch id {data['batch_id']} out of order, expected {self.ledger.batch_count}")
        self.open_batch = Batch(
            id=data["batch_id"],
            state_root=_root(data["state_root"]),
            num_signatures=data["num_signatures"],
            timestamp=data["timestamp"],
            proposer=data["proposer"],
            verified=True,
            block_number=data["block_number"],
        )
        self.ledger.batch_submissions[self.open_batch.id] = []

    def _on_submission_accepted(self, data: dict) -> None:
        batch = self.open_batch
        if batch is None or data["batch_id"] != batch.id:
            raise ReplayError(f"Submission {data['submission_id']} outside of its batch")
        self._check_submission_id(data["submission_id"])
        self.ledger.submissions.append(SignatureSubmission(
            id=data["submission_id"],
            message_hash=int(data["message_hash"], 16),
            public_key_x=int(data["public_key_x"], 16),
            public_key_y=int(data["public_key_y"], 16),
            submitter=batch.proposer,
            timestamp=batch.timestamp,
            included=True,
        ))
        self.ledger.batch_submissions[batch.id].append(data["submission_id"])

    def _on_state_advanced(self, data: dict) -> None:
        batch = self.open_batch
        if batch is None:
            raise ReplayError("State advanced without an accepted batch")
        if len(self.ledger.batch_submissions[batch.id]) != batch.num_signatures:
            raise ReplayError(f"Batch {batch.id} announced {batch.num_signatures} signatures, "
                              f"saw {len(self.ledger.batch_submissions[batch.id])}")
        self.ledger.batches.append(batch)
        self.ledger.state_root = _root(data["state_root"])
        self.ledger.block_number = data["block_number"]
        self.ledger.batch_count = data["batch_count"]
        self.open_batch = None

    def _on_submission_registered(self, data: dict) -> None:
        self._check_submission_id(data["submission_id"])
        self.ledger.submissions.append(SignatureSubmission(
            id=data["submission_id"],
            message_hash=int(data["message_hash"], 16),
            public_key_x=int(data["public_key_x"], 16),
            public_key_y=int(data["public_key_y"], 16),
            submitter=data["submitter"],
            timestamp=data["timestamp"],
            included=False,
        ))

    def _on_verifier_updated(self, data: dict) -> None:
        self.ledger.verifier_history.append(data["new_verifier"])


@log_performance(perf_logger, "replay_events")
def replay_events(events: Iterable[Event], genesis_root: bytes = ZERO_ROOT) -> ReplayedLedger:
    replayer = _Replayer(genesis_root)
    for event in events:
        replayer.apply(event)
    if replayer.open_batch is not None:
        raise ReplayError(f"Event stream ends inside batch {replayer.open_batch.id}")
    return replayer.ledger
