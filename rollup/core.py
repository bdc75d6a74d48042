"""
Rollup Core - accepts proof-verified signature batches and advances the L2 state.

Every mutating operation runs under one lock and none may start while another
is still committing on the same thread (an event listener calling back in).
All checks run first and the ledgers are only touched in the final commit
step, so a rejected call leaves no observable trace:

    authorize -> non-empty -> equal lengths -> root shape -> decode -> verify -> commit -> emit
"""
import logging
import threading
from contextlib import contextmanager
from typing import List, Optional, Sequence, Union

from config.config import ZERO_ROOT, WORD_SIZE
from errors.exceptions import (
    ValidationError, EmptyBatchError, LengthMismatchError,
    InvalidProofError, InvalidVerifierReferenceError,
    ReentrantWriteError, EventStreamFaultError,
)
from events.event_bus import EventBus, EventTypes
from proofs.codec import Groth16Proof, decode_proof
from proofs.public_inputs import FieldLike, build_public_inputs, to_field_element
from proofs.verifier import ProofVerifier, is_verifier, verifier_name
from rollup.clock import MonotonicClock
from rollup.gate import SequencerGate
from rollup.ledgers import SubmissionLedger, BatchLedger, StateLedger
from rollup.records import Batch, SignatureSubmission, L2State

logger = logging.getLogger(__name__)

ProofInput = Union[Groth16Proof, bytes, bytearray]


def normalize_state_root(value: Union[bytes, str]) -> bytes:
    """Accept 32 raw bytes or a 64-digit hex string (optionally 0x-prefixed)"""
    if isinstance(value, str):
        text = value[2:] if value.lower().startswith("0x") else value
        try:
            value = bytes.fromhex(text)
        except ValueError:
            raise ValidationError(f"State root is not valid hex: {value!r}")
    if not isinstance(value, (bytes, bytearray)) or len(value) != WORD_SIZE:
        raise ValidationError(f"State root must be exactly {WORD_SIZE} bytes")
    return bytes(value)


class RollupCore:
    """
    Owns the submission, batch and state ledgers and exposes:
    - submit_batch_with_proof (sequencer only)
    - submit_signature (anyone)
    - update_verifier (sequencer only)
    - read-only queries
    """

    def __init__(self, sequencer: str, verifier: ProofVerifier,
                 clock=None, event_bus: Optional[EventBus] = None,
                 genesis_root: bytes = ZERO_ROOT):
        if not is_verifier(verifier):
            raise InvalidVerifierReferenceError()
        self.gate = SequencerGate(sequencer)
        self._verifier = verifier
        self.clock = clock or MonotonicClock()
        self.events = event_bus if event_bus is not None else EventBus()
        self.submissions = SubmissionLedger()
        self.batches = BatchLedger()
        self.state = StateLedger(normalize_state_root(genesis_root))
        self._lock = threading.RLock()
        self._writing = False
        logger.info(f"Rollup core initialized for sequencer {sequencer} with verifier {verifier_name(verifier)}")

    @property
    def sequencer(self) -> str:
        return self.gate.sequencer

    @property
    def verifier(self) -> ProofVerifier:
        return self._verifier

    @property
    def submission_count(self) -> int:
        return self.state.submission_count

    # ------------------------------------------------------------------ #
    # Mutating operations                                                 #
    # ------------------------------------------------------------------ #

    @contextmanager
    def _write(self, operation: str):
        # Reads may re-enter the lock from a listener; writes may not
        with self._lock:
            if self._writing:
                raise ReentrantWriteError(operation)
            if self.events.fault is not None:
                raise EventStreamFaultError(self.events.fault)
            self._writing = True
            try:
                yield
            finally:
                self._writing = False

    def submit_batch_with_proof(self, caller: str, new_state_root: Union[bytes, str],
                                message_hashes: Sequence[FieldLike],
                                public_keys_x: Sequence[FieldLike],
                                public_keys_y: Sequence[FieldLike],
                                proof: ProofInput) -> Batch:
        with self._write("submit_batch_with_proof"):
            self.gate.authorize(caller)

            n = len(message_hashes)
            if n == 0:
                raise EmptyBatchError()
            if len(public_keys_x) != n or len(public_keys_y) != n:
                raise LengthMismatchError(n, len(public_keys_x), len(public_keys_y))

            root = normalize_state_root(new_state_root)

            if isinstance(proof, (bytes, bytearray)):
                proof = decode_proof(bytes(proof))
            elif not isinstance(proof, Groth16Proof):
                raise ValidationError(f"Unsupported proof type: {type(proof).__name__}")

            public_inputs = build_public_inputs(message_hashes, public_keys_x, public_keys_y)
            # The verifier gets its own copy; the records come from ours
            self._verify(proof, list(public_inputs))

            return self._commit_batch(caller, root, public_inputs)

    def _verify(self, proof: Groth16Proof, public_inputs: List[int]) -> None:
        try:
            accepted = self._verifier.verify(proof, public_inputs)
        except Exception as e:
            logger.warning(f"Verifier {verifier_name(self._verifier)} raised: {e}")
            raise InvalidProofError(f"Verifier error: {e}") from e

        if accepted is not True:
            logger.warning(f"Proof rejected for batch of {len(public_inputs) // 3} signatures")
            raise InvalidProofError()

    def _commit_batch(self, proposer: str, root: bytes, public_inputs: List[int]) -> Batch:
        timestamp = self.clock.now()
        batch_id = self.state.batch_count
        first_id = self.state.submission_count
        previous_root = self.state.state_root

        submissions = [
            SignatureSubmission(
                id=first_id + i,
                message_hash=public_inputs[3 * i],
                public_key_x=public_inputs[3 * i + 1],
                public_key_y=public_inputs[3 * i + 2],
                submitter=proposer,
                timestamp=timestamp,
                included=True,
            )
            for i in range(len(public_inputs) // 3)
        ]
        batch = Batch(
            id=batch_id,
            state_root=root,
            num_signatures=len(submissions),
            timestamp=timestamp,
            proposer=proposer,
            verified=True,
            block_number=self.state.block_number + 1,
        )

        for submission in submissions:
            self.submissions.append(submission)
        self.batches.append(batch, [s.id for s in submissions])
        self.state.advance(root, len(submissions))

        logger.info(
            f"Accepted batch {batch_id} with {batch.num_signatures} signatures at L2 block {batch.block_number}",
            extra={"batch_id": batch_id, "block_number": batch.block_number, "caller": proposer}
        )

        self.events.emit(EventTypes.BATCH_ACCEPTED, {
            "batch_id": batch_id,
            "state_root": "0x" + root.hex(),
            "num_signatures": batch.num_signatures,
            "proposer": proposer,
            "timestamp": timestamp,
            "block_number": batch.block_number,
        }, source="rollup", timestamp=timestamp)
        for submission in submissions:
            self.events.emit(EventTypes.SUBMISSION_ACCEPTED, {
                "submission_id": submission.id,
                "batch_id": batch_id,
                "message_hash": hex(submission.message_hash),
                "public_key_x": hex(submission.public_key_x),
                "public_key_y": hex(submission.public_key_y),
            }, source="rollup", timestamp=timestamp)
        self.events.emit(EventTypes.STATE_ADVANCED, {
            "previous_state_root": "0x" + previous_root.hex(),
            "state_root": "0x" + root.hex(),
            "block_number": self.state.block_number,
            "batch_count": self.state.batch_count,
        }, source="rollup", timestamp=timestamp)

        return batch

    def submit_signature(self, caller: str, message_hash: FieldLike,
                         public_key_x: FieldLike, public_key_y: FieldLike) -> SignatureSubmission:
        """Register a standalone pending submission. Open to any caller."""
        values = (to_field_element(message_hash),
                  to_field_element(public_key_x),
                  to_field_element(public_key_y))

        with self._write("submit_signature"):
            timestamp = self.clock.now()
            submission = SignatureSubmission(
                id=self.state.submission_count,
                message_hash=values[0],
                public_key_x=values[1],
                public_key_y=values[2],
                submitter=caller,
                timestamp=timestamp,
                included=False,
            )
            self.submissions.append(submission)
            self.state.submission_count += 1

            logger.info(f"Registered submission {submission.id} from {caller}",
                        extra={"submission_id": submission.id, "caller": caller})
            self.events.emit(EventTypes.SUBMISSION_REGISTERED, {
                "submission_id": submission.id,
                "submitter": caller,
                "message_hash": hex(submission.message_hash),
                "public_key_x": hex(submission.public_key_x),
                "public_key_y": hex(submission.public_key_y),
                "timestamp": timestamp,
            }, source="rollup", timestamp=timestamp)
            return submission

    def update_verifier(self, caller: str, new_verifier: ProofVerifier) -> ProofVerifier:
        """Swap the verifier for future batches. Returns the previous one."""
        with self._write("update_verifier"):
            self.gate.authorize(caller)
            if not is_verifier(new_verifier):
                raise InvalidVerifierReferenceError()

            old_verifier = self._verifier
            self._verifier = new_verifier

            logger.info(f"Verifier updated from {verifier_name(old_verifier)} to {verifier_name(new_verifier)}",
                        extra={"caller": caller})
            self.events.emit(EventTypes.VERIFIER_UPDATED, {
                "old_verifier": verifier_name(old_verifier),
                "new_verifier": verifier_name(new_verifier),
                "caller": caller,
            }, source="rollup")
            return old_verifier

    # ------------------------------------------------------------------ #
    # Queries                                                             #
    # ------------------------------------------------------------------ #

    def get_batch(self, batch_id: int) -> Batch:
        return self.batches.get(batch_id)

    def get_batch_submissions(self, batch_id: int) -> List[int]:
        return self.batches.submissions_of(batch_id)

    def get_submission(self, submission_id: int) -> SignatureSubmission:
        return self.submissions.get(submission_id)

    def get_l2_state(self) -> L2State:
        with self._lock:
            return self.state.snapshot()

    def is_submission_included(self, submission_id: int) -> bool:
        return self.submissions.get(submission_id).included
