"""
Append-only ledgers owned by RollupCore.

Records are kept in lists indexed by their dense id; nothing is removed or
rewritten once appended.
"""
import logging
from typing import List, Sequence

from config.config import ZERO_ROOT
from rollup.records import Batch, SignatureSubmission, L2State

logger = logging.getLogger(__name__)


class SubmissionLedger:
    def __init__(self):
        self._submissions: List[SignatureSubmission] = []

    def __len__(self) -> int:
        return len(self._submissions)

    @property
    def next_id(self) -> int:
        return len(self._submissions)

    def append(self, submission: SignatureSubmission) -> None:
        if submission.id != len(self._submissions):
            raise ValueError(f"Submission id {submission.id} out of order, expected {len(self._submissions)}")
        self._submissions.append(submission)

    def get(self, submission_id: int) -> SignatureSubmission:
        if 0 <= submission_id < len(self._submissions):
            return self._submissions[submission_id]
        return SignatureSubmission.empty(submission_id)


class BatchLedger:
    def __init__(self):
        self._batches: List[Batch] = []
        self._submission_index: List[tuple] = []

    def __len__(self) -> int:
        return len(self._batches)

    def append(self, batch: Batch, submission_ids: Sequence[int]) -> None:
        if batch.id != len(self._batches):
            raise ValueError(f"Batch id {batch.id} out of order, expected {len(self._batches)}")
        self._batches.append(batch)
        self._submission_index.append(tuple(submission_ids))

    def get(self, batch_id: int) -> Batch:
        if 0 <= batch_id < len(self._batches):
            return self._batches[batch_id]
        return Batch.empty(batch_id)

    def submissions_of(self, batch_id: int) -> List[int]:
        if 0 <= batch_id < len(self._submission_index):
            return list(self._submission_index[batch_id])
        return []


class StateLedger:
    """Current L2 commitment. block_number and batch_count only advance together."""

    def __init__(self, state_root: bytes = ZERO_ROOT):
        self.state_root = state_root
        self.block_number = 0
        self.batch_count = 0
        self.submission_count = 0

    def advance(self, new_state_root: bytes, num_submissions: int) -> None:
        self.block_number += 1
        self.batch_count += 1
        self.submission_count += num_submissions
        self.state_root = new_state_root

    def snapshot(self) -> L2State:
        return L2State(self.state_root, self.block_number, self.batch_count)
