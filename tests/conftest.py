# tests/conftest.py
"""
Shared fixtures for the test suite.

Key design points
─────────────────
1.  Make project-root importable so `from rollup.core import …` works no
    matter where pytest is launched.
2.  Every core gets a deterministic clock and a recording verifier so tests
    can assert exactly when (and whether) verification ran.
3.  Journals live under pytest's tmp_path and are closed after each test.
"""

from __future__ import annotations
import pathlib
import sys
import pytest

# ─────────────────────────────────────────────────────────────────────────────
#  Ensure the repo root is on sys.path
# ─────────────────────────────────────────────────────────────────────────────
ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

# Only now import modules that live in the repo
from proofs.codec import Groth16Proof, encode_proof
from proofs.verifier import RecordingVerifier
from rollup.clock import FixedClock
from rollup.core import RollupCore


SEQUENCER = "0xsequencer000000000000000000000000000000001"
OUTSIDER = "0xuser0000000000000000000000000000000000002"

SAMPLE_PROOF = Groth16Proof(a=(1, 2), b=((3, 4), (5, 6)), c=(7, 8))


def make_root(label: str) -> bytes:
    return label.encode().ljust(32, b"\x00")


def make_batch(size: int, offset: int = 0):
    """Return (hashes, xs, ys) for ``size`` signatures"""
    hashes = [0x1000 + offset + i for i in range(size)]
    xs = [0x2000 + offset + i for i in range(size)]
    ys = [0x3000 + offset + i for i in range(size)]
    return hashes, xs, ys


# ───────────────────────────── core fixtures ────────────────────────────────
@pytest.fixture
def verifier():
    return RecordingVerifier(result=True)


@pytest.fixture
def clock():
    return FixedClock(range(1_700_000_000, 1_700_001_000))


@pytest.fixture
def core(verifier, clock):
    return RollupCore(SEQUENCER, verifier, clock=clock)


@pytest.fixture
def raw_proof():
    return encode_proof(SAMPLE_PROOF)


# ───────────────────────────── journal fixture ──────────────────────────────
@pytest.fixture
def journal(tmp_path):
    from database.journal import EventJournal
    j = EventJournal(str(tmp_path / "journal.rocksdb"))
    yield j
    j.close()
