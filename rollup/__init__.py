from rollup.core import RollupCore, normalize_state_root
from rollup.records import Batch, SignatureSubmission, L2State
from rollup.clock import MonotonicClock, FixedClock
from rollup.gate import SequencerGate
