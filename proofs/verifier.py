"""
Proof verifier capability and the built-in backends
"""
import logging
from typing import Callable, Dict, List, Protocol, Sequence, Tuple, runtime_checkable

from proofs.codec import Groth16Proof

logger = logging.getLogger(__name__)


@runtime_checkable
class ProofVerifier(Protocol):
    """Read-only, deterministic check of a proof against ordered public inputs"""

    def verify(self, proof: Groth16Proof, public_inputs: Sequence[int]) -> bool:
        ...


def is_verifier(candidate) -> bool:
    return candidate is not None and callable(getattr(candidate, "verify", None))


def verifier_name(verifier) -> str:
    if verifier is None:
        return "none"
    return getattr(verifier, "name", None) or type(verifier).__name__


class AcceptAllVerifier:
    """Accepts every proof. Development and test backend."""
    name = "accept-all"

    def verify(self, proof: Groth16Proof, public_inputs: Sequence[int]) -> bool:
        return True


class RejectAllVerifier:
    name = "reject-all"

    def verify(self, proof: Groth16Proof, public_inputs: Sequence[int]) -> bool:
        return False


class RecordingVerifier:
    """Wraps a fixed answer and records every call it receives"""

    def __init__(self, result: bool = True, name: str = "recording"):
        self.result = result
        self.name = name
        self.calls: List[Tuple[Groth16Proof, List[int]]] = []

    def verify(self, proof: Groth16Proof, public_inputs: Sequence[int]) -> bool:
        self.calls.append((proof, list(public_inputs)))
        return self.result

    @property
    def call_count(self) -> int:
        return len(self.calls)


VERIFIER_BACKENDS: Dict[str, Callable[[], ProofVerifier]] = {
    AcceptAllVerifier.name: AcceptAllVerifier,
    RejectAllVerifier.name: RejectAllVerifier,
}


def create_verifier(backend: str) -> ProofVerifier:
    try:
        factory = VERIFIER_BACKENDS[backend]
    except KeyError:
        raise ValueError(f"Unknown verifier backend: {backend}")
    logger.info(f"Using verifier backend {backend}")
    return factory()
