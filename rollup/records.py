from dataclasses import dataclass, asdict
from typing import Any, Dict

from config.config import ZERO_ROOT


@dataclass(frozen=True)
class Batch:
    id: int
    state_root: bytes
    num_signatures: int
    timestamp: int
    proposer: str
    verified: bool
    block_number: int

    @classmethod
    def empty(cls, batch_id: int = 0) -> "Batch":
        return cls(id=batch_id, state_root=ZERO_ROOT, num_signatures=0, timestamp=0,
                   proposer="", verified=False, block_number=0)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["state_root"] = "0x" + self.state_root.hex()
        return data


@dataclass(frozen=True)
class SignatureSubmission:
    id: int
    message_hash: int
    public_key_x: int
    public_key_y: int
    submitter: str
    timestamp: int
    included: bool

    @classmethod
    def empty(cls, submission_id: int = 0) -> "SignatureSubmission":
        return cls(id=submission_id, message_hash=0, public_key_x=0, public_key_y=0,
                   submitter="", timestamp=0, included=False)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("message_hash", "public_key_x", "public_key_y"):
            data[key] = hex(data[key])
        return data


@dataclass(frozen=True)
class L2State:
    state_root: bytes
    block_number: int
    batch_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state_root": "0x" + self.state_root.hex(),
            "block_number": self.block_number,
            "batch_count": self.batch_count,
        }
