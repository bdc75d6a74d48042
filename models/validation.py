"""
Pydantic models for input validation
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional, Union
import re

from errors.exceptions import ValidationError as RollupValidationError
from proofs.public_inputs import parse_field_string
from proofs.verifier import VERIFIER_BACKENDS

HEX_RE = re.compile(r'^(0x)?[0-9a-fA-F]*$')

FieldValue = Union[int, str]


def _check_field_value(v):
    if isinstance(v, bool):
        raise ValueError('Field elements must be integers, decimal strings or 0x-hex strings')
    if isinstance(v, int):
        if not 0 <= v < 2 ** 256:
            raise ValueError('Field element out of range')
        return v
    try:
        value = parse_field_string(v)
    except RollupValidationError:
        raise ValueError('Field elements must be decimal or 0x-prefixed hex')
    if not 0 <= value < 2 ** 256:
        raise ValueError('Field element out of range')
    return v


class BatchSubmissionRequest(BaseModel):
    new_state_root: str = Field(..., description="Hex encoded 32-byte state root")
    message_hashes: List[FieldValue] = Field(default_factory=list)
    public_keys_x: List[FieldValue] = Field(default_factory=list)
    public_keys_y: List[FieldValue] = Field(default_factory=list)
    proof_hex: Optional[str] = Field(None, description="Hex encoded 256-byte raw proof")
    proof: Optional[Dict[str, Any]] = Field(None, description="Calldata proof {a, b, c}")

    @field_validator('new_state_root')
    @classmethod
    def validate_state_root(cls, v):
        if not HEX_RE.match(v) or len(v.removeprefix('0x')) != 64:
            raise ValueError('State root must be 32 bytes of hex')
        return v

    @field_validator('message_hashes', 'public_keys_x', 'public_keys_y')
    @classmethod
    def validate_field_values(cls, v):
        return [_check_field_value(item) for item in v]

    @field_validator('proof_hex')
    @classmethod
    def validate_proof_hex(cls, v):
        if v is not None and (not HEX_RE.match(v) or len(v.removeprefix('0x')) % 2):
            raise ValueError('Proof must be valid hexadecimal')
        return v

    @model_validator(mode='after')
    def validate_single_proof(self):
        if (self.proof_hex is None) == (self.proof is None):
            raise ValueError('Exactly one of proof_hex or proof is required')
        return self


class SignatureSubmissionRequest(BaseModel):
    message_hash: FieldValue
    public_key_x: FieldValue
    public_key_y: FieldValue

    @field_validator('message_hash', 'public_key_x', 'public_key_y')
    @classmethod
    def validate_field_value(cls, v):
        return _check_field_value(v)


class VerifierUpdateRequest(BaseModel):
    backend: Optional[str] = Field(None, description="Name of a registered verifier backend")

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v):
        if v is not None and v not in VERIFIER_BACKENDS:
            raise ValueError(f'Backend must be one of: {", ".join(VERIFIER_BACKENDS)}')
        return v
