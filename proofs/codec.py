"""
Groth16 proof representation and the flat 256-byte codec.

Raw layout: eight consecutive 32-byte big-endian words
[A0, A1, B00, B01, B10, B11, C0, C1].
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Tuple, Union

from config.config import PROOF_SIZE, WORD_SIZE, FIELD_ELEMENT_BOUND
from errors.exceptions import ValidationError, ProofTooShortError, ProofOutOfBoundsError
from proofs.public_inputs import to_field_element

logger = logging.getLogger(__name__)

G1 = Tuple[int, int]
G2 = Tuple[Tuple[int, int], Tuple[int, int]]


@dataclass(frozen=True)
class Groth16Proof:
    """Structured proof: a (2), b (2x2), c (2)"""
    a: G1
    b: G2
    c: G1

    def words(self) -> Tuple[int, ...]:
        return (self.a[0], self.a[1],
                self.b[0][0], self.b[0][1], self.b[1][0], self.b[1][1],
                self.c[0], self.c[1])

    def to_calldata(self) -> dict:
        return {
            "a": [hex(v) for v in self.a],
            "b": [[hex(v) for v in row] for row in self.b],
            "c": [hex(v) for v in self.c],
        }


def read_word(data: bytes, offset: int) -> int:
    """Read one big-endian word at ``offset``"""
    end = offset + WORD_SIZE
    if offset < 0 or end > len(data):
        raise ProofOutOfBoundsError(offset, len(data))
    return int.from_bytes(data[offset:end], "big")


def decode_proof(data: bytes) -> Groth16Proof:
    if len(data) < PROOF_SIZE:
        raise ProofTooShortError(len(data), PROOF_SIZE)

    w = [read_word(data, i * WORD_SIZE) for i in range(PROOF_SIZE // WORD_SIZE)]
    if len(data) > PROOF_SIZE:
        logger.debug(f"Ignoring {len(data) - PROOF_SIZE} trailing proof bytes")

    return Groth16Proof(
        a=(w[0], w[1]),
        b=((w[2], w[3]), (w[4], w[5])),
        c=(w[6], w[7]),
    )


def encode_proof(proof: Groth16Proof) -> bytes:
    out = bytearray()
    for value in proof.words():
        if not 0 <= value < FIELD_ELEMENT_BOUND:
            raise ValidationError(f"Proof element out of range: {value}")
        out += value.to_bytes(WORD_SIZE, "big")
    return bytes(out)


def _parse_element(value: Union[int, str]) -> int:
    if isinstance(value, (bytes, bytearray)):
        raise ValidationError(f"Invalid proof element: {value!r}")
    return to_field_element(value)


def proof_from_calldata(calldata: Mapping[str, Any]) -> Groth16Proof:
    """
    Build a proof from snarkjs-style calldata:
    ``{"a": [x, y], "b": [[x0, x1], [y0, y1]], "c": [x, y]}``.
    Elements may be ints, decimal strings or 0x-prefixed hex strings.
    """
    try:
        a, b, c = calldata["a"], calldata["b"], calldata["c"]
        if len(a) != 2 or len(c) != 2 or len(b) != 2 or any(len(row) != 2 for row in b):
            raise ValidationError("Calldata must have a[2], b[2][2], c[2]")
        return Groth16Proof(
            a=(_parse_element(a[0]), _parse_element(a[1])),
            b=((_parse_element(b[0][0]), _parse_element(b[0][1])),
               (_parse_element(b[1][0]), _parse_element(b[1][1]))),
            c=(_parse_element(c[0]), _parse_element(c[1])),
        )
    except (KeyError, TypeError) as e:
        raise ValidationError(f"Malformed proof calldata: {e}")


def load_proof_file(path: Union[str, Path]) -> Tuple[Groth16Proof, list]:
    """
    Load a prover output file.

    JSON files carry ``{"proof": "<hex>", "publicInputs": [...]}`` where the
    proof may instead be a calldata object; any other file is read as raw
    proof bytes. Returns ``(proof, public_inputs)``.
    """
    path = Path(path)
    raw = path.read_bytes()
    if path.suffix != ".json":
        return decode_proof(raw), []

    try:
        doc = json.loads(raw.decode())
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError(f"Invalid proof file {path}: {e}")

    proof_field = doc.get("proof")
    if proof_field is None:
        raise ValidationError(f"Missing proof in {path}")
    if isinstance(proof_field, str):
        hex_str = proof_field[2:] if proof_field.startswith("0x") else proof_field
        try:
            proof = decode_proof(bytes.fromhex(hex_str))
        except ValueError as e:
            raise ValidationError(f"Proof in {path} is not valid hex: {e}")
    else:
        proof = proof_from_calldata(proof_field)

    public_inputs = [_parse_element(v) for v in doc.get("publicInputs", [])]
    return proof, public_inputs
