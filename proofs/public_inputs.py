import re
from typing import List, Sequence, Union

from config.config import FIELD_ELEMENT_BOUND, WORD_SIZE
from errors.exceptions import ValidationError, LengthMismatchError

FieldLike = Union[int, bytes, str]

# Prover output writes field elements as decimal strings; 0x marks hex.
DECIMAL_RE = re.compile(r'[0-9]+')
HEX_RE = re.compile(r'0[xX][0-9a-fA-F]+')


def parse_field_string(text: str) -> int:
    try:
        if HEX_RE.fullmatch(text):
            return int(text[2:], 16)
        if DECIMAL_RE.fullmatch(text):
            return int(text, 10)
    except ValueError:
        # int() caps the digit count of decimal strings
        pass
    raise ValidationError(f"Not a decimal or 0x-hex field element: {text!r}")


def to_field_element(value: FieldLike) -> int:
    """
    Normalise a field element to an int.

    Accepts ints, big-endian bytes (<= 32), decimal strings and 0x-prefixed
    hex strings. An unprefixed string is always decimal.
    """
    if isinstance(value, bool):
        raise ValidationError(f"Not a field element: {value!r}")
    if isinstance(value, int):
        result = value
    elif isinstance(value, (bytes, bytearray)):
        if len(value) > WORD_SIZE:
            raise ValidationError(f"Field element longer than {WORD_SIZE} bytes")
        result = int.from_bytes(value, "big")
    elif isinstance(value, str):
        result = parse_field_string(value)
    else:
        raise ValidationError(f"Not a field element: {value!r}")

    if not 0 <= result < FIELD_ELEMENT_BOUND:
        raise ValidationError(f"Field element out of range: {value!r}")
    return result


def build_public_inputs(message_hashes: Sequence[FieldLike],
                        public_keys_x: Sequence[FieldLike],
                        public_keys_y: Sequence[FieldLike]) -> List[int]:
    """
    Interleave per-signature values as [hash_0, x_0, y_0, hash_1, x_1, y_1, ...].

    The proof circuit expects exactly this order.
    """
    if not len(message_hashes) == len(public_keys_x) == len(public_keys_y):
        raise LengthMismatchError(len(message_hashes), len(public_keys_x), len(public_keys_y))

    inputs: List[int] = []
    for msg_hash, key_x, key_y in zip(message_hashes, public_keys_x, public_keys_y):
        inputs.append(to_field_element(msg_hash))
        inputs.append(to_field_element(key_x))
        inputs.append(to_field_element(key_y))
    return inputs
