"""
Base64 VLQ codec used by source map ``mappings`` strings.

Each value is split into 5-bit groups, least significant first. The sixth
bit of every base64 digit is the continuation flag, and the lowest bit of
the first group carries the sign.
"""

from typing import List, Tuple

BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_BASE64_VALUES = {char: index for index, char in enumerate(BASE64_ALPHABET)}

VLQ_BASE_SHIFT = 5
VLQ_BASE = 1 << VLQ_BASE_SHIFT
VLQ_BASE_MASK = VLQ_BASE - 1
VLQ_CONTINUATION_BIT = VLQ_BASE


class VLQDecodeError(ValueError):
    """Raised when a VLQ sequence is truncated or contains invalid characters."""
    pass


def encode_vlq(value: int) -> str:
    """
    Encode a signed integer as a base64 VLQ string.

    Args:
        value: Integer to encode

    Returns:
        Base64 VLQ digits
    """
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    digits = []
    while True:
        digit = vlq & VLQ_BASE_MASK
        vlq >>= VLQ_BASE_SHIFT
        if vlq:
            digit |= VLQ_CONTINUATION_BIT
        digits.append(BASE64_ALPHABET[digit])
        if not vlq:
            return "".join(digits)


def decode_vlq(text: str, pos: int = 0) -> Tuple[int, int]:
    """
    Decode one VLQ value starting at ``pos``.

    Args:
        text: String containing VLQ digits
        pos: Index of the first digit

    Returns:
        Tuple of (decoded value, index just past the value)

    Raises:
        VLQDecodeError: If the sequence is truncated or has a non-base64 character
    """
    result = 0
    shift = 0
    while True:
        if pos >= len(text):
            raise VLQDecodeError(f"Truncated VLQ value in {text!r}")
        char = text[pos]
        digit = _BASE64_VALUES.get(char)
        if digit is None:
            raise VLQDecodeError(f"Invalid base64 character {char!r} in {text!r}")
        pos += 1
        result += (digit & VLQ_BASE_MASK) << shift
        shift += VLQ_BASE_SHIFT
        if not digit & VLQ_CONTINUATION_BIT:
            break

    value = result >> 1
    return (-value if result & 1 else value), pos


def decode_vlq_fields(text: str) -> List[int]:
    """Decode every VLQ value in a single segment string."""
    values = []
    pos = 0
    while pos < len(text):
        value, pos = decode_vlq(text, pos)
        values.append(value)
    return values


def encode_vlq_fields(values: List[int]) -> str:
    """Encode a sequence of values as one segment string."""
    return "".join(encode_vlq(value) for value in values)
