"""Rolling 32-bit hash helpers for content fingerprints.

The fingerprint only guards against recording the same document state
twice; it is **not** used for security purposes.  It must stay stable
across processes, which rules out the built-in :func:`hash`.
"""

from __future__ import annotations

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def rolling_hash32(data: str) -> int:
    """Return the signed 32-bit ``h * 31 + c`` rolling hash of *data*.

    Characters are consumed as UTF-16 code units so that non-BMP text
    hashes the same way it would in a browser client.

    Examples
    --------
    >>> rolling_hash32("")
    0
    >>> rolling_hash32("a")
    97
    """
    h = 0
    encoded = data.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def to_base36(value: int) -> str:
    """Render *value* in base 36, with a leading ``-`` for negatives.

    >>> to_base36(35)
    'z'
    >>> to_base36(-36)
    '-10'
    """
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_DIGITS[rem])
    return sign + "".join(reversed(digits))


def fingerprint(serialized: str) -> str:
    """Return the base-36 rolling-hash fingerprint of a serialized snapshot."""
    return to_base36(rolling_hash32(serialized))
