"""Length of UTF-8 text once coded in GSM 7-bit or UCS-2."""

from __future__ import annotations


def _as_bytes(text: str | bytes) -> bytes:
    data = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    # The modem side works on NUL-terminated strings.
    return data.split(b"\x00", 1)[0]


def gsm7_equivalent_length(c1: int, c2: int, c3: int) -> int:
    """Return the GSM-7 length of the UTF-8 sequence starting with ``c1, c2, c3``.

    ``c2`` and ``c3`` are zero past the end of the message. The result is 1 or
    2, or 0 when the character has no GSM-7 equivalent.
    """
    if (
        c1 in (0x0A, 0x0D, 0x5F)
        or 0x20 <= c1 <= 0x5A
        or 0x61 <= c1 <= 0x7A
    ):
        return 1
    if c1 == 0xC2 and (c2 in (0xA1, 0xA7, 0xBF) or 0xA3 <= c2 <= 0xA5):
        return 1
    if c1 == 0xC3 and (
        0x84 <= c2 <= 0x87
        or c2 in (0x89, 0x91, 0x96, 0x98, 0x9C, 0xAC, 0xB6, 0xBC)
        or 0x9F <= c2 <= 0xA0
        or 0xA4 <= c2 <= 0xA6
        or 0xA8 <= c2 <= 0xA9
        or 0xB1 <= c2 <= 0xB2
        or 0xB8 <= c2 <= 0xB9
    ):
        return 1
    if c1 == 0x0C or 0x5B <= c1 <= 0x5E or 0x7B <= c1 <= 0x7E:
        return 2
    if (c1, c2, c3) == (0xE2, 0x82, 0xAC):
        return 2
    return 0


def gsm7_message_length(text: str | bytes) -> int:
    """Return the GSM-7 length of a message, or 0 if it must be sent as UCS-2.

    The message is scanned one byte at a time, each byte being looked at
    together with the two bytes that follow it.
    """
    data = _as_bytes(text)
    padded = data + b"\x00\x00"
    total = 0
    for position in range(len(data)):
        c1, c2, c3 = padded[position : position + 3]
        length = gsm7_equivalent_length(c1, c2, c3)
        if not length:
            return 0
        total += length
    return total


def ucs2_message_length(text: str | bytes) -> int:
    """Return the UCS-2 length of a UTF-8 message: two per character."""
    data = _as_bytes(text)
    return 2 * sum(1 for byte in data if byte & 0xC0 != 0x80)