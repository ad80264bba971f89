"""Parsing of unsolicited messages and answers sent by the modem."""

from __future__ import annotations

from dataclasses import dataclass

from .clock import unix_time_in_seconds
from .constants import CREG_MSG, CSCA_INDICATOR, GSM_TIME, MAX_SMS_NUMBER_LEN

REGISTERED_STATES = ("1", "5")
"""Registration states (home network, roaming) in which SMS can be used."""

_TIME_BUFFER_SIZE = 35
_TIME_FIELD_COUNT = 8


def _tokens(text: str, separator: str) -> list[str]:
    """Split ``text`` on ``separator``, dropping empty pieces."""
    return [piece for piece in text.split(separator) if piece]


def _leading_int(token: str) -> int:
    """Read an optionally signed integer at the start of ``token``, 0 if none."""
    text = token.lstrip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    digits = ""
    for char in text:
        if not char.isdigit():
            break
        digits += char
    return sign * int(digits) if digits else 0


@dataclass(frozen=True)
class NetworkTime:
    """Local time announced by the network.

    ``year`` holds the two last digits of the year; ``quarters_to_utc`` is the
    time zone in quarters of an hour.
    """

    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    quarters_to_utc: int
    is_dst: int

    def to_unix(self) -> int:
        """Return this time as seconds since the Unix epoch."""
        return unix_time_in_seconds(
            self.second & 0xFF,
            self.minute & 0xFF,
            self.hour & 0xFF,
            self.day & 0xFF,
            self.month & 0xFF,
            (self.year + 2000) & 0xFFFF,
        )


def parse_creg(answer: str, after_query: bool) -> str | None:
    """Return the registration state found in a ``+CREG:`` line.

    ``after_query`` tells that the line answers an ``AT+CREG?`` request, in
    which case a mode value and a comma come before the state. The result is
    an empty string when the line ends before the state, and None when the
    line holds no ``+CREG:`` message at all. SMS can be used when the state is
    one of :data:`REGISTERED_STATES`.
    """
    start = answer.find(CREG_MSG)
    if start < 0:
        return None
    position = start + len(CREG_MSG) + (2 if after_query else 0)
    return answer[position : position + 1]


def parse_network_time(answer: str) -> NetworkTime | None:
    """Read the network time from a ``*PSUTTZ:`` line.

    Returns None when the line holds no such message and raises ValueError
    when the message cannot be understood.
    """
    start = answer.find(GSM_TIME)
    if start < 0:
        return None

    cleaned: list[str] = []
    for char in answer[start + len(GSM_TIME) :]:
        if char == "\x00":
            break
        if char in "/:":
            cleaned.append(",")
        elif char.isascii() and (char.isdigit() or char in "+-,"):
            cleaned.append(char)
        elif char != '"':
            raise ValueError(
                f"illegal character {ord(char):#x} in network time {answer!r}"
            )
        if len(cleaned) >= _TIME_BUFFER_SIZE:
            raise ValueError(f"network time {answer!r} is too long")

    tokens = _tokens("".join(cleaned), ",")
    if len(tokens) < _TIME_FIELD_COUNT:
        raise ValueError(
            f"token {len(tokens)} not found in network time {answer!r}"
        )
    return NetworkTime(*(_leading_int(token) for token in tokens[:_TIME_FIELD_COUNT]))


def parse_sca(answer: str) -> str:
    """Return the service centre number found in a ``+CSCA:`` answer.

    The number is the first quoted value after the indicator; it may start
    with ``+`` and otherwise holds only digits. Raises ValueError when the
    answer does not carry a valid number.
    """
    start = answer.find(CSCA_INDICATOR)
    if start < 0:
        raise ValueError(f"can't find {CSCA_INDICATOR} in {answer!r}")

    tokens = _tokens(answer[start:], '"')
    if not tokens:
        raise ValueError(f"can't find first token in {answer!r}")
    if len(tokens) < 2:
        raise ValueError(f"can't find second token in {answer!r}")

    number = tokens[1]
    if len(number) >= MAX_SMS_NUMBER_LEN:
        raise ValueError(f"SCA number {number!r} is too long")
    for position, char in enumerate(number):
        if not (char.isascii() and char.isdigit()):
            if position != 0 or char != "+":
                raise ValueError(f"bad SCA number {number!r} at {position + 1}")
    return number