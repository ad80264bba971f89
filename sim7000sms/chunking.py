"""Choice of encoding and splitting of long messages into parts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .charset import gsm7_message_length, ucs2_message_length

GSM7_SINGLE_LIMIT = 160
GSM7_CHUNK_SIZE = 152
UCS2_SINGLE_LIMIT = 70
UCS2_CHUNK_SIZE = 67


class Encoding(Enum):
    """Alphabet a message is sent with."""

    GSM7 = "gsm7"
    UCS2 = "ucs2"


def _message_bytes(text: str | bytes) -> bytes:
    data = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    return data.split(b"\x00", 1)[0]


@dataclass(frozen=True)
class MessagePlan:
    """How a message is sent.

    ``chunk_count`` is 0 for a message sent in a single part; otherwise the
    message is cut every ``chunk_size`` bytes of its UTF-8 form.
    """

    encoding: Encoding
    length: int
    chunk_count: int = 0
    chunk_size: int = 0

    @property
    def is_multipart(self) -> bool:
        """True when the message goes out in several parts."""
        return self.chunk_count > 0

    def chunks(self, text: str | bytes) -> list[bytes]:
        """Return the UTF-8 parts of ``text`` to send, in order."""
        data = _message_bytes(text)
        if not self.is_multipart:
            return [data]
        return [
            data[start : start + self.chunk_size]
            for start in range(0, self.chunk_count * self.chunk_size, self.chunk_size)
        ]


def plan_message(text: str | bytes) -> MessagePlan:
    """Choose the encoding of ``text`` and whether it must be split."""
    gsm7_length = gsm7_message_length(text)
    if gsm7_length:
        if gsm7_length > GSM7_SINGLE_LIMIT:
            return MessagePlan(
                Encoding.GSM7,
                gsm7_length,
                (gsm7_length + GSM7_CHUNK_SIZE - 1) // GSM7_CHUNK_SIZE,
                GSM7_CHUNK_SIZE,
            )
        return MessagePlan(Encoding.GSM7, gsm7_length)

    ucs2_length = ucs2_message_length(text)
    if ucs2_length > UCS2_SINGLE_LIMIT:
        return MessagePlan(
            Encoding.UCS2,
            ucs2_length,
            (ucs2_length + UCS2_CHUNK_SIZE - 1) // UCS2_CHUNK_SIZE,
            UCS2_CHUNK_SIZE,
        )
    return MessagePlan(Encoding.UCS2, ucs2_length)