"""Assembly of modem output into lines."""

from __future__ import annotations

from .constants import MAX_ANSWER

_SKIPPED = ("\x00", "\r")


class AnswerTooLong(Exception):
    """Raised when a line sent by the modem does not fit in the buffer."""

    def __init__(self, partial: str) -> None:
        super().__init__(f"answer too long: {partial!r}")
        self.partial = partial


class LineReader:
    """Collect characters until a line feed, dropping NUL and CR.

    The collected text stays available after a line feed until
    :meth:`reset` is called, so that the handler of a line may still look at
    it later.
    """

    def __init__(self, max_answer: int = MAX_ANSWER) -> None:
        if max_answer < 3:
            raise ValueError("max_answer must be at least 3")
        self.max_answer = max_answer
        self._chars: list[str] = []

    def feed(self, char: str | int) -> str | None:
        """Add one character; return the current line when it is a line feed.

        Raises AnswerTooLong, after clearing the buffer, when the line grows
        past its limit.
        """
        if isinstance(char, int):
            char = chr(char)
        if len(char) != 1:
            raise ValueError(f"expected a single character, got {char!r}")
        if char in _SKIPPED:
            return None
        if len(self._chars) >= self.max_answer - 2:
            partial = self.text()
            self.reset()
            raise AnswerTooLong(partial)
        if char == "\n":
            return self.text()
        self._chars.append(char)
        return None

    def reset(self) -> None:
        """Forget the characters collected so far."""
        self._chars.clear()

    def text(self) -> str:
        """Return the characters collected so far."""
        return "".join(self._chars)

    def __len__(self) -> int:
        return len(self._chars)