"""Protocol constants, status codes and the modem initialisation sequence."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

CMD_TIMEOUT = 4000
"""Standard AT command timeout, in milliseconds."""

MAX_SMS_NUMBER_LEN = 20
"""Maximum length of an SMS phone number."""

MAX_ANSWER = 500
"""Maximum length of one line answered by the modem."""

EXPECTED_ANSWER_SIZE = 10
"""Storage size of the expected answer (one byte is kept for the terminator)."""

LAST_COMMAND_SIZE = 30
"""Storage size of the last command sent."""

DEFAULT_ANSWER = "OK"
CREG_MSG = "+CREG: "
CREG_QUERY = "+CREG?"
SMS_INDICATOR = "+CMT: "
CSCA_INDICATOR = "+CSCA:"
GSM_TIME = "*PSUTTZ: "

EOF_CHAR = 0x1A
"""Character that ends an SMS PDU (Ctrl-Z)."""


class Status(IntEnum):
    """Result of the last command sent to the modem."""

    OK = 0
    RUNNING = 1
    TIMEOUT = 1
    TOO_LONG = 2
    BAD_ANSWER = 3
    CM_ERROR = 4
    NEED_INIT = 5


class Activity(IntEnum):
    """What the modem is currently busy with."""

    IDLE = 0
    SEND = 1
    RECV = 2
    STARTING = 3
    NOT_CONNECTED = 4


@dataclass(frozen=True)
class InitStep:
    """One step of the modem initialisation sequence.

    A step either sends ``command`` and waits for ``wait_for`` (the default
    answer when empty), or, when ``action`` is set, runs the modem method of
    that name instead.
    """

    command: str = ""
    wait_for: str = ""
    timeout: int = CMD_TIMEOUT
    repeat: int = 0
    action: str | None = None

    @property
    def expected_answer(self) -> str:
        """Answer that ends this step."""
        return self.wait_for or DEFAULT_ANSWER


INIT_STEPS: tuple[InitStep, ...] = (
    InitStep("AT", timeout=1000, repeat=9),
    InitStep("AT+IPR=115200"),
    InitStep("ATE0"),
    InitStep("AT+CMEE=2"),
    InitStep("AT+CMGF=0"),
    InitStep("AT+CNMP=51"),
    InitStep("AT+CREG=2"),
    InitStep("AT+CSDH=1"),
    InitStep("AT+CMGD=1,4", timeout=10000),
    InitStep("AT+CNMI=2,2,0,2,0"),
    InitStep("AT+CREG?"),
    InitStep("AT+CLTS=1"),
    InitStep("AT+CSCA?", wait_for=CSCA_INDICATOR, timeout=10000),
    InitStep(action="got_sca"),
)