"""Asynchronous SMS sending and receiving in PDU mode for a SIM7000 modem."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .charset import gsm7_message_length
from .chunking import plan_message
from .constants import (
    CMD_TIMEOUT,
    CREG_QUERY,
    DEFAULT_ANSWER,
    EOF_CHAR,
    EXPECTED_ANSWER_SIZE,
    INIT_STEPS,
    LAST_COMMAND_SIZE,
    SMS_INDICATOR,
    Activity,
    Status,
)
from .linereader import AnswerTooLong, LineReader
from .parsing import REGISTERED_STATES, NetworkTime, parse_creg, parse_network_time, parse_sca
from .power import PowerSequence

logger = logging.getLogger(__name__)

_GSM7_BASIC = (
    "@£$¥èéùìòÇ\nØø\rÅåΔ_ΦΓΛΩΠΨΣΘΞ\x1bÆæßÉ !\"#¤%&'()*+,-./0123456789:;<=>?"
    "¡ABCDEFGHIJKLMNOPQRSTUVWXYZÄÖÑÜ§¿abcdefghijklmnopqrstuvwxyzäöñüà"
)
_GSM7_EXTENSION = {
    "\f": 0x0A, "^": 0x14, "{": 0x28, "}": 0x29, "\\": 0x2F,
    "[": 0x3C, "~": 0x3D, "]": 0x3E, "|": 0x40, "€": 0x65,
}
_GSM7_ENCODE = {char: code for code, char in enumerate(_GSM7_BASIC) if code != 0x1B}
_GSM7_DECODE_EXT = {code: char for char, code in _GSM7_EXTENSION.items()}
_ESCAPE = 0x1B
_MAX_UD = 140
_MAX_SEPTETS = 160

RECEIVE_TIMEOUT = 2000
SMS_READY_WAIT = 30000


def _swap_semi_octets(digits: str) -> str:
    if len(digits) % 2:
        digits += "F"
    return "".join(digits[i + 1] + digits[i] for i in range(0, len(digits), 2))


def _encode_address(number: str) -> tuple[int, str]:
    toa = 0x91 if number.startswith("+") else 0x81
    digits = number.lstrip("+")
    if not digits or not (digits.isascii() and digits.isdigit()):
        raise ValueError(f"bad address format {number!r}")
    return toa, _swap_semi_octets(digits)


def _to_septets(text: str) -> list[int]:
    septets: list[int] = []
    for char in text:
        if char in _GSM7_ENCODE:
            septets.append(_GSM7_ENCODE[char])
        elif char in _GSM7_EXTENSION:
            septets.extend((_ESCAPE, _GSM7_EXTENSION[char]))
        else:
            raise ValueError(f"character {char!r} has no GSM-7 equivalent")
    return septets


def _from_septets(septets: list[int]) -> str:
    chars: list[str] = []
    escaped = False
    for septet in septets:
        if escaped:
            chars.append(_GSM7_DECODE_EXT.get(septet, " "))
            escaped = False
        elif septet == _ESCAPE:
            escaped = True
        else:
            chars.append(_GSM7_BASIC[septet])
    return "".join(chars)


def _pack_septets(septets: list[int], fill_bits: int) -> bytes:
    out = bytearray()
    value = 0
    bits = fill_bits
    for septet in septets:
        value |= septet << bits
        bits += 7
        while bits >= 8:
            out.append(value & 0xFF)
            value >>= 8
            bits -= 8
    if bits > 0:
        out.append(value & 0xFF)
    return bytes(out)


def _unpack_septets(data: bytes, start_bit: int, count: int) -> list[int]:
    total = int.from_bytes(data, "little")
    return [(total >> (start_bit + 7 * i)) & 0x7F for i in range(count)]


@dataclass(frozen=True)
class DecodedSms:
    """Content of a decoded SMS PDU."""

    sender: str
    timestamp: str
    text: str
    overflow: bool = False


class PduCodec:
    """Encoder of SMS-SUBMIT and decoder of SMS PDUs, as hexadecimal text."""

    def __init__(self) -> None:
        self.sca_number = ""

    def set_sca_number(self, number: str) -> None:
        """Set the service centre number put in front of encoded PDUs."""
        if number:
            _encode_address(number)
        self.sca_number = number

    def _sca_field(self) -> str:
        if not self.sca_number:
            return "00"
        toa, swapped = _encode_address(self.sca_number)
        return f"{len(swapped) // 2 + 1:02X}{toa:02X}{swapped}"

    def encode(
        self,
        number: str,
        text: str | bytes,
        msg_id: int = 0,
        msg_count: int = 0,
        msg_index: int = 0,
    ) -> tuple[int, str]:
        """Encode a message; return the TPDU length in octets and the PDU.

        Raises ValueError when the message cannot be encoded.
        """
        if isinstance(text, bytes):
            text = text.split(b"\x00", 1)[0].decode("utf-8", errors="ignore")
        if msg_count and not 1 <= msg_index <= msg_count:
            raise ValueError(f"bad multipart numbers {msg_index}/{msg_count}")
        toa, swapped = _encode_address(number)
        digit_count = len(number.lstrip("+"))

        udh = b""
        if msg_count:
            udh = bytes((0x05, 0x00, 0x03, msg_id & 0xFF, msg_count & 0xFF, msg_index & 0xFF))

        if gsm7_message_length(text) or not text:
            septets = _to_septets(text)
            fill = (7 - (len(udh) * 8) % 7) % 7 if udh else 0
            header_septets = (len(udh) * 8 + fill) // 7
            if header_septets + len(septets) > _MAX_SEPTETS:
                raise ValueError("GSM-7 message too long")
            dcs = 0x00
            udl = header_septets + len(septets)
            user_data = udh + _pack_septets(septets, fill)
        else:
            payload = text.encode("utf-16-be")
            if len(udh) + len(payload) > _MAX_UD:
                raise ValueError("UCS-2 message too long")
            dcs = 0x08
            udl = len(udh) + len(payload)
            user_data = udh + payload

        first = 0x41 if udh else 0x01
        tpdu = (
            f"{first:02X}00{digit_count:02X}{toa:02X}{swapped}00{dcs:02X}{udl:02X}"
            + user_data.hex().upper()
        )
        return len(tpdu) // 2, self._sca_field() + tpdu

    def decode(self, pdu: str) -> DecodedSms:
        """Decode an SMS-DELIVER (or SMS-SUBMIT) PDU.

        Raises ValueError when the PDU is malformed.
        """
        try:
            data = bytes.fromhex(pdu.strip())
        except ValueError as error:
            raise ValueError(f"PDU is not hexadecimal: {pdu!r}") from error
        try:
            return self._decode(data)
        except IndexError as error:
            raise ValueError(f"PDU is truncated: {pdu!r}") from error

    def _decode(self, data: bytes) -> DecodedSms:
        pos = data[0] + 1
        first = data[pos]
        pos += 1
        mti = first & 0x03
        if mti == 1:
            pos += 1  # message reference
        elif mti != 0:
            raise ValueError(f"unsupported message type {mti}")
        digit_count = data[pos]
        toa = data[pos + 1]
        address_bytes = data[pos + 2 : pos + 2 + (digit_count + 1) // 2]
        if len(address_bytes) != (digit_count + 1) // 2:
            raise IndexError("address")
        pos += 2 + len(address_bytes)
        if toa & 0x70 == 0x50:
            sender = _from_septets(_unpack_septets(address_bytes, 0, digit_count * 4 // 7))
        else:
            sender = _swap_semi_octets(address_bytes.hex().upper()).rstrip("F")[:digit_count]
            if toa & 0x70 == 0x10:
                sender = "+" + sender
        pos += 1  # protocol identifier
        dcs = data[pos]
        pos += 1
        timestamp = ""
        if mti == 0:
            stamp = _swap_semi_octets(data[pos : pos + 7].hex().upper())
            if len(stamp) != 14:
                raise IndexError("timestamp")
            timestamp = f"{stamp[0:2]}/{stamp[2:4]}/{stamp[4:6]} {stamp[6:8]}:{stamp[8:10]}:{stamp[10:12]}"
            pos += 7
        else:
            vpf = (first >> 3) & 0x03
            pos += {0: 0, 2: 1}.get(vpf, 7)
        udl = data[pos]
        user_data = data[pos + 1 :]
        alphabet = (dcs >> 2) & 0x03 if dcs & 0xC0 == 0 else 0

        header_len = user_data[0] + 1 if first & 0x40 else 0
        if alphabet == 0:
            fill = (7 - (header_len * 8) % 7) % 7 if header_len else 0
            header_septets = (header_len * 8 + fill) // 7
            available = (len(user_data) * 8 - header_len * 8 - fill) // 7
            wanted = max(udl - header_septets, 0)
            count = min(wanted, available)
            text = _from_septets(_unpack_septets(user_data, header_len * 8 + fill, count))
            overflow = count < wanted
        else:
            body = user_data[header_len:max(udl, header_len)]
            overflow = len(user_data) < udl
            if alphabet == 2:
                text = body[: len(body) // 2 * 2].decode("utf-16-be", errors="replace")
            else:
                text = body.decode("latin-1")
        return DecodedSms(sender, timestamp, text, overflow)


SmsCallback = Callable[[str, str, str], Any]
LineCallback = Callable[[str], Any]


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class Sim7000:
    """SIM7000 modem driven from a main loop, without ever blocking.

    ``port`` is a serial-like object with ``in_waiting``, ``read``, ``write``
    and ``baudrate``; when None, a pyserial port named ``port_name`` is opened.
    ``pin_writer(pin, level)`` drives the power key: True active, False
    inactive, None released.
    """

    def __init__(
        self,
        port: Any = None,
        port_name: str | None = None,
        clock: Callable[[], int] = _monotonic_ms,
        pin_writer: Callable[[int, bool | None], Any] | None = None,
        codec: PduCodec | None = None,
        on_network_time: Callable[[NetworkTime], Any] | None = None,
    ) -> None:
        self._port = port
        self.port_name = port_name
        self._clock = clock
        self._pin_writer = pin_writer
        self.codec = codec or PduCodec()
        self.on_network_time = on_network_time
        self._reader = LineReader()
        self._power = PowerSequence()

        self.restart_needed = False
        self.gsm_status: int = Status.NEED_INIT
        self.restart_reason: int = self.gsm_status
        self.sms_ready = False
        self.activity = Activity.STARTING
        self.ignore_errors = False
        self.first_init_done = False
        self.modem_speaking = False
        self.command_count = 0
        self.restart_count = 0
        self.sms_forwarded_count = 0
        self.sms_sent_count = 0
        self.last_received_number = ""
        self.last_received_date = ""
        self.last_received_message = ""
        self.last_sent_number = ""
        self.last_sent_date = ""
        self.last_sent_message = ""

        self.modem_speed = 0
        self.modem_rx_pin = -1
        self.modem_tx_pin = -1
        self.modem_power_pin = -1

        self._in_receive = False
        self._in_wait = False
        self._in_wait_sms_ready = False
        self._next_line_is_sms = False
        self._next_step: Callable[[], Any] | None = None
        self._read_sms_cb: SmsCallback | None = None
        self._send_sms_cb: SmsCallback | None = None
        self._recv_line_cb: LineCallback | None = None
        self._start_time = 0
        self._gsm_timeout = 0
        self._expected_answer = ""
        self._last_command = ""
        self._step_ptr = 0
        self._step_repeat_count = 0
        self._step_max_repeat = 0
        self._power_running = False
        self._pending_pdu = ""
        self._sms_msg_id = 0
        self._chunks: list[bytes] = []
        self._chunk_index = 0

    # Public interface

    def begin(self, baud_rate: int, rx_pin: int, tx_pin: int, power_pin: int = -1) -> None:
        """Start the modem: run the power key sequence if any, then initialise."""
        logger.debug("Sim7000 begin")
        self.restart_needed = False
        self._in_receive = False
        self._in_wait = False
        self.activity = Activity.STARTING
        self.modem_rx_pin = rx_pin
        self.modem_tx_pin = tx_pin
        self.modem_power_pin = power_pin
        self.modem_speed = baud_rate
        if power_pin < 0:
            self._power_running = False
            self._open()
        else:
            toggle = self.first_init_done and not self.modem_speaking
            self._write_pin(self._power.start(self._clock(), toggle))
            self._power_running = True
        self.first_init_done = True
        self.modem_speaking = False

    def do_loop(self) -> None:
        """Run one slice of work; call it often from the main loop."""
        if self._power_running:
            previous = self._power.step
            finished = self._power.advance(self._clock())
            if finished or self._power.step != previous:
                self._write_pin(self._power.level())
            if finished:
                self._power_running = False
                self._write_pin(None)
                self._open()
            return

        while self._port.in_waiting:
            self.modem_speaking = True
            char = chr(self._port.read(1)[0])
            try:
                line = self._reader.feed(char)
            except AnswerTooLong as error:
                logger.error("Answer too long: >%s<", error.partial)
                self.gsm_status = Status.TOO_LONG
                return
            if char in ("\x00", "\r"):
                continue
            if line is not None:
                if self._handle_line(line):
                    return
            elif len(self._expected_answer) == 1 and char == self._expected_answer:
                self.gsm_status = Status.OK
                self._run_next_step()
                return

        now = self._clock()
        if self._in_receive and now - self._start_time >= self._gsm_timeout:
            self._handle_timeout()
            return

        if self._in_wait_sms_ready and self.sms_ready:
            self._in_wait = False
            self._in_wait_sms_ready = False
            self.gsm_status = Status.OK
            self._run_next_step()
            return

        if self._in_wait and now - self._start_time >= self._gsm_timeout:
            self._in_wait = False
            self.gsm_status = Status.OK
            self._run_next_step()

    def debug_state(self) -> dict[str, Any]:
        """Log and return the main internal state values."""
        state = {
            "last_command": self._last_command,
            "expected_answer": self._expected_answer,
            "last_answer": self._reader.text(),
            "restart_needed": self.restart_needed,
            "restart_reason": int(self.restart_reason),
            "sms_ready": self.sms_ready,
            "activity": int(self.activity),
            "in_receive": self._in_receive,
            "gsm_timeout": self._gsm_timeout,
            "gsm_status": int(self.gsm_status),
            "power_step": self._power.step,
            "elapsed": self._clock() - self._start_time,
            "first_init_done": self.first_init_done,
            "modem_speaking": self.modem_speaking,
            "restart_count": self.restart_count,
            "command_count": self.command_count,
            "sms_forwarded_count": self.sms_forwarded_count,
            "sms_sent_count": self.sms_sent_count,
        }
        for key, value in state.items():
            logger.info("%s=%s", key, value)
        return state

    def send_sms(self, number: str, text: str) -> None:
        """Send a message, split in several parts when it is too long."""
        plan = plan_message(text)
        self.last_sent_number = number
        self.last_sent_message = text
        self.last_sent_date = time.strftime("%Y/%m/%d %H:%M:%S")
        if not plan.is_multipart:
            self._chunks = []
            self.send_one_sms_chunk(number, text)
            return
        self._sms_msg_id = (self._sms_msg_id + 1) & 0xFFFF
        self._chunks = plan.chunks(text)
        self._chunk_index = 1
        self.send_one_sms_chunk(number, self._chunks[0], self._sms_msg_id, len(self._chunks), 1)

    def send_one_sms_chunk(
        self,
        number: str,
        text: str | bytes,
        msg_id: int = 0,
        msg_count: int = 0,
        msg_index: int = 0,
    ) -> None:
        """Push one message part to the modem."""
        try:
            length, pdu = self.codec.encode(number, text, msg_id, msg_count, msg_index)
        except ValueError as error:
            logger.error("Encode error %s sending SMS to %s >%s<", error, number, text)
            return
        self.activity = Activity.SEND
        self.sms_sent_count += 1
        self._pending_pdu = pdu
        self._send_command(f"AT+CMGS={length}", self._send_sms_text, ">", 10000)

    def register_sms_cb(self, callback: SmsCallback | None) -> None:
        """Call ``callback(number, date, message)`` for each received SMS."""
        self._read_sms_cb = callback

    def register_send_cb(self, callback: SmsCallback | None) -> None:
        """Store a callback for sent messages."""
        self._send_sms_cb = callback

    def register_line_cb(self, callback: LineCallback | None) -> None:
        """Call ``callback(line)`` for each line the modem sends unasked."""
        self._recv_line_cb = callback

    def delete_sms(self, index: int, flag: int) -> None:
        """Delete stored messages with AT+CMGD."""
        self._send_command(f"AT+CMGD={index},{flag}", self._set_idle, DEFAULT_ANSWER, 20000)

    def send_at(self, command: str) -> None:
        """Send a raw command; its answer is not tracked."""
        self._send_command(command)
        self._in_receive = False

    def send_eof(self) -> None:
        """Send a Ctrl-Z; its answer is not tracked."""
        self._send_char(EOF_CHAR)
        self._in_receive = False

    def wait_until_sms_ready(self) -> None:
        """Wait up to 30 s for network registration, then go on with init."""
        if not self.sms_ready:
            self._wait_sms_ready(SMS_READY_WAIT, self._send_next_init_step)
        else:
            self._send_next_init_step()

    def got_sca(self) -> None:
        """Read the service centre number from the last answer."""
        try:
            number = parse_sca(self._reader.text())
        except ValueError as error:
            logger.error("%s", error)
            self.restart_reason = Status.BAD_ANSWER
            self.restart_needed = True
            return
        self.codec.set_sca_number(number)
        self._reader.reset()
        self._send_next_init_step()

    def init_complete(self) -> None:
        """End the initialisation sequence."""
        if self.gsm_status:
            self.restart_needed = True
            self.restart_reason = self.gsm_status
        else:
            self._set_idle()
            logger.info("SMS gateway started, restart count = %d", self.restart_count)
            self.restart_count += 1

    def is_idle(self) -> bool:
        """True when not initialising, sending nor receiving."""
        return self.activity == Activity.IDLE

    def is_sending(self) -> bool:
        """True while a command or message is being sent."""
        return self.activity == Activity.SEND

    def is_receiving(self) -> bool:
        """True while a message is being received."""
        return self.activity == Activity.RECV

    # Internals

    def _write_pin(self, level: bool | None) -> None:
        if self._pin_writer is not None:
            self._pin_writer(self.modem_power_pin, level)

    def _open(self) -> None:
        if self._port is None:
            import serial

            self._port = serial.Serial(self.port_name, self.modem_speed, timeout=0)
        else:
            self._port.baudrate = self.modem_speed
        while self._port.in_waiting:
            self._port.read(self._port.in_waiting)
        self.sms_ready = False
        self._step_ptr = 0
        self._step_max_repeat = 0
        self._step_repeat_count = 0
        self._send_current_init_step()

    def _run_next_step(self) -> None:
        if self._next_step is not None:
            self._next_step()
        else:
            self._set_idle()

    def _handle_line(self, answer: str) -> bool:
        state = parse_creg(answer, CREG_QUERY in self._last_command)
        if state is not None:
            self.sms_ready = state in REGISTERED_STATES
            self._reader.reset()
            return True

        if self.on_network_time is not None:
            try:
                network_time = parse_network_time(answer)
                valid = True
            except ValueError as error:
                logger.debug("%s", error)
                network_time, valid = None, False
            if network_time is not None:
                self.on_network_time(network_time)
                self._reader.reset()
                return True
            if not valid:
                self._reader.reset()
                answer = ""

        if self._in_receive:
            expected = self._expected_answer
            if (expected == DEFAULT_ANSWER and answer == expected) or (
                expected != DEFAULT_ANSWER and expected in answer
            ):
                self.gsm_status = Status.OK
                self._run_next_step()
                return True
            if not self.ignore_errors and ("+CMS ERROR" in answer or "+CME ERROR" in answer):
                logger.error("Error answer: >%s<, command was %s", answer, self._last_command)
                self._fail(Status.CM_ERROR)
                return True

        if not answer:
            return False
        if self._next_line_is_sms:
            self._read_sms_message(answer)
            self._reader.reset()
            self._next_line_is_sms = False
        elif SMS_INDICATOR in answer:
            self._last_command = answer[:LAST_COMMAND_SIZE]
            self._next_line_is_sms = True
            self._reader.reset()
            self._in_receive = True
            self._gsm_timeout = RECEIVE_TIMEOUT
            self._start_time = self._clock()
        else:
            if self._recv_line_cb is not None:
                self._recv_line_cb(answer)
            self._reader.reset()
        return True

    def _handle_timeout(self) -> None:
        if self.ignore_errors:
            logger.error("Ignoring time out, command was %s", self._last_command)
            self._run_next_step()
            return
        if self._step_repeat_count < self._step_max_repeat:
            self._step_repeat_count += 1
            self._send_current_init_step()
            return
        if self._reader.text():
            logger.error("Partial answer: >%s<, command was %s", self._reader.text(), self._last_command)
            self._fail(Status.BAD_ANSWER)
        else:
            logger.error("Timed out, command was %s", self._last_command)
            self._fail(Status.TIMEOUT)

    def _fail(self, status: Status) -> None:
        self.gsm_status = status
        self.restart_needed = True
        self.restart_reason = status
        self._set_idle()

    def _send_next_init_step(self) -> None:
        self._step_ptr += 1
        if self._step_ptr < len(INIT_STEPS):
            self._send_current_init_step()
        else:
            self.init_complete()

    def _send_current_init_step(self) -> None:
        if self._step_ptr >= len(INIT_STEPS):
            logger.error("Trying to execute step %d, max is %d", self._step_ptr, len(INIT_STEPS))
            return
        step = INIT_STEPS[self._step_ptr]
        if step.action:
            getattr(self, step.action)()
        else:
            self._send_command(
                step.command, self._send_next_init_step, step.expected_answer, step.timeout, step.repeat
            )

    def _send_sms_text(self) -> None:
        self._port.write(self._pending_pdu.encode("ascii"))
        self._send_char(EOF_CHAR, self._send_next_sms_chunk, "+CMGS:", 60000)

    def _send_next_sms_chunk(self) -> None:
        if self._chunks and self._chunk_index < len(self._chunks):
            part = self._chunks[self._chunk_index]
            self._chunk_index += 1
            self.send_one_sms_chunk(
                self.last_sent_number, part, self._sms_msg_id, len(self._chunks), self._chunk_index
            )
            return
        self._set_idle()

    def _wait_sms_ready(self, wait_ms: int, next_step: Callable[[], Any] | None = None) -> None:
        self._gsm_timeout = wait_ms
        self.gsm_status = Status.RUNNING
        self._next_step = next_step
        self._start_time = self._clock()
        self._in_receive = False
        self._in_wait = True
        self._in_wait_sms_ready = True

    def _send_command(
        self,
        command: str,
        next_step: Callable[[], Any] | None = None,
        resp: str = DEFAULT_ANSWER,
        timeout: int = CMD_TIMEOUT,
        repeat: int = 0,
    ) -> None:
        self.command_count += 1
        self._gsm_timeout = timeout
        self.gsm_status = Status.RUNNING
        self._next_step = next_step
        self._step_max_repeat = repeat
        self._expected_answer = resp[:EXPECTED_ANSWER_SIZE]
        if command:
            if self._last_command != command[:LAST_COMMAND_SIZE]:
                self._step_repeat_count = 0
            self._last_command = command[:LAST_COMMAND_SIZE]
            self._reader.reset()
            self._port.write(command.encode("latin-1") + b"\r")
        self._start_time = self._clock()
        self._in_receive = True
        self._in_wait = False
        self._in_wait_sms_ready = False
        self._next_line_is_sms = False

    def _send_char(
        self,
        char: int,
        next_step: Callable[[], Any] | None = None,
        resp: str = DEFAULT_ANSWER,
        timeout: int = CMD_TIMEOUT,
    ) -> None:
        self.command_count += 1
        self._gsm_timeout = timeout
        self.gsm_status = Status.RUNNING
        self._next_step = next_step
        self._expected_answer = resp[:EXPECTED_ANSWER_SIZE]
        self._reader.reset()
        self._port.write(bytes((char,)))
        self._start_time = self._clock()
        self._in_receive = True
        self._in_wait_sms_ready = False

    def _set_idle(self) -> None:
        self.activity = Activity.IDLE
        self._in_receive = False
        self._reader.reset()

    def _read_sms_message(self, pdu: str) -> None:
        try:
            sms = self.codec.decode(pdu)
        except ValueError as error:
            logger.error("SMS PDU decode failed: %s", error)
        else:
            if sms.overflow:
                logger.warning("SMS decode overflow, partial message only")
            self.last_received_number = sms.sender
            self.last_received_date = sms.timestamp
            self.last_received_message = sms.text
            self.sms_forwarded_count += 1
            if self._read_sms_cb is not None:
                self._read_sms_cb(sms.sender, sms.timestamp, sms.text)
        self.delete_sms(1, 2)