# sim7000sms

Send and receive SMS through a SIM7000 modem in PDU mode, without blocking.

The driver, `sim7000sms.modem.Sim7000`, is a state machine: start it with
`begin()`, then call `do_loop()` often from your own main loop. Each call reads
what the modem has sent, moves the current command sequence forward and calls
your callbacks when something happens. No call waits for the modem.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## What the driver does

- Runs the initialisation sequence (`AT` probe repeated up to ten times, speed,
  echo off, verbose errors, PDU mode, registration reporting, SMS headers,
  deletion of stored messages, new message indication, `AT+CREG?`,
  `AT+CLTS=1`, then `AT+CSCA?`) and hands the service centre number to its
  PDU codec.
- Optionally drives the modem power key through a timed sequence (1.5 s
  active, 2 s released, 1.5 s active, 10 s released) before opening the serial
  link. If the modem was started before but never answered, only the last
  press and release are done.
- Follows network registration (`+CREG:`): `sms_ready` is true in state 1
  (home) or 5 (roaming).
- Picks the encoding of each outgoing message: GSM-7 when every character has
  a GSM-7 equivalent (up to 160 per SMS), UCS-2 otherwise (up to 70 per SMS).
  Longer messages are sent as concatenated parts, one after the other.
- Decodes each incoming SMS (`+CMT:` followed by the PDU), stores it in
  `last_received_number`, `last_received_date` and `last_received_message`,
  calls your SMS callback and then deletes read messages with `AT+CMGD=1,2`.
- Sets `restart_needed` and `restart_reason` on time-outs, partial answers,
  `+CMS ERROR` / `+CME ERROR` answers or a bad service centre answer. Set
  `ignore_errors` to go on after time-outs and error answers instead.

## Using the driver

```python
from sim7000sms.modem import Sim7000

def on_sms(number, date, message):
    print(f"{date} {number}: {message}")

def on_line(answer):
    print("modem said:", answer)

modem = Sim7000(port_name="/dev/ttyUSB0")
modem.register_sms_cb(on_sms)
modem.register_line_cb(on_line)
modem.begin(115200, 16, 17)      # baud rate, RX pin, TX pin; no power key

outgoing = []                    # (number, text) pairs to send
while True:
    modem.do_loop()
    if modem.needs_restart if False else modem.restart_needed:
        modem.begin(115200, 16, 17)
    elif modem.is_idle() and outgoing:
        recipient, text = outgoing.pop(0)
        modem.send_sms(recipient, text)
```

The constructor takes:

- `port`: any serial-like object with `in_waiting`, `read`, `write` and
  `baudrate`. When it is None, a pyserial port named `port_name` is opened at
  the speed given to `begin()`.
- `clock`: a function returning milliseconds from a monotonic clock.
- `pin_writer(pin, level)`: drives the power key given to `begin()` as
  `power_pin`; `level` is True (active), False (inactive) or None (released).
- `codec`: the `PduCodec` used to encode and decode PDUs.
- `on_network_time`: called with a `NetworkTime` when the modem reports the
  network time (`*PSUTTZ:`). `NetworkTime.to_unix()` gives it in Unix seconds.

`is_idle()`, `is_sending()` and `is_receiving()` tell what the modem is busy
with; start a new `send_sms()` only while it is idle. `send_at()` and
`send_eof()` push a raw command or a Ctrl-Z whose answer is not tracked;
`delete_sms(index, flag)` issues `AT+CMGD`. `debug_state()` logs the main
internal values and returns them as a dictionary.

`register_send_cb()` stores a callback, but the driver does not call it.

## Helpers

The pieces the driver is built on can be used on their own.

```python
from sim7000sms.charset import gsm7_message_length, ucs2_message_length
from sim7000sms.chunking import plan_message
from sim7000sms.clock import unix_time_in_seconds

gsm7_message_length("Hello")           # 5; 0 when GSM-7 cannot carry the text
ucs2_message_length("héllo")           # 10: two per character
plan = plan_message("a long text ...") # encoding, length and number of parts
parts = plan.chunks("a long text ...") # UTF-8 parts, as bytes

unix_time_in_seconds(0, 0, 0, 1, 1, 1970)  # 0
```

- `sim7000sms.parsing`: `parse_creg`, `parse_network_time` (giving a
  `NetworkTime`) and `parse_sca` read the modem's answers.
- `sim7000sms.modem.PduCodec`: `encode()` builds an SMS-SUBMIT PDU (GSM-7 or
  UCS-2, with a concatenation header for multipart messages) and `decode()`
  reads an SMS-DELIVER or SMS-SUBMIT PDU into a `DecodedSms`.
- `sim7000sms.power.PowerSequence`: the timed power key steps.
- `sim7000sms.linereader.LineReader`: assembles modem output into lines and
  raises `AnswerTooLong` past 498 characters.
- `sim7000sms.constants`: `Status`, `Activity` and the `InitStep` sequence.

## What it does not do

- There is no command-line program; the driver is a library to call from your
  own loop.
- Received messages are not stored anywhere beyond the `last_received_*`
  attributes; keeping them is up to your callback.
- The network time is only handed to `on_network_time`; the system clock is
  not changed.
- GPIO is not accessed directly: the power key works only through the
  `pin_writer` you supply.