"""Non-blocking SMS sending and receiving in PDU mode for SIM7000 modems."""

__version__ = "0.1.0"