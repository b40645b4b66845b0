"""Identifier generators for index events and stream consumers."""

import os
import socket

from cuid2 import cuid_wrapper

_cuid = cuid_wrapper()


def generate_event_id() -> str:
    """New CUID2 used as IndexEvent.event_id."""
    return str(_cuid())


def generate_consumer_name(prefix: str | None = None) -> str:
    """Consumer name unique per process: '[prefix-]host-pid'."""
    name = f"{socket.gethostname()}-{os.getpid()}"
    return f"{prefix}-{name}" if prefix else name
