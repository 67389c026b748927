"""Escaping of raw AMQP byte strings for diagnostic output."""

from __future__ import annotations

from typing import Union


def escape_bytes(data: Union[bytes, bytearray, str]) -> str:
    """Render ``data`` printable using the rabbitmqctl escaping convention.

    Control characters and DEL become a backslash followed by three octal
    digits. Every other byte is kept and the result is decoded as UTF-8, so
    multi-byte characters survive; invalid sequences become U+FFFD.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    escaped = bytearray()
    for byte in data:
        if byte >= 32 and byte != 127:
            escaped.append(byte)
        else:
            escaped += b"\\%03o" % byte
    return escaped.decode("utf-8", errors="replace")
