# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Conversion and validation helpers for byte buffers, hex strings and unsigned integers."""

from typing import Any

from keycodec.exceptions import UnexpectedType


def hex_to_bytes(hex_string: str) -> bytes:
    """Convert a hex string (case-insensitive, optional `0x` prefix) to bytes."""
    if hex_string.startswith(("0x", "0X")):
        hex_string = hex_string[2:]
    return bytes.fromhex(hex_string)


def bytes_to_hex(data: bytes, upper: bool = False) -> str:
    """Convert bytes to a hex string, lowercase unless `upper` is set."""
    out = data.hex()
    return out.upper() if upper else out


def ensure_is_bytes(value: Any, name: str = "value") -> bytes:
    """Ensure the provided value is a byte buffer.

    :param value: The value to check.
    :param name: The name used in the error message.
    :return: The value as immutable `bytes`.
    :raises UnexpectedType: If the value is not `bytes` or `bytearray`.
    """
    if not isinstance(value, (bytes, bytearray)):
        raise UnexpectedType(f"Expecting {name} to be bytes, got {type(value).__name__}")
    return bytes(value)


def ensure_is_unsigned_int(value: Any, name: str = "value") -> int:
    """Ensure the provided value is a non-negative integer.

    INTEGER fields of key structures are unsigned, a negative value would be encoded
    in two's complement by the DER encoder.

    :param value: The value to check.
    :param name: The name used in the error message.
    :return: The value.
    :raises UnexpectedType: If the value is not an `int` or is negative.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise UnexpectedType(f"Expecting {name} to be an integer, got {type(value).__name__}")
    if value < 0:
        raise UnexpectedType(f"Expecting {name} to be a non-negative integer")
    return value
