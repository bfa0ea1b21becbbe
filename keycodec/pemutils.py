# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Parsing and serialization of PEM envelopes.

Only a single PEM block is used from a text: the first one, or the first one whose type label
matches a requested pattern. Serialized output always uses `\\n` line endings and wraps the
base64 body at 64 columns.
"""

import base64
import binascii
import logging
import re
import textwrap
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Pattern, Union

from keycodec.exceptions import DecodePemFailed, InvalidInputKey

PEM_LINE_WIDTH = 64

_BEGIN_RE = re.compile(r"^-----BEGIN ([^-]*)-----\s*$")
_END_RE = re.compile(r"^-----END ([^-]*)-----\s*$")

PROC_TYPE_HEADER = "Proc-Type"
DEK_INFO_HEADER = "DEK-Info"
PROC_TYPE_ENCRYPTED = "4,ENCRYPTED"


@dataclass
class PemBlock:
    """A single parsed PEM block.

    Attributes:
        pem_type: The label between `BEGIN`/`END`, e.g. "RSA PRIVATE KEY".
        body: The base64-decoded body.
        headers: The RFC 1421 style headers in order of appearance, e.g. `Proc-Type` and `DEK-Info`.

    """

    pem_type: str
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_encrypted(self) -> bool:
        """Return `True` if the `Proc-Type` header announces a legacy encrypted body."""
        proc_type = self.headers.get(PROC_TYPE_HEADER, "").replace(" ", "")
        return proc_type == PROC_TYPE_ENCRYPTED


def pem_input_to_text(data: Union[str, bytes, bytearray]) -> str:
    """Return PEM input as text.

    :param data: The PEM data, as text or ASCII bytes.
    :return: The text.
    :raises DecodePemFailed: If byte input is not ASCII text, e.g. because it is DER.
    """
    if isinstance(data, str):
        return data

    try:
        return bytes(data).decode("ascii")
    except UnicodeDecodeError as err:
        raise DecodePemFailed("Failed to decode PEM", original_error=err) from err


def _iter_raw_blocks(text: str) -> Iterator[tuple]:
    """Yield `(label, inner_lines)` for each complete `BEGIN`/`END` pair in the text."""
    label = None
    inner = []
    for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        if label is None:
            match = _BEGIN_RE.match(line.strip())
            if match:
                label = match.group(1)
                inner = []
            continue

        match = _END_RE.match(line.strip())
        if match:
            if match.group(1) != label:
                raise DecodePemFailed(
                    "Failed to decode PEM",
                    original_error=ValueError(f"END label '{match.group(1)}' does not match BEGIN label '{label}'"),
                )
            yield label, inner
            label = None
            continue

        inner.append(line)

    if label is not None:
        raise DecodePemFailed("Failed to decode PEM", original_error=ValueError(f"Missing END line for '{label}'"))


def _parse_inner(label: str, lines: list) -> PemBlock:
    """Split the inner lines of a block into headers and the base64 body."""
    headers: Dict[str, str] = {}
    idx = 0
    if lines and ":" in lines[0]:
        last_name = None
        while idx < len(lines) and lines[idx].strip():
            line = lines[idx]
            if line[0] in " \t" and last_name is not None:
                headers[last_name] += line.strip()
            else:
                name, _, value = line.partition(":")
                last_name = name.strip()
                headers[last_name] = value.strip()
            idx += 1

    b64_body = "".join(line.strip() for line in lines[idx:])
    try:
        body = base64.b64decode(b64_body, validate=True)
    except (binascii.Error, ValueError) as err:
        raise DecodePemFailed("Failed to decode PEM", original_error=err) from err

    return PemBlock(pem_type=label, body=body, headers=headers)


def decode_pem(data: Union[str, bytes], type_pattern: Optional[Pattern] = None) -> PemBlock:
    """Parse the first PEM block of the input.

    :param data: The PEM text, or its ASCII bytes.
    :param type_pattern: If given, the first block whose label fully matches this pattern is used,
    and blocks before it are skipped.
    :return: The parsed `PemBlock`.
    :raises DecodePemFailed: If no (matching) block is found, delimiters are broken or the body
    is not valid base64.
    """
    text = pem_input_to_text(data)

    for label, inner in _iter_raw_blocks(text):
        if type_pattern is not None and not type_pattern.fullmatch(label):
            logging.debug("Skipping PEM block with type %s", label)
            continue
        return _parse_inner(label, inner)

    raise DecodePemFailed("Failed to decode PEM")


def decode_pem_of_type(data: Union[str, bytes], *expected_types: str) -> PemBlock:
    """Parse the first PEM block and check that its type is one of the expected ones.

    :param data: The PEM text, or its ASCII bytes.
    :param expected_types: The allowed type labels.
    :return: The parsed `PemBlock`.
    :raises DecodePemFailed: If the text holds no valid PEM block.
    :raises InvalidInputKey: If the block has another type.
    """
    block = decode_pem(data)
    if block.pem_type not in expected_types:
        raise InvalidInputKey(f"Unexpected PEM type '{block.pem_type}', expected '{' or '.join(expected_types)}'")
    return block


def encode_pem(pem_type: str, body: bytes, headers: Optional[Dict[str, str]] = None) -> str:
    """Serialize a PEM block.

    :param pem_type: The type label, e.g. "PRIVATE KEY".
    :param body: The binary body.
    :param headers: Optional headers, written in the given order followed by a blank line.
    :return: The PEM text, terminated by a newline.
    """
    lines = [f"-----BEGIN {pem_type}-----"]

    if headers:
        lines.extend(f"{name}: {value}" for name, value in headers.items())
        lines.append("")

    b64 = base64.b64encode(body).decode("ascii")
    lines.extend(textwrap.wrap(b64, width=PEM_LINE_WIDTH))
    lines.append(f"-----END {pem_type}-----")
    lines.append("")

    return "\n".join(lines)
