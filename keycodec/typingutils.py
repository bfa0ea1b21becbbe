# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Type aliases to enhance code readability at the public API."""

from typing import Sequence, Union

from keycodec.keyenums import KeyFormat

# Encoded key input: DER as bytes, PEM as text or ASCII bytes.
KeyInput = Union[bytes, bytearray, str]

# Output of a compose call: DER formats produce bytes, PEM formats text.
KeyOutput = Union[bytes, str]

Password = Union[str, bytes]

FormatName = Union[str, KeyFormat]

# A single format, or the formats to try in order.
FormatArg = Union[FormatName, Sequence[FormatName]]
