# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Enums for the supported key formats and key families."""

import enum
from typing import Union

from keycodec.exceptions import UnexpectedType, UnsupportedFormat


class KeyFamily(enum.Enum):
    """The key families which can be decomposed and composed."""

    RSA = "rsa"
    EC = "ec"
    ED25519 = "ed25519"

    @property
    def pem_label(self) -> str:
        """Return the family name as used in raw PEM labels, e.g. `RSA PRIVATE KEY`."""
        return self.value.upper()


class KeyFormat(enum.Enum):
    """Wire encodings a key can be decomposed from or composed into."""

    PKCS1_DER = "pkcs1-der"
    PKCS1_PEM = "pkcs1-pem"
    PKCS8_DER = "pkcs8-der"
    PKCS8_PEM = "pkcs8-pem"
    SPKI_DER = "spki-der"
    SPKI_PEM = "spki-pem"
    RAW_DER = "raw-der"
    RAW_PEM = "raw-pem"

    @property
    def is_pem(self) -> bool:
        """Return `True` if the format is a PEM wrapper."""
        return self.value.endswith("-pem")

    @staticmethod
    def get(value: Union[str, "KeyFormat"]) -> "KeyFormat":
        """Return the `KeyFormat` member for the given value (case-insensitive).

        :param value: The format name, e.g. "pkcs8-pem", or a `KeyFormat` member.
        :return: The matching `KeyFormat` member.
        :raises UnexpectedType: If the value is not a string.
        :raises UnsupportedFormat: If no member matches the value.
        """
        if isinstance(value, KeyFormat):
            return value

        if not isinstance(value, str):
            raise UnexpectedType("Expecting format to be a string")

        try:
            return KeyFormat(value.lower())
        except ValueError as err:
            raise UnsupportedFormat(value) from err
