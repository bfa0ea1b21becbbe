# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Dataclasses for configuration values used when decomposing and composing keys."""

from dataclasses import dataclass, field
from typing import Optional

from keycodec.typingutils import FormatArg


@dataclass
class EncryptionDefaults:
    """Defaults applied when a private key is encrypted without fully specified parameters.

    Attributes
    ----------
        legacy_cipher: The cipher for PEM `DEK-Info` encryption. Defaults to "aes256-cbc".
        pbes2_cipher: The PBES2 encryption scheme for PKCS#8. Defaults to "aes256-cbc".
        pbkdf2_prf: The PBKDF2 pseudo-random function. Defaults to "hmac-with-sha256".
        pbkdf2_iterations: The PBKDF2 iteration count. Defaults to `100000`.
        pbkdf2_salt_length: The length of a generated PBKDF2 salt in bytes. Defaults to `16`.
        rc2_bits: The RC2 effective key bits, if none are given. Defaults to `128`.

    """

    legacy_cipher: str = "aes256-cbc"
    pbes2_cipher: str = "aes256-cbc"
    pbkdf2_prf: str = "hmac-with-sha256"
    pbkdf2_iterations: int = 100_000
    pbkdf2_salt_length: int = 16
    rc2_bits: int = 128


@dataclass
class DecomposeOptions:
    """Options for a decompose call.

    Attributes
    ----------
        password: The password to decrypt an encrypted private key. Defaults to `None`.
        formats: A single format, or the formats to try in order. `None` tries every format for the key kind.

    """

    password: Optional[bytes] = None
    formats: Optional[FormatArg] = None


@dataclass
class ComposeOptions:
    """Options for a compose call.

    Attributes
    ----------
        password: The password to encrypt the private key with. Defaults to `None`.
        defaults: The encryption defaults. Defaults to `EncryptionDefaults()`.

    """

    password: Optional[bytes] = None
    defaults: EncryptionDefaults = field(default_factory=EncryptionDefaults)
