# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Immutable value objects for decomposed keys.

A `DecomposedKey` is created by every decompose call and consumed by the matching compose call.
Its `key_data` is one of the family-specific classes below, so that the valid fields never depend
on the key algorithm id at runtime.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from keycodec.exceptions import UnexpectedType
from keycodec.keyenums import KeyFormat


@dataclass(frozen=True)
class KeyAlgorithm:
    """The algorithm of a key.

    Attributes:
        id: The symbolic algorithm name, e.g. "rsa-encryption" or "ec-public-key".
        named_curve: The curve name for EC keys, e.g. "prime256v1".

    """

    id: str
    named_curve: Optional[str] = None


@dataclass(frozen=True)
class OtherPrimeInfo:
    """An additional prime of a multi-prime RSA key."""

    prime: int
    exponent: int
    coefficient: int


@dataclass(frozen=True)
class RsaPrivateKeyData:
    """The fields of an RSA private key (RFC 8017, Appendix A.1.2)."""

    modulus: int
    public_exponent: int
    private_exponent: int
    prime1: int
    prime2: int
    exponent1: int
    exponent2: int
    coefficient: int
    other_prime_infos: Tuple[OtherPrimeInfo, ...] = ()

    @property
    def version(self) -> int:
        """Return 1 for multi-prime keys and 0 for two-prime keys."""
        return 1 if self.other_prime_infos else 0


@dataclass(frozen=True)
class RsaPublicKeyData:
    """The fields of an RSA public key."""

    modulus: int
    public_exponent: int


@dataclass(frozen=True)
class EcPrivateKeyData:
    """An EC private key with its uncompressed public point.

    Attributes:
        d: The private scalar, as stored in the key.
        x: The x coordinate of the public point.
        y: The y coordinate of the public point. Required for composing.

    """

    d: bytes
    x: bytes
    y: Optional[bytes] = None


@dataclass(frozen=True)
class EcPublicKeyData:
    """An uncompressed EC public point."""

    x: bytes
    y: Optional[bytes] = None


@dataclass(frozen=True)
class Ed25519PrivateKeyData:
    """The 32 byte Ed25519 private key seed."""

    seed: bytes


@dataclass(frozen=True)
class Ed25519PublicKeyData:
    """The 32 byte Ed25519 public key."""

    public_bytes: bytes


PrivateKeyData = Union[RsaPrivateKeyData, EcPrivateKeyData, Ed25519PrivateKeyData]
PublicKeyData = Union[RsaPublicKeyData, EcPublicKeyData, Ed25519PublicKeyData]
KeyData = Union[PrivateKeyData, PublicKeyData]


@dataclass(frozen=True)
class LegacyEncryption:
    """A legacy OpenSSL PEM encryption, announced by the `DEK-Info` header.

    Attributes:
        id: The cipher id, e.g. "aes256-cbc". `None` selects the configured default.
        iv: The IV. `None` generates a random one when composing.
        rc2_bits: The RC2 effective key bits (40, 64 or 128), only for "rc2-cbc".

    """

    id: Optional[str] = None
    iv: Optional[bytes] = None
    rc2_bits: Optional[int] = None


@dataclass(frozen=True)
class Pbkdf2Params:
    """The PBKDF2 parameters of a PBES2 encryption.

    Unset values are generated (`salt`) or taken from the configured defaults when composing.
    `explicit_default_prf` is set when the input spelled out the DEFAULT "hmac-with-sha1", so that
    composing writes it back.
    """

    salt: Optional[bytes] = None
    iteration_count: Optional[int] = None
    key_length: Optional[int] = None
    prf: Optional[str] = None
    explicit_default_prf: bool = False
    id: str = "pbkdf2"


@dataclass(frozen=True)
class EncryptionScheme:
    """The symmetric cipher of a PBES2 encryption."""

    id: Optional[str] = None
    iv: Optional[bytes] = None
    rc2_bits: Optional[int] = None


@dataclass(frozen=True)
class Pbes2Encryption:
    """A PKCS#5 PBES2 encryption of a PKCS#8 private key."""

    key_derivation_func: Pbkdf2Params = field(default_factory=Pbkdf2Params)
    encryption_scheme: EncryptionScheme = field(default_factory=EncryptionScheme)
    id: str = "pbes2"


EncryptionAlgorithm = Union[LegacyEncryption, Pbes2Encryption]


@dataclass(frozen=True)
class DecomposedKey:
    """A key in its normalized form.

    Attributes:
        format: The wire format the key came from or will be composed into.
        key_algorithm: The key algorithm. A plain string id is accepted and converted.
        key_data: The family-specific key fields.
        encryption_algorithm: The encryption protecting a private key, or `None`.

    """

    format: KeyFormat
    key_algorithm: KeyAlgorithm
    key_data: KeyData
    encryption_algorithm: Optional[EncryptionAlgorithm] = None

    def __post_init__(self):
        """Normalize the format and a string key algorithm."""
        object.__setattr__(self, "format", KeyFormat.get(self.format))

        if isinstance(self.key_algorithm, str):
            object.__setattr__(self, "key_algorithm", KeyAlgorithm(id=self.key_algorithm))
        elif not isinstance(self.key_algorithm, KeyAlgorithm):
            raise UnexpectedType(
                f"Expecting key algorithm to be a string or a KeyAlgorithm, got {type(self.key_algorithm).__name__}"
            )

    def replace(self, **changes) -> "DecomposedKey":
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)
