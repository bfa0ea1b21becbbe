# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Raw keys: the family-specific DER structures without an algorithm-identifying envelope.

Private keys are a PKCS#1 `RSAPrivateKey` or a SEC1 `ECPrivateKey`, public keys a PKCS#1 `RSAPublicKey`.
As DER the family is found by trying each one. As PEM it is read from the type label, e.g. `EC PRIVATE KEY`.
"""

import logging
import re
from typing import Union

from keycodec import cryptoutils, pbeutils
from keycodec.config_vars import ComposeOptions, DecomposeOptions
from keycodec.data_objects import DecomposedKey, KeyAlgorithm
from keycodec.exceptions import (
    DecodeAsn1Failed,
    DecryptionFailed,
    InvalidInputKey,
    KeyCodecError,
    UnsupportedAlgorithm,
)
from keycodec.formats import key_structures
from keycodec.formats.abstract_format import AbstractKeyFormat, DecomposeResult, try_candidates
from keycodec.keyenums import KeyFamily, KeyFormat
from keycodec.pemutils import decode_pem, encode_pem

RAW_PRIVATE_PEM_TYPE = re.compile(r"^(\S+?) PRIVATE KEY$")
RAW_PUBLIC_PEM_TYPE = re.compile(r"^(\S+?) PUBLIC KEY$")

RAW_PRIVATE_FAMILIES = (KeyFamily.RSA, KeyFamily.EC)
RAW_PUBLIC_FAMILIES = (KeyFamily.RSA,)


def decode_raw_private_key(der_data: bytes, family: KeyFamily) -> DecomposedKey:
    """Decode a raw private key of a known family.

    :param der_data: The DER encoded `RSAPrivateKey` or `ECPrivateKey`.
    :param family: The key family.
    :return: The decomposed key, with the format set to "raw-der".
    :raises DecodeAsn1Failed: If the data is not the family's structure.
    """
    if family is KeyFamily.RSA:
        key_data = key_structures.decode_rsa_private_key(der_data)
        return DecomposedKey(format=KeyFormat.RAW_DER, key_algorithm="rsa-encryption", key_data=key_data)

    curve_name, key_data = key_structures.decode_ec_private_key(der_data)
    return DecomposedKey(
        format=KeyFormat.RAW_DER,
        key_algorithm=KeyAlgorithm(id="ec-public-key", named_curve=curve_name),
        key_data=key_data,
    )


def encode_raw_private_key(key: DecomposedKey) -> bytes:
    """Encode a private key as `RSAPrivateKey` or as `ECPrivateKey` with the named curve."""
    family = key_structures.check_key_family(key.key_algorithm.id, *RAW_PRIVATE_FAMILIES)

    if family is KeyFamily.RSA:
        return key_structures.encode_rsa_private_key(key.key_data)

    if key.key_algorithm.named_curve is None:
        raise UnsupportedAlgorithm("Named curve must be defined")
    return key_structures.encode_ec_private_key(key.key_algorithm.named_curve, key.key_data, include_parameters=True)


def _family_from_pem_type(pem_type: str, pattern: re.Pattern, supported: tuple) -> KeyFamily:
    """Return the key family named by a raw PEM type label, e.g. `EC` for `EC PRIVATE KEY`."""
    label = pattern.fullmatch(pem_type).group(1)
    for family in supported:
        if family.pem_label == label.upper():
            return family
    raise UnsupportedAlgorithm(f"Unsupported key type '{label}'")


class RawDerFormat(AbstractKeyFormat):
    """Raw DER keys, without encryption support."""

    key_format = KeyFormat.RAW_DER

    def _try_family(self, der_data: bytes, family: KeyFamily) -> DecomposeResult:
        try:
            return DecomposeResult(key=decode_raw_private_key(der_data, family))
        except KeyCodecError as err:
            return DecomposeResult(error=err)

    def decompose_private_key(self, data: Union[bytes, str], options: DecomposeOptions) -> DecomposedKey:
        """Decompose a raw DER private key by trying each supported key family in turn.

        :param data: The DER encoded key.
        :param options: The decompose options, unused.
        :return: The decomposed key.
        :raises AggregatedError: If no key family recognized the data, with the errors keyed by family.
        :raises UnsupportedAlgorithm: If a family recognized the data but the key is not supported.
        """
        der_data = self._der_input(data)
        candidates = [(family.value, family) for family in RAW_PRIVATE_FAMILIES]
        return try_candidates(
            candidates,
            lambda family: self._try_family(der_data, family),
            message="No key type was able to recognize the input key",
        )

    def compose_private_key(self, key: DecomposedKey, options: ComposeOptions) -> bytes:
        """Compose a private key as raw DER.

        :raises UnsupportedAlgorithm: If the key is neither RSA nor EC or an encryption algorithm is set.
        """
        self._reject_encryption(key)
        return encode_raw_private_key(key)

    def decompose_public_key(self, data: Union[bytes, str], options: DecomposeOptions) -> DecomposedKey:
        """Decompose a DER encoded `RSAPublicKey`."""
        der_data = self._der_input(data)
        try:
            key_data = key_structures.decode_rsa_public_key(der_data)
        except DecodeAsn1Failed as err:
            raise InvalidInputKey(err.message, original_error=err) from err
        return DecomposedKey(format=self.key_format, key_algorithm="rsa-encryption", key_data=key_data)

    def compose_public_key(self, key: DecomposedKey, options: ComposeOptions) -> bytes:
        """Compose an RSA public key as DER encoded `RSAPublicKey`."""
        key_structures.check_key_family(key.key_algorithm.id, *RAW_PUBLIC_FAMILIES)
        return key_structures.encode_rsa_public_key(key.key_data)


class RawPemFormat(AbstractKeyFormat):
    """Raw PEM keys, e.g. `EC PRIVATE KEY` or `RSA PUBLIC KEY`.

    Private keys may be encrypted with a `DEK-Info` header, as for PKCS#1.
    """

    key_format = KeyFormat.RAW_PEM

    def __init__(self):
        """Initialize the PEM codec on top of the DER codec."""
        self._der_format = RawDerFormat()

    def decompose_private_key(self, data: Union[bytes, str], options: DecomposeOptions) -> DecomposedKey:
        """Decompose the first raw private key PEM block, decrypting it if necessary.

        :param data: The PEM text.
        :param options: The decompose options.
        :return: The decomposed key.
        :raises DecodePemFailed: If there is no raw private key PEM block.
        :raises UnsupportedAlgorithm: If the type label names an unsupported key family.
        :raises MissingPassword: If the PEM is encrypted and no password was given.
        :raises DecryptionFailed: If the password is most likely wrong.
        """
        block = decode_pem(data, RAW_PRIVATE_PEM_TYPE)
        family = _family_from_pem_type(block.pem_type, RAW_PRIVATE_PEM_TYPE, RAW_PRIVATE_FAMILIES)
        logging.debug("Raw PEM block has key type %s", family.value)

        if not block.is_encrypted:
            try:
                key = decode_raw_private_key(block.body, family)
            except DecodeAsn1Failed as err:
                raise InvalidInputKey(err.message, original_error=err) from err
            return key.replace(format=self.key_format)

        body, encryption_algorithm = pbeutils.decrypt_pem_body(block, options.password)
        try:
            key = decode_raw_private_key(body, family)
        except (DecodeAsn1Failed, InvalidInputKey) as err:
            raise DecryptionFailed(cryptoutils.DECRYPTION_FAILED_MSG, original_error=err) from err

        return key.replace(format=self.key_format, encryption_algorithm=encryption_algorithm)

    def compose_private_key(self, key: DecomposedKey, options: ComposeOptions) -> str:
        """Compose a private key as raw PEM, encrypting it if a password is given.

        :raises MissingPassword: If an encryption algorithm is set but no password was given.
        :raises UnsupportedAlgorithm: If the key is neither RSA nor EC or the encryption is not supported.
        """
        pbeutils.ensure_password_for_encryption(options.password, key.encryption_algorithm)
        family = key_structures.check_key_family(key.key_algorithm.id, *RAW_PRIVATE_FAMILIES)
        pem_type = f"{family.pem_label} PRIVATE KEY"
        der_data = encode_raw_private_key(key)

        if not options.password:
            return encode_pem(pem_type, der_data)

        body, headers = pbeutils.encrypt_pem_body(
            der_data, key.encryption_algorithm, options.password, options.defaults
        )
        return encode_pem(pem_type, body, headers)

    def decompose_public_key(self, data: Union[bytes, str], options: DecomposeOptions) -> DecomposedKey:
        """Decompose the first raw public key PEM block, only `RSA PUBLIC KEY` is supported."""
        block = decode_pem(data, RAW_PUBLIC_PEM_TYPE)
        _family_from_pem_type(block.pem_type, RAW_PUBLIC_PEM_TYPE, RAW_PUBLIC_FAMILIES)
        return self._der_format.decompose_public_key(block.body, options).replace(format=self.key_format)

    def compose_public_key(self, key: DecomposedKey, options: ComposeOptions) -> str:
        """Compose an RSA public key as `RSA PUBLIC KEY` PEM."""
        der_data = self._der_format.compose_public_key(key, options)
        return encode_pem(f"{KeyFamily.RSA.pem_label} PUBLIC KEY", der_data)
