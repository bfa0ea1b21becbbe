# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""PKCS#1 RSA private keys (RFC 8017, Appendix A.1.2), as bare DER or as `RSA PRIVATE KEY` PEM.

The PEM variant may be protected with the legacy OpenSSL `DEK-Info` encryption.
"""

import logging
from typing import Union

from keycodec import cryptoutils, pbeutils
from keycodec.config_vars import ComposeOptions, DecomposeOptions
from keycodec.data_objects import DecomposedKey, KeyAlgorithm
from keycodec.exceptions import DecodeAsn1Failed, DecryptionFailed, InvalidInputKey
from keycodec.formats import key_structures
from keycodec.formats.abstract_format import AbstractKeyFormat
from keycodec.keyenums import KeyFamily, KeyFormat
from keycodec.pemutils import decode_pem_of_type, encode_pem

PKCS1_PEM_TYPE = "RSA PRIVATE KEY"


class Pkcs1DerFormat(AbstractKeyFormat):
    """Bare DER encoded `RSAPrivateKey`, without encryption support."""

    key_format = KeyFormat.PKCS1_DER

    def decompose_private_key(self, data: Union[bytes, str], options: DecomposeOptions) -> DecomposedKey:
        """Decompose a DER encoded `RSAPrivateKey`.

        :raises InvalidInputKey: If the data is not an `RSAPrivateKey`.
        """
        der_data = self._der_input(data)
        try:
            key_data = key_structures.decode_rsa_private_key(der_data)
        except DecodeAsn1Failed as err:
            raise InvalidInputKey(err.message, original_error=err) from err

        return DecomposedKey(
            format=self.key_format,
            key_algorithm=KeyAlgorithm(id="rsa-encryption"),
            key_data=key_data,
        )

    def compose_private_key(self, key: DecomposedKey, options: ComposeOptions) -> bytes:
        """Compose an RSA key as DER encoded `RSAPrivateKey`.

        :raises UnsupportedAlgorithm: If the key is not an RSA key or an encryption algorithm is set.
        """
        self._reject_encryption(key)
        key_structures.check_key_family(key.key_algorithm.id, KeyFamily.RSA)
        return key_structures.encode_rsa_private_key(key.key_data)


class Pkcs1PemFormat(AbstractKeyFormat):
    """`RSA PRIVATE KEY` PEM, optionally encrypted with a `DEK-Info` header."""

    key_format = KeyFormat.PKCS1_PEM

    def __init__(self):
        """Initialize the PEM codec on top of the DER codec."""
        self._der_format = Pkcs1DerFormat()

    def decompose_private_key(self, data: Union[bytes, str], options: DecomposeOptions) -> DecomposedKey:
        """Decompose an `RSA PRIVATE KEY` PEM, decrypting it if necessary.

        :raises DecodePemFailed: If the input is not PEM.
        :raises InvalidInputKey: If the PEM has another type or the body is not an `RSAPrivateKey`.
        :raises MissingPassword: If the PEM is encrypted and no password was given.
        :raises DecryptionFailed: If the password is most likely wrong.
        """
        block = decode_pem_of_type(data, PKCS1_PEM_TYPE)

        if not block.is_encrypted:
            key = self._der_format.decompose_private_key(block.body, options)
            return key.replace(format=self.key_format)

        body, encryption_algorithm = pbeutils.decrypt_pem_body(block, options.password)
        try:
            key = self._der_format.decompose_private_key(body, options)
        except InvalidInputKey as err:
            logging.debug("Decrypted PKCS#1 body is not an RSAPrivateKey: %s", err.message)
            raise DecryptionFailed(cryptoutils.DECRYPTION_FAILED_MSG, original_error=err) from err

        return key.replace(format=self.key_format, encryption_algorithm=encryption_algorithm)

    def compose_private_key(self, key: DecomposedKey, options: ComposeOptions) -> str:
        """Compose an RSA key as `RSA PRIVATE KEY` PEM, encrypting it if a password is given.

        :raises MissingPassword: If an encryption algorithm is set but no password was given.
        :raises UnsupportedAlgorithm: If the key is not an RSA key or the encryption is not supported.
        """
        pbeutils.ensure_password_for_encryption(options.password, key.encryption_algorithm)
        der_data = self._der_format.compose_private_key(key.replace(encryption_algorithm=None), options)

        if not options.password:
            return encode_pem(PKCS1_PEM_TYPE, der_data)

        body, headers = pbeutils.encrypt_pem_body(
            der_data, key.encryption_algorithm, options.password, options.defaults
        )
        return encode_pem(PKCS1_PEM_TYPE, body, headers)
