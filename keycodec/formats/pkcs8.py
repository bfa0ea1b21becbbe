# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""PKCS#8 private keys (RFC 5958), plain `PrivateKeyInfo` or PBES2 protected `EncryptedPrivateKeyInfo`.

The algorithm OID of the `PrivateKeyInfo` selects how the inner `privateKey` octets are read:

- RSA: a PKCS#1 `RSAPrivateKey`, with NULL algorithm parameters.
- EC: a SEC1 `ECPrivateKey`, the named curve is carried in the algorithm parameters.
- Ed25519: a `CurvePrivateKey` (RFC 8410), i.e. the seed is wrapped in a second OCTET STRING.
"""

import logging
from typing import Tuple, Union

from pyasn1.type import univ

from keycodec import cryptoutils, pbeutils
from keycodec.asn1_structures import EncryptedPrivateKeyInfo, PrivateKeyInfo
from keycodec.asn1utils import NULL_DER, decode_der, encode_der, get_optional, is_null_or_absent
from keycodec.config_vars import ComposeOptions, DecomposeOptions
from keycodec.data_objects import DecomposedKey, KeyAlgorithm, PrivateKeyData
from keycodec.exceptions import DecodeAsn1Failed, DecryptionFailed, InvalidInputKey, UnsupportedAlgorithm
from keycodec.formats import key_structures
from keycodec.formats.abstract_format import AbstractKeyFormat
from keycodec.keyenums import KeyFamily, KeyFormat
from keycodec.pemutils import decode_pem_of_type, encode_pem

PKCS8_PEM_TYPE = "PRIVATE KEY"
PKCS8_ENCRYPTED_PEM_TYPE = "ENCRYPTED PRIVATE KEY"

# v1 is `PrivateKeyInfo`, v2 the `OneAsymmetricKey` with an optional public key.
_SUPPORTED_VERSIONS = (0, 1)


def decode_private_key_info(der_data: bytes) -> Tuple[KeyAlgorithm, PrivateKeyData]:
    """Decode a DER encoded `PrivateKeyInfo`.

    :param der_data: The DER encoded structure.
    :return: The key algorithm and the family-specific key data.
    :raises DecodeAsn1Failed: If the structure or the inner key is malformed.
    :raises InvalidInputKey: If the version is unknown or the inner key contradicts the algorithm parameters.
    :raises UnsupportedAlgorithm: If the key algorithm, the curve or the public point is not supported.
    """
    private_key_info = decode_der(der_data, PrivateKeyInfo(), "PrivateKeyInfo")

    version = int(private_key_info["version"])
    if version not in _SUPPORTED_VERSIONS:
        raise InvalidInputKey(f"Unsupported PrivateKeyInfo version {version}")

    alg_id = private_key_info["privateKeyAlgorithm"]
    key_algorithm_id, family = key_structures.classify_key_algorithm_oid(alg_id["algorithm"])
    private_key = private_key_info["privateKey"].asOctets()

    if family is KeyFamily.RSA:
        return KeyAlgorithm(id=key_algorithm_id), key_structures.decode_rsa_private_key(private_key)

    if family is KeyFamily.EC:
        parameters = get_optional(alg_id, "parameters")
        if is_null_or_absent(parameters):
            raise UnsupportedAlgorithm("Named curve must be defined")

        curve_name = key_structures.decode_named_curve(parameters)
        curve_name, key_data = key_structures.decode_ec_private_key(private_key, curve_name)
        return KeyAlgorithm(id=key_algorithm_id, named_curve=curve_name), key_data

    return KeyAlgorithm(id=key_algorithm_id), key_structures.decode_ed25519_private_key(private_key)


def encode_private_key_info(key: DecomposedKey) -> bytes:
    """Encode a decomposed private key as a version 0 `PrivateKeyInfo`.

    :param key: The decomposed private key.
    :return: The DER encoded structure.
    :raises UnsupportedAlgorithm: If the key algorithm or curve is not supported.
    """
    key_algorithm = key.key_algorithm
    family = key_structures.check_key_family(key_algorithm.id, KeyFamily.RSA, KeyFamily.EC, KeyFamily.ED25519)

    private_key_info = PrivateKeyInfo()
    private_key_info["version"] = 0
    private_key_info["privateKeyAlgorithm"]["algorithm"] = key_structures.key_algorithm_oid_for_id(key_algorithm.id)

    if family is KeyFamily.RSA:
        private_key_info["privateKeyAlgorithm"]["parameters"] = univ.Any(NULL_DER)
        private_key = key_structures.encode_rsa_private_key(key.key_data)

    elif family is KeyFamily.EC:
        if key_algorithm.named_curve is None:
            raise UnsupportedAlgorithm("Named curve must be defined")
        private_key_info["privateKeyAlgorithm"]["parameters"] = key_structures.encode_named_curve(
            key_algorithm.named_curve
        )
        private_key = key_structures.encode_ec_private_key(
            key_algorithm.named_curve, key.key_data, include_parameters=False
        )

    else:
        private_key = key_structures.encode_ed25519_private_key(key.key_data)

    private_key_info["privateKey"] = private_key
    return encode_der(private_key_info, "PrivateKeyInfo")


class Pkcs8DerFormat(AbstractKeyFormat):
    """DER encoded `PrivateKeyInfo` or `EncryptedPrivateKeyInfo`."""

    key_format = KeyFormat.PKCS8_DER

    def decompose_private_key(self, data: Union[bytes, str], options: DecomposeOptions) -> DecomposedKey:
        """Decompose a PKCS#8 private key, decrypting it first if it is an `EncryptedPrivateKeyInfo`.

        :param data: The DER encoded key.
        :param options: The decompose options, the password is only used for encrypted keys.
        :return: The decomposed key.
        :raises InvalidInputKey: If the data is neither structure.
        :raises MissingPassword: If the key is encrypted and no password was given.
        :raises DecryptionFailed: If the password is most likely wrong.
        :raises UnsupportedAlgorithm: If an algorithm of the key or its encryption is not supported.
        """
        der_data = self._der_input(data)
        encryption_algorithm = None

        try:
            encrypted_info = decode_der(der_data, EncryptedPrivateKeyInfo(), "EncryptedPrivateKeyInfo")
        except DecodeAsn1Failed:
            logging.debug("Input is not an EncryptedPrivateKeyInfo, decoding it as unencrypted PrivateKeyInfo")
        else:
            try:
                der_data, encryption_algorithm = pbeutils.decrypt_encrypted_private_key_info(
                    encrypted_info["encryptionAlgorithm"],
                    encrypted_info["encryptedData"].asOctets(),
                    options.password,
                )
            except DecodeAsn1Failed as err:
                raise UnsupportedAlgorithm(f"Invalid PBES2 parameters: {err.message}", original_error=err) from err

        try:
            key_algorithm, key_data = decode_private_key_info(der_data)
        except (DecodeAsn1Failed, InvalidInputKey) as err:
            if encryption_algorithm is not None:
                raise DecryptionFailed(cryptoutils.DECRYPTION_FAILED_MSG, original_error=err) from err
            raise InvalidInputKey(err.message, original_error=err) from err

        return DecomposedKey(
            format=self.key_format,
            key_algorithm=key_algorithm,
            key_data=key_data,
            encryption_algorithm=encryption_algorithm,
        )

    def compose_private_key(self, key: DecomposedKey, options: ComposeOptions) -> bytes:
        """Compose a private key as PKCS#8, encrypted with PBES2 if a password is given.

        :param key: The decomposed private key.
        :param options: The compose options.
        :return: The DER encoded `PrivateKeyInfo` or `EncryptedPrivateKeyInfo`.
        :raises MissingPassword: If an encryption algorithm is set but no password was given.
        :raises UnsupportedAlgorithm: If an algorithm of the key or its encryption is not supported.
        """
        pbeutils.ensure_password_for_encryption(options.password, key.encryption_algorithm)
        der_data = encode_private_key_info(key)

        if not options.password:
            return der_data

        alg_id, encrypted_data = pbeutils.encrypt_pbes2(
            der_data, key.encryption_algorithm, options.password, options.defaults
        )
        encrypted_info = EncryptedPrivateKeyInfo()
        encrypted_info["encryptionAlgorithm"]["algorithm"] = alg_id["algorithm"]
        encrypted_info["encryptionAlgorithm"]["parameters"] = alg_id["parameters"]
        encrypted_info["encryptedData"] = encrypted_data
        return encode_der(encrypted_info, "EncryptedPrivateKeyInfo")


class Pkcs8PemFormat(AbstractKeyFormat):
    """`PRIVATE KEY` or `ENCRYPTED PRIVATE KEY` PEM around the PKCS#8 DER structures."""

    key_format = KeyFormat.PKCS8_PEM

    def __init__(self):
        """Initialize the PEM codec on top of the DER codec."""
        self._der_format = Pkcs8DerFormat()

    def decompose_private_key(self, data: Union[bytes, str], options: DecomposeOptions) -> DecomposedKey:
        """Decompose a PKCS#8 PEM, the encryption is carried inside the DER body."""
        block = decode_pem_of_type(data, PKCS8_PEM_TYPE, PKCS8_ENCRYPTED_PEM_TYPE)
        key = self._der_format.decompose_private_key(block.body, options)
        return key.replace(format=self.key_format)

    def compose_private_key(self, key: DecomposedKey, options: ComposeOptions) -> str:
        """Compose a private key as PKCS#8 PEM, the PEM type depends on whether a password is given."""
        der_data = self._der_format.compose_private_key(key, options)
        pem_type = PKCS8_ENCRYPTED_PEM_TYPE if options.password else PKCS8_PEM_TYPE
        return encode_pem(pem_type, der_data)
