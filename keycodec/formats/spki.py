# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""`SubjectPublicKeyInfo` public keys (RFC 5280, Section 4.1.2.7), as DER or as `PUBLIC KEY` PEM."""

from typing import Union

from pyasn1.type import univ

from keycodec.asn1_structures import SubjectPublicKeyInfo
from keycodec.asn1utils import NULL_DER, decode_der, encode_der, get_optional, is_null_or_absent
from keycodec.config_vars import ComposeOptions, DecomposeOptions
from keycodec.data_objects import (
    DecomposedKey,
    EcPublicKeyData,
    Ed25519PublicKeyData,
    KeyAlgorithm,
)
from keycodec.exceptions import DecodeAsn1Failed, InvalidInputKey, UnsupportedAlgorithm
from keycodec.formats import key_structures
from keycodec.formats.abstract_format import AbstractKeyFormat
from keycodec.keyenums import KeyFamily, KeyFormat
from keycodec.pemutils import decode_pem_of_type, encode_pem

SPKI_PEM_TYPE = "PUBLIC KEY"


class SpkiDerFormat(AbstractKeyFormat):
    """DER encoded `SubjectPublicKeyInfo`."""

    key_format = KeyFormat.SPKI_DER

    def decompose_public_key(self, data: Union[bytes, str], options: DecomposeOptions) -> DecomposedKey:
        """Decompose a DER encoded `SubjectPublicKeyInfo`.

        :param data: The DER encoded key.
        :param options: The decompose options, unused.
        :return: The decomposed public key.
        :raises InvalidInputKey: If the data is not a `SubjectPublicKeyInfo`.
        :raises UnsupportedAlgorithm: If the key algorithm, the curve or the point are not supported.
        """
        der_data = self._der_input(data)
        try:
            spki = decode_der(der_data, SubjectPublicKeyInfo(), "SubjectPublicKeyInfo")
        except DecodeAsn1Failed as err:
            raise InvalidInputKey(err.message, original_error=err) from err

        alg_id = spki["algorithm"]
        key_algorithm_id, family = key_structures.classify_key_algorithm_oid(alg_id["algorithm"])
        public_key = spki["subjectPublicKey"].asOctets()

        if family is KeyFamily.RSA:
            try:
                key_data = key_structures.decode_rsa_public_key(public_key)
            except DecodeAsn1Failed as err:
                raise InvalidInputKey(err.message, original_error=err) from err
            key_algorithm = KeyAlgorithm(id=key_algorithm_id)

        elif family is KeyFamily.EC:
            parameters = get_optional(alg_id, "parameters")
            if is_null_or_absent(parameters):
                raise UnsupportedAlgorithm("Named curve must be defined")

            curve_name = key_structures.decode_named_curve(parameters)
            x, y = key_structures.split_ec_point(curve_name, public_key)
            key_data = EcPublicKeyData(x=x, y=y)
            key_algorithm = KeyAlgorithm(id=key_algorithm_id, named_curve=curve_name)

        else:
            key_data = Ed25519PublicKeyData(public_bytes=key_structures.check_ed25519_key(public_key))
            key_algorithm = KeyAlgorithm(id=key_algorithm_id)

        return DecomposedKey(format=self.key_format, key_algorithm=key_algorithm, key_data=key_data)

    def compose_public_key(self, key: DecomposedKey, options: ComposeOptions) -> bytes:
        """Compose a public key as DER encoded `SubjectPublicKeyInfo`.

        :param key: The decomposed public key.
        :param options: The compose options, unused.
        :return: The DER encoded structure.
        :raises UnsupportedAlgorithm: If the key algorithm or curve is not supported.
        """
        key_algorithm = key.key_algorithm
        family = key_structures.check_key_family(key_algorithm.id, KeyFamily.RSA, KeyFamily.EC, KeyFamily.ED25519)

        spki = SubjectPublicKeyInfo()
        spki["algorithm"]["algorithm"] = key_structures.key_algorithm_oid_for_id(key_algorithm.id)

        if family is KeyFamily.RSA:
            spki["algorithm"]["parameters"] = univ.Any(NULL_DER)
            public_key = key_structures.encode_rsa_public_key(key.key_data)

        elif family is KeyFamily.EC:
            if key_algorithm.named_curve is None:
                raise UnsupportedAlgorithm("Named curve must be defined")
            key_structures.ensure_key_data(key.key_data, EcPublicKeyData)
            spki["algorithm"]["parameters"] = key_structures.encode_named_curve(key_algorithm.named_curve)
            public_key = key_structures.join_ec_point(key_algorithm.named_curve, key.key_data.x, key.key_data.y)

        else:
            key_structures.ensure_key_data(key.key_data, Ed25519PublicKeyData)
            public_key = key_structures.check_ed25519_key(key.key_data.public_bytes)

        spki["subjectPublicKey"] = univ.BitString(hexValue=public_key.hex())
        return encode_der(spki, "SubjectPublicKeyInfo")


class SpkiPemFormat(AbstractKeyFormat):
    """`PUBLIC KEY` PEM around a DER encoded `SubjectPublicKeyInfo`."""

    key_format = KeyFormat.SPKI_PEM

    def __init__(self):
        """Initialize the PEM codec on top of the DER codec."""
        self._der_format = SpkiDerFormat()

    def decompose_public_key(self, data: Union[bytes, str], options: DecomposeOptions) -> DecomposedKey:
        """Decompose a `PUBLIC KEY` PEM."""
        block = decode_pem_of_type(data, SPKI_PEM_TYPE)
        return self._der_format.decompose_public_key(block.body, options).replace(format=self.key_format)

    def compose_public_key(self, key: DecomposedKey, options: ComposeOptions) -> str:
        """Compose a public key as `PUBLIC KEY` PEM."""
        return encode_pem(SPKI_PEM_TYPE, self._der_format.compose_public_key(key, options))
