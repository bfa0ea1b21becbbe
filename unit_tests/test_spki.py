# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

import unittest

from cryptography.hazmat.primitives import serialization
from pyasn1.type import univ

from keycodec.asn1_structures import SubjectPublicKeyInfo
from keycodec.asn1utils import decode_der, encode_der
from keycodec.config_vars import ComposeOptions, DecomposeOptions
from keycodec.data_objects import (
    DecomposedKey,
    EcPublicKeyData,
    Ed25519PublicKeyData,
    KeyAlgorithm,
    RsaPublicKeyData,
)
from keycodec.exceptions import InvalidInputKey, UnexpectedType, UnsupportedAlgorithm
from keycodec.formats.spki import SpkiDerFormat, SpkiPemFormat
from keycodec.keyenums import KeyFormat
from unit_tests.utils_for_test import (
    ec_public_coordinates,
    generate_ec_key,
    generate_ed25519_key,
    generate_rsa_key,
    to_pkcs1_public,
    to_spki,
)


class TestSpki(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.rsa_key = generate_rsa_key()
        cls.ec_key = generate_ec_key("secp384r1")
        cls.ed_key = generate_ed25519_key()
        cls.der_format = SpkiDerFormat()
        cls.pem_format = SpkiPemFormat()

    def test_rsa_public_key(self):
        """
        GIVEN an RSA public key as `PUBLIC KEY` PEM.
        WHEN decomposing and composing it.
        THEN modulus and exponent are read and the output is byte-identical.
        """
        pem = to_spki(self.rsa_key.public_key())
        key = self.pem_format.decompose_public_key(pem, DecomposeOptions())

        self.assertEqual(key.format, KeyFormat.SPKI_PEM)
        self.assertEqual(key.key_algorithm, KeyAlgorithm(id="rsa-encryption"))
        self.assertEqual(
            key.key_data, RsaPublicKeyData(modulus=self.rsa_key.public_key().public_numbers().n, public_exponent=65537)
        )
        self.assertEqual(self.pem_format.compose_public_key(key, ComposeOptions()), pem)

    def test_ec_public_key(self):
        """
        GIVEN an EC public key as DER.
        WHEN decomposing and composing it.
        THEN the curve and coordinates are read and the output is byte-identical.
        """
        der_data = to_spki(self.ec_key.public_key(), serialization.Encoding.DER)
        key = self.der_format.decompose_public_key(der_data, DecomposeOptions())

        x, y = ec_public_coordinates(self.ec_key)
        self.assertEqual(key.key_algorithm, KeyAlgorithm(id="ec-public-key", named_curve="secp384r1"))
        self.assertEqual(key.key_data, EcPublicKeyData(x=x, y=y))
        self.assertEqual(self.der_format.compose_public_key(key, ComposeOptions()), der_data)

    def test_ed25519_public_key(self):
        """
        GIVEN an Ed25519 public key as PEM.
        WHEN decomposing and composing it.
        THEN the 32 public key bytes are read and the output is byte-identical.
        """
        pem = to_spki(self.ed_key.public_key())
        key = self.pem_format.decompose_public_key(pem, DecomposeOptions())

        raw = self.ed_key.public_key().public_bytes(serialization.Encoding.Raw, serialization.PublicFormat.Raw)
        self.assertEqual(key.key_algorithm, KeyAlgorithm(id="ed25519"))
        self.assertEqual(key.key_data, Ed25519PublicKeyData(public_bytes=raw))
        self.assertEqual(self.pem_format.compose_public_key(key, ComposeOptions()), pem)

    def test_compose_from_values(self):
        """
        GIVEN a public key built from its values, with a curve alias as name.
        WHEN composing it as `PUBLIC KEY` PEM.
        THEN the PEM loads as the same public key.
        """
        ec_key = generate_ec_key("prime256v1")
        x, y = ec_public_coordinates(ec_key)
        key = DecomposedKey(
            format="spki-pem",
            key_algorithm=KeyAlgorithm(id="ec", named_curve="secp256r1"),
            key_data=EcPublicKeyData(x=x, y=y),
        )
        pem = self.pem_format.compose_public_key(key, ComposeOptions())
        loaded = serialization.load_pem_public_key(pem.encode("ascii"))
        self.assertEqual(loaded.public_numbers(), ec_key.public_key().public_numbers())

    def test_compressed_point(self):
        """
        GIVEN an EC public key with a compressed point.
        WHEN decomposing it.
        THEN `UnsupportedAlgorithm` is raised.
        """
        der_data = to_spki(self.ec_key.public_key(), serialization.Encoding.DER)
        compressed = self.ec_key.public_key().public_bytes(
            serialization.Encoding.X962, serialization.PublicFormat.CompressedPoint
        )
        spki = decode_der(der_data, SubjectPublicKeyInfo())
        spki["subjectPublicKey"] = univ.BitString(hexValue=compressed.hex())

        with self.assertRaises(UnsupportedAlgorithm) as context:
            self.der_format.decompose_public_key(encode_der(spki), DecomposeOptions())
        self.assertEqual(context.exception.message, "Compressed key points are not supported")

    def test_compose_without_y(self):
        """
        GIVEN an EC public key without the y coordinate.
        WHEN composing it.
        THEN `UnsupportedAlgorithm` is raised.
        """
        x, _ = ec_public_coordinates(self.ec_key)
        key = DecomposedKey(
            format="spki-der",
            key_algorithm=KeyAlgorithm(id="ec-public-key", named_curve="secp384r1"),
            key_data=EcPublicKeyData(x=x),
        )
        with self.assertRaises(UnsupportedAlgorithm) as context:
            self.der_format.compose_public_key(key, ComposeOptions())
        self.assertEqual(context.exception.message, "Uncompressed key points are required (y must be specified)")

    def test_compose_invalid_keys(self):
        """
        GIVEN public keys with a missing curve, a short Ed25519 key and mismatched key data.
        WHEN composing them.
        THEN `UnsupportedAlgorithm` or `UnexpectedType` is raised.
        """
        cases = [
            (
                KeyAlgorithm(id="ec-public-key"),
                EcPublicKeyData(x=bytes(32), y=bytes(32)),
                UnsupportedAlgorithm,
                "Named curve must be defined",
            ),
            (
                KeyAlgorithm(id="ed25519"),
                Ed25519PublicKeyData(public_bytes=bytes(31)),
                UnsupportedAlgorithm,
                "Expecting Ed25519 key to have 32 bytes, got 31 instead",
            ),
            (
                KeyAlgorithm(id="ed25519"),
                RsaPublicKeyData(modulus=3, public_exponent=65537),
                UnexpectedType,
                "Expecting key data to be Ed25519PublicKeyData, got RsaPublicKeyData",
            ),
            (
                KeyAlgorithm(id="x25519"),
                Ed25519PublicKeyData(public_bytes=bytes(32)),
                UnsupportedAlgorithm,
                "Unsupported key algorithm id 'x25519'",
            ),
        ]
        for key_algorithm, key_data, error_cls, message in cases:
            with self.subTest(message=message):
                key = DecomposedKey(format="spki-der", key_algorithm=key_algorithm, key_data=key_data)
                with self.assertRaises(error_cls) as context:
                    self.der_format.compose_public_key(key, ComposeOptions())
                self.assertEqual(context.exception.message, message)

    def test_decompose_other_input(self):
        """
        GIVEN an `RSA PUBLIC KEY` as PEM and DER.
        WHEN decomposing it as SubjectPublicKeyInfo.
        THEN a recoverable `InvalidInputKey` is raised.
        """
        cases = [
            (self.pem_format, to_pkcs1_public(self.rsa_key.public_key())),
            (self.der_format, to_pkcs1_public(self.rsa_key.public_key(), serialization.Encoding.DER)),
        ]
        for codec, data in cases:
            with self.subTest(codec=codec.key_format.value):
                with self.assertRaises(InvalidInputKey) as context:
                    codec.decompose_public_key(data, DecomposeOptions())
                self.assertTrue(context.exception.recoverable)

    def test_private_key_not_supported(self):
        """
        GIVEN the SubjectPublicKeyInfo codec.
        WHEN decomposing a private key with it.
        THEN `UnsupportedAlgorithm` is raised.
        """
        with self.assertRaises(UnsupportedAlgorithm) as context:
            self.der_format.decompose_private_key(b"\x30\x00", DecomposeOptions())
        self.assertEqual(context.exception.message, "spki-der does not support private keys")


if __name__ == "__main__":
    unittest.main()
