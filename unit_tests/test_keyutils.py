# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

import unittest

from cryptography.hazmat.primitives import serialization

from keycodec.config_vars import EncryptionDefaults
from keycodec.data_objects import DecomposedKey, KeyAlgorithm, Pbes2Encryption
from keycodec.exceptions import (
    AggregatedError,
    DecodePemFailed,
    InvalidInputKey,
    MissingPassword,
    UnexpectedType,
    UnsupportedAlgorithm,
    UnsupportedFormat,
)
from keycodec.keyenums import KeyFormat
from keycodec.keyutils import (
    PRIVATE_FORMATS,
    PUBLIC_FORMATS,
    compose_private_key,
    compose_public_key,
    decompose_private_key,
    decompose_public_key,
)
from keycodec.pemutils import decode_pem, encode_pem
from unit_tests.utils_for_test import (
    PASSWORD,
    build_multi_prime_rsa_der,
    generate_ec_key,
    generate_ed25519_key,
    generate_rsa_key,
    replace_pbes2_iv,
    to_pkcs1_public,
    to_pkcs8,
    to_spki,
    to_traditional,
)

DER = serialization.Encoding.DER


class TestDecomposePrivateKey(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.rsa_key = generate_rsa_key()
        cls.ec_key = generate_ec_key()
        cls.ed_key = generate_ed25519_key()

    def test_detects_format(self):
        """
        GIVEN private keys in every supported format.
        WHEN decomposing them without a format.
        THEN the format of the input is detected.
        """
        cases = [
            (to_traditional(self.rsa_key), KeyFormat.PKCS1_PEM),
            (to_pkcs8(self.ec_key), KeyFormat.PKCS8_PEM),
            (to_pkcs8(self.ed_key), KeyFormat.PKCS8_PEM),
            (to_traditional(self.ec_key), KeyFormat.RAW_PEM),
            (to_traditional(self.rsa_key, DER), KeyFormat.PKCS1_DER),
            (to_pkcs8(self.rsa_key, DER), KeyFormat.PKCS8_DER),
            (to_traditional(self.ec_key, DER), KeyFormat.RAW_DER),
        ]
        for input_key, expected_format in cases:
            with self.subTest(format=expected_format.value):
                key = decompose_private_key(input_key)
                self.assertEqual(key.format, expected_format)

    def test_pem_as_bytes_and_bytearray(self):
        """
        GIVEN a PEM as ASCII bytes and DER as bytearray.
        WHEN decomposing them.
        THEN the same key is returned as for the text and bytes inputs.
        """
        pem = to_traditional(self.rsa_key)
        self.assertEqual(decompose_private_key(pem.encode("ascii")), decompose_private_key(pem))

        der_data = to_traditional(self.rsa_key, DER)
        self.assertEqual(decompose_private_key(bytearray(der_data)), decompose_private_key(der_data))

    def test_format_selection(self):
        """
        GIVEN a PKCS#8 DER key.
        WHEN decomposing it with a single format, a list of formats and an upper case format name.
        THEN only the given formats are tried.
        """
        der_data = to_pkcs8(self.rsa_key, DER)
        self.assertEqual(decompose_private_key(der_data, format="PKCS8-DER").format, KeyFormat.PKCS8_DER)
        self.assertEqual(decompose_private_key(der_data, format=KeyFormat.PKCS8_DER).format, KeyFormat.PKCS8_DER)
        key = decompose_private_key(der_data, format=["pkcs1-der", "pkcs8-der"])
        self.assertEqual(key.format, KeyFormat.PKCS8_DER)

    def test_single_format_error_is_not_aggregated(self):
        """
        GIVEN a PKCS#8 DER key.
        WHEN decomposing it with a single other format, and with a list holding that format.
        THEN the format error is raised as-is, or aggregated for the list.
        """
        der_data = to_pkcs8(self.rsa_key, DER)
        with self.assertRaises(InvalidInputKey):
            decompose_private_key(der_data, format="pkcs1-der")

        with self.assertRaises(AggregatedError) as context:
            decompose_private_key(der_data, format=["pkcs1-der"])
        self.assertEqual(list(context.exception.errors), ["pkcs1-der"])

    def test_aggregated_error(self):
        """
        GIVEN an input which is not a key.
        WHEN decomposing it without a format.
        THEN an `AggregatedError` holds a recoverable error of every private format in the order they were tried.
        """
        with self.assertRaises(AggregatedError) as context:
            decompose_private_key(b"hello")

        error = context.exception
        self.assertEqual(error.message, "No format was able to recognize the input key")
        self.assertEqual(list(error.errors), [key_format.value for key_format in PRIVATE_FORMATS])
        self.assertTrue(error.recoverable)
        self.assertIsInstance(error.errors["pkcs1-pem"], DecodePemFailed)
        self.assertIsInstance(error.errors["raw-der"], AggregatedError)
        self.assertEqual(list(error.errors["raw-der"].errors), ["rsa", "ec"])

    def test_non_recoverable_error_stops_format_detection(self):
        """
        GIVEN an encrypted PKCS#8 PEM.
        WHEN decomposing it without a password.
        THEN the `MissingPassword` of the PKCS#8 codec is raised instead of an aggregated error.
        """
        with self.assertRaises(MissingPassword):
            decompose_private_key(to_pkcs8(self.ec_key, password=PASSWORD))

    def test_malformed_encryption_stops_format_detection(self):
        """
        GIVEN encrypted keys whose PBES2 or `DEK-Info` parameters are malformed.
        WHEN decomposing them with the password and without a format.
        THEN the `UnsupportedAlgorithm` of the matching format is raised instead of an aggregated error.
        """
        pkcs8_der = replace_pbes2_iv(to_pkcs8(self.rsa_key, DER, PASSWORD), bytes(15))
        block = decode_pem(to_traditional(self.rsa_key, password=PASSWORD))
        dek_info_name, iv_hex = block.headers["DEK-Info"].split(",")
        short_iv_headers = {"Proc-Type": "4,ENCRYPTED", "DEK-Info": f"{dek_info_name},{iv_hex[:-2]}"}

        cases = [
            (pkcs8_der, "Invalid PBES2 parameters: Failed to decode AES-IV"),
            (encode_pem("ENCRYPTED PRIVATE KEY", pkcs8_der), "Invalid PBES2 parameters: Failed to decode AES-IV"),
            (encode_pem(block.pem_type, block.body, short_iv_headers),
             "Expecting DEK-Info IV to have 16 bytes, got 15"),
            (encode_pem(block.pem_type, block.body, {"Proc-Type": "4,ENCRYPTED"}),
             "Encrypted PEM is missing the DEK-Info header"),
        ]
        for input_key, message in cases:
            with self.subTest(message=message, input_type=type(input_key).__name__):
                with self.assertRaises(UnsupportedAlgorithm) as context:
                    decompose_private_key(input_key, password=PASSWORD)
                self.assertEqual(context.exception.message, message)

    def test_text_password(self):
        """
        GIVEN an encrypted PKCS#1 PEM.
        WHEN decomposing it with the password as text.
        THEN the password is UTF-8 encoded and the key is decrypted.
        """
        key = decompose_private_key(to_traditional(self.rsa_key, password=PASSWORD), password="password")
        self.assertEqual(key.key_data.private_exponent, self.rsa_key.private_numbers().d)

    def test_unexpected_types(self):
        """
        GIVEN an input key, a password and formats of unsupported types.
        WHEN decomposing.
        THEN `UnexpectedType` is raised.
        """
        pem = to_traditional(self.rsa_key)
        cases = [
            (lambda: decompose_private_key(1234), "Expecting input key to be one of: bytes, bytearray, str"),
            (lambda: decompose_private_key(pem, password=1234), "Expecting password to be one of: bytes, str"),
            (lambda: decompose_private_key(pem, format=1234), "Expecting format to be a string"),
            (lambda: decompose_private_key(pem, format=[1234]), "Expecting format to be a string"),
            (lambda: decompose_private_key(pem, format=[]), "Expecting at least one format"),
        ]
        for call, message in cases:
            with self.subTest(message=message):
                with self.assertRaises(UnexpectedType) as context:
                    call()
                self.assertEqual(context.exception.message, message)

    def test_unsupported_formats(self):
        """
        GIVEN an unknown format and a public key format.
        WHEN decomposing a private key with them.
        THEN `UnsupportedFormat` names the format.
        """
        pem = to_traditional(self.rsa_key)
        for key_format in ["pkcs12-der", "spki-pem"]:
            with self.subTest(format=key_format):
                with self.assertRaises(UnsupportedFormat) as context:
                    decompose_private_key(pem, format=key_format)
                self.assertEqual(context.exception.message, f"Unsupported format '{key_format}'")
                self.assertEqual(context.exception.key_format, key_format)


class TestDecomposePublicKey(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.rsa_key = generate_rsa_key()
        cls.ec_key = generate_ec_key("secp384r1")

    def test_detects_format(self):
        """
        GIVEN public keys in every supported format.
        WHEN decomposing them without a format.
        THEN the format of the input is detected.
        """
        public_key = self.rsa_key.public_key()
        cases = [
            (to_spki(self.ec_key.public_key()), KeyFormat.SPKI_PEM),
            (to_pkcs1_public(public_key), KeyFormat.RAW_PEM),
            (to_spki(public_key, DER), KeyFormat.SPKI_DER),
            (to_pkcs1_public(public_key, DER), KeyFormat.RAW_DER),
        ]
        for input_key, expected_format in cases:
            with self.subTest(format=expected_format.value):
                self.assertEqual(decompose_public_key(input_key).format, expected_format)

    def test_aggregated_error(self):
        """
        GIVEN a private key.
        WHEN decomposing it as public key.
        THEN an `AggregatedError` holds an error of every public format.
        """
        with self.assertRaises(AggregatedError) as context:
            decompose_public_key(to_pkcs8(self.rsa_key))
        self.assertEqual(list(context.exception.errors), [key_format.value for key_format in PUBLIC_FORMATS])

    def test_private_format(self):
        """
        GIVEN a private key format.
        WHEN decomposing a public key with it.
        THEN `UnsupportedFormat` is raised.
        """
        with self.assertRaises(UnsupportedFormat):
            decompose_public_key(to_spki(self.rsa_key.public_key()), format="pkcs8-pem")


class TestCompose(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.rsa_key = generate_rsa_key()
        cls.ec_key = generate_ec_key()

    def test_transcode_private_keys(self):
        """
        GIVEN decomposed RSA and EC keys.
        WHEN composing them into every private key format they support.
        THEN the output decomposes to the same key data and loads with `cryptography`.
        """
        for private_key in [self.rsa_key, self.ec_key]:
            key = decompose_private_key(to_traditional(private_key))
            for key_format in PRIVATE_FORMATS:
                if key.key_algorithm.id == "ec-public-key" and key_format.value.startswith("pkcs1"):
                    continue
                with self.subTest(key_algorithm=key.key_algorithm.id, format=key_format.value):
                    encoded = compose_private_key(key.replace(format=key_format))
                    self.assertIsInstance(encoded, str if key_format.is_pem else bytes)
                    self.assertEqual(decompose_private_key(encoded, format=key_format).key_data, key.key_data)

                    if key_format.is_pem:
                        loaded = serialization.load_pem_private_key(encoded.encode("ascii"), password=None)
                    else:
                        loaded = serialization.load_der_private_key(encoded, password=None)
                    self.assertEqual(loaded.private_numbers(), private_key.private_numbers())

    def test_transcode_public_key(self):
        """
        GIVEN an RSA public key as `PUBLIC KEY` PEM.
        WHEN composing it as `RSA PUBLIC KEY` PEM.
        THEN the output equals the PKCS#1 serialization of the key.
        """
        key = decompose_public_key(to_spki(self.rsa_key.public_key()))
        pem = compose_public_key(key.replace(format="raw-pem"))
        self.assertEqual(pem, to_pkcs1_public(self.rsa_key.public_key()))

    def test_transcode_encrypted_key(self):
        """
        GIVEN an encrypted `RSA PRIVATE KEY` PEM that was decomposed.
        WHEN composing it as PKCS#8 with the password, before and after clearing its encryption algorithm.
        THEN the legacy encryption is rejected, and once cleared the PBES2 defaults are used.
        """
        key = decompose_private_key(to_traditional(self.rsa_key, password=PASSWORD), password=PASSWORD)
        key = key.replace(format="pkcs8-pem")

        with self.assertRaises(UnsupportedAlgorithm) as context:
            compose_private_key(key, password=PASSWORD)
        self.assertEqual(context.exception.message, "Unsupported encryption algorithm id 'aes256-cbc'")

        defaults = EncryptionDefaults(pbkdf2_iterations=1000)
        pem = compose_private_key(key.replace(encryption_algorithm=None), password=PASSWORD, defaults=defaults)
        decrypted = decompose_private_key(pem, password=PASSWORD)
        self.assertEqual(decrypted.format, KeyFormat.PKCS8_PEM)
        self.assertIsInstance(decrypted.encryption_algorithm, Pbes2Encryption)
        self.assertEqual(decrypted.key_data, key.key_data)

    def test_encryption_defaults(self):
        """
        GIVEN a decomposed key without encryption parameters.
        WHEN composing it as PKCS#8 with a text password and custom defaults.
        THEN the defaults are used and the key decomposes with the password.
        """
        key = decompose_private_key(to_pkcs8(self.ec_key))
        defaults = EncryptionDefaults(pbes2_cipher="aes128-cbc", pbkdf2_prf="hmac-with-sha1", pbkdf2_iterations=1000)
        pem = compose_private_key(key, password="password", defaults=defaults)

        decrypted = decompose_private_key(pem, password=PASSWORD)
        self.assertIsInstance(decrypted.encryption_algorithm, Pbes2Encryption)
        self.assertEqual(decrypted.encryption_algorithm.encryption_scheme.id, "aes128-cbc")
        self.assertEqual(decrypted.encryption_algorithm.key_derivation_func.prf, "hmac-with-sha1")
        self.assertEqual(decrypted.encryption_algorithm.key_derivation_func.iteration_count, 1000)
        self.assertEqual(decrypted.key_data, key.key_data)

    def test_multi_prime_rsa(self):
        """
        GIVEN a multi-prime RSA key.
        WHEN decomposing it and composing it as PKCS#8 and raw PEM.
        THEN the additional primes survive the transcoding.
        """
        for num_primes in [3, 4]:
            with self.subTest(num_primes=num_primes):
                key = decompose_private_key(build_multi_prime_rsa_der(num_primes))
                self.assertEqual(key.format, KeyFormat.PKCS1_DER)
                for key_format in ["pkcs8-der", "raw-pem"]:
                    encoded = compose_private_key(key.replace(format=key_format))
                    self.assertEqual(decompose_private_key(encoded, format=key_format).key_data, key.key_data)

    def test_key_algorithm_as_text(self):
        """
        GIVEN a decomposed key whose key algorithm is given as text alias.
        WHEN composing it.
        THEN the alias is resolved.
        """
        key = decompose_private_key(to_traditional(self.rsa_key))
        text_key = DecomposedKey(format="pkcs8-pem", key_algorithm="rsa", key_data=key.key_data)
        self.assertEqual(text_key.key_algorithm, KeyAlgorithm(id="rsa"))
        self.assertEqual(compose_private_key(text_key), to_pkcs8(self.rsa_key))

    def test_invalid_decomposed_keys(self):
        """
        GIVEN no decomposed key, a key with a public format and a key with a private format.
        WHEN composing them.
        THEN `UnexpectedType` or `UnsupportedFormat` is raised.
        """
        key = decompose_private_key(to_traditional(self.rsa_key))

        with self.assertRaises(UnexpectedType) as context:
            compose_private_key({"format": "pkcs1-pem"})
        self.assertEqual(context.exception.message, "Expecting decomposed key to be an object")

        with self.assertRaises(UnsupportedFormat):
            compose_private_key(key.replace(format="spki-der"))

        public_key = decompose_public_key(to_spki(self.rsa_key.public_key()))
        with self.assertRaises(UnsupportedFormat):
            compose_public_key(public_key.replace(format="pkcs8-der"))

    def test_invalid_decomposed_key_fields(self):
        """
        GIVEN an unknown format name and a key algorithm of the wrong type.
        WHEN building a `DecomposedKey`.
        THEN `UnsupportedFormat` or `UnexpectedType` is raised.
        """
        key = decompose_private_key(to_traditional(self.rsa_key))
        with self.assertRaises(UnsupportedFormat):
            DecomposedKey(format="pkcs7-pem", key_algorithm="rsa", key_data=key.key_data)

        with self.assertRaises(UnexpectedType):
            DecomposedKey(format="pkcs1-pem", key_algorithm=1, key_data=key.key_data)


if __name__ == "__main__":
    unittest.main()
