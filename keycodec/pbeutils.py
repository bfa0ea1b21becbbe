# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Password based encryption of private keys.

Two schemes are supported:

- The legacy OpenSSL PEM encryption, announced by the `Proc-Type` and `DEK-Info` headers. The key is
  derived with `EVP_BytesToKey` (MD5) from the password and the first 8 bytes of the IV.
- PKCS#5 PBES2 with PBKDF2 (RFC 8018), used inside `EncryptedPrivateKeyInfo`.

Unset parameters are taken from `EncryptionDefaults` and random salts and IVs are generated when
composing. Parameters recovered while decrypting are returned, so that re-encrypting with them
reproduces the original ciphertext.
"""

import logging
from typing import Dict, Optional, Tuple

from pyasn1.type import univ

from keycodec import cryptoutils
from keycodec.asn1_structures import (
    AesIV,
    AlgorithmIdentifierAny,
    DesIV,
    PBES2Params,
    PBKDF2Params,
    RC2CBCParameter,
)
from keycodec.asn1utils import NULL_DER, decode_any, encode_der, get_optional, is_null_or_absent
from keycodec.config_vars import EncryptionDefaults
from keycodec.convertutils import bytes_to_hex, hex_to_bytes
from keycodec.data_objects import EncryptionScheme, LegacyEncryption, Pbes2Encryption, Pbkdf2Params
from keycodec.exceptions import MissingPassword, UnsupportedAlgorithm
from keycodec.oid_mapping import name_for_oid, oid_for_name
from keycodec.oidutils import (
    CIPHER_NAME_2_OID,
    DEK_INFO_NAMES,
    PRF_NAME_2_OID,
    RC2_BITS_2_VERSION,
    RC2_VERSION_2_BITS,
)
from keycodec.pemutils import DEK_INFO_HEADER, PROC_TYPE_ENCRYPTED, PROC_TYPE_HEADER, PemBlock

DEFAULT_PRF = "hmac-with-sha1"

MISSING_PASSWORD_DECRYPT_MSG = "Please specify the password to decrypt the key"
MISSING_PASSWORD_ENCRYPT_MSG = "An encryption algorithm was specified but no password was set"

_CIPHER_RC2_2_DEK_INFO = {value: name for name, value in DEK_INFO_NAMES.items()}


def ensure_password_for_encryption(password: Optional[bytes], encryption_algorithm) -> None:
    """Ensure a password is present if an encryption algorithm was requested.

    :param password: The password, if any.
    :param encryption_algorithm: The requested encryption algorithm, if any.
    :raises MissingPassword: If an algorithm is set but no password was given.
    """
    if encryption_algorithm is not None and not password:
        raise MissingPassword(MISSING_PASSWORD_ENCRYPT_MSG)


def _check_rc2_bits(bits: int) -> int:
    if bits not in RC2_BITS_2_VERSION:
        raise UnsupportedAlgorithm(f"Unsupported RC2 bits parameter with value '{bits}'")
    return bits


def _check_iv(iv: bytes, expected: int) -> bytes:
    if len(iv) != expected:
        raise UnsupportedAlgorithm(f"Expecting iv to have {expected} bytes")
    return bytes(iv)


#########################
# Legacy PEM encryption
#########################


def decrypt_pem_body(block: PemBlock, password: Optional[bytes]) -> Tuple[bytes, LegacyEncryption]:
    """Decrypt the body of a PEM block protected by a `DEK-Info` header.

    :param block: The parsed PEM block.
    :param password: The password.
    :return: The decrypted body and the encryption parameters found in the headers.
    :raises MissingPassword: If no password was given.
    :raises UnsupportedAlgorithm: If the `DEK-Info` header is missing or carries an unknown cipher or a malformed IV.
    :raises DecryptionFailed: If the password is most likely wrong.
    """
    dek_info = block.headers.get(DEK_INFO_HEADER)
    if not dek_info:
        raise UnsupportedAlgorithm("Encrypted PEM is missing the DEK-Info header")

    if not password:
        raise MissingPassword(MISSING_PASSWORD_DECRYPT_MSG)

    algorithm, _, iv_hex = dek_info.partition(",")
    algorithm = algorithm.strip()

    if algorithm not in DEK_INFO_NAMES:
        raise UnsupportedAlgorithm(f"Unsupported DEK-INFO algorithm '{algorithm}'")

    cipher_name, rc2_bits = DEK_INFO_NAMES[algorithm]
    spec = cryptoutils.get_cipher_spec(cipher_name)

    try:
        iv = hex_to_bytes(iv_hex.strip())
    except ValueError as err:
        raise UnsupportedAlgorithm(f"Invalid DEK-Info IV '{iv_hex}'", original_error=err) from err

    if len(iv) != spec.iv_size:
        raise UnsupportedAlgorithm(f"Expecting DEK-Info IV to have {spec.iv_size} bytes, got {len(iv)}")

    key_size = cryptoutils.get_cipher_key_size(cipher_name, rc2_bits)
    key = cryptoutils.openssl_kdf(password, iv[:8], key_size)
    logging.debug("Decrypting PEM body with %s", algorithm)
    body = cryptoutils.decrypt_cbc(cipher_name, key, iv, block.body, rc2_bits=rc2_bits)

    return body, LegacyEncryption(id=cipher_name, iv=iv, rc2_bits=rc2_bits)


def encrypt_pem_body(
    body: bytes,
    encryption_algorithm: Optional[LegacyEncryption],
    password: bytes,
    defaults: Optional[EncryptionDefaults] = None,
) -> Tuple[bytes, Dict[str, str]]:
    """Encrypt a PEM body with the legacy OpenSSL scheme.

    :param body: The DER encoded key.
    :param encryption_algorithm: The cipher and optional IV. `None` uses the default cipher.
    :param password: The password.
    :param defaults: The encryption defaults.
    :return: The encrypted body and the `Proc-Type`/`DEK-Info` headers.
    :raises UnsupportedAlgorithm: If the cipher or RC2 bits are not supported, or the IV has the wrong size.
    """
    defaults = defaults or EncryptionDefaults()
    encryption_algorithm = encryption_algorithm or LegacyEncryption()

    if not isinstance(encryption_algorithm, LegacyEncryption):
        raise UnsupportedAlgorithm(f"Unsupported encryption algorithm id '{encryption_algorithm.id}'")

    cipher_name = encryption_algorithm.id or defaults.legacy_cipher
    spec = cryptoutils.get_cipher_spec(cipher_name)

    rc2_bits = None
    if cipher_name == "rc2-cbc":
        rc2_bits = _check_rc2_bits(encryption_algorithm.rc2_bits or defaults.rc2_bits)

    if encryption_algorithm.iv is not None:
        iv = _check_iv(encryption_algorithm.iv, spec.iv_size)
    else:
        iv = cryptoutils.random_bytes(spec.iv_size)

    key_size = cryptoutils.get_cipher_key_size(cipher_name, rc2_bits)
    key = cryptoutils.openssl_kdf(password, iv[:8], key_size)
    dek_info_name = _CIPHER_RC2_2_DEK_INFO[(cipher_name, rc2_bits)]
    logging.debug("Encrypting PEM body with %s", dek_info_name)

    headers = {
        PROC_TYPE_HEADER: PROC_TYPE_ENCRYPTED,
        DEK_INFO_HEADER: f"{dek_info_name},{bytes_to_hex(iv, upper=True)}",
    }
    return cryptoutils.encrypt_cbc(cipher_name, key, iv, body, rc2_bits=rc2_bits), headers


#########################
# PBES2
#########################


def _decode_scheme_params(cipher_name: str, parameters: univ.Any) -> Tuple[bytes, Optional[int]]:
    """Return the IV and RC2 effective key bits from the encryption scheme parameters."""
    if cipher_name.startswith("aes"):
        return decode_any(parameters, AesIV(), "AES-IV").asOctets(), None

    if cipher_name in ("des-cbc", "des-ede3-cbc"):
        return decode_any(parameters, DesIV(), "DES-IV").asOctets(), None

    rc2_params = decode_any(parameters, RC2CBCParameter(), "RC2-CBC-Parameter")
    version = get_optional(rc2_params, "rc2ParameterVersion")
    version = int(version) if version is not None else None
    if version not in RC2_VERSION_2_BITS:
        raise UnsupportedAlgorithm(f"Unsupported RC2 version parameter with value '{version}'")
    return rc2_params["iv"].asOctets(), RC2_VERSION_2_BITS[version]


def _encode_scheme_params(cipher_name: str, iv: bytes, rc2_bits: Optional[int]) -> univ.Any:
    """Encode the encryption scheme parameters as an opaque `ANY` value."""
    if cipher_name.startswith("aes"):
        return univ.Any(encode_der(AesIV(iv), "AES-IV"))

    if cipher_name in ("des-cbc", "des-ede3-cbc"):
        return univ.Any(encode_der(DesIV(iv), "DES-IV"))

    rc2_params = RC2CBCParameter()
    rc2_params["rc2ParameterVersion"] = RC2_BITS_2_VERSION[rc2_bits]
    rc2_params["iv"] = iv
    return univ.Any(encode_der(rc2_params, "RC2-CBC-Parameter"))


def _decode_pbkdf2_params(parameters: univ.Any) -> Pbkdf2Params:
    """Decode the PBKDF2 parameters, applying the DEFAULT PRF."""
    params = decode_any(parameters, PBKDF2Params(), "PBKDF2-params")

    salt_choice = params["salt"].getName()
    if salt_choice != "specified":
        raise UnsupportedAlgorithm(f"Unsupported PBKDF2 salt source '{salt_choice}'")

    prf = DEFAULT_PRF
    prf_alg_id = get_optional(params, "prf")
    if prf_alg_id is not None:
        prf = name_for_oid(prf_alg_id["algorithm"])
        if prf not in PRF_NAME_2_OID:
            raise UnsupportedAlgorithm(f"Unsupported prf algorithm OID '{prf_alg_id['algorithm']}'")

    key_length = get_optional(params, "keyLength")
    return Pbkdf2Params(
        salt=params["salt"]["specified"].asOctets(),
        iteration_count=int(params["iterationCount"]),
        key_length=int(key_length) if key_length is not None else None,
        prf=prf,
        explicit_default_prf=prf_alg_id is not None and prf == DEFAULT_PRF,
    )


def _encode_pbkdf2_params(kdf: Pbkdf2Params) -> univ.Any:
    """Encode the PBKDF2 parameters, omitting the PRF if it equals the DEFAULT unless the input carried it."""
    params = PBKDF2Params()
    params["salt"]["specified"] = kdf.salt
    params["iterationCount"] = kdf.iteration_count
    if kdf.key_length is not None:
        params["keyLength"] = kdf.key_length

    if kdf.prf != DEFAULT_PRF or kdf.explicit_default_prf:
        params["prf"]["algorithm"] = PRF_NAME_2_OID[kdf.prf]
        params["prf"]["parameters"] = univ.Any(NULL_DER)

    return univ.Any(encode_der(params, "PBKDF2-params"))


def decrypt_pbes2(parameters: univ.Any, encrypted_data: bytes, password: bytes) -> Tuple[bytes, Pbes2Encryption]:
    """Decrypt data protected with PBES2.

    :param parameters: The `PBES2-params` of the encryption `AlgorithmIdentifier`.
    :param encrypted_data: The ciphertext.
    :param password: The password.
    :return: The plaintext and the decoded encryption parameters.
    :raises DecodeAsn1Failed: If a parameter block is malformed.
    :raises UnsupportedAlgorithm: If the KDF, PRF, cipher or key length are not supported.
    :raises DecryptionFailed: If the password is most likely wrong.
    """
    pbes2_params = decode_any(parameters, PBES2Params(), "PBES2-params")
    kdf_alg_id = pbes2_params["keyDerivationFunc"]
    scheme_alg_id = pbes2_params["encryptionScheme"]

    cipher_name = name_for_oid(scheme_alg_id["algorithm"])
    if cipher_name not in CIPHER_NAME_2_OID:
        raise UnsupportedAlgorithm(f"Unsupported encryption scheme algorithm OID '{scheme_alg_id['algorithm']}'")

    kdf_name = name_for_oid(kdf_alg_id["algorithm"])
    if kdf_name != "pbkdf2":
        raise UnsupportedAlgorithm(
            f"Unsupported key derivation function algorithm OID '{kdf_alg_id['algorithm']}'"
        )

    iv, rc2_bits = _decode_scheme_params(cipher_name, get_optional(scheme_alg_id, "parameters"))
    kdf = _decode_pbkdf2_params(get_optional(kdf_alg_id, "parameters"))

    key_size = cryptoutils.get_cipher_key_size(cipher_name, rc2_bits)
    if kdf.key_length is not None and kdf.key_length != key_size:
        raise UnsupportedAlgorithm(f"The specified key length must be equal to {key_size} (or omitted)")

    logging.debug("Decrypting PBES2 with PBKDF2 (%s, %d iterations) and %s", kdf.prf, kdf.iteration_count, cipher_name)
    key = cryptoutils.pbkdf2(password, kdf.salt, kdf.iteration_count, key_size, kdf.prf)
    plaintext = cryptoutils.decrypt_cbc(cipher_name, key, iv, encrypted_data, rc2_bits=rc2_bits)

    scheme = EncryptionScheme(id=cipher_name, iv=iv, rc2_bits=rc2_bits)
    return plaintext, Pbes2Encryption(key_derivation_func=kdf, encryption_scheme=scheme)


def encrypt_pbes2(
    data: bytes,
    encryption_algorithm: Optional[Pbes2Encryption],
    password: bytes,
    defaults: Optional[EncryptionDefaults] = None,
) -> Tuple[AlgorithmIdentifierAny, bytes]:
    """Encrypt data with PBES2, completing unset parameters from the defaults.

    :param data: The plaintext, usually a DER encoded `PrivateKeyInfo`.
    :param encryption_algorithm: The PBES2 parameters. `None` uses the defaults.
    :param password: The password.
    :param defaults: The encryption defaults.
    :return: The `AlgorithmIdentifier` for `EncryptedPrivateKeyInfo` and the ciphertext.
    :raises UnsupportedAlgorithm: If a requested algorithm is unknown or a parameter is inconsistent.
    """
    defaults = defaults or EncryptionDefaults()
    encryption_algorithm = encryption_algorithm or Pbes2Encryption()

    if not isinstance(encryption_algorithm, Pbes2Encryption) or encryption_algorithm.id != "pbes2":
        raise UnsupportedAlgorithm(f"Unsupported encryption algorithm id '{encryption_algorithm.id}'")

    kdf = encryption_algorithm.key_derivation_func or Pbkdf2Params()
    scheme = encryption_algorithm.encryption_scheme or EncryptionScheme()

    if kdf.id != "pbkdf2":
        raise UnsupportedAlgorithm(f"Unsupported key derivation function id '{kdf.id}'")

    cipher_name = scheme.id or defaults.pbes2_cipher
    if cipher_name not in CIPHER_NAME_2_OID:
        raise UnsupportedAlgorithm(f"Unsupported encryption scheme id '{cipher_name}'")

    prf = kdf.prf or defaults.pbkdf2_prf
    if prf not in PRF_NAME_2_OID:
        raise UnsupportedAlgorithm(f"Unsupported PBKDF2 prf id '{prf}'")

    spec = cryptoutils.get_cipher_spec(cipher_name)
    rc2_bits = _check_rc2_bits(scheme.rc2_bits or defaults.rc2_bits) if cipher_name == "rc2-cbc" else None
    key_size = cryptoutils.get_cipher_key_size(cipher_name, rc2_bits)

    if kdf.key_length is not None and kdf.key_length != key_size:
        raise UnsupportedAlgorithm(f"The specified key length must be equal to {key_size} (or omitted)")

    iv = _check_iv(scheme.iv, spec.iv_size) if scheme.iv is not None else cryptoutils.random_bytes(spec.iv_size)
    kdf = Pbkdf2Params(
        salt=kdf.salt if kdf.salt is not None else cryptoutils.random_bytes(defaults.pbkdf2_salt_length),
        iteration_count=kdf.iteration_count or defaults.pbkdf2_iterations,
        key_length=kdf.key_length,
        prf=prf,
        explicit_default_prf=kdf.explicit_default_prf and prf == DEFAULT_PRF,
    )

    logging.debug("Encrypting PBES2 with PBKDF2 (%s, %d iterations) and %s", prf, kdf.iteration_count, cipher_name)
    key = cryptoutils.pbkdf2(password, kdf.salt, kdf.iteration_count, key_size, prf)
    encrypted_data = cryptoutils.encrypt_cbc(cipher_name, key, iv, data, rc2_bits=rc2_bits)

    pbes2_params = PBES2Params()
    pbes2_params["keyDerivationFunc"]["algorithm"] = oid_for_name("pbkdf2")
    pbes2_params["keyDerivationFunc"]["parameters"] = _encode_pbkdf2_params(kdf)
    pbes2_params["encryptionScheme"]["algorithm"] = CIPHER_NAME_2_OID[cipher_name]
    pbes2_params["encryptionScheme"]["parameters"] = _encode_scheme_params(cipher_name, iv, rc2_bits)

    alg_id = AlgorithmIdentifierAny()
    alg_id["algorithm"] = oid_for_name("pbes2")
    alg_id["parameters"] = univ.Any(encode_der(pbes2_params, "PBES2-params"))
    return alg_id, encrypted_data


def decrypt_encrypted_private_key_info(
    encryption_algorithm: AlgorithmIdentifierAny, encrypted_data: bytes, password: Optional[bytes]
) -> Tuple[bytes, Pbes2Encryption]:
    """Decrypt the content of an `EncryptedPrivateKeyInfo`.

    :param encryption_algorithm: The `encryptionAlgorithm` field.
    :param encrypted_data: The `encryptedData` field.
    :param password: The password.
    :return: The DER encoded `PrivateKeyInfo` and the encryption parameters.
    :raises MissingPassword: If no password was given.
    :raises UnsupportedAlgorithm: If the encryption algorithm is not PBES2.
    """
    if not password:
        raise MissingPassword(MISSING_PASSWORD_DECRYPT_MSG)

    oid = encryption_algorithm["algorithm"]
    if name_for_oid(oid) != "pbes2":
        raise UnsupportedAlgorithm(f"Unsupported encryption algorithm OID '{oid}'")

    if is_null_or_absent(get_optional(encryption_algorithm, "parameters")):
        raise UnsupportedAlgorithm("PBES2 parameters must be present")

    return decrypt_pbes2(encryption_algorithm["parameters"], encrypted_data, password)
