# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Symmetric cipher and key derivation primitives used to protect private keys.

AES and the hash based derivations use `cryptography`; DES, Triple-DES and RC2 with
effective key bits use `pycryptodome`. All ciphers run in CBC mode with PKCS#7 padding.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from Crypto.Cipher import ARC2, DES, DES3
from Crypto.Util.Padding import pad, unpad
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import padding as aes_padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from keycodec.exceptions import DecryptionFailed, UnsupportedAlgorithm

DECRYPTION_FAILED_MSG = "Decryption failed, mostly likely the password is wrong"


@dataclass(frozen=True)
class CipherSpec:
    """Static properties of a CBC cipher.

    Attributes:
        name: The cipher id, e.g. "aes256-cbc".
        key_size: The key size in bytes. For RC2 this is the size for 128 effective bits.
        iv_size: The IV size in bytes, equal to the block size.

    """

    name: str
    key_size: int
    iv_size: int


CIPHERS = {
    "aes128-cbc": CipherSpec("aes128-cbc", 16, 16),
    "aes192-cbc": CipherSpec("aes192-cbc", 24, 16),
    "aes256-cbc": CipherSpec("aes256-cbc", 32, 16),
    "des-cbc": CipherSpec("des-cbc", 8, 8),
    "des-ede3-cbc": CipherSpec("des-ede3-cbc", 24, 8),
    "rc2-cbc": CipherSpec("rc2-cbc", 16, 8),
}

PRF_NAME_2_HASH = {
    "hmac-with-sha1": hashes.SHA1,
    "hmac-with-sha224": hashes.SHA224,
    "hmac-with-sha256": hashes.SHA256,
    "hmac-with-sha384": hashes.SHA384,
    "hmac-with-sha512": hashes.SHA512,
}


def get_cipher_spec(name: str) -> CipherSpec:
    """Return the `CipherSpec` for a cipher id.

    :param name: The cipher id, e.g. "des-ede3-cbc".
    :return: The matching spec.
    :raises UnsupportedAlgorithm: If the cipher is unknown.
    """
    spec = CIPHERS.get(name)
    if spec is None:
        raise UnsupportedAlgorithm(f"Unsupported encryption algorithm id '{name}'")
    return spec


def get_cipher_key_size(name: str, rc2_bits: Optional[int] = None) -> int:
    """Return the key size in bytes, taking the RC2 effective key bits into account."""
    if name == "rc2-cbc":
        return (rc2_bits or 128) // 8
    return get_cipher_spec(name).key_size


def random_bytes(length: int) -> bytes:
    """Return `length` cryptographically secure random bytes."""
    return os.urandom(length)


def compute_aes_cbc(key: bytes, data: bytes, iv: bytes, decrypt: bool = True) -> bytes:
    """Perform AES encryption or decryption in CBC mode.

    :param key: The AES key to be used for encryption/decryption.
    :param data: The plaintext (for encryption) or ciphertext (for decryption).
    :param iv: The 16 byte initialization vector.
    :param decrypt: A boolean indicating whether to decrypt (True) or encrypt (False).
    :return: The encrypted or decrypted data as bytes.
    :raises ValueError: If the key size is invalid or the padding is wrong.
    """
    cipher = Cipher(algorithms.AES(key), modes.CBC(iv))

    if decrypt:
        decryptor = cipher.decryptor()
        decrypted_data = decryptor.update(data) + decryptor.finalize()

        unpadder = aes_padding.PKCS7(algorithms.AES.block_size).unpadder()  # type: ignore
        return unpadder.update(decrypted_data) + unpadder.finalize()

    padder = aes_padding.PKCS7(algorithms.AES.block_size).padder()  # type: ignore
    padded_data = padder.update(data) + padder.finalize()

    encryptor = cipher.encryptor()
    return encryptor.update(padded_data) + encryptor.finalize()


def _new_pycryptodome_cipher(name: str, key: bytes, iv: bytes, rc2_bits: Optional[int]):
    """Create a CBC cipher object for the DES family or RC2."""
    if name == "des-cbc":
        return DES.new(key, DES.MODE_CBC, iv=iv)
    if name == "des-ede3-cbc":
        return DES3.new(key, DES3.MODE_CBC, iv=iv)
    if name == "rc2-cbc":
        return ARC2.new(key, ARC2.MODE_CBC, iv=iv, effective_keylen=rc2_bits or 128)
    raise UnsupportedAlgorithm(f"Unsupported encryption algorithm id '{name}'")


def encrypt_cbc(name: str, key: bytes, iv: bytes, data: bytes, rc2_bits: Optional[int] = None) -> bytes:
    """Encrypt data with a CBC cipher and PKCS#7 padding.

    :param name: The cipher id, e.g. "aes256-cbc".
    :param key: The derived key.
    :param iv: The initialization vector.
    :param data: The plaintext.
    :param rc2_bits: The RC2 effective key bits, only used for "rc2-cbc".
    :return: The ciphertext.
    """
    spec = get_cipher_spec(name)
    if name.startswith("aes"):
        return compute_aes_cbc(key=key, data=data, iv=iv, decrypt=False)

    cipher = _new_pycryptodome_cipher(name, key, iv, rc2_bits)
    return cipher.encrypt(pad(data, spec.iv_size))


def decrypt_cbc(name: str, key: bytes, iv: bytes, data: bytes, rc2_bits: Optional[int] = None) -> bytes:
    """Decrypt data with a CBC cipher and remove the PKCS#7 padding.

    A failed padding check is the only indication of a wrong key, since none of these ciphers authenticate.

    :param name: The cipher id, e.g. "aes256-cbc".
    :param key: The derived key.
    :param iv: The initialization vector.
    :param data: The ciphertext.
    :param rc2_bits: The RC2 effective key bits, only used for "rc2-cbc".
    :return: The plaintext.
    :raises DecryptionFailed: If the ciphertext length or the padding is invalid.
    """
    spec = get_cipher_spec(name)
    try:
        if name.startswith("aes"):
            return compute_aes_cbc(key=key, data=data, iv=iv, decrypt=True)

        cipher = _new_pycryptodome_cipher(name, key, iv, rc2_bits)
        return unpad(cipher.decrypt(data), spec.iv_size)
    except ValueError as err:
        logging.debug("%s decryption failed: %s", name, err)
        raise DecryptionFailed(DECRYPTION_FAILED_MSG, original_error=err) from err


def pbkdf2(password: bytes, salt: bytes, iterations: int, length: int, prf: str) -> bytes:
    """Derive a key with PBKDF2 (RFC 8018, Section 5.2).

    :param password: The password bytes.
    :param salt: The salt.
    :param iterations: The iteration count.
    :param length: The length of the derived key in bytes.
    :param prf: The PRF id, e.g. "hmac-with-sha256".
    :return: The derived key.
    :raises UnsupportedAlgorithm: If the PRF is unknown.
    """
    hash_cls = PRF_NAME_2_HASH.get(prf)
    if hash_cls is None:
        raise UnsupportedAlgorithm(f"Unsupported PBKDF2 prf id '{prf}'")

    kdf = PBKDF2HMAC(algorithm=hash_cls(), length=length, salt=salt, iterations=iterations)
    return kdf.derive(password)


def openssl_kdf(password: bytes, salt: bytes, length: int) -> bytes:
    """Derive a key with the legacy OpenSSL `EVP_BytesToKey` scheme (MD5, one iteration).

    Successive digests `D_i = MD5(D_{i-1} || password || salt)` are concatenated
    and truncated to the requested length.

    :param password: The password bytes.
    :param salt: The 8 byte salt, i.e. the beginning of the IV.
    :param length: The length of the derived key in bytes.
    :return: The derived key.
    """
    derived = b""
    previous = b""
    while len(derived) < length:
        digest = hashes.Hash(hashes.MD5())
        digest.update(previous + password + salt)
        previous = digest.finalize()
        derived += previous
    return derived[:length]
