# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Help Utility to generate key fixtures for the unittests."""

import math
from typing import Optional, Tuple

from Crypto.Util.number import getPrime
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from pyasn1.type import univ

from keycodec.asn1_structures import EncryptedPrivateKeyInfo, OtherPrimeInfo, PBES2Params, RSAPrivateKey
from keycodec.asn1utils import decode_any, decode_der, encode_der

PASSWORD = b"password"

_CURVES = {
    "prime256v1": ec.SECP256R1,
    "secp384r1": ec.SECP384R1,
    "secp521r1": ec.SECP521R1,
    "secp256k1": ec.SECP256K1,
}


def generate_rsa_key(key_size: int = 2048) -> rsa.RSAPrivateKey:
    """Generate an RSA private key with the public exponent 65537."""
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)


def generate_ec_key(curve_name: str = "prime256v1") -> ec.EllipticCurvePrivateKey:
    """Generate an EC private key on the named curve."""
    return ec.generate_private_key(_CURVES[curve_name]())


def generate_ed25519_key() -> ed25519.Ed25519PrivateKey:
    """Generate an Ed25519 private key."""
    return ed25519.Ed25519PrivateKey.generate()


def _encryption(password: Optional[bytes]):
    if password is None:
        return serialization.NoEncryption()
    return serialization.BestAvailableEncryption(password)


def to_traditional(key, encoding=serialization.Encoding.PEM, password: Optional[bytes] = None):
    """Serialize a private key as PKCS#1 (RSA) or SEC1 (EC), i.e. `RSA PRIVATE KEY` or `EC PRIVATE KEY`."""
    data = key.private_bytes(encoding, serialization.PrivateFormat.TraditionalOpenSSL, _encryption(password))
    return data.decode("ascii") if encoding == serialization.Encoding.PEM else data


def to_pkcs8(key, encoding=serialization.Encoding.PEM, password: Optional[bytes] = None):
    """Serialize a private key as PKCS#8."""
    data = key.private_bytes(encoding, serialization.PrivateFormat.PKCS8, _encryption(password))
    return data.decode("ascii") if encoding == serialization.Encoding.PEM else data


def to_spki(public_key, encoding=serialization.Encoding.PEM):
    """Serialize a public key as `SubjectPublicKeyInfo`."""
    data = public_key.public_bytes(encoding, serialization.PublicFormat.SubjectPublicKeyInfo)
    return data.decode("ascii") if encoding == serialization.Encoding.PEM else data


def to_pkcs1_public(public_key, encoding=serialization.Encoding.PEM):
    """Serialize an RSA public key as PKCS#1 `RSAPublicKey`, i.e. `RSA PUBLIC KEY`."""
    data = public_key.public_bytes(encoding, serialization.PublicFormat.PKCS1)
    return data.decode("ascii") if encoding == serialization.Encoding.PEM else data


def ec_public_coordinates(key: ec.EllipticCurvePrivateKey) -> Tuple[bytes, bytes]:
    """Return the x and y coordinates of the public point, padded to the field size."""
    numbers = key.public_key().public_numbers()
    byte_length = (key.curve.key_size + 7) // 8
    return numbers.x.to_bytes(byte_length, "big"), numbers.y.to_bytes(byte_length, "big")


def build_multi_prime_rsa_der(num_primes: int = 3, prime_size: int = 512) -> bytes:
    """Build a DER encoded multi-prime `RSAPrivateKey` (version 1) with consistent CRT values.

    :param num_primes: The number of primes, at least 3.
    :param prime_size: The size of every prime in bits.
    :return: The DER encoded structure.
    """
    e = 65537
    while True:
        primes = [getPrime(prime_size) for _ in range(num_primes)]
        if len(set(primes)) != num_primes:
            continue
        phi = math.prod(p - 1 for p in primes)
        if math.gcd(e, phi) == 1:
            break

    d = pow(e, -1, phi)
    p, q = primes[0], primes[1]

    rsa_key = RSAPrivateKey()
    rsa_key["version"] = 1
    rsa_key["modulus"] = math.prod(primes)
    rsa_key["publicExponent"] = e
    rsa_key["privateExponent"] = d
    rsa_key["prime1"] = p
    rsa_key["prime2"] = q
    rsa_key["exponent1"] = d % (p - 1)
    rsa_key["exponent2"] = d % (q - 1)
    rsa_key["coefficient"] = pow(q, -1, p)

    product = p * q
    for prime in primes[2:]:
        info = OtherPrimeInfo()
        info["prime"] = prime
        info["exponent"] = d % (prime - 1)
        info["coefficient"] = pow(product, -1, prime)
        rsa_key["otherPrimeInfos"].append(info)
        product *= prime

    return encode_der(rsa_key, "RSAPrivateKey")


def replace_pbes2_iv(der_data: bytes, iv: bytes) -> bytes:
    """Replace the IV of the PBES2 encryption scheme inside a DER encoded `EncryptedPrivateKeyInfo`.

    The IV is written as a plain OCTET STRING, so that sizes which violate the scheme can be used.
    """
    encrypted_info = decode_der(der_data, EncryptedPrivateKeyInfo())
    alg_id = encrypted_info["encryptionAlgorithm"]
    pbes2_params = decode_any(alg_id["parameters"], PBES2Params())
    pbes2_params["encryptionScheme"]["parameters"] = univ.Any(encode_der(univ.OctetString(iv)))
    alg_id["parameters"] = univ.Any(encode_der(pbes2_params))
    return encode_der(encrypted_info)
