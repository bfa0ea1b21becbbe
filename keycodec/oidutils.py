# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Static OID tables for key algorithms, curves, ciphers, key derivation functions and PRFs.

Every table is built once at import and must stay read-only afterward.
The combined name/OID mapping must be a bijection, which is checked at import.
"""

from typing import Dict

from pyasn1.type import univ
from pyasn1_modules import rfc5480, rfc8017, rfc8018, rfc8410

# RSA

RSA_NAME_2_OID = {
    "rsa-encryption": rfc8017.rsaEncryption,
    "md2-with-rsa-encryption": rfc8017.md2WithRSAEncryption,
    "md4-with-rsa-encryption": univ.ObjectIdentifier("1.2.840.113549.1.1.3"),
    "md5-with-rsa-encryption": rfc8017.md5WithRSAEncryption,
    "sha1-with-rsa-encryption": rfc8017.sha1WithRSAEncryption,
    "sha224-with-rsa-encryption": rfc8017.sha224WithRSAEncryption,
    "sha256-with-rsa-encryption": rfc8017.sha256WithRSAEncryption,
    "sha384-with-rsa-encryption": rfc8017.sha384WithRSAEncryption,
    "sha512-with-rsa-encryption": rfc8017.sha512WithRSAEncryption,
    "sha512-224-with-rsa-encryption": rfc8017.sha512_224WithRSAEncryption,
    "sha512-256-with-rsa-encryption": rfc8017.sha512_256WithRSAEncryption,
    "rsaes-oaep": rfc8017.id_RSAES_OAEP,
    "rsassa-pss": rfc8017.id_RSASSA_PSS,
}

# Names of RSA algorithms whose keys cannot be decomposed yet.
RSA_UNSUPPORTED_NAMES = {
    "rsaes-oaep": "RSA-OAEP keys are not yet supported",
    "rsassa-pss": "RSA-PSS keys are not yet supported",
}

# EC and Edwards curves

EC_NAME_2_OID = {
    "ec-public-key": rfc5480.id_ecPublicKey,
}

ED_NAME_2_OID = {
    "ed25519": rfc8410.id_Ed25519,
}

ED25519_KEY_SIZE = 32

# Named curves, as `name: (oid, field size in bits)`.
CURVES = {
    "secp112r1": (univ.ObjectIdentifier("1.3.132.0.6"), 112),
    "secp112r2": (univ.ObjectIdentifier("1.3.132.0.7"), 112),
    "secp128r1": (univ.ObjectIdentifier("1.3.132.0.28"), 128),
    "secp128r2": (univ.ObjectIdentifier("1.3.132.0.29"), 128),
    "secp160k1": (univ.ObjectIdentifier("1.3.132.0.9"), 160),
    "secp160r1": (univ.ObjectIdentifier("1.3.132.0.8"), 160),
    "secp160r2": (univ.ObjectIdentifier("1.3.132.0.30"), 160),
    "secp192k1": (univ.ObjectIdentifier("1.3.132.0.31"), 192),
    "secp224k1": (univ.ObjectIdentifier("1.3.132.0.32"), 224),
    "secp224r1": (rfc5480.secp224r1, 224),
    "secp256k1": (univ.ObjectIdentifier("1.3.132.0.10"), 256),
    "secp384r1": (rfc5480.secp384r1, 384),
    "secp521r1": (rfc5480.secp521r1, 521),
    "prime192v1": (rfc5480.secp192r1, 192),
    "prime256v1": (rfc5480.secp256r1, 256),
    "sect113r1": (univ.ObjectIdentifier("1.3.132.0.4"), 113),
    "sect113r2": (univ.ObjectIdentifier("1.3.132.0.5"), 113),
    "sect131r1": (univ.ObjectIdentifier("1.3.132.0.22"), 131),
    "sect131r2": (univ.ObjectIdentifier("1.3.132.0.23"), 131),
    "sect163k1": (rfc5480.sect163k1, 163),
    "sect163r1": (univ.ObjectIdentifier("1.3.132.0.2"), 163),
    "sect163r2": (rfc5480.sect163r2, 163),
    "sect193r1": (univ.ObjectIdentifier("1.3.132.0.24"), 193),
    "sect193r2": (univ.ObjectIdentifier("1.3.132.0.25"), 193),
    "sect233k1": (rfc5480.sect233k1, 233),
    "sect233r1": (rfc5480.sect233r1, 233),
    "sect239k1": (univ.ObjectIdentifier("1.3.132.0.3"), 239),
    "sect283k1": (rfc5480.sect283k1, 283),
    "sect283r1": (rfc5480.sect283r1, 283),
    "sect409k1": (rfc5480.sect409k1, 409),
    "sect409r1": (rfc5480.sect409r1, 409),
    "sect571k1": (rfc5480.sect571k1, 571),
    "sect571r1": (rfc5480.sect571r1, 571),
    "brainpoolP256r1": (univ.ObjectIdentifier("1.3.36.3.3.2.8.1.1.7"), 256),
    "brainpoolP384r1": (univ.ObjectIdentifier("1.3.36.3.3.2.8.1.1.11"), 384),
    "brainpoolP512r1": (univ.ObjectIdentifier("1.3.36.3.3.2.8.1.1.13"), 512),
}

CURVE_NAME_2_OID = {name: oid for name, (oid, _) in CURVES.items()}
CURVE_NAME_2_BITS = {name: bits for name, (_, bits) in CURVES.items()}

# Alternative spellings accepted when composing.
CURVE_ALIASES = {
    "secp192r1": "prime192v1",
    "secp256r1": "prime256v1",
    "p-192": "prime192v1",
    "p-224": "secp224r1",
    "p-256": "prime256v1",
    "p-384": "secp384r1",
    "p-521": "secp521r1",
}

# Password based encryption

PBES_NAME_2_OID = {
    "pbes2": rfc8018.id_PBES2,
}

KDF_NAME_2_OID = {
    "pbkdf2": rfc8018.id_PBKDF2,
}

PRF_NAME_2_OID = {
    "hmac-with-sha1": rfc8018.id_hmacWithSHA1,
    "hmac-with-sha224": rfc8018.id_hmacWithSHA224,
    "hmac-with-sha256": rfc8018.id_hmacWithSHA256,
    "hmac-with-sha384": rfc8018.id_hmacWithSHA384,
    "hmac-with-sha512": rfc8018.id_hmacWithSHA512,
}

CIPHER_NAME_2_OID = {
    "aes128-cbc": rfc8018.aes128_CBC_PAD,
    "aes192-cbc": rfc8018.aes192_CBC_PAD,
    "aes256-cbc": rfc8018.aes256_CBC_PAD,
    "des-cbc": rfc8018.desCBC,
    "des-ede3-cbc": rfc8018.des_EDE3_CBC,
    "rc2-cbc": rfc8018.rc2CBC,
}

# Legacy OpenSSL `DEK-Info` names, as `name: (cipher id, RC2 effective bits)`.
DEK_INFO_NAMES = {
    "DES-CBC": ("des-cbc", None),
    "DES-EDE3-CBC": ("des-ede3-cbc", None),
    "AES-128-CBC": ("aes128-cbc", None),
    "AES-192-CBC": ("aes192-cbc", None),
    "AES-256-CBC": ("aes256-cbc", None),
    "RC2-40-CBC": ("rc2-cbc", 40),
    "RC2-64-CBC": ("rc2-cbc", 64),
    "RC2-128-CBC": ("rc2-cbc", 128),
}

# RC2 effective key bits and their `rc2ParameterVersion` encoding (RFC 8018, Appendix B.2.3).
RC2_BITS_2_VERSION = {40: 160, 64: 120, 128: 58}
RC2_VERSION_2_BITS = {y: x for x, y in RC2_BITS_2_VERSION.items()}


def _build_registry(*tables: Dict[str, univ.ObjectIdentifier]) -> Dict[str, univ.ObjectIdentifier]:
    """Merge the name tables and verify that names and OIDs map one to one."""
    registry: Dict[str, univ.ObjectIdentifier] = {}
    seen_oids: Dict[univ.ObjectIdentifier, str] = {}
    for table in tables:
        for name, oid in table.items():
            if name in registry:
                raise ValueError(f"Duplicate algorithm name in OID registry: {name}")
            if oid in seen_oids:
                raise ValueError(f"OID {oid} is registered for both {seen_oids[oid]} and {name}")
            registry[name] = oid
            seen_oids[oid] = name
    return registry


ALL_NAME_2_OID = _build_registry(
    RSA_NAME_2_OID,
    EC_NAME_2_OID,
    ED_NAME_2_OID,
    CURVE_NAME_2_OID,
    PBES_NAME_2_OID,
    KDF_NAME_2_OID,
    PRF_NAME_2_OID,
    CIPHER_NAME_2_OID,
)
ALL_OID_2_NAME = {y: x for x, y in ALL_NAME_2_OID.items()}
