# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0
# type: ignore
"""Defines ASN.1 structures used for decomposing and composing keys.

The `pyasn1_modules` definitions resolve `AlgorithmIdentifier` parameters through open types,
which decodes them eagerly. The containers below keep the parameters as opaque `ANY` values,
so that every parameter block is decoded explicitly with the schema the OID calls for.
"""

from pyasn1.type import constraint, namedtype, tag, univ
from pyasn1_modules import rfc5480, rfc5915, rfc8017, rfc8018, rfc8410

MAX = float("inf")

RSAPrivateKey = rfc8017.RSAPrivateKey
RSAPublicKey = rfc8017.RSAPublicKey
OtherPrimeInfo = rfc8017.OtherPrimeInfo
ECPrivateKey = rfc5915.ECPrivateKey
ECParameters = rfc5480.ECParameters
CurvePrivateKey = rfc8410.CurvePrivateKey
RC2CBCParameter = rfc8018.RC2_CBC_Parameter


class AlgorithmIdentifierAny(univ.Sequence):
    """Defines the ASN.1 structure for an `AlgorithmIdentifier` with undecoded parameters.

    AlgorithmIdentifier ::= SEQUENCE {
        algorithm   OBJECT IDENTIFIER,
        parameters  ANY DEFINED BY algorithm OPTIONAL
    }
    """

    componentType = namedtype.NamedTypes(
        namedtype.NamedType("algorithm", univ.ObjectIdentifier()),
        namedtype.OptionalNamedType("parameters", univ.Any()),
    )


class PrivateKeyInfo(univ.Sequence):
    """Defines the ASN.1 structure for the `OneAsymmetricKey` (PKCS#8 `PrivateKeyInfo`).

    OneAsymmetricKey ::= SEQUENCE {
        version                   Version,
        privateKeyAlgorithm       PrivateKeyAlgorithmIdentifier,
        privateKey                PrivateKey,
        attributes            [0] Attributes OPTIONAL,
        ...,
        [[2: publicKey        [1] PublicKey OPTIONAL ]],
        ...
    }
    """

    componentType = namedtype.NamedTypes(
        namedtype.NamedType("version", univ.Integer()),
        namedtype.NamedType("privateKeyAlgorithm", AlgorithmIdentifierAny()),
        namedtype.NamedType("privateKey", univ.OctetString()),
        namedtype.OptionalNamedType(
            "attributes",
            univ.SetOf(componentType=univ.Any()).subtype(
                implicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatConstructed, 0)
            ),
        ),
        namedtype.OptionalNamedType(
            "publicKey",
            univ.BitString().subtype(implicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatSimple, 1)),
        ),
    )


class EncryptedPrivateKeyInfo(univ.Sequence):
    """Defines the ASN.1 structure for the `EncryptedPrivateKeyInfo`.

    EncryptedPrivateKeyInfo ::= SEQUENCE {
        encryptionAlgorithm  EncryptionAlgorithmIdentifier,
        encryptedData        EncryptedData
    }
    """

    componentType = namedtype.NamedTypes(
        namedtype.NamedType("encryptionAlgorithm", AlgorithmIdentifierAny()),
        namedtype.NamedType("encryptedData", univ.OctetString()),
    )


class SubjectPublicKeyInfo(univ.Sequence):
    """Defines the ASN.1 structure for the `SubjectPublicKeyInfo`.

    SubjectPublicKeyInfo ::= SEQUENCE {
        algorithm         AlgorithmIdentifier,
        subjectPublicKey  BIT STRING
    }
    """

    componentType = namedtype.NamedTypes(
        namedtype.NamedType("algorithm", AlgorithmIdentifierAny()),
        namedtype.NamedType("subjectPublicKey", univ.BitString()),
    )


class PBES2Params(univ.Sequence):
    """Defines the ASN.1 structure for the `PBES2-params`.

    PBES2-params ::= SEQUENCE {
        keyDerivationFunc  AlgorithmIdentifier {{PBES2-KDFs}},
        encryptionScheme   AlgorithmIdentifier {{PBES2-Encs}}
    }
    """

    componentType = namedtype.NamedTypes(
        namedtype.NamedType("keyDerivationFunc", AlgorithmIdentifierAny()),
        namedtype.NamedType("encryptionScheme", AlgorithmIdentifierAny()),
    )


class PBKDF2Salt(univ.Choice):
    """Defines the ASN.1 structure for the salt of the `PBKDF2-params`.

    salt CHOICE {
        specified    OCTET STRING,
        otherSource  AlgorithmIdentifier {{PBKDF2-SaltSources}}
    }
    """

    componentType = namedtype.NamedTypes(
        namedtype.NamedType("specified", univ.OctetString()),
        namedtype.NamedType("otherSource", AlgorithmIdentifierAny()),
    )


class PBKDF2Params(univ.Sequence):
    """Defines the ASN.1 structure for the `PBKDF2-params`.

    The `prf` is modeled as OPTIONAL; the DEFAULT of `algid-hmacWithSHA1` is applied by the caller,
    which fills it in on decoding and omits it on encoding unless the input spelled it out.

    PBKDF2-params ::= SEQUENCE {
        salt            CHOICE { ... },
        iterationCount  INTEGER (1..MAX),
        keyLength       INTEGER (1..MAX) OPTIONAL,
        prf             AlgorithmIdentifier {{PBKDF2-PRFs}} DEFAULT algid-hmacWithSHA1
    }
    """

    componentType = namedtype.NamedTypes(
        namedtype.NamedType("salt", PBKDF2Salt()),
        namedtype.NamedType(
            "iterationCount", univ.Integer().subtype(subtypeSpec=constraint.ValueRangeConstraint(1, MAX))
        ),
        namedtype.OptionalNamedType(
            "keyLength", univ.Integer().subtype(subtypeSpec=constraint.ValueRangeConstraint(1, MAX))
        ),
        namedtype.OptionalNamedType("prf", AlgorithmIdentifierAny()),
    )


class AesIV(univ.OctetString):
    """Defines the ASN.1 structure for the AES-CBC parameters.

    AES-IV ::= OCTET STRING (SIZE(16))
    """

    subtypeSpec = constraint.ValueSizeConstraint(16, 16)


class DesIV(univ.OctetString):
    """Defines the ASN.1 structure for the DES-CBC and DES-EDE3-CBC parameters.

    DES-IV ::= OCTET STRING (SIZE(8))
    """

    subtypeSpec = constraint.ValueSizeConstraint(8, 8)
