# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Family-specific key bodies shared by the container formats.

These functions translate between the algorithm-specific DER structures (`RSAPrivateKey`,
`RSAPublicKey`, SEC1 `ECPrivateKey`, `CurvePrivateKey`) and the key data classes.
"""

from typing import Optional, Tuple

from pyasn1.type import tag, univ

from keycodec.asn1_structures import (
    CurvePrivateKey,
    ECParameters,
    ECPrivateKey,
    OtherPrimeInfo,
    RSAPrivateKey,
    RSAPublicKey,
)
from keycodec.asn1utils import decode_any, decode_der, encode_der, get_optional
from keycodec.convertutils import ensure_is_bytes, ensure_is_unsigned_int
from keycodec.data_objects import (
    EcPrivateKeyData,
    Ed25519PrivateKeyData,
    OtherPrimeInfo as OtherPrimeInfoData,
    RsaPrivateKeyData,
    RsaPublicKeyData,
)
from keycodec.exceptions import DecodeAsn1Failed, InvalidInputKey, UnexpectedType, UnsupportedAlgorithm
from keycodec.keyenums import KeyFamily
from keycodec.oid_mapping import (
    curve_name_for_oid,
    curve_oid_for_name,
    get_curve_byte_length,
    get_key_family,
    name_for_oid,
    oid_for_name,
    resolve_key_algorithm_id,
)
from keycodec.oidutils import ED25519_KEY_SIZE, RSA_UNSUPPORTED_NAMES

_RSA_PRIVATE_FIELDS = (
    ("modulus", "modulus"),
    ("publicExponent", "public_exponent"),
    ("privateExponent", "private_exponent"),
    ("prime1", "prime1"),
    ("prime2", "prime2"),
    ("exponent1", "exponent1"),
    ("exponent2", "exponent2"),
    ("coefficient", "coefficient"),
)


def check_key_family(key_algorithm_id: str, *allowed: KeyFamily) -> KeyFamily:
    """Return the family of a key algorithm id and ensure it is one of the allowed families.

    :param key_algorithm_id: The key algorithm id, aliases are resolved.
    :param allowed: The families supported by the caller.
    :return: The key family.
    :raises UnsupportedAlgorithm: If the algorithm is unknown, not supported yet, or not allowed.
    """
    resolved = resolve_key_algorithm_id(key_algorithm_id)
    if resolved in RSA_UNSUPPORTED_NAMES:
        raise UnsupportedAlgorithm(RSA_UNSUPPORTED_NAMES[resolved])

    family = get_key_family(resolved)
    if family is None or family not in allowed:
        raise UnsupportedAlgorithm(f"Unsupported key algorithm id '{key_algorithm_id}'")
    return family


def classify_key_algorithm_oid(oid: univ.ObjectIdentifier) -> Tuple[str, KeyFamily]:
    """Return the key algorithm name and family for an `AlgorithmIdentifier` OID read from the wire.

    :param oid: The key algorithm OID.
    :return: The key algorithm name and its family.
    :raises UnsupportedAlgorithm: If the OID is not a supported key algorithm.
    """
    name = name_for_oid(oid)
    family = get_key_family(name)
    if family is None:
        raise UnsupportedAlgorithm(f"Unsupported key algorithm OID '{oid}'")

    if name in RSA_UNSUPPORTED_NAMES:
        raise UnsupportedAlgorithm(RSA_UNSUPPORTED_NAMES[name])
    return name, family


def key_algorithm_oid_for_id(key_algorithm_id: str) -> univ.ObjectIdentifier:
    """Return the `AlgorithmIdentifier` OID for a key algorithm id, aliases are resolved."""
    return oid_for_name(resolve_key_algorithm_id(key_algorithm_id))


def ensure_key_data(key_data, expected_cls) -> None:
    """Raise `UnexpectedType` if the key data is not an instance of the expected class."""
    if not isinstance(key_data, expected_cls):
        raise UnexpectedType(f"Expecting key data to be {expected_cls.__name__}, got {type(key_data).__name__}")


#########################
# RSA
#########################


def _decoded_unsigned(component: univ.Integer, schema_name: str, name: str) -> int:
    value = int(component)
    if value < 0:
        raise InvalidInputKey(f"{schema_name} field '{name}' must not be negative")
    return value


def decode_rsa_private_key(der_data: bytes) -> RsaPrivateKeyData:
    """Decode a PKCS#1 `RSAPrivateKey`.

    :param der_data: The DER encoded structure.
    :return: The RSA private key data.
    :raises DecodeAsn1Failed: If the data is not an `RSAPrivateKey`.
    :raises InvalidInputKey: If the version does not match the number of primes or a field is negative.
    """
    rsa_key = decode_der(der_data, RSAPrivateKey(), "RSAPrivateKey")

    other_prime_infos = ()
    infos = get_optional(rsa_key, "otherPrimeInfos")
    if infos is not None:
        other_prime_infos = tuple(
            OtherPrimeInfoData(
                prime=_decoded_unsigned(info["prime"], "OtherPrimeInfo", "prime"),
                exponent=_decoded_unsigned(info["exponent"], "OtherPrimeInfo", "exponent"),
                coefficient=_decoded_unsigned(info["coefficient"], "OtherPrimeInfo", "coefficient"),
            )
            for info in infos
        )

    values = {attr: _decoded_unsigned(rsa_key[name], "RSAPrivateKey", name) for name, attr in _RSA_PRIVATE_FIELDS}
    key_data = RsaPrivateKeyData(other_prime_infos=other_prime_infos, **values)

    if int(rsa_key["version"]) != key_data.version:
        raise InvalidInputKey("RSAPrivateKey version does not match the number of primes")

    return key_data


def encode_rsa_private_key(key_data: RsaPrivateKeyData) -> bytes:
    """Encode RSA private key data as PKCS#1 `RSAPrivateKey`.

    The version is derived from the presence of additional primes.

    :param key_data: The RSA private key data.
    :return: The DER encoded structure.
    :raises UnexpectedType: If a field is not a non-negative integer.
    """
    ensure_key_data(key_data, RsaPrivateKeyData)

    rsa_key = RSAPrivateKey()
    rsa_key["version"] = key_data.version
    for name, attr in _RSA_PRIVATE_FIELDS:
        rsa_key[name] = ensure_is_unsigned_int(getattr(key_data, attr), attr)

    for info in key_data.other_prime_infos:
        other = OtherPrimeInfo()
        other["prime"] = ensure_is_unsigned_int(info.prime, "prime")
        other["exponent"] = ensure_is_unsigned_int(info.exponent, "exponent")
        other["coefficient"] = ensure_is_unsigned_int(info.coefficient, "coefficient")
        rsa_key["otherPrimeInfos"].append(other)

    return encode_der(rsa_key, "RSAPrivateKey")


def decode_rsa_public_key(der_data: bytes) -> RsaPublicKeyData:
    """Decode a PKCS#1 `RSAPublicKey`."""
    rsa_key = decode_der(der_data, RSAPublicKey(), "RSAPublicKey")
    return RsaPublicKeyData(
        modulus=_decoded_unsigned(rsa_key["modulus"], "RSAPublicKey", "modulus"),
        public_exponent=_decoded_unsigned(rsa_key["publicExponent"], "RSAPublicKey", "publicExponent"),
    )


def encode_rsa_public_key(key_data: RsaPublicKeyData) -> bytes:
    """Encode RSA public key data as PKCS#1 `RSAPublicKey`."""
    ensure_key_data(key_data, RsaPublicKeyData)

    rsa_key = RSAPublicKey()
    rsa_key["modulus"] = ensure_is_unsigned_int(key_data.modulus, "modulus")
    rsa_key["publicExponent"] = ensure_is_unsigned_int(key_data.public_exponent, "public_exponent")
    return encode_der(rsa_key, "RSAPublicKey")


#########################
# EC
#########################


def split_ec_point(curve_name: str, point: bytes) -> Tuple[bytes, bytes]:
    """Split an uncompressed EC point into its coordinates.

    :param curve_name: The named curve, used to determine the coordinate length.
    :param point: The encoded point `04 || x || y`.
    :return: The x and y coordinates.
    :raises UnsupportedAlgorithm: If the point is compressed or has the wrong length.
    """
    byte_length = get_curve_byte_length(curve_name)

    if not point or point[0] != 0x04:
        raise UnsupportedAlgorithm("Compressed key points are not supported")

    if len(point) != 2 * byte_length + 1:
        raise UnsupportedAlgorithm(
            f"Expecting public key to have length {2 * byte_length + 1}, got {len(point)} instead"
        )

    return point[1 : byte_length + 1], point[byte_length + 1 :]


def join_ec_point(curve_name: str, x: bytes, y: Optional[bytes]) -> bytes:
    """Encode EC coordinates as an uncompressed point.

    :param curve_name: The named curve, used to check the coordinate length.
    :param x: The x coordinate.
    :param y: The y coordinate.
    :return: The encoded point `04 || x || y`.
    :raises UnsupportedAlgorithm: If `y` is missing or a coordinate has the wrong length.
    """
    if y is None:
        raise UnsupportedAlgorithm("Uncompressed key points are required (y must be specified)")

    x = ensure_is_bytes(x, "x")
    y = ensure_is_bytes(y, "y")
    byte_length = get_curve_byte_length(curve_name)
    if len(x) != byte_length or len(y) != byte_length:
        raise UnsupportedAlgorithm(
            f"Expecting public key to have length {2 * byte_length + 1}, got {len(x) + len(y) + 1} instead"
        )

    return b"\x04" + x + y


def _named_curve_of(ec_params: univ.Choice) -> str:
    if ec_params.getName() != "namedCurve":
        raise UnsupportedAlgorithm("Only named curve EC parameters are supported")
    return curve_name_for_oid(ec_params["namedCurve"])


def decode_named_curve(parameters: univ.Any) -> str:
    """Decode `ECParameters` and return the curve name.

    :param parameters: The `AlgorithmIdentifier` parameters.
    :return: The curve name.
    :raises UnsupportedAlgorithm: If the parameters are not a known named curve.
    """
    try:
        ec_params = decode_any(parameters, ECParameters(), "ECParameters")
    except DecodeAsn1Failed as err:
        raise UnsupportedAlgorithm("Only named curve EC parameters are supported", original_error=err) from err

    return _named_curve_of(ec_params)


def encode_named_curve(curve_name: str) -> univ.Any:
    """Encode a named curve as `ECParameters` for use as `AlgorithmIdentifier` parameters."""
    ec_params = ECParameters()
    ec_params["namedCurve"] = curve_oid_for_name(curve_name)
    return univ.Any(encode_der(ec_params, "ECParameters"))


def decode_ec_private_key(der_data: bytes, curve_name: Optional[str] = None) -> Tuple[str, EcPrivateKeyData]:
    """Decode a SEC1 `ECPrivateKey`.

    :param der_data: The DER encoded structure.
    :param curve_name: The curve already known from the enclosing structure, if any.
    :return: The curve name and the EC private key data.
    :raises DecodeAsn1Failed: If the data is not an `ECPrivateKey`.
    :raises InvalidInputKey: If the version is wrong or the curve contradicts the enclosing structure.
    :raises UnsupportedAlgorithm: If the curve is unknown or the public point is missing or compressed.
    """
    ec_key = decode_der(der_data, ECPrivateKey(), "ECPrivateKey")

    if int(ec_key["version"]) != 1:
        raise InvalidInputKey(f"Expecting ECPrivateKey version to be 1, got {int(ec_key['version'])}")

    parameters = get_optional(ec_key, "parameters")
    if parameters is not None:
        embedded_curve = _named_curve_of(parameters)
        if curve_name is not None and embedded_curve != curve_name:
            raise InvalidInputKey(f"ECPrivateKey curve '{embedded_curve}' does not match '{curve_name}'")
        curve_name = embedded_curve

    if curve_name is None:
        raise UnsupportedAlgorithm("Named curve must be defined")

    public_key = get_optional(ec_key, "publicKey")
    if public_key is None:
        raise UnsupportedAlgorithm("Public key must be defined")

    x, y = split_ec_point(curve_name, public_key.asOctets())
    return curve_name, EcPrivateKeyData(d=ec_key["privateKey"].asOctets(), x=x, y=y)


def encode_ec_private_key(curve_name: str, key_data: EcPrivateKeyData, include_parameters: bool = True) -> bytes:
    """Encode EC private key data as SEC1 `ECPrivateKey`.

    :param curve_name: The named curve.
    :param key_data: The EC private key data.
    :param include_parameters: Whether to write the `[0]` named curve. Defaults to `True`.
    :return: The DER encoded structure.
    """
    ensure_key_data(key_data, EcPrivateKeyData)
    curve_oid = curve_oid_for_name(curve_name)
    point = join_ec_point(curve_name, key_data.x, key_data.y)

    ec_key = ECPrivateKey()
    ec_key["version"] = 1
    ec_key["privateKey"] = ensure_is_bytes(key_data.d, "d")
    if include_parameters:
        ec_key["parameters"]["namedCurve"] = curve_oid

    ec_key["publicKey"] = univ.BitString(hexValue=point.hex()).subtype(
        explicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatSimple, 1)
    )
    return encode_der(ec_key, "ECPrivateKey")


#########################
# Ed25519
#########################


def check_ed25519_key(data: bytes) -> bytes:
    """Ensure an Ed25519 key has exactly 32 bytes."""
    data = ensure_is_bytes(data, "Ed25519 key")
    if len(data) != ED25519_KEY_SIZE:
        raise UnsupportedAlgorithm(f"Expecting Ed25519 key to have {ED25519_KEY_SIZE} bytes, got {len(data)} instead")
    return data


def decode_ed25519_private_key(der_data: bytes) -> Ed25519PrivateKeyData:
    """Decode the `CurvePrivateKey` wrapped inside the PKCS#8 `privateKey` octets."""
    seed = decode_der(der_data, CurvePrivateKey(), "CurvePrivateKey").asOctets()
    return Ed25519PrivateKeyData(seed=check_ed25519_key(seed))


def encode_ed25519_private_key(key_data: Ed25519PrivateKeyData) -> bytes:
    """Encode the Ed25519 seed as `CurvePrivateKey`."""
    ensure_key_data(key_data, Ed25519PrivateKeyData)
    return encode_der(CurvePrivateKey(check_ed25519_key(key_data.seed)), "CurvePrivateKey")
