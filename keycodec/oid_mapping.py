# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Lookups between OIDs and algorithm names, and classification of key algorithms into key families.

All algorithm dispatch in the format codecs goes through `get_key_family`, so that adding a key type only
needs a table entry in `oidutils` and a family-specific encode/decode pair.
"""

from typing import Optional, Union

from pyasn1.type import univ

from keycodec.exceptions import UnexpectedType, UnsupportedAlgorithm
from keycodec.keyenums import KeyFamily
from keycodec.oidutils import (
    ALL_NAME_2_OID,
    ALL_OID_2_NAME,
    CURVE_ALIASES,
    CURVE_NAME_2_BITS,
    CURVE_NAME_2_OID,
    EC_NAME_2_OID,
    ED_NAME_2_OID,
    RSA_NAME_2_OID,
)

KEY_ALIASES = {
    "rsa": "rsa-encryption",
    "ec": "ec-public-key",
}

_NAME_2_FAMILY = {}
_NAME_2_FAMILY.update({name: KeyFamily.RSA for name in RSA_NAME_2_OID})
_NAME_2_FAMILY.update({name: KeyFamily.EC for name in EC_NAME_2_OID})
_NAME_2_FAMILY.update({name: KeyFamily.ED25519 for name in ED_NAME_2_OID})


def name_for_oid(oid: Union[str, univ.ObjectIdentifier]) -> Optional[str]:
    """Return the symbolic name for an OID.

    :param oid: The OID, either as dotted string or as `univ.ObjectIdentifier`.
    :return: The name, or `None` if the OID is not registered.
    """
    return ALL_OID_2_NAME.get(univ.ObjectIdentifier(oid))


def oid_for_name(name: str) -> Optional[univ.ObjectIdentifier]:
    """Return the OID registered for a symbolic name.

    :param name: The algorithm name, e.g. "aes256-cbc".
    :return: The OID, or `None` if the name is not registered.
    """
    return ALL_NAME_2_OID.get(name)


def resolve_key_algorithm_id(name: str) -> str:
    """Return the registered key algorithm name, resolving aliases like "rsa"."""
    if not isinstance(name, str):
        raise UnexpectedType(f"Expecting key algorithm id to be a string, got {type(name).__name__}")
    return KEY_ALIASES.get(name.lower(), name)


def get_key_family(name: Optional[str]) -> Optional[KeyFamily]:
    """Return the key family of a symbolic key algorithm name.

    :param name: The key algorithm name, e.g. "sha256-with-rsa-encryption". Aliases are resolved.
    :return: The `KeyFamily`, or `None` if the algorithm is unknown.
    """
    if name is None:
        return None
    return _NAME_2_FAMILY.get(resolve_key_algorithm_id(name))


def resolve_curve_name(name: str) -> str:
    """Return the registered curve name, resolving alternative spellings like "secp256r1"."""
    if name in CURVE_NAME_2_OID:
        return name
    return CURVE_ALIASES.get(name.lower(), name)


def curve_name_for_oid(oid: Union[str, univ.ObjectIdentifier]) -> str:
    """Return the curve name for a named curve OID.

    :param oid: The named curve OID.
    :return: The curve name.
    :raises UnsupportedAlgorithm: If the OID is not a known named curve.
    """
    name = name_for_oid(oid)
    if name is None or name not in CURVE_NAME_2_OID:
        raise UnsupportedAlgorithm(f"Unsupported named curve OID '{oid}'")
    return name


def curve_oid_for_name(name: str) -> univ.ObjectIdentifier:
    """Return the OID for a named curve.

    :param name: The curve name, aliases are resolved.
    :return: The curve OID.
    :raises UnsupportedAlgorithm: If the curve is unknown.
    """
    oid = CURVE_NAME_2_OID.get(resolve_curve_name(name)) if isinstance(name, str) else None
    if oid is None:
        raise UnsupportedAlgorithm(f"Unsupported named curve '{name}'")
    return oid


def get_curve_byte_length(name: str) -> int:
    """Return the byte length of a coordinate on the named curve.

    The field size in bits need not be a multiple of 8, so it is rounded up.

    :param name: The curve name.
    :return: The number of bytes of a single coordinate.
    :raises UnsupportedAlgorithm: If the curve is unknown.
    """
    bits = CURVE_NAME_2_BITS.get(resolve_curve_name(name))
    if bits is None:
        raise UnsupportedAlgorithm(f"Unsupported named curve '{name}'")
    return (bits + 7) // 8
