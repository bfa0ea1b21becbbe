# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""DER decoding and encoding with typed errors.

Decoding never returns partial results: trailing data after the top-level value or any
structural mismatch with the schema raises a single `DecodeAsn1Failed` naming the schema.
"""

import logging
from typing import Optional, TypeVar

from pyasn1.codec.der import decoder, encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import base, univ

from keycodec.exceptions import DecodeAsn1Failed, EncodeAsn1Failed

T = TypeVar("T", bound=base.Asn1Type)


def _schema_name(schema: base.Asn1Type) -> str:
    return type(schema).__name__


def decode_der(data: bytes, schema: T, schema_name: Optional[str] = None) -> T:
    """Decode DER data with the given schema.

    :param data: The DER encoded data.
    :param schema: An instance of the expected pyasn1 type.
    :param schema_name: The name reported in errors. Defaults to the schema class name.
    :return: The decoded pyasn1 object.
    :raises DecodeAsn1Failed: If the data does not match the schema or contains trailing data.
    """
    schema_name = schema_name or _schema_name(schema)
    try:
        decoded, rest = decoder.decode(bytes(data), asn1Spec=schema)
    except (PyAsn1Error, TypeError, ValueError) as err:
        logging.debug("Failed to decode %s: %s", schema_name, err)
        raise DecodeAsn1Failed(schema_name, original_error=err) from err

    if rest:
        raise DecodeAsn1Failed(schema_name, remainder=bytes(rest))

    return decoded


def encode_der(obj: base.Asn1Type, schema_name: Optional[str] = None) -> bytes:
    """Encode a pyasn1 object as DER.

    :param obj: The populated pyasn1 object.
    :param schema_name: The name reported in errors. Defaults to the object's class name.
    :return: The DER encoded bytes.
    :raises EncodeAsn1Failed: If the object is incomplete or violates a constraint.
    """
    try:
        return encoder.encode(obj)
    except (PyAsn1Error, TypeError, ValueError) as err:
        raise EncodeAsn1Failed(schema_name or _schema_name(obj), original_error=err) from err


def decode_any(value: univ.Any, schema: T, schema_name: Optional[str] = None) -> T:
    """Decode an opaque `ANY` value, such as `AlgorithmIdentifier` parameters, with the given schema.

    :param value: The `ANY` value as decoded, or `None` if the parameters are absent.
    :param schema: The schema to decode the value with.
    :param schema_name: The name reported in errors.
    :return: The decoded pyasn1 object.
    :raises DecodeAsn1Failed: If the value is absent or does not match the schema.
    """
    schema_name = schema_name or _schema_name(schema)
    if value is None or not value.isValue:
        raise DecodeAsn1Failed(schema_name)
    return decode_der(value.asOctets(), schema, schema_name)


def get_optional(structure: univ.Sequence, name: str) -> Optional[base.Asn1Type]:
    """Return the named component if it is present, otherwise `None`."""
    component = structure[name]
    if component.isValue:
        return component
    return None


def is_null_or_absent(value: Optional[univ.Any]) -> bool:
    """Return `True` if `ANY` parameters are absent or a DER NULL."""
    return value is None or not value.isValue or value.asOctets() == NULL_DER


NULL_DER = encoder.encode(univ.Null(""))
