# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Decompose encoded private and public keys into a normalized form, and compose them back.

Supported formats are PKCS#1, PKCS#8, SubjectPublicKeyInfo and the raw family structures,
each as DER or as PEM. Private keys can be protected with the legacy OpenSSL PEM encryption
(PKCS#1 and raw PEM) or with PBES2 (PKCS#8).
"""

import logging
from typing import Dict, List, Optional

from keycodec.config_vars import ComposeOptions, DecomposeOptions, EncryptionDefaults
from keycodec.data_objects import DecomposedKey
from keycodec.exceptions import UnexpectedType, UnsupportedFormat
from keycodec.formats.abstract_format import AbstractKeyFormat, try_candidates
from keycodec.formats.pkcs1 import Pkcs1DerFormat, Pkcs1PemFormat
from keycodec.formats.pkcs8 import Pkcs8DerFormat, Pkcs8PemFormat
from keycodec.formats.raw import RawDerFormat, RawPemFormat
from keycodec.formats.spki import SpkiDerFormat, SpkiPemFormat
from keycodec.keyenums import KeyFormat
from keycodec.typingutils import FormatArg, KeyInput, KeyOutput, Password

# The formats per key kind, in the order they are tried if no format is given.
PRIVATE_FORMATS: Dict[KeyFormat, AbstractKeyFormat] = {
    KeyFormat.PKCS1_PEM: Pkcs1PemFormat(),
    KeyFormat.PKCS8_PEM: Pkcs8PemFormat(),
    KeyFormat.RAW_PEM: RawPemFormat(),
    KeyFormat.PKCS1_DER: Pkcs1DerFormat(),
    KeyFormat.PKCS8_DER: Pkcs8DerFormat(),
    KeyFormat.RAW_DER: RawDerFormat(),
}

PUBLIC_FORMATS: Dict[KeyFormat, AbstractKeyFormat] = {
    KeyFormat.SPKI_PEM: SpkiPemFormat(),
    KeyFormat.RAW_PEM: RawPemFormat(),
    KeyFormat.SPKI_DER: SpkiDerFormat(),
    KeyFormat.RAW_DER: RawDerFormat(),
}


def _check_input_key(input_key: KeyInput) -> KeyInput:
    """Ensure the encoded key has a supported type, `bytearray` is converted to `bytes`."""
    if isinstance(input_key, bytearray):
        return bytes(input_key)
    if not isinstance(input_key, (bytes, str)):
        raise UnexpectedType("Expecting input key to be one of: bytes, bytearray, str")
    return input_key


def _check_decomposed_key(decomposed_key: DecomposedKey) -> None:
    if not isinstance(decomposed_key, DecomposedKey):
        raise UnexpectedType("Expecting decomposed key to be an object")


def _password_to_bytes(password: Optional[Password]) -> Optional[bytes]:
    """Return the password as bytes, text is UTF-8 encoded."""
    if password is None:
        return None
    if isinstance(password, str):
        return password.encode("utf-8")
    if isinstance(password, (bytes, bytearray)):
        return bytes(password)
    raise UnexpectedType("Expecting password to be one of: bytes, str")


def _resolve_formats(key_format: Optional[FormatArg], registry: Dict[KeyFormat, AbstractKeyFormat]) -> List[KeyFormat]:
    """Return the requested formats, or every format of the registry if none was requested.

    :param key_format: A single format, a list of formats or `None`.
    :param registry: The formats supported for the key kind.
    :return: The formats to try, in order.
    :raises UnexpectedType: If a format is not a string or the list is empty.
    :raises UnsupportedFormat: If a format is unknown or not supported for the key kind.
    """
    if key_format is None:
        return list(registry)

    if isinstance(key_format, (str, KeyFormat)):
        requested = [key_format]
    elif isinstance(key_format, (list, tuple)):
        requested = list(key_format)
    else:
        raise UnexpectedType("Expecting format to be a string")

    if not requested:
        raise UnexpectedType("Expecting at least one format")

    formats = []
    for name in requested:
        resolved = KeyFormat.get(name)
        if resolved not in registry:
            raise UnsupportedFormat(resolved.value)
        formats.append(resolved)
    return formats


def _decompose(
    input_key: KeyInput, registry: Dict[KeyFormat, AbstractKeyFormat], options: DecomposeOptions, private: bool
) -> DecomposedKey:
    input_key = _check_input_key(input_key)
    formats = _resolve_formats(options.formats, registry)

    # A single requested format propagates its error unchanged.
    if isinstance(options.formats, (str, KeyFormat)):
        codec = registry[formats[0]]
        if private:
            return codec.decompose_private_key(input_key, options)
        return codec.decompose_public_key(input_key, options)

    candidates = [(fmt.value, registry[fmt]) for fmt in formats]
    return try_candidates(candidates, lambda codec: codec.try_decompose(input_key, options, private))


def _get_codec(decomposed_key: DecomposedKey, registry: Dict[KeyFormat, AbstractKeyFormat]) -> AbstractKeyFormat:
    _check_decomposed_key(decomposed_key)
    codec = registry.get(decomposed_key.format)
    if codec is None:
        raise UnsupportedFormat(decomposed_key.format.value)
    return codec


def decompose_private_key(  # noqa: D417 undocumented-params
    input_key: KeyInput,
    password: Optional[Password] = None,
    format: Optional[FormatArg] = None,  # pylint: disable=redefined-builtin
) -> DecomposedKey:
    """Decompose an encoded private key.

    Arguments:
    ---------
        - `input_key`: The encoded key. DER as `bytes`, PEM as `str` or ASCII `bytes`.
        - `password`: The password to decrypt an encrypted key. Text is UTF-8 encoded. Defaults to `None`.
        - `format`: A format name, or a list of format names to try in order. If `None`, the formats
        are tried in the order "pkcs1-pem", "pkcs8-pem", "raw-pem", "pkcs1-der", "pkcs8-der", "raw-der".

    Returns:
    -------
        - The `DecomposedKey`.

    Raises:
    ------
        - `UnexpectedType`: If the input key or a format has the wrong type.
        - `UnsupportedFormat`: If a format is unknown or not a private key format.
        - `AggregatedError`: If several formats were tried and none recognized the key.
        - `MissingPassword`: If the key is encrypted and no password was given.
        - `DecryptionFailed`: If the password is most likely wrong.
        - `UnsupportedAlgorithm`: If the key or its encryption uses an unsupported algorithm.

    Examples:
    --------
    >>> key = decompose_private_key(pem_text, password="password")
    >>> key = decompose_private_key(der_data, format=["pkcs8-der", "raw-der"])

    """
    options = DecomposeOptions(password=_password_to_bytes(password), formats=format)
    return _decompose(input_key, PRIVATE_FORMATS, options, private=True)


def decompose_public_key(  # noqa: D417 undocumented-params
    input_key: KeyInput,
    format: Optional[FormatArg] = None,  # pylint: disable=redefined-builtin
) -> DecomposedKey:
    """Decompose an encoded public key.

    Arguments:
    ---------
        - `input_key`: The encoded key. DER as `bytes`, PEM as `str` or ASCII `bytes`.
        - `format`: A format name, or a list of format names to try in order. If `None`, the formats
        are tried in the order "spki-pem", "raw-pem", "spki-der", "raw-der".

    Returns:
    -------
        - The `DecomposedKey`.

    Raises:
    ------
        - `UnexpectedType`: If the input key or a format has the wrong type.
        - `UnsupportedFormat`: If a format is unknown or not a public key format.
        - `AggregatedError`: If several formats were tried and none recognized the key.
        - `UnsupportedAlgorithm`: If the key uses an unsupported algorithm.

    """
    return _decompose(input_key, PUBLIC_FORMATS, DecomposeOptions(formats=format), private=False)


def compose_private_key(  # noqa: D417 undocumented-params
    decomposed_key: DecomposedKey,
    password: Optional[Password] = None,
    defaults: Optional[EncryptionDefaults] = None,
) -> KeyOutput:
    """Compose a decomposed private key into the format named by its `format` field.

    If a password is given, the key is encrypted. Encryption parameters missing from the
    `encryption_algorithm` of the key are taken from the defaults, salt and IV are generated.

    The `encryption_algorithm` must belong to the target format: PEM `DEK-Info` encryption for
    pkcs1-pem and raw-pem, PBES2 for pkcs8. To transcode an encrypted key into a format with the
    other scheme, clear it first with `decomposed_key.replace(encryption_algorithm=None)`, so that
    the defaults apply. Otherwise `UnsupportedAlgorithm` is raised.

    Arguments:
    ---------
        - `decomposed_key`: The `DecomposedKey` to compose.
        - `password`: The password to encrypt the key with. Text is UTF-8 encoded. Defaults to `None`.
        - `defaults`: The `EncryptionDefaults` to use. Defaults to `EncryptionDefaults()`.

    Returns:
    -------
        - The encoded key, as `bytes` for DER formats and as `str` for PEM formats.

    Raises:
    ------
        - `UnexpectedType`: If the decomposed key is not a `DecomposedKey`.
        - `UnsupportedFormat`: If the format is not a private key format.
        - `MissingPassword`: If an encryption algorithm is set but no password was given.
        - `UnsupportedAlgorithm`: If the key or encryption algorithm is not supported by the format.

    """
    codec = _get_codec(decomposed_key, PRIVATE_FORMATS)
    options = ComposeOptions(password=_password_to_bytes(password), defaults=defaults or EncryptionDefaults())
    logging.debug("Composing private key as %s", decomposed_key.format.value)
    return codec.compose_private_key(decomposed_key, options)


def compose_public_key(decomposed_key: DecomposedKey) -> KeyOutput:  # noqa: D417 undocumented-params
    """Compose a decomposed public key into the format named by its `format` field.

    Arguments:
    ---------
        - `decomposed_key`: The `DecomposedKey` to compose.

    Returns:
    -------
        - The encoded key, as `bytes` for DER formats and as `str` for PEM formats.

    Raises:
    ------
        - `UnexpectedType`: If the decomposed key is not a `DecomposedKey`.
        - `UnsupportedFormat`: If the format is not a public key format.
        - `UnsupportedAlgorithm`: If the key algorithm is not supported by the format.

    """
    codec = _get_codec(decomposed_key, PUBLIC_FORMATS)
    logging.debug("Composing public key as %s", decomposed_key.format.value)
    return codec.compose_public_key(decomposed_key, ComposeOptions())
