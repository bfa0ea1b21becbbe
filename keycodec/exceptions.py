# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Contains the custom exceptions raised while decomposing and composing keys.

Every error carries a stable machine-readable `code`. Errors that only state a structural mismatch
with the attempted format are `recoverable`, so that format detection can continue with the next candidate.
"""

from typing import Dict, Optional


class KeyCodecError(Exception):
    """Base class for all key codec errors."""

    code: str = "KEY_CODEC_ERROR"

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        """Initialize the exception with the message.

        :param message: The message to display.
        :param original_error: The lower-level error which caused this one, if any.
        """
        self.message = message
        self.original_error = original_error
        super().__init__(message)

    @property
    def recoverable(self) -> bool:
        """Return `True` if the error only states that the input does not match the attempted format."""
        return self.code in RECOVERABLE_CODES


class UnexpectedType(KeyCodecError):
    """Raised when a value of the wrong type was passed at a public boundary."""

    code = "UNEXPECTED_TYPE"


class InvalidInputKey(KeyCodecError):
    """Raised when the input does not structurally match the attempted format."""

    code = "INVALID_INPUT_KEY"


class UnsupportedFormat(KeyCodecError):
    """Raised when the requested format is unknown."""

    code = "UNSUPPORTED_FORMAT"

    def __init__(self, key_format: str):
        """Initialize the exception with the unknown format.

        :param key_format: The format name which was requested.
        """
        self.key_format = key_format
        super().__init__(f"Unsupported format '{key_format}'")


class UnsupportedAlgorithm(KeyCodecError):
    """Raised when an algorithm, curve, cipher or KDF is not supported."""

    code = "UNSUPPORTED_ALGORITHM"


class MissingPassword(KeyCodecError):
    """Raised when a password is needed but was not provided."""

    code = "MISSING_PASSWORD"


class DecryptionFailed(KeyCodecError):
    """Raised when the encrypted key could not be decrypted, most likely because of a wrong password."""

    code = "DECRYPTION_FAILED"


class DecodeAsn1Failed(KeyCodecError):
    """Raised when DER data could not be decoded into the expected schema."""

    code = "DECODE_ASN1_FAILED"

    def __init__(
        self,
        schema_name: str,
        original_error: Optional[BaseException] = None,
        remainder: Optional[bytes] = None,
    ):
        """Initialize the exception with the schema name.

        :param schema_name: The name of the schema which was used for decoding.
        :param original_error: The decoder error, if any.
        :param remainder: The trailing data, if the failure was caused by it.
        """
        self.schema_name = schema_name
        self.remainder = remainder
        message = f"Failed to decode {schema_name}"
        if remainder:
            message += f": unexpected trailing data {remainder.hex()}"
        super().__init__(message, original_error=original_error)


class EncodeAsn1Failed(KeyCodecError):
    """Raised when a structure could not be DER encoded."""

    code = "ENCODE_ASN1_FAILED"

    def __init__(self, schema_name: str, original_error: Optional[BaseException] = None):
        """Initialize the exception with the schema name.

        :param schema_name: The name of the schema which was used for encoding.
        :param original_error: The encoder error, if any.
        """
        self.schema_name = schema_name
        super().__init__(f"Failed to encode {schema_name}", original_error=original_error)


class DecodePemFailed(KeyCodecError):
    """Raised when PEM text could not be parsed."""

    code = "DECODE_PEM_FAILED"


class AggregatedError(KeyCodecError):
    """Raised when every tried candidate failed with a recoverable error."""

    code = "AGGREGATED_ERROR"

    def __init__(
        self, errors: Dict[str, KeyCodecError], message: str = "No format was able to recognize the input key"
    ):
        """Initialize the exception with the collected errors.

        :param errors: The errors per candidate, in the order the candidates were tried.
        :param message: The message to display.
        """
        self.errors = dict(errors)
        super().__init__(message)

    @property
    def recoverable(self) -> bool:
        """Return `True` if every collected error is recoverable."""
        return all(error.recoverable for error in self.errors.values())

    def __str__(self) -> str:
        """Return the message followed by one line per candidate."""
        lines = [self.message]
        for name, error in self.errors.items():
            lines.append(f"  {name}: [{error.code}] {error.message}")
        return "\n".join(lines)


RECOVERABLE_CODES = frozenset({InvalidInputKey.code, DecodeAsn1Failed.code, DecodePemFailed.code})
