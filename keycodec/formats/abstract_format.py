# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Abstract format codec, to have a common interface for the different key formats."""

import logging
from abc import ABC
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Union

from keycodec.config_vars import ComposeOptions, DecomposeOptions
from keycodec.data_objects import DecomposedKey
from keycodec.exceptions import AggregatedError, InvalidInputKey, KeyCodecError, UnsupportedAlgorithm
from keycodec.keyenums import KeyFormat


@dataclass
class DecomposeResult:
    """The outcome of a single decompose attempt.

    Exactly one of `key` and `error` is set.
    """

    key: Optional[DecomposedKey] = None
    error: Optional[KeyCodecError] = None

    @property
    def ok(self) -> bool:
        """Return `True` if the attempt produced a key."""
        return self.key is not None


class AbstractKeyFormat(ABC):
    """Base class for the codecs of a single wire format.

    A format supports private keys, public keys or both. The operations it does not support
    raise `UnsupportedAlgorithm`.
    """

    key_format: KeyFormat

    def decompose_private_key(self, data: Union[bytes, str], options: DecomposeOptions) -> DecomposedKey:
        """Decompose a private key in this format.

        :param data: The encoded key.
        :param options: The decompose options, e.g. the password.
        :return: The decomposed key.
        """
        raise UnsupportedAlgorithm(f"{self.key_format.value} does not support private keys")

    def compose_private_key(self, key: DecomposedKey, options: ComposeOptions) -> Union[bytes, str]:
        """Compose a private key into this format.

        :param key: The decomposed key.
        :param options: The compose options, e.g. the password.
        :return: DER bytes or PEM text.
        """
        raise UnsupportedAlgorithm(f"{self.key_format.value} does not support private keys")

    def decompose_public_key(self, data: Union[bytes, str], options: DecomposeOptions) -> DecomposedKey:
        """Decompose a public key in this format."""
        raise UnsupportedAlgorithm(f"{self.key_format.value} does not support public keys")

    def compose_public_key(self, key: DecomposedKey, options: ComposeOptions) -> Union[bytes, str]:
        """Compose a public key into this format."""
        raise UnsupportedAlgorithm(f"{self.key_format.value} does not support public keys")

    def try_decompose(self, data: Union[bytes, str], options: DecomposeOptions, private: bool) -> DecomposeResult:
        """Attempt to decompose a key and return the outcome instead of raising.

        :param data: The encoded key.
        :param options: The decompose options.
        :param private: Whether a private or a public key is expected.
        :return: The `DecomposeResult`.
        """
        try:
            if private:
                key = self.decompose_private_key(data, options)
            else:
                key = self.decompose_public_key(data, options)
        except KeyCodecError as err:
            return DecomposeResult(error=err)
        return DecomposeResult(key=key)

    def _reject_encryption(self, key: DecomposedKey) -> None:
        """Raise if an encryption algorithm is set, for formats without an encryption envelope."""
        if key.encryption_algorithm is not None:
            raise UnsupportedAlgorithm(f"{self.key_format.value} does not support encryption")

    @staticmethod
    def _der_input(data: Union[bytes, str]) -> bytes:
        """Return DER input as bytes, text input cannot be DER."""
        if isinstance(data, str):
            raise InvalidInputKey("Expecting DER input to be bytes, got text")
        return bytes(data)


def try_candidates(candidates: Sequence[tuple], decompose_one, message: Optional[str] = None) -> DecomposedKey:
    """Try candidates in order until one decomposes the key.

    A recoverable error (the input does not match the candidate) is recorded and the next candidate is
    tried. Any other error means the candidate recognized the input but failed, and is raised as-is.

    :param candidates: `(name, candidate)` pairs in the order to try them.
    :param decompose_one: Callable returning a `DecomposeResult` for a candidate.
    :param message: The message of the aggregated error, if not the default one.
    :return: The first successfully decomposed key.
    :raises AggregatedError: If every candidate failed with a recoverable error.
    """
    errors: Dict[str, KeyCodecError] = {}
    for name, candidate in candidates:
        result = decompose_one(candidate)
        if result.ok:
            logging.debug("Input key recognized as %s", name)
            return result.key

        if not result.error.recoverable:
            raise result.error

        logging.debug("Input key is not %s: %s", name, result.error.message)
        errors[name] = result.error

    if message is None:
        raise AggregatedError(errors)

    raise AggregatedError(errors, message=message)
