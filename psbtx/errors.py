# Copyright (C) 2024 The python-psbtx developers
#
# This file is part of python-psbtx.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of python-psbtx, including this file, may be copied, modified,
# propagated, or distributed except according to the terms contained in the
# LICENSE file.

"""Errors raised while decoding, encoding or merging PSBT maps

Every failure caused by malformed input is reported with one of the
classes below. All of them derive from PSBTError, which is itself
a SerializationError, so code that already handles bitcointx
serialization errors will also catch these.
"""

from typing import TYPE_CHECKING

from bitcointx.core import CTransaction, b2x, b2lx
from bitcointx.core.serialize import SerializationError

if TYPE_CHECKING:
    from .raw import PSBT_RawKey


class PSBTError(SerializationError):
    """Base class for PSBT errors"""


class InvalidMagicError(PSBTError):
    """Magic bytes at the start of the data are not 'psbt'"""

    def __init__(self) -> None:
        super().__init__('invalid magic')


class InvalidSeparatorError(PSBTError):
    """The byte after the magic is not the 0xff separator"""

    def __init__(self) -> None:
        super().__init__('invalid separator')


class InvalidKeyError(PSBTError):
    """Key of a known type does not have the shape the type requires"""

    def __init__(self, key: 'PSBT_RawKey') -> None:
        super().__init__(f'invalid key: {key}')
        self.key = key


class InvalidProprietaryKeyError(PSBTError):
    """Proprietary key was expected, but a key of other type was given,
    or the proprietary key data could not be parsed"""

    def __init__(self, key: 'PSBT_RawKey', reason: str = '') -> None:
        msg = ('non-proprietary key type found when proprietary key '
               'was expected')
        if reason:
            msg = f'invalid proprietary key {key}: {reason}'
        super().__init__(msg)
        self.key = key
        self.reason = reason


class DuplicateKeyError(PSBTError):
    """Keys within key-value map should never be duplicated"""

    def __init__(self, key: 'PSBT_RawKey') -> None:
        super().__init__(f'duplicate key: {key}')
        self.key = key


class UnsignedTxHasScriptSigsError(PSBTError):

    def __init__(self) -> None:
        super().__init__('the unsigned transaction has script sigs')


class UnsignedTxHasScriptWitnessesError(PSBTError):

    def __init__(self) -> None:
        super().__init__('the unsigned transaction has script witnesses')


class MustHaveUnsignedTxError(PSBTError):

    def __init__(self) -> None:
        super().__init__('partially signed transactions must have '
                         'an unsigned transaction')


class NoMorePairs(PSBTError):
    """Signals the end of a key-value map. Never escapes the map decoder."""

    def __init__(self) -> None:
        super().__init__('no more key-value pairs for this psbt map')


class UnexpectedUnsignedTxError(PSBTError):
    """Attempt to merge maps that describe different unsigned transactions"""

    def __init__(self, expected: CTransaction, actual: CTransaction) -> None:
        super().__init__(
            f'different unsigned transaction: '
            f'expected {b2lx(expected.GetTxid())}, '
            f'actual {b2lx(actual.GetTxid())}')
        self.expected = expected
        self.actual = actual


class NonStandardSigHashTypeError(PSBTError):

    def __init__(self, sighash_type: int) -> None:
        super().__init__(f'non-standard sighash type: {sighash_type}')
        self.sighash_type = sighash_type


class InvalidPreimageHashPairError(PSBTError):
    """The preimage does not hash to the digest it is keyed by"""

    def __init__(self, preimage: bytes, hash: bytes, hash_type: str) -> None:
        super().__init__(
            f'preimage x(\'{b2x(preimage)}\') does not match '
            f'{hash_type} hash x(\'{b2x(hash)}\')')
        self.preimage = preimage
        self.hash = hash
        self.hash_type = hash_type


class ParseFailedError(PSBTError):
    """Structural violation that has no dedicated error class"""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


__all__ = (
    'PSBTError',
    'InvalidMagicError',
    'InvalidSeparatorError',
    'InvalidKeyError',
    'InvalidProprietaryKeyError',
    'DuplicateKeyError',
    'UnsignedTxHasScriptSigsError',
    'UnsignedTxHasScriptWitnessesError',
    'MustHaveUnsignedTxError',
    'NoMorePairs',
    'UnexpectedUnsignedTxError',
    'NonStandardSigHashTypeError',
    'InvalidPreimageHashPairError',
    'ParseFailedError',
)
