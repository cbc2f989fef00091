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

from enum import IntEnum
from typing import Any, Dict, Optional, Type, TypeVar

from bitcointx.core import CTransaction
from bitcointx.core.serialize import ByteStream_Type
from bitcointx.util import ensure_isinstance

from .errors import (
    UnsignedTxHasScriptSigsError, UnsignedTxHasScriptWitnessesError,
    MustHaveUnsignedTxError, UnexpectedUnsignedTxError
)
from .fields import (
    PSBT_Field, UnsignedTxSerializer, ExtPubKeySerializer,
    KeySourceSerializer, UInt32Serializer
)
from .keys import PSBT_ExtPubKey, PSBT_KeySource
from .maps import PSBT_Map
from .raw import PSBT_RawKey, PSBT_ProprietaryKey

T_PSBT_Global = TypeVar('T_PSBT_Global', bound='PSBT_Global')


class PSBT_GlobalKeyType(IntEnum):
    UNSIGNED_TX = 0x00
    XPUB = 0x01
    VERSION = 0xFB
    PROPRIETARY = 0xFC


def check_unsigned_tx(tx: CTransaction) -> None:
    """Raise an error if the transaction carries any signature data"""

    for txin in tx.vin:
        if len(txin.scriptSig):
            raise UnsignedTxHasScriptSigsError()

    if tx.has_witness():
        raise UnsignedTxHasScriptWitnessesError()


class PSBT_Global(PSBT_Map):
    """The global map: the unsigned transaction and the data that
    concerns the transaction as a whole"""

    FIELDS = (
        PSBT_Field(PSBT_GlobalKeyType.UNSIGNED_TX, 'unsigned_tx',
                   UnsignedTxSerializer),
        PSBT_Field(PSBT_GlobalKeyType.XPUB, 'xpubs', KeySourceSerializer,
                   key_serializer=ExtPubKeySerializer),
        PSBT_Field(PSBT_GlobalKeyType.VERSION, 'version', UInt32Serializer),
    )

    unsigned_tx: CTransaction
    xpubs: Dict[PSBT_ExtPubKey, PSBT_KeySource]
    version: Optional[int]

    def __init__(
        self, unsigned_tx: CTransaction, *,
        xpubs: Optional[Dict[PSBT_ExtPubKey, PSBT_KeySource]] = None,
        version: Optional[int] = None,
        proprietary: Optional[Dict[PSBT_ProprietaryKey, bytes]] = None,
        unknown: Optional[Dict[PSBT_RawKey, bytes]] = None
    ) -> None:
        ensure_isinstance(unsigned_tx, CTransaction, 'unsigned transaction')
        check_unsigned_tx(unsigned_tx)
        self._init_fields(dict(unsigned_tx=unsigned_tx.to_immutable(),
                               xpubs=xpubs, version=version,
                               proprietary=proprietary, unknown=unknown))

    @classmethod
    def from_unsigned_tx(cls: Type[T_PSBT_Global], tx: CTransaction
                         ) -> T_PSBT_Global:
        return cls(tx)

    @property
    def effective_version(self) -> int:
        """PSBT version, 0 when the map carries no version field"""
        return 0 if self.version is None else self.version

    @classmethod
    def _new_for_decode(cls: Type[T_PSBT_Global], **kwargs: Any
                        ) -> T_PSBT_Global:
        # The unsigned transaction is not known until its pair is decoded
        inst = cls.__new__(cls)
        inst._init_fields({})
        return inst

    def _check_decoded(self) -> None:
        if self.unsigned_tx is None:
            raise MustHaveUnsignedTxError()
        check_unsigned_tx(self.unsigned_tx)

    @classmethod
    def stream_deserialize(cls: Type[T_PSBT_Global], f: ByteStream_Type,
                           **kwargs: Any) -> T_PSBT_Global:
        inst = super().stream_deserialize(f, **kwargs)
        cls.logger.debug('unsigned transaction has %d inputs, %d outputs',
                         len(inst.unsigned_tx.vin),
                         len(inst.unsigned_tx.vout))
        return inst

    def merge(self, other: 'PSBT_Global') -> None:
        """Merge other global map into this one. Both maps must
        describe the same unsigned transaction."""

        ensure_isinstance(other, self.__class__, 'other global map')

        if UnsignedTxSerializer.serialize(self.unsigned_tx) \
                != UnsignedTxSerializer.serialize(other.unsigned_tx):
            raise UnexpectedUnsignedTxError(self.unsigned_tx,
                                            other.unsigned_tx)

        if other.version is not None and (
                self.version is None or other.version > self.version):
            self.version = other.version
        self._merge_fields(other, exclude=('unsigned_tx', 'version'))

        self.logger.debug('merged, %d xpubs, version %d',
                          len(self.xpubs), self.effective_version)


__all__ = (
    'PSBT_GlobalKeyType',
    'PSBT_Global',
    'check_unsigned_tx',
)
