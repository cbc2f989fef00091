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
from typing import Dict, Optional

from bitcointx.core import CTransaction, CTxOut
from bitcointx.core.script import CScript, CScriptWitness, SIGHASH_Type
from bitcointx.util import ensure_isinstance

from .fields import (
    PSBT_Field, TransactionSerializer, TxOutSerializer, PubKeySerializer,
    RawBytesSerializer, SigHashTypeSerializer, ScriptSerializer,
    KeySourceSerializer, WitnessStackSerializer,
    Digest20Serializer, Digest32Serializer
)
from .hashes import RIPEMD160, SHA256, HASH160, HASH256
from .keys import PSBT_PubKey, PSBT_KeySource
from .maps import PSBT_Map
from .raw import PSBT_RawKey, PSBT_ProprietaryKey


class PSBT_InKeyType(IntEnum):
    NON_WITNESS_UTXO = 0x00
    WITNESS_UTXO = 0x01
    PARTIAL_SIG = 0x02
    SIGHASH_TYPE = 0x03
    REDEEM_SCRIPT = 0x04
    WITNESS_SCRIPT = 0x05
    BIP32_DERIVATION = 0x06
    FINAL_SCRIPTSIG = 0x07
    FINAL_SCRIPTWITNESS = 0x08
    RIPEMD160 = 0x0A
    SHA256 = 0x0B
    HASH160 = 0x0C
    HASH256 = 0x0D
    PROPRIETARY = 0xFC


class PSBT_Input(PSBT_Map):
    """Map for an input of the unsigned transaction, at the same index"""

    FIELDS = (
        PSBT_Field(PSBT_InKeyType.NON_WITNESS_UTXO, 'non_witness_utxo',
                   TransactionSerializer),
        PSBT_Field(PSBT_InKeyType.WITNESS_UTXO, 'witness_utxo',
                   TxOutSerializer),
        PSBT_Field(PSBT_InKeyType.PARTIAL_SIG, 'partial_sigs',
                   RawBytesSerializer, key_serializer=PubKeySerializer),
        PSBT_Field(PSBT_InKeyType.SIGHASH_TYPE, 'sighash_type',
                   SigHashTypeSerializer),
        PSBT_Field(PSBT_InKeyType.REDEEM_SCRIPT, 'redeem_script',
                   ScriptSerializer),
        PSBT_Field(PSBT_InKeyType.WITNESS_SCRIPT, 'witness_script',
                   ScriptSerializer),
        PSBT_Field(PSBT_InKeyType.BIP32_DERIVATION, 'bip32_derivation',
                   KeySourceSerializer, key_serializer=PubKeySerializer),
        PSBT_Field(PSBT_InKeyType.FINAL_SCRIPTSIG, 'final_script_sig',
                   ScriptSerializer),
        PSBT_Field(PSBT_InKeyType.FINAL_SCRIPTWITNESS, 'final_script_witness',
                   WitnessStackSerializer),
        PSBT_Field(PSBT_InKeyType.RIPEMD160, 'ripemd160_preimages',
                   RawBytesSerializer, key_serializer=Digest20Serializer,
                   hash_type=RIPEMD160),
        PSBT_Field(PSBT_InKeyType.SHA256, 'sha256_preimages',
                   RawBytesSerializer, key_serializer=Digest32Serializer,
                   hash_type=SHA256),
        PSBT_Field(PSBT_InKeyType.HASH160, 'hash160_preimages',
                   RawBytesSerializer, key_serializer=Digest20Serializer,
                   hash_type=HASH160),
        PSBT_Field(PSBT_InKeyType.HASH256, 'hash256_preimages',
                   RawBytesSerializer, key_serializer=Digest32Serializer,
                   hash_type=HASH256),
    )

    non_witness_utxo: Optional[CTransaction]
    witness_utxo: Optional[CTxOut]
    partial_sigs: Dict[PSBT_PubKey, bytes]
    sighash_type: Optional[SIGHASH_Type]
    redeem_script: Optional[CScript]
    witness_script: Optional[CScript]
    bip32_derivation: Dict[PSBT_PubKey, PSBT_KeySource]
    final_script_sig: Optional[CScript]
    final_script_witness: Optional[CScriptWitness]
    ripemd160_preimages: Dict[bytes, bytes]
    sha256_preimages: Dict[bytes, bytes]
    hash160_preimages: Dict[bytes, bytes]
    hash256_preimages: Dict[bytes, bytes]

    def __init__(
        self, *,
        non_witness_utxo: Optional[CTransaction] = None,
        witness_utxo: Optional[CTxOut] = None,
        partial_sigs: Optional[Dict[PSBT_PubKey, bytes]] = None,
        sighash_type: Optional[int] = None,
        redeem_script: Optional[CScript] = None,
        witness_script: Optional[CScript] = None,
        bip32_derivation: Optional[Dict[PSBT_PubKey, PSBT_KeySource]] = None,
        final_script_sig: Optional[CScript] = None,
        final_script_witness: Optional[CScriptWitness] = None,
        ripemd160_preimages: Optional[Dict[bytes, bytes]] = None,
        sha256_preimages: Optional[Dict[bytes, bytes]] = None,
        hash160_preimages: Optional[Dict[bytes, bytes]] = None,
        hash256_preimages: Optional[Dict[bytes, bytes]] = None,
        proprietary: Optional[Dict[PSBT_ProprietaryKey, bytes]] = None,
        unknown: Optional[Dict[PSBT_RawKey, bytes]] = None
    ) -> None:
        if sighash_type is not None:
            sighash_type = SIGHASH_Type(sighash_type)

        self._init_fields(dict(
            non_witness_utxo=non_witness_utxo,
            witness_utxo=witness_utxo,
            partial_sigs=partial_sigs,
            sighash_type=sighash_type,
            redeem_script=redeem_script,
            witness_script=witness_script,
            bip32_derivation=bip32_derivation,
            final_script_sig=final_script_sig,
            final_script_witness=final_script_witness,
            ripemd160_preimages=ripemd160_preimages,
            sha256_preimages=sha256_preimages,
            hash160_preimages=hash160_preimages,
            hash256_preimages=hash256_preimages,
            proprietary=proprietary, unknown=unknown))

    def merge(self, other: 'PSBT_Input') -> None:
        """Merge other input map into this one.

        A witness utxo supplied by other replaces the non-witness utxo
        of this map. The finalized script and witness are filled in like
        the other scalars; a finalized input still accepts merges."""

        ensure_isinstance(other, self.__class__, 'other input map')

        if self.non_witness_utxo is None:
            self.non_witness_utxo = other.non_witness_utxo

        if self.witness_utxo is None and other.witness_utxo is not None:
            self.witness_utxo = other.witness_utxo
            self.non_witness_utxo = None

        self._merge_fields(other,
                           exclude=('non_witness_utxo', 'witness_utxo'))

        self.logger.debug('merged, %d partial signatures',
                          len(self.partial_sigs))


__all__ = (
    'PSBT_InKeyType',
    'PSBT_Input',
)
