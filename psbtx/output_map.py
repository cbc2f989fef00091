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

from bitcointx.core.script import CScript

from .fields import (
    PSBT_Field, ScriptSerializer, PubKeySerializer, KeySourceSerializer
)
from .keys import PSBT_PubKey, PSBT_KeySource
from .maps import PSBT_Map
from .raw import PSBT_RawKey, PSBT_ProprietaryKey


class PSBT_OutKeyType(IntEnum):
    REDEEM_SCRIPT = 0x00
    WITNESS_SCRIPT = 0x01
    BIP32_DERIVATION = 0x02
    PROPRIETARY = 0xFC


class PSBT_Output(PSBT_Map):
    """Map for an output of the unsigned transaction, at the same index"""

    FIELDS = (
        PSBT_Field(PSBT_OutKeyType.REDEEM_SCRIPT, 'redeem_script',
                   ScriptSerializer),
        PSBT_Field(PSBT_OutKeyType.WITNESS_SCRIPT, 'witness_script',
                   ScriptSerializer),
        PSBT_Field(PSBT_OutKeyType.BIP32_DERIVATION, 'bip32_derivation',
                   KeySourceSerializer, key_serializer=PubKeySerializer),
    )

    redeem_script: Optional[CScript]
    witness_script: Optional[CScript]
    bip32_derivation: Dict[PSBT_PubKey, PSBT_KeySource]

    def __init__(
        self, *,
        redeem_script: Optional[CScript] = None,
        witness_script: Optional[CScript] = None,
        bip32_derivation: Optional[Dict[PSBT_PubKey, PSBT_KeySource]] = None,
        proprietary: Optional[Dict[PSBT_ProprietaryKey, bytes]] = None,
        unknown: Optional[Dict[PSBT_RawKey, bytes]] = None
    ) -> None:
        self._init_fields(dict(redeem_script=redeem_script,
                               witness_script=witness_script,
                               bip32_derivation=bip32_derivation,
                               proprietary=proprietary, unknown=unknown))


__all__ = (
    'PSBT_OutKeyType',
    'PSBT_Output',
)
