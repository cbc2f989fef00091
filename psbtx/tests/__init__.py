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

from bitcointx.core import CTransaction, CTxIn, CTxOut, COutPoint
from bitcointx.core.key import BIP32Path
from bitcointx.core.script import CScript, OP_0
from bitcointx.core.serialize import Hash, Hash160

from psbtx.keys import PSBT_PubKey, PSBT_ExtPubKey, PSBT_KeySource


def make_unsigned_tx(n_in: int = 2, n_out: int = 2, seed: bytes = b''
                     ) -> CTransaction:
    vin = [CTxIn(COutPoint(Hash(seed + bytes([i])), i))
           for i in range(n_in)]
    vout = [CTxOut(10000 * (i + 1),
                   CScript([OP_0, Hash160(seed + bytes([0x80 + i]))]))
            for i in range(n_out)]
    return CTransaction(vin, vout, nLockTime=0, nVersion=2)


def make_pubkey(n: int, compressed: bool = True) -> PSBT_PubKey:
    if compressed:
        return PSBT_PubKey(b'\x02' + Hash(bytes([n])))
    return PSBT_PubKey(b'\x04' + Hash(bytes([n])) + Hash(bytes([n, n])))


def make_xpub(n: int, version: bytes = bytes.fromhex('0488b21e')
              ) -> PSBT_ExtPubKey:
    return PSBT_ExtPubKey(
        version + bytes([1]) + b'\x00\x01\x02\x03'
        + b'\x80\x00\x00\x00' + Hash(bytes([n, 0xcc]))
        + make_pubkey(n))


def make_key_source(fp: bytes = b'\xde\xad\xbe\xef',
                    path: str = "m/84'/0'/0'/0/1") -> PSBT_KeySource:
    return PSBT_KeySource(fp, BIP32Path(path))
