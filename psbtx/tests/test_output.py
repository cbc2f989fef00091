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

import unittest
from io import BytesIO
from unittest import mock
from typing import Iterable

from bitcointx.core import x
from bitcointx.core.script import CScript, OP_0, OP_TRUE

from psbtx.errors import DuplicateKeyError, InvalidKeyError, ParseFailedError
from psbtx.output_map import PSBT_Output, PSBT_OutKeyType
from psbtx.raw import (
    PSBT_RawKey, PSBT_RawPair, PSBT_ProprietaryKey, write_pairs
)

from psbtx.tests import make_pubkey, make_key_source


def encode_pairs(pairs: Iterable[PSBT_RawPair]) -> bytes:
    f = BytesIO()
    write_pairs(pairs, f)
    return f.getvalue()


class Test_PSBT_Output(unittest.TestCase):
    def test_round_trip(self) -> None:
        outp = PSBT_Output(
            redeem_script=CScript([OP_0, b'\x11' * 32]),
            witness_script=CScript([OP_TRUE]),
            bip32_derivation={make_pubkey(2): make_key_source(path='m/1/2'),
                              make_pubkey(1): make_key_source()},
            proprietary={PSBT_ProprietaryKey(b'app', 0): x('00')},
            unknown={PSBT_RawKey(0x03): x('01')})

        data = outp.serialize()
        decoded = PSBT_Output.deserialize(data)
        self.assertEqual(decoded, outp)
        self.assertEqual(decoded.redeem_script, outp.redeem_script)
        self.assertEqual(decoded.witness_script, outp.witness_script)
        self.assertEqual(decoded.bip32_derivation, outp.bip32_derivation)
        self.assertEqual(decoded.serialize(), data)

        self.assertEqual([pair.key.key_type for pair in decoded.get_pairs()],
                         [0x00, 0x01, 0x02, 0x02, 0xfc, 0x03])

    def test_duplicate_keys(self) -> None:
        pairs = PSBT_Output(
            redeem_script=CScript([OP_TRUE]),
            witness_script=CScript([OP_TRUE]),
            bip32_derivation={make_pubkey(1): make_key_source()},
            proprietary={PSBT_ProprietaryKey(b'app', 0): x('00')},
            unknown={PSBT_RawKey(0x03): x('01')}).get_pairs()

        for dup in pairs:
            with self.assertRaises(DuplicateKeyError):
                PSBT_Output.deserialize(encode_pairs(pairs + [dup]))

    def test_invalid_keys(self) -> None:
        with self.assertRaises(InvalidKeyError):
            PSBT_Output().insert_pair(PSBT_RawPair(
                PSBT_RawKey(PSBT_OutKeyType.BIP32_DERIVATION),
                make_key_source().serialize()))

        with self.assertRaises(InvalidKeyError):
            PSBT_Output().insert_pair(PSBT_RawPair(
                PSBT_RawKey(PSBT_OutKeyType.WITNESS_SCRIPT, x('01')),
                x('51')))

        with self.assertRaises(ParseFailedError):
            PSBT_Output().insert_pair(PSBT_RawPair(
                PSBT_RawKey(PSBT_OutKeyType.BIP32_DERIVATION,
                            bytes(make_pubkey(1))),
                x('0011')))

    def test_merge(self) -> None:
        a = PSBT_Output(redeem_script=CScript([OP_TRUE]),
                        bip32_derivation={make_pubkey(1): make_key_source()})
        b = PSBT_Output(
            redeem_script=CScript([OP_0]),
            witness_script=CScript([OP_0]),
            bip32_derivation={make_pubkey(1): make_key_source(path='m/5'),
                              make_pubkey(2): make_key_source()},
            unknown={PSBT_RawKey(0x03): x('01')})
        a.merge(b)
        self.assertEqual(a.redeem_script, CScript([OP_TRUE]))
        self.assertEqual(a.witness_script, CScript([OP_0]))
        self.assertEqual(a.bip32_derivation,
                         {make_pubkey(1): make_key_source(),
                          make_pubkey(2): make_key_source()})
        self.assertEqual(a.unknown, {PSBT_RawKey(0x03): x('01')})

        with self.assertRaises(TypeError):
            a.merge(object())  # type: ignore

    def test_merge_does_not_reencode(self) -> None:
        a = PSBT_Output(redeem_script=CScript([OP_TRUE]))
        b = PSBT_Output(witness_script=CScript([OP_0]),
                        bip32_derivation={make_pubkey(1): make_key_source()})
        with mock.patch.object(PSBT_Output, 'get_pairs',
                               side_effect=AssertionError('encoded')):
            a.merge(b)
        self.assertEqual(a.witness_script, CScript([OP_0]))
        self.assertEqual(a.bip32_derivation, {make_pubkey(1): make_key_source()})
