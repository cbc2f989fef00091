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

from bitcointx.core import x

from psbtx.errors import (
    NoMorePairs, ParseFailedError, InvalidProprietaryKeyError, PSBTError
)
from psbtx.raw import (
    PSBT_RawKey, PSBT_RawPair, PSBT_ProprietaryKey,
    decode_one, encode_one, read_pairs, write_pairs
)


class Test_RawPair(unittest.TestCase):
    def test_decode(self) -> None:
        f = BytesIO(x('030baabb02cafe'))
        pair = decode_one(f)
        self.assertEqual(pair.key, PSBT_RawKey(0x0b, x('aabb')))
        self.assertEqual(pair.value, x('cafe'))
        self.assertEqual(f.read(), b'')

    def test_encode(self) -> None:
        f = BytesIO()
        encode_one(PSBT_RawPair(PSBT_RawKey(0x0b, x('aabb')), x('cafe')), f)
        self.assertEqual(f.getvalue(), x('030baabb02cafe'))

        f = BytesIO()
        encode_one(PSBT_RawPair(PSBT_RawKey(0x03), x('01000000')), f)
        self.assertEqual(f.getvalue(), x('01030401000000'))

    def test_long_value(self) -> None:
        value = b'\x55' * 300
        f = BytesIO()
        encode_one(PSBT_RawPair(PSBT_RawKey(0x04), value), f)
        self.assertEqual(f.getvalue()[:4], x('0104fd2c'))
        f.seek(0)
        self.assertEqual(decode_one(f).value, value)

    def test_terminator(self) -> None:
        with self.assertRaises(NoMorePairs):
            decode_one(BytesIO(b'\x00'))

    def test_truncated(self) -> None:
        for data in ('', '05aabb', '0203', '020301', '0203040201'):
            with self.assertRaises(ParseFailedError):
                decode_one(BytesIO(x(data)))

        # parse errors are PSBT errors and bitcointx serialization errors
        with self.assertRaises(PSBTError):
            decode_one(BytesIO(x('0203')))

    def test_read_write_pairs(self) -> None:
        pairs = [
            PSBT_RawPair(PSBT_RawKey(0x00), x('00')),
            PSBT_RawPair(PSBT_RawKey(0x02, x('0102')), b''),
        ]
        f = BytesIO()
        write_pairs(pairs, f)
        self.assertEqual(f.getvalue(), x('01000100030201020000'))

        f = BytesIO(f.getvalue() + x('ff'))
        self.assertEqual(list(read_pairs(f)), pairs)
        self.assertEqual(f.read(), x('ff'))

        f = BytesIO()
        write_pairs([], f)
        self.assertEqual(f.getvalue(), b'\x00')
        self.assertEqual(list(read_pairs(BytesIO(b'\x00'))), [])

    def test_missing_terminator(self) -> None:
        with self.assertRaises(ParseFailedError):
            list(read_pairs(BytesIO(x('01000100'))))

    def test_str(self) -> None:
        self.assertEqual(str(PSBT_RawKey(0x0b, x('aabb'))),
                         'type: 0x0b, key: aabb')


class Test_ProprietaryKey(unittest.TestCase):
    def test_to_raw_key(self) -> None:
        pkey = PSBT_ProprietaryKey(b'test', 5, x('abcd'))
        self.assertEqual(pkey.to_raw_key(),
                         PSBT_RawKey(0xFC, x('04') + b'test' + x('05abcd')))

        pkey = PSBT_ProprietaryKey(b'', 0xfd)
        self.assertEqual(pkey.to_raw_key(),
                         PSBT_RawKey(0xFC, x('00fdfd00')))

    def test_from_raw_key(self) -> None:
        raw = PSBT_RawKey(0xFC, x('03') + b'abc' + x('fd0001') + x('ee'))
        pkey = PSBT_ProprietaryKey.from_raw_key(raw)
        self.assertEqual(pkey, PSBT_ProprietaryKey(b'abc', 0x100, x('ee')))
        self.assertEqual(pkey.to_raw_key(), raw)

    def test_wrong_type(self) -> None:
        raw = PSBT_RawKey(0x01, x('03') + b'abc' + x('00'))
        with self.assertRaises(InvalidProprietaryKeyError) as cm:
            PSBT_ProprietaryKey.from_raw_key(raw)
        self.assertEqual(cm.exception.key, raw)

    def test_malformed(self) -> None:
        for data in ('', '05abcd', '02abcd'):
            with self.assertRaises(InvalidProprietaryKeyError):
                PSBT_ProprietaryKey.from_raw_key(PSBT_RawKey(0xFC, x(data)))

    def test_ordering(self) -> None:
        keys = [PSBT_ProprietaryKey(b'b', 0), PSBT_ProprietaryKey(b'a', 2),
                PSBT_ProprietaryKey(b'a', 1, b'\x01')]
        self.assertEqual(sorted(keys),
                         [PSBT_ProprietaryKey(b'a', 1, b'\x01'),
                          PSBT_ProprietaryKey(b'a', 2),
                          PSBT_ProprietaryKey(b'b', 0)])
