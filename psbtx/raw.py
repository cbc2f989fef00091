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

"""Raw PSBT key-value pairs

On the wire every map is a sequence of pairs, each being a length-prefixed
key (one type byte followed by type-specific key data) and a length-prefixed
value. A zero-length key terminates the map.
"""

from typing import Iterable, Iterator, NamedTuple

from bitcointx.core import b2x
from bitcointx.core.serialize import (
    BytesSerializer, VarIntSerializer, ByteStream_Type, SerializationError
)

from .errors import NoMorePairs, ParseFailedError, InvalidProprietaryKeyError

PSBT_SEPARATOR = b'\x00'

PSBT_PROPRIETARY_TYPE = 0xFC


class PSBT_RawKey(NamedTuple):
    key_type: int
    key_data: bytes = b''

    def serialize(self) -> bytes:
        return bytes([self.key_type]) + self.key_data

    def __str__(self) -> str:
        return f'type: 0x{self.key_type:02x}, key: {b2x(self.key_data)}'


class PSBT_RawPair(NamedTuple):
    key: PSBT_RawKey
    value: bytes


class PSBT_ProprietaryKey(NamedTuple):
    """Vendor-namespaced key, carried inside the proprietary key type.

    Its key data is the length-prefixed identifier, the compact-size
    subtype and the rest of the key data, in that order."""

    prefix: bytes
    subtype: int
    key_data: bytes = b''

    def to_raw_key(self) -> PSBT_RawKey:
        return PSBT_RawKey(
            PSBT_PROPRIETARY_TYPE,
            BytesSerializer.serialize(self.prefix)
            + VarIntSerializer.serialize(self.subtype)
            + self.key_data)

    @classmethod
    def from_raw_key(cls, key: PSBT_RawKey) -> 'PSBT_ProprietaryKey':
        if key.key_type != PSBT_PROPRIETARY_TYPE:
            raise InvalidProprietaryKeyError(key)

        try:
            prefix, tail = BytesSerializer.deserialize_partial(key.key_data)
            subtype, key_data = VarIntSerializer.deserialize_partial(
                tail, allow_full_range=True)
        except SerializationError as e:
            raise InvalidProprietaryKeyError(key, str(e)) from e

        return cls(prefix=prefix, subtype=subtype, key_data=key_data)

    def __str__(self) -> str:
        return (f'prefix: {b2x(self.prefix)}, subtype: {self.subtype}, '
                f'key: {b2x(self.key_data)}')


def decode_one(f: ByteStream_Type) -> PSBT_RawPair:
    """Read one key-value pair from the stream.

    Raises NoMorePairs when the map terminator is read."""

    try:
        key = BytesSerializer.stream_deserialize(f)
    except SerializationError as e:
        raise ParseFailedError(
            f'cannot read the key of key-value pair: {e}') from e

    if not key:
        raise NoMorePairs()

    raw_key = PSBT_RawKey(key[0], key[1:])

    try:
        value = BytesSerializer.stream_deserialize(f)
    except SerializationError as e:
        raise ParseFailedError(
            f'cannot read the value for key ({raw_key}): {e}') from e

    return PSBT_RawPair(raw_key, value)


def encode_one(pair: PSBT_RawPair, f: ByteStream_Type) -> None:
    BytesSerializer.stream_serialize(pair.key.serialize(), f)
    BytesSerializer.stream_serialize(pair.value, f)


def read_pairs(f: ByteStream_Type) -> Iterator[PSBT_RawPair]:
    """Yield the pairs of one map, consuming its terminator"""
    while True:
        try:
            pair = decode_one(f)
        except NoMorePairs:
            return
        yield pair


def write_pairs(pairs: Iterable[PSBT_RawPair], f: ByteStream_Type) -> None:
    for pair in pairs:
        encode_one(pair, f)
    f.write(PSBT_SEPARATOR)


__all__ = (
    'PSBT_SEPARATOR',
    'PSBT_PROPRIETARY_TYPE',
    'PSBT_RawKey',
    'PSBT_RawPair',
    'PSBT_ProprietaryKey',
    'decode_one',
    'encode_one',
    'read_pairs',
    'write_pairs',
)
