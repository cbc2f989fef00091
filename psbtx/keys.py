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

"""Key types that appear as PSBT keys or values

Only the structure of the keys is checked here: the PSBT maps
carry keys around, they never do curve arithmetic with them.
"""

import struct
from typing import List, Type, TypeVar, Any

import bitcointx.base58
from bitcointx.core import b2x
from bitcointx.core.key import BIP32Path, KeyDerivationInfo
from bitcointx.core.serialize import (
    Hash, Hash160, ImmutableSerializable, ByteStream_Type,
    SerializationTruncationError, ser_read
)
from bitcointx.util import ensure_isinstance

T_PSBT_PubKey = TypeVar('T_PSBT_PubKey', bound='PSBT_PubKey')
T_PSBT_ExtPubKey = TypeVar('T_PSBT_ExtPubKey', bound='PSBT_ExtPubKey')
T_PSBT_KeySource = TypeVar('T_PSBT_KeySource', bound='PSBT_KeySource')

COMPRESSED_PUBLIC_KEY_SIZE = 33
PUBLIC_KEY_SIZE = 65
EXTENDED_KEY_SIZE = 78


class PSBT_PubKey(bytes):
    """Serialized secp256k1 public key, compressed or uncompressed"""

    def __new__(cls: Type[T_PSBT_PubKey], buf: bytes) -> T_PSBT_PubKey:
        ensure_isinstance(buf, (bytes, bytearray), 'public key data')
        if len(buf) == COMPRESSED_PUBLIC_KEY_SIZE:
            if buf[0] not in (0x02, 0x03):
                raise ValueError(
                    f'invalid prefix 0x{buf[0]:02x} for compressed '
                    f'public key')
        elif len(buf) == PUBLIC_KEY_SIZE:
            if buf[0] != 0x04:
                raise ValueError(
                    f'invalid prefix 0x{buf[0]:02x} for uncompressed '
                    f'public key')
        else:
            raise ValueError(
                f'invalid public key length {len(buf)}')
        return super().__new__(cls, buf)

    def is_compressed(self) -> bool:
        return len(self) == COMPRESSED_PUBLIC_KEY_SIZE

    @property
    def key_id(self) -> bytes:
        return Hash160(self)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(x('{b2x(self)}'))"


class PSBT_ExtPubKey(bytes):
    """BIP32 extended public key in its 78-byte serialization,
    including the 4-byte version prefix"""

    def __new__(cls: Type[T_PSBT_ExtPubKey], buf: bytes
                ) -> T_PSBT_ExtPubKey:
        ensure_isinstance(buf, (bytes, bytearray), 'extended public key data')
        if len(buf) != EXTENDED_KEY_SIZE:
            raise ValueError(
                f'extended public key must be {EXTENDED_KEY_SIZE} bytes '
                f'in length, got {len(buf)}')
        self = super().__new__(cls, buf)
        if self.key_bytes[0] not in (0x02, 0x03):
            raise ValueError(
                'pubkey part of extended public key is not '
                'a compressed public key')
        return self

    @classmethod
    def from_str(cls: Type[T_PSBT_ExtPubKey], s: str) -> T_PSBT_ExtPubKey:
        data = bitcointx.base58.decode(s)
        payload, checksum = data[:-4], data[-4:]
        if Hash(payload)[:4] != checksum:
            raise ValueError('checksum mismatch in base58-encoded '
                             'extended public key')
        return cls(payload)

    def __str__(self) -> str:
        return bitcointx.base58.encode(self + Hash(self)[:4])

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}.from_str('{str(self)}')"

    @property
    def version(self) -> bytes:
        return self[0:4]

    @property
    def depth(self) -> int:
        return self[4]

    @property
    def parent_fp(self) -> bytes:
        return self[5:9]

    @property
    def child_number(self) -> int:
        return int(struct.unpack(b'>I', self[9:13])[0])

    @property
    def chaincode(self) -> bytes:
        return self[13:45]

    @property
    def key_bytes(self) -> bytes:
        return self[45:78]

    @property
    def pub(self) -> PSBT_PubKey:
        return PSBT_PubKey(self.key_bytes)

    @property
    def fingerprint(self) -> bytes:
        return Hash160(self.key_bytes)[:4]


class PSBT_KeySource(ImmutableSerializable, KeyDerivationInfo):
    """Master key fingerprint and full derivation path from the master key.

    Serialized as the 4-byte fingerprint followed by
    the 32-bit little-endian derivation indexes."""

    @classmethod
    def stream_deserialize(cls: Type[T_PSBT_KeySource],
                           f: ByteStream_Type, **kwargs: Any
                           ) -> T_PSBT_KeySource:
        master_fp = ser_read(f, 4)
        indexlist: List[int] = []
        while True:
            data = f.read(4)
            if not data:
                break
            if len(data) < 4:
                raise SerializationTruncationError(
                    'Reached end of data while trying to read next '
                    'derivation index')
            indexlist.append(struct.unpack(b"<I", data)[0])

        return cls(master_fp, BIP32Path(indexlist, is_partial=False))

    def stream_serialize(self, f: ByteStream_Type, **kwargs: Any) -> None:
        f.write(self.master_fp)
        for index in self.path:
            f.write(struct.pack(b"<I", index))


__all__ = (
    'PSBT_PubKey',
    'PSBT_ExtPubKey',
    'PSBT_KeySource',
)
