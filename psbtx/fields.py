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

"""Typed codecs for the keys and values of PSBT fields

Each serializer converts between the raw bytes of a key or value
and the semantic type stored in a map. The descriptors of the fields
(PSBT_Field) bind a key type to a map attribute and to the serializers
for its key and value.
"""

import struct
from io import BytesIO
from typing import Any, NamedTuple, Optional, Type

from bitcointx.core import CTransaction, CTxIn, CTxOut, b2x
from bitcointx.core.script import CScript, CScriptWitness, SIGHASH_Type
from bitcointx.core.serialize import (
    Serializer, VectorSerializer, ByteStream_Type, SerializationError,
    ser_read
)

import psbtx

from .errors import PSBTError, ParseFailedError, NonStandardSigHashTypeError
from .hashes import PSBT_HashType
from .keys import PSBT_PubKey, PSBT_ExtPubKey, PSBT_KeySource


class RawBytesSerializer(Serializer[bytes]):
    """The value is taken as-is"""

    @classmethod
    def stream_serialize(cls, obj: bytes, f: ByteStream_Type,
                         **kwargs: Any) -> None:
        f.write(obj)

    @classmethod
    def stream_deserialize(cls, f: ByteStream_Type, **kwargs: Any) -> bytes:
        return f.read()


class UInt32Serializer(Serializer[int]):

    @classmethod
    def stream_serialize(cls, obj: int, f: ByteStream_Type,
                         **kwargs: Any) -> None:
        f.write(struct.pack(b"<I", obj))

    @classmethod
    def stream_deserialize(cls, f: ByteStream_Type, **kwargs: Any) -> int:
        return int(struct.unpack(b"<I", ser_read(f, 4))[0])


class SigHashTypeSerializer(Serializer[SIGHASH_Type]):

    @classmethod
    def stream_serialize(cls, obj: SIGHASH_Type, f: ByteStream_Type,
                         **kwargs: Any) -> None:
        UInt32Serializer.stream_serialize(int(obj), f)

    @classmethod
    def stream_deserialize(cls, f: ByteStream_Type,
                           **kwargs: Any) -> SIGHASH_Type:
        value = UInt32Serializer.stream_deserialize(f)
        try:
            return SIGHASH_Type(value)
        except ValueError:
            raise NonStandardSigHashTypeError(value) from None


class UnsignedTxSerializer(Serializer[CTransaction]):
    """Unsigned transaction, written positionally and never with
    witness data, so that transactions with zero inputs are not mistaken
    for the segwit serialization"""

    @classmethod
    def stream_serialize(cls, obj: CTransaction, f: ByteStream_Type,
                         **kwargs: Any) -> None:
        f.write(struct.pack(b"<i", obj.nVersion))
        VectorSerializer.stream_serialize(obj.vin, f)
        VectorSerializer.stream_serialize(obj.vout, f)
        f.write(struct.pack(b"<I", obj.nLockTime))

    @classmethod
    def stream_deserialize(cls, f: ByteStream_Type,
                           **kwargs: Any) -> CTransaction:
        nVersion = struct.unpack(b"<i", ser_read(f, 4))[0]
        vin = VectorSerializer.stream_deserialize(f, element_class=CTxIn)
        vout = VectorSerializer.stream_deserialize(f, element_class=CTxOut)
        nLockTime = struct.unpack(b"<I", ser_read(f, 4))[0]
        return CTransaction(vin, vout, nLockTime, nVersion)


class TransactionSerializer(Serializer[CTransaction]):

    @classmethod
    def stream_serialize(cls, obj: CTransaction, f: ByteStream_Type,
                         **kwargs: Any) -> None:
        obj.stream_serialize(f)

    @classmethod
    def stream_deserialize(cls, f: ByteStream_Type,
                           **kwargs: Any) -> CTransaction:
        return CTransaction.stream_deserialize(f)


class TxOutSerializer(Serializer[CTxOut]):

    @classmethod
    def stream_serialize(cls, obj: CTxOut, f: ByteStream_Type,
                         **kwargs: Any) -> None:
        obj.stream_serialize(f)

    @classmethod
    def stream_deserialize(cls, f: ByteStream_Type, **kwargs: Any) -> CTxOut:
        return CTxOut.stream_deserialize(f)


class ScriptSerializer(Serializer[CScript]):

    @classmethod
    def stream_serialize(cls, obj: CScript, f: ByteStream_Type,
                         **kwargs: Any) -> None:
        f.write(obj)

    @classmethod
    def stream_deserialize(cls, f: ByteStream_Type, **kwargs: Any) -> CScript:
        return CScript(f.read())


class WitnessStackSerializer(Serializer[CScriptWitness]):

    @classmethod
    def stream_serialize(cls, obj: CScriptWitness, f: ByteStream_Type,
                         **kwargs: Any) -> None:
        obj.stream_serialize(f)

    @classmethod
    def stream_deserialize(cls, f: ByteStream_Type,
                           **kwargs: Any) -> CScriptWitness:
        return CScriptWitness.stream_deserialize(f)


class KeySourceSerializer(Serializer[PSBT_KeySource]):

    @classmethod
    def stream_serialize(cls, obj: PSBT_KeySource, f: ByteStream_Type,
                         **kwargs: Any) -> None:
        obj.stream_serialize(f)

    @classmethod
    def stream_deserialize(cls, f: ByteStream_Type,
                           **kwargs: Any) -> PSBT_KeySource:
        return PSBT_KeySource.stream_deserialize(f)


class PubKeySerializer(Serializer[PSBT_PubKey]):

    @classmethod
    def stream_serialize(cls, obj: PSBT_PubKey, f: ByteStream_Type,
                         **kwargs: Any) -> None:
        f.write(obj)

    @classmethod
    def stream_deserialize(cls, f: ByteStream_Type,
                           **kwargs: Any) -> PSBT_PubKey:
        return PSBT_PubKey(f.read())


class ExtPubKeySerializer(Serializer[PSBT_ExtPubKey]):
    """Extended public key, with the version prefix checked against
    the versions accepted by the current parameters"""

    @classmethod
    def stream_serialize(cls, obj: PSBT_ExtPubKey, f: ByteStream_Type,
                         **kwargs: Any) -> None:
        f.write(obj)

    @classmethod
    def stream_deserialize(cls, f: ByteStream_Type,
                           **kwargs: Any) -> PSBT_ExtPubKey:
        xpub = PSBT_ExtPubKey(f.read())
        accepted = psbtx.get_current_params().XPUB_VERSIONS
        if xpub.version not in accepted:
            expected = ', '.join(b2x(v) for v in accepted)
            raise ParseFailedError(
                f'extended public key has unknown version prefix '
                f'{b2x(xpub.version)}, expected one of ({expected})')
        return xpub


class DigestSerializer(Serializer[bytes]):
    """Fixed-size hash digest"""

    digest_size = 32

    @classmethod
    def stream_serialize(cls, obj: bytes, f: ByteStream_Type,
                         **kwargs: Any) -> None:
        if len(obj) != cls.digest_size:
            raise ValueError(
                f'digest must be {cls.digest_size} bytes in length')
        f.write(obj)

    @classmethod
    def stream_deserialize(cls, f: ByteStream_Type, **kwargs: Any) -> bytes:
        return ser_read(f, cls.digest_size)


class Digest20Serializer(DigestSerializer):
    digest_size = 20


class Digest32Serializer(DigestSerializer):
    digest_size = 32


class PSBT_Field(NamedTuple):
    """Descriptor of a known field of a PSBT map.

    Fields without key_serializer are single-valued and must have
    empty key data. Fields with key_serializer are maps from the decoded
    key data to the decoded value. A single-valued attribute is unset
    when it holds None. For preimage fields, hash_type names the hash
    that the key must be the digest of."""

    key_type: int
    name: str
    value_serializer: Type[Serializer[Any]]
    key_serializer: Optional[Type[Serializer[Any]]] = None
    hash_type: Optional[PSBT_HashType] = None

    def is_keyed(self) -> bool:
        return self.key_serializer is not None


def deserialize_field(serializer: Type[Serializer[Any]], buf: bytes,
                      what: str) -> Any:
    """Deserialize buf that must be consumed entirely.

    Errors of the underlying data types are reported
    as ParseFailedError."""

    f = BytesIO(buf)
    try:
        obj = serializer.stream_deserialize(f)
    except PSBTError:
        raise
    except (SerializationError, ValueError) as e:
        raise ParseFailedError(f'cannot deserialize {what}: {e}') from e

    tail = f.read()
    if tail:
        raise ParseFailedError(
            f'data not consumed entirely when deserializing {what}: '
            f'{len(tail)} byte(s) left over')

    return obj


__all__ = (
    'RawBytesSerializer',
    'UInt32Serializer',
    'SigHashTypeSerializer',
    'UnsignedTxSerializer',
    'TransactionSerializer',
    'TxOutSerializer',
    'ScriptSerializer',
    'WitnessStackSerializer',
    'KeySourceSerializer',
    'PubKeySerializer',
    'ExtPubKeySerializer',
    'DigestSerializer',
    'Digest20Serializer',
    'Digest32Serializer',
    'PSBT_Field',
    'deserialize_field',
)
