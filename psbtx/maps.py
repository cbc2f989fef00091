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

"""Common machinery of the PSBT key-value maps

Every map class describes its known fields in the FIELDS table.
Insertion of decoded pairs, enumeration of pairs for encoding,
merging and repr are all driven by that table.
"""

import logging
from typing import (
    Any, ClassVar, Collection, Dict, List, Tuple, Type, TypeVar
)

from bitcointx.core import b2x
from bitcointx.core.serialize import Serializable, ByteStream_Type
from bitcointx.util import ensure_isinstance

from .errors import (
    InvalidKeyError, DuplicateKeyError, InvalidPreimageHashPairError
)
from .fields import PSBT_Field, deserialize_field
from .raw import (
    PSBT_RawKey, PSBT_RawPair, PSBT_ProprietaryKey, PSBT_PROPRIETARY_TYPE,
    read_pairs, write_pairs
)
from .util import class_logger

T_PSBT_Map = TypeVar('T_PSBT_Map', bound='PSBT_Map')


def _repr_value(v: Any) -> str:
    if type(v) in (bytes, bytearray):
        return f"x('{b2x(v)}')"
    return repr(v)


def _repr_dict(d: Dict[Any, Any]) -> str:
    return (
        '{' + ', '.join(f'{_repr_value(k)}: {_repr_value(v)}'
                        for k, v in d.items()) + '}')


class PSBT_Map(Serializable):
    """Base class of the global, input and output maps"""

    FIELDS: ClassVar[Tuple[PSBT_Field, ...]] = ()

    _fields_by_type: ClassVar[Dict[int, PSBT_Field]]
    logger: ClassVar[logging.Logger]

    proprietary: Dict[PSBT_ProprietaryKey, bytes]
    unknown: Dict[PSBT_RawKey, bytes]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._fields_by_type = {fd.key_type: fd for fd in cls.FIELDS}
        assert len(cls._fields_by_type) == len(cls.FIELDS), \
            'key types in FIELDS must be unique'
        assert PSBT_PROPRIETARY_TYPE not in cls._fields_by_type
        cls.logger = class_logger(cls.__module__, cls.__name__)

    def _init_fields(self, values: Dict[str, Any]) -> None:
        """Set the attributes for all fields from the supplied values.
        Keyed entries are checked the same way decoding checks them."""
        for fd in self.FIELDS:
            value = values.get(fd.name)
            if fd.is_keyed():
                value = dict(value or {})
            setattr(self, fd.name, value)

        self.proprietary = dict(values.get('proprietary') or {})
        self.unknown = dict(values.get('unknown') or {})

        self._check_entries()

    def _check_entries(self) -> None:
        for fd in self.FIELDS:
            if not fd.is_keyed():
                continue
            assert fd.key_serializer is not None
            for subkey, item in getattr(self, fd.name).items():
                deserialize_field(fd.key_serializer,
                                  fd.key_serializer.serialize(subkey),
                                  f'key of {fd.name}')
                self._check_preimage(fd, subkey, item)

    @staticmethod
    def _check_preimage(fd: PSBT_Field, subkey: Any, item: Any) -> None:
        if fd.hash_type is not None and not fd.hash_type.matches(subkey, item):
            raise InvalidPreimageHashPairError(item, subkey, fd.hash_type.name)

    def field_is_set(self, fd: PSBT_Field) -> bool:
        value = getattr(self, fd.name)
        if fd.is_keyed():
            return bool(value)
        return value is not None

    def _count_entries(self) -> int:
        count = len(self.proprietary) + len(self.unknown)
        for fd in self.FIELDS:
            if fd.is_keyed():
                count += len(getattr(self, fd.name))
            elif self.field_is_set(fd):
                count += 1
        return count

    def insert_pair(self, pair: PSBT_RawPair) -> None:
        """Add a decoded key-value pair to the map.

        The map is not changed if the pair is rejected."""

        key, value = pair
        fd = self._fields_by_type.get(key.key_type)
        if fd is not None:
            self._insert_field(fd, key, value)
        elif key.key_type == PSBT_PROPRIETARY_TYPE:
            pkey = PSBT_ProprietaryKey.from_raw_key(key)
            if pkey in self.proprietary:
                raise DuplicateKeyError(key)
            self.proprietary[pkey] = value
        else:
            if key in self.unknown:
                raise DuplicateKeyError(key)
            self.logger.debug('retaining unknown field (%s)', key)
            self.unknown[key] = value

    def _insert_field(self, fd: PSBT_Field, key: PSBT_RawKey, value: bytes
                      ) -> None:
        if not fd.is_keyed():
            if key.key_data:
                raise InvalidKeyError(key)
            if self.field_is_set(fd):
                raise DuplicateKeyError(key)
            setattr(self, fd.name,
                    deserialize_field(fd.value_serializer, value, fd.name))
            return

        if not key.key_data:
            raise InvalidKeyError(key)

        assert fd.key_serializer is not None
        entries = getattr(self, fd.name)
        subkey = deserialize_field(fd.key_serializer, key.key_data,
                                   f'key of {fd.name}')
        if subkey in entries:
            raise DuplicateKeyError(key)

        item = deserialize_field(fd.value_serializer, value, fd.name)
        self._check_preimage(fd, subkey, item)

        entries[subkey] = item

    def get_pairs(self) -> List[PSBT_RawPair]:
        """Enumerate the pairs of the map in the order they are encoded"""

        pairs: List[PSBT_RawPair] = []

        for fd in self.FIELDS:
            if not self.field_is_set(fd):
                continue

            if not fd.is_keyed():
                pairs.append(PSBT_RawPair(
                    PSBT_RawKey(fd.key_type),
                    fd.value_serializer.serialize(getattr(self, fd.name))))
                continue

            assert fd.key_serializer is not None
            entries = getattr(self, fd.name)
            keyed = [(fd.key_serializer.serialize(k),
                      fd.value_serializer.serialize(v))
                     for k, v in entries.items()]
            for key_data, value in sorted(keyed):
                pairs.append(
                    PSBT_RawPair(PSBT_RawKey(fd.key_type, key_data), value))

        for pkey in sorted(self.proprietary):
            pairs.append(
                PSBT_RawPair(pkey.to_raw_key(), self.proprietary[pkey]))

        for rkey in sorted(self.unknown):
            pairs.append(PSBT_RawPair(rkey, self.unknown[rkey]))

        return pairs

    def _merge_fields(self, other: 'PSBT_Map',
                      exclude: Collection[str] = ()) -> None:
        """Union the keyed fields, proprietary and unknown entries,
        entries of self take precedence. Single-valued fields
        are taken from other only where they are unset in self"""

        for fd in self.FIELDS:
            if fd.name in exclude:
                continue
            if fd.is_keyed():
                entries = getattr(self, fd.name)
                for k, v in getattr(other, fd.name).items():
                    entries.setdefault(k, v)
            elif not self.field_is_set(fd) and other.field_is_set(fd):
                setattr(self, fd.name, getattr(other, fd.name))

        for pkey, value in other.proprietary.items():
            self.proprietary.setdefault(pkey, value)

        for rkey, value in other.unknown.items():
            self.unknown.setdefault(rkey, value)

    def merge(self: T_PSBT_Map, other: T_PSBT_Map) -> None:
        ensure_isinstance(other, self.__class__, 'other map')
        self._merge_fields(other)
        self.logger.debug('merged, map now has %d entries',
                          self._count_entries())

    def clone(self: T_PSBT_Map) -> T_PSBT_Map:
        return self.__class__.deserialize(self.serialize())

    @classmethod
    def _new_for_decode(cls: Type[T_PSBT_Map], **kwargs: Any) -> T_PSBT_Map:
        return cls()

    def _check_decoded(self) -> None:
        pass

    @classmethod
    def stream_deserialize(cls: Type[T_PSBT_Map], f: ByteStream_Type,
                           **kwargs: Any) -> T_PSBT_Map:
        inst = cls._new_for_decode(**kwargs)

        n_pairs = 0
        for pair in read_pairs(f):
            inst.insert_pair(pair)
            n_pairs += 1

        inst._check_decoded()

        cls.logger.debug('decoded %d key-value pairs', n_pairs)
        return inst

    def stream_serialize(self, f: ByteStream_Type, **kwargs: Any) -> None:
        write_pairs(self.get_pairs(), f)

    def _repr_fields(self) -> List[str]:
        items = []
        for fd in self.FIELDS:
            if not self.field_is_set(fd):
                continue
            value = getattr(self, fd.name)
            if fd.is_keyed():
                items.append(f'{fd.name}={_repr_dict(value)}')
            else:
                items.append(f'{fd.name}={_repr_value(value)}')
        if self.proprietary:
            items.append(f'proprietary={_repr_dict(self.proprietary)}')
        if self.unknown:
            items.append(f'unknown={_repr_dict(self.unknown)}')
        return items

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({', '.join(self._repr_fields())})"


__all__ = (
    'PSBT_Map',
)
