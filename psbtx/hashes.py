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

"""Hash functions used by the hash preimage fields of PSBT inputs"""

import hashlib
from typing import Callable, NamedTuple

from bitcointx.core.serialize import Hash, Hash160
from bitcointx.core._ripemd160 import ripemd160 as _ripemd160


class PSBT_HashType(NamedTuple):
    name: str
    digest_size: int
    hashfn: Callable[[bytes], bytes]

    def hash(self, data: bytes) -> bytes:
        return self.hashfn(data)

    def matches(self, digest: bytes, preimage: bytes) -> bool:
        return self.hashfn(preimage) == digest


def ripemd160(data: bytes) -> bytes:
    return _ripemd160(data)


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


RIPEMD160 = PSBT_HashType('ripemd160', 20, ripemd160)
SHA256 = PSBT_HashType('sha256', 32, sha256)
HASH160 = PSBT_HashType('hash160', 20, Hash160)
HASH256 = PSBT_HashType('hash256', 32, Hash)


__all__ = (
    'PSBT_HashType',
    'ripemd160',
    'sha256',
    'RIPEMD160',
    'SHA256',
    'HASH160',
    'HASH256',
)
