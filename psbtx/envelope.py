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

"""The PSBT container: magic header, then the global map, one map
per input and one map per output of the unsigned transaction"""

import base64
import binascii
from io import BytesIO
from typing import (
    List, Optional, Sequence, Union, Type, TypeVar, Any
)

from bitcointx.core import CTransaction
from bitcointx.core.serialize import Serializable, ByteStream_Type
from bitcointx.util import ensure_isinstance

import psbtx

from .errors import (
    InvalidMagicError, InvalidSeparatorError, ParseFailedError
)
from .global_map import PSBT_Global
from .input_map import PSBT_Input
from .output_map import PSBT_Output
from .util import class_logger

T_PartiallySignedTransaction = TypeVar(
    'T_PartiallySignedTransaction', bound='PartiallySignedTransaction')

logger = class_logger(__name__, 'PartiallySignedTransaction')


class PartiallySignedTransaction(Serializable):

    global_map: PSBT_Global
    inputs: List[PSBT_Input]
    outputs: List[PSBT_Output]

    def __init__(self, global_map: PSBT_Global, *,
                 inputs: Optional[Sequence[PSBT_Input]] = None,
                 outputs: Optional[Sequence[PSBT_Output]] = None) -> None:
        ensure_isinstance(global_map, PSBT_Global, 'global map')

        tx = global_map.unsigned_tx
        if inputs is None:
            inputs = [PSBT_Input() for _ in tx.vin]
        if outputs is None:
            outputs = [PSBT_Output() for _ in tx.vout]

        if len(inputs) != len(tx.vin):
            raise ValueError(
                f'number of input maps ({len(inputs)}) does not match '
                f'number of inputs in unsigned transaction ({len(tx.vin)})')
        if len(outputs) != len(tx.vout):
            raise ValueError(
                f'number of output maps ({len(outputs)}) does not match '
                f'number of outputs in unsigned transaction '
                f'({len(tx.vout)})')

        for inp in inputs:
            ensure_isinstance(inp, PSBT_Input, 'input map')
        for outp in outputs:
            ensure_isinstance(outp, PSBT_Output, 'output map')

        self.global_map = global_map
        self.inputs = list(inputs)
        self.outputs = list(outputs)

    @classmethod
    def from_unsigned_tx(cls: Type[T_PartiallySignedTransaction],
                         tx: CTransaction) -> T_PartiallySignedTransaction:
        return cls(PSBT_Global.from_unsigned_tx(tx))

    @property
    def unsigned_tx(self) -> CTransaction:
        return self.global_map.unsigned_tx

    def clone(self: T_PartiallySignedTransaction
              ) -> T_PartiallySignedTransaction:
        return self.__class__(
            self.global_map.clone(),
            inputs=[inp.clone() for inp in self.inputs],
            outputs=[outp.clone() for outp in self.outputs])

    def merge(self: T_PartiallySignedTransaction,
              other: T_PartiallySignedTransaction) -> None:
        """Merge other PSBT into this one.

        The global maps are merged first, so the PSBT is left unchanged
        if the unsigned transactions differ."""

        ensure_isinstance(other, PartiallySignedTransaction, 'other PSBT')

        self.global_map.merge(other.global_map)

        for inp, other_inp in zip(self.inputs, other.inputs):
            inp.merge(other_inp)

        for outp, other_outp in zip(self.outputs, other.outputs):
            outp.merge(other_outp)

        logger.debug('merged PSBT for %d inputs, %d outputs',
                     len(self.inputs), len(self.outputs))

    def combine(self: T_PartiallySignedTransaction,
                *others: T_PartiallySignedTransaction
                ) -> T_PartiallySignedTransaction:
        """Return a new PSBT that is this one merged with others,
        in order. Neither this PSBT nor others are changed."""
        new_psbt = self.clone()
        for other in others:
            new_psbt.merge(other)
        return new_psbt

    @classmethod
    def from_base64_or_binary(
        cls: Type[T_PartiallySignedTransaction], data: Union[bytes, str],
        validate: bool = True
    ) -> T_PartiallySignedTransaction:
        params = psbtx.get_current_params()

        if isinstance(data, str):
            if not data.startswith(params.MAGIC_BASE64):
                raise InvalidMagicError()
            return cls.from_base64(data, validate=validate)
        elif isinstance(data, (bytes, bytearray)):
            if data.startswith(params.MAGIC_BASE64.encode('ascii')):
                return cls.from_base64(data.decode('ascii'),
                                       validate=validate)
            return cls.from_binary(data)

        raise TypeError('type of data is not str or bytes')

    @classmethod
    def from_binary(cls: Type[T_PartiallySignedTransaction],
                    data: Union[bytes, bytearray]
                    ) -> T_PartiallySignedTransaction:
        return cls.deserialize(data)

    @classmethod
    def from_base64(cls: Type[T_PartiallySignedTransaction], b64_data: str,
                    validate: bool = True
                    ) -> T_PartiallySignedTransaction:
        try:
            data = base64.b64decode(b64_data, validate=validate)
        except binascii.Error as e:
            raise ParseFailedError(f'invalid base64 data: {e}') from e
        return cls.deserialize(data)

    def to_base64(self) -> str:
        return base64.b64encode(self.serialize()).decode('ascii')

    @classmethod
    def deserialize(cls: Type[T_PartiallySignedTransaction],
                    buf: Union[bytes, bytearray], allow_padding: bool = False,
                    **kwargs: Any) -> T_PartiallySignedTransaction:
        f = BytesIO(buf)
        inst = cls.stream_deserialize(f, **kwargs)
        if not allow_padding:
            tail = f.read()
            if tail:
                raise ParseFailedError(
                    f'{len(tail)} byte(s) of trailing data after the last '
                    f'map of the PSBT')
        return inst

    @classmethod
    def stream_deserialize(cls: Type[T_PartiallySignedTransaction],
                           f: ByteStream_Type, **kwargs: Any
                           ) -> T_PartiallySignedTransaction:
        params = psbtx.get_current_params()

        header = f.read(len(params.header))
        if len(header) < len(params.header) \
                or header[:len(params.MAGIC)] != params.MAGIC:
            raise InvalidMagicError()

        if header[len(params.MAGIC)] != params.SEPARATOR:
            raise InvalidSeparatorError()

        global_map = PSBT_Global.stream_deserialize(f)
        tx = global_map.unsigned_tx

        inputs = [PSBT_Input.stream_deserialize(f) for _ in tx.vin]
        outputs = [PSBT_Output.stream_deserialize(f) for _ in tx.vout]

        logger.debug('decoded PSBT with %d input maps, %d output maps',
                     len(inputs), len(outputs))

        return cls(global_map, inputs=inputs, outputs=outputs)

    def stream_serialize(self, f: ByteStream_Type, **kwargs: Any) -> None:
        f.write(psbtx.get_current_params().header)
        self.global_map.stream_serialize(f)
        for inp in self.inputs:
            inp.stream_serialize(f)
        for outp in self.outputs:
            outp.stream_serialize(f)

    def __repr__(self) -> str:
        return (f'{self.__class__.__name__}({self.global_map!r}, '
                f'inputs={self.inputs!r}, outputs={self.outputs!r})')


__all__ = (
    'PartiallySignedTransaction',
)
