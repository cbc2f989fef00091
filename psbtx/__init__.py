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

from contextlib import contextmanager
from typing import Generator, Tuple, Type, Union

import bitcointx.util

__version__ = '0.1.0'


class PSBTParams:
    """Parameters that affect how PSBT envelopes are framed and
    which extended public keys are recognized in the global map"""

    NAME = 'mainnet'

    MAGIC = b'psbt'
    SEPARATOR = 0xFF
    MAGIC_BASE64 = 'cHNidP'

    # 4-byte version prefixes of the extended public keys
    # that are accepted in the PSBT_GLOBAL_XPUB field
    XPUB_VERSIONS: Tuple[bytes, ...] = (bytes.fromhex('0488b21e'),)

    @property
    def header(self) -> bytes:
        return self.MAGIC + bytes([self.SEPARATOR])

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}()'


class MainnetPSBTParams(PSBTParams):
    pass


class TestnetPSBTParams(PSBTParams):
    NAME = 'testnet'
    XPUB_VERSIONS = (bytes.fromhex('043587cf'),)


class PSBTParamsContextVar(bitcointx.util.ContextVarsCompat):
    params: PSBTParams


_params_context = PSBTParamsContextVar(params=MainnetPSBTParams())


def get_current_params() -> PSBTParams:
    return _params_context.params


def select_params(params: Union[PSBTParams, Type[PSBTParams]]
                  ) -> Tuple[PSBTParams, PSBTParams]:
    """Select the parameters to use for PSBT encoding and decoding.

    The selection is stored in a context variable, so switching
    parameters in one thread or task does not affect the others.
    Returns a tuple of (previous, new) parameters."""

    if isinstance(params, type):
        if not issubclass(params, PSBTParams):
            raise TypeError(
                'supplied class is not a subclass of PSBTParams')
        params = params()
    elif not isinstance(params, PSBTParams):
        raise TypeError('params must be an instance or subclass '
                        'of PSBTParams')

    prev_params = _params_context.params
    _params_context.params = params
    return prev_params, params


@contextmanager
def PSBTParamsContext(params: Union[PSBTParams, Type[PSBTParams]]
                      ) -> Generator[PSBTParams, None, None]:
    """Context manager to temporarily switch PSBT parameters."""
    prev, new = select_params(params)
    try:
        yield new
    finally:
        select_params(prev)


__all__ = (
    'PSBTParams',
    'MainnetPSBTParams',
    'TestnetPSBTParams',
    'get_current_params',
    'select_params',
    'PSBTParamsContext',
)
