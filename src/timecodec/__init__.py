"""
Time Codec Module

Decodes and encodes timestamps from/to JSON values with interchangeable
strategies: epoch seconds, epoch milliseconds, strftime layouts and RFC3339.
Combinators join decoders and encoders, force a timezone, or chain fallback
decoders over the same raw value.
"""

from .context import DecodeContext, DecodeContextPool, DecodeError, ValueType
from .codecs import (
    EPOCH,
    DecoderFunc,
    EncoderFunc,
    LayoutCodec,
    StdCodec,
    TimeCodec,
    TimeDecoder,
    TimeEncoder,
    UnixMillisecondsCodec,
    UnixSecondsCodec,
    unixMilliseconds,
    unixSeconds,
)
from .combinators import decodeIn, encodeIn, inTimezone, join, split, tryDecoders
from .registry import CodecRegistry, UnknownCodecError, resolveTimezone
from .jsonglue import (
    ABSENT,
    TimeFieldDecoder,
    TimeFieldEncoder,
    decodeTime,
    dumpsTime,
    encodeTime,
    loadsTime,
    newTimeDecoder,
    newTimeEncoder,
)

__all__ = [
    'DecodeContext',
    'DecodeContextPool',
    'DecodeError',
    'ValueType',
    'EPOCH',
    'DecoderFunc',
    'EncoderFunc',
    'LayoutCodec',
    'StdCodec',
    'TimeCodec',
    'TimeDecoder',
    'TimeEncoder',
    'UnixMillisecondsCodec',
    'UnixSecondsCodec',
    'unixMilliseconds',
    'unixSeconds',
    'decodeIn',
    'encodeIn',
    'inTimezone',
    'join',
    'split',
    'tryDecoders',
    'CodecRegistry',
    'UnknownCodecError',
    'resolveTimezone',
    'ABSENT',
    'TimeFieldDecoder',
    'TimeFieldEncoder',
    'decodeTime',
    'dumpsTime',
    'encodeTime',
    'loadsTime',
    'newTimeDecoder',
    'newTimeEncoder',
]
