"""
JSON glue for timestamp fields

Binds a decoder/encoder to plain JSON values. Fields without an explicit
codec fall back to StdCodec on both sides. Optional fields treat JSON null
as "absent" instead of the zero timestamp.
"""

from datetime import datetime
from typing import Any, Optional, Tuple
import json

from .codecs import StdCodec, TimeDecoder, TimeEncoder
from .context import DEFAULT_POOL, DecodeContextPool, DecodeError


class Absent:
    """Marker for an optional timestamp field that should be left out of the output."""

    def __repr__(self) -> str:
        return 'ABSENT'

    def __bool__(self) -> bool:
        return False


ABSENT = Absent()


class TimeFieldDecoder:

    def __init__(self, decoder: Optional[TimeDecoder] = None, optional: bool = False,
                 pool: Optional[DecodeContextPool] = None):
        self.decoder = decoder if decoder is not None else StdCodec()
        self.optional = optional
        self.pool = pool if pool is not None else DEFAULT_POOL

    def decodeRaw(self, raw: str) -> Tuple[Any, Optional[DecodeError]]:
        """
        Decode a raw JSON text.

        Returns:
            (timestamp, error). The timestamp is None for the zero time, or
            ABSENT when the field is optional and the JSON value is null.
        """
        with self.pool.borrow(raw) as ctx:
            if self.optional and raw.strip() == 'null':
                ctx.readNil()
                return ABSENT, None
            tm = self.decoder.decodeTime(ctx)
            if ctx.error is None and not ctx.consumed:
                ctx.reportError('DecodeTime', 'value was not consumed')
            return tm, ctx.error

    def decode(self, value: Any) -> Tuple[Any, Optional[DecodeError]]:
        return self.decodeRaw(json.dumps(value))


class TimeFieldEncoder:

    def __init__(self, encoder: Optional[TimeEncoder] = None, optional: bool = False):
        self.encoder = encoder if encoder is not None else StdCodec()
        self.optional = optional

    def encode(self, tm: Any) -> Any:
        if tm is ABSENT or (tm is None and self.optional):
            return ABSENT
        return self.encoder.encodeTime(tm)


def newTimeDecoder(decoder: Optional[TimeDecoder] = None, optional: bool = False) -> TimeFieldDecoder:
    return TimeFieldDecoder(decoder, optional=optional)


def newTimeEncoder(encoder: Optional[TimeEncoder] = None, optional: bool = False) -> TimeFieldEncoder:
    return TimeFieldEncoder(encoder, optional=optional)


def decodeTime(value: Any, decoder: Optional[TimeDecoder] = None,
               pool: Optional[DecodeContextPool] = None) -> Tuple[Optional[datetime], Optional[DecodeError]]:
    return TimeFieldDecoder(decoder, pool=pool).decode(value)


def loadsTime(raw: str, decoder: Optional[TimeDecoder] = None) -> Tuple[Optional[datetime], Optional[DecodeError]]:
    return TimeFieldDecoder(decoder).decodeRaw(raw)


def encodeTime(tm: Optional[datetime], encoder: Optional[TimeEncoder] = None) -> Any:
    return TimeFieldEncoder(encoder).encode(tm)


def dumpsTime(tm: Optional[datetime], encoder: Optional[TimeEncoder] = None) -> str:
    return json.dumps(encodeTime(tm, encoder))
