"""
Time codec strategies

Each codec decodes a timestamp from one JSON representation and encodes it
back. The zero timestamp is None: it always encodes to JSON null, and an
empty string or null always decodes to it without an error.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional
import math
import re

from dateutil import parser as dateparser

from .context import DecodeContext, ValueType


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_MICROSECOND = timedelta(microseconds=1)
_MILLISECOND = timedelta(milliseconds=1)

_intPattern = re.compile(r'[+-]?[0-9]+')
_floatPattern = re.compile(r'[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?')
_rfc3339Pattern = re.compile(
    r'[0-9]{4}-[0-9]{2}-[0-9]{2}T([01][0-9]|2[0-3]):[0-5][0-9]:[0-5][0-9](\.[0-9]+)?(Z|[+-][0-9]{2}:[0-9]{2})'
)


class TimeDecoder(ABC):

    @abstractmethod
    def decodeTime(self, ctx: DecodeContext) -> Optional[datetime]:
        pass


class TimeEncoder(ABC):

    @abstractmethod
    def encodeTime(self, tm: Optional[datetime]) -> Any:
        pass


class TimeCodec(TimeDecoder, TimeEncoder):
    pass


class DecoderFunc(TimeDecoder):
    """Adapts a plain function to the TimeDecoder interface."""

    def __init__(self, fn: Callable[[DecodeContext], Optional[datetime]]):
        self.fn = fn

    def decodeTime(self, ctx: DecodeContext) -> Optional[datetime]:
        return self.fn(ctx)


class EncoderFunc(TimeEncoder):
    """Adapts a plain function to the TimeEncoder interface."""

    def __init__(self, fn: Callable[[Optional[datetime]], Any]):
        self.fn = fn

    def encodeTime(self, tm: Optional[datetime]) -> Any:
        return self.fn(tm)


def asUTC(tm: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if tm.tzinfo is None:
        return tm.replace(tzinfo=timezone.utc)
    return tm


def unixSeconds(sec: float) -> datetime:
    """
    Timestamp from (fractional) seconds since the UNIX epoch.

    Precision is kept to microseconds so that float64 noise below that does
    not leak into the result.
    """
    if not math.isfinite(sec):
        raise ValueError(f"invalid epoch seconds {sec!r}")
    return EPOCH + timedelta(microseconds=int(sec * 1e6))


def unixMilliseconds(msec: int) -> datetime:
    return EPOCH + timedelta(milliseconds=msec)


class UnixSecondsCodec(TimeCodec):

    def encodeTime(self, tm: Optional[datetime]) -> Any:
        if tm is None:
            return None
        usec = (asUTC(tm) - EPOCH) // _MICROSECOND
        return usec / 1e6

    def decodeTime(self, ctx: DecodeContext) -> Optional[datetime]:
        valueType = ctx.whatIsNext()
        if valueType is ValueType.NUMBER:
            sec = ctx.readFloat()
            if ctx.error is not None:
                return None
            return self._fromSeconds(ctx, sec)
        if valueType is ValueType.NIL:
            ctx.readNil()
            return None
        if valueType is ValueType.STRING:
            s = ctx.readString()
            if s == '':
                return None
            if not _floatPattern.fullmatch(s):
                ctx.reportError('ReadUnixSeconds', f"invalid number {s!r}")
                return None
            return self._fromSeconds(ctx, float(s))
        ctx.skip()
        ctx.reportError('ReadUnixSeconds', 'invalid JSON value')
        return None

    def _fromSeconds(self, ctx: DecodeContext, sec: float) -> Optional[datetime]:
        try:
            return unixSeconds(sec)
        except (ValueError, OverflowError) as e:
            ctx.reportError('ReadUnixSeconds', str(e))
            return None


class UnixMillisecondsCodec(TimeCodec):
    """Decodes both JSON numbers and numeric strings, always encodes to a number."""

    def encodeTime(self, tm: Optional[datetime]) -> Any:
        if tm is None:
            return None
        return (asUTC(tm) - EPOCH) // _MILLISECOND

    def decodeTime(self, ctx: DecodeContext) -> Optional[datetime]:
        valueType = ctx.whatIsNext()
        if valueType is ValueType.NUMBER:
            msec = ctx.readInt()
            if ctx.error is not None:
                return None
            return self._fromMilliseconds(ctx, msec)
        if valueType is ValueType.NIL:
            ctx.readNil()
            return None
        if valueType is ValueType.STRING:
            s = ctx.readString()
            if s == '':
                return None
            if not _intPattern.fullmatch(s):
                ctx.reportError('ReadUnixMilliseconds', f"invalid integer {s!r}")
                return None
            return self._fromMilliseconds(ctx, int(s))
        ctx.skip()
        ctx.reportError('ReadUnixMilliseconds', 'invalid JSON value')
        return None

    def _fromMilliseconds(self, ctx: DecodeContext, msec: int) -> Optional[datetime]:
        try:
            return unixMilliseconds(msec)
        except OverflowError as e:
            ctx.reportError('ReadUnixMilliseconds', str(e))
            return None


class LayoutCodec(TimeCodec):
    """Decodes/encodes timestamps as strings using a strftime layout."""

    def __init__(self, layout: str):
        self.layout = layout

    def encodeTime(self, tm: Optional[datetime]) -> Any:
        if tm is None:
            return None
        return asUTC(tm).strftime(self.layout)

    def decodeTime(self, ctx: DecodeContext) -> Optional[datetime]:
        valueType = ctx.whatIsNext()
        if valueType is ValueType.STRING:
            s = ctx.readString()
            if s == '':
                return None
            try:
                return asUTC(datetime.strptime(s, self.layout))
            except ValueError as e:
                ctx.reportError('DecodeTime', str(e))
                return None
        if valueType is ValueType.NIL:
            ctx.readNil()
            return None
        ctx.skip()
        ctx.reportError('DecodeTime', 'invalid JSON value')
        return None

    def __repr__(self) -> str:
        return f"LayoutCodec({self.layout!r})"


def parseRFC3339(s: str) -> datetime:
    if not _rfc3339Pattern.fullmatch(s):
        raise ValueError(f"{s!r} is not an RFC3339 timestamp")
    return dateparser.isoparse(s)


def formatRFC3339(tm: datetime) -> str:
    """RFC3339 with the fractional second trimmed of trailing zeros, Z for UTC."""
    tm = asUTC(tm)
    text = (
        f"{tm.year:04d}-{tm.month:02d}-{tm.day:02d}"
        f"T{tm.hour:02d}:{tm.minute:02d}:{tm.second:02d}"
    )
    if tm.microsecond:
        text += f".{tm.microsecond:06d}".rstrip('0')

    offset = tm.utcoffset()
    if not offset:
        return text + 'Z'
    seconds = int(offset.total_seconds())
    sign = '+' if seconds >= 0 else '-'
    # sub-minute offsets are truncated toward zero
    hours, minutes = divmod(abs(seconds) // 60, 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


class StdCodec(TimeCodec):
    """
    Default codec for timestamp fields without an explicit codec.

    Decoding accepts strict RFC3339 only, encoding always writes the full
    microsecond precision that is available.
    """

    def encodeTime(self, tm: Optional[datetime]) -> Any:
        if tm is None:
            return None
        return formatRFC3339(tm)

    def decodeTime(self, ctx: DecodeContext) -> Optional[datetime]:
        valueType = ctx.whatIsNext()
        if valueType is ValueType.NIL:
            ctx.readNil()
            return None
        if valueType is not ValueType.STRING:
            ctx.skip()
            ctx.reportError('DecodeTime', 'invalid JSON value')
            return None
        s = ctx.readString()
        if s == '':
            return None
        try:
            return parseRFC3339(s)
        except ValueError as e:
            ctx.reportError('DecodeTime', str(e))
            return None
