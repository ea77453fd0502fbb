"""
Time codec combinators

Build new codecs out of existing ones. Wrapping a codec that already carries
the same kind of wrapper replaces that wrapper instead of nesting another one.
"""

from datetime import datetime, tzinfo
from typing import Any, List, Optional, Tuple

from .codecs import TimeCodec, TimeDecoder, TimeEncoder
from .context import DecodeContext


class JoinCodec(TimeCodec):

    def __init__(self, decoder: TimeDecoder, encoder: TimeEncoder):
        self.decoder = decoder
        self.encoder = encoder

    def decodeTime(self, ctx: DecodeContext) -> Optional[datetime]:
        return self.decoder.decodeTime(ctx)

    def encodeTime(self, tm: Optional[datetime]) -> Any:
        return self.encoder.encodeTime(tm)

    def __repr__(self) -> str:
        return f"JoinCodec({self.decoder!r}, {self.encoder!r})"


def resolveDecoder(dec: Optional[TimeDecoder]) -> Optional[TimeDecoder]:
    if isinstance(dec, JoinCodec):
        return dec.decoder
    return dec


def resolveEncoder(enc: Optional[TimeEncoder]) -> Optional[TimeEncoder]:
    if isinstance(enc, JoinCodec):
        return enc.encoder
    return enc


def join(decoder: TimeDecoder, encoder: TimeEncoder) -> TimeCodec:
    """Compose a codec from a decoder and an encoder."""
    return JoinCodec(resolveDecoder(decoder), resolveEncoder(encoder))


def split(codec: TimeCodec) -> Tuple[TimeDecoder, TimeEncoder]:
    return resolveDecoder(codec), resolveEncoder(codec)


class LocEncoder(TimeEncoder):

    def __init__(self, encoder: TimeEncoder, tz: tzinfo):
        self.encoder = encoder
        self.tz = tz

    def encodeTime(self, tm: Optional[datetime]) -> Any:
        if tm is not None:
            tm = _inZone(tm, self.tz)
        return self.encoder.encodeTime(tm)


class LocDecoder(TimeDecoder):

    def __init__(self, decoder: TimeDecoder, tz: tzinfo):
        self.decoder = decoder
        self.tz = tz

    def decodeTime(self, ctx: DecodeContext) -> Optional[datetime]:
        tm = self.decoder.decodeTime(ctx)
        if tm is None:
            return None
        return _inZone(tm, self.tz)


def _inZone(tm: datetime, tz: tzinfo) -> datetime:
    if tm.tzinfo is None:
        return tm.replace(tzinfo=tz)
    return tm.astimezone(tz)


def encodeIn(tz: tzinfo, encoder: TimeEncoder) -> TimeEncoder:
    """Force a timezone on all encoded timestamps."""
    encoder = resolveEncoder(encoder)
    if isinstance(encoder, LocEncoder):
        encoder = resolveEncoder(encoder.encoder)
    return LocEncoder(encoder, tz)


def decodeIn(tz: tzinfo, decoder: TimeDecoder) -> TimeDecoder:
    """Force a timezone on all decoded timestamps."""
    decoder = resolveDecoder(decoder)
    if isinstance(decoder, LocDecoder):
        decoder = resolveDecoder(decoder.decoder)
    return LocDecoder(decoder, tz)


def inTimezone(tz: tzinfo, codec: TimeCodec) -> TimeCodec:
    """Force a timezone on all decoded and encoded timestamps."""
    return JoinCodec(decodeIn(tz, codec), encodeIn(tz, codec))


class TryDecoder(TimeDecoder):
    """
    Tries each decoder in order on the same raw value.

    Every attempt runs on a pooled scratch context reset to the original raw
    JSON, so a failed attempt cannot leave anything behind for the next one.
    When all attempts fail, the error of the last one is reported on the
    caller's context.
    """

    def __init__(self, decoders: List[TimeDecoder]):
        self.decoders = decoders

    def decodeTime(self, ctx: DecodeContext) -> Optional[datetime]:
        raw = ctx.skipAndReturnRaw()
        if ctx.error is not None:
            return None

        with ctx.pool.borrow(raw) as child:
            for i, decoder in enumerate(self.decoders):
                if i != 0:
                    child.reset(raw)
                tm = decoder.decodeTime(child)
                if child.error is None:
                    return tm
            ctx.error = child.error
        return None

    def __repr__(self) -> str:
        return f"TryDecoder({self.decoders!r})"


def tryDecoders(decoder: TimeDecoder, *fallback: TimeDecoder) -> TimeDecoder:
    return TryDecoder([resolveDecoder(dec) for dec in (decoder,) + fallback])
