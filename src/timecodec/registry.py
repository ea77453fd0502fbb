from typing import Dict, List, Optional
import logging

from dateutil import tz

from .codecs import LayoutCodec, StdCodec, TimeCodec, UnixMillisecondsCodec, UnixSecondsCodec


LAYOUT_PREFIX = 'layout='


class UnknownCodecError(LookupError):
    pass


class CodecRegistry:
    """
    Named time codecs for use in configuration.

    A selector is either a registered name (unix, unix_ms, rfc3339, ...) or
    `layout=<strftime format>`, which builds a LayoutCodec on the fly.
    """

    def __init__(self, defaultCodec: Optional[str] = None):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._codecs: Dict[str, TimeCodec] = {
            'unix': UnixSecondsCodec(),
            'unix_ms': UnixMillisecondsCodec(),
            'rfc3339': StdCodec(),
        }
        self.defaultCodec: TimeCodec = self.lookup(defaultCodec) if defaultCodec else self._codecs['rfc3339']

    def register(self, name: str, codec: TimeCodec) -> None:
        if not name or name.startswith(LAYOUT_PREFIX):
            raise ValueError(f"Invalid codec name {name!r}")
        if name in self._codecs:
            raise ValueError(f"Duplicate codec {name!r}")
        self._codecs[name] = codec
        self.logger.debug(f"Registered time codec {name!r}")

    def names(self) -> List[str]:
        return sorted(self._codecs)

    def lookup(self, selector: Optional[str]) -> TimeCodec:
        if not selector:
            return self.defaultCodec
        if selector.startswith(LAYOUT_PREFIX):
            layout = selector[len(LAYOUT_PREFIX):]
            if not layout:
                raise UnknownCodecError(f"Empty layout in codec selector {selector!r}")
            return LayoutCodec(layout)
        codec = self._codecs.get(selector)
        if codec is None:
            raise UnknownCodecError(f"Unknown time codec {selector!r}")
        return codec


def resolveTimezone(name: str):
    """Timezone by IANA name (or UTC offset string); unknown names raise ValueError."""
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown timezone {name!r}")
    return zone
