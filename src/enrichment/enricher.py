from typing import Any, Dict, List, Optional, Tuple
import logging

from indicators import EnrichedRow, IndicatorRegistry, RowValueWriter
from timecodec import (
    ABSENT,
    CodecRegistry,
    TimeFieldDecoder,
    TimeFieldEncoder,
    decodeIn,
    encodeIn,
    newTimeDecoder,
    newTimeEncoder,
    resolveTimezone,
    split,
    tryDecoders,
)

from .field_mapper import FieldMapper
from .schema import LogSchema, SchemaError, TimestampPath


EVENT_TIME_FIELD = 'p_event_time'


class EnrichmentError(ValueError):
    pass


class Enricher:
    """
    Applies a LogSchema to parsed records.

    Scanner names and codec selectors are resolved when the enricher is
    built, so a typo in the schema stops startup instead of silently dropping
    values at run time.
    """

    def __init__(
        self,
        schema: LogSchema,
        registry: IndicatorRegistry,
        codecs: Optional[CodecRegistry] = None,
        failOnTimeError: bool = False
    ):
        self.schema = schema
        self.registry = registry
        self.codecs = codecs or CodecRegistry()
        self.failOnTimeError = failOnTimeError
        self.logger = logging.getLogger(self.__class__.__name__)
        self.fieldMapper = FieldMapper()

        unknown = [name for name in schema.scannerNames() if not registry.hasScanner(name)]
        if unknown:
            raise SchemaError(f"Schema {schema.name} uses unknown scanners: {unknown}")

        self._timeFields: List[Tuple[TimestampPath, TimeFieldDecoder, TimeFieldEncoder]] = [
            (entry,) + self._buildTimeField(entry) for entry in schema.timestamps
        ]
        self._eventTimeEncoder = newTimeEncoder()

    def _buildTimeField(self, entry: TimestampPath) -> Tuple[TimeFieldDecoder, TimeFieldEncoder]:
        try:
            decoder, encoder = split(self.codecs.lookup(entry.codec))
            if entry.fallback:
                decoder = tryDecoders(decoder, *[split(self.codecs.lookup(name))[0] for name in entry.fallback])
            if entry.timezone:
                zone = resolveTimezone(entry.timezone)
                decoder = decodeIn(zone, decoder)
                encoder = encodeIn(zone, encoder)
        except (LookupError, ValueError) as e:
            raise SchemaError(f"Schema {self.schema.name}: timestamp {entry.path}: {e}") from e

        return (
            newTimeDecoder(decoder, optional=entry.optional),
            newTimeEncoder(encoder, optional=entry.optional)
        )

    def outputColumns(self) -> List[str]:
        return [meta.nameJSON for meta in self.registry.outputFields(*self.schema.scannerNames())]

    def enrich(self, record: Dict[str, Any]) -> EnrichedRow:
        row = EnrichedRow(record)
        writer = RowValueWriter(self.registry, row)

        for entry in self.schema.indicators:
            values = [self._scanInput(value) for value in self.fieldMapper.extractValues(record, entry.path)]
            self.registry.scanValues(entry.scanner, writer, values)

        for entry, decoder, encoder in self._timeFields:
            self._normalizeTime(row, entry, decoder, encoder)

        return row

    def _scanInput(self, value: Any) -> Optional[str]:
        if isinstance(value, str):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return None

    def _normalizeTime(
        self,
        row: EnrichedRow,
        entry: TimestampPath,
        decoder: TimeFieldDecoder,
        encoder: TimeFieldEncoder
    ) -> None:
        if not self.fieldMapper.hasField(row.record, entry.path):
            if entry.optional:
                return
            raw = None
        else:
            raw = self.fieldMapper.extractField(row.record, entry.path)

        tm, error = decoder.decode(raw)
        if error is not None:
            row.errors[entry.path] = str(error)
            if self.failOnTimeError:
                raise EnrichmentError(f"{self.schema.name}: cannot decode {entry.path}: {error}")
            self.logger.debug(
                f"Failed to decode {entry.path} ({raw!r}): {error}",
                extra={'log_type': self.schema.name, 'field_path': entry.path, 'codec': entry.codec}
            )
            return

        encoded = encoder.encode(tm)
        if encoded is ABSENT:
            self.fieldMapper.removeField(row.record, entry.path)
        else:
            self.fieldMapper.setField(row.record, entry.path, encoded)

        if entry.eventTime and tm is not None and tm is not ABSENT:
            row.record[EVENT_TIME_FIELD] = self._eventTimeEncoder.encode(tm)
