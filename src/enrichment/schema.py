from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


class SchemaError(ValueError):
    pass


@dataclass
class IndicatorPath:
    path: str
    scanner: str


@dataclass
class TimestampPath:
    path: str
    codec: Optional[str] = None  # selector, None means the default codec
    fallback: List[str] = field(default_factory=list)
    timezone: Optional[str] = None
    optional: bool = False
    eventTime: bool = False


@dataclass
class LogSchema:
    name: str
    indicators: List[IndicatorPath] = field(default_factory=list)
    timestamps: List[TimestampPath] = field(default_factory=list)

    @property
    def eventTimePath(self) -> Optional[TimestampPath]:
        for entry in self.timestamps:
            if entry.eventTime:
                return entry
        return None

    def scannerNames(self) -> List[str]:
        names: List[str] = []
        for entry in self.indicators:
            if entry.scanner not in names:
                names.append(entry.scanner)
        return names

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for entry in data['timestamps']:
            entry['event_time'] = entry.pop('eventTime')
        return data

    @classmethod
    def fromConfig(cls, name: str, config: Dict[str, Any]) -> 'LogSchema':
        """
        Build a schema from its configuration mapping.

        Args:
            name: Log type name, e.g. AWS.CloudTrail
            config: Mapping with `indicators` and `timestamps` lists

        Raises:
            SchemaError: If the declaration is malformed
        """
        if not isinstance(config, dict):
            raise SchemaError(f"Schema {name}: declaration must be a mapping")

        indicators = []
        for entry in config.get('indicators') or []:
            if not isinstance(entry, dict) or not entry.get('path') or not entry.get('scanner'):
                raise SchemaError(f"Schema {name}: indicator entries need a path and a scanner, got {entry!r}")
            indicators.append(IndicatorPath(path=entry['path'], scanner=entry['scanner']))

        timestamps = []
        for entry in config.get('timestamps') or []:
            if not isinstance(entry, dict) or not entry.get('path'):
                raise SchemaError(f"Schema {name}: timestamp entries need a path, got {entry!r}")
            fallback = entry.get('fallback') or []
            if isinstance(fallback, str):
                fallback = [fallback]
            timestamps.append(TimestampPath(
                path=entry['path'],
                codec=entry.get('codec'),
                fallback=list(fallback),
                timezone=entry.get('timezone'),
                optional=bool(entry.get('optional', False)),
                eventTime=bool(entry.get('event_time', False))
            ))

        schema = cls(name=name, indicators=indicators, timestamps=timestamps)
        schema.validate()
        return schema

    def validate(self) -> bool:
        if not self.name:
            raise SchemaError("Schema name is required")

        if sum(1 for entry in self.timestamps if entry.eventTime) > 1:
            raise SchemaError(f"Schema {self.name}: only one timestamp can be the event time")

        paths = [entry.path for entry in self.timestamps]
        if len(paths) != len(set(paths)):
            raise SchemaError(f"Schema {self.name}: duplicate timestamp paths")

        return True
