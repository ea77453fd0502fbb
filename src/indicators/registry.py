from types import MappingProxyType
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Union
import logging

from .fields import FieldID, FieldMeta
from .writer import ValueWriter


ScanFunc = Callable[[ValueWriter, str], None]


class RegistryError(ValueError):
    """Raised when the indicator registry is misconfigured."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Invalid indicator registry: " + "; ".join(self.errors))


class UnknownFieldError(KeyError):
    pass


class UnknownScannerError(LookupError):
    pass


class Scanner:

    def __init__(self, name: str, run: ScanFunc, fieldIds: Iterable[FieldID]):
        self.name = name
        self.run = run
        self.fieldIds: FrozenSet[FieldID] = frozenset(fieldIds)

    def __call__(self, writer: ValueWriter, value: str) -> None:
        self.run(writer, value)

    def __repr__(self) -> str:
        return f"Scanner({self.name!r}, fields={sorted(self.fieldIds)})"


def passthrough(fieldId: FieldID) -> ScanFunc:
    """Scanner behavior that writes the raw value verbatim to a single field."""
    def scan(writer: ValueWriter, value: str) -> None:
        writer.writeValues(fieldId, value)
    return scan


class IndicatorRegistry:
    """
    Frozen view of declared indicator fields and scanners.

    Built once by RegistryBuilder at startup and shared read-only by every
    worker afterwards.
    """

    def __init__(self, fields: Dict[FieldID, FieldMeta], scanners: Dict[str, Scanner]):
        self._fields: Mapping[FieldID, FieldMeta] = MappingProxyType(dict(fields))
        self._scanners: Mapping[str, Scanner] = MappingProxyType(dict(scanners))

    @property
    def fields(self) -> Mapping[FieldID, FieldMeta]:
        return self._fields

    @property
    def scanners(self) -> Mapping[str, Scanner]:
        return self._scanners

    def field(self, fieldId: FieldID) -> FieldMeta:
        try:
            return self._fields[fieldId]
        except KeyError:
            raise UnknownFieldError(f"Indicator field {fieldId} is not registered") from None

    def hasScanner(self, name: str) -> bool:
        return name in self._scanners

    def scanner(self, name: str) -> Scanner:
        scanner = self._scanners.get(name)
        if scanner is None:
            raise UnknownScannerError(f"Unknown scanner: {name!r}")
        return scanner

    def scan(self, name: str, writer: ValueWriter, value: str) -> None:
        self.scanner(name)(writer, value)

    def scanValues(self, name: str, writer: ValueWriter, values: Iterable[Optional[str]]) -> None:
        scanner = self.scanner(name)
        for value in values:
            if value is not None:
                scanner(writer, value)

    def outputFields(self, *names: str) -> List[FieldMeta]:
        """Metadata of every field the named scanners may populate, ordered by field id."""
        fieldIds = set()
        for name in names:
            fieldIds.update(self.scanner(name).fieldIds)
        return [self._fields[fieldId] for fieldId in sorted(fieldIds)]


class RegistryBuilder:
    """
    Collects field and scanner registrations.

    Registration calls never raise for a bad definition. Problems are recorded
    and reported all at once by build(), which refuses to hand out a registry
    with any of them.
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._fields: Dict[FieldID, FieldMeta] = {}
        self._scanners: Dict[str, Scanner] = {}
        self.errors: List[str] = []
        self._frozen = False

    def registerField(self, fieldId: FieldID, meta: FieldMeta) -> 'RegistryBuilder':
        self._checkNotFrozen()

        if isinstance(fieldId, bool) or not isinstance(fieldId, int) or fieldId <= 0:
            self.errors.append(f"Invalid field id {fieldId!r}")
            return self

        if fieldId in self._fields:
            self.errors.append(f"Duplicate field id {fieldId} ({self._fields[fieldId].nameJSON})")
            return self

        if not isinstance(meta, FieldMeta):
            self.errors.append(f"Field {fieldId} has no metadata")
            return self

        missing = meta.missingAttributes()
        if missing:
            self.errors.append(f"Field {fieldId} metadata is missing {', '.join(missing)}")
            return self

        self._fields[fieldId] = meta
        self.logger.debug(f"Registered indicator field {fieldId} ({meta.nameJSON})")
        return self

    def registerScanner(
        self,
        name: str,
        behavior: Union[ScanFunc, FieldID],
        *fieldIds: FieldID
    ) -> 'RegistryBuilder':
        self._checkNotFrozen()

        if not name:
            self.errors.append("Scanner name is required")
            return self

        if name in self._scanners:
            self.errors.append(f"Duplicate scanner {name!r}")
            return self

        outputs = list(fieldIds)
        if callable(behavior):
            run = behavior
        elif isinstance(behavior, int) and not isinstance(behavior, bool):
            run = passthrough(behavior)
            if behavior not in outputs:
                outputs.append(behavior)
        else:
            self.errors.append(f"Scanner {name!r} behavior must be a function or a field id")
            return self

        if not outputs:
            self.errors.append(f"Scanner {name!r} declares no output fields")
            return self

        unknown = [fieldId for fieldId in outputs if fieldId not in self._fields]
        if unknown:
            self.errors.append(f"Scanner {name!r} uses unregistered fields {unknown}")
            return self

        self._scanners[name] = Scanner(name, run, outputs)
        self.logger.debug(f"Registered scanner {name!r} -> {sorted(outputs)}")
        return self

    def build(self) -> IndicatorRegistry:
        if self.errors:
            raise RegistryError(self.errors)

        self._frozen = True
        self.logger.info(
            f"Indicator registry ready: {len(self._fields)} fields, {len(self._scanners)} scanners"
        )
        return IndicatorRegistry(self._fields, self._scanners)

    def _checkNotFrozen(self) -> None:
        if self._frozen:
            raise RegistryError(["Registry is already built; registration must happen at startup"])
