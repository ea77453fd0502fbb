"""
Value writers and indicator collections.

Scanners never touch an output row directly. They write (field id, value)
pairs to a ValueWriter, and the writer decides where the values land.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional, TYPE_CHECKING

from .fields import FieldID

if TYPE_CHECKING:
    from .registry import IndicatorRegistry


class ValueWriter(ABC):

    @abstractmethod
    def writeValues(self, fieldId: FieldID, *values: str) -> None:
        pass


class IndicatorSink(ABC):
    """Anything that can collect indicator values by kind (the field's JSON name)."""

    @abstractmethod
    def appendIndicator(self, kind: str, *values: str) -> None:
        pass


class IndicatorCollection:
    """Ordered set of indicator values. Duplicates are dropped, first-seen order is kept."""

    def __init__(self, *values: str):
        self._values: Dict[str, None] = {}
        self.add(*values)

    def add(self, *values: str) -> None:
        for value in values:
            self._values.setdefault(value, None)

    def toList(self) -> List[str]:
        return list(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, value: object) -> bool:
        return value in self._values

    def __repr__(self) -> str:
        return f"IndicatorCollection({self.toList()!r})"


class EnrichedRow(IndicatorSink):
    """
    A base record composed with its indicator collections.

    Collections are created lazily on the first write to a kind, so a row
    with no values of some kind has no entry for it at all.
    """

    def __init__(self, record: Optional[Dict[str, Any]] = None):
        self.record: Dict[str, Any] = dict(record or {})
        self.indicators: Dict[str, IndicatorCollection] = {}
        self.errors: Dict[str, str] = {}

    def appendIndicator(self, kind: str, *values: str) -> None:
        if not values:
            return
        collection = self.indicators.get(kind)
        if collection is None:  # lazy create
            collection = IndicatorCollection()
            self.indicators[kind] = collection
        collection.add(*values)

    def indicator(self, kind: str) -> List[str]:
        collection = self.indicators.get(kind)
        return collection.toList() if collection else []

    def toDict(self) -> Dict[str, Any]:
        data = dict(self.record)
        for kind, collection in self.indicators.items():
            if len(collection):
                data[kind] = collection.toList()
        return data


class RowValueWriter(ValueWriter):
    """Routes scanner output into an IndicatorSink using the registered JSON field names."""

    def __init__(self, registry: 'IndicatorRegistry', sink: IndicatorSink):
        self.registry = registry
        self.sink = sink

    def writeValues(self, fieldId: FieldID, *values: str) -> None:
        meta = self.registry.field(fieldId)
        self.sink.appendIndicator(meta.nameJSON, *values)
