"""
Indicator Registry Module

Declares indicator fields (the p_any_* output columns) and the named scanners
that extract typed indicator values from raw log field values.

Features:
- Field and scanner registration through a validating builder
- Frozen registry shared read-only by processing workers
- Value writer seam between scanners and output rows
- AWS scanners (account ids, instance ids, ARNs, tags)
"""

from .fields import FieldID, FieldMeta
from .writer import ValueWriter, IndicatorSink, IndicatorCollection, EnrichedRow, RowValueWriter
from .registry import (
    IndicatorRegistry,
    RegistryBuilder,
    RegistryError,
    Scanner,
    UnknownFieldError,
    UnknownScannerError,
)
from .aws import registerAWSIndicators


def buildDefaultRegistry() -> IndicatorRegistry:
    """Registry with every built-in indicator family registered."""
    builder = RegistryBuilder()
    registerAWSIndicators(builder)
    return builder.build()


__all__ = [
    'FieldID',
    'FieldMeta',
    'ValueWriter',
    'IndicatorSink',
    'IndicatorCollection',
    'EnrichedRow',
    'RowValueWriter',
    'IndicatorRegistry',
    'RegistryBuilder',
    'RegistryError',
    'Scanner',
    'UnknownFieldError',
    'UnknownScannerError',
    'registerAWSIndicators',
    'buildDefaultRegistry',
]
