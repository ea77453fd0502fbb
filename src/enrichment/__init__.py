"""
Enrichment Module

Applies declarative log schemas to parsed records: scanner dispatch for
indicator paths and codec-driven normalization for timestamp paths.
"""

from .schema import LogSchema, IndicatorPath, TimestampPath, SchemaError
from .enricher import Enricher, EnrichmentError, EVENT_TIME_FIELD
from .field_mapper import FieldMapper

__all__ = [
    'LogSchema',
    'IndicatorPath',
    'TimestampPath',
    'SchemaError',
    'Enricher',
    'EnrichmentError',
    'EVENT_TIME_FIELD',
    'FieldMapper',
]
