"""
Indicator Enrichment Pipeline

Startup sequence and batch processing for the enrichment engine.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, Iterator, List, Optional
import time

from utils.config_loader import ConfigLoader
from utils.logger import setupLogging
from utils.metrics import MetricsCollector
from indicators import IndicatorRegistry, RegistryError, buildDefaultRegistry
from timecodec import CodecRegistry
from enrichment import Enricher, EnrichmentError, LogSchema, SchemaError


class EnrichmentPipeline:
    """
    Main pipeline orchestrator.

    Coordinates:
    1. Configuration loading and logging setup
    2. Indicator registry construction (fields, then scanners, then freeze)
    3. Codec registry and per log type enrichers
    4. Record enrichment with metrics
    """

    def __init__(self, configPath: Optional[str] = None, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the pipeline.

        Args:
            configPath: Path to a YAML configuration file
            config: Already loaded configuration, used instead of configPath

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If config validation fails
            RegistryError: If the indicator registry is inconsistent
            SchemaError: If a schema references unknown scanners or codecs
        """
        if config is None:
            if configPath is None:
                raise ValueError("Either configPath or config is required")
            loader = ConfigLoader(configPath)
            config = loader.load()
            if not loader.validate():
                raise ValueError(f"Invalid configuration: {configPath}")
        self.config = config

        setupLogging(self.config)
        self.logger = logging.getLogger(self.__class__.__name__)

        self.metrics = MetricsCollector()

        self.logger.info("Initializing enrichment components...")

        try:
            self.registry = self.buildRegistry()
        except RegistryError as e:
            for error in e.errors:
                self.logger.error(f"Indicator registry: {error}")
            raise

        codecConfig = self.config.get('timecodec', {}) or {}
        self.codecs = CodecRegistry(defaultCodec=codecConfig.get('default_codec'))

        enrichmentConfig = self.config.get('enrichment', {}) or {}
        failOnTimeError = bool(enrichmentConfig.get('fail_on_time_error', False))

        self.enrichers: Dict[str, Enricher] = {}
        for logType, declaration in (enrichmentConfig.get('schemas') or {}).items():
            try:
                schema = LogSchema.fromConfig(logType, declaration)
                self.enrichers[logType] = Enricher(schema, self.registry, self.codecs, failOnTimeError)
            except SchemaError as e:
                self.logger.error(f"Failed to initialize schema {logType}: {e}")
                raise

        self.logger.info(f"Pipeline initialized with log types: {sorted(self.enrichers)}")

    def buildRegistry(self) -> IndicatorRegistry:
        return buildDefaultRegistry()

    def enricher(self, logType: str) -> Enricher:
        enricher = self.enrichers.get(logType)
        if enricher is None:
            raise KeyError(f"Unknown log type: {logType}")
        return enricher

    def enrichRecord(self, logType: str, record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Enrich a single record.

        Returns:
            The enriched row as a dict, or None if the record failed
        """
        enricher = self.enricher(logType)
        self.metrics.recordReceived()
        processStart = time.time()

        try:
            row = enricher.enrich(record)
        except EnrichmentError as e:
            self.logger.warning(f"Skipping record: {e}", extra={'log_type': logType})
            self.metrics.recordFailed()
            return None

        for path in row.errors:
            self.metrics.recordTimeDecodeError(path)
        self.metrics.recordEnriched({kind: len(values) for kind, values in row.indicators.items()})
        self.metrics.recordProcessingTime(time.time() - processStart)
        return row.toDict()

    def enrichRecords(self, logType: str, records: Iterable[Dict[str, Any]]) -> Iterator[Dict[str, Any]]:
        for record in records:
            enriched = self.enrichRecord(logType, record)
            if enriched is not None:
                yield enriched

    def enrichBatch(self, logType: str, records: List[Dict[str, Any]], workers: int = 4) -> List[Dict[str, Any]]:
        """Enrich a batch across worker threads, keeping input order."""
        self.enricher(logType)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(lambda record: self.enrichRecord(logType, record), records))

        return [row for row in results if row is not None]

    def getStatus(self) -> Dict[str, Any]:
        return {
            'logTypes': {
                logType: enricher.outputColumns() for logType, enricher in self.enrichers.items()
            },
            'codecs': self.codecs.names(),
            'metrics': self.metrics.getMetrics()
        }
