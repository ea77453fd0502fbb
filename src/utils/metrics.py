from typing import Dict, Any
from collections import defaultdict
from datetime import datetime, timezone
import logging
import threading


class MetricsCollector:

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        self.startTime = datetime.now(timezone.utc)

        self.recordsReceived = 0
        self.recordsEnriched = 0
        self.recordsFailed = 0

        self.indicatorsByKind = defaultdict(int)
        self.timeDecodeErrors = defaultdict(int)

        self.processingTimes = []

    def recordReceived(self) -> None:
        with self._lock:
            self.recordsReceived += 1

    def recordEnriched(self, indicators: Dict[str, int]) -> None:
        with self._lock:
            self.recordsEnriched += 1
            for kind, count in indicators.items():
                self.indicatorsByKind[kind] += count

    def recordFailed(self) -> None:
        with self._lock:
            self.recordsFailed += 1

    def recordTimeDecodeError(self, path: str) -> None:
        with self._lock:
            self.timeDecodeErrors[path] += 1

    def recordProcessingTime(self, durationSeconds: float) -> None:
        with self._lock:
            self.processingTimes.append(durationSeconds)

    def getMetrics(self) -> Dict[str, Any]:
        runtimeSeconds = (datetime.now(timezone.utc) - self.startTime).total_seconds()

        with self._lock:
            times = list(self.processingTimes)
            return {
                'runtimeSeconds': runtimeSeconds,
                'records': {
                    'received': self.recordsReceived,
                    'enriched': self.recordsEnriched,
                    'failed': self.recordsFailed,
                    'records_per_second': self.recordsEnriched / runtimeSeconds if runtimeSeconds > 0 else 0
                },
                'indicators': {
                    'by_kind': dict(self.indicatorsByKind),
                    'total': sum(self.indicatorsByKind.values())
                },
                'timeDecodeErrors': dict(self.timeDecodeErrors),
                'performance': {
                    'avg_processing_time_ms': sum(times) / len(times) * 1000 if times else 0,
                    'max_processing_time_ms': max(times) * 1000 if times else 0
                }
            }

    def logMetrics(self) -> None:
        metrics = self.getMetrics()

        self.logger.info("=== Enrichment Metrics ===")
        self.logger.info(f"Runtime: {metrics['runtimeSeconds']:.2f} seconds")
        self.logger.info(f"Records received: {metrics['records']['received']}")
        self.logger.info(f"Records enriched: {metrics['records']['enriched']}")
        self.logger.info(f"Indicators extracted: {metrics['indicators']['total']}")

        if metrics['records']['failed']:
            self.logger.warning(f"Records failed: {metrics['records']['failed']}")
        if metrics['timeDecodeErrors']:
            self.logger.warning(f"Time decode errors: {metrics['timeDecodeErrors']}")
