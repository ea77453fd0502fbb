import logging
import sys
from pathlib import Path
from typing import Dict, Any, List
import json
from datetime import datetime, timezone


# Attributes the enrichment code attaches through `extra=` on log calls
CONTEXT_FIELDS = ('log_type', 'field_path', 'scanner', 'codec')

DEFAULT_LOGGER_LEVELS = {
    'botocore': 'WARNING',
    'dateutil': 'WARNING',
}


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'line': record.lineno
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Plain text lines, with any enrichment context appended as key=value pairs."""

    def __init__(self):
        fmt = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        datefmt = '%Y-%m-%d %H:%M:%S'
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = [f"{name}={getattr(record, name)}" for name in CONTEXT_FIELDS
                   if getattr(record, name, None) is not None]
        if context:
            text += ' [' + ' '.join(context) + ']'
        return text


def _buildHandlers(log_output: str, log_file_path: str) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []

    if log_output in ['file', 'both']:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    if log_output in ['stdout', 'both']:
        handlers.append(logging.StreamHandler(sys.stdout))

    return handlers


def setupLogging(config: Dict[str, Any]) -> None:
    """
    Configure the root logger from the `logging` config section.

    Besides level, format, output and file_path, a `loggers` mapping sets
    levels for individual loggers, e.g. `Enricher: DEBUG` to see every
    timestamp that failed to decode.
    """
    logging_config = config.get('logging', {})

    log_level = logging_config.get('level', 'INFO')
    log_format = logging_config.get('format', 'text')  # json or text
    log_output = logging_config.get('output', 'stdout')  # file, stdout, or both
    log_file_path = logging_config.get('file_path', 'logs/enrichment.log')

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    root_logger.handlers = []

    formatter = JSONFormatter() if log_format == 'json' else TextFormatter()
    for handler in _buildHandlers(log_output, log_file_path):
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logger_levels = dict(DEFAULT_LOGGER_LEVELS)
    logger_levels.update(logging_config.get('loggers') or {})
    for name, level in logger_levels.items():
        logging.getLogger(name).setLevel(getattr(logging, str(level).upper()))

    root_logger.info(f"Logging configured ({log_format} to {log_output})")
