"""
Configuration Loader

Loads the enrichment configuration from YAML with environment variable substitution.
"""

import yaml
import os
from pathlib import Path
from typing import Dict, Any, Optional
import re
import logging


class ConfigLoader:
    """
    Loads configuration from a YAML file.

    Supports:
    - Environment variable substitution ${VAR_NAME}
    - Dotted key lookup
    - Validation of the sections the pipeline needs
    """

    REQUIRED_SECTIONS = ['enrichment']

    def __init__(self, configPath: str):
        self.configPath = Path(configPath)
        self.logger = logging.getLogger(self.__class__.__name__)
        self.config: Dict[str, Any] = {}

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from file.

        Returns:
            Configuration dictionary

        Raises:
            FileNotFoundError: If the file does not exist
            yaml.YAMLError: If the file is not valid YAML
        """
        if not self.configPath.exists():
            raise FileNotFoundError(f"Config file not found: {self.configPath}")

        try:
            with open(self.configPath, 'r') as f:
                content = f.read()

            return self.loadString(content)

        except Exception as e:
            self.logger.error(f"Error loading configuration: {e}")
            raise

    def loadString(self, content: str) -> Dict[str, Any]:
        content = self._substituteEnvVars(content)
        self.config = yaml.safe_load(content) or {}
        if not isinstance(self.config, dict):
            raise ValueError("Configuration root must be a mapping")
        self.logger.info(f"Configuration loaded from {self.configPath}")
        return self.config

    def _substituteEnvVars(self, content: str) -> str:
        pattern = r'\$\{([^}]+)\}'

        def replacer(match):
            varName = match.group(1)
            value = os.environ.get(varName)
            if value is None:
                self.logger.warning(f"Environment variable not found: {varName}")
                return match.group(0)  # Keep original if not found
            return value

        return re.sub(pattern, replacer, content)

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def validate(self) -> bool:
        for section in self.REQUIRED_SECTIONS:
            if section not in self.config:
                self.logger.error(f"Missing required configuration section: {section}")
                return False

        schemas = self.get('enrichment.schemas', {})
        if not isinstance(schemas, dict):
            self.logger.error("enrichment.schemas must be a mapping of log type to schema")
            return False

        return True
