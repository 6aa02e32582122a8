"""Configuration management for statement ingestion and categorization."""

import json
import os
import yaml
from typing import Dict, Any, Optional, List
import logging

from ..categorization.rules import DEFAULT_CATEGORY_RULES, DEFAULT_RULE_TABLE, RuleTable
from ..models.core import ParserConfig, TransactionType


logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages loading and validation of parser configuration"""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager

        Args:
            config_path: Path to configuration file. If None, searches for default locations.
        """
        self.config_path = config_path
        self._config_cache: Optional[ParserConfig] = None
        self._rule_table: Optional[RuleTable] = None

    def load_config(self, force_reload: bool = False) -> ParserConfig:
        """Load parser configuration from file or return default

        Args:
            force_reload: Force reload from file even if cached

        Returns:
            ParserConfig instance with loaded or default configuration
        """
        if self._config_cache is not None and not force_reload:
            return self._config_cache

        config_data = self._load_config_file()

        self._config_cache = ParserConfig(
            date_formats=config_data.get('date_formats'),
            csv_chunk_size=config_data.get('csv_chunk_size', 500),
            csv_encoding=config_data.get('csv_encoding', 'utf-8-sig'),
            pdf_min_line_length=config_data.get('pdf_min_line_length', 10),
            categorize=config_data.get('categorize', False),
            default_categories=config_data.get('default_categories'),
            category_rules=config_data.get('category_rules'),
            correction_log_path=config_data.get('correction_log_path', 'corrections.jsonl'),
        )
        self._rule_table = None

        logger.info(f"Configuration loaded successfully from {self.config_path or 'defaults'}")
        return self._config_cache

    def load_rule_table(self) -> RuleTable:
        """Category rule table from the configuration, or the built-in one"""
        if self._rule_table is not None:
            return self._rule_table

        config = self.load_config()
        if config.category_rules:
            self._rule_table = RuleTable.from_entries(config.category_rules)
            logger.info(f"Loaded {len(self._rule_table)} category rules from configuration")
        else:
            self._rule_table = DEFAULT_RULE_TABLE
        return self._rule_table

    def _load_config_file(self) -> Dict[str, Any]:
        """Load configuration from file

        Returns:
            Dictionary with configuration data or empty dict if no file found

        Raises:
            ValueError: If the file exists but holds invalid configuration
        """
        config_file = self._find_config_file()

        if not config_file or not os.path.exists(config_file):
            if self.config_path:
                logger.warning(f"Configuration file not found: {self.config_path}, using defaults")
            else:
                logger.info("No configuration file found, using defaults")
            return {}

        with open(config_file, 'r', encoding='utf-8') as f:
            if config_file.endswith('.json'):
                data = json.load(f)
            elif config_file.endswith(('.yml', '.yaml')):
                data = yaml.safe_load(f)
            else:
                raise ValueError(f"Unsupported config file format: {config_file}")

        # An empty YAML document loads as None
        if data is None:
            data = {}

        self._validate_config_data(data)
        logger.info(f"Configuration loaded from {config_file}")
        return data

    def _find_config_file(self) -> Optional[str]:
        """Find configuration file in standard locations

        Returns:
            Path to configuration file or None if not found
        """
        if self.config_path:
            return self.config_path

        search_paths = [
            'fintrack_config.json',
            'fintrack_config.yml',
            'fintrack_config.yaml',
            'config/fintrack_config.json',
            'config/fintrack_config.yml',
            'config/fintrack_config.yaml',
            os.path.expanduser('~/.fintrack/config.json'),
            os.path.expanduser('~/.fintrack/config.yml'),
        ]

        for path in search_paths:
            if os.path.exists(path):
                return path

        return None

    def _validate_config_data(self, data: Dict[str, Any]) -> None:
        """Validate configuration data structure

        Args:
            data: Configuration data to validate

        Raises:
            ValueError: If configuration data is invalid
        """
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a dictionary")

        # bool is an int subclass, so reject it explicitly
        for int_key in ['csv_chunk_size', 'pdf_min_line_length']:
            if int_key in data:
                value = data[int_key]
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ValueError(f"{int_key} must be an integer")
                if value < 0 or (int_key == 'csv_chunk_size' and value == 0):
                    raise ValueError(f"{int_key} must be positive")

        if 'csv_encoding' in data:
            if not isinstance(data['csv_encoding'], str) or not data['csv_encoding'].strip():
                raise ValueError("csv_encoding must be a non-empty string")

        if 'categorize' in data and not isinstance(data['categorize'], bool):
            raise ValueError("categorize must be a boolean")

        if 'correction_log_path' in data and not isinstance(data['correction_log_path'], str):
            raise ValueError("correction_log_path must be a string")

        if 'date_formats' in data:
            if not isinstance(data['date_formats'], list):
                raise ValueError("date_formats must be a list")
            for fmt in data['date_formats']:
                if not isinstance(fmt, str):
                    raise ValueError("All date formats must be strings")

        if 'default_categories' in data:
            defaults = data['default_categories']
            if not isinstance(defaults, dict):
                raise ValueError("default_categories must be a dictionary")
            for type_name, category_id in defaults.items():
                TransactionType.from_value(type_name)
                if category_id is not None and not isinstance(category_id, str):
                    raise ValueError(f"Default category for {type_name} must be a string or null")

        if 'category_rules' in data:
            self._validate_category_rules(data['category_rules'])

    def _validate_category_rules(self, rules: Any) -> None:
        """Validate the ordered category rule list

        Raises:
            ValueError: If any rule is malformed or duplicated
        """
        if not isinstance(rules, list):
            raise ValueError("category_rules must be a list")
        for rule in rules:
            if not isinstance(rule, dict):
                raise ValueError("Each category rule must be a dictionary")
        # Building the table checks ids, keyword lists, types and duplicates
        RuleTable.from_entries(rules)

    def save_config_template(self, output_path: str) -> None:
        """Generate and save a configuration file template

        Args:
            output_path: Path where to save the template
        """
        defaults = ParserConfig()
        template = {
            "date_formats": defaults.date_formats,
            "csv_chunk_size": defaults.csv_chunk_size,
            "csv_encoding": defaults.csv_encoding,
            "pdf_min_line_length": defaults.pdf_min_line_length,
            "categorize": defaults.categorize,
            "correction_log_path": defaults.correction_log_path,
            "default_categories": defaults.default_categories,
            "category_rules": DEFAULT_CATEGORY_RULES,
        }

        try:
            output_dir = os.path.dirname(output_path)
            if output_dir:
                os.makedirs(output_dir, exist_ok=True)

            with open(output_path, 'w', encoding='utf-8') as f:
                if output_path.endswith(('.yml', '.yaml')):
                    yaml.safe_dump(template, f, default_flow_style=False, indent=2, sort_keys=False)
                else:
                    json.dump(template, f, indent=2)

            logger.info(f"Configuration template saved to {output_path}")

        except OSError as e:
            logger.error(f"Error saving configuration template: {e}")
            raise

    def known_categories(self) -> List[str]:
        """Category ids a transaction may be assigned, in table order"""
        config = self.load_config()
        categories = [rule.category_id for rule in self.load_rule_table()]
        for category_id in (config.default_categories or {}).values():
            if category_id and category_id not in categories:
                categories.append(category_id)
        return categories

