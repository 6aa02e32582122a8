"""Tests for configuration management."""

import json
import os
import tempfile
import unittest

import yaml

from fintrack.categorization.rules import DEFAULT_RULE_TABLE
from fintrack.utils.config_manager import ConfigManager
from fintrack.models.core import ParserConfig


class TestConfigManager(unittest.TestCase):
    """Test cases for ConfigManager"""

    def setUp(self):
        """Set up test fixtures"""
        self.temp_dir = tempfile.mkdtemp()
        self.config_file = os.path.join(self.temp_dir, 'test_config.json')

    def tearDown(self):
        """Clean up test fixtures"""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write_config(self, data, path=None):
        path = path or self.config_file
        with open(path, 'w') as f:
            if path.endswith('.json'):
                json.dump(data, f)
            else:
                yaml.safe_dump(data, f)
        return path

    def test_default_config_loading(self):
        """Test loading default configuration when no file exists"""
        manager = ConfigManager(config_path=os.path.join(self.temp_dir, "nonexistent_file.json"))
        config = manager.load_config()

        self.assertIsInstance(config, ParserConfig)
        self.assertEqual(config.csv_chunk_size, 500)
        self.assertEqual(config.pdf_min_line_length, 10)
        self.assertFalse(config.categorize)
        self.assertEqual(config.default_categories, {"expense": "Other", "income": "Income"})
        self.assertIs(manager.load_rule_table(), DEFAULT_RULE_TABLE)

    def test_config_file_loading(self):
        """Test loading configuration from JSON file"""
        self.write_config({
            "csv_chunk_size": 50,
            "csv_encoding": "latin-1",
            "categorize": True,
            "date_formats": ["%d.%m.%Y"],
            "default_categories": {"expense": "Uncategorized", "income": None},
        })

        manager = ConfigManager(config_path=self.config_file)
        config = manager.load_config()

        self.assertEqual(config.csv_chunk_size, 50)
        self.assertEqual(config.csv_encoding, "latin-1")
        self.assertTrue(config.categorize)
        self.assertEqual(config.date_formats, ["%d.%m.%Y"])
        self.assertEqual(config.default_categories["expense"], "Uncategorized")
        self.assertIsNone(config.default_categories["income"])

    def test_yaml_loading_with_rules(self):
        """Test loading category rules from a YAML file"""
        path = self.write_config({
            "category_rules": [
                {"category_id": "Pets", "type": "expense", "keywords": ["petco", "vet"]},
                {"category_id": "Gifts", "type": "income", "keywords": ["gift"]},
            ]
        }, os.path.join(self.temp_dir, 'config.yml'))

        manager = ConfigManager(config_path=path)
        table = manager.load_rule_table()

        self.assertEqual([rule.category_id for rule in table], ["Pets", "Gifts"])
        self.assertEqual(list(table)[0].keywords, ("petco", "vet"))

    def test_empty_yaml_uses_defaults(self):
        path = os.path.join(self.temp_dir, 'empty.yaml')
        open(path, 'w').close()

        config = ConfigManager(config_path=path).load_config()

        self.assertEqual(config.csv_chunk_size, 500)

    def test_config_validation(self):
        """Test configuration validation"""
        invalid_configs = [
            {"csv_chunk_size": "big"},
            {"csv_chunk_size": 0},
            {"csv_chunk_size": True},
            {"pdf_min_line_length": -1},
            {"categorize": "yes"},
            {"date_formats": "%Y-%m-%d"},
            {"date_formats": [1, 2]},
            {"default_categories": ["Other"]},
            {"default_categories": {"transfer": "Other"}},
            {"category_rules": {"Food": ["coffee"]}},
            {"category_rules": [{"category_id": "Food", "type": "expense", "keywords": []}]},
            {"category_rules": [
                {"category_id": "Food", "type": "expense", "keywords": ["a"]},
                {"category_id": "Food", "type": "expense", "keywords": ["b"]},
            ]},
        ]

        for data in invalid_configs:
            with self.subTest(data=data):
                self.write_config(data)
                manager = ConfigManager(config_path=self.config_file)
                with self.assertRaises(ValueError):
                    manager.load_config()

    def test_unsupported_file_extension(self):
        path = os.path.join(self.temp_dir, 'config.ini')
        with open(path, 'w') as f:
            f.write("[fintrack]\n")

        with self.assertRaises(ValueError):
            ConfigManager(config_path=path).load_config()

    def test_config_template_generation(self):
        """Test configuration template generation"""
        template_file = os.path.join(self.temp_dir, 'sub', 'template.json')

        manager = ConfigManager()
        manager.save_config_template(template_file)

        self.assertTrue(os.path.exists(template_file))

        with open(template_file, 'r') as f:
            template = json.load(f)

        self.assertIn('date_formats', template)
        self.assertIn('default_categories', template)
        self.assertEqual(template['category_rules'][0]['category_id'], 'Food & Dining')

        # The template must load back cleanly
        loaded = ConfigManager(config_path=template_file)
        self.assertEqual(len(loaded.load_rule_table()), len(DEFAULT_RULE_TABLE))

    def test_yaml_template_generation(self):
        template_file = os.path.join(self.temp_dir, 'template.yml')

        ConfigManager().save_config_template(template_file)

        with open(template_file, 'r') as f:
            template = yaml.safe_load(f)
        self.assertEqual(template['csv_chunk_size'], 500)

    def test_config_caching(self):
        """Test that configuration is cached properly"""
        self.write_config({"csv_chunk_size": 10})

        manager = ConfigManager(config_path=self.config_file)
        config1 = manager.load_config()
        self.assertEqual(config1.csv_chunk_size, 10)

        self.write_config({"csv_chunk_size": 20})

        config2 = manager.load_config()
        self.assertEqual(config2.csv_chunk_size, 10)  # Still cached

        config3 = manager.load_config(force_reload=True)
        self.assertEqual(config3.csv_chunk_size, 20)  # Now updated

    def test_known_categories(self):
        self.write_config({
            "category_rules": [{"category_id": "Pets", "type": "expense", "keywords": ["vet"]}],
            "default_categories": {"expense": "Other", "income": "Income"},
        })

        manager = ConfigManager(config_path=self.config_file)

        self.assertEqual(manager.known_categories(), ["Pets", "Other", "Income"])


if __name__ == '__main__':
    unittest.main()
