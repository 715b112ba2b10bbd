"""
Configuration for naming-convention overrides.
"""
import json
import logging
import pathlib

logger = logging.getLogger(__name__)

DEFAULT_LOCATIONS = (
    '~/.config/datapacket/naming.json',
    '/etc/datapacket/naming.json',
    'naming.json',
    )


class NamingConfig:
    """Per-column overrides and extra suffix rules for classification.

    File format:

        {"columns": {"Score": {"type": "percentage", "format": "0.00%"}},
         "suffixes": [{"suffix": "_PCT", "type": "percentage", "format": "0.00%"}]}
    """

    _instance = None

    @classmethod
    def get_instance(cls):
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """Drop the singleton so the next lookup reloads configuration"""
        cls._instance = None

    def __init__(self, config_file=None, search_defaults=True):
        self._columns: dict[str, dict] = {}
        self._suffixes: list[dict] = []

        if config_file:
            self.load_config(config_file)
        elif search_defaults:
            for location in DEFAULT_LOCATIONS:
                path = pathlib.Path(location).expanduser()
                if path.exists():
                    self.load_config(path)
                    break

    def load_config(self, config_file):
        """Load configuration from file, merging into what is already loaded"""
        try:
            with pathlib.Path(config_file).open() as f:
                config = json.load(f)
            columns = config.get('columns', {})
            suffixes = config.get('suffixes', [])
            for name, entry in columns.items():
                self.add_column_override(name, entry['type'], entry.get('format'))
            for entry in suffixes:
                self.add_suffix_rule(entry['suffix'], entry['type'], entry.get('format'))
            logger.info(f'Loaded naming configuration from {config_file}')
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f'Failed to load naming config: {e}')

    def add_column_override(self, column_name, semantic_type, format=None):
        """Pin one column to a semantic type regardless of naming rules"""
        self._columns[column_name] = {'type': semantic_type, 'format': format}

    def add_suffix_rule(self, suffix, semantic_type, format=None):
        """Append a suffix rule evaluated after the built-in rules"""
        self._suffixes.append({'suffix': suffix, 'type': semantic_type, 'format': format})

    def get_column_override(self, column_name):
        """Configured (type, format) for an exact column name, or None"""
        entry = self._columns.get(column_name)
        if entry is None:
            return None
        return entry['type'], entry['format']

    @property
    def suffix_rules(self):
        return tuple(self._suffixes)
