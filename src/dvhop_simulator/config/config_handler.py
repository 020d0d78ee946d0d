import os
import copy
import yaml
from typing import Any

class ConfigHandler:
    _instance = None
    _config = None

    CONFIG_PATH = 'config.yaml'

    DEFAULT_CONFIG = {
        'simulation': {
            'duration': 10.0,
            'seed': None,
            'enable_metrics': True,
            'enable_logging': False,
            'log_level': 'INFO',
            'ideal_channel': True,
            'report_interval': 1.0,
            'print_routes_at': 8.0,
            'print_distances_at': 9.0,
        },
        'topology': {
            'size': 50,
            'step': 50.0,
            'grid_width': 10,
            'network': '10.0.0.0/8',
            'beacon_fraction': 0.25,
        },
        'network': {
            'bit_rate': 6000000,
            'speed_of_light': 300000000.0,
            'communication_range': 60.0,
            'delivery_prob': 0.9,
            'port': 1234,
        },
        'protocol': {
            'hello_interval': 1.0,
            'jitter_max_ms': 10,
            'hop_unit_distance': 50.0,
            'estimator': 'closest_triple',  # Options: closest_triple, triple_average
        },
    }

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigHandler, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if self._config is None:
            self._load_config()

    def _load_config(self):
        config_path = self.CONFIG_PATH
        if os.path.exists(config_path):
            with open(config_path, 'r') as f:
                loaded = yaml.safe_load(f) or {}
            # Missing sections/keys fall back to the defaults
            config = copy.deepcopy(self.DEFAULT_CONFIG)
            for section, values in loaded.items():
                config.setdefault(section, {}).update(values or {})
            ConfigHandler._config = config
        else:
            ConfigHandler._config = copy.deepcopy(self.DEFAULT_CONFIG)
            with open(config_path, 'w') as f:
                yaml.dump(self.DEFAULT_CONFIG, f, default_flow_style=False, sort_keys=False)

    def get(self, section: str, key: str) -> Any:
        return self._config.get(section, {}).get(key)

    def set(self, section: str, key: str, value: Any) -> None:
        self._config.setdefault(section, {})[key] = value

    @classmethod
    def reset(cls):
        cls._instance = None
        cls._config = None
