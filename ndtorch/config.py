"""
Configuration system for ndtorch.

Loads YAML configs that choose the default device, the default floating
point type and the limits used when arrays are printed.
"""

import yaml
import os
from typing import Dict, Optional, Any
from dataclasses import dataclass, field


@dataclass
class PrintOptions:
    """Limits applied by NDArray.to_debug_string()."""
    max_size: int = 100  # Elements printed before summarizing
    max_depth: int = 10  # Dimensions printed before giving up
    # Combined limit: the smaller of the two, halved, is the number of
    # leading and trailing items shown along every axis of a summarized array
    max_rows: int = 10
    max_columns: int = 20


@dataclass
class EngineConfig:
    """Defaults used when arrays are created."""
    device: str = 'auto'  # 'auto', 'cpu' or 'gpu'
    dtype: str = 'float32'
    print_options: PrintOptions = field(default_factory=PrintOptions)


class Config:
    """
    Global configuration manager for ndtorch.

    Example config.yaml:
    ```
    device: cpu
    dtype: float32
    print:
      max_size: 200
      max_rows: 5
    ```
    """

    VALID_DEVICES = ('auto', 'cpu', 'gpu')

    def __init__(self):
        self.engine = EngineConfig()
        self._config_file: Optional[str] = None

    def load(self, config_file: str):
        """Load configuration from YAML file."""
        self._config_file = config_file

        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Config file not found: {config_file}")

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            return

        self.engine = self._parse_engine_config(raw_config)

    def _parse_engine_config(self, raw: Dict[str, Any]) -> EngineConfig:
        """Parse the top-level mapping of a config file."""
        device = raw.get('device', 'auto')
        if device not in self.VALID_DEVICES:
            raise ValueError(f"Invalid device '{device}', expected one of {self.VALID_DEVICES}")

        print_dict = raw.get('print', None) or {}
        defaults = PrintOptions()
        print_options = PrintOptions(
            max_size=int(print_dict.get('max_size', defaults.max_size)),
            max_depth=int(print_dict.get('max_depth', defaults.max_depth)),
            max_rows=int(print_dict.get('max_rows', defaults.max_rows)),
            max_columns=int(print_dict.get('max_columns', defaults.max_columns)),
        )

        return EngineConfig(
            device=device,
            dtype=raw.get('dtype', 'float32'),
            print_options=print_options,
        )

    @property
    def print_options(self) -> PrintOptions:
        return self.engine.print_options

    def load_from_env(self, env_var: str = 'NDTORCH_CONFIG'):
        """
        Load configuration from environment variable.

        Args:
            env_var: Environment variable name (default: NDTORCH_CONFIG)
        """
        config_path = os.environ.get(env_var, None)
        if config_path:
            from ndtorch.debug import verbose_print
            verbose_print(f"ndtorch: Loading config from {config_path}")
            self.load(config_path)

    def clear(self):
        """Reset to defaults."""
        self.engine = EngineConfig()
        self._config_file = None


# Global config instance
_config = Config()


def load_config(config_file: str):
    """Load configuration from YAML file."""
    _config.load(config_file)


def get_config() -> Config:
    """Get the global config instance."""
    return _config
