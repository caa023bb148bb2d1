from .loader import default_config, default_output_home, load_config, read_config
from .types import ConfigError, RunConfig, UnsupportedConfigFormatError

__all__ = [
    "load_config",
    "read_config",
    "default_config",
    "default_output_home",
    "RunConfig",
    "ConfigError",
    "UnsupportedConfigFormatError",
]
