"""
Load the library config from the yaml files next to this module, validate it,
and configure alog from the logging keys
"""

# Standard
import os

# First Party
import aconfig
import alog

# Local
from ..exceptions import ConfigError
from ..log_format import KConvergeJsonFormatter
from .validation import get_invalid_params

_CONFIG_DIR = os.path.dirname(__file__)


def _load_yaml(file_name: str, override_env_vars: bool) -> aconfig.Config:
    return aconfig.Config.from_yaml(
        os.path.join(_CONFIG_DIR, file_name),
        override_env_vars=override_env_vars,
    )


def configure_logging(config: aconfig.Config):
    """Apply the log_* keys of a loaded config to alog"""
    alog.configure(
        default_level=config.log_level,
        filters=config.log_filters,
        formatter=KConvergeJsonFormatter() if config.log_json else "pretty",
        thread_id=config.log_thread_id,
    )


# Env vars (e.g. CONFLICT_RETRIES) override the shipped defaults. The
# validation rules themselves are never overridden.
library_config = _load_yaml("config.yaml", override_env_vars=True)
validation_config = _load_yaml("config_validation.yaml", override_env_vars=False)

invalid_params = get_invalid_params(library_config, validation_config)
if invalid_params:
    raise ConfigError(f"Library configuration found invalid values: {invalid_params}")

configure_logging(library_config)
