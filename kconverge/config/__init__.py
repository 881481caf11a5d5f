"""
Library config for the reconcile toolkit. Keys are read as attributes of this
module, e.g. `config.conflict_retries` or `config.client.burst`.
"""

# Local
from .config import library_config


def __getattr__(name):
    if name in library_config or hasattr({}, name):
        return getattr(library_config, name)
    raise AttributeError(f"No such config attribute {name}")


__all__ = list(library_config.keys())
