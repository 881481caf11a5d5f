"""
Common dict utilities shared across the library
"""

# Standard
from typing import Any

# Local
from . import constants

# Sentinel for missing dict values
__MISSING__ = "__MISSING__"


def merge_configs(base, overrides) -> dict:
    """Helper to perform a deep merge of the overrides into the base. The merge
    is done in place, but the resulting dict is also returned for convenience.

    If both the base and overrides have a key and both values are dicts, the
    merge recurses. A None override removes the key (JSON merge patch
    semantics). Otherwise the override value replaces the base value.

    Args:
        base:  dict
            The base dict that will be updated with the overrides
        overrides:  dict
            The override dict

    Returns:
        merged:  dict
            The merged results of overrides merged onto base
    """
    for key, value in overrides.items():
        if value is None:
            base.pop(key, None)
        elif (
            key not in base
            or not isinstance(base[key], dict)
            or not isinstance(value, dict)
        ):
            base[key] = value
        else:
            base[key] = merge_configs(base[key], value)

    return base


def nested_get(dct: dict, key: str, dflt=None) -> Any:
    """Helper to get values from a dict using 'foo.bar' key notation

    Args:
        dct:  dict
            The dict to read from
        key:  str
            Key that may contain '.' notation indicating dict nesting

    Returns:
        val:  Any
            Whatever is found at the given key or dflt if the key is not found.
            This includes missing intermediate dicts.
    """
    parts = key.split(constants.NESTED_DICT_DELIM)
    for i, part in enumerate(parts[:-1]):
        dct = dct.get(part, __MISSING__)
        if dct is __MISSING__ or dct is None:
            return dflt
        if not isinstance(dct, dict):
            raise TypeError(
                "Intermediate key {} is not a dict".format(  # pylint: disable=consider-using-f-string
                    constants.NESTED_DICT_DELIM.join(parts[: i + 1])
                )
            )
    return dct.get(parts[-1], dflt)


def prune_empty(value: Any) -> Any:
    """Recursively drop None values and empty dicts/lists so that an absent
    field and an empty one compare equal
    """
    if isinstance(value, dict):
        pruned = {}
        for key, val in value.items():
            val = prune_empty(val)
            if val is None or val == {} or val == []:
                continue
            pruned[key] = val
        return pruned
    if isinstance(value, list):
        return [prune_empty(item) for item in value]
    return value
