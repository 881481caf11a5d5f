"""
Tests for functions in kconverge.utils
"""

# Third Party
import pytest

# Local
from kconverge import utils

## merge_configs ###############################################################


def test_merge_configs_nested():
    """Make sure nested dicts are merged and leaves overridden"""
    base = {"a": {"b": 1, "c": 2}, "d": [1]}
    merged = utils.merge_configs(base, {"a": {"c": 3, "e": 4}, "d": [2]})
    assert merged is base
    assert merged == {"a": {"b": 1, "c": 3, "e": 4}, "d": [2]}


def test_merge_configs_none_removes():
    """Make sure a None override removes the key like a merge patch"""
    assert utils.merge_configs({"a": {"b": 1, "c": 2}}, {"a": {"b": None}}) == {
        "a": {"c": 2}
    }


def test_merge_configs_dict_replaces_scalar():
    assert utils.merge_configs({"a": 1}, {"a": {"b": 2}}) == {"a": {"b": 2}}


## nested_get ##################################################################


def test_nested_get():
    dct = {"spec": {"template": {"metadata": {"labels": {"app": "a"}}}}}
    assert utils.nested_get(dct, "spec.template.metadata.labels") == {"app": "a"}
    assert utils.nested_get(dct, "spec.missing.labels") is None
    assert utils.nested_get(dct, "spec.missing", "dflt") == "dflt"
    assert utils.nested_get({"spec": None}, "spec.selector") is None


def test_nested_get_not_dict():
    with pytest.raises(TypeError):
        utils.nested_get({"spec": "scalar"}, "spec.selector")


## prune_empty #################################################################


def test_prune_empty():
    """Make sure empty and None values are dropped at every level"""
    assert utils.prune_empty(
        {
            "metadata": {"labels": {}, "annotations": None, "name": "foo"},
            "data": {"key": ""},
            "list": [{"a": {}}, 1],
            "empty": [],
        }
    ) == {
        "metadata": {"name": "foo"},
        "data": {"key": ""},
        "list": [{}, 1],
    }
