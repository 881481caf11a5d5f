"""
This module holds the patch representations sent to the cluster store.

JSON patch (rfc 6902) operations are modeled as a closed set of frozen
dataclasses and serialized through a single encoder so that no code builds
untyped operation dicts by hand.
"""

# Standard
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, List, Sequence, Union
import json


class PatchType(Enum):
    """The content types the API server accepts for PATCH requests"""

    JSON = "application/json-patch+json"
    MERGE = "application/merge-patch+json"
    STRATEGIC_MERGE = "application/strategic-merge-patch+json"


## JSON Patch 6902 #############################################################


@dataclass(frozen=True)
class AddOperation:
    """Add value at path. A trailing "-" appends to a list."""

    OP: ClassVar[str] = "add"
    path: str
    value: Any

    def to_dict(self) -> dict:
        return {"op": self.OP, "path": self.path, "value": self.value}


@dataclass(frozen=True)
class TestOperation:
    """Fail the whole patch unless the value at path equals value"""

    __test__ = False  # Not a pytest test class

    OP: ClassVar[str] = "test"
    path: str
    value: Any

    def to_dict(self) -> dict:
        return {"op": self.OP, "path": self.path, "value": self.value}


@dataclass(frozen=True)
class RemoveOperation:
    """Remove the value at path"""

    OP: ClassVar[str] = "remove"
    path: str

    def to_dict(self) -> dict:
        return {"op": self.OP, "path": self.path}


PatchOperation = Union[AddOperation, TestOperation, RemoveOperation]
_OPERATION_TYPES = (AddOperation, TestOperation, RemoveOperation)


def encode_json_patch(operations: Sequence[PatchOperation]) -> List[dict]:
    """Encode a sequence of operations into the JSON patch wire format

    Args:
        operations:  Sequence[PatchOperation]
            The ordered operations of the patch

    Returns:
        patch:  List[dict]
            The list of operation dicts in order
    """
    encoded = []
    for operation in operations:
        if not isinstance(operation, _OPERATION_TYPES):
            raise TypeError(f"Unsupported patch operation: {operation!r}")
        encoded.append(operation.to_dict())
    return encoded


def dumps_json_patch(operations: Sequence[PatchOperation]) -> str:
    """Serialize the operations to the JSON request body"""
    return json.dumps(encode_json_patch(operations))


## Strategic Merge Patch #######################################################


def labels_patch(labels: dict) -> dict:
    """Patch body that replaces only metadata.labels"""
    return {"metadata": {"labels": dict(labels or {})}}
