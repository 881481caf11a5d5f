"""
The ResourceNamer turns arbitrary strings into valid DNS-1123 labels which can
be used as names of Kubernetes resources.
"""

# Standard
from typing import List
import re

# Third Party
import xxhash

# First Party
import alog

# Local
from .constants import DNS1123_LABEL_MAX_LENGTH, UNIQUE_SUFFIX_LENGTH
from .exceptions import ValidationError

log = alog.use_channel("NAMER")

_INVALID_DNS1123_CHARACTERS = re.compile(r"[^-a-z0-9]+")
_DNS1123_LABEL = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
_DNS1123_LABEL_ERROR_MSG = (
    "a lowercase RFC 1123 label must consist of lower case alphanumeric "
    "characters or '-', and must start and end with an alphanumeric character"
)


def validate_dns1123_label(value: str) -> List[str]:
    """Return the list of reasons why value is not a DNS-1123 label. An empty
    list means the value is valid.
    """
    errors = []
    if len(value) > DNS1123_LABEL_MAX_LENGTH:
        errors.append(f"must be no more than {DNS1123_LABEL_MAX_LENGTH} characters")
    if not _DNS1123_LABEL.match(value):
        errors.append(_DNS1123_LABEL_ERROR_MSG)
    return errors


class ResourceNamer:
    """Generates valid names for Kubernetes resources, optionally prefixing
    them with a fixed string followed by a hyphen
    """

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def dns1123_label(self, name: str) -> str:
        """Sanitize name into a DNS-1123 label, truncating it to 63 characters

        Raises:
            ValidationError: if nothing valid remains after sanitization
        """
        label = self._sanitized_label(name)[:DNS1123_LABEL_MAX_LENGTH]
        self._validate(name, label)
        return label

    def unique_dns1123_label(self, name: str) -> str:
        """Sanitize name into a DNS-1123 label carrying a hash suffix.

        The hash is computed over the original name, so two long names sharing
        the same first 54 characters still yield different labels:

        * long-63-chars-abc -> first-54-chars-deadbeef
        * long-63-chars-XYZ -> first-54-chars-d3adb33f

        Raises:
            ValidationError: if the result is not a valid label
        """
        digest = xxhash.xxh64(name.encode("utf-8")).intdigest()
        suffix = f"-{digest:x}"[:UNIQUE_SUFFIX_LENGTH]

        label = self._sanitized_label(name)
        label = label[: DNS1123_LABEL_MAX_LENGTH - UNIQUE_SUFFIX_LENGTH] + suffix
        self._validate(name, label)
        return label

    ## Implementation ##########################################################

    def _sanitized_label(self, name: str) -> str:
        if self.prefix:
            name = self.prefix.rstrip("-") + "-" + name
        name = name.lower()
        name = _INVALID_DNS1123_CHARACTERS.sub("-", name)
        return name.strip("-")

    @staticmethod
    def _validate(name: str, label: str):
        errors = validate_dns1123_label(label)
        if errors:
            log.debug2("Invalid label [%s] generated from [%s]", label, name)
            raise ValidationError(
                f"cannot build a DNS-1123 label from {name!r}: {', '.join(errors)}"
            )
