"""Validation of client-supplied names."""

import re

VALID_PATTERN = "^[%|a-zA-Z0-9_-]+$"
CHARACTER_MAX_LENGTH = 255

_PATTERN = re.compile(r"[%|a-zA-Z0-9_-]+")


class ValidationError(ValueError):
    """Raised when a name fails validation."""


def validate_group(group: str) -> None:
    """Raise :class:`ValidationError` unless ``group`` is a legal group name."""
    if group == "":
        raise ValidationError("consumerGroup is empty")
    if len(group.encode("utf-8")) > CHARACTER_MAX_LENGTH:
        raise ValidationError("the specified group is longer than group max length 255")
    if not _PATTERN.fullmatch(group):
        raise ValidationError(
            f"the specified group[{group}] contains illegal characters, "
            f"allowing only {VALID_PATTERN}"
        )