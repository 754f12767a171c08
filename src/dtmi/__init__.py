"""DTMI grammar and path convention helpers."""

from .conventions import (
    DTMI_PATTERN,
    dtmi_to_path,
    get_model_uri,
    is_valid_dtmi,
    local_root,
    validate_dtmi,
)

__all__ = [
    "DTMI_PATTERN",
    "dtmi_to_path",
    "get_model_uri",
    "is_valid_dtmi",
    "local_root",
    "validate_dtmi",
]
