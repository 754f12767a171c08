"""DTMI grammar and repository path convention.

Maps a Digital Twins Model Identifier onto the relative path used by models
repositories, e.g. ``dtmi:com:example:Thermostat;1`` ->
``dtmi/com/example/thermostat-1.json``.
"""
from __future__ import annotations

import re
import urllib.parse
from pathlib import Path
from urllib.request import url2pathname

from constants import Constants
from errors import InvalidDtmiFormatError

# Segments start with a letter and may not end with an underscore; versions
# have no leading zero and at most nine digits.
_SEGMENT = r"[A-Za-z](?:[A-Za-z0-9_]*[A-Za-z0-9])?"
DTMI_PATTERN = re.compile(
    rf"^{Constants.DTMI_SCHEME}:{_SEGMENT}(?::{_SEGMENT})*;[1-9][0-9]{{0,8}}$"
)


def is_valid_dtmi(dtmi: str) -> bool:
    """Return True if ``dtmi`` follows the DTMI grammar."""
    return isinstance(dtmi, str) and DTMI_PATTERN.match(dtmi) is not None


def validate_dtmi(dtmi: str) -> None:
    """Raise InvalidDtmiFormatError unless ``dtmi`` follows the DTMI grammar."""
    if not is_valid_dtmi(dtmi):
        raise InvalidDtmiFormatError(str(dtmi))


def dtmi_to_path(dtmi: str, expanded: bool = False) -> str:
    """Convert a DTMI into its repository-relative path.

    Args:
        dtmi: Identifier to convert.
        expanded: Target the pre-expanded document instead of the model itself.

    Returns:
        str: Lower-cased relative path, ``/`` separated.

    Raises:
        InvalidDtmiFormatError: If ``dtmi`` is not a valid identifier.
    """
    validate_dtmi(dtmi)
    suffix = Constants.EXPANDED_MODEL_SUFFIX if expanded else Constants.MODEL_SUFFIX
    return dtmi.lower().replace(":", "/").replace(";", "-") + suffix


def get_model_uri(dtmi: str, repository: str, expanded: bool = False) -> str:
    """Return the fully qualified location of a model within a repository.

    Remote repositories yield a URL; local ones yield a filesystem path.
    ``file://`` URIs are treated as local directories.
    """
    relative = dtmi_to_path(dtmi, expanded=expanded)
    scheme = urllib.parse.urlsplit(repository).scheme.lower()
    if scheme in Constants.REMOTE_SCHEMES:
        return f"{repository.rstrip('/')}/{relative}"
    return str(Path(local_root(repository)) / relative)


def local_root(repository: str) -> str:
    """Normalize a local repository location (plain path or file:// URI)."""
    parts = urllib.parse.urlsplit(repository)
    if parts.scheme.lower() == "file":
        return url2pathname(parts.path)
    return repository
