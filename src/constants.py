"""Constants used in the project."""

from enum import Enum


class RepositoryKinds(Enum):
    """Repository backends supported by the resolver.

    Args:
        Enum (string): Repository backends supported by the resolver.
    """

    LOCAL = "local"
    REMOTE = "remote"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    DEFAULT_REPOSITORY_URL = "https://devicemodels.azure.com"
    ENV_REPOSITORY_URL = "MODELS_REPOSITORY_URL"
    REMOTE_SCHEMES = ("http", "https")
    LOCAL_SCHEMES = ("", "file")

    DTMI_SCHEME = "dtmi"
    MODEL_SUFFIX = ".json"
    EXPANDED_MODEL_SUFFIX = ".expanded.json"

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    USER_AGENT = "dtmi-resolver/1.0"
    MAX_WORKERS = 8  # Concurrent fetches per resolve call
