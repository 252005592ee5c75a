"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    BAD_REQUEST = 4


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    Values may be overridden at startup by cli_config.apply_config().
    """

    REGISTRY_URL_PACKAGIST = "https://repo.packagist.org/p2/"
    RAW_GITHUB_BASE = "https://raw.githubusercontent.com"
    CHANGELOG_FILE = "CHANGELOG.md"
    CORE_PACKAGE = "craftcms/cms"
    RENEWAL_CURRENCY = "USD"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests

    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_CACHE_TTL_SEC = 300
    METADATA_CACHE_TTL_SEC = 600

    # Plugin fan-out
    MAX_CONCURRENCY = 8
    RESOLUTION_TIMEOUT_SEC = 60

    # Package name echo is only understood by cores at or above this version
    PACKAGE_NAME_MIN_CORE_VERSION = "3.1.21"
    PACKAGE_NAME_EXCLUDED_CORE_VERSIONS = ["3.2.0-alpha.1"]

    ENV_LOG_LEVEL = "UPGATE_LOG_LEVEL"
    ENV_REGISTRY_URL = "UPGATE_REGISTRY_URL"
    ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
    USER_AGENT = "upgate/1.0"
