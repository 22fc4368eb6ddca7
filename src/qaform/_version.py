"""Version lookup for qaform."""

from importlib.metadata import PackageNotFoundError, version

UNKNOWN_VERSION = "0.0.0+unknown"


def get_version() -> str:
    """Version of the installed ``qaform`` distribution."""
    try:
        return version("qaform")
    except PackageNotFoundError:
        # Imported from a source tree that was never installed
        return UNKNOWN_VERSION
