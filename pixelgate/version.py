"""Package version."""

VERSION = "3.6.0"


def version() -> str:
    """Return the version string."""
    return VERSION