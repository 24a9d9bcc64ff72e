"""Top-level package for the Notion leave-request sync."""

from importlib import metadata


def get_version() -> str:
    """Return the installed package version."""
    try:
        return metadata.version("notion-leave-sync")
    except metadata.PackageNotFoundError:
        return "0.1.0"


__all__ = ["get_version"]
