"""Package version lookup (single source of truth: pyproject.toml)."""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_package_version

PACKAGE_NAME = "min-n8n-mcp"


def get_version() -> str:
    """Get package version from installed metadata."""
    try:
        return get_package_version(PACKAGE_NAME)
    except PackageNotFoundError:
        return "0.1.0"  # Fallback for dev without install


__version__ = get_version()
