"""Version of the installed sobject distribution."""

from importlib.metadata import PackageNotFoundError, version

DISTRIBUTION = "sobject"


def get_version() -> str:
    try:
        return version(DISTRIBUTION)
    except PackageNotFoundError:
        # Source tree on sys.path without an install
        return "0.0.0+unknown"
