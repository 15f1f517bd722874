from importlib import metadata as importlib_metadata

DISTRIBUTION_NAME = "helpdesk-conversations"
SERVICE_NAME = "helpdesk"


def get_service_version(distribution: str = DISTRIBUTION_NAME) -> str:
    """
    Installed version of the distribution, or "unknown" when running from a
    source tree that was never installed.
    """
    try:
        return importlib_metadata.version(distribution)
    except importlib_metadata.PackageNotFoundError:
        return "unknown"
