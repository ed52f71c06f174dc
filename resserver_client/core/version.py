from importlib.metadata import PackageNotFoundError, version


def get_app_version() -> str:
    """Get the version from the installed package metadata."""
    try:
        return version("resserver-client")
    except PackageNotFoundError:
        return "unknown"


def get_user_agent() -> str:
    return f"resserver-client/{get_app_version()}"
