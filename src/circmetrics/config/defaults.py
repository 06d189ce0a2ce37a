"""Defaults derived from the running host and application name."""

import socket


CHECK_DISPLAY_SUFFIX = "/circmetrics"


def default_instance_id(app: str) -> str:
    """Identify this process for check search and as the check target.

    Args:
        app: Application name from the API config

    Returns:
        Instance id of the form "hostname:app"
    """
    return f"{socket.gethostname()}:{app}"


def default_search_tag(app: str) -> str:
    return f"service:{app}"


def default_display_name(instance_id: str) -> str:
    return f"{instance_id} {CHECK_DISPLAY_SUFFIX}"
