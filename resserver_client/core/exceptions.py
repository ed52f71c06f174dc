"""
Exception handling for the core module.

This module contains the error kinds raised by the client and the
error reporting helper used by the transport.
"""

import logging

import sentry_sdk

log = logging.getLogger(__name__)


class ResServerError(Exception):
    """Base class of every error raised by this library"""


class InsecureUrlError(ResServerError, ValueError):
    """The resource server url does not use https"""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Refusing to connect to '{url}': only https urls are allowed")


class TransportError(ResServerError):
    """Network or HTTP failure, passed through as-is to the caller"""

    def __init__(self, message: str, status_code: int = 0) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(f"[{status_code}] {message}")


class ResponseParseError(ResServerError):
    """The server answered with something that is not well-formed XML"""


class UploadStateError(ResServerError):
    """An upload batch was modified or sent after sending began"""


class UploadReadError(ResServerError):
    """Reading the file of an upload item failed; the batch was not sent"""

    def __init__(self, name: str, cause: BaseException) -> None:
        self.name = name
        self.cause = cause
        super().__init__(f"Could not read file for upload item '{name}': {cause}")


class PerItemUploadError(ResServerError):
    """A single item of an upload was refused by the server"""

    def __init__(self, name: str | None, status: int | None, message: str | None) -> None:
        self.name = name
        self.status = status
        self.message = message
        super().__init__(f"Upload of '{name}' failed with status {status}: {message}")


def handle_exception(status: int, title: str, detail: str, url: str | None = None):
    """Report a transport failure to Sentry (when configured) and raise it."""
    e = TransportError(f"{title}: {detail}" if detail else title, status)
    log.warning("Request to %s failed: %s", url, e)
    if sentry_sdk.get_client().is_active():
        with sentry_sdk.new_scope() as scope:
            sentry_tags: dict = {
                "status": status,
                "title": title,
            }
            if url:
                sentry_tags["url"] = url
            scope.set_tags(sentry_tags)
            scope.set_extra("detail", detail)
            sentry_sdk.capture_exception(e)
    raise e
