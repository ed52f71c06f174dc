"""
HTTP transport to the resource server.

Every document is sent as a single POST with an XML body. Failures are never
retried, they are reported and raised as :class:`TransportError`.
"""

import logging
from urllib.parse import urljoin, urlparse

import aiohttp
from aiohttp import BasicAuth, ClientSession

from .. import config
from .exceptions import InsecureUrlError, handle_exception
from .models import QueryDocument, UploadOutcome
from .parser import ResponseSet, parse_upload_response
from .serializer import serialize_document
from .version import get_user_agent

log = logging.getLogger(__name__)


def normalize_url(url: str) -> str:
    """Make sure the url uses https and ends with a /"""
    if not url or urlparse(url).scheme.lower() != "https":
        raise InsecureUrlError(url)
    return url if url.endswith("/") else url + "/"


class Transport:
    """Sends XML documents to a resource server."""

    def __init__(
        self,
        url: str,
        username: str | None = None,
        password: str | None = None,
        session: ClientSession | None = None,
    ):
        self.url = normalize_url(url)
        self.auth = BasicAuth(username, password or "") if username else None
        self._session = session
        self._own_session = session is None

    @property
    def session(self) -> ClientSession:
        # created lazily, a ClientSession must be created inside the running loop
        if self._session is None:
            self._session = ClientSession()
        return self._session

    async def close(self) -> None:
        if self._own_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def post_xml(self, path: str, data: str) -> bytes:
        """POST an XML document and return the raw body of a successful response."""
        url = urljoin(self.url, path)
        if config.LOG_QUERIES:
            log.debug("POST %s\n%s", url, data)
        headers = {"Content-Type": config.CONTENT_TYPE, "User-Agent": get_user_agent()}
        try:
            async with self.session.post(
                url, data=data.encode("utf-8"), headers=headers, auth=self.auth
            ) as res:
                body = await res.read()
                if not res.ok:
                    handle_exception(
                        res.status, res.reason or "HTTP error", body.decode(errors="replace"), url
                    )
                return body
        except aiohttp.ClientError as e:
            handle_exception(0, "Network error", str(e), url)

    async def send_queries(self, document: QueryDocument) -> ResponseSet:
        body = await self.post_xml(config.QUERY_PATH, serialize_document(document))
        return ResponseSet.from_xml(body)

    async def send_upload(self, data: str) -> list[UploadOutcome]:
        body = await self.post_xml(config.UPLOAD_PATH, data)
        return parse_upload_response(body)
