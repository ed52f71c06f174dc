"""
Entry point of the library: a connection to a resource server.

    async with ResServer("https://res.example.com", username="me", password="secret") as res:
        responses = await res.queries().add_query().add_property("type", "video").complete().send()
        print(responses.very_first_global_at())
"""

from aiohttp import ClientSession

from resserver_client import config
from resserver_client.core.models import QueryDocument
from resserver_client.core.parser import ResponseSet
from resserver_client.core.query_builder import QueryDocumentBuilder
from resserver_client.core.transport import Transport
from resserver_client.core.upload import UploadBatch


class ResServer:
    """A resource server, identified by its https url.

    Url and credentials default to the `RESSERVER_*` settings. A non-https url
    raises `InsecureUrlError` right away, before any network activity.
    """

    def __init__(
        self,
        url: str | None = None,
        username: str | None = None,
        password: str | None = None,
        session: ClientSession | None = None,
    ):
        self.transport = Transport(
            url if url is not None else config.RESSERVER_URL,
            username=username if username is not None else config.RESSERVER_USERNAME or None,
            password=password if password is not None else config.RESSERVER_PASSWORD or None,
            session=session,
        )

    @property
    def url(self) -> str:
        return self.transport.url

    def queries(self) -> QueryDocumentBuilder:
        """A new batch of queries, sent with `QueryDocumentBuilder.send`."""
        return QueryDocumentBuilder(self.transport)

    def upload(self, reader=None) -> UploadBatch:
        """A new batch of files, sent with `UploadBatch.send`."""
        if reader is None:
            return UploadBatch(self.transport)
        return UploadBatch(self.transport, reader=reader)

    async def send(self, document: QueryDocument) -> ResponseSet:
        return await self.transport.send_queries(document)

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> "ResServer":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
