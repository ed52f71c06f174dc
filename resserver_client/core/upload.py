"""
Upload of a batch of files in a single request.

Every file is read asynchronously as a base64 ``data:`` url. The combined
``<upload>`` document is only assembled, and sent, once every read has
completed; item fragments keep the order in which the items were added,
whatever the order in which their reads complete.

If a single read fails the whole batch fails and nothing is sent.
"""

import asyncio
import base64
import logging
import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable, Iterable, Iterator

from .exceptions import PerItemUploadError, UploadReadError, UploadStateError
from .models import Property, UploadOutcome, as_descriptors
from .serializer import append_upload_data, to_xml_string, upload_fragment, upload_to_xml

if TYPE_CHECKING:
    from .transport import Transport

log = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"


class FilePayload:
    """A byte source bound to an upload item, with a declared or sniffed media type."""

    def __init__(
        self, source: str | Path | bytes, media_type: str | None = None, filename: str | None = None
    ):
        self.source = source
        if filename is None and not isinstance(source, bytes):
            filename = Path(source).name
        self.filename = filename
        self.media_type = media_type or self.guess_media_type(filename)

    @staticmethod
    def guess_media_type(filename: str | None) -> str:
        if not filename:
            return DEFAULT_MEDIA_TYPE
        return mimetypes.guess_type(filename)[0] or DEFAULT_MEDIA_TYPE

    def read_bytes(self) -> bytes:
        if isinstance(self.source, bytes):
            return self.source
        return Path(self.source).read_bytes()


async def read_as_data_url(payload: FilePayload) -> str:
    content = await asyncio.to_thread(payload.read_bytes)
    return f"data:{payload.media_type};base64,{base64.b64encode(content).decode('ascii')}"


def strip_data_url(data_url: str) -> str:
    """Remove the ``data:<media type>[;charset=..];base64,`` header of a data url"""
    if data_url.startswith("data:"):
        return data_url.split(",", 1)[1] if "," in data_url else ""
    return data_url


class UploadState(Enum):
    COLLECTING = "collecting"
    READING = "reading"
    SENDING = "sending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class UploadItem:
    name: str
    payload: FilePayload
    inherit: bool = False
    props: list[Property] = field(default_factory=list)


@dataclass
class UploadResult:
    """Outcomes reported by the server, one per uploaded item."""

    outcomes: list[UploadOutcome]

    @property
    def errors(self) -> list[PerItemUploadError]:
        return [
            PerItemUploadError(outcome.name, outcome.status, outcome.message)
            for outcome in self.outcomes
            if not outcome.ok
        ]

    @property
    def ok(self) -> bool:
        return not self.errors

    def __iter__(self) -> Iterator[UploadOutcome]:
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)


class UploadItemBuilder:
    """Adds properties to an item of a batch."""

    def __init__(self, batch: "UploadBatch", index: int):
        self._batch = batch
        self._index = index

    @property
    def item(self) -> UploadItem:
        return self._batch.items[self._index]

    def add_property(
        self, name: str, value: str | None, descriptors: Iterable | None = None
    ) -> "UploadItemBuilder":
        self._batch.check_collecting()
        if not name:
            raise ValueError("a property needs a name")
        self.item.props.append(Property(name, value, as_descriptors(descriptors)))
        return self

    def complete(self) -> "UploadBatch":
        return self._batch


class UploadBatch:
    """Collects upload items, then reads them all and sends them exactly once."""

    def __init__(
        self,
        transport: "Transport",
        reader: Callable[[FilePayload], Awaitable[str]] = read_as_data_url,
    ):
        self.transport = transport
        self.reader = reader
        self.items: list[UploadItem] = []
        self.state = UploadState.COLLECTING
        self._completed = 0
        self._fragments = None
        self._future: asyncio.Future | None = None
        self._read_tasks: list[asyncio.Task] = []
        self._send_task: asyncio.Task | None = None

    def check_collecting(self) -> None:
        if self.state is not UploadState.COLLECTING:
            raise UploadStateError(f"items cannot be changed, batch is already {self.state.value}")

    def add_item(
        self,
        name: str,
        payload: FilePayload | str | Path | bytes,
        properties: Iterable[Property] | None = None,
        inherit: bool = False,
    ) -> UploadItemBuilder:
        """Add a file to the batch; `inherit` keeps the properties already known to the server."""
        self.check_collecting()
        properties = list(properties or [])
        if any(not prop.name for prop in properties):
            raise ValueError("a property needs a name")
        if not isinstance(payload, FilePayload):
            payload = FilePayload(payload, filename=name)
        self.items.append(UploadItem(name, payload, inherit, properties))
        return UploadItemBuilder(self, len(self.items) - 1)

    def send(self) -> asyncio.Future:
        """Start reading every file and return a future resolved with an `UploadResult`.

        Must be called from a running event loop.
        """
        self.check_collecting()
        loop = asyncio.get_running_loop()
        # built first, the batch stays editable if a fragment is invalid
        fragments = [upload_fragment(item.name, item.props, item.inherit) for item in self.items]
        self.state = UploadState.READING
        self._future = loop.create_future()
        self._fragments = fragments
        self._completed = 0
        log.debug("Reading %d file(s) for upload", len(self.items))
        if not self.items:
            self._fire()
            return self._future
        for index, item in enumerate(self.items):
            task = loop.create_task(self.reader(item.payload))
            task.add_done_callback(partial(self._on_read, index))
            self._read_tasks.append(task)
        return self._future

    def _on_read(self, index: int, task: asyncio.Task) -> None:
        name = self.items[index].name
        error = asyncio.CancelledError() if task.cancelled() else task.exception()
        if self.state is not UploadState.READING:
            # the batch already failed
            return
        if error is not None:
            self._fail(UploadReadError(name, error))
            return
        try:
            append_upload_data(self._fragments[index], strip_data_url(task.result()))
        except Exception as e:
            self._fail(UploadReadError(name, e))
            return
        # must stay the last action of the handler
        self._completed += 1
        if self._completed == len(self.items):
            self._fire()

    def _fire(self) -> None:
        self.state = UploadState.SENDING
        self._completed = 0
        root = upload_to_xml(self._fragments)
        data = to_xml_string(root)
        # release the element tree, it holds every file
        del root
        self._fragments = None
        self._read_tasks = []
        log.info("Uploading %d item(s), %d bytes", len(self.items), len(data))
        self._send_task = asyncio.get_running_loop().create_task(self._transmit(data))

    async def _transmit(self, data: str) -> None:
        try:
            outcomes = await self.transport.send_upload(data)
        except Exception as e:
            self._fail(e)
            return
        self.state = UploadState.COMPLETED
        if not self._future.done():
            self._future.set_result(UploadResult(outcomes))

    def _fail(self, error: BaseException) -> None:
        log.warning("Upload failed: %s", error)
        self.state = UploadState.FAILED
        self._fragments = None
        for task in self._read_tasks:
            if not task.done():
                task.cancel()
        if not self._future.done():
            self._future.set_exception(error)
