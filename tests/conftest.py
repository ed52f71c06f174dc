import asyncio
import base64

import pytest
import pytest_asyncio
from aioresponses import aioresponses

from resserver_client import config
from resserver_client.client import ResServer
from resserver_client.core.models import UploadOutcome

RESSERVER_URL = "https://res.example.com/api"
QUERY_URL = f"{RESSERVER_URL}/query"
UPLOAD_URL = f"{RESSERVER_URL}/upload"

RESPONSE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<responses>
  <response ref="q-42" expired="false" start="1" count="2" total="17">
    <resource about="urn:res:1">
      <globalAt>https://cdn.example.com/1.mp4</globalAt>
      <globalAt>https://mirror.example.com/1.mp4</globalAt>
      <prop name="type" val="video">
        <descriptor name="codec" val="h264"/>
        <descriptor name="unit" val="s"/>
      </prop>
      <prop name="title" val="Intro"/>
    </resource>
    <resource about="urn:res:2">
      <globalAt>https://cdn.example.com/2.mp4</globalAt>
    </resource>
  </response>
  <response expired="true"/>
</responses>
"""

UPLOAD_RESPONSE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<upload>
  <resource status="201" name="a.txt"><message>created</message></resource>
  <resource status="409" name="b.txt"><message>already exists</message></resource>
</upload>
"""


@pytest.fixture(autouse=True)
def setup():
    config.override(
        RESSERVER_URL=RESSERVER_URL,
        RESSERVER_USERNAME="",
        RESSERVER_PASSWORD="",
        QUERY_PATH="query",
        UPLOAD_PATH="upload",
        CONTENT_TYPE="text/xml",
        LOG_QUERIES=True,
    )


@pytest.fixture
def rmock():
    with aioresponses() as m:
        yield m


@pytest_asyncio.fixture
async def res():
    async with ResServer(RESSERVER_URL, username="user", password="secret") as res:
        yield res


class FakeTransport:
    """Records the upload documents instead of sending them"""

    def __init__(self, outcomes: list[UploadOutcome] | None = None, error: Exception | None = None):
        self.outcomes = outcomes or []
        self.error = error
        self.sent = []

    async def send_upload(self, data: str) -> list[UploadOutcome]:
        self.sent.append(data)
        if self.error:
            raise self.error
        return self.outcomes


class GatedReader:
    """File reader whose reads only complete when released by the test"""

    def __init__(self):
        self.events: dict[str, asyncio.Event] = {}
        self.failures: dict[str, Exception] = {}

    def _event(self, name: str) -> asyncio.Event:
        return self.events.setdefault(name, asyncio.Event())

    async def __call__(self, payload) -> str:
        await self._event(payload.filename).wait()
        if payload.filename in self.failures:
            raise self.failures[payload.filename]
        encoded = base64.b64encode(payload.read_bytes()).decode()
        return f"data:{payload.media_type};charset=utf-8;base64,{encoded}"

    def release(self, name: str) -> None:
        self._event(name).set()

    def fail(self, name: str, error: Exception) -> None:
        self.failures[name] = error
        self.release(name)


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def gated_reader():
    return GatedReader()
