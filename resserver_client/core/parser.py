"""
Parsing of the XML documents received from the resource server.

Incoming documents are parsed with defusedxml. Paging counters absent from a
``<response>`` are kept as ``None`` ("not reported by the server"), which is not
the same as ``0``.
"""

from typing import Generic, Iterator, TypeVar
from xml.etree.ElementTree import Element

from defusedxml.ElementTree import ParseError, fromstring

from .exceptions import ResponseParseError
from .models import (
    ContextProperty,
    Property,
    Query,
    QueryDocument,
    Ref,
    ResourceRecord,
    UploadOutcome,
)

T = TypeVar("T")


class Cursor(Generic[T]):
    """Forward-only cursor over a list, rewindable with `reset`."""

    def __init__(self, items: list[T]):
        self._items = items
        self._next_index = 0

    def has_next(self) -> bool:
        return self._next_index < len(self._items)

    def next(self) -> T:
        if not self.has_next():
            raise IndexError("cursor is exhausted, call reset() to start over")
        item = self._items[self._next_index]
        self._next_index += 1
        return item

    def reset(self) -> "Cursor[T]":
        self._next_index = 0
        return self

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        # plain iteration leaves the cursor untouched
        return iter(self._items)


def parse_xml(data: str | bytes) -> Element:
    try:
        return fromstring(data)
    except ParseError as e:
        raise ResponseParseError(f"Malformed response from the resource server: {e}") from e


def _int_or_none(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _children(element: Element, tag: str) -> list[Element]:
    """Direct children with the given tag, or the element itself when it is the tag."""
    if element.tag == tag:
        return [element]
    return element.findall(tag)


def parse_property(element: Element) -> Property:
    prop = Property(element.get("name"), element.get("val"))
    for descriptor in element.findall("descriptor"):
        prop.add_descriptor(descriptor.get("name"), descriptor.get("val"))
    return prop


def parse_resource(element: Element) -> ResourceRecord:
    return ResourceRecord(
        about=element.get("about"),
        global_ats=[(global_at.text or "").strip() for global_at in element.findall("globalAt")],
        props=[parse_property(prop) for prop in element.findall("prop")],
    )


class Response(Cursor[ResourceRecord]):
    """A single response of the server, iterating over its resources."""

    def __init__(
        self,
        resources: list[ResourceRecord] | None = None,
        ref: str | None = None,
        expired: bool = False,
        start: int | None = None,
        count: int | None = None,
        total: int | None = None,
    ):
        self.resources = resources if resources is not None else []
        super().__init__(self.resources)
        self.ref = ref
        self.expired = expired
        self.start = start
        self.count = count
        self.total = total

    @classmethod
    def from_element(cls, element: Element) -> "Response":
        return cls(
            resources=[parse_resource(resource) for resource in element.findall("resource")],
            ref=element.get("ref") or None,
            expired=element.get("expired") == "true",
            start=_int_or_none(element.get("start")),
            count=_int_or_none(element.get("count")),
            total=_int_or_none(element.get("total")),
        )

    def has_ref(self) -> bool:
        return self.ref is not None

    def number_of_resources(self) -> int:
        return len(self.resources)

    def first_resource(self) -> ResourceRecord | None:
        return self.resources[0] if self.resources else None

    has_next_resource = Cursor.has_next
    next_resource = Cursor.next
    reset_resource = Cursor.reset

    def __repr__(self) -> str:
        return (
            f"<Response ref={self.ref!r} expired={self.expired} start={self.start} "
            f"count={self.count} total={self.total} resources={len(self.resources)}>"
        )


class ResponseSet(Cursor[Response]):
    """Every response received for a batch of queries."""

    def __init__(self, responses: list[Response] | None = None):
        self.responses = responses if responses is not None else []
        super().__init__(self.responses)

    @classmethod
    def from_element(cls, root: Element) -> "ResponseSet":
        return cls([Response.from_element(response) for response in _children(root, "response")])

    @classmethod
    def from_xml(cls, data: str | bytes) -> "ResponseSet":
        return cls.from_element(parse_xml(data))

    def number_of_responses(self) -> int:
        return len(self.responses)

    def first_response(self) -> Response | None:
        return self.responses[0] if self.responses else None

    def very_first_global_at(self) -> str | None:
        """First download URI of the first resource of the first response, if any."""
        response = self.first_response()
        resource = response.first_resource() if response is not None else None
        return resource.first_global_at() if resource is not None else None

    has_next_response = Cursor.has_next
    next_response = Cursor.next
    reset_response = Cursor.reset


def parse_upload_response(data: str | bytes) -> list[UploadOutcome]:
    root = parse_xml(data)
    outcomes = []
    for resource in _children(root, "resource"):
        message = resource.find("message")
        outcomes.append(
            UploadOutcome(
                status=_int_or_none(resource.get("status")),
                name=resource.get("name"),
                message=message.text if message is not None else None,
            )
        )
    return outcomes


def _paging_value(value: str | None) -> int | str | None:
    if value == "all":
        return value
    return _int_or_none(value)


def parse_query_document(data: str | bytes) -> QueryDocument:
    """Read back a ``<queries>`` document, e.g. one logged by the transport."""
    document = QueryDocument()
    for element in _children(parse_xml(data), "query"):
        start = _int_or_none(element.get("start"))
        count = _paging_value(element.get("count"))
        if element.get("ref") is not None:
            document.nodes.append(Ref(element.get("ref"), start, count))
            continue
        query = Query(start=start, count=count)
        for tag, context in (
            ("usercontext", query.user_context),
            ("controllercontext", query.controller_context),
        ):
            for prop in element.findall(f"{tag}/prop"):
                context.append(ContextProperty(prop.get("name"), prop.get("val")))
        query.props = [parse_property(prop) for prop in element.findall("prop")]
        document.nodes.append(query)
    return document
