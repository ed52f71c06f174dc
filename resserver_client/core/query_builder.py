"""
Query building logic for the core module.

Builders are thin handles over the plain value objects of :mod:`.models`: a
child builder keeps a reference to its parent builder and the index of the node
it edits, the value objects themselves never point back to their parent.

    doc = new_document()
    doc.add_query().set_start(1).set_count("all").add_property("type", "video").complete()
    doc.add_ref("a1b2c3")
    xml = doc.to_xml_string()
"""

from typing import TYPE_CHECKING, Iterable

from .models import (
    CONTROLLER_SCOPE,
    COUNT_ALL,
    USER_SCOPE,
    ContextProperty,
    Property,
    Query,
    QueryDocument,
    Ref,
    as_descriptors,
)
from .serializer import serialize_document

if TYPE_CHECKING:
    from .parser import ResponseSet
    from .transport import Transport


def _check_count(count: int | str | None) -> int | str | None:
    if isinstance(count, str) and count != COUNT_ALL:
        raise ValueError(f"count must be an integer or '{COUNT_ALL}', got '{count}'")
    return count


def _make_property(name: str, value: str | None, descriptors: Iterable | None = None) -> Property:
    if not name:
        raise ValueError("a property needs a name")
    return Property(name, value, as_descriptors(descriptors))


class QueryDocumentBuilder:
    """Handles the construction of a batch of queries sent in one request."""

    def __init__(self, transport: "Transport | None" = None):
        self._document = QueryDocument()
        self._transport = transport

    @property
    def nodes(self) -> list[Query | Ref]:
        return self._document.nodes

    def add_query(self) -> "QueryBuilder":
        """Append an empty query; use `QueryBuilder.complete` to come back here."""
        self._document.nodes.append(Query())
        return QueryBuilder(self, len(self._document.nodes) - 1)

    def add_ref(
        self, ref: str, start: int | None = None, count: int | str | None = None
    ) -> "QueryDocumentBuilder":
        """Append a reference to a query previously answered by the server."""
        if not ref:
            raise ValueError("a ref query needs a reference token")
        self._document.nodes.append(Ref(ref, start, _check_count(count)))
        return self

    def build(self) -> QueryDocument:
        return self._document

    def to_xml_string(self) -> str:
        return serialize_document(self._document)

    async def send(self) -> "ResponseSet":
        if self._transport is None:
            raise RuntimeError("this document is not bound to a resource server")
        return await self._transport.send_queries(self._document)


class QueryBuilder:
    """Edits the query at a given position of its document."""

    def __init__(self, document: QueryDocumentBuilder, index: int):
        self._document = document
        self._index = index

    @property
    def query(self) -> Query:
        return self._document.nodes[self._index]

    def complete(self) -> QueryDocumentBuilder:
        """Return to the document, i.e. in order to add another query."""
        return self._document

    def set_start(self, start: int) -> "QueryBuilder":
        """Index of the first element in the matching resources list (starting with 1)."""
        self.query.start = start
        return self

    def set_count(self, count: int | str) -> "QueryBuilder":
        """Number of requested resources, "all" to request every match."""
        self.query.count = _check_count(count)
        return self

    def add_context_property(self, scope: str, name: str, value: str | None) -> "QueryBuilder":
        if not name:
            raise ValueError("a context property needs a name")
        self.query.context(scope).append(ContextProperty(name, value))
        return self

    def add_user_context(self, name: str, value: str | None) -> "QueryBuilder":
        return self.add_context_property(USER_SCOPE, name, value)

    def add_controller_context(self, name: str, value: str | None) -> "QueryBuilder":
        return self.add_context_property(CONTROLLER_SCOPE, name, value)

    def add_property(
        self, name: str, value: str | None, descriptors: Iterable | None = None
    ) -> "QueryBuilder":
        """Add a property describing the desired resource.

        `descriptors` may hold `Descriptor` objects or `(name, value)` pairs.
        """
        self.query.props.append(_make_property(name, value, descriptors))
        return self

    def add_property_with_descriptors(self, name: str, value: str | None) -> "PropertyBuilder":
        """Add a property and switch to it in order to add descriptors."""
        self.query.props.append(_make_property(name, value))
        return PropertyBuilder(self, len(self.query.props) - 1)


class PropertyBuilder:
    """Adds descriptors to a property of a query."""

    def __init__(self, query: QueryBuilder, index: int):
        self._query = query
        self._index = index

    @property
    def prop(self) -> Property:
        return self._query.query.props[self._index]

    def add_descriptor(self, name: str, value: str | None) -> "PropertyBuilder":
        self.prop.add_descriptor(name, value)
        return self

    def complete(self) -> QueryBuilder:
        return self._query


def new_document(transport: "Transport | None" = None) -> QueryDocumentBuilder:
    return QueryDocumentBuilder(transport)
