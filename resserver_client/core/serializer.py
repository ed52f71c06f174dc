"""
XML serialization of the documents sent to the resource server.

The server only accepts the exact root tags ``<queries>`` and ``<upload>``,
without any attribute, so namespace declarations are never emitted.
"""

import re
from xml.etree.ElementTree import Element, SubElement, tostring

from .models import ContextProperty, Property, Query, QueryDocument, Ref

# some serializers inject a default namespace on the root element
_DEFAULT_NS = re.compile(r'^(<[A-Za-z_][\w.-]*)\s+xmlns="[^"]*"')


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _set_paging(element: Element, start, count) -> None:
    if start is not None:
        element.set("start", _text(start))
    if count is not None:
        element.set("count", _text(count))


def property_to_xml(prop: Property) -> Element:
    if not prop.name:
        raise ValueError("a property needs a name")
    element = Element("prop", name=prop.name, val=_text(prop.value))
    for desc in prop.descriptors:
        SubElement(element, "descriptor", name=desc.name, val=_text(desc.value))
    return element


def _context_to_xml(tag: str, context: list[ContextProperty]) -> Element:
    element = Element(tag)
    for prop in context:
        SubElement(element, "prop", name=prop.name, val=_text(prop.value))
    return element


def query_to_xml(query: Query) -> Element:
    element = Element("query")
    _set_paging(element, query.start, query.count)
    if query.user_context:
        element.append(_context_to_xml("usercontext", query.user_context))
    if query.controller_context:
        element.append(_context_to_xml("controllercontext", query.controller_context))
    for prop in query.props:
        element.append(property_to_xml(prop))
    return element


def ref_to_xml(ref: Ref) -> Element:
    element = Element("query", ref=ref.ref)
    _set_paging(element, ref.start, ref.count)
    return element


def document_to_xml(document: QueryDocument) -> Element:
    root = Element("queries")
    for node in document.nodes:
        root.append(ref_to_xml(node) if isinstance(node, Ref) else query_to_xml(node))
    return root


def upload_fragment(name: str, props: list[Property], inherit: bool) -> Element:
    """Partial ``<resource>`` of an upload item, waiting for its ``<data>``."""
    resource = Element("resource")
    props_element = SubElement(resource, "props", inherit=_text(bool(inherit)))
    for prop in props:
        props_element.append(property_to_xml(prop))
    resource_data = SubElement(resource, "resourceData")
    SubElement(resource_data, "name").text = name
    return resource


def append_upload_data(fragment: Element, data: str) -> None:
    SubElement(fragment.find("resourceData"), "data").text = data


def upload_to_xml(fragments: list[Element]) -> Element:
    root = Element("upload")
    root.extend(fragments)
    return root


def to_xml_string(element: Element) -> str:
    xml_string = tostring(element, encoding="unicode")
    return _DEFAULT_NS.sub(r"\1", xml_string, count=1)


def serialize_document(document: QueryDocument) -> str:
    return to_xml_string(document_to_xml(document))
