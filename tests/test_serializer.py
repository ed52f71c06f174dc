from xml.etree.ElementTree import Element

import pytest

from resserver_client.core.models import (
    ContextProperty,
    Descriptor,
    Property,
    Query,
    QueryDocument,
    Ref,
)
from resserver_client.core.serializer import (
    append_upload_data,
    serialize_document,
    to_xml_string,
    upload_fragment,
    upload_to_xml,
)


def test_serialize_empty_document():
    assert serialize_document(QueryDocument()) == "<queries />"


def test_serialize_query():
    query = Query(
        start=1,
        count="all",
        user_context=[ContextProperty("lang", "en")],
        controller_context=[ContextProperty("device", "tv"), ContextProperty("bandwidth", "low")],
        props=[
            Property("type", "video", [Descriptor("unit", "s"), Descriptor("codec", "h264")]),
            Property("title", "Intro"),
        ],
    )
    assert serialize_document(QueryDocument([query])) == (
        '<queries><query start="1" count="all">'
        '<usercontext><prop name="lang" val="en" /></usercontext>'
        '<controllercontext><prop name="device" val="tv" /><prop name="bandwidth" val="low" />'
        "</controllercontext>"
        '<prop name="type" val="video"><descriptor name="unit" val="s" />'
        '<descriptor name="codec" val="h264" /></prop>'
        '<prop name="title" val="Intro" />'
        "</query></queries>"
    )


def test_serialize_query_without_paging_nor_context():
    query = Query(props=[Property("type", "video")])
    assert serialize_document(QueryDocument([query])) == (
        '<queries><query><prop name="type" val="video" /></query></queries>'
    )


def test_serialize_refs_keep_insertion_order():
    document = QueryDocument([Ref("abc"), Query(count=3), Ref("def", start=5, count=10)])
    assert serialize_document(document) == (
        '<queries><query ref="abc" /><query count="3" />'
        '<query ref="def" start="5" count="10" /></queries>'
    )


def test_serialize_escapes_values():
    query = Query(props=[Property("title", 'Tom & "Jerry" <3')])
    assert serialize_document(QueryDocument([query])) == (
        '<queries><query><prop name="title" val="Tom &amp; &quot;Jerry&quot; &lt;3" />'
        "</query></queries>"
    )


def test_serialize_property_without_name():
    with pytest.raises(ValueError):
        serialize_document(QueryDocument([Query(props=[Property("", "video")])]))


def test_default_namespace_is_stripped():
    root = Element("queries", xmlns="http://www.w3.org/1999/xhtml")
    assert to_xml_string(root) == "<queries />"


def test_upload_fragments():
    fragment = upload_fragment("a.txt", [Property("author", "me")], True)
    append_upload_data(fragment, "QUJD")
    other = upload_fragment("b.txt", [], False)
    append_upload_data(other, "REVG")
    assert to_xml_string(upload_to_xml([fragment, other])) == (
        "<upload>"
        '<resource><props inherit="true"><prop name="author" val="me" /></props>'
        "<resourceData><name>a.txt</name><data>QUJD</data></resourceData></resource>"
        '<resource><props inherit="false" />'
        "<resourceData><name>b.txt</name><data>REVG</data></resourceData></resource>"
        "</upload>"
    )
