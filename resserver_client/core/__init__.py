"""
Core module for resserver_client.

This module contains the query builder, the XML serializer and parser, the
upload batching and the HTTP transport. It is independent from the CLI.
"""

from .exceptions import (
    InsecureUrlError,
    PerItemUploadError,
    ResponseParseError,
    ResServerError,
    TransportError,
    UploadReadError,
    UploadStateError,
)
from .models import (
    ContextProperty,
    Descriptor,
    Property,
    Query,
    QueryDocument,
    Ref,
    ResourceRecord,
    UploadOutcome,
)
from .parser import Response, ResponseSet, parse_query_document, parse_upload_response
from .query_builder import PropertyBuilder, QueryBuilder, QueryDocumentBuilder, new_document
from .transport import Transport
from .upload import FilePayload, UploadBatch, UploadResult, UploadState

__all__ = [
    "ContextProperty",
    "Descriptor",
    "FilePayload",
    "InsecureUrlError",
    "PerItemUploadError",
    "Property",
    "PropertyBuilder",
    "Query",
    "QueryBuilder",
    "QueryDocument",
    "QueryDocumentBuilder",
    "Ref",
    "ResServerError",
    "ResourceRecord",
    "Response",
    "ResponseParseError",
    "ResponseSet",
    "Transport",
    "TransportError",
    "UploadBatch",
    "UploadOutcome",
    "UploadReadError",
    "UploadResult",
    "UploadState",
    "UploadStateError",
    "new_document",
    "parse_query_document",
    "parse_upload_response",
]
