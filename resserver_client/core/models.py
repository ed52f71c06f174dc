"""
Data models for the core module.

This module contains the plain value objects exchanged with the resource server:
the query documents sent to it and the responses and resources received back.
"""

from dataclasses import dataclass, field
from typing import Iterable

USER_SCOPE = "user"
CONTROLLER_SCOPE = "controller"
CONTEXT_SCOPES = (USER_SCOPE, CONTROLLER_SCOPE)

COUNT_ALL = "all"


@dataclass(frozen=True)
class Descriptor:
    """Metadata qualifying a single property (e.g. unit, language)."""

    name: str
    value: str | None = None


@dataclass
class Property:
    """A name/value pair plus its ordered descriptors."""

    name: str
    value: str | None = None
    descriptors: list[Descriptor] = field(default_factory=list)

    def add_descriptor(self, name: str, value: str | None) -> "Property":
        self.descriptors.append(Descriptor(name, value))
        return self


@dataclass(frozen=True)
class ContextProperty:
    """A user or controller preference attached to a query."""

    name: str
    value: str | None = None


@dataclass
class Query:
    """Describes the desired resources and the requested page of matches."""

    start: int | None = None
    count: int | str | None = None
    user_context: list[ContextProperty] = field(default_factory=list)
    controller_context: list[ContextProperty] = field(default_factory=list)
    props: list[Property] = field(default_factory=list)

    def context(self, scope: str) -> list[ContextProperty]:
        if scope == USER_SCOPE:
            return self.user_context
        if scope == CONTROLLER_SCOPE:
            return self.controller_context
        raise ValueError(f"unknown context scope '{scope}', expected one of {CONTEXT_SCOPES}")


@dataclass
class Ref:
    """A query re-invoking the result set of an earlier query by its reference token."""

    ref: str
    start: int | None = None
    count: int | str | None = None


@dataclass
class QueryDocument:
    """Ordered batch of queries and refs, sent as a single request."""

    nodes: list[Query | Ref] = field(default_factory=list)


@dataclass
class ResourceRecord:
    """A single resource received from the server."""

    about: str | None
    global_ats: list[str] = field(default_factory=list)
    props: list[Property] = field(default_factory=list)

    def first_global_at(self) -> str | None:
        """First download URI of this resource, None if there is none (e.g. reference expired)"""
        return self.global_ats[0] if self.global_ats else None


@dataclass
class UploadOutcome:
    """Per item status reported by the server after an upload."""

    status: int | None
    name: str | None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is not None and 200 <= self.status < 300


def as_descriptors(descriptors: Iterable | None) -> list[Descriptor]:
    """Accept Descriptor objects or (name, value) pairs."""
    result = []
    for desc in descriptors or []:
        if isinstance(desc, Descriptor):
            result.append(desc)
        else:
            name, value = desc
            result.append(Descriptor(name, value))
    return result
