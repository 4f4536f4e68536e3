"""Pydantic models that capture directory domain concepts."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

import json
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


class SearchScope(str, Enum):
    """How far below the base a search reaches."""

    ONE = "one"
    SUBTREE = "sub"


class Location(BaseModel):
    """Distinguished name of an entry, stored leaf RDN first.

    ``Location.from_dn("ou=People,dc=example,dc=com").parent()`` is
    ``dc=example,dc=com``. The empty location is the root of the tree.
    """

    model_config = ConfigDict(frozen=True)

    rdns: tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _accept_dn_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"rdns": _split_dn(data)}
        return data

    @field_validator("rdns")
    @classmethod
    def _check_rdns(cls, rdns: tuple[str, ...]) -> tuple[str, ...]:
        for rdn in rdns:
            attr, sep, value = rdn.partition("=")
            if not sep or not attr.strip() or not value.strip():
                raise ValueError(f"Invalid RDN {rdn!r}")
        return rdns

    @classmethod
    def from_dn(cls, dn: str | Location) -> Location:
        if isinstance(dn, Location):
            return dn
        return cls.model_validate(dn)

    @property
    def rdn(self) -> str | None:
        return self.rdns[0] if self.rdns else None

    @property
    def is_root(self) -> bool:
        return not self.rdns

    def parent(self) -> Location | None:
        """Return the enclosing location, or None for a single RDN or the root."""
        if len(self.rdns) < 2:
            return None
        return Location(rdns=self.rdns[1:])

    def child(self, rdn: str) -> Location:
        return Location(rdns=(rdn.strip(), *self.rdns))

    def normalized(self) -> tuple[str, ...]:
        return tuple(normalize_rdn(rdn) for rdn in self.rdns)

    def is_same_as(self, other: str | Location) -> bool:
        return self.normalized() == Location.from_dn(other).normalized()

    def is_descendant_of(self, other: str | Location) -> bool:
        """True when ``other`` is a strict ancestor of this location."""
        theirs = Location.from_dn(other).normalized()
        mine = self.normalized()
        return len(mine) > len(theirs) and mine[len(mine) - len(theirs):] == theirs

    def __str__(self) -> str:
        return ",".join(self.rdns)


class Entry(BaseModel):
    """A directory entry: its location and its attribute values."""

    location: Location
    attributes: dict[str, list[str]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _accept_flat_mapping(cls, data: Any) -> Any:
        # fixtures write entries as {"dn": ..., "objectClass": [...], ...}
        if isinstance(data, Mapping) and "dn" in data and "location" not in data:
            data = dict(data)
            location = data.pop("dn")
            attributes = data.pop("attributes", None) or {}
            attributes = {**data, **attributes}
            return {"location": location, "attributes": attributes}
        return data

    @field_validator("attributes", mode="before")
    @classmethod
    def _listify_values(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        result: dict[str, list[str]] = {}
        for name, values in value.items():
            if values is None:
                continue
            if isinstance(values, (str, int, float)):
                values = [values]
            result[str(name)] = [str(v) for v in values]
        return result

    @property
    def dn(self) -> str:
        return str(self.location)

    def get_values(self, attribute: str) -> list[str]:
        """Values of ``attribute``, matching the name case-insensitively."""
        wanted = attribute.lower()
        values: list[str] = []
        for name, found in self.attributes.items():
            if name.lower() == wanted:
                values.extend(found)
        return values

    def has_attribute(self, attribute: str) -> bool:
        return bool(self.get_values(attribute))

    def has_object_class(self, class_name: str) -> bool:
        wanted = class_name.lower()
        return any(value.lower() == wanted for value in self.get_values("objectClass"))

    def project(self, attributes: Iterable[str]) -> dict[str, list[str]]:
        """Return only the named attributes (objectClass is always kept)."""
        wanted = {name.lower() for name in attributes} | {"objectclass"}
        return {name: list(values) for name, values in self.attributes.items() if name.lower() in wanted}


class MatchedEntry(Entry):
    """An entry returned by a directory search."""


class ClassPredicate(BaseModel):
    """Equality test on objectClass, e.g. ``(objectclass=targetClass)``."""

    model_config = ConfigDict(frozen=True)

    class_name: str = Field(..., min_length=1)

    def to_filter(self) -> str:
        return f"(objectclass={self.class_name})"

    def matches(self, entry: Entry) -> bool:
        return entry.has_object_class(self.class_name)

    def __str__(self) -> str:
        return self.to_filter()


class SearchDescriptor(BaseModel):
    """Everything needed to run one sibling search."""

    model_config = ConfigDict(frozen=True)

    base: Location
    scope: SearchScope = SearchScope.ONE
    filter: ClassPredicate
    attribute: str = Field(..., min_length=1)

    @property
    def filter_text(self) -> str:
        return self.filter.to_filter()


class ValueSet:
    """Strings kept in first-insertion order, without duplicates."""

    def __init__(self, values: Iterable[str] = ()):
        self._values: dict[str, None] = {}
        self.update(values)

    def add(self, value: str) -> bool:
        """Add ``value``. Returns False when it was already present."""
        if value in self._values:
            return False
        self._values[value] = None
        return True

    def update(self, values: Iterable[str]) -> None:
        for value in values:
            self.add(value)

    def as_list(self) -> list[str]:
        return list(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, value: object) -> bool:
        return value in self._values

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ValueSet):
            return self.as_list() == other.as_list()
        if isinstance(other, (list, tuple)):
            return self.as_list() == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ValueSet({self.as_list()!r})"


class DerivedAttribute(BaseModel):
    """A generated virtual attribute. It always has at least one value."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    values: tuple[str, ...]

    @field_validator("values", mode="before")
    @classmethod
    def _dedupe_values(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        return tuple(ValueSet(value))

    @field_validator("values")
    @classmethod
    def _require_values(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("A derived attribute needs at least one value")
        return value

    def __str__(self) -> str:
        return f"Attribute(name={self.name}, values={{{', '.join(self.values)}}})"
# ---------------------------------------------------------------------------
# helpers


def normalize_rdn(rdn: str) -> str:
    """Lowercase an RDN and drop the blanks around ``=``."""
    attr, _, value = rdn.partition("=")
    return f"{attr.strip().lower()}={value.strip().lower()}"


def _split_dn(dn: str) -> tuple[str, ...]:
    """Split a DN on the commas that are not escaped with a backslash."""
    if not dn.strip():
        return ()
    parts: list[str] = []
    current: list[str] = []
    escaped = False
    for char in dn:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\":
            current.append(char)
            escaped = True
        elif char == ",":
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    parts.append("".join(current).strip())
    return tuple(parts)


def coerce_entries(value: Any) -> list[Entry]:
    """Normalize a fixture (mapping, list, YAML/JSON text or path) into entries.

    A fixture is either a list of entries or a mapping with an ``entries`` list.
    """
    payload: Any
    if isinstance(value, Path):
        payload = load_text_payload(value.read_text())
    elif isinstance(value, (str, bytes)):
        payload = load_text_payload(value)
    else:
        payload = value
    if isinstance(payload, Mapping):
        payload = payload.get("entries") or []
    if not isinstance(payload, list):
        raise TypeError("Unsupported value for directory entries")
    try:
        return [item if isinstance(item, Entry) else Entry.model_validate(item) for item in payload]
    except ValidationError as exc:
        raise ValueError("Invalid directory entries payload") from exc


def load_text_payload(raw: str | bytes) -> Any:
    """Interpret raw text as YAML first, falling back to JSON."""
    text = raw.decode() if isinstance(raw, bytes) else raw
    try:
        return yaml.safe_load(text) or {}
    except yaml.YAMLError:
        return json.loads(text)


__all__ = [
    "ClassPredicate",
    "DerivedAttribute",
    "Entry",
    "Location",
    "MatchedEntry",
    "SearchDescriptor",
    "SearchScope",
    "ValueSet",
    "coerce_entries",
    "load_text_payload",
    "normalize_rdn",
]
