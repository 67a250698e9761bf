"""Module types: core data structures for schema reconstruction."""
#
# PURPOSE:
# Defines the inferred data model for observed API traffic.
#
# LOGIC:
# - Schema: recursive node describing the shape of one JSON value (JSON Schema like)
# - MediaType / RequestBody / Header / Response: the per-endpoint containers
#   the merger folds together before a document is assembled
# - Parameter: path and query inputs, always rendered as strings
# - Schema.type == SchemaType.UNKNOWN ("") is a placeholder meaning "no evidence"
#

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class SchemaType(str, Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"
    STRING = "string"
    OBJECT = "object"
    ARRAY = "array"
    UNKNOWN = ""


@dataclass
class Schema:
    """Represents the inferred structure of a request/response value."""
    type: SchemaType = SchemaType.UNKNOWN
    format: str = ""
    properties: Optional[Dict[str, Schema]] = None  # objects only
    items: Optional[Schema] = None  # arrays only
    required: List[str] = field(default_factory=list)
    enum: List[Any] = field(default_factory=list)
    example: Any = None
    nullable: bool = False

    def is_placeholder(self) -> bool:
        return self.type == SchemaType.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        """Recursive serialization, omitting unset fields."""
        d: Dict[str, Any] = {}
        if self.type != SchemaType.UNKNOWN:
            d["type"] = self.type.value
        if self.format:
            d["format"] = self.format
        if self.properties is not None:
            d["properties"] = {k: v.to_dict() for k, v in sorted(self.properties.items())}
        if self.items is not None:
            d["items"] = self.items.to_dict()
        if self.required:
            d["required"] = sorted(self.required)
        if self.enum:
            d["enum"] = list(self.enum)
        if self.example is not None:
            d["example"] = self.example
        if self.nullable:
            d["nullable"] = True
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Schema:
        properties = data.get("properties")
        items = data.get("items")
        return cls(
            type=SchemaType(data.get("type", "")),
            format=data.get("format", ""),
            properties={k: cls.from_dict(v) for k, v in properties.items()} if properties is not None else None,
            items=cls.from_dict(items) if items is not None else None,
            required=list(data.get("required", [])),
            enum=list(data.get("enum", [])),
            example=data.get("example"),
            nullable=bool(data.get("nullable", False)),
        )


@dataclass
class MediaType:
    schema: Schema = field(default_factory=Schema)
    example: Any = None


@dataclass
class RequestBody:
    content: Dict[str, MediaType] = field(default_factory=dict)  # Key: content type
    required: bool = False
    description: str = ""


@dataclass
class Header:
    schema: Schema = field(default_factory=Schema)
    description: str = ""
    example: Any = None


@dataclass
class Response:
    description: str = ""
    content: Dict[str, MediaType] = field(default_factory=dict)
    headers: Dict[str, Header] = field(default_factory=dict)


class ParamLocation(str, Enum):
    PATH = "path"
    QUERY = "query"


@dataclass
class Parameter:
    """A non-body input of an operation (path segment or query key)."""
    name: str
    location: ParamLocation = ParamLocation.QUERY
    required: bool = False
    schema: Schema = field(default_factory=lambda: Schema(type=SchemaType.STRING))
