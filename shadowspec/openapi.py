"""
OpenAPI Document Assembly

Turns finalized endpoint schemas into an OpenAPI 3.0.3 document (plain dicts,
ready for json.dumps). Nothing here inspects traffic; it only renders what
ShadowSpec.finalize() produced.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from shadowspec.inference.types import Header, MediaType, Parameter, RequestBody, Response, Schema, SchemaType
from shadowspec.shadow_spec import EndpointKey, EndpointSchema

OPENAPI_VERSION = "3.0.3"
DEFAULT_RESPONSE_DESCRIPTION = "Response"
DEFAULT_TAG = "default"

STATUS_DESCRIPTIONS: Dict[str, str] = {
    "200": "OK",
    "201": "Created",
    "202": "Accepted",
    "204": "No Content",
    "301": "Moved Permanently",
    "302": "Found",
    "304": "Not Modified",
    "400": "Bad Request",
    "401": "Unauthorized",
    "403": "Forbidden",
    "404": "Not Found",
    "405": "Method Not Allowed",
    "409": "Conflict",
    "422": "Unprocessable Entity",
    "429": "Too Many Requests",
    "500": "Internal Server Error",
    "502": "Bad Gateway",
    "503": "Service Unavailable",
    "504": "Gateway Timeout",
}

_NON_WORD = re.compile(r"[^0-9A-Za-z]+")


def status_description(status: Union[int, str]) -> str:
    return STATUS_DESCRIPTIONS.get(str(status), DEFAULT_RESPONSE_DESCRIPTION)


def operation_id(method: str, path: str) -> str:
    """
    Stable operation id from method + path.

    GET /users/{id}/posts -> getUsersByIdPosts
    """
    parts = [method.lower()]
    for segment in path.strip("/").split("/"):
        if not segment:
            continue
        if segment.startswith("{") and segment.endswith("}"):
            parts.append("By")
            segment = segment[1:-1]
        for word in _NON_WORD.split(segment):
            if word:
                parts.append(word[0].upper() + word[1:])
    return "".join(parts)


def operation_tags(path: str) -> List[str]:
    """Group operations by their first path segment (/users/{id} -> users)."""
    first = path.strip("/").split("/", 1)[0]
    return [first or DEFAULT_TAG]


def to_openapi_schema(schema: Schema) -> Dict[str, Any]:
    """Render a Schema as an OpenAPI 3.0 Schema Object."""
    d: Dict[str, Any] = {}

    if schema.type == SchemaType.NULL:
        # 3.0 has no null type; a value only ever seen as null is "anything, nullable".
        d["nullable"] = True
    elif schema.type != SchemaType.UNKNOWN:
        d["type"] = schema.type.value
        if schema.format:
            d["format"] = schema.format
        elif schema.type == SchemaType.INTEGER:
            d["format"] = "int32"
        elif schema.type == SchemaType.NUMBER:
            d["format"] = "double"

    if schema.nullable:
        d["nullable"] = True
    if schema.enum:
        d["enum"] = list(schema.enum)
    if schema.example is not None:
        d["example"] = schema.example

    if schema.properties is not None:
        d["properties"] = {name: to_openapi_schema(prop) for name, prop in sorted(schema.properties.items())}
        if schema.required:
            d["required"] = sorted(schema.required)
    if schema.items is not None:
        d["items"] = to_openapi_schema(schema.items)
    elif schema.type == SchemaType.ARRAY:
        d["items"] = {}

    return d


def _content(content: Mapping[str, MediaType]) -> Dict[str, Any]:
    rendered = {}
    for media_type, media in sorted(content.items()):
        entry: Dict[str, Any] = {"schema": to_openapi_schema(media.schema)}
        if media.example is not None:
            entry["example"] = media.example
        rendered[media_type] = entry
    return rendered


def _parameter(parameter: Parameter) -> Dict[str, Any]:
    return {
        "name": parameter.name,
        "in": parameter.location.value,
        "required": parameter.required,
        "schema": to_openapi_schema(parameter.schema),
    }


def _request_body(body: RequestBody) -> Dict[str, Any]:
    d: Dict[str, Any] = {"content": _content(body.content), "required": body.required}
    if body.description:
        d["description"] = body.description
    return d


def _header(header: Header) -> Dict[str, Any]:
    d: Dict[str, Any] = {"schema": to_openapi_schema(header.schema)}
    if header.description:
        d["description"] = header.description
    if header.example is not None:
        d["example"] = header.example
    return d


def _response(status: str, response: Response) -> Dict[str, Any]:
    d: Dict[str, Any] = {"description": response.description or status_description(status)}
    if response.headers:
        d["headers"] = {name: _header(h) for name, h in sorted(response.headers.items())}
    if response.content:
        d["content"] = _content(response.content)
    return d


def build_operation(endpoint: EndpointSchema) -> Dict[str, Any]:
    operation: Dict[str, Any] = {
        "operationId": operation_id(endpoint.method, endpoint.path),
        "tags": operation_tags(endpoint.path),
    }
    if endpoint.parameters:
        operation["parameters"] = [_parameter(p) for p in endpoint.parameters]
    if endpoint.request_body is not None and endpoint.request_body.content:
        operation["requestBody"] = _request_body(endpoint.request_body)

    responses = {status: _response(status, r) for status, r in sorted(endpoint.responses.items())}
    if not responses:
        responses = {"default": {"description": DEFAULT_RESPONSE_DESCRIPTION}}
    operation["responses"] = responses
    return operation


def build_document(
    endpoints: Union[Mapping[EndpointKey, EndpointSchema], Iterable[EndpointSchema]],
    title: str = "Observed API",
    version: str = "1.0.0",
    description: str = "",
    servers: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Assemble an OpenAPI document from finalized endpoints.

    Args:
        endpoints: ShadowSpec.finalize() output, or any iterable of EndpointSchema
        title: info.title
        version: info.version
        description: info.description (omitted when empty)
        servers: server URLs, in order

    Returns:
        The document as a plain dict
    """
    if isinstance(endpoints, Mapping):
        endpoints = endpoints.values()

    info: Dict[str, Any] = {"title": title, "version": version}
    if description:
        info["description"] = description

    paths: Dict[str, Dict[str, Any]] = {}
    for endpoint in sorted(endpoints, key=lambda e: (e.path, e.method)):
        paths.setdefault(endpoint.path, {})[endpoint.method.lower()] = build_operation(endpoint)

    document: Dict[str, Any] = {"openapi": OPENAPI_VERSION, "info": info}
    if servers:
        document["servers"] = [{"url": url} for url in servers]
    document["paths"] = paths
    return document
