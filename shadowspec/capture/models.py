from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from shadowspec.errors import ErrorCode, ShadowSpecError

DEFAULT_CONTENT_TYPE = "application/json"


def content_type(headers: Mapping[str, str]) -> str:
    """
    Media type from a header map: case-insensitive lookup, parameters
    (charset, boundary) stripped. "" when absent.
    """
    for name, value in headers.items():
        if name.lower() == "content-type":
            return value.split(";", 1)[0].strip().lower()
    return ""


def encode_body(data: Optional[bytes]) -> Optional[str]:
    if not data:
        return None
    return base64.b64encode(data).decode("ascii")


def decode_body(body_b64: Optional[str]) -> Any:
    """
    Decode a captured base64 body into a JSON value.

    Raises:
        ShadowSpecError: BODY_DECODE_FAILED for invalid base64 or non-UTF-8 bytes,
            BODY_NOT_JSON when the bytes are not a JSON document
    """
    if not body_b64:
        raise ShadowSpecError(ErrorCode.BODY_DECODE_FAILED, "No body captured")
    try:
        raw = base64.b64decode(body_b64, validate=True)
        text = raw.decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise ShadowSpecError(
            ErrorCode.BODY_DECODE_FAILED,
            f"Body is not valid base64 text: {e}",
        )
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ShadowSpecError(
            ErrorCode.BODY_NOT_JSON,
            f"Body is not valid JSON: {e.msg}",
            details={"position": e.pos},
        )


class RequestRecord(BaseModel):
    """A captured request. The body is kept base64-encoded as captured."""
    method: str = Field(min_length=1, max_length=16)
    path: str = Field(min_length=1)
    query: Dict[str, List[str]] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)
    body_b64: Optional[str] = Field(default=None, description="Base64-encoded body")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("path must start with '/'")
        # Fragments are client-side only and never part of the endpoint.
        return v.split("#", 1)[0]

    @property
    def has_body(self) -> bool:
        return bool(self.body_b64)

    @property
    def content_type(self) -> str:
        return content_type(self.headers)

    def json_body(self) -> Any:
        return decode_body(self.body_b64)


class ResponseRecord(BaseModel):
    status_code: int = Field(ge=100, le=599)
    headers: Dict[str, str] = Field(default_factory=dict)
    body_b64: Optional[str] = Field(default=None, description="Base64-encoded body")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_body(self) -> bool:
        return bool(self.body_b64)

    @property
    def content_type(self) -> str:
        return content_type(self.headers)

    def json_body(self) -> Any:
        return decode_body(self.body_b64)


class Transaction(BaseModel):
    """One observed request/response exchange."""
    request: RequestRecord
    response: ResponseRecord

    @classmethod
    def from_json_bodies(
        cls,
        method: str,
        path: str,
        status_code: int = 200,
        request_body: Any = None,
        response_body: Any = None,
        request_headers: Optional[Dict[str, str]] = None,
        response_headers: Optional[Dict[str, str]] = None,
        query: Optional[Dict[str, List[str]]] = None,
    ) -> "Transaction":
        """Build a transaction from already-decoded JSON bodies (None = no body)."""
        def _encode(value: Any) -> Optional[str]:
            if value is None:
                return None
            return encode_body(json.dumps(value).encode("utf-8"))

        json_headers = {"Content-Type": DEFAULT_CONTENT_TYPE}
        return cls(
            request=RequestRecord(
                method=method,
                path=path,
                query=query or {},
                headers=request_headers if request_headers is not None else dict(json_headers),
                body_b64=_encode(request_body),
            ),
            response=ResponseRecord(
                status_code=status_code,
                headers=response_headers if response_headers is not None else dict(json_headers),
                body_b64=_encode(response_body),
            ),
        )
