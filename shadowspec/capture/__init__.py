"""Traffic capture: transaction models, storage and the mitmproxy recorder."""

from shadowspec.capture.models import (
    DEFAULT_CONTENT_TYPE,
    RequestRecord,
    ResponseRecord,
    Transaction,
    content_type,
    decode_body,
    encode_body,
)
from shadowspec.capture.storage import TransactionStore

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "RequestRecord",
    "ResponseRecord",
    "Transaction",
    "TransactionStore",
    "content_type",
    "decode_body",
    "encode_body",
]
