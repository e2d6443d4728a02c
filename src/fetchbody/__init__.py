from .exceptions import (
    FetchBodyError,
    SizeLimitExceeded,
    PrematureClose,
    BufferConstructionError,
)
from .models import (
    PayloadKind,
    StreamDescriptor,
    Blob,
    URLEncodedForm,
    MultipartForm,
    MultipartFormField,
    MultipartEncoder,
)
from .streams import BodyStream
from .adapter import BodyStreamAdapter, payload_kind
from .collector import BodyCollector
from .api import adapt, collect

__all__ = [
    "FetchBodyError",
    "SizeLimitExceeded",
    "PrematureClose",
    "BufferConstructionError",
    "PayloadKind",
    "StreamDescriptor",
    "Blob",
    "URLEncodedForm",
    "MultipartForm",
    "MultipartFormField",
    "MultipartEncoder",
    "BodyStream",
    "BodyStreamAdapter",
    "payload_kind",
    "BodyCollector",
    "adapt",
    "collect",
]

__version__ = "dev"
