import enum
import typing
from .streams import BodyStream
from .utils import urlencode_str

StrOrInt = typing.Union[str, int]
FormType = typing.Union[
    typing.Sequence[typing.Tuple[str, StrOrInt]],
    typing.Mapping[str, typing.Union[StrOrInt, typing.Sequence[StrOrInt]]],
]
BlobPartType = typing.Union[bytes, bytearray, memoryview, str, "Blob"]


class PayloadKind(enum.Enum):
    """Every payload shape that can be turned into a body stream"""

    EMPTY = "empty"
    URL_ENCODED_FORM = "url-encoded-form"
    BLOB = "blob"
    RAW_BYTES = "raw-bytes"
    MEMORY_BUFFER = "memory-buffer"
    MEMORY_VIEW = "memory-view"
    LIVE_STREAM = "live-stream"
    FILE = "file"
    MULTIPART_FORM = "multipart-form"
    TEXT = "text"


class StreamDescriptor(typing.NamedTuple):
    """A body stream along with the metadata needed to frame it.
    'content_length' of 'None' means the length isn't known up front
    and 'content_type' of 'None' means no default 'Content-Type'
    should be applied by the caller.
    """

    content_type: typing.Optional[str]
    content_length: typing.Optional[int]
    stream: typing.Optional[BodyStream]

    def framing_headers(self) -> typing.List[typing.Tuple[str, str]]:
        """Renders the 'Content-Type' and framing headers for this body"""
        headers = []
        if self.content_type is not None:
            headers.append(("content-type", self.content_type))
        if self.content_length is not None:
            headers.append(("content-length", str(self.content_length)))
        elif self.stream is not None:
            headers.append(("transfer-encoding", "chunked"))
        return headers


EMPTY_DESCRIPTOR = StreamDescriptor(content_type=None, content_length=None, stream=None)


class Blob:
    """Immutable bytes with an optional MIME type, built up from parts"""

    def __init__(
        self,
        parts: typing.Union[BlobPartType, typing.Iterable[BlobPartType]] = (),
        *,
        type: typing.Optional[str] = None,
    ):
        if isinstance(parts, (bytes, bytearray, memoryview, str, Blob)):
            parts = (parts,)

        buffer = bytearray()
        for part in parts:
            if isinstance(part, Blob):
                buffer += part._data
            elif isinstance(part, str):
                buffer += part.encode("utf-8")
            else:
                buffer += part
        self._data = bytes(buffer)
        self.type = type.lower() if type else None

    @property
    def size(self) -> int:
        return len(self._data)

    def __bytes__(self) -> bytes:
        return self._data

    def __repr__(self) -> str:
        return f"<Blob [{self.size} bytes, {self.type!r}]>"


class URLEncodedForm:
    """Implements application/x-www-form-urlencoded serialization"""

    def __init__(self, form: FormType = ()):
        self._form = form
        self._data: typing.Optional[bytes] = None

    def encode(self) -> bytes:
        if self._data is None:
            output: typing.List[bytes] = []
            for k, vs in (
                self._form.items() if hasattr(self._form, "items") else self._form
            ):
                if isinstance(vs, str) or not hasattr(vs, "__iter__"):
                    vs = (vs,)
                for v in vs:
                    output.append(urlencode_str(str(k)) + b"=" + urlencode_str(str(v)))

            self._data = b"&".join(output)

        return self._data

    def __str__(self) -> str:
        return self.encode().decode("ascii")

    def __repr__(self) -> str:
        return f"<URLEncodedForm {str(self)!r}>"


class MultipartFormField(typing.NamedTuple):
    name: str
    value: typing.Union[str, Blob]
    filename: typing.Optional[str] = None


class MultipartForm:
    """Holds the fields of a multipart/form-data body. Encoding the
    form into a stream is done by a 'MultipartEncoder'.
    """

    def __init__(self, fields: typing.Iterable[MultipartFormField] = ()):
        self.fields: typing.List[MultipartFormField] = list(fields)

    def add_field(
        self,
        name: str,
        value: typing.Union[str, Blob],
        *,
        filename: typing.Optional[str] = None,
    ) -> MultipartFormField:
        """Adds a field to the multipart form"""
        field = MultipartFormField(name=name, value=value, filename=filename)
        self.fields.append(field)
        return field

    def __repr__(self) -> str:
        return f"<MultipartForm {[field.name for field in self.fields]!r}>"


class MultipartEncoder:
    """Turns a 'MultipartForm' into a body stream. Whatever
    'adapt()' returns is used as the body as-is, including its
    'content_type' which carries the boundary.
    """

    def adapt(self, form: MultipartForm) -> StreamDescriptor:
        raise NotImplementedError()
