import array
import collections.abc
import io
import logging
import mimetypes
import os
import typing
import filetype
import trio
from .models import (
    EMPTY_DESCRIPTOR,
    Blob,
    MultipartEncoder,
    MultipartForm,
    PayloadKind,
    StreamDescriptor,
    URLEncodedForm,
)
from .streams import BodyStream, Chunk
from .utils import CHUNK_SIZE, is_known_encoding

logger = logging.getLogger(__name__)

# Enough of a file's head for 'filetype' to recognize any of its formats.
FILETYPE_SAMPLE_SIZE = 8192


def payload_kind(payload: typing.Any) -> PayloadKind:
    """Tags a payload with the kind of body it will become. This is
    the only place where payloads are inspected, everything after
    works off of the returned 'PayloadKind'.
    """
    if payload is None:
        return PayloadKind.EMPTY
    elif isinstance(payload, (URLEncodedForm, dict)) or _is_form_pairs(payload):
        return PayloadKind.URL_ENCODED_FORM
    elif isinstance(payload, Blob):
        return PayloadKind.BLOB
    elif isinstance(payload, bytes):
        return PayloadKind.RAW_BYTES
    elif isinstance(payload, bytearray):
        return PayloadKind.MEMORY_BUFFER
    elif isinstance(payload, (memoryview, array.array)):
        return PayloadKind.MEMORY_VIEW
    elif isinstance(payload, MultipartForm):
        return PayloadKind.MULTIPART_FORM
    elif isinstance(payload, trio.abc.ReceiveStream) or hasattr(payload, "__aiter__"):
        return PayloadKind.LIVE_STREAM
    # File objects are iterators too so they need to be caught first.
    elif hasattr(payload, "read"):
        return PayloadKind.FILE
    elif isinstance(payload, collections.abc.Iterator):
        return PayloadKind.LIVE_STREAM
    return PayloadKind.TEXT


class BodyStreamAdapter:
    """Turns any supported payload into a 'StreamDescriptor'.
    Adapting never fails because of the payload, anything that
    isn't recognized is sent as its string form.
    """

    def __init__(
        self,
        *,
        multipart_encoder: typing.Optional[MultipartEncoder] = None,
        chunk_size: int = CHUNK_SIZE,
        encoding: str = "utf-8",
    ):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, not {chunk_size}")
        known_encoding = is_known_encoding(encoding)
        if known_encoding is None:
            raise ValueError(f"unknown encoding '{encoding}'")

        self.multipart_encoder = multipart_encoder
        self.chunk_size = chunk_size
        self.encoding = known_encoding

        self._adapters: typing.Dict[
            PayloadKind, typing.Callable[[typing.Any], StreamDescriptor]
        ] = {
            PayloadKind.EMPTY: self._adapt_empty,
            PayloadKind.URL_ENCODED_FORM: self._adapt_url_encoded_form,
            PayloadKind.BLOB: self._adapt_blob,
            PayloadKind.RAW_BYTES: self._adapt_bytes,
            PayloadKind.MEMORY_BUFFER: self._adapt_bytes,
            PayloadKind.MEMORY_VIEW: self._adapt_memory_view,
            PayloadKind.LIVE_STREAM: self._adapt_live_stream,
            PayloadKind.FILE: self._adapt_file,
            PayloadKind.MULTIPART_FORM: self._adapt_multipart_form,
            PayloadKind.TEXT: self._adapt_text,
        }

    def adapt(self, payload: typing.Any) -> StreamDescriptor:
        kind = payload_kind(payload)
        logger.debug("adapting %s payload of type %s", kind.value, type(payload))
        return self._adapters[kind](payload)

    def _from_bytes(
        self, data: bytes, content_type: typing.Optional[str] = None
    ) -> StreamDescriptor:
        return StreamDescriptor(
            content_type=content_type,
            content_length=len(data),
            stream=BodyStream.from_bytes(data, chunk_size=self.chunk_size),
        )

    def _adapt_empty(self, payload: None) -> StreamDescriptor:
        return EMPTY_DESCRIPTOR

    def _adapt_url_encoded_form(
        self, payload: typing.Union[URLEncodedForm, typing.Any]
    ) -> StreamDescriptor:
        if not isinstance(payload, URLEncodedForm):
            payload = URLEncodedForm(payload)
        return self._from_bytes(payload.encode())

    def _adapt_blob(self, payload: Blob) -> StreamDescriptor:
        return self._from_bytes(bytes(payload), content_type=payload.type)

    def _adapt_bytes(self, payload: typing.Union[bytes, bytearray]) -> StreamDescriptor:
        # bytes() copies a bytearray so later mutation doesn't leak into the body.
        return self._from_bytes(bytes(payload))

    def _adapt_memory_view(
        self, payload: typing.Union[memoryview, array.array]
    ) -> StreamDescriptor:
        # Only the view's own window, never the whole underlying buffer.
        return self._from_bytes(memoryview(payload).tobytes())

    def _adapt_live_stream(self, payload: typing.Any) -> StreamDescriptor:
        if isinstance(payload, BodyStream):
            stream = payload.tee()
        else:
            stream = BodyStream(payload)
        return StreamDescriptor(content_type=None, content_length=None, stream=stream)

    def _adapt_file(self, payload: typing.IO[typing.Any]) -> StreamDescriptor:
        content_length: typing.Optional[int] = None
        content_type: typing.Optional[str] = None
        begin: typing.Optional[int] = None

        if _is_seekable(payload):
            begin = payload.tell()
            if not isinstance(payload, io.TextIOBase):
                payload.seek(0, os.SEEK_END)
                content_length = payload.tell() - begin
                payload.seek(begin, os.SEEK_SET)

                sample = payload.read(FILETYPE_SAMPLE_SIZE)
                payload.seek(begin, os.SEEK_SET)
                if sample:
                    content_type = filetype.guess_mime(sample)

        # Couldn't guess by the contents of the file, so
        # we try the name of the file as a last-ditch effort.
        name = getattr(payload, "name", None)
        if content_type is None and isinstance(name, (str, os.PathLike)):
            content_type, _ = mimetypes.guess_type(
                os.path.basename(os.fspath(name)), strict=False
            )

        return StreamDescriptor(
            content_type=content_type,
            content_length=content_length,
            stream=BodyStream(self._file_chunks(payload, begin)),
        )

    def _file_chunks(
        self, fp: typing.IO[typing.Any], begin: typing.Optional[int]
    ) -> typing.AsyncIterator[Chunk]:
        chunk_size, encoding = self.chunk_size, self.encoding

        async def _inner() -> typing.AsyncIterable[Chunk]:
            if begin is not None:
                await trio.to_thread.run_sync(fp.seek, begin, os.SEEK_SET)
            while True:
                data = await trio.to_thread.run_sync(fp.read, chunk_size)
                if not data:
                    return
                if isinstance(data, str):
                    data = data.encode(encoding, errors="replace")
                yield data

        return _inner().__aiter__()

    def _adapt_multipart_form(self, payload: MultipartForm) -> StreamDescriptor:
        if self.multipart_encoder is None:
            logger.warning(
                "no multipart encoder configured, sending %r as text", payload
            )
            return self._adapt_text(payload)
        return self.multipart_encoder.adapt(payload)

    def _adapt_text(self, payload: typing.Any) -> StreamDescriptor:
        return self._from_bytes(str(payload).encode(self.encoding, errors="replace"))


def _is_seekable(fp: typing.Any) -> bool:
    seekable = getattr(fp, "seekable", None)
    if seekable is not None:
        return bool(seekable())
    return hasattr(fp, "seek") and hasattr(fp, "tell")


def _is_form_pairs(payload: typing.Any) -> bool:
    """Only a list of (key, value) pairs is a form, any other list is sent as text"""
    return isinstance(payload, list) and all(
        isinstance(item, (tuple, list)) and len(item) == 2 for item in payload
    )
