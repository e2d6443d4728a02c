import logging
import typing
from .exceptions import BufferConstructionError, PrematureClose, SizeLimitExceeded
from .streams import Chunk
from .utils import is_known_encoding

logger = logging.getLogger(__name__)


class BodyCollector:
    """Drains a body stream into memory, enforcing an optional size limit.
    A 'max_bytes' of 0 means no limit.
    """

    def __init__(self, *, max_bytes: int = 0, encoding: str = "utf-8"):
        _check_max_bytes(max_bytes)
        known_encoding = is_known_encoding(encoding)
        if known_encoding is None:
            raise ValueError(f"unknown encoding '{encoding}'")

        self.max_bytes = max_bytes
        self.encoding = known_encoding

    async def collect(
        self, stream: typing.Any, max_bytes: typing.Optional[int] = None
    ) -> bytes:
        """Reads 'stream' until it ends and hands back everything it
        yielded as one bytes object. Exceeding the limit destroys the
        stream and raises 'SizeLimitExceeded', a stream that stops
        without ending raises 'PrematureClose'.
        """
        if max_bytes is None:
            max_bytes = self.max_bytes
        else:
            _check_max_bytes(max_bytes)

        # Nothing to read, this returns without ever yielding to the event loop.
        if stream is None or not hasattr(stream, "__aiter__"):
            return b""

        chunks: typing.List[Chunk] = []
        received = 0
        async for chunk in stream:
            if max_bytes and received + len(chunk) > max_bytes:
                error = SizeLimitExceeded(max_bytes)
                logger.info(
                    "body stream exceeded %d bytes, terminating the stream", max_bytes
                )
                destroy = getattr(stream, "destroy", None)
                if callable(destroy):
                    destroy(error)
                raise error

            received += len(chunk)
            chunks.append(chunk)

        # Streams without an 'ended' flag are trusted once iteration stops.
        if getattr(stream, "ended", True) is False:
            logger.info("body stream closed after %d bytes without ending", received)
            raise PrematureClose()

        data = self._join(chunks)
        logger.debug("collected %d bytes from %r", len(data), stream)
        return data

    def _join(self, chunks: typing.List[Chunk]) -> bytes:
        try:
            if chunks and isinstance(chunks[0], str):
                return "".join(typing.cast(typing.List[str], chunks)).encode(
                    self.encoding
                )
            return b"".join(typing.cast(typing.List[bytes], chunks))
        except (TypeError, UnicodeError) as e:
            raise BufferConstructionError(str(e), error=e) from e


def _check_max_bytes(max_bytes: int) -> None:
    if max_bytes < 0:
        raise ValueError(f"max_bytes must be 0 or positive, not {max_bytes}")
