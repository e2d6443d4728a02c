import collections
import logging
import typing
import trio
from .utils import CHUNK_SIZE, aiter_chunks, iter_next

logger = logging.getLogger(__name__)

Chunk = typing.Union[bytes, bytearray, memoryview, str]
ChunksType = typing.Union[typing.AsyncIterable[Chunk], typing.Iterable[Chunk]]


class BodyStream(trio.abc.ReceiveStream):
    """Single-use stream of body chunks. Wraps any sync or async
    iterable of chunks and pulls from it lazily, one chunk per
    'receive_some()' call so nothing is buffered ahead of the reader.

    'ended' only becomes True once the wrapped iterable is exhausted,
    so a reader can tell a finished body apart from one that was cut
    short with 'destroy()'.
    """

    def __init__(self, chunks: ChunksType = ()):
        self._chunks: typing.AsyncIterator[Chunk] = aiter_chunks(chunks)
        self._pending: typing.Optional[Chunk] = None
        self._ended = False
        self._destroyed = False
        self._closed = False
        self._error: typing.Optional[BaseException] = None
        self._receiving = False

    @classmethod
    def from_bytes(cls, data: bytes, chunk_size: int = CHUNK_SIZE) -> "BodyStream":
        """Streams 'data' in slices of at most 'chunk_size' bytes"""

        def _inner() -> typing.Iterable[bytes]:
            for start in range(0, len(data), chunk_size):
                yield data[start : start + chunk_size]

        return cls(_inner())

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    async def receive_some(self, max_bytes: typing.Optional[int] = None) -> Chunk:
        """Gets the next chunk. An empty chunk means there is nothing
        more to read, either because the body ended or the stream
        was destroyed.
        """
        if max_bytes is not None and max_bytes < 1:
            raise ValueError("max_bytes must be >= 1")
        if self._closed:
            raise trio.ClosedResourceError("this BodyStream was closed")
        if self._receiving:
            raise trio.BusyResourceError(
                "another task is already receiving from this BodyStream"
            )

        self._receiving = True
        try:
            await trio.lowlevel.checkpoint()
            chunk = await self._next_chunk()
        finally:
            self._receiving = False

        if max_bytes is not None and len(chunk) > max_bytes:
            chunk, self._pending = chunk[:max_bytes], chunk[max_bytes:]
        return chunk

    async def _next_chunk(self) -> Chunk:
        while True:
            if self._destroyed:
                if self._error is not None:
                    raise self._error
                return b""
            if self._pending is not None:
                chunk, self._pending = self._pending, None
                return chunk
            if self._ended:
                return b""

            try:
                chunk = await iter_next(self._chunks)
            except StopAsyncIteration:
                self._ended = True
                continue
            except _UpstreamBroken:
                self.destroy()
                continue
            except BaseException as e:
                # The source can't be resumed after raising, including when
                # a read was cancelled, so it must never read as 'ended'.
                self.destroy(e if isinstance(e, Exception) else None)
                raise

            # Empty chunks would read as end-of-stream so they're dropped.
            if chunk:
                self._pending = chunk

    def destroy(self, error: typing.Optional[BaseException] = None) -> None:
        """Stops the stream. Any following read raises 'error', or
        reads as end-of-stream if no error is given. The stream is
        never marked as 'ended' in that case.
        """
        if self._destroyed:
            return
        logger.debug("body stream destroyed (error=%r)", error)
        self._destroyed = True
        self._error = error
        self._pending = None

        detach = getattr(self._chunks, "detach", None)
        if detach is not None:
            detach()

    async def aclose(self) -> None:
        self._closed = True
        self._pending = None
        aclose = getattr(self._chunks, "aclose", None)
        if aclose is not None:
            await aclose()
        await trio.lowlevel.checkpoint()

    def tee(self) -> "BodyStream":
        """Creates a duplicate of the rest of this stream. Both this
        stream and the duplicate yield every chunk not yet read, and
        each can be read at its own pace.
        """
        if self._closed:
            raise trio.ClosedResourceError("this BodyStream was closed")
        if self._receiving:
            raise trio.BusyResourceError(
                "can't tee a BodyStream while another task is receiving from it"
            )
        if self._destroyed:
            duplicate = BodyStream()
            duplicate.destroy(self._error)
            return duplicate

        upstream, pending = self._chunks, self._pending

        async def _source() -> typing.AsyncIterable[Chunk]:
            if pending is not None:
                yield pending
            while True:
                try:
                    chunk = await iter_next(upstream)
                except StopAsyncIteration:
                    return
                yield chunk

        fanout = _Fanout(_source().__aiter__())
        self._chunks = fanout.branch()
        self._pending = None
        return BodyStream(fanout.branch())

    def __repr__(self) -> str:
        if self._closed:
            state = "closed"
        elif self._destroyed:
            state = "destroyed"
        elif self._ended:
            state = "ended"
        else:
            state = "open"
        return f"<BodyStream [{state}]>"


class _UpstreamBroken(Exception):
    """Raised by a branch when a read of the shared upstream was
    interrupted, so the rest of the body can never be delivered.
    """


class _Fanout:
    """Pulls chunks from one upstream iterator and hands every
    chunk to all attached branches.
    """

    def __init__(self, upstream: typing.AsyncIterator[Chunk]):
        self._upstream = upstream
        self._branches: typing.List["_Branch"] = []
        self._lock = trio.Lock()
        self._exhausted = False
        self._broken = False
        self._error: typing.Optional[Exception] = None

    def branch(self) -> "_Branch":
        branch = _Branch(self)
        self._branches.append(branch)
        return branch

    def detach(self, branch: "_Branch") -> None:
        self._branches = [b for b in self._branches if b is not branch]

    async def _pull(self) -> None:
        try:
            chunk = await iter_next(self._upstream)
        except StopAsyncIteration:
            self._exhausted = True
        except Exception as e:
            self._error = e
            raise
        except BaseException:
            # A cancelled pull finalizes the upstream part way through.
            self._broken = True
            raise
        else:
            for branch in self._branches:
                branch._queue.append(chunk)


class _Branch:
    """One reader's view of a '_Fanout', queueing the chunks it hasn't read yet"""

    def __init__(self, fanout: _Fanout):
        self._fanout = fanout
        self._queue: typing.Deque[Chunk] = collections.deque()
        self._detached = False

    def __aiter__(self) -> "_Branch":
        return self

    async def __anext__(self) -> Chunk:
        fanout = self._fanout
        while True:
            if self._queue:
                return self._queue.popleft()
            if fanout._error is not None:
                raise fanout._error
            if fanout._broken:
                raise _UpstreamBroken()
            if fanout._exhausted or self._detached:
                raise StopAsyncIteration
            async with fanout._lock:
                # Another branch may have pulled while we waited.
                if not (
                    self._queue
                    or fanout._exhausted
                    or fanout._broken
                    or fanout._error is not None
                ):
                    await fanout._pull()

    def detach(self) -> None:
        """Stops receiving chunks and drops the ones not yet read"""
        self._detached = True
        self._queue.clear()
        self._fanout.detach(self)

    async def aclose(self) -> None:
        self.detach()
