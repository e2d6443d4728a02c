import codecs
import functools
import typing

CHUNK_SIZE = 65536


def _int_to_urlenc() -> typing.Dict[int, bytes]:
    """Creates a mapping of ordinals to bytes encoded via url-encoding"""
    values = {}
    special = {0x2A, 0x2D, 0x2E, 0x5F}
    for byte in range(256):
        if (
            (0x61 <= byte <= 0x7A)
            or (0x41 <= byte <= 0x5A)
            or (0x30 <= byte <= 0x39)
            or (byte in special)
        ):  # Keep the ASCII
            values[byte] = bytes((byte,))
        elif byte == 0x20:  # Space -> '+'
            values[byte] = b"+"
        else:  # Percent-encoded
            values[byte] = b"%" + INT_TO_HEX[byte].encode()
    return values


INT_TO_HEX: typing.Dict[int, str] = {x: hex(x)[2:].upper().zfill(2) for x in range(256)}
INT_TO_URLENC = _int_to_urlenc()


def urlencode_str(value: str) -> bytes:
    return b"".join([INT_TO_URLENC[byte] for byte in value.encode("utf-8")])


@functools.lru_cache(128)
def is_known_encoding(encoding: str) -> typing.Optional[str]:
    """Given an encoding type, return either it's normalized name
    if we understand the codec otherwise return 'None'.
    """
    try:
        return codecs.lookup(encoding).name
    except LookupError:
        return None


T = typing.TypeVar("T")


async def iter_next(iterator: typing.AsyncIterator[T]) -> T:
    return await iterator.__anext__()


def aiter_chunks(
    chunks: typing.Union[typing.AsyncIterable[T], typing.Iterable[T]]
) -> typing.AsyncIterator[T]:
    """Gives back an async iterator for either a sync or an async iterable.
    Sync iterables are consumed lazily, one item per step.
    """
    if hasattr(chunks, "__aiter__"):
        return typing.cast(typing.AsyncIterable[T], chunks).__aiter__()

    async def _inner() -> typing.AsyncIterable[T]:
        for chunk in typing.cast(typing.Iterable[T], chunks):
            yield chunk

    return _inner().__aiter__()
