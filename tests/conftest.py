import typing
import pytest


async def read_all(stream: typing.Any) -> bytes:
    """Reads a stream chunk by chunk without going through the collector"""
    data = bytearray()
    async for chunk in stream:
        data += chunk
    return bytes(data)


@pytest.fixture
def gif_bytes() -> bytes:
    return (
        b"GIF89a\x01\x00\x01\x00\x00\x00\x00!\xf9\x04\x01\x00"
        b"\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02"
    )
