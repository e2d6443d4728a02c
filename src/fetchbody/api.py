import typing
from .adapter import BodyStreamAdapter
from .collector import BodyCollector
from .models import MultipartEncoder, StreamDescriptor


def adapt(
    payload: typing.Any, *, multipart_encoder: typing.Optional[MultipartEncoder] = None
) -> StreamDescriptor:
    return BodyStreamAdapter(multipart_encoder=multipart_encoder).adapt(payload)


async def collect(stream: typing.Any, max_bytes: int = 0) -> bytes:
    return await BodyCollector(max_bytes=max_bytes).collect(stream)
