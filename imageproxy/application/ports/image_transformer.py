from typing import Protocol

from ...models import TransformParams


class ImageTransformer(Protocol):
    async def transform(self, data: bytes, params: TransformParams) -> bytes:
        ...
