import asyncio
import io
import logging

from PIL import Image, UnidentifiedImageError

from ...application.ports.image_transformer import ImageTransformer
from ...exceptions import TransformError
from ...models import TransformParams

logger = logging.getLogger(__name__)


class PillowTransformer(ImageTransformer):
    """Resize by width and encode to WebP.

    With a quality outside 0..100 the WebP step is skipped and the image is
    written back in its own format, so only the resize (if any) applies.
    """

    async def transform(self, data: bytes, params: TransformParams) -> bytes:
        return await asyncio.to_thread(self.transform_sync, data, params)

    def transform_sync(self, data: bytes, params: TransformParams) -> bytes:
        try:
            with Image.open(io.BytesIO(data)) as img:
                source_format = img.format or "PNG"
                img.load()
                out = img
                if params.width:
                    out = _resize_to_width(img, params.width)
                buf = io.BytesIO()
                if params.quality_in_range:
                    out.save(buf, format="WEBP", quality=params.quality)
                else:
                    out = _ensure_mode_for(out, source_format)
                    out.save(buf, format=source_format)
                return buf.getvalue()
        except UnidentifiedImageError as e:
            raise TransformError("Input buffer contains unsupported image format") from e
        except (OSError, ValueError) as e:
            raise TransformError(f"Error processing image: {e}") from e


def _resize_to_width(img: Image.Image, width: int) -> Image.Image:
    height = max(1, round(img.height * width / img.width))
    return img.resize((width, height), Image.Resampling.LANCZOS)


def _ensure_mode_for(img: Image.Image, fmt: str) -> Image.Image:
    # JPEG cannot carry alpha or palette data
    if fmt.upper() in ("JPEG", "JPG") and img.mode in ("RGBA", "LA", "P"):
        return img.convert("RGB")
    return img
