"""
Image decode/encode utilities.

Sources arrive as raw bytes (PNG, JPEG, WebP, or PSD) and are decoded to a
fully-loaded RGBA Pillow image that renderers only ever read.  Results are
encoded back to PNG (lossless) or JPEG (quality 0..1) and returned as an
``EncodedImage``.  The ``*_async`` variants run the codec off the event
loop; they are the suspension points of every render coroutine.
"""

import asyncio
import base64
import io
import struct
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from psd_tools import PSDImage

from listing_crop_kit.config import (
    JPEG_BACKGROUND, JPEG_QUALITY_DEFAULT, JPEG_SUBSAMPLING_DEFAULT,
    JPEG_SUBSAMPLING_MAP, OUTPUT_FORMATS, PNG_COMPRESS_LEVEL,
)
from listing_crop_kit.errors import DecodeError

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None

_PSD_SIGNATURE = b"8BPS"

_MIME_TYPES = {"png": "image/png", "jpeg": "image/jpeg"}
_EXTENSIONS = {"png": ".png", "jpeg": ".jpg"}


@dataclass(frozen=True)
class EncodedImage:
    """Encoded image payload plus the format used."""
    data: bytes
    format: str
    width: int
    height: int

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self.format]

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self.format]

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"


def normalize_format(fmt: str) -> str:
    """Map user-facing format names (``PNG``, ``jpg`` ...) to ``png``/``jpeg``."""
    key = str(fmt).strip().lower()
    if key == "jpg":
        key = "jpeg"
    if key not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format {fmt!r}; expected one of {', '.join(OUTPUT_FORMATS)}")
    return key


# =============================================================================
# Decode
# =============================================================================
def decode_image(data: bytes) -> Image.Image:
    """
    Decode raw bytes into a loaded RGBA image.

    PSD files are composited with psd-tools; everything else goes through
    Pillow.  Raises DecodeError when the bytes are not a readable image.
    """
    if not data:
        raise DecodeError("Empty image data")
    try:
        if data[:4] == _PSD_SIGNATURE:
            img = PSDImage.open(io.BytesIO(data)).composite()
            if img is None:
                raise DecodeError("PSD has no visible layers")
        else:
            img = Image.open(io.BytesIO(data))
            img.load()
        return img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError, struct.error) as exc:
        raise DecodeError(f"Failed to load image: {exc}") from exc


def open_image(path: Path) -> Image.Image:
    """Read and decode an image file."""
    return decode_image(Path(path).read_bytes())


def ensure_image(source) -> Image.Image:
    """Accept either raw bytes or an already decoded image."""
    if isinstance(source, Image.Image):
        return source
    if isinstance(source, (bytes, bytearray, memoryview)):
        return decode_image(bytes(source))
    raise TypeError(f"Expected image bytes or PIL.Image, got {type(source).__name__}")


# =============================================================================
# Encode
# =============================================================================
def _pillow_quality(quality: float) -> int:
    """Map a 0..1 quality factor onto Pillow's 1..100 JPEG scale."""
    if not 0.0 <= quality <= 1.0:
        raise ValueError(f"quality must be within [0, 1], got {quality!r}")
    return max(1, min(100, int(round(quality * 100))))


def encode_image(
    img: Image.Image, fmt: str = "png", quality: float = JPEG_QUALITY_DEFAULT,
    subsampling: str = JPEG_SUBSAMPLING_DEFAULT,
) -> EncodedImage:
    """Encode *img* as PNG (quality ignored) or JPEG."""
    fmt = normalize_format(fmt)
    buf = io.BytesIO()
    if fmt == "jpeg":
        rgb = img
        if img.mode in ("RGBA", "LA", "P"):
            rgba = img.convert("RGBA")
            rgb = Image.new("RGB", rgba.size, JPEG_BACKGROUND)
            rgb.paste(rgba, mask=rgba.getchannel("A"))
        elif img.mode != "RGB":
            rgb = img.convert("RGB")
        rgb.save(
            buf, "JPEG",
            quality=_pillow_quality(quality),
            optimize=True,
            subsampling=JPEG_SUBSAMPLING_MAP[subsampling],
        )
    else:
        img.save(buf, "PNG", compress_level=PNG_COMPRESS_LEVEL)
    return EncodedImage(buf.getvalue(), fmt, img.width, img.height)


# =============================================================================
# Async codec entry points
# =============================================================================
async def decode_image_async(source) -> Image.Image:
    if isinstance(source, Image.Image):
        return source
    return await asyncio.to_thread(ensure_image, source)


async def encode_image_async(img: Image.Image, fmt: str = "png",
                             quality: float = JPEG_QUALITY_DEFAULT) -> EncodedImage:
    return await asyncio.to_thread(encode_image, img, fmt, quality)


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1
