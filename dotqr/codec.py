"""Image codecs for raster artifacts."""

import io

from PIL import Image

JPEG_QUALITY = 90


def encode_png(image: Image.Image) -> bytes:
    """Lossless PNG."""
    buf = io.BytesIO()
    image.save(buf, format="PNG", optimize=True)
    return buf.getvalue()


def encode_jpeg(image: Image.Image, quality: int = JPEG_QUALITY) -> bytes:
    """High-quality JPEG; alpha, if any, is flattened onto white."""
    if image.mode != "RGB":
        flat = Image.new("RGB", image.size, (255, 255, 255))
        flat.paste(image, mask=image.getchannel("A") if "A" in image.getbands() else None)
        image = flat
    buf = io.BytesIO()
    image.save(buf, format="JPEG", quality=quality, subsampling=0)
    return buf.getvalue()


ENCODERS = {
    "png": encode_png,
    "jpeg": encode_jpeg,
}
