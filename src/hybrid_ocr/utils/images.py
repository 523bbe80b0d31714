"""Image clean-up before recognition (Pillow)."""

from __future__ import annotations

import io

from PIL import Image, ImageFilter, ImageOps


def optimize_for_ocr(
    image_bytes: bytes,
    *,
    grayscale: bool = True,
    enhance_contrast: bool = True,
    sharpen: bool = True,
    max_size: int = 4000,
    width: int | None = None,
    height: int | None = None,
) -> bytes:
    """Return *image_bytes* re-encoded after grayscale / contrast / sharpen / resize.

    The output keeps the input's encoding (PNG stays PNG, JPEG stays JPEG).
    """
    with Image.open(io.BytesIO(image_bytes)) as src:
        fmt = (src.format or "PNG").upper()
        image = src.convert("RGB")

    if grayscale:
        image = ImageOps.grayscale(image)
    if enhance_contrast:
        image = ImageOps.autocontrast(image)
    if width or height:
        image = _resize(image, width, height)
    if max(image.size) > max_size:
        image.thumbnail((max_size, max_size))
    if sharpen:
        image = image.filter(ImageFilter.SHARPEN)

    out = io.BytesIO()
    if fmt in ("JPEG", "JPG"):
        image.save(out, format="JPEG", quality=90)
    else:
        image.save(out, format="PNG", optimize=True)
    return out.getvalue()


def _resize(image: Image.Image, width: int | None, height: int | None) -> Image.Image:
    w, h = image.size
    if width and height:
        target = (width, height)
    elif width:
        target = (width, max(1, round(h * width / w)))
    else:
        target = (max(1, round(w * height / h)), height)
    return image.resize(target, Image.Resampling.LANCZOS)
