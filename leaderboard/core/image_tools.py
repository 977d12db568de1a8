"""Profile image compression for the record store.

Images are scaled so the longer side is at most MAX_IMAGE_SIDE and
re-encoded as JPEG, then kept as base64 data URLs.
"""

import base64

import fitz  # PyMuPDF


MAX_IMAGE_SIDE = 400
JPEG_QUALITY = 70


def _scaled_size(width: int, height: int, max_side: int) -> tuple[int, int]:
    """Fit (width, height) inside a max_side square, keeping aspect ratio."""
    if width > height:
        if width > max_side:
            height = height * max_side / width
            width = max_side
    elif height > max_side:
        width = width * max_side / height
        height = max_side
    return max(1, int(round(width))), max(1, int(round(height)))


def compress_image(image_path: str, max_side: int = MAX_IMAGE_SIDE,
                   quality: int = JPEG_QUALITY) -> str:
    """Load an image file and return a 'data:image/jpeg;base64,...' URL.

    Raises:
        ValueError: If the file cannot be decoded as an image.
    """
    try:
        pix = fitz.Pixmap(image_path)
    except Exception as e:
        raise ValueError(f'Failed to load image file: {image_path}') from e

    # JPEG has no alpha channel and needs RGB or gray
    if pix.alpha:
        pix = fitz.Pixmap(pix, 0)
    if pix.colorspace and pix.colorspace.n not in (1, 3):
        pix = fitz.Pixmap(fitz.csRGB, pix)

    width, height = _scaled_size(pix.width, pix.height, max_side)
    if (width, height) != (pix.width, pix.height):
        pix = fitz.Pixmap(pix, width, height, None)

    data = pix.tobytes('jpg', jpg_quality=quality)
    return 'data:image/jpeg;base64,' + base64.b64encode(data).decode('ascii')
