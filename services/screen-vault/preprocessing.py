"""Image preprocessing before OCR.

Screenshots are flat and axis-aligned, so only the steps that help Tesseract
are applied:
1. Decode image bytes
2. Convert to grayscale
3. Upscale small screenshots so glyphs reach a readable height
4. CLAHE contrast normalization (dark-mode apps, low contrast themes)
5. Encode as lossless PNG

Each step degrades gracefully; if it fails, the image from the previous step
continues.
"""

import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# Screenshots narrower than this are upscaled before OCR
MIN_OCR_WIDTH = 1000
MAX_UPSCALE = 3.0


def preprocess(image_bytes: bytes) -> bytes:
    """Run the full preprocessing pipeline on raw image bytes.

    Returns PNG bytes. If the image cannot be decoded, returns the original bytes.
    """
    img = _decode(image_bytes)
    if img is None:
        logger.warning("preprocessing: could not decode image, returning original")
        return image_bytes

    img = _to_grayscale(img)
    img = _upscale(img)
    img = _clahe_normalize(img)
    return _encode(img, fallback=image_bytes)


def _decode(image_bytes: bytes) -> np.ndarray | None:
    """Decode raw bytes into an OpenCV BGR array."""
    arr = np.frombuffer(image_bytes, dtype=np.uint8)
    if arr.size == 0:
        return None
    return cv2.imdecode(arr, cv2.IMREAD_COLOR)


def _to_grayscale(img: np.ndarray) -> np.ndarray:
    if img.ndim == 2:
        return img
    try:
        return cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)
    except Exception as e:
        logger.warning("preprocessing: grayscale conversion failed: %s", e)
        return img


def _upscale(img: np.ndarray) -> np.ndarray:
    """Enlarge narrow screenshots (phone captures) with cubic interpolation."""
    try:
        h, w = img.shape[:2]
        if w >= MIN_OCR_WIDTH:
            return img

        scale = min(MIN_OCR_WIDTH / w, MAX_UPSCALE)
        logger.debug("preprocessing: upscaling %dx%d by %.2f", w, h, scale)
        return cv2.resize(img, (int(w * scale), int(h * scale)), interpolation=cv2.INTER_CUBIC)

    except Exception as e:
        logger.warning("preprocessing: upscale failed: %s", e)
        return img


def _clahe_normalize(img: np.ndarray) -> np.ndarray:
    """Apply CLAHE to a grayscale image."""
    try:
        clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
        return clahe.apply(img)

    except Exception as e:
        logger.warning("preprocessing: CLAHE failed: %s", e)
        return img


def _encode(img: np.ndarray, fallback: bytes) -> bytes:
    """Encode image as PNG bytes."""
    try:
        success, buf = cv2.imencode(".png", img)
        if success:
            return buf.tobytes()
    except Exception as e:
        logger.warning("preprocessing: PNG encode failed: %s", e)

    return fallback
