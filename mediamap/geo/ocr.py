"""OCR text recognition for screenshots of photo properties dialogs."""

import logging
from typing import Optional, Protocol

import pytesseract
from PIL import Image, ImageOps

from mediamap.geo.errors import LocationPipelineError

logger = logging.getLogger(__name__)


class OcrUnavailableError(LocationPipelineError):
    """Raised when the Tesseract binary cannot be run."""
    pass


class TextRecognizer(Protocol):
    def recognize(self, image: Image.Image) -> str:
        ...


class TesseractRecognizer:
    """Full-frame Tesseract OCR via ``pytesseract``.

    Args:
        language: Tesseract language code(s), e.g. ``"eng"``.
        timeout: Seconds before pytesseract kills the tesseract process.
        config: Extra command-line flags passed to tesseract.
    """

    def __init__(self, language: str = "eng", timeout: Optional[float] = None, config: str = "--psm 6"):
        self.language = language
        self.timeout = timeout
        self.config = config

    def recognize(self, image: Image.Image) -> str:
        # Greyscale improves recognition of dialog text on coloured backgrounds
        prepared = ImageOps.grayscale(ImageOps.exif_transpose(image))
        try:
            text = pytesseract.image_to_string(
                prepared,
                lang=self.language,
                config=self.config,
                timeout=self.timeout or 0,
            )
        except pytesseract.TesseractNotFoundError as exc:
            raise OcrUnavailableError("Tesseract is not installed or not on PATH") from exc
        except RuntimeError as exc:
            # pytesseract signals its own timeout with a bare RuntimeError
            raise OcrUnavailableError(f"Tesseract failed: {exc}") from exc

        logger.debug(f"OCR produced {len(text)} characters")
        return text
