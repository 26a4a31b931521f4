"""
Image text extraction (OCR) for MisIntel.
"""

import asyncio
import io
import logging

import pytesseract
from PIL import Image

from tools.base import BaseTool
from exceptions import OCRError

logger = logging.getLogger(__name__)


class ImageTextExtractor(BaseTool):
    """Tesseract OCR over uploaded screenshots and images."""

    name = "image_ocr"
    description = "Extract text from screenshots so the claim inside can be checked"

    MIN_SIDE = 300
    TESSERACT_CONFIG = "--psm 6"

    def _read(self, image_bytes: bytes) -> str:
        image = Image.open(io.BytesIO(image_bytes))
        image = image.convert("RGB")
        # Upscale small images for better OCR
        if image.width < self.MIN_SIDE or image.height < self.MIN_SIDE:
            image = image.resize((image.width * 2, image.height * 2), Image.Resampling.LANCZOS)
        return pytesseract.image_to_string(image, config=self.TESSERACT_CONFIG).strip()

    async def extract(self, image_bytes: bytes) -> str:
        """
        Run OCR on an image.

        Raises:
            OCRError: if the image cannot be decoded or the engine fails
        """
        if not image_bytes:
            raise OCRError("empty image")
        try:
            return await asyncio.to_thread(self._read, image_bytes)
        except Exception as e:
            logger.error("OCR error: %s", e)
            raise OCRError(str(e)) from e
