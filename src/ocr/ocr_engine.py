"""
OCR Engine for LIVE session screenshots
Sends an image to the configured provider (OCR.Space or Google Gemini Vision)
and reports the recognized text. Retrying is the caller's job.
"""
import io
import os
from dataclasses import dataclass
from typing import Optional

import requests
import config
from utils.logger import get_logger


@dataclass
class OCRResult:
    """Outcome of a single OCR call."""
    success: bool
    raw_text: Optional[str] = None
    error_message: Optional[str] = None
    # False for credential/configuration failures that a retry cannot fix
    retryable: bool = True

    @classmethod
    def ok(cls, raw_text: str) -> 'OCRResult':
        return cls(success=True, raw_text=raw_text)

    @classmethod
    def failed(cls, error_message: str, retryable: bool = True) -> 'OCRResult':
        return cls(success=False, error_message=error_message, retryable=retryable)


GEMINI_OCR_PROMPT = """
Extract ALL visible text from this livestream dashboard screenshot with 100% accuracy.

INSTRUCTIONS:
1. Scan the ENTIRE image from top to bottom, left to right
2. Keep every label next to its value (e.g. "GMV Langsung Rp1.234.567", "Durasi 1 jam 30 menit")
3. Keep currency markers ("Rp"), thousands separators and K/M suffixes exactly as shown
4. Do NOT summarize, translate, calculate or interpret - just extract exactly what you see

OUTPUT FORMAT:
Plain text, preserving line breaks.
"""


class OCREngine:
    """OCR client with two interchangeable providers."""

    def __init__(self, provider: str = None, timeout_ms: int = None, logger=None,
                 ocrspace_api_key: str = None, google_api_key: str = None):
        self.provider = (provider or config.OCR_PROVIDER).lower()
        self.timeout_seconds = (timeout_ms or config.OCR_TIMEOUT_MS) / 1000
        self.ocrspace_api_key = ocrspace_api_key if ocrspace_api_key is not None else config.OCRSPACE_API_KEY
        self.google_api_key = google_api_key if google_api_key is not None else config.GOOGLE_API_KEY
        self.logger = logger or get_logger()
        self._gemini_model = None

    def extract_text(self, image_path: str = None, image_bytes: bytes = None,
                     image_url: str = None) -> OCRResult:
        """
        Recognize text in one image.

        Args:
            image_path: Local image file
            image_bytes: Raw image content (used when no path is given)
            image_url: Public image URL (OCR.Space only)

        Returns:
            OCRResult; never raises for provider errors
        """
        if image_path:
            if not os.path.exists(image_path):
                return OCRResult.failed(f"Image not found: {image_path}", retryable=False)
            with open(image_path, 'rb') as fh:
                image_bytes = fh.read()

        if not image_bytes and not image_url:
            return OCRResult.failed("No valid image path, bytes or URL provided", retryable=False)

        if self.provider == 'ocrspace':
            return self._extract_ocrspace(image_bytes, image_url)
        if self.provider == 'gemini':
            if not image_bytes:
                return OCRResult.failed("Gemini provider needs image bytes, not a URL", retryable=False)
            return self._extract_gemini(image_bytes)
        return OCRResult.failed(f"Unknown OCR provider: {self.provider}", retryable=False)

    # ------------------------------------------------------------------
    # OCR.Space
    # ------------------------------------------------------------------

    def _extract_ocrspace(self, image_bytes: Optional[bytes], image_url: Optional[str]) -> OCRResult:
        if not self.ocrspace_api_key:
            return OCRResult.failed("OCRSPACE_API_KEY not configured", retryable=False)

        form = {
            'apikey': self.ocrspace_api_key,
            'language': 'eng',
            'isOverlayRequired': 'false',
            'detectOrientation': 'true',
            'scale': 'true',
            'OCREngine': '2',  # engine 2 reads digits better
        }
        files = None
        if image_bytes:
            files = {'file': ('screenshot.jpg', image_bytes, 'image/jpeg')}
        else:
            form['url'] = image_url

        try:
            response = requests.post(
                config.OCRSPACE_API_URL, data=form, files=files, timeout=self.timeout_seconds
            )
        except requests.Timeout:
            return OCRResult.failed(f"OCR request timed out after {self.timeout_seconds:.0f}s")
        except requests.RequestException as e:
            return OCRResult.failed(f"OCR request failed: {e}")

        if response.status_code in (401, 403):
            return OCRResult.failed(
                f"OCR provider rejected the API key (HTTP {response.status_code})", retryable=False
            )
        if response.status_code >= 400:
            return OCRResult.failed(f"OCR provider returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            return OCRResult.failed("Empty or non-JSON response from OCR.Space")

        if not isinstance(data, dict):
            # OCR.Space answers bad keys with a bare JSON string
            message = str(data)
            return OCRResult.failed(message, retryable='api key' not in message.lower())

        if data.get('IsErroredOnProcessing'):
            errors = data.get('ErrorMessage') or ['Unknown OCR error']
            message = errors[0] if isinstance(errors, list) else str(errors)
            return OCRResult.failed(message, retryable='api key' not in message.lower())

        parsed = data.get('ParsedResults') or []
        raw_text = parsed[0].get('ParsedText', '') if parsed else ''
        if not raw_text.strip():
            return OCRResult.failed("No text detected in image")

        return OCRResult.ok(raw_text)

    # ------------------------------------------------------------------
    # Google Gemini Vision
    # ------------------------------------------------------------------

    def _get_gemini_model(self):
        if self._gemini_model is None:
            import google.generativeai as genai
            genai.configure(api_key=self.google_api_key)
            self._gemini_model = genai.GenerativeModel(config.GEMINI_MODEL)
        return self._gemini_model

    def _extract_gemini(self, image_bytes: bytes) -> OCRResult:
        if not self.google_api_key:
            return OCRResult.failed("GOOGLE_API_KEY not configured", retryable=False)

        from PIL import Image
        from google.api_core import exceptions as google_exceptions

        try:
            image = Image.open(io.BytesIO(image_bytes))
            response = self._get_gemini_model().generate_content(
                [GEMINI_OCR_PROMPT, image],
                request_options={'timeout': self.timeout_seconds},
            )
            raw_text = response.text if response.text else ""
        except (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated) as e:
            return OCRResult.failed(f"Gemini rejected the API key: {e}", retryable=False)
        except Exception as e:
            return OCRResult.failed(f"Gemini OCR failed: {e}")

        if not raw_text.strip():
            return OCRResult.failed("No text detected in image")
        return OCRResult.ok(raw_text)
