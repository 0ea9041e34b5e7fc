"""HTTP client for the OCR engine service.

Uses httpx with configurable timeouts and tenacity for retry with
exponential backoff on 503 (engine still starting) and connection errors.
"""

import base64
import logging

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import settings

logger = logging.getLogger(__name__)


class OCRServiceUnavailable(Exception):
    """OCR service is temporarily unavailable (retryable: 503, connection error, read timeout)."""


class OCRServiceError(Exception):
    """OCR service returned a non-retryable error (400, 500) or a malformed reply."""


class OCRClient:
    """HTTP client for the OCR engine with retry and backoff."""

    def __init__(
        self,
        base_url: str | None = None,
        language: str | None = None,
        timeout: int | None = None,
        connect_timeout: int | None = None,
        retry_attempts: int | None = None,
        retry_delay: float | None = None,
        retry_backoff: float | None = None,
    ):
        self._base_url = (base_url or settings.OCR_SERVICE_URL).rstrip("/")
        self._language = language or settings.OCR_LANGUAGE
        self._retry_attempts = retry_attempts if retry_attempts is not None else settings.OCR_RETRY_ATTEMPTS
        self._retry_delay = retry_delay if retry_delay is not None else settings.OCR_RETRY_DELAY
        self._retry_backoff = retry_backoff if retry_backoff is not None else settings.OCR_RETRY_BACKOFF

        read_timeout = timeout if timeout is not None else settings.OCR_TIMEOUT_SECONDS
        conn_timeout = connect_timeout if connect_timeout is not None else settings.OCR_CONNECT_TIMEOUT

        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=httpx.Timeout(
                connect=float(conn_timeout),
                read=float(read_timeout),
                write=30.0,
                pool=30.0,
            ),
        )

    @property
    def language(self) -> str:
        return self._language

    def close(self):
        self._client.close()

    def recognize(self, image_bytes: bytes, language: str | None = None) -> tuple[str, float]:
        """Send an image to the OCR engine.

        Returns (text, confidence) with confidence on a 0-100 scale.
        Raises OCRServiceUnavailable (retryable) or OCRServiceError (non-retryable).
        """
        payload = {
            "image_b64": base64.b64encode(image_bytes).decode(),
            "language": language or self._language,
        }
        return self._recognize_with_retry(payload)

    def _recognize_with_retry(self, payload: dict) -> tuple[str, float]:
        @retry(
            retry=retry_if_exception_type(OCRServiceUnavailable),
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(
                multiplier=self._retry_delay,
                exp_base=self._retry_backoff,
                max=30,
            ),
            reraise=True,
            before_sleep=lambda state: logger.warning(
                "OCR service unavailable, retrying in %.1fs (attempt %d/%d)",
                state.next_action.sleep,  # type: ignore[union-attr]
                state.attempt_number,
                self._retry_attempts,
            ),
        )
        def _do_recognize() -> tuple[str, float]:
            return self._send_recognize(payload)

        return _do_recognize()

    def _send_recognize(self, payload: dict) -> tuple[str, float]:
        """Send a single recognition request."""
        try:
            resp = self._client.post("/recognize", json=payload)
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            logger.warning("OCR service connection failed: %s", e)
            raise OCRServiceUnavailable(f"Cannot connect to OCR service: {e}") from e
        except httpx.ReadTimeout as e:
            logger.warning("OCR service read timeout: %s", e)
            raise OCRServiceUnavailable(f"OCR service read timeout: {e}") from e
        except httpx.HTTPError as e:
            logger.error("OCR service HTTP error: %s", e)
            raise OCRServiceError(f"OCR service HTTP error: {e}") from e

        if resp.status_code == 503:
            detail = _detail(resp, "Service unavailable")
            logger.warning("OCR service returned 503: %s", detail)
            raise OCRServiceUnavailable(detail)

        if resp.status_code != 200:
            detail = _detail(resp, f"HTTP {resp.status_code}")
            logger.error("OCR service error %d: %s", resp.status_code, detail)
            raise OCRServiceError(detail)

        try:
            data = resp.json()
            return str(data["text"]), float(data.get("confidence", 0.0))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error("OCR service sent a malformed reply: %s", e)
            raise OCRServiceError(f"Malformed OCR response: {e}") from e

    def health(self) -> dict:
        """Check OCR service health. Returns health dict, never raises."""
        try:
            resp = self._client.get("/health", timeout=10.0)
            return resp.json()
        except Exception as e:
            logger.warning("OCR health check failed: %s", e)
            return {"status": "unreachable", "error": str(e)}


def _detail(resp: httpx.Response, default: str) -> str:
    try:
        return resp.json().get("detail", default)
    except (AttributeError, ValueError):
        return default
