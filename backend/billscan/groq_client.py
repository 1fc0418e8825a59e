"""
Groq API client: wrapper for supplier-bill extraction.

The vision model is called for ONE purpose: transcribe the line items of a
photographed bill into JSON. It never touches the database; whatever it
returns is validated, staged and confirmed by a person before any medicine
is created.
"""

import logging
import time
from typing import Optional

from groq import Groq, APIError, APITimeoutError, RateLimitError

from medai.core.config import settings
from billscan.prompts import BILL_EXTRACTION_PROMPT

# NEVER log API keys or image content
logger = logging.getLogger(__name__)


class GroqClient:
    """
    Minimal wrapper for Groq chat completions with image input.

    - Temperature: 0 (same bill, same output)
    - JSON mode: response must be a single JSON object
    - Retries: 2 on timeouts and rate limits, none on other API errors

    Returns the raw JSON string, or None on any error.
    """

    TEMPERATURE = 0
    TIMEOUT_SECONDS = 30  # bills with many rows take a while
    BACKOFF_SECONDS = {APITimeoutError: 0.5, RateLimitError: 1.0}

    def __init__(self, api_key: str = None, model: str = None):
        api_key = api_key if api_key is not None else settings.GROQ_API_KEY
        self.model = model or settings.GROQ_VISION_MODEL

        if not api_key:
            logger.warning(
                "GROQ_API_KEY not found in environment. "
                "Bill scanning will be DISABLED. "
                "Add your key to backend/.env file."
            )
            self.client = None
        else:
            self.client = Groq(api_key=api_key, timeout=self.TIMEOUT_SECONDS)
            logger.info("Groq client initialized for bill extraction")

    def is_available(self) -> bool:
        """Check if Groq client is ready to use."""
        return self.client is not None

    def extract_bill(self, image_b64: str, mime_type: str = "image/jpeg", max_retries: int = 2) -> Optional[str]:
        """
        Send a base64-encoded bill image and return the model's JSON text.

        Args:
            image_b64: Base64 image content (no data: prefix)
            mime_type: Image MIME type for the data URL
            max_retries: Number of retries for transient failures

        Returns:
            Raw JSON string from the model, or None if anything failed
        """
        if not self.is_available():
            logger.debug("Groq client not available - skipping bill extraction")
            return None

        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": BILL_EXTRACTION_PROMPT},
                    {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_b64}"}},
                ],
            }
        ]

        for attempt in range(max_retries + 1):
            try:
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.TEMPERATURE,
                    max_tokens=settings.SCAN_MAX_TOKENS,
                    response_format={"type": "json_object"},
                    stream=False,
                )
            except (APITimeoutError, RateLimitError) as e:
                if attempt == max_retries:
                    logger.warning(f"Bill extraction gave up after {max_retries} retries: {type(e).__name__}")
                    return None
                wait_time = self.BACKOFF_SECONDS.get(type(e), 1.0) * (2 ** attempt)
                logger.warning(f"{type(e).__name__} from Groq, retry {attempt+1}/{max_retries} in {wait_time}s")
                time.sleep(wait_time)
                continue
            except APIError as e:
                logger.error(f"Groq API error during bill extraction: {e}")
                return None

            if not response.choices:
                logger.warning("Groq returned no choices for bill image")
                return None
            content = response.choices[0].message.content
            logger.debug(f"Bill extraction returned {len(content or '')} chars (attempt {attempt+1})")
            return content

        return None


_groq_client: Optional[GroqClient] = None


def get_groq_client() -> GroqClient:
    """Process-wide client, created on first scan."""
    global _groq_client
    if _groq_client is None:
        _groq_client = GroqClient()
    return _groq_client
