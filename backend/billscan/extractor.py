"""
Bill extraction: image bytes in, list of `BillItem` out.

`GroqBillExtractor` is the production collaborator. Anything with an
`extract(image_bytes, mime_type)` method returning `List[BillItem]` can stand
in for it (tests use a fake).
"""

import base64
import json
import logging
from typing import List, Protocol

from pydantic import ValidationError

from billscan.bill_schema import BillItem, ExtractedBill
from billscan.groq_client import GroqClient, get_groq_client
from billscan.prompts import FIELD_ALIASES
from medai.core.exceptions import ScanError

logger = logging.getLogger(__name__)


class BillExtractor(Protocol):
    def extract(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> List[BillItem]:
        ...


def _strip_code_fence(text: str) -> str:
    """Handle ```json\\n{...}\\n``` wrappers some models still emit."""
    text = text.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        if lines[0].strip().startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        text = "\n".join(lines).strip()
    return text


def _normalize_keys(row: dict) -> dict:
    return {FIELD_ALIASES.get(key, key): value for key, value in row.items()}


def parse_bill_response(raw: str) -> List[BillItem]:
    """
    Validate the model's JSON text into bill items.

    Accepts either {"items": [...]} or a bare list. Rows that are not objects
    are dropped. Raises ScanError when the text is not JSON at all.
    """
    try:
        data = json.loads(_strip_code_fence(raw))
    except json.JSONDecodeError as e:
        logger.warning(f"Invalid JSON from bill extraction: {e}")
        raise ScanError("Could not read the bill. Please retry or enter items manually.") from e

    rows = data if isinstance(data, list) else data.get("items", []) if isinstance(data, dict) else []
    if not isinstance(rows, list):
        rows = []
    rows = [_normalize_keys(row) for row in rows if isinstance(row, dict)]

    try:
        return ExtractedBill(items=rows).items
    except ValidationError as e:
        logger.warning(f"Bill schema validation failed: {e}")
        raise ScanError("Could not read the bill. Please retry or enter items manually.") from e


class GroqBillExtractor:
    """Extraction through a Groq vision model."""

    def __init__(self, client: GroqClient = None):
        self.client = client or get_groq_client()

    def extract(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> List[BillItem]:
        if not self.client.is_available():
            raise ScanError("Bill scanning is not configured (GROQ_API_KEY missing)")

        image_b64 = base64.b64encode(image_bytes).decode("ascii")
        raw = self.client.extract_bill(image_b64, mime_type=mime_type)
        if not raw:
            raise ScanError("Bill extraction service failed. Please retry.")

        items = parse_bill_response(raw)
        logger.info(f"Bill extraction returned {len(items)} items")
        return items
