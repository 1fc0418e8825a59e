"""Supplier-bill extraction through a Groq vision model.

Only transcribes bills into candidate line items. Nothing is saved until the
items have been reviewed in a staging list and explicitly confirmed.
"""

from .bill_schema import BillItem
from .extractor import BillExtractor, GroqBillExtractor, parse_bill_response

__all__ = ["BillItem", "BillExtractor", "GroqBillExtractor", "parse_bill_response"]
