"""
Prompt for the bill-extraction vision model.

The model only transcribes. It does not decide prices, match inventory or
create anything; its output is validated against `ExtractedBill` and then
shown to the pharmacist for correction before anything is saved.
"""

BILL_EXTRACTION_PROMPT = """You read photographed pharmacy supplier bills (Indian medical agencies).

Extract EVERY medicine line item on the bill. Return ONLY a JSON object, no prose, no markdown:

{
  "items": [
    {
      "name": "Paracetamol 500mg",
      "quantity": 10,
      "costPrice": 18.50,
      "mrp": 25.00,
      "category": "Tablet",
      "expiryDate": "2027-08-31"
    }
  ]
}

RULES:
- name: product name as printed, including strength (mg/ml)
- quantity: number of units billed (integer)
- costPrice: purchase rate per unit including GST, number only, no currency symbol
- mrp: maximum retail price per unit, number only
- category: one of Tablet, Capsule, Syrup, Injection, Cream, Drops, Other
- expiryDate: YYYY-MM-DD; if only month/year is printed use the last day of that month; "" if absent
- If a value is unreadable, use 0 for numbers and "" for text. Never guess names.
- If the image is not a bill, return {"items": []}
"""

FIELD_ALIASES = {
    "costPrice": "cost_price",
    "cost": "cost_price",
    "rate": "cost_price",
    "expiryDate": "expiry_date",
    "expiry": "expiry_date",
    "exp": "expiry_date",
    "qty": "quantity",
    "product": "name",
}
