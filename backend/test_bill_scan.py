"""
Bill-scan ingestion: parsing the model output, the busy flag, staging edits
and the confirm step that creates catalog medicines.
"""
from datetime import date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from billscan.bill_schema import BillItem, coerce_decimal
from billscan.extractor import GroqBillExtractor, parse_bill_response
from billscan.groq_client import GroqClient
from medai.core.exceptions import (
    InvalidAmountError,
    MissingSelectionError,
    RecordNotFoundError,
    ScanBusyError,
    ScanError,
)
from medai.models.medicine import Medicine
from medai.services.bill_scan_service import BillScanner, StagedBill

TODAY = date(2026, 10, 17)


@pytest.mark.parametrize("raw, expected", [
    ("₹ 1,250.50", Decimal("1250.50")),
    ("12 strips", Decimal("12")),
    ("abc", Decimal("0")),
    (None, Decimal("0")),
    (7.5, Decimal("7.5")),
    (float("inf"), Decimal("0")),
    (float("-inf"), Decimal("0")),
    (float("nan"), Decimal("0")),
    (Decimal("Infinity"), Decimal("0")),
])
def test_numeric_coercion(raw, expected):
    assert coerce_decimal(raw) == expected


def test_parse_accepts_fenced_json_and_aliases():
    raw = '```json\n{"items": [{"product": "Dolo 650", "qty": "15", "rate": "1.8", "mrp": "2.5", "exp": "2027-01-31"}]}\n```'

    items = parse_bill_response(raw)

    assert items == [BillItem(name="Dolo 650", quantity=15, cost_price="1.8", mrp="2.5", expiry_date="2027-01-31")]
    assert items[0].category == "Tablet"


def test_parse_accepts_bare_list_and_drops_junk_rows():
    items = parse_bill_response('[{"name": "Zinc"}, "not a row", 5]')
    assert [i.name for i in items] == ["Zinc"]
    assert parse_bill_response('{"items": "none"}') == []


def test_parse_rejects_non_json():
    with pytest.raises(ScanError):
        parse_bill_response("Sorry, I cannot read this bill.")


def test_extractor_without_api_key_fails_cleanly():
    class OfflineClient:
        def is_available(self):
            return False

    with pytest.raises(ScanError):
        GroqBillExtractor(client=OfflineClient()).extract(b"image")


def test_groq_client_without_key_is_disabled():
    client = GroqClient(api_key="")
    assert client.is_available() is False
    assert client.extract_bill("YWJj") is None


def test_groq_client_returns_message_content():
    class Completions:
        def create(self, **kwargs):
            self.kwargs = kwargs
            message = SimpleNamespace(content='{"items": []}')
            return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    completions = Completions()
    client = GroqClient(api_key="")
    client.client = SimpleNamespace(chat=SimpleNamespace(completions=completions))

    assert client.extract_bill("YWJj", "image/png") == '{"items": []}'
    assert completions.kwargs["response_format"] == {"type": "json_object"}
    image = completions.kwargs["messages"][0]["content"][1]["image_url"]["url"]
    assert image == "data:image/png;base64,YWJj"


def test_extractor_sends_base64_image():
    class RecordingClient:
        def is_available(self):
            return True

        def extract_bill(self, image_b64, mime_type="image/jpeg"):
            self.seen = (image_b64, mime_type)
            return '{"items": [{"name": "Zinc", "quantity": 2}]}'

    client = RecordingClient()
    items = GroqBillExtractor(client=client).extract(b"abc", "image/png")

    assert client.seen == ("YWJj", "image/png")
    assert items[0].quantity == 2


# ==============================================================================
# SCANNER
# ==============================================================================

def test_scan_stages_coerced_rows(scanner):
    staged = scanner.scan(b"jpeg bytes")

    first, second = staged.items
    assert (first.name, first.quantity, first.cost_price, first.mrp) == ("Paracetamol 500mg", 20, Decimal("18.50"), Decimal("25"))
    assert (second.quantity, second.cost_price, second.mrp, second.category) == (10, Decimal("55"), Decimal("0"), "Syrup")
    assert scanner.get(staged.id) is staged
    assert scanner.busy is False


def test_scan_is_refused_while_busy():
    seen = []

    class ReentrantExtractor:
        def extract(self, image_bytes, mime_type="image/jpeg"):
            with pytest.raises(ScanBusyError):
                scanner.scan(b"second image")
            seen.append(scanner.busy)
            return []

    scanner = BillScanner(extractor=ReentrantExtractor())
    scanner.scan(b"first image")

    assert seen == [True]
    assert scanner.busy is False
    assert len(scanner.staged) == 1


def test_failed_scan_clears_busy_and_stages_nothing():
    class BrokenExtractor:
        def extract(self, image_bytes, mime_type="image/jpeg"):
            raise ConnectionError("network down")

    scanner = BillScanner(extractor=BrokenExtractor())
    with pytest.raises(ScanError):
        scanner.scan(b"image")

    assert scanner.busy is False
    assert scanner.staged == {}


def test_empty_image_refused(scanner, extractor):
    with pytest.raises(MissingSelectionError):
        scanner.scan(b"")
    assert extractor.calls == 0


# ==============================================================================
# STAGING AND CONFIRM
# ==============================================================================

def test_edit_add_remove_rows():
    staged = StagedBill([BillItem(name="Zinc", quantity=5)])

    staged.update_item(0, "qty", "12 boxes")
    staged.update_item(0, "costPrice", "n/a")
    row = staged.add_row(TODAY)
    staged.update_item(1, "name", "Vitamin C")

    assert staged.items[0].quantity == 12
    assert staged.items[0].cost_price == Decimal("0")
    assert (row.quantity, row.expiry_date) == (1, "2026-10-17")
    assert staged.items[1].name == "Vitamin C"

    staged.remove_item(0)
    assert [i.name for i in staged.items] == ["Vitamin C"]
    with pytest.raises(RecordNotFoundError):
        staged.remove_item(3)
    with pytest.raises(MissingSelectionError):
        staged.update_item(0, "colour", "red")


def test_confirm_creates_medicines(db, scanner, agency):
    staged = scanner.scan(b"jpeg bytes")

    medicines = scanner.confirm(db, staged.id, agency.id)

    assert db.query(Medicine).count() == 2
    paracetamol, syrup = medicines
    assert (paracetamol.stock, paracetamol.sold) == (20, 0)
    assert paracetamol.cost_price == Decimal("18.50")
    assert paracetamol.expiry_date == date(2027, 6, 30)
    assert paracetamol.agency_id == agency.id
    assert syrup.mrp == Decimal("0")
    assert syrup.expiry_date > date.today()
    with pytest.raises(RecordNotFoundError):
        scanner.get(staged.id)


def test_confirm_defaults_expiry_and_floors_negatives(db):
    staged = StagedBill([
        BillItem(name="Mystery Drops", quantity="-4", cost_price="-2", mrp="9", expiry_date="someday"),
    ])

    (med,) = staged.confirm(db, today=TODAY)

    assert med.stock == 0
    assert med.cost_price == Decimal("0")
    assert med.expiry_date == TODAY + timedelta(days=365)
    assert med.agency_id is None


def test_confirm_refuses_blank_names(db):
    staged = StagedBill([BillItem(name="Zinc", quantity=1), BillItem(name="", quantity=3)])

    with pytest.raises(MissingSelectionError):
        staged.confirm(db)

    assert db.query(Medicine).count() == 0
    assert len(staged.items) == 2


def test_confirm_empty_bill_refused(db, scanner):
    staged = scanner.stage_manual()
    with pytest.raises(MissingSelectionError):
        scanner.confirm(db, staged.id)


def test_discard(scanner):
    staged = scanner.scan(b"jpeg bytes")
    scanner.discard(staged.id)
    assert scanner.staged == {}


def test_non_finite_numbers_become_zero():
    staged = StagedBill([BillItem(name="Zinc", quantity=float("inf"), mrp=float("nan"))])
    assert staged.items[0].quantity == 0
    assert staged.items[0].mrp == Decimal("0")

    staged.update_item(0, "quantity", float("inf"))
    staged.update_item(0, "costPrice", float("-inf"))
    assert staged.items[0].quantity == 0
    assert staged.items[0].cost_price == Decimal("0")


def test_confirm_reports_overlong_name_by_row(db):
    staged = StagedBill([BillItem(name="Zinc", quantity=1), BillItem(name="A" * 300, quantity=1)])

    with pytest.raises(MissingSelectionError) as exc:
        staged.confirm(db)

    assert exc.value.detail.startswith("Row 2: name")
    assert db.query(Medicine).count() == 0
    assert len(staged.items) == 2


@pytest.mark.parametrize("field, value", [
    ("quantity", "99999999999"),
    ("mrp", "1000000000000000"),
    ("cost_price", "123456789012345"),
])
def test_confirm_reports_out_of_range_numbers_by_row(db, field, value):
    staged = StagedBill([BillItem(name="Zinc", quantity=1, mrp=5)])
    staged.update_item(0, field, value)

    with pytest.raises(InvalidAmountError) as exc:
        staged.confirm(db)

    assert exc.value.detail.startswith("Row 1:")
    assert db.query(Medicine).count() == 0


def test_blank_category_falls_back_to_default(db):
    item = BillItem(name="Zinc", quantity=2, mrp=5).model_copy(update={"category": ""})

    (med,) = StagedBill([item]).confirm(db, today=TODAY)

    assert med.category == "Tablet"
    assert BillItem(name="Zinc", category="  ").category == "Tablet"


def test_staging_drops_oldest_beyond_cap(extractor):
    scanner = BillScanner(extractor=extractor, max_staged=2)

    first = scanner.stage_manual()
    second = scanner.stage_manual()
    third = scanner.stage_manual()

    assert list(scanner.staged) == [second.id, third.id]
    with pytest.raises(RecordNotFoundError):
        scanner.get(first.id)


def test_staging_drops_expired_bills(extractor):
    scanner = BillScanner(extractor=extractor, ttl_minutes=120)
    old = scanner.stage_manual()
    recent = scanner.stage_manual()
    old.created_at = datetime.utcnow() - timedelta(hours=3)

    fresh = scanner.stage_manual()

    assert set(scanner.staged) == {recent.id, fresh.id}
