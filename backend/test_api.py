"""HTTP surface: status codes, error bodies and the main workflows end to end."""
from urllib.parse import unquote


def _medicine(client, **overrides):
    body = {"name": "Medicine A", "cost_price": "30", "mrp": "50", "stock": 10, "expiry_date": "12/2030"}
    body.update(overrides)
    resp = client.post("/medicines", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _patient(client, name="Ramesh Kumar", phone="9811111111"):
    resp = client.post("/patients", json={"name": name, "phone": phone})
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_medicine_crud_and_status(client):
    med = _medicine(client, stock=4)
    assert med["stock_status"] == "low_stock"
    assert med["expiry_date"] == "2030-12-01"
    assert med["total_received"] == 4

    resp = client.patch(f"/medicines/{med['id']}", json={"mrp": "55"})
    assert resp.json()["mrp"] == 55.0

    resp = client.post(f"/medicines/{med['id']}/adjust", json={"delta": -1})
    assert resp.json()["stock"] == 3

    resp = client.delete(f"/medicines/{med['id']}")
    assert resp.status_code == 200
    assert client.get(f"/medicines/{med['id']}").status_code == 404


def test_adjust_below_zero_is_refused(client):
    med = _medicine(client, stock=0)
    resp = client.post(f"/medicines/{med['id']}/adjust", json={"delta": -1})
    assert resp.status_code == 400
    assert "Insufficient stock" in resp.json()["detail"]


def test_medicine_search(client):
    for name in ["Zinc", "Amoxicillin", "Azithromycin"]:
        _medicine(client, name=name)

    assert [m["name"] for m in client.get("/medicines").json()] == ["Zinc", "Amoxicillin", "Azithromycin"]
    assert [m["name"] for m in client.get("/medicines", params={"search": "zi"}).json()] == ["Zinc", "Azithromycin"]
    assert [m["name"] for m in client.get("/medicines", params={"search": "AMOX"}).json()] == ["Amoxicillin"]


def test_cash_sale(client):
    med = _medicine(client)
    patient = _patient(client)

    resp = client.post("/sales", json={"patient_id": patient["id"], "lines": [{"medicine_id": med["id"], "quantity": 3}]})

    assert resp.status_code == 201, resp.text
    txn = resp.json()
    assert (txn["total_amount"], txn["total_cost"], txn["profit"]) == (150.0, 90.0, 60.0)
    assert txn["lines"][0]["medicine_name"] == "Medicine A"
    stock = client.get(f"/medicines/{med['id']}").json()
    assert (stock["stock"], stock["sold"]) == (7, 3)


def test_sale_errors(client):
    med = _medicine(client, stock=2)
    patient = _patient(client)
    line = {"medicine_id": med["id"], "quantity": 3}

    assert client.post("/sales", json={"lines": [line]}).status_code == 400
    assert client.post("/sales", json={"patient_id": patient["id"], "lines": []}).status_code == 400
    assert client.post("/sales", json={"patient_id": "nobody", "lines": [line]}).status_code == 404
    resp = client.post("/sales", json={"patient_id": patient["id"], "lines": [line]})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Insufficient stock for Medicine A: requested 3, available 2"
    bad_quantity = {"medicine_id": med["id"], "quantity": 0}
    assert client.post("/sales", json={"patient_id": patient["id"], "lines": [bad_quantity]}).status_code == 422
    assert client.get("/transactions").json() == []


def test_credit_sale_settle_and_remind(client):
    med = _medicine(client)
    patient = _patient(client)
    client.post("/sales", json={
        "patient_id": patient["id"],
        "lines": [{"medicine_id": med["id"], "quantity": 3}],
        "is_credit": True,
        "amount_paid": "50",
    })

    credits = client.get("/credits").json()
    assert len(credits) == 1 and credits[0]["amount"] == 100.0
    assert client.get(f"/patients/{patient['id']}").json()["outstanding_credit"] == 100.0

    reminder = client.get(f"/credits/{credits[0]['id']}/reminder").json()
    assert reminder["url"].startswith("https://wa.me/9811111111?text=")
    assert unquote(reminder["url"].split("text=", 1)[1]) == reminder["message"]

    assert client.post(f"/credits/{credits[0]['id']}/pay").json()["status"] == "paid"
    assert client.post(f"/credits/{credits[0]['id']}/pay").status_code == 409
    assert client.get("/credits/totals").json() == {"pending": 0.0, "collected": 100.0}
    assert client.get("/credits").json() == []


def test_agency_bill_payments(client):
    agency = client.post("/agencies", json={"name": "Sharma Pharma"}).json()
    bill = client.post("/agencies/bills", json={
        "agency_id": agency["id"], "bill_number": "INV-1", "total_amount": "1000",
    }).json()
    pay_url = f"/agencies/bills/{bill['id']}/payments"

    assert client.post(pay_url, json={"amount": "abc"}).status_code == 400
    assert client.post(pay_url, json={"amount": "-5"}).status_code == 400
    assert client.post(pay_url, json={"amount": "1500"}).status_code == 409

    resp = client.post(pay_url, json={"amount": "1500", "confirm_overpayment": True})
    assert resp.status_code == 200
    assert (resp.json()["paid_amount"], resp.json()["pending_amount"]) == (1500.0, 0.0)

    listing = client.get("/agencies").json()
    assert listing[0]["outstanding"] == 0.0
    assert client.delete(f"/agencies/{agency['id']}").status_code == 409


def test_quick_sale(client):
    _medicine(client, name="Paracetamol 500mg", mrp="25")
    resp = client.post("/medicines/quick-sale", json={"medicine": "paracetamol", "units": 2})
    assert resp.status_code == 201, resp.text
    assert resp.json()["total_amount"] == 50.0
    assert client.post("/medicines/quick-sale", json={"medicine": "ibuprofen"}).status_code == 400


def test_export(client):
    med = _medicine(client)
    patient = _patient(client)
    client.post("/sales", json={"patient_id": patient["id"], "lines": [{"medicine_id": med["id"], "quantity": 1}]})

    resp = client.get("/transactions/export")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=transactions_report_" in resp.headers["content-disposition"]
    lines = resp.text.splitlines()
    assert lines[0] == "TXN ID,Patient,Date,Amount,Profit"
    fields = lines[1].split(",")
    assert fields[1] == "Ramesh Kumar"
    assert fields[3:] == ["50.00", "20.00"]


def test_scan_review_confirm(client):
    agency = client.post("/agencies", json={"name": "Sharma Pharma"}).json()

    resp = client.post("/scans", files={"file": ("bill.jpg", b"\xff\xd8 jpeg", "image/jpeg")})
    assert resp.status_code == 201, resp.text
    staged = resp.json()
    assert [i["name"] for i in staged["items"]] == ["Paracetamol 500mg", "Cough Syrup"]

    url = f"/scans/{staged['id']}"
    client.patch(f"{url}/items/1", json={"field": "mrp", "value": "85"})
    client.post(f"{url}/items")
    client.patch(f"{url}/items/2", json={"field": "name", "value": "Vitamin C"})

    resp = client.post(f"{url}/confirm", json={"agency_id": agency["id"]})
    assert resp.status_code == 200, resp.text
    assert len(resp.json()["medicine_ids"]) == 3

    names = {m["name"]: m for m in client.get("/medicines").json()}
    assert names["Cough Syrup"]["mrp"] == 85.0
    assert names["Vitamin C"]["stock"] == 1
    assert client.get(url).status_code == 404
    assert client.get("/agencies").json()[0]["products"] == 3


def test_scan_rejects_non_image(client):
    resp = client.post("/scans", files={"file": ("bill.txt", b"hello", "text/plain")})
    assert resp.status_code == 400


def test_analytics_endpoints(client):
    med = _medicine(client)
    patient = _patient(client)
    client.post("/sales", json={"patient_id": patient["id"], "lines": [{"medicine_id": med["id"], "quantity": 2}]})

    dashboard = client.get("/analytics/dashboard").json()
    assert dashboard["total_transactions"] == 1
    assert len(client.get("/analytics/daily-sales").json()) == 7
    assert client.get("/analytics/profit", params={"period": "all"}).json()["profit"] == 40.0
    assert client.get("/analytics/profit", params={"period": "custom"}).status_code == 400
    assert client.get("/analytics/top-medicines").json()[0]["name"] == "Medicine A"
