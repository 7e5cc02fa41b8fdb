# carparts/tests/test_routes.py
import io
from datetime import date

from openpyxl import load_workbook

from carparts.tests.factories import seed_part, part_quantity


def create_category(client, name="Brakes"):
    response = client.post("/categories", json={"name": name})
    assert response.status_code == 201
    return response.get_json()["id"]


def create_part(client, category_id, **overrides):
    payload = {
        "name": "Brake Pad",
        "categoryId": category_id,
        "partNumber": "BP-1",
        "barcode": "5000001",
        "buyingPrice": 2,
        "sellingPrice": 5,
        "quantity": 10,
    }
    payload.update(overrides)
    return client.post("/parts", json=payload)


# =========
# 🗂 Inventory
# =========
def test_part_crud_round(alice):
    category_id = create_category(alice)

    response = create_part(alice, category_id)
    assert response.status_code == 201
    part = response.get_json()
    assert part["minQuantity"] == 5
    assert part["lowStock"] is False
    assert part["category"]["name"] == "Brakes"

    response = alice.put(f"/parts/{part['id']}", json={"quantity": 5})
    assert response.get_json()["lowStock"] is True

    low = alice.get("/parts/low-stock").get_json()
    assert [p["id"] for p in low] == [part["id"]]
    assert [p["id"] for p in alice.get("/parts?lowStock=true").get_json()] == [part["id"]]

    assert alice.get("/parts/barcode/5000001").get_json()["id"] == part["id"]
    assert alice.get("/parts/search?query=brake").get_json()[0]["id"] == part["id"]

    assert alice.delete(f"/parts/{part['id']}").get_json() == {"message": "Part removed"}
    assert alice.get(f"/parts/{part['id']}").status_code == 404


def test_duplicate_part_number_is_400(alice):
    category_id = create_category(alice)
    create_part(alice, category_id)

    response = create_part(alice, category_id, barcode="other")
    assert response.status_code == 400
    assert response.get_json()["message"] == "Part number already exists"


def test_duplicate_category_is_400(alice):
    create_category(alice)
    response = alice.post("/categories", json={"name": "Brakes"})
    assert response.status_code == 400
    assert response.get_json()["message"] == "Category already exists"


def test_unknown_barcode_is_404(alice):
    response = alice.get("/parts/barcode/nothing")
    assert response.status_code == 404
    assert response.get_json()["message"] == "Part not found with this barcode"


def test_inventory_is_private_per_user(alice, bob):
    category_id = create_category(alice)
    part_id = create_part(alice, category_id).get_json()["id"]

    assert bob.get("/parts").get_json() == []
    assert bob.get(f"/parts/{part_id}").status_code == 404
    assert bob.get(f"/categories/{category_id}").status_code == 404
    # bob may reuse alice's part number
    bobs_category = create_category(bob)
    assert create_part(bob, bobs_category).status_code == 201


def test_deleted_category_shows_as_null(alice):
    category_id = create_category(alice)
    part_id = create_part(alice, category_id).get_json()["id"]

    assert alice.delete(f"/categories/{category_id}").status_code == 200
    part = alice.get(f"/parts/{part_id}").get_json()
    assert part["categoryId"] == category_id
    assert part["category"] is None


# =========
# 🧾 Orders
# =========
def test_create_order_response(alice, alice_id):
    part_id = seed_part(alice_id, quantity=10)

    response = alice.post("/orders", json={
        "items": [{"part": part_id, "quantity": 3, "price": 5}],
        "totalAmount": 15,
        "paymentMethod": "CASH",
    })

    assert response.status_code == 201
    order = response.get_json()
    assert order["orderNumber"].startswith(f"ORD-{date.today():%y%m%d}-")
    assert order["status"] == "PENDING"
    assert order["items"][0]["part"]["id"] == part_id
    assert order["items"][0]["subtotal"] == 15
    assert order["inventoryAdjustment"]["adjusted"] == [part_id]
    assert part_quantity(part_id) == 7


def test_create_order_validation(alice):
    assert alice.post("/orders", json={"items": [], "totalAmount": 0}).status_code == 400
    response = alice.post("/orders", json={
        "items": [{"part": "x", "quantity": 0, "price": 1}],
        "totalAmount": 1,
    })
    assert response.status_code == 400


def test_money_with_more_than_two_decimals_is_400(alice, alice_id):
    part_id = seed_part(alice_id, quantity=10)

    response = alice.post("/orders", json={
        "items": [{"part": part_id, "quantity": 1, "price": "5.555"}],
        "totalAmount": "5.555",
    })
    assert response.status_code == 400
    assert response.get_json()["errorType"] == "VALIDATION_ERROR"
    assert alice.get("/orders").get_json() == []
    assert part_quantity(part_id) == 10

    category_id = create_category(alice)
    assert create_part(alice, category_id, sellingPrice="4.999").status_code == 400


def test_status_update_and_receipt(alice, alice_id):
    part_id = seed_part(alice_id)
    order = alice.post("/orders", json={
        "items": [{"part": part_id, "quantity": 1, "price": 15.5}],
        "totalAmount": 15.5,
    }).get_json()

    response = alice.put(f"/orders/{order['id']}", json={
        "status": "COMPLETED",
        "paymentMethod": "CASH",
        "cashReceived": 20,
    })
    assert response.status_code == 200
    updated = response.get_json()
    assert updated["changeAmount"] == 4.5
    assert updated["status"] == "COMPLETED"

    receipt = alice.get(f"/orders/{order['id']}/receipt").get_json()
    assert receipt["status"] == "success"
    assert "Change Due: £4.50" in receipt["data"]["receipt"]

    text = alice.get(f"/orders/{order['id']}/receipt?format=text")
    assert text.mimetype == "text/plain"
    assert text.get_data(as_text=True).lstrip().startswith("CAR PARTS SYSTEM")


def test_invalid_status_is_400(alice, alice_id):
    part_id = seed_part(alice_id)
    order = alice.post("/orders", json={
        "items": [{"part": part_id, "quantity": 1, "price": 1}],
        "totalAmount": 1,
    }).get_json()

    assert alice.put(f"/orders/{order['id']}", json={"status": "SHIPPED"}).status_code == 400
    assert alice.get("/orders?status=SHIPPED").status_code == 400


def test_orders_are_private(alice, bob, alice_id):
    part_id = seed_part(alice_id)
    order = alice.post("/orders", json={
        "items": [{"part": part_id, "quantity": 1, "price": 1}],
        "totalAmount": 1,
    }).get_json()

    assert bob.get("/orders").get_json() == []
    assert bob.get(f"/orders/{order['id']}").status_code == 404
    assert bob.get(f"/orders/{order['id']}/receipt").status_code == 404


def test_list_orders_filter(alice, alice_id):
    part_id = seed_part(alice_id, quantity=50)
    line = {"items": [{"part": part_id, "quantity": 1, "price": 1}], "totalAmount": 1}
    alice.post("/orders", json=line)
    alice.post("/orders", json={**line, "status": "COMPLETED", "paymentMethod": "CARD"})

    assert len(alice.get("/orders").get_json()) == 2
    completed = alice.get("/orders?status=COMPLETED").get_json()
    assert [o["paymentMethod"] for o in completed] == ["CARD"]


def test_receipt_preview(alice):
    payload = {
        "orderNumber": "ORD-240101-0001",
        "items": [{"part": {"name": "Wiper", "partNumber": "W-1"}, "quantity": 2, "price": 4}],
        "totalAmount": 8,
        "status": "PENDING",
        "createdAt": "2024-01-01T10:00:00",
    }
    response = alice.post("/orders/receipt/preview", json=payload)
    assert response.status_code == 200
    assert "Date: 01/01/2024, 10:00:00" in response.get_json()["data"]["receipt"]

    payload["items"][0]["part"] = {"partNumber": "W-1"}
    response = alice.post("/orders/receipt/preview", json=payload)
    assert response.status_code == 500
    assert response.get_json()["errorType"] == "RECEIPT_ERROR"


def test_sales_report_endpoints(alice, alice_id):
    part_id = seed_part(alice_id, quantity=50)
    alice.post("/orders", json={
        "items": [{"part": part_id, "quantity": 2, "price": 5}],
        "totalAmount": 10,
        "status": "COMPLETED",
        "paymentMethod": "CASH",
        "cashReceived": 10,
    })
    today = date.today()

    report = alice.get(f"/orders/report?year={today.year}&month={today.month}").get_json()
    assert report["totalSales"] == 10
    assert report["salesByPaymentMethod"] == {"CASH": 10, "CARD": 0}
    assert len(report["orders"]) == 1
    assert "start" in report["dateRange"]

    assert alice.get("/orders/report?year=2024&month=13").status_code == 400

    export = alice.get(f"/orders/report/export?year={today.year}&month={today.month}")
    assert export.status_code == 200
    workbook = load_workbook(io.BytesIO(export.data))
    rows = list(workbook.active.iter_rows(values_only=True))
    assert rows[0][0] == "Order #"
    assert rows[-3][0] == "TOTAL"


# =========
# 🛒 Barcode cart
# =========
def test_cart_scan_and_checkout(alice, alice_id):
    pad = seed_part(alice_id, part_number="A", barcode="111", selling_price="5.00", quantity=10)
    filt = seed_part(alice_id, part_number="B", barcode="222", selling_price="2.50", quantity=10)

    alice.post("/cart/scan", json={"barcode": "111"})
    alice.post("/cart/scan", json={"barcode": "111"})
    cart = alice.post("/cart/scan", json={"barcode": "222"}).get_json()
    assert cart["totalAmount"] == 12.5
    assert cart["itemCount"] == 3

    too_little = alice.post("/cart/checkout", json={"paymentMethod": "CASH", "cashReceived": 10})
    assert too_little.status_code == 400
    assert alice.get("/cart").get_json()["totalAmount"] == 12.5

    response = alice.post("/cart/checkout", json={"paymentMethod": "CASH", "cashReceived": 20})
    assert response.status_code == 201
    order = response.get_json()
    assert order["status"] == "COMPLETED"
    assert order["totalAmount"] == 12.5
    assert order["changeAmount"] == 7.5

    assert alice.get("/cart").get_json()["items"] == []
    assert part_quantity(pad) == 8
    assert part_quantity(filt) == 9


def test_cart_edits(alice, alice_id):
    part_id = seed_part(alice_id, barcode="111", selling_price="5.00")
    alice.post("/cart/scan", json={"barcode": "111"})

    cart = alice.put(f"/cart/items/{part_id}", json={"quantity": 4}).get_json()
    assert cart["totalAmount"] == 20

    assert alice.put(f"/cart/items/{part_id}", json={"quantity": 0}).status_code == 400
    assert alice.put("/cart/items/nope", json={"quantity": 2}).status_code == 404

    cart = alice.delete(f"/cart/items/{part_id}").get_json()
    assert cart["items"] == []
    assert alice.delete(f"/cart/items/{part_id}").status_code == 404


def test_cart_unknown_barcode_and_empty_checkout(alice, alice_id):
    seed_part(alice_id, barcode="111")
    alice.post("/cart/scan", json={"barcode": "111"})

    assert alice.post("/cart/scan", json={"barcode": "404"}).status_code == 404
    assert alice.get("/cart").get_json()["itemCount"] == 1

    alice.delete("/cart")
    response = alice.post("/cart/checkout", json={"paymentMethod": "CARD"})
    assert response.status_code == 400
    assert response.get_json()["message"] == "Cart is empty"


def test_cart_cannot_scan_other_users_parts(bob, alice_id):
    seed_part(alice_id, barcode="111")
    assert bob.post("/cart/scan", json={"barcode": "111"}).status_code == 404


def test_unknown_route_is_json_404(alice):
    response = alice.get("/nowhere")
    assert response.status_code == 404
    assert response.get_json()["errorType"] == "NOT_FOUND"


def test_cash_checkout_without_amount(alice, alice_id):
    seed_part(alice_id, barcode="111")
    alice.post("/cart/scan", json={"barcode": "111"})

    response = alice.post("/cart/checkout", json={"paymentMethod": "CASH"})
    assert response.status_code == 400
    assert response.get_json()["message"] == "Cash received is required for cash payments"
    assert alice.get("/cart").get_json()["itemCount"] == 1


def test_config_name_sets_testing_flag(app, tmp_path):
    from carparts.app_factory import create_app

    assert app.testing
    other = create_app("development", config_overrides={"SESSION_FILE_DIR": str(tmp_path / "dev")})
    assert not other.testing
