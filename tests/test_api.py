"""End-to-end tests through the FastAPI routers."""


TRIP = {
    "name": "Tokyo",
    "startDate": "2025-04-01",
    "endDate": "2025-04-10",
    "baseCurrency": "JPY",
    "currencies": ["USD"],
    "budgetEnabled": True,
    "budgetAmountBase": 100000,
}


def _create_trip(client, **overrides):
    resp = client.post("/trips", json={**TRIP, **overrides})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _create_expense(client, trip_id, **overrides):
    body = {
        "tripId": trip_id,
        "dateTime": "2025-04-02T12:00",
        "amountOriginal": 50,
        "currency": "USD",
        "fxRateToBase": 150,
        "category": "Food & drinks",
        "payment": "Cash",
    }
    body.update(overrides)
    resp = client.post("/expenses", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_root_reports_schema_version(client):
    body = client.get("/").json()
    assert body["schemaVersion"] == "1.0.0"


def test_trip_crud(client):
    trip = _create_trip(client)
    assert trip["currencies"] == ["USD", "JPY"]
    assert client.get(f"/trips/{trip['id']}").json()["name"] == "Tokyo"

    resp = client.put(f"/trips/{trip['id']}", json={**TRIP, "name": "Kyoto"})
    assert resp.status_code == 200
    assert resp.json()["createdAt"] == trip["createdAt"]
    assert [t["name"] for t in client.get("/trips").json()] == ["Kyoto"]


def test_trip_validation_is_422(client):
    resp = client.post("/trips", json={**TRIP, "endDate": "2025-03-01"})
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"


def test_missing_trip_is_404(client):
    resp = client.get("/trips/trip_nope")
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_expense_and_summary_scenario(client):
    trip = _create_trip(client)
    expense = _create_expense(client, trip["id"], amountBase=1)
    assert expense["amountBase"] == 7500

    summary = client.get(
        f"/trips/{trip['id']}/summary", params={"now": "2025-04-03T12:00:00"}
    ).json()
    assert summary["total"] == 7500
    assert summary["budget"]["remaining"] == 92500
    assert summary["budget"]["daysElapsed"] == 3
    assert summary["byCategory"] == [{"key": "Food & drinks", "total": 7500}]
    assert summary["byDay"][0]["day"] == "2025-04-02"


def test_expense_filters_and_last_rate(client):
    trip = _create_trip(client)
    _create_expense(client, trip["id"], note="ramen")
    _create_expense(
        client, trip["id"], dateTime="2025-04-03T12:00", fxRateToBase=152, payment="Wise"
    )

    listed = client.get(f"/trips/{trip['id']}/expenses", params={"payment": "Wise"}).json()
    assert len(listed) == 1
    searched = client.get(f"/trips/{trip['id']}/expenses", params={"search": "RAMEN"}).json()
    assert len(searched) == 1

    last = client.get(f"/trips/{trip['id']}/last-fx-rate", params={"currency": "usd"}).json()
    assert last == {"currency": "USD", "fxRateToBase": 152}


def test_base_currency_change_rejected(client):
    trip = _create_trip(client)
    _create_expense(client, trip["id"])
    resp = client.put(f"/trips/{trip['id']}", json={**TRIP, "baseCurrency": "USD"})
    assert resp.status_code == 400
    assert client.get(f"/trips/{trip['id']}").json()["baseCurrency"] == "JPY"


def test_delete_trip_cascades(client):
    trip = _create_trip(client)
    expense = _create_expense(client, trip["id"])
    resp = client.delete(f"/trips/{trip['id']}")
    assert resp.json() == {"deleted": trip["id"], "expensesRemoved": 1}
    assert client.get(f"/expenses/{expense['id']}").status_code == 404


def test_expense_edit_and_delete(client):
    trip = _create_trip(client)
    expense = _create_expense(client, trip["id"])
    resp = client.put(
        f"/expenses/{expense['id']}",
        json={**expense, "amountOriginal": 10, "currency": "JPY"},
    )
    assert resp.status_code == 200
    edited = resp.json()
    assert edited["fxRateToBase"] == 1
    assert edited["amountBase"] == 10
    assert edited["createdAt"] == expense["createdAt"]

    assert client.delete(f"/expenses/{expense['id']}").status_code == 204
    assert client.get(f"/expenses/{expense['id']}").status_code == 404


def test_settings_update_and_reset(client):
    resp = client.put("/settings", json={"categories": ["Food"], "paymentMethods": []})
    assert resp.status_code == 400
    assert client.get("/settings").json()["paymentMethods"][0] == "Cash"

    resp = client.put("/settings", json={"categories": ["Food"], "paymentMethods": ["Card"]})
    assert resp.json() == {"categories": ["Food"], "paymentMethods": ["Card"]}

    reset = client.post("/settings/reset").json()
    assert reset["categories"][0] == "Flights"


def test_backup_roundtrip_and_restore_errors(client):
    trip = _create_trip(client)
    _create_expense(client, trip["id"])
    exported = client.get("/backup").json()

    assert client.post("/backup/restore", json={"trips": []}).status_code == 400
    assert len(client.get("/trips").json()) == 1

    preview = client.post("/backup/preview", json=exported).json()
    assert preview == {"trips": 1, "expenses": 1, "schemaVersion": "1.0.0"}

    assert client.post("/backup/clear").json() == {"cleared": True}
    assert client.get("/trips").json() == []

    restored = client.post("/backup/restore", json=exported).json()
    assert restored["restored"] is True
    again = client.get("/backup").json()
    assert again["trips"] == exported["trips"]
    assert again["expenses"] == exported["expenses"]
    assert again["config"] == exported["config"]


def test_export_rows(client):
    trip = _create_trip(client)
    _create_expense(client, trip["id"], tags=["a", "b"])
    body = client.get(f"/trips/{trip['id']}/export/rows").json()
    assert body["columns"][0] == "id"
    assert body["rows"][0][body["columns"].index("tags")] == "a;b"
    assert body["filename"].startswith("travel_expenses_Tokyo_")


def test_last_rate_for_missing_trip_is_404(client):
    resp = client.get("/trips/trip_nope/last-fx-rate", params={"currency": "USD"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_non_finite_amount_is_422(client):
    trip = _create_trip(client)
    body = (
        '{"tripId": "%s", "amountOriginal": Infinity, "currency": "USD",'
        ' "fxRateToBase": 150, "category": "Food & drinks", "payment": "Cash"}'
    ) % trip["id"]
    resp = client.post(
        "/expenses", content=body, headers={"content-type": "application/json"}
    )
    assert resp.status_code == 422
    assert client.get(f"/trips/{trip['id']}/expenses").json() == []


def test_bad_backups_are_400_and_keep_data(client):
    trip = _create_trip(client)
    orphan = {
        "trips": [],
        "expenses": [
            {"id": "e1", "tripId": "ghost", "dateTime": "2025-04-02T12:00",
             "amountOriginal": 1, "currency": "JPY"}
        ],
    }
    for payload in (
        orphan,
        {"trips": [{"id": "t1"}], "expenses": []},
        {"trips": [], "expenses": [], "config": {"categories": [1, 2]}},
    ):
        resp = client.post("/backup/restore", json=payload)
        assert resp.status_code == 400, payload
        assert resp.json()["error"] == "validation_error"
    assert [t["id"] for t in client.get("/trips").json()] == [trip["id"]]
