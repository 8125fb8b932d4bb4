from datetime import date

import pytest
from fastapi.testclient import TestClient

import main
from local_store import MemoryStorage
from storage import DataStore


DEMO = "demo-user-123"


@pytest.fixture
def client():
    store = DataStore.build(MemoryStorage(), local_owner_ids=[DEMO])
    main.app.dependency_overrides[main.get_store] = lambda: store
    main.app.dependency_overrides[main.get_today] = lambda: date(2024, 3, 10)
    main.app.dependency_overrides[main.get_owner_id] = lambda: DEMO
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


def _add_client(client, name="Acme") -> str:
    response = client.post(
        "/api/clients",
        json={"name": name, "platform": "YouTube", "projectType": "Thumbnail"},
    )
    assert response.status_code == 201
    return response.json()["id"]


def _add_txn(client, amount, type_, day, category="Editing", client_id=None):
    response = client.post(
        "/api/transactions",
        json={
            "amount": amount,
            "type": type_,
            "category": category,
            "date": day,
            "clientId": client_id,
        },
    )
    assert response.status_code == 201
    return response.json()["id"]


def test_create_and_list_clients_with_earnings(client):
    acme = _add_client(client, "Acme")
    _add_client(client, "Beta")
    _add_txn(client, 500, "INCOME", "2024-03-01", client_id=acme)

    body = client.get("/api/clients").json()
    assert body["source"] == "local"
    assert [(c["name"], c["earnings"]) for c in body["items"]] == [
        ("Acme", 500),
        ("Beta", 0),
    ]
    assert body["items"][0]["userId"] == DEMO

    searched = client.get("/api/clients", params={"q": "bet"}).json()
    assert [c["name"] for c in searched["items"]] == ["Beta"]


def test_malformed_input_is_rejected(client):
    blank = client.post(
        "/api/clients",
        json={"name": "   ", "platform": "YouTube", "projectType": "Thumbnail"},
    )
    assert blank.status_code == 422

    for amount in (0, -5, "abc"):
        response = client.post(
            "/api/transactions",
            json={"amount": amount, "type": "EXPENSE", "date": "2024-01-01"},
        )
        assert response.status_code == 422

    bad_date = client.post(
        "/api/transactions",
        json={"amount": 5, "type": "EXPENSE", "date": "2024-02-30"},
    )
    assert bad_date.status_code == 422


def test_dashboard_custom_month(client):
    _add_txn(client, 1000, "INCOME", "2024-02-29")
    _add_txn(client, 300, "EXPENSE", "2024-02-10", category="Software")
    _add_txn(client, 999, "INCOME", "2024-03-01")

    body = client.get(
        "/api/dashboard", params={"period": "custom", "month": "2024-02"}
    ).json()
    assert body["totals"] == {"income": 1000, "expense": 300, "profit": 700}
    assert body["breakdown"] == [{"category": "Software", "value": 300}]
    assert len(body["series"]) == 30
    assert {t["date"] for t in body["transactions"]} == {"2024-02-29", "2024-02-10"}


def test_dashboard_monthly_timeframe_and_client_filter(client):
    acme = _add_client(client)
    _add_txn(client, 200, "INCOME", "2024-01-15", client_id=acme)
    _add_txn(client, 50, "EXPENSE", "2024-01-16")

    body = client.get(
        "/api/dashboard", params={"timeframe": "monthly", "client": "no-client"}
    ).json()
    assert body["totals"]["income"] == 0
    assert body["series"] == [
        {"name": "Jan", "income": 0, "expense": 50},
        {"name": "Mar", "income": 0, "expense": 0},
    ]

    body = client.get("/api/dashboard", params={"client": acme}).json()
    assert body["clients"] == [{"client_id": acme, "name": "Acme", "value": 200}]


def test_bad_filters_return_400(client):
    assert client.get("/api/dashboard", params={"period": "decade"}).status_code == 400
    assert (
        client.get(
            "/api/dashboard", params={"period": "custom", "month": "2024-13"}
        ).status_code
        == 400
    )
    assert client.get("/api/dashboard", params={"timeframe": "hourly"}).status_code == 400
    assert client.get("/api/workspace/tasks", params={"status": "DONE"}).status_code == 400


def test_delete_transaction_and_missing_id(client):
    txn_id = _add_txn(client, 10, "EXPENSE", "2024-03-09")
    assert client.delete("/api/transactions/nope").status_code == 200
    assert client.get("/api/transactions").json()["total"] == 1

    assert client.delete(f"/api/transactions/{txn_id}").status_code == 200
    assert client.get("/api/transactions").json()["items"] == []


def test_deleting_client_leaves_history_dangling(client):
    acme = _add_client(client)
    _add_txn(client, 100, "INCOME", "2024-03-01", client_id=acme)
    client.delete(f"/api/clients/{acme}")

    history = client.get(f"/api/clients/{acme}/history").json()
    assert [t["amount"] for t in history["items"]] == [100]
    insights = client.get("/api/insights").json()["insights"]
    assert insights["top_client"] is None


def test_workspace_task_lifecycle(client):
    acme = _add_client(client)
    response = client.post(
        "/api/workspace/tasks",
        json={"title": "Shorts pack", "clientId": acme, "dueDate": "2024-03-09"},
    )
    task_id = response.json()["id"]

    done = client.patch(
        f"/api/workspace/tasks/{task_id}/status", json={"status": "COMPLETED"}
    ).json()["task"]
    assert done["status"] == "COMPLETED"
    assert done["startedAt"] == done["completedAt"]

    listed = client.get("/api/workspace/tasks", params={"status": "completed"}).json()
    assert [t["id"] for t in listed["items"]] == [task_id]

    stats = client.get("/api/workspace/stats", params={"period": "week"}).json()
    assert stats["completed"] == 1
    assert len(stats["daily_progress"]) == 7

    missing = client.patch(
        "/api/workspace/tasks/missing/status", json={"status": "WORKING"}
    )
    assert missing.status_code == 404

    assert client.delete(f"/api/workspace/tasks/{task_id}").status_code == 200
    assert client.get("/api/workspace/tasks").json()["items"] == []


def test_credentials_and_backup(client):
    client.post(
        "/api/credentials",
        json={"platformName": "YouTube", "loginName": "studio", "password": "hunter2"},
    )
    _add_client(client)

    backup = client.get("/api/backup").json()
    assert backup["userId"] == DEMO
    assert backup["summary"] == {
        "totalClients": 1,
        "totalTransactions": 0,
        "totalCredentials": 1,
        "totalWorkspaceTasks": 0,
    }
    assert backup["data"]["credentials"][0]["loginName"] == "studio"
    assert set(backup["sources"].values()) == {"local"}
