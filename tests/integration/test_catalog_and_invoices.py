from fastapi.testclient import TestClient


def test_list_services_sorted(client: TestClient):
    response = client.get("/api/services")

    assert response.status_code == 200
    services = response.json()
    assert len(services) == 5
    assert [s["sortOrder"] for s in services] == [1, 2, 3, 4, 5]
    assert services[3]["name"] == "Social Media Marketing"
    assert services[3]["nameEs"] == "Marketing en Redes Sociales"


def test_get_service(client: TestClient):
    response = client.get("/api/services/3")
    assert response.status_code == 200
    assert response.json()["name"] == "Branding"
    assert response.json()["price"] == 799


def test_get_unknown_service(client: TestClient):
    response = client.get("/api/services/99")
    assert response.status_code == 404
    assert response.json() == {"message": "Service not found"}


def test_get_service_with_invalid_id(client: TestClient):
    response = client.get("/api/services/abc")
    assert response.status_code == 400


def test_user_invoices(auth_client: TestClient):
    response = auth_client.get("/api/user/invoices")

    assert response.status_code == 200
    invoices = response.json()
    assert [i["invoiceNumber"] for i in invoices] == [
        "INV-2025-001",
        "INV-2025-002",
        "INV-2025-003",
        "INV-2025-004",
    ]
    assert invoices[2]["status"] == "overdue"


def test_user_invoices_requires_session(client: TestClient):
    response = client.get("/api/user/invoices")
    assert response.status_code == 401


def test_unknown_route_json_message(client: TestClient):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"message": "Not Found"}
