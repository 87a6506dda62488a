from datetime import date

import pytest

from backend.storage import DuplicateUser, MemStorage, PAYABLE_INVOICE_STATUSES


def test_seeded_catalog_is_sorted_and_bilingual():
    storage = MemStorage()
    services = storage.get_service_types()

    assert [s["name"] for s in services] == [
        "Web Design",
        "Automation",
        "Branding",
        "Social Media Marketing",
        "Accounting",
    ]
    assert [s["price"] for s in services] == [399, 899, 799, 699, 499]
    assert services[0]["nameEs"] == "Diseño Web"


def test_get_service_type_unknown_or_invalid_id():
    storage = MemStorage()
    assert storage.get_service_type(999) is None
    assert storage.get_service_type("abc") is None
    assert storage.get_service_type("1")["name"] == "Web Design"


def test_seeded_invoices_due_dates_are_relative_to_today():
    storage = MemStorage(today=date(2025, 3, 1))
    invoices = {i["invoiceNumber"]: i for i in storage.get_user_invoices(user_id=1)}

    assert invoices["INV-2025-001"]["dueDate"] == "2025-03-08"
    assert invoices["INV-2025-003"]["dueDate"] == "2025-02-26"
    assert invoices["INV-2025-003"]["status"] == "overdue"
    assert invoices["INV-2025-004"]["status"] not in PAYABLE_INVOICE_STATUSES


def test_get_invoices_by_ids_skips_unknown():
    storage = MemStorage()
    found = storage.get_invoices_by_ids([1, 42, "x", 3])
    assert sorted(found) == [1, 3]


def test_unseeded_storage_is_empty():
    storage = MemStorage(seed=False)
    assert storage.get_service_types() == []
    assert storage.get_user_invoices(1) == []


def test_users_have_auto_increment_ids_and_case_insensitive_lookup():
    storage = MemStorage(seed=False)
    first = storage.create_user(username="Maria", password_hash="h1", email="Maria@Example.com")
    second = storage.create_user(username="juan", password_hash="h2", email="juan@example.com", language="es")

    assert (first["id"], second["id"]) == (1, 2)
    assert storage.get_user_by_username("maria")["id"] == 1
    assert storage.get_user_by_email("MARIA@example.com")["id"] == 1
    assert storage.get_user(2)["language"] == "es"
    assert storage.get_user(3) is None


def test_returned_records_are_copies():
    storage = MemStorage()
    service = storage.get_service_type(1)
    service["price"] = 1
    assert storage.get_service_type(1)["price"] == 399


def test_create_user_rejects_duplicates():
    storage = MemStorage(seed=False)
    storage.create_user(username="maria", password_hash="h1", email="maria@example.com")

    with pytest.raises(DuplicateUser, match="Username already exists"):
        storage.create_user(username="MARIA", password_hash="h2", email="other@example.com")
    with pytest.raises(DuplicateUser, match="Email already registered"):
        storage.create_user(username="juan", password_hash="h2", email="Maria@example.com")
    assert storage.get_user(2) is None


def test_seeded_testimonials_are_approved():
    storage = MemStorage()
    assert len(storage.get_testimonials(approved=True)) == 3
    assert storage.get_testimonials(approved=False) == []


def test_contact_submissions_newest_first_and_update():
    storage = MemStorage(seed=False)
    first = storage.create_contact_submission(name="Ana", email="ana@example.com", message="Hi")
    second = storage.create_contact_submission(name="Luis", email="luis@example.com", message="Hola", service_id=2)

    assert [c["id"] for c in storage.get_contact_submissions()] == [second["id"], first["id"]]
    assert first["serviceId"] is None
    assert storage.update_contact_submission(first["id"], {"resolved": True, "id": 99})["resolved"] is True
    assert storage.get_contact_submission(first["id"])["id"] == first["id"]
    assert storage.update_contact_submission(42, {"resolved": True}) is None


def test_projects_filters():
    storage = MemStorage(seed=False)
    storage.create_project({"title": "A", "description": "a", "clientId": 7})
    storage.create_project({"title": "B", "description": "b", "featured": True})

    assert [p["title"] for p in storage.get_projects(featured=True)] == ["B"]
    assert [p["title"] for p in storage.get_projects(featured=False)] == ["A"]
    assert len(storage.get_projects()) == 2
    assert [p["title"] for p in storage.get_client_projects(7)] == ["A"]
    assert storage.update_project(1, {"status": "in_progress"})["status"] == "in_progress"
