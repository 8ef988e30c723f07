"""Tests for the /lancamentos REST endpoints (SQLite database, storage mocked)."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
import pytest_asyncio

from api.main import app
from src.core.db import get_session
from src.core.exceptions import StorageError
from src.core.storage import get_attachment_store

RENT = {
    "description": "Rent",
    "value": 1200.00,
    "dueDate": "2024-05-01",
    "type": "EXPENSE",
}


@pytest.fixture
def attachments():
    store = MagicMock()
    store.store = AsyncMock(return_value="abc_boleto.pdf")
    store.remove = AsyncMock()
    store.url_for = MagicMock(side_effect=lambda key: f"https://files.test/{key}")
    return store


@pytest_asyncio.fixture
async def client(session_factory, attachments):
    async def _override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    app.dependency_overrides[get_attachment_store] = lambda: attachments

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def _headers(make_token, **kwargs) -> dict:
    return {"Authorization": f"Bearer {make_token(**kwargs)}"}


async def _create(client, headers, **overrides) -> dict:
    resp = await client.post("/lancamentos", json={**RENT, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


# --- CRUD ---


@pytest.mark.asyncio
async def test_create_fetch_delete_roundtrip(client, auth_headers):
    """Insert, fetch, delete, then the entry is gone."""
    resp = await client.post("/lancamentos", json=RENT, headers=auth_headers)

    assert resp.status_code == 201
    created = resp.json()
    entry_id = created["id"]
    assert resp.headers["Location"].endswith(f"/lancamentos/{entry_id}")
    assert created["description"] == "Rent"
    assert created["value"] == 1200.0
    assert created["dueDate"] == "2024-05-01"
    assert created["type"] == "EXPENSE"

    fetched = await client.get(f"/lancamentos/{entry_id}", headers=auth_headers)
    assert fetched.status_code == 200
    assert fetched.json() == created

    deleted = await client.delete(f"/lancamentos/{entry_id}", headers=auth_headers)
    assert deleted.status_code == 204
    assert deleted.content == b""

    gone = await client.get(f"/lancamentos/{entry_id}", headers=auth_headers)
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_create_requires_token(client):
    resp = await client.post("/lancamentos", json=RENT)

    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_create_with_read_only_authority_is_forbidden(client, make_token, auth_headers):
    """Denied requests never reach the store."""
    headers = _headers(make_token, authorities=["ROLE_PESQUISAR_LANCAMENTO"])

    resp = await client.post("/lancamentos", json=RENT, headers=headers)

    assert resp.status_code == 403
    listing = await client.get("/lancamentos", headers=auth_headers)
    assert listing.json()["totalElements"] == 0


@pytest.mark.asyncio
async def test_create_with_read_scope_only_is_forbidden(client, make_token):
    resp = await client.post(
        "/lancamentos", json=RENT, headers=_headers(make_token, scope=["read"])
    )

    assert resp.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"description": ""},
        {"value": 0},
        {"type": "TRANSFER"},
        {"dueDate": "2024-13-01"},
    ],
)
async def test_create_invalid_body_rejected(client, auth_headers, overrides):
    resp = await client.post("/lancamentos", json={**RENT, **overrides}, headers=auth_headers)

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_with_unknown_id_is_not_found(client, auth_headers):
    resp = await client.post("/lancamentos", json={**RENT, "id": 999}, headers=auth_headers)

    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_create_with_existing_id_replaces_entry(client, auth_headers):
    created = await _create(client, auth_headers)

    resp = await client.post(
        "/lancamentos",
        json={**RENT, "id": created["id"], "description": "Rent (May)"},
        headers=auth_headers,
    )

    assert resp.status_code == 201
    assert resp.json()["id"] == created["id"]
    listing = await client.get("/lancamentos", headers=auth_headers)
    assert listing.json()["totalElements"] == 1


@pytest.mark.asyncio
async def test_create_with_references(client, auth_headers, references):
    created = await _create(
        client, auth_headers, categoryId=references["food"], personId=references["maria"]
    )

    assert created["categoryId"] == references["food"]
    assert created["personId"] == references["maria"]


@pytest.mark.asyncio
async def test_create_with_inactive_person_is_bad_request(client, auth_headers, references):
    resp = await client.post(
        "/lancamentos", json={**RENT, "personId": references["joao"]}, headers=auth_headers
    )

    assert resp.status_code == 400
    assert "inactive" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_create_with_unknown_category_is_bad_request(client, auth_headers):
    resp = await client.post("/lancamentos", json={**RENT, "categoryId": 77}, headers=auth_headers)

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_get_unknown_entry_is_not_found(client, auth_headers):
    resp = await client.get("/lancamentos/12345", headers=auth_headers)

    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_get_includes_attachment_url(client, auth_headers):
    created = await _create(client, auth_headers, attachment="abc_boleto.pdf")

    resp = await client.get(f"/lancamentos/{created['id']}", headers=auth_headers)

    assert resp.json()["attachmentUrl"] == "https://files.test/abc_boleto.pdf"


# --- Update ---


@pytest.mark.asyncio
async def test_update_replaces_fields(client, auth_headers):
    created = await _create(client, auth_headers, observation="first")

    resp = await client.put(
        f"/lancamentos/{created['id']}",
        json={**RENT, "description": "Rent June", "value": 1300.5, "dueDate": "2024-06-01"},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == created["id"]
    assert body["description"] == "Rent June"
    assert body["value"] == 1300.5
    assert body["observation"] is None


@pytest.mark.asyncio
async def test_update_unknown_entry_is_not_found(client, auth_headers):
    resp = await client.put("/lancamentos/999", json=RENT, headers=auth_headers)

    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_requires_write_scope(client, auth_headers, make_token):
    created = await _create(client, auth_headers)

    resp = await client.put(
        f"/lancamentos/{created['id']}",
        json={**RENT, "description": "Changed"},
        headers=_headers(make_token, scope=["read"]),
    )

    assert resp.status_code == 403
    fetched = await client.get(f"/lancamentos/{created['id']}", headers=auth_headers)
    assert fetched.json()["description"] == "Rent"


@pytest.mark.asyncio
async def test_update_replacing_attachment_removes_old_file(client, auth_headers, attachments):
    created = await _create(client, auth_headers, attachment="old.pdf")

    resp = await client.put(
        f"/lancamentos/{created['id']}",
        json={**RENT, "attachment": "new.pdf"},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    attachments.remove.assert_awaited_once_with("old.pdf")


# --- Delete ---


@pytest.mark.asyncio
async def test_delete_unknown_entry_is_not_found(client, auth_headers):
    resp = await client.delete("/lancamentos/999", headers=auth_headers)

    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_requires_remove_authority(client, auth_headers, make_token):
    created = await _create(client, auth_headers)
    headers = _headers(
        make_token, authorities=["ROLE_CADASTRAR_LANCAMENTO", "ROLE_PESQUISAR_LANCAMENTO"]
    )

    resp = await client.delete(f"/lancamentos/{created['id']}", headers=headers)

    assert resp.status_code == 403
    still_there = await client.get(f"/lancamentos/{created['id']}", headers=auth_headers)
    assert still_there.status_code == 200


# --- Listing ---


@pytest.mark.asyncio
async def test_list_filters(client, auth_headers):
    await _create(client, auth_headers, description="Rent May", dueDate="2024-05-01")
    await _create(client, auth_headers, description="Rent June", dueDate="2024-06-01")
    await _create(client, auth_headers, description="Salary", type="INCOME")

    resp = await client.get(
        "/lancamentos",
        params={"description": "rent", "dueDateFrom": "2024-05-15", "type": "EXPENSE"},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["totalElements"] == 1
    assert body["content"][0]["description"] == "Rent June"


@pytest.mark.asyncio
async def test_list_description_filter_is_literal(client, auth_headers):
    await _create(client, auth_headers, description="Desconto 50%")
    await _create(client, auth_headers, description="Parcela 500 reais")

    resp = await client.get(
        "/lancamentos", params={"description": "50%"}, headers=auth_headers
    )

    assert [e["description"] for e in resp.json()["content"]] == ["Desconto 50%"]


@pytest.mark.asyncio
async def test_delete_removes_attachment(client, auth_headers, attachments):
    created = await _create(client, auth_headers, attachment="abc_boleto.pdf")

    resp = await client.delete(f"/lancamentos/{created['id']}", headers=auth_headers)

    assert resp.status_code == 204
    attachments.remove.assert_awaited_once_with("abc_boleto.pdf")


@pytest.mark.asyncio
async def test_list_summary_projection(client, auth_headers, references):
    await _create(client, auth_headers, description="Rent", personId=references["maria"])
    await _create(client, auth_headers, description="Market")
    await _create(client, auth_headers, description="Rent garage")

    full = await client.get("/lancamentos?description=rent", headers=auth_headers)
    summary = await client.get("/lancamentos?resumo&description=rent", headers=auth_headers)

    assert summary.status_code == 200
    assert [e["id"] for e in summary.json()["content"]] == [
        e["id"] for e in full.json()["content"]
    ]
    first = summary.json()["content"][0]
    assert set(first) == {
        "id",
        "description",
        "dueDate",
        "paymentDate",
        "value",
        "type",
        "category",
        "person",
    }
    assert first["person"] == "Maria"


@pytest.mark.asyncio
async def test_list_pagination_and_sort(client, auth_headers):
    for value in (10, 50, 30, 20, 40):
        await _create(client, auth_headers, value=value)

    resp = await client.get(
        "/lancamentos",
        params={"page": 1, "size": 2, "sort": "value,desc"},
        headers=auth_headers,
    )

    body = resp.json()
    assert body["totalElements"] == 5
    assert body["totalPages"] == 3
    assert body["number"] == 1
    assert body["size"] == 2
    assert [e["value"] for e in body["content"]] == [30.0, 20.0]


@pytest.mark.asyncio
async def test_list_invalid_sort_is_bad_request(client, auth_headers):
    resp = await client.get("/lancamentos", params={"sort": "secret"}, headers=auth_headers)

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_list_page_size_is_capped(client, auth_headers):
    resp = await client.get("/lancamentos", params={"size": 1000}, headers=auth_headers)

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_list_requires_read_authority(client, make_token):
    headers = _headers(make_token, authorities=["ROLE_CADASTRAR_LANCAMENTO"])

    resp = await client.get("/lancamentos", headers=headers)

    assert resp.status_code == 403


# --- Statistics ---


@pytest.mark.asyncio
async def test_statistics_for_current_month(client, auth_headers, references):
    today = date.today().isoformat()
    await _create(client, auth_headers, dueDate=today, value=100, categoryId=references["food"])
    await _create(client, auth_headers, dueDate=today, value=25, categoryId=references["food"])
    await _create(client, auth_headers, dueDate=today, value=900, type="INCOME")

    by_category = await client.get("/lancamentos/estatistica/por-categoria", headers=auth_headers)
    by_day = await client.get("/lancamentos/estatistica/por-dia", headers=auth_headers)

    assert by_category.status_code == 200
    assert by_category.json() == [{"category": "Alimentação", "total": 125.0}]
    assert by_day.status_code == 200
    assert {(r["type"], r["day"], r["total"]) for r in by_day.json()} == {
        ("EXPENSE", today, 125.0),
        ("INCOME", today, 900.0),
    }


# --- Reports ---


@pytest.mark.asyncio
async def test_report_by_person_returns_pdf(client, auth_headers, references):
    await _create(client, auth_headers, personId=references["maria"], dueDate="2024-01-10")

    with patch("src.core.reports.html_to_pdf", return_value=b"%PDF-1.4 fake") as mock_to_pdf:
        resp = await client.get(
            "/lancamentos/relatorios/por-pessoa",
            params={"inicio": "2024-01-01", "fim": "2024-01-31"},
            headers=auth_headers,
        )

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content == b"%PDF-1.4 fake"
    assert "Maria" in mock_to_pdf.call_args[0][0]


@pytest.mark.asyncio
@pytest.mark.parametrize("inicio", ["abc", "2024-02-30", "2024-1-01", "２０２４-01-01"])
async def test_report_malformed_date_rejected_before_generation(client, auth_headers, inicio):
    with patch("src.core.reports.html_to_pdf") as mock_to_pdf:
        resp = await client.get(
            "/lancamentos/relatorios/por-pessoa",
            params={"inicio": inicio, "fim": "2024-01-31"},
            headers=auth_headers,
        )

    assert resp.status_code == 422
    mock_to_pdf.assert_not_called()


@pytest.mark.asyncio
async def test_report_end_before_start_is_bad_request(client, auth_headers):
    with patch("src.core.reports.html_to_pdf") as mock_to_pdf:
        resp = await client.get(
            "/lancamentos/relatorios/por-pessoa",
            params={"inicio": "2024-01-31", "fim": "2024-01-01"},
            headers=auth_headers,
        )

    assert resp.status_code == 400
    mock_to_pdf.assert_not_called()


@pytest.mark.asyncio
async def test_report_rendering_failure_is_server_error(client, auth_headers):
    with patch("src.core.reports.html_to_pdf", side_effect=OSError("no pango")):
        resp = await client.get(
            "/lancamentos/relatorios/por-pessoa",
            params={"inicio": "2024-01-01", "fim": "2024-01-31"},
            headers=auth_headers,
        )

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Report generation failed"


# --- Attachments ---


@pytest.mark.asyncio
async def test_upload_attachment(client, auth_headers, attachments):
    resp = await client.post(
        "/lancamentos/anexo",
        files={"anexo": ("boleto.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    assert resp.json() == {
        "name": "abc_boleto.pdf",
        "url": "https://files.test/abc_boleto.pdf",
    }
    attachments.store.assert_awaited_once_with(b"%PDF-1.4", "boleto.pdf", "application/pdf")


@pytest.mark.asyncio
async def test_upload_requires_write_authority(client, make_token, attachments):
    headers = _headers(make_token, authorities=["ROLE_PESQUISAR_LANCAMENTO"])

    resp = await client.post(
        "/lancamentos/anexo",
        files={"anexo": ("boleto.pdf", b"%PDF-1.4", "application/pdf")},
        headers=headers,
    )

    assert resp.status_code == 403
    attachments.store.assert_not_awaited()


@pytest.mark.asyncio
async def test_upload_storage_failure_is_server_error(client, auth_headers, attachments):
    attachments.store.side_effect = StorageError("bucket offline")

    resp = await client.post(
        "/lancamentos/anexo",
        files={"anexo": ("boleto.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth_headers,
    )

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Attachment storage failed"
