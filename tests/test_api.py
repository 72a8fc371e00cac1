from tests.factories import make_workbook

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _upload(api, content, filename="renovacoes.xlsx"):
    return api.post("/api/imports", files={"file": (filename, content, XLSX)})


def test_health(api):
    assert api.get("/health").json() == {"status": "healthy"}


def test_client_crud(api):
    created = api.post("/api/clients", json={"name": "Ana Lima", "phone": "11999990000"})
    assert created.status_code == 201
    client_id = created.json()["id"]

    assert api.get(f"/api/clients/{client_id}").json()["name"] == "Ana Lima"

    updated = api.patch(f"/api/clients/{client_id}", json={"email": "ana@x.com"})
    assert updated.json()["email"] == "ana@x.com"
    assert updated.json()["phone"] == "11999990000"

    assert [c["name"] for c in api.get("/api/clients", params={"search": "ana@"}).json()] == ["Ana Lima"]

    assert api.delete(f"/api/clients/{client_id}").status_code == 204
    missing = api.get(f"/api/clients/{client_id}")
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "EntityNotFoundException"


def test_client_list_limit_is_bounded(api):
    assert api.get("/api/clients", params={"limit": 20000}).status_code == 422


def test_policy_crud_and_status_change(api):
    client_id = api.post("/api/clients", json={"name": "Ana"}).json()["id"]
    created = api.post(
        "/api/policies",
        json={"client_id": client_id, "due_date": "2026-03-15", "insurer": "Allianz", "iof": 12.5},
    )
    assert created.status_code == 201
    policy = created.json()
    assert policy["status"] == "active"
    assert policy["iof"] == 12.5

    renewed = api.patch(f"/api/policies/{policy['id']}", json={"status": "renewed"})
    assert renewed.json()["status"] == "renewed"

    assert api.patch(f"/api/policies/{policy['id']}", json={"status": "cancelled"}).status_code == 422
    assert api.get("/api/policies", params={"status": "renewed"}).json()[0]["id"] == policy["id"]

    [renewal] = api.get("/api/policies/renewals").json()
    assert renewal["client"]["name"] == "Ana"


def test_policy_for_unknown_client_is_404(api):
    response = api.post("/api/policies", json={"client_id": 999, "due_date": "2026-03-15"})
    assert response.status_code == 404


def test_explicit_null_on_required_fields_is_rejected(api):
    client_id = api.post("/api/clients", json={"name": "Ana"}).json()["id"]
    policy_id = api.post(
        "/api/policies", json={"client_id": client_id, "due_date": "2026-03-15"}
    ).json()["id"]

    for field in ("due_date", "status", "client_id"):
        assert api.patch(f"/api/policies/{policy_id}", json={field: None}).status_code == 422
    assert api.patch(f"/api/clients/{client_id}", json={"name": None}).status_code == 422

    policy = api.get(f"/api/policies/{policy_id}").json()
    assert policy["due_date"] == "2026-03-15"
    assert policy["status"] == "active"
    assert api.get(f"/api/clients/{client_id}").json()["name"] == "Ana"

    cleared = api.patch(f"/api/policies/{policy_id}", json={"notes": None, "status": "lost"})
    assert cleared.status_code == 200
    assert cleared.json()["status"] == "lost"


def test_import_endpoint(api, joao_silva_workbook):
    response = _upload(api, joao_silva_workbook)

    assert response.status_code == 200
    body = response.json()
    assert body["clients_created"] == 1
    assert body["policies_created"] == 1

    [run] = api.get("/api/imports").json()
    assert run["status"] == "completed"
    assert run["original_name"] == "renovacoes.xlsx"

    again = _upload(api, joao_silva_workbook)
    assert again.status_code == 422
    assert again.json()["error"]["code"] == "AllRowsDuplicateError"


def test_import_rejects_other_extensions(api):
    response = _upload(api, b"nome;vencimento", filename="clientes.csv")
    assert response.status_code == 400


def test_import_reports_missing_columns(api):
    content = make_workbook(("Plan1", [
        ["Seguradora", "Produto", "Telefone", "Email", "Placa"],
        ["Allianz", "Auto", "", "", "ABC1D23"],
    ]))

    response = _upload(api, content)

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "RequiredColumnsNotFoundError"
    assert "Data de Vencimento" in error["message"]


def test_dashboard_summary(api, joao_silva_workbook):
    _upload(api, joao_silva_workbook)

    body = api.get("/api/dashboard/summary").json()

    assert set(body["stats"]) == {
        "overdue", "due_in_0_to_7", "due_in_8_to_15", "due_in_16_to_30",
        "birthdays_this_month", "birthdays_today",
    }
    assert len(body["renewals_by_month"]) == 12
    assert body["top_renewals"][0]["client"]["name"] == "João Silva"


def test_exports_are_attachments(api, joao_silva_workbook):
    _upload(api, joao_silva_workbook)

    for path, prefix in (("clients", "clientes"), ("renewals", "renovacoes"), ("dashboard", "dashboard")):
        response = api.get(f"/api/exports/{path}")
        assert response.status_code == 200
        assert response.headers["content-type"] == XLSX
        disposition = response.headers["content-disposition"]
        assert disposition.startswith(f'attachment; filename="{prefix}_')
        assert response.content[:2] == b"PK"


def test_clear_all_data(api, joao_silva_workbook):
    _upload(api, joao_silva_workbook)

    result = api.delete("/api/data").json()

    assert result == {"policies_deleted": 1, "clients_deleted": 1}
    assert api.get("/api/clients").json() == []
    assert api.get("/api/policies").json() == []
