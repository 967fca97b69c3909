SAVINGS = "([field:current_consumption] - [field:new_consumption]) * [field:energy_price]"
SAVINGS_FIELDS = {"current_consumption": 20000, "new_consumption": 8000, "energy_price": 0.12}

HEATING_LOOKUP = {
    "name": "heating-rate",
    "title": "Heating rate",
    "conditions": [
        {"kind": "rule", "condition_rule": "[field:heating_type] == 'oil'", "target_shortcode": "0.1"},
        {
            "kind": "logic",
            "condition_logic": {"type": "OR", "conditions": [
                {"field": "heating_type", "operator": "in", "value": ["electric", "heat pump"]},
            ]},
            "action": {"type": "value", "value": 0.15},
        },
    ],
    "default_action": {"type": "formula", "formula_text": "[field:fallback_rate] * 1"},
}


async def create_formula(client, name="annual-savings", formula_text=SAVINGS, **extra):
    response = await client.post("/admin/formulas", json={"name": name, "formula_text": formula_text, **extra})
    assert response.status_code == 201, response.text
    return response.json()


async def test_admin_routes_require_token(client):
    response = await client.get("/admin/formulas", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401
    client.headers.pop("Authorization")
    response = await client.get("/admin/leads")
    assert response.status_code == 401


async def test_formula_crud(client):
    created = await create_formula(client, unit="€", tags=["savings"])
    assert created["version"] == 1
    assert created["unit"] == "€"
    assert created["tags"] == ["savings"]

    response = await client.get(f"/admin/formulas/{created['id']}")
    assert response.json()["formula_text"] == SAVINGS

    response = await client.put(f"/admin/formulas/{created['id']}", json={"description": "Yearly"})
    assert response.json()["version"] == 1

    response = await client.put(f"/admin/formulas/{created['id']}", json={"formula_text": "[field:a] * 2"})
    assert response.status_code == 200
    assert response.json()["version"] == 2
    assert response.json()["description"] == "Yearly"

    response = await client.get("/admin/formulas")
    assert [f["name"] for f in response.json()] == ["annual-savings"]

    response = await client.delete(f"/admin/formulas/{created['id']}")
    assert response.status_code == 200
    response = await client.get(f"/admin/formulas/{created['id']}")
    assert response.status_code == 404


async def test_formula_names_are_unique_ignoring_case_and_spaces(client):
    await create_formula(client, name="Annual Savings")
    response = await client.post("/admin/formulas", json={"name": "annual-savings", "formula_text": "1 + 1"})
    assert response.status_code == 409


async def test_invalid_formula_is_rejected(client):
    response = await client.post("/admin/formulas", json={"name": "broken", "formula_text": "[foo:x] + 1"})
    assert response.status_code == 422
    assert any("Unknown shortcode type" in e for e in response.json()["detail"])

    response = await client.post("/admin/formulas", json={"name": "long", "formula_text": "1" * 1001})
    assert response.status_code == 422


async def test_toggle_formula(client):
    created = await create_formula(client)
    response = await client.post(f"/admin/formulas/{created['id']}/toggle")
    assert response.json()["is_active"] is False
    response = await client.post(f"/admin/formulas/{created['id']}/toggle", json={"is_active": True})
    assert response.json()["is_active"] is True

    response = await client.get("/admin/formulas", params={"active_only": True})
    assert len(response.json()) == 1


async def test_validate_endpoint(client):
    response = await client.post("/admin/formulas/validate", json={"formula_text": "[field:a] + [calc:b]"})
    body = response.json()
    assert body["is_valid"] is True
    assert body["references"] == {"fields": ["a"], "calcs": ["b"], "lookups": []}


async def test_execute_formula_text(client):
    response = await client.post("/admin/formulas/execute", json={"formula_text": SAVINGS, "fields": SAVINGS_FIELDS})
    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["result"] == 1440
    assert body["execution_time"] >= 0


async def test_execute_by_id_and_with_references(client):
    created = await create_formula(client)
    response = await client.post("/admin/formulas/execute",
                                 json={"formula_id": created["id"], "fields": SAVINGS_FIELDS})
    assert response.json()["result"] == 1440

    response = await client.post("/admin/formulas/execute",
                                 json={"formula_text": "[calc:Annual Savings] / 12", "fields": SAVINGS_FIELDS})
    assert response.json()["result"] == 120


async def test_execute_reports_resolution_errors(client):
    response = await client.post("/admin/formulas/execute", json={"formula_text": SAVINGS, "fields": {}})
    body = response.json()
    assert response.status_code == 200
    assert body["success"] is False
    assert "current_consumption" in body["error"]

    await create_formula(client, name="a", formula_text="[calc:b] + 1")
    await create_formula(client, name="b", formula_text="[calc:a] * 2")
    response = await client.post("/admin/formulas/execute", json={"formula_text": "[calc:a]"})
    assert response.json()["success"] is False
    assert "Circular reference" in response.json()["error"]


async def test_execute_missing_formula(client):
    response = await client.post("/admin/formulas/execute", json={"formula_id": 999})
    assert response.status_code == 404
    response = await client.post("/admin/formulas/execute", json={"fields": {}})
    assert response.status_code == 422


async def test_execute_is_rate_limited(client):
    for _ in range(5):
        response = await client.post("/admin/formulas/execute", json={"formula_text": "1 + 1"})
        assert response.status_code == 200
    response = await client.post("/admin/formulas/execute", json={"formula_text": "1 + 1"})
    assert response.status_code == 429
    assert response.json()["success"] is False
    assert "Rate limit" in response.json()["error"]


async def test_render_endpoint(client):
    await create_formula(client, unit="€")
    response = await client.post("/admin/formulas/render", json={
        "content": "Säästö: [calc:annual-savings] / vuosi, [calc:nope]",
        "fields": SAVINGS_FIELDS,
    })
    assert response.json()["result"] == (
        "Säästö: 1\u00a0440 € / vuosi, [Error: Formula 'nope' not found or not active]"
    )


async def test_reference_endpoints(client):
    response = await client.get("/admin/formulas/templates")
    templates = {t["id"]: t for t in response.json()}
    assert templates["annual-energy-savings"]["formula_text"] == SAVINGS
    assert "[calc:annual-energy-savings]" in templates["total-savings"]["formula_text"]

    response = await client.get("/admin/formulas/functions")
    assert set(response.json()) == {"round", "sqrt", "max", "min", "abs", "floor", "ceil", "pow"}

    await create_formula(client, name="Annual Savings", unit="€")
    await client.post("/admin/card-fields", json={"field_name": "area", "label": "Area", "field_type": "number"})
    await client.post("/admin/lookups", json=HEATING_LOOKUP)
    response = await client.get("/admin/formulas/shortcodes")
    assert [s["shortcode"] for s in response.json()] == [
        "[field:area]", "[calc:annual-savings]", "[lookup:heating-rate]"]


async def test_lookup_crud_keeps_condition_order(client):
    response = await client.post("/admin/lookups", json=HEATING_LOOKUP)
    assert response.status_code == 201, response.text
    lookup = response.json()
    assert [c["kind"] for c in lookup["conditions"]] == ["rule", "logic"]
    assert lookup["default_action"]["type"] == "formula"

    response = await client.post("/admin/lookups", json=HEATING_LOOKUP)
    assert response.status_code == 409

    reordered = {"conditions": list(reversed(HEATING_LOOKUP["conditions"])), "title": "Rates"}
    response = await client.put(f"/admin/lookups/{lookup['id']}", json=reordered)
    assert response.status_code == 200, response.text
    body = response.json()
    assert [c["kind"] for c in body["conditions"]] == ["logic", "rule"]
    assert body["title"] == "Rates"
    assert body["default_action"]["type"] == "formula"

    response = await client.get(f"/admin/lookups/{lookup['id']}")
    assert [c["kind"] for c in response.json()["conditions"]] == ["logic", "rule"]

    response = await client.delete(f"/admin/lookups/{lookup['id']}")
    assert response.status_code == 200
    response = await client.get("/admin/lookups")
    assert response.json() == []


async def test_lookup_with_invalid_rule_is_rejected(client):
    bad = {**HEATING_LOOKUP, "conditions": [
        {"kind": "rule", "condition_rule": "[field:x] ==", "target_shortcode": "1"}]}
    response = await client.post("/admin/lookups", json=bad)
    assert response.status_code == 422


async def test_lookup_test_endpoint(client):
    await client.post("/admin/lookups", json=HEATING_LOOKUP)

    response = await client.post("/admin/lookups/heating-rate/test", json={"fields": {"heating_type": "oil"}})
    body = response.json()
    assert body["success"] is True
    assert (body["result"], body["matched_condition"], body["used_default"]) == (0.1, 0, False)

    response = await client.post("/admin/lookups/Heating Rate/test", json={"fields": {"heating_type": "heat pump"}})
    assert (response.json()["result"], response.json()["matched_condition"]) == (0.15, 1)

    response = await client.post("/admin/lookups/heating-rate/test",
                                 json={"fields": {"heating_type": "gas", "fallback_rate": "0,2"}})
    assert (response.json()["result"], response.json()["used_default"]) == (0.2, True)

    response = await client.post("/admin/lookups/heating-rate/test", json={"fields": {"heating_type": "gas"}})
    assert response.json()["success"] is False
    assert "fallback_rate" in response.json()["error"]

    response = await client.post("/admin/lookups/unknown/test", json={"fields": {}})
    assert response.status_code == 404


async def test_card_field_crud(client):
    response = await client.post("/admin/card-fields", json={
        "field_name": "heating_type", "label": "Heating", "field_type": "select",
        "options": ["oil", "electric"], "sort_order": 2})
    assert response.status_code == 201
    field_id = response.json()["id"]
    await client.post("/admin/card-fields", json={"field_name": "area", "label": "Area", "field_type": "number"})

    response = await client.post("/admin/card-fields", json={"field_name": "area", "label": "Again"})
    assert response.status_code == 409

    response = await client.get("/admin/card-fields")
    assert [f["field_name"] for f in response.json()] == ["area", "heating_type"]

    response = await client.put(f"/admin/card-fields/{field_id}", json={"label": "Heating system"})
    assert response.json()["label"] == "Heating system"

    response = await client.delete(f"/admin/card-fields/{field_id}")
    assert response.status_code == 200
    response = await client.put(f"/admin/card-fields/{field_id}", json={"label": "x"})
    assert response.status_code == 404


async def test_widget_config_headers_and_cache(client):
    await create_formula(client, unit="€")
    await client.post("/admin/card-fields", json={"field_name": "area", "label": "Area", "field_type": "number"})

    response = await client.get("/widget/config")
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["cache-control"] == "public, max-age=1800, s-maxage=3600"
    assert response.headers["x-cache"] == "MISS"
    body = response.json()
    assert body["formulas"][0]["shortcode"] == "[calc:annual-savings]"
    assert body["card_fields"][0]["field_name"] == "area"

    response = await client.get("/widget/config")
    assert response.headers["x-cache"] == "HIT"

    await create_formula(client, name="payback", formula_text="[field:cost] / [calc:annual-savings]")
    response = await client.get("/widget/config")
    assert response.headers["x-cache"] == "MISS"
    assert len(response.json()["formulas"]) == 2

    response = await client.options("/widget/config")
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


async def test_leads_flow(client):
    await create_formula(client, unit="€")
    await create_formula(client, name="broken", formula_text="[field:a] / [field:b]")

    for heating in ("oil", "electric"):
        response = await client.post("/widget/leads", json={
            "first_name": "Test", "email": "test@example.com", "heating_type": heating,
            "form_data": {**SAVINGS_FIELDS, "heating_type": heating}})
        assert response.status_code == 201, response.text
        assert response.json()["calculation_results"] == {"annual-savings": 1440}

    response = await client.get("/admin/leads")
    leads = response.json()
    assert len(leads) == 2
    lead_id = leads[0]["id"]

    response = await client.patch(f"/admin/leads/{lead_id}/status", json={"status": "contacted"})
    assert response.json()["status"] == "contacted"
    response = await client.patch(f"/admin/leads/{lead_id}/status", json={"status": "archived"})
    assert response.status_code == 422

    response = await client.get("/admin/leads", params={"status": "contacted"})
    assert [lead["id"] for lead in response.json()] == [lead_id]

    response = await client.get("/admin/leads/summary")
    summary = response.json()
    assert summary["total"] == 2
    assert summary["by_status"] == {"new": 1, "contacted": 1}
    assert summary["by_heating_type"] == {"oil": 1, "electric": 1}

    response = await client.delete(f"/admin/leads/{lead_id}")
    assert response.status_code == 200
    response = await client.get(f"/admin/leads/{lead_id}")
    assert response.status_code == 404


async def test_execute_overlong_operator_chain_fails_cleanly(client):
    response = await client.post("/admin/formulas/execute", json={"formula_text": "1+" * 499 + "1"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert "nested too deeply" in body["error"]


async def test_lookup_names_are_unique_ignoring_case_and_spaces(client):
    first = {"name": "Heat Rate", "default_action": {"type": "value", "value": 1}}
    response = await client.post("/admin/lookups", json=first)
    assert response.status_code == 201

    response = await client.post("/admin/lookups", json={**first, "name": "heat-rate"})
    assert response.status_code == 409

    response = await client.post("/admin/lookups", json={**first, "name": "cool-rate"})
    other_id = response.json()["id"]
    response = await client.put(f"/admin/lookups/{other_id}", json={"name": "HEAT_RATE"})
    assert response.status_code == 409
    response = await client.put(f"/admin/lookups/{other_id}", json={"name": "Cool Rate"})
    assert response.status_code == 200


async def test_lookup_with_invalid_target_is_rejected(client):
    for target in ("[calc:x", "[foo:bar]"):
        bad = {"name": "fuel", "conditions": [
            {"kind": "rule", "condition_rule": "[field:heating_type] == 'oil'", "target_shortcode": target}]}
        response = await client.post("/admin/lookups", json=bad)
        assert response.status_code == 422, target

    good = {"name": "fuel", "conditions": [
        {"kind": "rule", "condition_rule": "[field:heating_type] == 'oil'", "target_shortcode": "fossil"}]}
    response = await client.post("/admin/lookups", json=good)
    assert response.status_code == 201

    response = await client.post("/admin/lookups/fuel/test", json={"fields": {"heating_type": "oil"}})
    assert response.json()["result"] == "fossil"


async def test_null_leaves_required_columns_unchanged(client):
    response = await client.post("/admin/card-fields", json={
        "field_name": "area", "label": "Area", "field_type": "number", "default_value": "100"})
    field_id = response.json()["id"]

    response = await client.put(f"/admin/card-fields/{field_id}", json={"label": None, "default_value": None})
    assert response.status_code == 200
    assert response.json()["label"] == "Area"
    assert response.json()["default_value"] is None

    response = await client.post("/admin/lookups", json={**HEATING_LOOKUP})
    lookup_id = response.json()["id"]
    response = await client.put(f"/admin/lookups/{lookup_id}", json={"name": None, "title": None})
    assert response.status_code == 200
    assert response.json()["name"] == "heating-rate"
    assert response.json()["title"] is None


async def submit_leads(client, *heating_types):
    for heating in heating_types:
        response = await client.post("/widget/leads", json={
            "first_name": "Test", "email": "test@example.com", "heating_type": heating,
            "form_data": {**SAVINGS_FIELDS, "heating_type": heating}})
        assert response.status_code == 201
    response = await client.get("/admin/leads")
    return [lead["id"] for lead in response.json()]


async def test_lead_bulk_update_and_delete(client):
    ids = await submit_leads(client, "oil", "electric", "wood")

    response = await client.post("/admin/leads/bulk-update", json={"ids": ids[:2], "status": "qualified"})
    assert response.json() == {"success": True, "updated": 2}
    response = await client.get("/admin/leads", params={"status": "qualified"})
    assert sorted(lead["id"] for lead in response.json()) == sorted(ids[:2])

    response = await client.post("/admin/leads/bulk-update", json={"ids": [], "status": "qualified"})
    assert response.status_code == 422

    response = await client.post("/admin/leads/bulk-delete", json={"ids": ids[1:]})
    assert response.json() == {"success": True, "deleted": 2}
    response = await client.get("/admin/leads")
    assert [lead["id"] for lead in response.json()] == ids[:1]


async def test_lead_csv_export(client):
    await create_formula(client)
    await submit_leads(client, "oil", "electric")

    response = await client.get("/admin/leads/export", params={"date_format": "iso"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "(2-leads).csv" in response.headers["content-disposition"]

    lines = response.text.lstrip("\ufeff").splitlines()
    header = lines[0].split(",")
    assert header[:3] == ["id", "first_name", "last_name"]
    assert "form:energy_price" in header
    assert "result:annual-savings" in header
    assert len(lines) == 3
    row = dict(zip(header, lines[1].split(",")))
    assert row["result:annual-savings"] == "1440"

    response = await client.get("/admin/leads/export", params={"status": "lost"})
    assert response.text.lstrip("\ufeff").splitlines() == [",".join(
        ["id", "first_name", "last_name", "email", "phone", "city", "heating_type", "status", "source_page",
         "created_at"])]
