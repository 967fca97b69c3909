from api_service.crud.shortcode_config import replace_placeholders
from models import ShortcodeConfig

CUSTOMER_NAME = {
    "name": "customer.name", "description": "Customer full name", "example": "John Doe",
    "category": "customer", "replacement_value": "Dear customer",
}
COMPANY_PHONE = {
    "name": "company.phone", "description": "Company phone", "example": "+358 9 123 4567",
    "category": "company", "replacement_value": "+358 9 123 4567",
}

HEAT_PUMP_FORM = {"sections": [{"title": "Property", "fields": [{"name": "area", "type": "number"}]}]}


def test_replace_placeholders():
    shortcodes = [ShortcodeConfig(**CUSTOMER_NAME), ShortcodeConfig(**COMPANY_PHONE)]
    content = "Hello {{customer.name}}, call {{company.phone}}. {{unknown}}"

    assert replace_placeholders(content, shortcodes, {"customer": {"name": "Aino"}}) == \
        "Hello Aino, call +358 9 123 4567. {{unknown}}"
    assert replace_placeholders(content, shortcodes, {"customer": {"name": ""}}) == \
        "Hello Dear customer, call +358 9 123 4567. {{unknown}}"


async def test_pdf_shortcode_crud(client):
    response = await client.post("/admin/pdf-shortcodes", json=CUSTOMER_NAME)
    assert response.status_code == 201, response.text
    shortcode_id = response.json()["id"]
    await client.post("/admin/pdf-shortcodes", json=COMPANY_PHONE)

    response = await client.post("/admin/pdf-shortcodes", json=CUSTOMER_NAME)
    assert response.status_code == 409

    response = await client.post("/admin/pdf-shortcodes", json={**CUSTOMER_NAME, "name": "x", "category": "misc"})
    assert response.status_code == 422

    response = await client.get("/admin/pdf-shortcodes")
    assert [s["name"] for s in response.json()] == ["company.phone", "customer.name"]
    response = await client.get("/admin/pdf-shortcodes", params={"category": "customer"})
    assert [s["name"] for s in response.json()] == ["customer.name"]

    response = await client.put(f"/admin/pdf-shortcodes/{shortcode_id}",
                                json={"replacement_value": "Valued customer", "description": None})
    assert response.json()["replacement_value"] == "Valued customer"
    assert response.json()["description"] == "Customer full name"

    response = await client.post("/admin/pdf-shortcodes/process", json={
        "content": "Hi {{customer.name}}", "context": {}})
    assert response.json() == {"content": "Hi Valued customer"}

    response = await client.delete(f"/admin/pdf-shortcodes/{shortcode_id}")
    assert response.status_code == 200
    response = await client.get(f"/admin/pdf-shortcodes/{shortcode_id}")
    assert response.status_code == 404
    response = await client.get("/admin/pdf-shortcodes")
    assert [s["name"] for s in response.json()] == ["company.phone"]
    response = await client.delete(f"/admin/pdf-shortcodes/{shortcode_id}")
    assert response.status_code == 404


async def test_form_schema_versions(client):
    response = await client.post("/admin/form-schemas", json={"name": "calculator", "schema_data": HEAT_PUMP_FORM})
    assert response.status_code == 201, response.text
    first = response.json()
    assert first["version"] == 1

    response = await client.post(f"/admin/form-schemas/{first['id']}/versions",
                                 json={"description": "Adds ceiling height"})
    assert response.status_code == 201
    second = response.json()
    assert (second["name"], second["version"], second["is_active"]) == ("calculator", 2, True)
    assert second["schema_data"] == HEAT_PUMP_FORM

    response = await client.get(f"/admin/form-schemas/{first['id']}")
    assert response.json()["is_active"] is False

    response = await client.get("/admin/form-schemas/active/calculator")
    assert response.json()["id"] == second["id"]

    response = await client.get("/admin/form-schemas", params={"name": "calculator"})
    assert [s["version"] for s in response.json()] == [2, 1]

    response = await client.put(f"/admin/form-schemas/{second['id']}", json={"name": None, "schema_data": {}})
    assert response.json()["name"] == "calculator"
    assert response.json()["schema_data"] == {}

    response = await client.delete(f"/admin/form-schemas/{second['id']}")
    assert response.status_code == 200
    response = await client.get("/admin/form-schemas/active/calculator")
    assert response.status_code == 404

    response = await client.delete(f"/admin/form-schemas/{second['id']}", params={"hard": True})
    assert response.status_code == 200
    response = await client.get(f"/admin/form-schemas/{second['id']}")
    assert response.status_code == 404
