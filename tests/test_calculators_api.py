from __future__ import annotations


def test_pesticide_with_defaults(client):
    response = client.post("/api/v1/calculators/pesticide", json={"area": 1, "dose": 2, "sprayVolume": 400})

    assert response.status_code == 200
    assert response.get_json()["data"] == {
        "area_hectares": 1.0,
        "total_product": 2.0,
        "product_unit": "kg",
        "total_mix_liters": 400.0,
    }


def test_pesticide_concentration_requires_volume(client):
    response = client.post(
        "/api/v1/calculators/pesticide", json={"area": 1, "area_unit": "m2", "dose": 50, "dose_unit": "ml_100l"}
    )

    assert response.status_code == 400
    assert response.get_json()["ok"] is False


def test_pesticide_rejects_bad_units(client):
    response = client.post("/api/v1/calculators/pesticide", json={"area": 1, "dose": 2, "doseUnit": "g_ha"})

    assert response.status_code == 400
    fields = [error["field"] for error in response.get_json()["error"]["details"]["errors"]]
    assert fields == ["doseUnit"]


def test_irrigation(client):
    response = client.post("/api/v1/calculators/irrigation", json={"area": 2, "areaUnit": "hectare", "depthMm": 25})

    assert response.get_json()["data"] == {"area_square_meters": 20000.0, "cubic_meters": 500.0, "liters": 500000.0}


def test_irrigation_rejects_negative_depth(client):
    response = client.post("/api/v1/calculators/irrigation", json={"area": 2, "depthMm": -1})

    assert response.status_code == 400
