from __future__ import annotations

import io

import pytest


def test_status(client):
    data = client.get("/api/v1/assistant/status").get_json()["data"]
    assert data == {"available": True, "provider": "fake"}


def test_identify_returns_result_without_saving(client, fake_backend, plant_payload, sample_image):
    fake_backend.queue(plant_payload)

    response = client.post("/api/v1/assistant/identify", json={"image": sample_image})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["scientific_name"] == "Solanum lycopersicum"
    assert data["care_instructions"]["sunlight"] == "Full sun, 6-8 hours."
    assert client.get("/api/v1/logbook/entries").get_json()["data"]["items"] == []


def test_identify_multipart_upload(client, fake_backend, plant_payload):
    fake_backend.queue(plant_payload)

    response = client.post(
        "/api/v1/assistant/identify",
        data={"image": (io.BytesIO(b"\xff\xd8\xff\xe0"), "leaf.jpg", "image/jpeg")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 200
    assert fake_backend.calls[0]["parts"][0].mime_type == "image/jpeg"


def test_identify_unrecognized_is_422(client, fake_backend, sample_image):
    fake_backend.queue({"plantName": "unknown", "error": "No plant in the picture"})

    response = client.post("/api/v1/assistant/identify", json={"image": sample_image})

    assert response.status_code == 422
    assert response.get_json()["error"]["message"] == "No plant in the picture"


@pytest.mark.parametrize(
    "body",
    [{}, {"image": "not-a-data-uri"}, {"image": "data:image/png;base64,@@@"}, {"image": 42}],
)
def test_identify_bad_image(client, fake_backend, body):
    response = client.post("/api/v1/assistant/identify", json=body)

    assert response.status_code == 400
    assert fake_backend.calls == []


def test_diagnose_records_logbook_entry(client, fake_backend, diagnosis_payload, sample_image):
    fake_backend.queue(diagnosis_payload)

    response = client.post("/api/v1/assistant/diagnose", json={"image": sample_image, "scope": "camera"})

    assert response.status_code == 201
    entry = response.get_json()["data"]
    assert entry["type"] == "diagnosis"
    assert entry["image_ref"] == sample_image
    listing = client.get("/api/v1/logbook/entries").get_json()["data"]
    assert [item["id"] for item in listing["items"]] == [entry["id"]]


def test_diagnose_failure_records_nothing(client, fake_backend, sample_image):
    fake_backend.queue({"diagnoses": []})

    response = client.post("/api/v1/assistant/diagnose", json={"image": sample_image})

    assert response.status_code == 422
    assert "clearer" in response.get_json()["error"]["message"]
    assert client.get("/api/v1/logbook/entries").get_json()["data"]["pagination"]["total"] == 0


def test_video_analysis(client, fake_backend, sample_video):
    fake_backend.queue(
        {
            "overallSummary": "Healthy row",
            "plantingDensity": {"status": "optimal", "recommendation": ""},
            "sections": [{"startTime": 0, "endTime": 3, "status": "healthy"}],
        }
    )

    response = client.post("/api/v1/assistant/video", json={"video": sample_video})

    assert response.status_code == 200
    assert response.get_json()["data"]["planting_density"]["status"] == "optimal"


def test_video_rejects_image(client, sample_image):
    response = client.post("/api/v1/assistant/video", json={"video": sample_image})
    assert response.status_code == 400


def test_weather_alerts(client, fake_backend):
    fake_backend.queue(
        {
            "locationName": "Rasht",
            "overallSummary": "Rainy",
            "alerts": [{"riskLevel": "medium", "diseaseName": "Downy mildew"}],
        }
    )

    response = client.post("/api/v1/assistant/weather-alerts", json={"latitude": 37.28, "longitude": 49.58})

    assert response.status_code == 200
    assert response.get_json()["data"]["alerts"][0]["risk_level"] == "moderate"


@pytest.mark.parametrize("body", [{"latitude": 91, "longitude": 0}, {"latitude": 10}, {}])
def test_weather_alerts_validates_coordinates(client, body):
    assert client.post("/api/v1/assistant/weather-alerts", json=body).status_code == 400


def test_crop_calendar(client, fake_backend):
    fake_backend.queue({"cropName": "Tomato", "plantingDate": "2024-03-20", "schedule": []})

    response = client.post(
        "/api/v1/assistant/crop-calendar",
        json={"crop": "Tomato", "planting_date": "2024-03-20", "latitude": 35.7, "longitude": 51.4},
    )

    assert response.status_code == 200
    assert "2024-03-20" in fake_backend.calls[0]["parts"][0].text


def test_crop_calendar_requires_valid_date(client):
    response = client.post(
        "/api/v1/assistant/crop-calendar",
        json={"crop": "Tomato", "planting_date": "next spring", "latitude": 35.7, "longitude": 51.4},
    )
    assert response.status_code == 400


def test_unconfigured_backend_is_503(tmp_path, sample_image):
    from app import create_app

    app = create_app(
        {
            "storage_path": ":memory:",
            "audit_log_path": str(tmp_path / "audit.log"),
            "log_file": None,
            "seed_community": False,
            "llm_provider": "none",
        }
    )
    try:
        client = app.test_client()
        assert client.get("/api/v1/assistant/status").get_json()["data"] == {"available": False, "provider": "none"}
        response = client.post("/api/v1/assistant/identify", json={"image": sample_image})
        assert response.status_code == 503
        assert response.get_json()["error"]["message"] == "The assistant is not configured"
    finally:
        app.extensions["flora_shutdown"]("test-teardown")
