"""LogbookService: identification, diagnosis, manual logs and follow-ups against a fake backend."""

from __future__ import annotations

import threading
from datetime import date
from unittest.mock import MagicMock

import pytest

from app.domain.exceptions import (
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    StaleRequestError,
    UnrecognizedResultError,
    ValidationError,
)
from app.domain.logbook import DiagnosisEntry, IdentificationEntry
from app.enums.common import ActionType, TimelineEventKind
from app.services.application.logbook_service import LogbookService


# ========================== Identification ================================


def test_identify_does_not_save(logbook_service, fake_backend, plant_payload, sample_image):
    fake_backend.queue(plant_payload)

    info = logbook_service.identify_plant(sample_image)

    assert info.plant_name == "Tomato"
    assert info.care_instructions.watering == "Keep the soil evenly moist."
    assert logbook_service.list_entries() == []


def test_identify_unknown_plant(logbook_service, fake_backend, sample_image):
    fake_backend.queue({"plantName": "unknown", "error": "The image is too blurry"})

    with pytest.raises(UnrecognizedResultError, match="too blurry"):
        logbook_service.identify_plant(sample_image)


def test_identify_rejects_non_data_uri(logbook_service, fake_backend):
    with pytest.raises(ValidationError):
        logbook_service.identify_plant("https://example.com/tomato.png")
    assert fake_backend.calls == []


def test_save_identification(logbook_service, plant_payload, sample_image):
    entry = logbook_service.save_identification(sample_image, plant_payload)

    assert isinstance(entry, IdentificationEntry)
    assert entry.image_ref == sample_image
    assert entry.plant_info["scientific_name"] == "Solanum lycopersicum"
    assert logbook_service.get_entry(entry.id) == entry


def test_save_identification_twice_conflicts(logbook_service, plant_payload, sample_image):
    first = logbook_service.save_identification(sample_image, plant_payload)

    with pytest.raises(ConflictError) as excinfo:
        logbook_service.save_identification(sample_image, plant_payload)

    assert excinfo.value.detail == {"entry_id": first.id}
    assert len(logbook_service.list_entries()) == 1


def test_save_unrecognized_identification_rejected(logbook_service, sample_image):
    with pytest.raises(ValidationError):
        logbook_service.save_identification(sample_image, {"plantName": "ناشناخته"})


# ========================== Diagnosis =====================================


def test_diagnose_records_entry(logbook_service, fake_backend, diagnosis_payload, sample_image):
    fake_backend.queue(diagnosis_payload)

    entry = logbook_service.diagnose_and_record(sample_image)

    assert isinstance(entry, DiagnosisEntry)
    assert entry.primary_issue_name == "Early blight"
    assert entry.diagnosis_result["diagnoses"][0]["severity"] == {"level": "moderate", "percentage": 20.0}
    assert [e.id for e in logbook_service.list_entries()] == [entry.id]


def test_failed_diagnosis_records_nothing(logbook_service, fake_backend, sample_image):
    fake_backend.queue({"diagnoses": [], "error": "No plant visible"})

    with pytest.raises(UnrecognizedResultError):
        logbook_service.diagnose_and_record(sample_image)
    assert logbook_service.list_entries() == []


def test_backend_failure_records_nothing(logbook_service, fake_backend, sample_image):
    fake_backend.queue(ExternalServiceError("boom"))

    with pytest.raises(ExternalServiceError):
        logbook_service.diagnose_and_record(sample_image)
    assert logbook_service.list_entries() == []


def test_superseded_diagnosis_is_discarded(logbook_repo, diagnosis_payload, sample_image):
    started = threading.Event()
    release = threading.Event()
    calls = {"count": 0}

    def slow_diagnose(_image):
        from app.schemas.ai_results import PlantDiseaseInfo

        calls["count"] += 1
        if calls["count"] == 1:
            started.set()
            release.wait(timeout=5)
        return PlantDiseaseInfo.model_validate(diagnosis_payload)

    advisor = MagicMock()
    advisor.diagnose_disease.side_effect = slow_diagnose
    service = LogbookService(logbook_repo, advisor)
    outcome = {}

    def first_request():
        try:
            service.diagnose_and_record(sample_image, scope="camera")
        except StaleRequestError as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=first_request)
    worker.start()
    assert started.wait(timeout=5)

    newer = service.diagnose_and_record(sample_image, scope="camera")
    release.set()
    worker.join(timeout=5)

    assert isinstance(outcome.get("error"), StaleRequestError)
    assert [entry.id for entry in logbook_repo.list_entries()] == [newer.id]


def test_other_scopes_do_not_supersede(logbook_service, fake_backend, diagnosis_payload, sample_image):
    fake_backend.queue(diagnosis_payload, diagnosis_payload)

    logbook_service.diagnose_and_record(sample_image, scope="a")
    logbook_service.diagnose_and_record(sample_image, scope="b")

    assert len(logbook_service.list_entries()) == 2


# ========================== Manual logs / follow-ups =======================


@pytest.fixture()
def diagnosis_entry(logbook_service, fake_backend, diagnosis_payload, sample_image):
    fake_backend.queue(diagnosis_payload)
    return logbook_service.diagnose_and_record(sample_image)


def test_add_manual_log(logbook_service, diagnosis_entry):
    updated = logbook_service.add_manual_log(diagnosis_entry.id, "spraying", "  copper spray  ", "2024-05-02")

    log = updated.manual_logs[0]
    assert log.action_type is ActionType.SPRAYING
    assert log.notes == "copper spray"
    assert log.date == "2024-05-02"


@pytest.mark.parametrize(
    "action, notes, when",
    [
        ("watering", "   ", None),
        ("mowing", "cut the lawn", None),
        ("watering", "ok", "yesterday"),
    ],
)
def test_invalid_manual_log(logbook_service, diagnosis_entry, action, notes, when):
    with pytest.raises(ValidationError):
        logbook_service.add_manual_log(diagnosis_entry.id, action, notes, when)


def test_manual_log_unknown_entry(logbook_service):
    with pytest.raises(NotFoundError):
        logbook_service.add_manual_log("missing", ActionType.WATERING, "2 litres")


def test_follow_up_assessment(logbook_service, fake_backend, diagnosis_entry, sample_image, other_image):
    fake_backend.queue("The spots have stopped spreading.")

    updated = logbook_service.add_follow_up(diagnosis_entry.id, other_image)

    assert updated.follow_ups[0].assessment == "The spots have stopped spreading."
    assert updated.follow_ups[0].image_ref == other_image
    before, prompt, after = fake_backend.calls[-1]["parts"]
    assert before.data == sample_image.split(",", 1)[1]
    assert "Early blight" in prompt.text
    assert after.mime_type == "image/jpeg"


def test_follow_up_on_identification_rejected(logbook_service, fake_backend, plant_payload, sample_image):
    entry = logbook_service.save_identification(sample_image, plant_payload)

    with pytest.raises(ValidationError):
        logbook_service.add_follow_up(entry.id, sample_image)
    assert fake_backend.calls == []


def test_timeline_merges_history(logbook_service, fake_backend, diagnosis_entry, other_image):
    logbook_service.add_manual_log(diagnosis_entry.id, "watering", "deep watering", "2000-01-01")
    fake_backend.queue("Improving")
    logbook_service.add_follow_up(diagnosis_entry.id, other_image)

    kinds = [event.kind for event in logbook_service.timeline(diagnosis_entry.id)]

    assert kinds == [TimelineEventKind.FOLLOW_UP, TimelineEventKind.DIAGNOSIS, TimelineEventKind.MANUAL_LOG]


# ========================== Queries =======================================


def test_filter_entries_rejects_inverted_range(logbook_service):
    with pytest.raises(ValidationError):
        logbook_service.filter_entries(date(2024, 5, 2), date(2024, 5, 1))


def test_delete_entry_is_audited(logbook_repo, advisor, plant_payload, sample_image):
    audit = MagicMock()
    service = LogbookService(logbook_repo, advisor, audit_logger=audit)
    entry = service.save_identification(sample_image, plant_payload)

    service.delete_entry(entry.id)

    actions = [c.args[1] for c in audit.log_event.call_args_list]
    assert actions == ["create", "delete"]
    with pytest.raises(NotFoundError):
        service.get_entry(entry.id)
