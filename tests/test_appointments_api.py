from datetime import datetime

import pytest

from healthcare_portal.api.deps import get_clock
from healthcare_portal.main import app

API = "/api/v1/appointments"


def move_clock(now):
    app.dependency_overrides[get_clock] = lambda: (lambda: now)


def booking(patient_id, provider_id, at="2030-01-14T10:00:00", notes=None):
    data = {"patient_id": patient_id, "provider_id": provider_id, "appointment_at": at}
    if notes is not None:
        data["notes"] = notes
    return data


class TestSlots:

    def test_monday_slots(self, client, patient, provider):
        _, headers = patient
        provider_id, _ = provider

        response = client.get(f"{API}/slots", params={"provider_id": provider_id, "date": "2030-01-14"}, headers=headers)
        assert response.status_code == 200

        slots = response.json()
        assert len(slots) == 14
        assert slots[0] == {"timestamp": "2030-01-14T09:00:00", "is_available": True}
        assert slots[-1]["timestamp"] == "2030-01-14T16:30:00"
        assert not any("T12:" in s["timestamp"] for s in slots)

    def test_weekend_is_empty(self, client, patient, provider):
        _, headers = patient
        provider_id, _ = provider

        response = client.get(f"{API}/slots", params={"provider_id": provider_id, "date": "2030-01-12"}, headers=headers)
        assert response.status_code == 200
        assert response.json() == []

    def test_defaults_to_today(self, client, patient, provider):
        _, headers = patient
        provider_id, _ = provider

        response = client.get(f"{API}/slots", params={"provider_id": provider_id}, headers=headers)
        assert response.json()[0]["timestamp"] == "2030-01-07T09:00:00"

    def test_booked_slot_shows_unavailable(self, client, patient, provider):
        patient_id, headers = patient
        provider_id, _ = provider
        client.post(API, json=booking(patient_id, provider_id), headers=headers)

        slots = client.get(
            f"{API}/slots", params={"provider_id": provider_id, "date": "2030-01-14"}, headers=headers
        ).json()
        taken = [s["timestamp"] for s in slots if not s["is_available"]]
        assert taken == ["2030-01-14T10:00:00"]

    def test_week(self, client, patient, provider):
        _, headers = patient
        provider_id, _ = provider

        response = client.get(
            f"{API}/slots/week", params={"provider_id": provider_id, "start_date": "2030-01-14"}, headers=headers
        )
        assert response.status_code == 200
        assert len(response.json()) == 70

    def test_unknown_provider(self, client, patient):
        _, headers = patient
        response = client.get(f"{API}/slots", params={"provider_id": 999, "date": "2030-01-14"}, headers=headers)
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_requires_authentication(self, client, provider):
        provider_id, _ = provider
        response = client.get(f"{API}/slots", params={"provider_id": provider_id})
        assert response.status_code == 401


class TestBooking:

    def test_book(self, client, patient, provider):
        patient_id, headers = patient
        provider_id, _ = provider

        response = client.post(API, json=booking(patient_id, provider_id, notes="Chest pain"), headers=headers)
        assert response.status_code == 201

        data = response.json()
        assert data["status"] == "scheduled"
        assert data["appointment_at"] == "2030-01-14T10:00:00"
        assert data["notes"] == "Chest pain"
        assert data["provider_name"] == "Dr. Casey Provider"
        assert data["patient_email"] == "patient@example.com"

    def test_same_day_second_booking_conflicts(self, client, patient, provider):
        patient_id, headers = patient
        provider_id, _ = provider

        first = client.post(API, json=booking(patient_id, provider_id), headers=headers)
        assert first.status_code == 201

        second = client.post(API, json=booking(patient_id, provider_id, "2030-01-14T14:00:00"), headers=headers)
        assert second.status_code == 409
        assert second.json()["error"] == "Conflict"

    def test_taken_slot_conflicts(self, client, patient, other_patient, provider):
        patient_id, headers = patient
        other_id, other_headers = other_patient
        provider_id, _ = provider

        client.post(API, json=booking(patient_id, provider_id), headers=headers)
        response = client.post(API, json=booking(other_id, provider_id), headers=other_headers)
        assert response.status_code == 409

    @pytest.mark.parametrize("at", [
        "2030-01-12T10:00:00",
        "2030-01-14T12:30:00",
        "2030-01-14T08:00:00",
        "2030-01-14T10:15:00",
        "2030-01-07T08:15:00",
    ])
    def test_invalid_times(self, client, patient, provider, at):
        patient_id, headers = patient
        provider_id, _ = provider

        response = client.post(API, json=booking(patient_id, provider_id, at), headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequest"

    def test_patient_cannot_book_for_another_patient(self, client, patient, other_patient, provider):
        _, headers = patient
        other_id, _ = other_patient
        provider_id, _ = provider

        response = client.post(API, json=booking(other_id, provider_id), headers=headers)
        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden"

    def test_provider_books_for_patient(self, client, patient, provider):
        patient_id, _ = patient
        provider_id, provider_headers = provider

        response = client.post(API, json=booking(patient_id, provider_id), headers=provider_headers)
        assert response.status_code == 201

    def test_notes_too_long(self, client, patient, provider):
        patient_id, headers = patient
        provider_id, _ = provider

        response = client.post(API, json=booking(patient_id, provider_id, notes="x" * 501), headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequest"

    def test_notes_are_trimmed_before_length_check(self, client, patient, provider):
        patient_id, headers = patient
        provider_id, _ = provider

        notes = "   " + "x" * 495 + "        "
        response = client.post(API, json=booking(patient_id, provider_id, notes=notes), headers=headers)
        assert response.status_code == 201
        assert response.json()["notes"] == "x" * 495

    def test_malformed_body(self, client, patient):
        _, headers = patient
        response = client.post(API, json={"patient_id": "abc"}, headers=headers)
        assert response.status_code == 422
        assert response.json()["details"]

    def test_requires_authentication(self, client, patient, provider):
        patient_id, _ = patient
        provider_id, _ = provider
        response = client.post(API, json=booking(patient_id, provider_id))
        assert response.status_code == 401


class TestLifecycle:

    @pytest.fixture
    def appointment_id(self, client, patient, provider):
        patient_id, headers = patient
        provider_id, _ = provider
        response = client.post(API, json=booking(patient_id, provider_id), headers=headers)
        return response.json()["id"]

    def test_provider_updates_status(self, client, provider, appointment_id):
        _, headers = provider

        response = client.put(f"{API}/{appointment_id}/status", json={"status": "no_show"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["status"] == "no_show"

        response = client.put(f"{API}/{appointment_id}/status", json={"status": "completed"}, headers=headers)
        assert response.json()["status"] == "completed"

    def test_invalid_transition(self, client, provider, appointment_id):
        _, headers = provider
        client.put(f"{API}/{appointment_id}/status", json={"status": "completed"}, headers=headers)

        response = client.put(f"{API}/{appointment_id}/status", json={"status": "cancelled"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequest"

    def test_unknown_status_value(self, client, provider, appointment_id):
        _, headers = provider
        response = client.put(f"{API}/{appointment_id}/status", json={"status": "postponed"}, headers=headers)
        assert response.status_code == 422

    def test_patient_cannot_update_status(self, client, patient, appointment_id):
        _, headers = patient
        response = client.put(f"{API}/{appointment_id}/status", json={"status": "completed"}, headers=headers)
        assert response.status_code == 403

    def test_other_provider_cannot_update_status(self, client, other_provider, appointment_id):
        _, headers = other_provider
        response = client.put(f"{API}/{appointment_id}/status", json={"status": "completed"}, headers=headers)
        assert response.status_code == 403

    def test_patient_cancels(self, client, patient, appointment_id):
        _, headers = patient

        response = client.delete(f"{API}/{appointment_id}", headers=headers)
        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == "cancelled"

        again = client.delete(f"{API}/{appointment_id}", headers=headers)
        assert again.status_code == 400

        # Still readable after cancellation
        assert client.get(f"{API}/{appointment_id}", headers=headers).json()["status"] == "cancelled"

    def test_provider_cannot_cancel_past_appointment_via_status(self, client, provider, appointment_id):
        _, headers = provider
        move_clock(datetime(2030, 1, 15, 9, 0))

        response = client.put(f"{API}/{appointment_id}/status", json={"status": "cancelled"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequest"

        # Recording the outcome of a past visit is still allowed
        response = client.put(f"{API}/{appointment_id}/status", json={"status": "completed"}, headers=headers)
        assert response.json()["status"] == "completed"

    def test_cannot_cancel_past_appointment(self, client, patient, appointment_id):
        _, headers = patient
        move_clock(datetime(2030, 1, 15, 9, 0))

        response = client.delete(f"{API}/{appointment_id}", headers=headers)
        assert response.status_code == 400
        assert client.get(f"{API}/{appointment_id}", headers=headers).json()["status"] == "scheduled"

    def test_stranger_cannot_cancel(self, client, other_patient, appointment_id):
        _, headers = other_patient
        response = client.delete(f"{API}/{appointment_id}", headers=headers)
        assert response.status_code == 403

    def test_missing_appointment(self, client, patient):
        _, headers = patient
        response = client.delete(f"{API}/999", headers=headers)
        assert response.status_code == 404


class TestQueries:

    def test_get_and_list(self, client, patient, other_patient, provider):
        patient_id, headers = patient
        other_id, other_headers = other_patient
        provider_id, provider_headers = provider

        created = client.post(API, json=booking(patient_id, provider_id), headers=headers).json()
        client.post(API, json=booking(other_id, provider_id, "2030-01-14T09:00:00"), headers=other_headers)

        assert client.get(f"{API}/{created['id']}", headers=headers).status_code == 200
        assert client.get(f"{API}/{created['id']}", headers=other_headers).status_code == 403

        mine = client.get(API, headers=headers).json()
        assert [a["id"] for a in mine] == [created["id"]]

        provider_list = client.get(API, headers=provider_headers).json()
        assert [a["appointment_at"] for a in provider_list] == ["2030-01-14T09:00:00", "2030-01-14T10:00:00"]

    def test_list_filters(self, client, patient, provider):
        patient_id, headers = patient
        provider_id, _ = provider
        client.post(API, json=booking(patient_id, provider_id), headers=headers)

        assert client.get(API, params={"status": "cancelled"}, headers=headers).json() == []
        assert len(client.get(API, params={"start_date": "2030-01-14", "end_date": "2030-01-14"}, headers=headers).json()) == 1

        inverted = client.get(API, params={"start_date": "2030-01-15", "end_date": "2030-01-14"}, headers=headers)
        assert inverted.status_code == 400

    def test_upcoming_and_summary(self, client, patient, provider):
        patient_id, headers = patient
        provider_id, _ = provider
        client.post(API, json=booking(patient_id, provider_id), headers=headers)

        upcoming = client.get(f"{API}/upcoming", headers=headers).json()
        assert len(upcoming) == 1

        summary = client.get(f"{API}/summary", headers=headers).json()
        assert summary["total_appointments"] == 1
        assert summary["scheduled_appointments"] == 1
        assert summary["today_appointments"] == []


class TestDirectory:

    def test_list_providers(self, client, patient, provider, other_provider):
        _, headers = patient
        names = [p["full_name"] for p in client.get("/api/v1/providers", headers=headers).json()]
        assert names == ["Dr. Casey Provider", "Dr. Second"]

    def test_get_provider(self, client, patient, provider):
        _, headers = patient
        provider_id, _ = provider

        response = client.get(f"/api/v1/providers/{provider_id}", headers=headers)
        assert response.json()["specialty"] == "Cardiology"
        assert client.get("/api/v1/providers/999", headers=headers).status_code == 404

    def test_patient_sees_only_self(self, client, patient, other_patient):
        patient_id, headers = patient
        other_id, _ = other_patient

        listed = client.get("/api/v1/patients", headers=headers).json()
        assert [p["id"] for p in listed] == [patient_id]
        assert client.get(f"/api/v1/patients/{other_id}", headers=headers).status_code == 403

    def test_provider_sees_all_patients(self, client, provider, patient, other_patient):
        _, headers = provider
        assert len(client.get("/api/v1/patients", headers=headers).json()) == 2
