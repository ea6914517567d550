"""
Patient self-service tests.

The patient's records are found through the customer whose email equals
the patient's email. No match means empty lists, never an error.
"""

import json

import pytest

from visionx.models import Appointment, EyeTest, Prescription


@pytest.fixture
def other_customer(db_session, make_customer):
    customer = make_customer(name="Someone Else", email="else@visionx.test")
    db_session.add(Appointment(customer_id=customer.id, date="2026-01-05", time="10:00", status="pending"))
    db_session.add(EyeTest(customer_id=customer.id, results=json.dumps({"summary": "myopia"})))
    db_session.add(Prescription(customer_id=customer.id, issued_on="2026-01-05", od_spherical="-1.00"))
    db_session.commit()
    return customer


class TestFailClosed:

    @pytest.mark.parametrize("path", ["/api/patient/appointments", "/api/patient/tests", "/api/patient/prescriptions"])
    def test_unmatched_patient_gets_empty_list(self, client, patient_headers, other_customer, path):
        resp = client.get(path, headers=patient_headers)
        assert resp.status_code == 200
        assert resp.get_json() == []


class TestOwnRecords:

    def test_matched_patient_sees_only_own_records(self, client, db_session, make_customer, patient_user, patient_headers, other_customer):
        mine = make_customer(name="Pat", email=patient_user.email)
        db_session.add(Appointment(customer_id=mine.id, date="2026-02-01", time="09:30", status="approved"))
        db_session.add(EyeTest(customer_id=mine.id, results=json.dumps({"type": "manual", "summary": "6/6"})))
        db_session.add(Prescription(customer_id=mine.id, issued_on="2026-02-01", os_spherical="-0.50"))
        db_session.commit()

        appointments = client.get("/api/patient/appointments", headers=patient_headers).get_json()
        tests = client.get("/api/patient/tests", headers=patient_headers).get_json()
        prescriptions = client.get("/api/patient/prescriptions", headers=patient_headers).get_json()

        assert [a["customer_id"] for a in appointments] == [mine.id]
        assert [t["customer_id"] for t in tests] == [mine.id]
        assert [p["customer_id"] for p in prescriptions] == [mine.id]
        assert prescriptions[0]["left_eye"]["spherical"] == "-0.50"

    def test_oldest_customer_wins_on_shared_email(self, client, db_session, make_customer, patient_user, patient_headers):
        first = make_customer(name="First", email=patient_user.email)
        second = make_customer(name="Second", email=patient_user.email)
        db_session.add(Appointment(customer_id=first.id, date="2026-03-01", time="11:00", status="pending"))
        db_session.add(Appointment(customer_id=second.id, date="2026-03-02", time="11:00", status="pending"))
        db_session.commit()

        appointments = client.get("/api/patient/appointments", headers=patient_headers).get_json()
        assert [a["customer_id"] for a in appointments] == [first.id]


class TestPatientBooking:

    def test_patient_books_for_own_record(self, client, make_customer, patient_user, patient_headers):
        mine = make_customer(name="Pat", email=patient_user.email)
        resp = client.post(
            "/api/appointments",
            json={"date": "2026-04-10", "time": "10:00 AM", "notes": "checkup"},
            headers=patient_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["customer_id"] == mine.id
        assert body["status"] == "pending"

    def test_patient_without_record_cannot_book(self, client, patient_headers, other_customer):
        resp = client.post(
            "/api/appointments",
            json={"customer_id": other_customer.id, "date": "2026-04-10", "time": "10:00"},
            headers=patient_headers,
        )
        assert resp.status_code == 403

    def test_patient_cannot_book_for_someone_else(self, client, make_customer, patient_user, patient_headers, other_customer):
        make_customer(name="Pat", email=patient_user.email)
        resp = client.post(
            "/api/appointments",
            json={"customer_id": other_customer.id, "date": "2026-04-10", "time": "10:00"},
            headers=patient_headers,
        )
        assert resp.status_code == 403

    def test_booking_notifies_patient(self, client, make_customer, patient_user, patient_headers):
        make_customer(name="Pat", email=patient_user.email)
        client.post("/api/appointments", json={"date": "2026-04-10", "time": "10:00"}, headers=patient_headers)

        notifications = client.get("/api/notifications", headers=patient_headers).get_json()
        assert len(notifications) == 1
        assert notifications[0]["category"] == "appointment"
