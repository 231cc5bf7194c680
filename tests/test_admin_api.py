import pytest

from clinic.core.security import UserRole

from tests.conftest import TEST_PASSWORD, create_doctor, create_user, login, next_monday


@pytest.fixture
def admin_headers(client, db_session):
    create_user(db_session, "admin@example.com", role=UserRole.ADMIN, name="Admin", password=TEST_PASSWORD)
    return login(client, "admin@example.com")

doctor_payload = {
    "name": "Dr. Jane Doe",
    "email": "jane.doe@example.com",
    "password": "DoctorPassword123",
    "phone": "0711111111",
    "specialization": "Neurologist",
    "dept_name": "neurology",
    "availability": "MON, WED, FRI 9am-5pm",
    "available_slots": [0, 2, 0, 2, 0, 2, 0]
}

class TestDepartments:

    def test_create_and_list_departments(self, client, test_db, admin_headers):
        """Test departments are created upper-case and listed by name."""
        response = client.post("/api/v1/admin/departments", json={"name": " radiology "}, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["name"] == "RADIOLOGY"
        client.post("/api/v1/admin/departments", json={"name": "cardiology"}, headers=admin_headers)

        response = client.get("/api/v1/departments", headers=admin_headers)
        assert response.status_code == 200
        assert [d["name"] for d in response.json()] == ["CARDIOLOGY", "RADIOLOGY"]

    def test_duplicate_department(self, client, test_db, admin_headers):
        """Test department names are unique regardless of case."""
        client.post("/api/v1/admin/departments", json={"name": "Radiology"}, headers=admin_headers)

        response = client.post("/api/v1/admin/departments", json={"name": "RADIOLOGY"}, headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    def test_blank_department_name(self, client, test_db, admin_headers):
        """Test a blank department name is rejected."""
        response = client.post("/api/v1/admin/departments", json={"name": "   "}, headers=admin_headers)
        assert response.status_code == 422

    def test_rename_department(self, client, test_db, admin_headers):
        """Test renaming, including onto a taken name."""
        first = client.post("/api/v1/admin/departments", json={"name": "radiology"}, headers=admin_headers).json()
        client.post("/api/v1/admin/departments", json={"name": "oncology"}, headers=admin_headers)

        response = client.put(
            f"/api/v1/admin/departments/{first['id']}", json={"name": "imaging"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["name"] == "IMAGING"

        response = client.put(
            f"/api/v1/admin/departments/{first['id']}", json={"name": "Oncology"}, headers=admin_headers
        )
        assert response.status_code == 409

    def test_delete_department_keeps_doctors(self, client, test_db, db_session, admin_headers):
        """Test deleting a department unlinks its doctors."""
        doctor = create_doctor(db_session)
        department_id = doctor.department_id
        doctor_id = doctor.id

        response = client.delete(f"/api/v1/admin/departments/{department_id}", headers=admin_headers)
        assert response.status_code == 200

        response = client.get(f"/api/v1/doctors/{doctor_id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["department"] == ""

        response = client.delete(f"/api/v1/admin/departments/{department_id}", headers=admin_headers)
        assert response.status_code == 404

    def test_departments_require_login(self, client, test_db):
        """Test the department list is not public."""
        response = client.get("/api/v1/departments")
        assert response.status_code == 401

class TestDoctors:

    def test_create_doctor(self, client, test_db, admin_headers):
        """Test an admin creates a doctor with a login and parsed availability."""
        client.post("/api/v1/admin/departments", json={"name": "Neurology"}, headers=admin_headers)

        response = client.post("/api/v1/admin/doctors", json=doctor_payload, headers=admin_headers)
        assert response.status_code == 201

        data = response.json()
        assert data["name"] == "Dr. Jane Doe"
        assert data["department"] == "NEUROLOGY"
        assert data["available_days"] == [1, 3, 5]
        assert data["start_hour"] == 9 and data["end_hour"] == 17
        assert data["available_slots"] == [0, 2, 0, 2, 0, 2, 0]

        # The new doctor can sign in
        login(client, doctor_payload["email"], doctor_payload["password"])

    def test_create_doctor_unknown_department(self, client, test_db, admin_headers):
        """Test doctors must join an existing department."""
        response = client.post("/api/v1/admin/doctors", json=doctor_payload, headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Department not found"

    def test_create_doctor_duplicate_email(self, client, test_db, admin_headers):
        """Test a doctor cannot reuse an existing account email."""
        client.post("/api/v1/admin/departments", json={"name": "Neurology"}, headers=admin_headers)

        response = client.post(
            "/api/v1/admin/doctors",
            json={**doctor_payload, "email": "admin@example.com"},
            headers=admin_headers
        )
        assert response.status_code == 409

    def test_create_doctor_invalid_capacity(self, client, test_db, admin_headers):
        """Test the weekly capacity needs seven non-negative entries."""
        for slots in ([1, 2, 3], [0, 1, -1, 1, 1, 1, 0]):
            response = client.post(
                "/api/v1/admin/doctors",
                json={**doctor_payload, "available_slots": slots},
                headers=admin_headers
            )
            assert response.status_code == 422

    def test_update_doctor(self, client, test_db, db_session, admin_headers):
        """Test updating availability re-parses the schedule."""
        doctor_id = create_doctor(db_session).id

        response = client.put(
            f"/api/v1/admin/doctors/{doctor_id}",
            json={"availability": "TUE-THU 8am-12pm", "specialization": "Cardiac Surgeon"},
            headers=admin_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["specialization"] == "Cardiac Surgeon"
        assert data["available_days"] == [2, 3, 4]
        assert data["start_hour"] == 8 and data["end_hour"] == 12

    def test_set_capacity(self, client, test_db, db_session, admin_headers):
        """Test resetting the per-weekday capacity."""
        doctor_id = create_doctor(db_session).id

        response = client.put(
            f"/api/v1/admin/doctors/{doctor_id}/capacity",
            json={"available_slots": [0, 3, 3, 3, 3, 1, 0]},
            headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["available_slots"] == [0, 3, 3, 3, 3, 1, 0]

    def test_delete_doctor(self, client, test_db, db_session, admin_headers):
        """Test deleting a doctor without appointments removes the login too."""
        doctor_id = create_doctor(db_session).id

        response = client.delete(f"/api/v1/admin/doctors/{doctor_id}", headers=admin_headers)
        assert response.status_code == 200

        response = client.post(
            "/api/v1/auth/login", json={"email": "doctor@example.com", "password": TEST_PASSWORD}
        )
        assert response.status_code == 401

    def test_delete_doctor_with_appointments(self, client, test_db, db_session, admin_headers, slot_mode):
        """Test a doctor with appointment history is kept."""
        doctor_id = create_doctor(db_session).id
        create_user(db_session, "alice@example.com", password=TEST_PASSWORD)
        client.post(
            "/api/v1/appointments/book",
            json={"doctorId": doctor_id, "date": next_monday().isoformat(), "slot": 0},
            headers=login(client, "alice@example.com")
        )

        response = client.delete(f"/api/v1/admin/doctors/{doctor_id}", headers=admin_headers)
        assert response.status_code == 409

class TestUsers:

    def test_list_and_deactivate_users(self, client, test_db, db_session, admin_headers):
        """Test an admin lists users and deactivates one."""
        patient = create_user(db_session, "alice@example.com", password=TEST_PASSWORD)
        patient_id = patient.id
        alice = login(client, "alice@example.com")

        response = client.get("/api/v1/admin/users", headers=admin_headers)
        assert response.status_code == 200
        assert {u["email"] for u in response.json()} == {"admin@example.com", "alice@example.com"}

        response = client.patch(
            f"/api/v1/admin/users/{patient_id}/status", params={"is_active": False}, headers=admin_headers
        )
        assert response.status_code == 200

        response = client.get("/api/v1/auth/me", headers=alice)
        assert response.status_code == 401

    def test_unknown_user_status(self, client, test_db, admin_headers):
        """Test changing the status of a missing user."""
        response = client.patch("/api/v1/admin/users/999/status", params={"is_active": True}, headers=admin_headers)
        assert response.status_code == 404
