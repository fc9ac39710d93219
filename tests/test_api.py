"""
Test: HTTP API (upload pipeline, students, documents, search, health, OAuth).
Services are injected through create_app; storage is the local backend.
"""
import io
import os

import pytest

from storage import DriveStorage, FailoverStorage
from storage.base import StorageBackend, is_local_id


PDF = "application/pdf"


def upload(client, filename, mime_type=PDF, **form):
    data = {"file": (io.BytesIO(b"%PDF-1.4 test"), filename, mime_type)}
    data.update(form)
    return client.post("/upload", data=data, content_type="multipart/form-data")


def incoming_files(app_config):
    incoming = os.path.join(app_config.storage.upload_dir, "incoming")
    return os.listdir(incoming) if os.path.isdir(incoming) else []


class FailingUploadStorage(StorageBackend):
    name = "google_drive"

    def create_folder(self, folder_name, parent_id=None):
        return {"id": "remote-folder", "name": folder_name}

    def get_student_folder(self, student_id):
        return None

    def create_student_folder(self, student_id):
        return "remote-folder"

    def get_document_type_folder(self, student_folder_id, document_type):
        return "remote-subfolder"

    def upload_file(self, file_path, file_name, mime_type, folder_id):
        raise ConnectionError("Drive unreachable")

    def delete_file(self, file_id):
        return True


class CannedClassifier:
    def __init__(self, answer):
        self.answer = answer

    def resolve_student_id(self, filename, metadata=None):
        return None

    def classify(self, filename, metadata=None, folder_exists=True):
        return self.answer


class StubAuth:
    def get_authorization_url(self):
        return "https://accounts.google.com/o/oauth2/auth?client_id=abc"

    def exchange_code(self, code):
        if code == "bad":
            raise ValueError("invalid_grant")
        return {"access_token": "at", "refresh_token": "rt-123", "expiry": None, "scopes": []}


class TestUpload:
    def test_new_student_gets_folder_and_document(self, client, store, app_config):
        response = upload(client, "ST102_Math_HW.pdf")
        body = response.get_json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["aiResponse"] == "CREATE_FOLDER: ST102\nTHEN_STORE: assignment"
        assert body["studentId"] == "ST102"
        assert body["documentType"] == "assignment"
        assert body["storage"] == "local"

        student = store.find_by_student_id("ST102")
        assert student.drive_folder_id == "mock-folder-ST102"
        links = student.links_for("assignment")
        assert [l.id for l in links] == [body["documentId"]]
        assert links[0].file_name == "ST102_Math_HW.pdf"
        assert incoming_files(app_config) == []

    def test_existing_folder_stores_directly(self, client):
        upload(client, "ST102_Math_HW.pdf")
        response = upload(client, "ST102_Physics_Homework.pdf")
        assert response.get_json()["aiResponse"] == "STORE: ST102 → assignment"

    def test_form_student_id_and_details(self, client, store):
        response = upload(client, "Fee_Receipt_Jan.pdf", studentId="st105", name="Asha Rao", department="CS")
        body = response.get_json()

        assert response.status_code == 200
        assert body["aiResponse"] == "CREATE_FOLDER: ST105\nTHEN_STORE: feeReceipt"
        student = store.find_by_student_id("ST105")
        assert student.name == "Asha Rao"
        assert student.department == "CS"
        assert len(student.links_for("feeReceipt")) == 1

    def test_stored_file_is_served(self, client):
        body = upload(client, "ST102_Math_HW.pdf").get_json()
        stats = client.get("/api/students/ST102/documents").get_json()
        link = stats["assignmentLinks"][0]["shareableLink"]

        response = client.get(link)
        assert response.status_code == 200
        assert response.data == b"%PDF-1.4 test"
        assert body["shareableLink"] == link

    def test_missing_student_id(self, client, store, app_config):
        response = upload(client, "notes.pdf")
        body = response.get_json()

        assert response.status_code == 400
        assert body["aiResponse"] == "ERROR: NO_STUDENT_ID"
        assert body["error"] == "NO_STUDENT_ID"
        assert store.find_all() == []
        assert incoming_files(app_config) == []

    def test_no_file(self, client):
        response = client.post("/upload", data={"studentId": "ST101"}, content_type="multipart/form-data")
        assert response.status_code == 400

    def test_invalid_mime_type(self, client, store):
        response = upload(client, "ST101_tool.exe", mime_type="application/x-msdownload")
        assert response.status_code == 400
        assert "Invalid file type" in response.get_json()["error"]
        assert store.find_all() == []

    def test_unparseable_classifier_response(self, make_app):
        client = make_app(classifier=CannedClassifier("This looks like homework")).test_client()
        response = upload(client, "ST101_hw.pdf")
        assert response.status_code == 400
        assert response.get_json()["aiResponse"] == "This looks like homework"

    def test_storage_failure(self, make_app, app_config):
        client = make_app(storage=FailingUploadStorage()).test_client()
        response = upload(client, "ST102_Math_HW.pdf")
        body = response.get_json()

        assert response.status_code == 500
        assert body["aiResponse"] == "ERROR: UPLOAD_FAILED"
        assert "Drive unreachable" in body["error"]
        assert incoming_files(app_config) == []

    def test_too_large(self, make_app):
        app = make_app()
        app.config["MAX_CONTENT_LENGTH"] = 16
        response = upload(app.test_client(), "ST102_Math_HW.pdf")
        assert response.status_code == 413
        assert "error" in response.get_json()


@pytest.fixture
def drive_storage(fake_drive, local_storage):
    return FailoverStorage(DriveStorage(fake_drive, "parent123"), local_storage)


@pytest.fixture
def drive_client(make_app, drive_storage):
    return make_app(storage=drive_storage).test_client()


def folders_named(fake_drive, name):
    return [fid for fid, (folder_name, _) in fake_drive.folders.items() if folder_name == name]


class TestDriveUpload:
    def test_new_student_gets_drive_folder_and_file(self, drive_client, store, fake_drive):
        response = upload(drive_client, "ST102_Math_HW.pdf")
        body = response.get_json()

        assert response.status_code == 200
        assert body["storage"] == "google_drive"
        assert body["shareableLink"].startswith("https://drive.google.com/file/d/")

        student = store.find_by_student_id("ST102")
        folder_id = student.drive_folder_id
        assert fake_drive.folders[folder_id] == ("ST102", "parent123")

        link = student.links_for("assignment")[0]
        assert not is_local_id(link.file_id)
        subfolder_id = fake_drive.files[link.file_id]["parent"]
        assert fake_drive.folders[subfolder_id] == ("assignments", folder_id)

    def test_existing_drive_folder_is_reused(self, drive_client, store, fake_drive):
        existing = fake_drive.create_folder("ST200", "parent123")["id"]

        response = upload(drive_client, "ST200_hw.pdf")

        assert response.status_code == 200
        assert response.get_json()["storage"] == "google_drive"
        assert store.get_drive_folder_id("ST200") == existing
        assert folders_named(fake_drive, "ST200") == [existing]

    def test_folder_survives_database_reset(self, drive_client, store, fake_drive):
        upload(drive_client, "ST201_hw.pdf")
        first_folder = store.get_drive_folder_id("ST201")
        store.delete("ST201")

        response = upload(drive_client, "ST201_essay.pdf")

        assert response.status_code == 200
        assert store.get_drive_folder_id("ST201") == first_folder
        assert folders_named(fake_drive, "ST201") == [first_folder]

    def test_upload_failure_lands_locally(self, drive_client, store, fake_drive, app_config):
        fake_drive.upload_error = ConnectionError("Drive quota exceeded")

        response = upload(drive_client, "ST102_Math_HW.pdf")
        body = response.get_json()

        assert response.status_code == 200
        assert body["storage"] == "local"
        student = store.find_by_student_id("ST102")
        assert student.links_for("assignment")[0].file_id.startswith("mock-file-")
        assert fake_drive.folders[student.drive_folder_id] == ("ST102", "parent123")
        assert fake_drive.files == {}
        assert incoming_files(app_config) == []

    def test_folder_lookup_failure_does_not_pin_student_locally(self, drive_client, store, fake_drive):
        fake_drive.find_failures = 1

        first = upload(drive_client, "ST103_hw.pdf")
        assert first.status_code == 200
        assert first.get_json()["storage"] == "local"
        assert store.get_drive_folder_id("ST103") is None

        second = upload(drive_client, "ST103_essay.pdf")
        assert second.get_json()["storage"] == "google_drive"
        folder_id = store.get_drive_folder_id("ST103")
        assert fake_drive.folders[folder_id] == ("ST103", "parent123")

    def test_stored_local_folder_id_is_retried_on_drive(self, drive_client, store, fake_drive):
        store.create({"studentId": "ST104", "driveFolderId": "mock-folder-ST104"})

        response = upload(drive_client, "ST104_hw.pdf")

        assert response.get_json()["storage"] == "google_drive"
        assert response.get_json()["aiResponse"].startswith("CREATE_FOLDER: ST104")
        assert not is_local_id(store.get_drive_folder_id("ST104"))


class TestStudents:
    def test_create(self, client):
        response = client.post("/api/students", json={"studentId": "ST101", "name": "Asha"})
        assert response.status_code == 201
        body = response.get_json()
        assert body["studentId"] == "ST101"
        assert set(body["documents"]) == {"assignmentLinks", "idCardLinks", "certificateLinks", "feeReceiptLinks"}

    def test_create_requires_student_id(self, client):
        response = client.post("/api/students", json={"name": "Asha"})
        assert response.status_code == 400

    def test_create_rejects_non_string_student_id(self, client, store):
        response = client.post("/api/students", json={"studentId": 123})
        assert response.status_code == 400
        assert store.find_all() == []

    def test_create_rejects_non_object_body(self, client):
        assert client.post("/api/students", json=["ST101"]).status_code == 400

    def test_create_duplicate(self, client):
        client.post("/api/students", json={"studentId": "ST101"})
        response = client.post("/api/students", json={"studentId": "st101"})
        assert response.status_code == 409

    def test_list_and_get(self, client):
        client.post("/api/students", json={"studentId": "ST101"})
        client.post("/api/students", json={"studentId": "ST102"})

        assert [s["studentId"] for s in client.get("/api/students").get_json()] == ["ST101", "ST102"]
        assert client.get("/api/students/st102").get_json()["studentId"] == "ST102"
        assert client.get("/api/students/ST404").status_code == 404

    def test_update(self, client):
        client.post("/api/students", json={"studentId": "ST101", "name": "Asha"})
        response = client.put("/api/students/ST101", json={"name": "Asha Rao", "studentId": "ST999"})

        assert response.status_code == 200
        assert response.get_json()["name"] == "Asha Rao"
        assert response.get_json()["studentId"] == "ST101"
        assert client.put("/api/students/ST404", json={"name": "x"}).status_code == 404

    def test_update_rejects_non_string_fields(self, client):
        client.post("/api/students", json={"studentId": "ST101", "name": "Asha"})
        response = client.put("/api/students/ST101", json={"name": 5})

        assert response.status_code == 400
        assert client.get("/api/students/ST101").get_json()["name"] == "Asha"
        search = client.get("/api/search?q=as")
        assert search.status_code == 200
        assert [s["studentId"] for s in search.get_json()] == ["ST101"]

    def test_update_rejects_non_object_body(self, client):
        client.post("/api/students", json={"studentId": "ST101"})
        assert client.put("/api/students/ST101", json=[1, 2]).status_code == 400

    def test_update_clears_folder_id(self, client, store):
        client.post("/api/students", json={"studentId": "ST101", "driveFolderId": "folder-1"})
        response = client.put("/api/students/ST101", json={"driveFolderId": None})
        assert response.status_code == 200
        assert store.get_drive_folder_id("ST101") is None

    def test_delete(self, client):
        client.post("/api/students", json={"studentId": "ST101"})
        assert client.delete("/api/students/ST101").status_code == 200
        assert client.get("/api/students/ST101").status_code == 404
        assert client.delete("/api/students/ST101").status_code == 404

    def test_documents_and_stats(self, client):
        upload(client, "ST102_Math_HW.pdf")
        upload(client, "ST102_Degree_Certificate.pdf")

        documents = client.get("/api/students/ST102/documents").get_json()
        assert len(documents["assignmentLinks"]) == 1
        assert len(documents["certificateLinks"]) == 1

        stats = client.get("/api/students/ST102/stats").get_json()
        assert stats == {"assignments": 1, "idCards": 0, "certificates": 1, "feeReceipts": 0, "total": 2}
        assert client.get("/api/students/ST404/stats").status_code == 404
        assert client.get("/api/students/ST404/documents").status_code == 404


class TestDeleteDocument:
    def test_removes_link_and_file(self, client, store, local_storage):
        body = upload(client, "ST102_Math_HW.pdf").get_json()
        link = store.find_by_student_id("ST102").links_for("assignment")[0]
        stored_name = link.file_id[len("mock-file-"):]
        assert os.path.exists(local_storage.path_for(stored_name))

        response = client.delete(f"/api/students/ST102/documents/assignment/{body['documentId']}")

        assert response.status_code == 200
        assert store.find_by_student_id("ST102").links_for("assignment") == []
        assert not os.path.exists(local_storage.path_for(stored_name))

    def test_unknown_type(self, client):
        upload(client, "ST102_Math_HW.pdf")
        assert client.delete("/api/students/ST102/documents/transcript/abc").status_code == 400

    def test_unknown_student_or_document(self, client):
        upload(client, "ST102_Math_HW.pdf")
        assert client.delete("/api/students/ST404/documents/assignment/abc").status_code == 404
        assert client.delete("/api/students/ST102/documents/assignment/abc").status_code == 404


class TestSearchAndHealth:
    def test_search(self, client):
        client.post("/api/students", json={"studentId": "ST101", "name": "Asha Rao", "department": "CS"})
        client.post("/api/students", json={"studentId": "ST102", "name": "Ravi", "department": "Mechanical"})

        assert [s["studentId"] for s in client.get("/api/search?q=asha").get_json()] == ["ST101"]
        assert client.get("/api/search?q=").get_json() == []
        assert client.get("/api/search").get_json() == []

    def test_health(self, client):
        body = client.get("/health").get_json()
        assert body["status"] == "healthy"
        assert body["storage"] == "local"
        assert body["timestamp"]

    def test_cors_allows_any_origin_by_default(self, client):
        response = client.get("/health", headers={"Origin": "http://localhost:5173"})
        assert response.headers.get("Access-Control-Allow-Origin") in ("*", "http://localhost:5173")

    def test_cors_restricted_origins(self, make_app, app_config):
        app_config.server.cors_origins = ["http://portal.campus.edu"]
        client = make_app().test_client()

        allowed = client.get("/health", headers={"Origin": "http://portal.campus.edu"})
        assert allowed.headers.get("Access-Control-Allow-Origin") == "http://portal.campus.edu"
        other = client.get("/health", headers={"Origin": "http://elsewhere.example"})
        assert other.headers.get("Access-Control-Allow-Origin") is None

    def test_index_page(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert b"Campus Connector" in response.data

    def test_unknown_route_is_json(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert "error" in response.get_json()


class TestGoogleOAuth:
    def test_auth_url_requires_client_config(self, client):
        response = client.get("/auth/google")
        assert response.status_code == 400

    def test_auth_url(self, make_app):
        client = make_app(auth=StubAuth()).test_client()
        body = client.get("/auth/google").get_json()
        assert body["authUrl"].startswith("https://accounts.google.com/")

    def test_callback_requires_code(self, make_app):
        client = make_app(auth=StubAuth()).test_client()
        assert client.get("/auth/google/callback").status_code == 400

    def test_callback_returns_refresh_token(self, make_app):
        client = make_app(auth=StubAuth()).test_client()
        body = client.get("/auth/google/callback?code=good").get_json()
        assert body["refreshToken"] == "rt-123"

    def test_callback_exchange_failure(self, make_app):
        client = make_app(auth=StubAuth()).test_client()
        response = client.get("/auth/google/callback?code=bad")
        assert response.status_code == 500
        assert response.get_json()["error"] == "Failed to get tokens"
