"""
Shared test fixtures for Campus Connector.
Every test runs against a temporary JSON store and upload directory.
Zero network calls: Drive is replaced by an in-memory stand-in and LLM
HTTP calls are monkeypatched.
"""
import pytest

from config import Config
from database.store import StudentStore
from storage.local_storage import LocalStorage
from classifier import DocumentClassifier
from web.app import create_app


class FakeDriveService:
    """In-memory stand-in for google_services.drive_service.DriveService."""

    def __init__(self):
        self.folders = {}  # id -> (name, parent_id)
        self.files = {}  # id -> metadata
        self.public = set()
        self.calls = []
        self.metadata_error = None
        self.fail_public = False
        self.find_failures = 0
        self.upload_error = None
        self._counter = 0

    def _new_id(self, prefix):
        self._counter += 1
        return f"{prefix}{self._counter}"

    def get_file_metadata(self, file_id, fields="id, name"):
        self.calls.append(("get_file_metadata", file_id))
        if self.metadata_error:
            raise self.metadata_error
        return {"id": file_id, "name": "Student Documents"}

    def find_folder(self, name, parent_id=None):
        self.calls.append(("find_folder", name, parent_id))
        if self.find_failures:
            self.find_failures -= 1
            raise ConnectionError("Drive timed out")
        for folder_id, (folder_name, folder_parent) in self.folders.items():
            if folder_name == name and (parent_id is None or folder_parent == parent_id):
                return folder_id
        return None

    def create_folder(self, name, parent_id=None):
        self.calls.append(("create_folder", name, parent_id))
        folder_id = self._new_id("folder")
        self.folders[folder_id] = (name, parent_id)
        return {"id": folder_id, "name": name, "webViewLink": f"https://drive.google.com/drive/folders/{folder_id}"}

    def get_or_create_subfolder(self, parent_folder_id, folder_name):
        folder_id = self.find_folder(folder_name, parent_folder_id)
        if folder_id:
            return folder_id
        return self.create_folder(folder_name, parent_folder_id)["id"]

    def upload_file(self, file_path, file_name, mime_type, folder_id):
        self.calls.append(("upload_file", file_name, folder_id))
        if self.upload_error:
            raise self.upload_error
        file_id = self._new_id("file")
        self.files[file_id] = {"name": file_name, "mimeType": mime_type, "parent": folder_id}
        return {"id": file_id, "name": file_name}

    def make_public(self, file_id):
        if self.fail_public:
            raise RuntimeError("Public sharing disabled by domain policy")
        self.public.add(file_id)

    def get_links(self, file_id):
        return {
            "webViewLink": f"https://drive.google.com/file/d/{file_id}/view",
            "webContentLink": f"https://drive.google.com/uc?id={file_id}&export=download",
        }

    def delete_file(self, file_id):
        self.calls.append(("delete_file", file_id))
        del self.files[file_id]


@pytest.fixture
def app_config(tmp_path):
    """Config pointing every path at tmp_path, local storage, no LLM."""
    config = Config()
    config.database.students_path = str(tmp_path / "db" / "students.json")
    config.storage.provider = "local"
    config.storage.upload_dir = str(tmp_path / "uploads")
    config.drive.service_account_file = str(tmp_path / "missing-service-account.json")
    config.llm.enabled = False
    return config


@pytest.fixture
def store(app_config):
    return StudentStore(app_config.database.students_path)


@pytest.fixture
def local_storage(app_config):
    return LocalStorage(app_config.storage.mock_drive_dir, url_prefix="/uploads/mock_drive")


@pytest.fixture
def fake_drive():
    return FakeDriveService()


@pytest.fixture
def sample_file(tmp_path):
    """A small PDF-like file on disk."""
    path = tmp_path / "sample.pdf"
    path.write_bytes(b"%PDF-1.4 sample document")
    return str(path)


@pytest.fixture
def make_app(app_config, store, local_storage):
    """Build an app with injected services; keyword arguments override them."""
    def _make(**overrides):
        services = {
            "config": app_config,
            "store": store,
            "storage": local_storage,
            "classifier": DocumentClassifier(),
        }
        services.update(overrides)
        return create_app(**services)
    return _make


@pytest.fixture
def client(make_app):
    return make_app().test_client()
