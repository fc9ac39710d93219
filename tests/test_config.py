"""
Test: environment configuration.
"""
from config import Config, DriveConfig, LLMConfig, load_config, validate_config


class TestLoadConfig:
    def test_defaults(self, monkeypatch):
        for name in ("PORT", "STORAGE_PROVIDER", "LLM_PROVIDER", "MAX_UPLOAD_MB", "CORS_ORIGINS",
                     "CLASSIFIER_USE_LLM", "LLM_TIMEOUT", "UPLOAD_DIR"):
            monkeypatch.delenv(name, raising=False)
        config = load_config()

        assert config.server.port == 3000
        assert config.server.max_content_length == 50 * 1024 * 1024
        assert config.server.cors_origins == ["*"]
        assert config.storage.provider == "google_drive"
        assert config.storage.mock_drive_dir.endswith("mock_drive")
        assert config.llm.provider == "gemini"
        assert config.llm.enabled is True
        assert config.llm.timeout == 30

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("STORAGE_PROVIDER", "LOCAL")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.edu, http://b.edu")
        monkeypatch.setenv("CLASSIFIER_USE_LLM", "no")
        monkeypatch.setenv("MAX_UPLOAD_MB", "10")
        monkeypatch.setenv("STUDENTS_DB_PATH", "/tmp/campus/students.json")
        config = load_config()

        assert config.server.port == 8080
        assert config.storage.provider == "local"
        assert config.server.cors_origins == ["http://a.edu", "http://b.edu"]
        assert config.llm.enabled is False
        assert config.server.max_content_length == 10 * 1024 * 1024
        assert config.database.students_path == "/tmp/campus/students.json"


class TestValidateConfig:
    def test_valid(self):
        assert validate_config(Config()) == []

    def test_unknown_providers(self):
        config = Config()
        config.storage.provider = "s3"
        config.llm.provider = "bard"
        errors = validate_config(config)
        assert any("STORAGE_PROVIDER" in e for e in errors)
        assert any("LLM_PROVIDER" in e for e in errors)


class TestSections:
    def test_drive_oauth_needs_refresh_token(self, tmp_path):
        drive = DriveConfig(client_id="id", client_secret="secret",
                            service_account_file=str(tmp_path / "none.json"))
        assert not drive.is_valid()
        drive.refresh_token = "rt"
        assert drive.is_valid()

    def test_llm_provider_config(self):
        llm = LLMConfig(provider="openai", openai_api_key="sk")
        assert llm.is_valid()
        assert llm.get_provider_config() == {"api_key": "sk", "model": "gpt-4o-mini"}
        assert not LLMConfig(provider="unknown").is_valid()
