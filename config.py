#!/usr/bin/env python3
"""
Configuration Module - Centralized configuration for Campus Connector

Loads and validates all configuration from environment variables.
Missing Google or LLM credentials are not errors: they select the
local storage fallback and the regex classifier.
"""

import os
from typing import Optional, List
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    log_level: str = "INFO"
    max_upload_mb: int = 50
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @property
    def max_content_length(self) -> int:
        return self.max_upload_mb * 1024 * 1024


@dataclass
class DatabaseConfig:
    """Flat-file student database configuration."""
    students_path: str = os.path.join("database", "students.json")

    def is_valid(self) -> bool:
        return bool(self.students_path)


@dataclass
class StorageConfig:
    """Document storage configuration."""
    provider: str = "google_drive"  # google_drive or local
    upload_dir: str = "uploads"

    @property
    def mock_drive_dir(self) -> str:
        return os.path.join(self.upload_dir, "mock_drive")


@dataclass
class DriveConfig:
    """Google Drive configuration."""
    parent_folder_id: str = ""
    # Service account (preferred)
    service_account_json: str = ""
    service_account_file: str = os.path.join("config", "service-account.json")
    # OAuth user credentials (alternative)
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "http://localhost:3000/auth/google/callback"
    refresh_token: str = ""

    def has_service_account(self) -> bool:
        return bool(self.service_account_json) or os.path.exists(self.service_account_file)

    def has_oauth_client(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def is_valid(self) -> bool:
        return self.has_service_account() or bool(self.has_oauth_client() and self.refresh_token)


@dataclass
class LLMConfig:
    """LLM provider configuration (provider-agnostic)."""
    provider: str = "gemini"  # gemini, openai, claude, or ollama
    enabled: bool = True
    timeout: int = 30  # seconds

    # Gemini
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    # Claude
    anthropic_api_key: str = ""
    claude_model: str = "claude-3-5-haiku-latest"

    # Ollama
    ollama_url: str = "http://localhost:11434/api/generate"
    ollama_model: str = "llama3.2:latest"

    def get_provider_config(self) -> dict:
        """Get configuration for the selected provider."""
        if self.provider == "ollama":
            return {"url": self.ollama_url, "model": self.ollama_model}
        elif self.provider == "openai":
            return {"api_key": self.openai_api_key, "model": self.openai_model}
        elif self.provider == "gemini":
            return {"api_key": self.gemini_api_key, "model": self.gemini_model}
        elif self.provider == "claude":
            return {"api_key": self.anthropic_api_key, "model": self.claude_model}
        return {}

    def is_valid(self) -> bool:
        if self.provider == "ollama":
            return bool(self.ollama_url)
        elif self.provider == "openai":
            return bool(self.openai_api_key)
        elif self.provider == "gemini":
            return bool(self.gemini_api_key)
        elif self.provider == "claude":
            return bool(self.anthropic_api_key)
        return False


@dataclass
class Config:
    """Main configuration container."""
    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    drive: DriveConfig = field(default_factory=DriveConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)


def load_config() -> Config:
    """
    Load configuration from environment variables.

    Returns:
        Config object with all settings
    """
    config = Config()

    # Server
    config.server.host = os.getenv("HOST", "0.0.0.0")
    config.server.port = int(os.getenv("PORT", "3000"))
    config.server.debug = _env_bool("DEBUG", "false")
    config.server.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    config.server.max_upload_mb = int(os.getenv("MAX_UPLOAD_MB", "50"))
    origins_str = os.getenv("CORS_ORIGINS", "*")
    config.server.cors_origins = [o.strip() for o in origins_str.split(",") if o.strip()] or ["*"]

    # Database
    config.database.students_path = os.getenv(
        "STUDENTS_DB_PATH", os.path.join("database", "students.json")
    )

    # Storage
    config.storage.provider = os.getenv("STORAGE_PROVIDER", "google_drive").lower()
    config.storage.upload_dir = os.getenv("UPLOAD_DIR", "uploads")

    # Google Drive
    config.drive.parent_folder_id = os.getenv("GOOGLE_DRIVE_PARENT_FOLDER_ID", "")
    config.drive.service_account_json = os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON", "")
    config.drive.service_account_file = os.getenv(
        "GOOGLE_SERVICE_ACCOUNT_FILE", os.path.join("config", "service-account.json")
    )
    config.drive.client_id = os.getenv("GOOGLE_CLIENT_ID", "")
    config.drive.client_secret = os.getenv("GOOGLE_CLIENT_SECRET", "")
    config.drive.redirect_uri = os.getenv(
        "GOOGLE_REDIRECT_URI", "http://localhost:3000/auth/google/callback"
    )
    config.drive.refresh_token = os.getenv("GOOGLE_REFRESH_TOKEN", "")

    # LLM
    config.llm.provider = os.getenv("LLM_PROVIDER", "gemini").lower()
    config.llm.enabled = _env_bool("CLASSIFIER_USE_LLM", "true")
    config.llm.timeout = int(os.getenv("LLM_TIMEOUT", "30"))
    config.llm.gemini_api_key = os.getenv("GEMINI_API_KEY", "")
    config.llm.gemini_model = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
    config.llm.openai_api_key = os.getenv("OPENAI_API_KEY", "")
    config.llm.openai_model = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    config.llm.anthropic_api_key = os.getenv("ANTHROPIC_API_KEY", "")
    config.llm.claude_model = os.getenv("CLAUDE_MODEL", "claude-3-5-haiku-latest")
    config.llm.ollama_url = os.getenv("OLLAMA_API_URL", "http://localhost:11434/api/generate")
    config.llm.ollama_model = os.getenv("OLLAMA_MODEL", "llama3.2:latest")

    return config


def validate_config(config: Config) -> List[str]:
    """
    Validate configuration and return list of errors.

    Args:
        config: Config object to validate

    Returns:
        List of error messages (empty if valid)
    """
    errors = []

    if not config.database.is_valid():
        errors.append("Student database path not configured (STUDENTS_DB_PATH)")

    if config.storage.provider not in ("google_drive", "local"):
        errors.append(
            f"Unknown STORAGE_PROVIDER '{config.storage.provider}' (use google_drive or local)"
        )

    if config.llm.provider not in ("gemini", "openai", "claude", "ollama"):
        errors.append(
            f"Unknown LLM_PROVIDER '{config.llm.provider}' (use gemini, openai, claude or ollama)"
        )

    if config.server.max_upload_mb <= 0:
        errors.append("MAX_UPLOAD_MB must be positive")

    return errors


def print_config_status(config: Config):
    """Print configuration status for debugging."""
    print("Configuration Status")
    print("=" * 50)

    # Server
    print(f"\nServer:")
    print(f"  Address: http://{config.server.host}:{config.server.port}")
    print(f"  Upload Limit: {config.server.max_upload_mb}MB")
    print(f"  Log Level: {config.server.log_level}")

    # Database
    print(f"\nStudent Database:")
    print(f"  Path: {config.database.students_path}")
    print(f"  Status: {'OK' if os.path.exists(config.database.students_path) else 'NOT CREATED YET'}")

    # Storage
    print(f"\nStorage:")
    print(f"  Provider: {config.storage.provider}")
    print(f"  Upload Dir: {config.storage.upload_dir}")

    # Drive
    print(f"\nGoogle Drive:")
    if config.drive.service_account_json:
        print("  Credentials: service account (environment)")
    elif os.path.exists(config.drive.service_account_file):
        print(f"  Credentials: service account ({config.drive.service_account_file})")
    elif config.drive.has_oauth_client() and config.drive.refresh_token:
        print("  Credentials: OAuth refresh token")
    else:
        print("  Credentials: NOT SET")
    parent_id = config.drive.parent_folder_id
    if parent_id:
        print(f"  Parent Folder: {parent_id[:20]}..." if len(parent_id) > 20 else f"  Parent Folder: {parent_id}")
    else:
        print("  Parent Folder: NOT SET (Drive root)")
    print(f"  Status: {'OK' if config.drive.is_valid() else 'NOT CONFIGURED (local fallback)'}")

    # LLM
    print(f"\nLLM Classifier:")
    print(f"  Provider: {config.llm.provider}")
    print(f"  Enabled: {config.llm.enabled}")
    print(f"  Model: {config.llm.get_provider_config().get('model', 'n/a')}")
    print(f"  Status: {'OK' if config.llm.is_valid() else 'NOT CONFIGURED (regex fallback)'}")


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Config object (loaded on first call)
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


# =============================================================================
# MAIN (for testing)
# =============================================================================

if __name__ == "__main__":
    config = get_config()
    print_config_status(config)

    errors = validate_config(config)
    if errors:
        print("\nConfiguration Errors:")
        for error in errors:
            print(f"  - {error}")
    else:
        print("\nConfiguration is valid!")
