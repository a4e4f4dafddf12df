"""
Configuration management for ResumePilot.

This module handles loading environment variables, user defaults,
and application settings with secure API key management.
"""

import os
from typing import Dict, Any, Optional, List
from pathlib import Path
from dotenv import load_dotenv
import logging
from dataclasses import dataclass, asdict, field

logger = logging.getLogger(__name__)

@dataclass
class LLMConfig:
    """Configuration for LLM backends."""
    openrouter_api_key: Optional[str] = None
    default_model: str = "google/gemini-2.0-flash-001"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"
    use_local_llm: bool = False
    local_llm_model: str = "qwen2.5:32b"
    ollama_base_url: str = "http://localhost:11434"
    temperature: float = 0.7
    max_tokens: int = 4000

@dataclass
class DatabaseConfig:
    """Configuration for the application store."""
    path: str = "data/resume_pilot.db"

@dataclass
class MailConfig:
    """Configuration for the outbound mail relay."""
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    operator_emails: List[str] = field(default_factory=list)

    def missing_settings(self) -> List[str]:
        """Names of the environment variables that are not set."""
        missing = []
        if not self.host:
            missing.append("EMAIL_HOST")
        if not self.port:
            missing.append("EMAIL_PORT")
        if not self.user:
            missing.append("EMAIL_USER")
        if not self.password:
            missing.append("EMAIL_PASS")
        return missing

    @property
    def is_configured(self) -> bool:
        return not self.missing_settings()

@dataclass
class UserConfig:
    """Local user identity used when no sign-in is available."""
    default_user_id: str = "local-user"

@dataclass
class AppConfig:
    """Main application configuration."""
    log_level: str = "INFO"
    log_to_file: bool = True
    data_dir: str = "data"

    # Component configurations
    llm: LLMConfig = None
    database: DatabaseConfig = None
    mail: MailConfig = None
    user: UserConfig = None

    def __post_init__(self):
        if self.llm is None:
            self.llm = LLMConfig()
        if self.database is None:
            self.database = DatabaseConfig()
        if self.mail is None:
            self.mail = MailConfig()
        if self.user is None:
            self.user = UserConfig()

def _parse_port(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring invalid EMAIL_PORT value: {value!r}")
        return None

class ConfigManager:
    """Manages application configuration from environment variables."""

    def __init__(self, env_file: Optional[str] = None):
        """Initialize configuration manager."""
        self.env_file = env_file or ".env"
        self.config = AppConfig()
        self.load_config()

    def load_config(self) -> None:
        """Load configuration from environment variables."""
        # Load .env file if it exists
        if Path(self.env_file).exists():
            load_dotenv(self.env_file)
            logger.info(f"Loaded environment from {self.env_file}")

        # LLM Configuration
        llm = self.config.llm
        llm.openrouter_api_key = os.getenv("OPENROUTER_API_KEY") or None
        llm.default_model = os.getenv("DEFAULT_LLM_MODEL", llm.default_model)
        llm.gemini_api_key = os.getenv("GEMINI_API_KEY") or None
        llm.gemini_model = os.getenv("GEMINI_MODEL", llm.gemini_model)
        llm.use_local_llm = os.getenv("USE_LOCAL_LLM", "false").lower() == "true"
        llm.local_llm_model = os.getenv("LOCAL_LLM_MODEL", llm.local_llm_model)
        llm.ollama_base_url = os.getenv("OLLAMA_BASE_URL", llm.ollama_base_url)
        llm.temperature = float(os.getenv("LLM_TEMPERATURE", str(llm.temperature)))
        llm.max_tokens = int(os.getenv("LLM_MAX_TOKENS", str(llm.max_tokens)))

        # App Configuration
        self.config.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.config.log_to_file = os.getenv("LOG_TO_FILE", "true").lower() == "true"
        self.config.data_dir = os.getenv("DATA_DIR", "data")

        # Store
        self.config.database.path = os.getenv(
            "DATABASE_PATH", str(Path(self.config.data_dir) / "resume_pilot.db")
        )

        # Mail relay
        mail = self.config.mail
        mail.host = os.getenv("EMAIL_HOST") or None
        mail.port = _parse_port(os.getenv("EMAIL_PORT"))
        mail.user = os.getenv("EMAIL_USER") or None
        mail.password = os.getenv("EMAIL_PASS") or None
        operators = os.getenv("OPERATOR_EMAILS", "")
        mail.operator_emails = [addr.strip() for addr in operators.split(",") if addr.strip()]

        self.config.user.default_user_id = os.getenv("DEFAULT_USER_ID", "local-user")

        # Ensure directories exist
        self._ensure_directories()

        logger.info("Configuration loaded successfully")

    def _ensure_directories(self) -> None:
        """Ensure required directories exist."""
        directories = [
            self.config.data_dir,
            f"{self.config.data_dir}/logs",
            str(Path(self.config.database.path).parent),
        ]

        for directory in directories:
            Path(directory).mkdir(parents=True, exist_ok=True)

    def get_llm_config(self) -> LLMConfig:
        """Get LLM configuration."""
        return self.config.llm

    def get_database_config(self) -> DatabaseConfig:
        """Get store configuration."""
        return self.config.database

    def get_mail_config(self) -> MailConfig:
        """Get mail relay configuration."""
        return self.config.mail

    def get_user_config(self) -> UserConfig:
        """Get user configuration."""
        return self.config.user

    def get_app_config(self) -> AppConfig:
        """Get full application configuration."""
        return self.config

    def validate_config(self) -> Dict[str, List[str]]:
        """Validate configuration and return any issues."""
        issues = {
            "errors": [],
            "warnings": []
        }

        llm = self.config.llm
        if not llm.openrouter_api_key and not llm.gemini_api_key and not llm.use_local_llm:
            issues["errors"].append(
                "No LLM backend configured. Set OPENROUTER_API_KEY, GEMINI_API_KEY or USE_LOCAL_LLM=true"
            )

        missing_mail = self.config.mail.missing_settings()
        if missing_mail:
            issues["warnings"].append(
                f"Mail relay not configured ({', '.join(missing_mail)} missing) - contact form emails will not be sent"
            )
        elif not self.config.mail.operator_emails:
            issues["warnings"].append("OPERATOR_EMAILS is empty - only confirmation emails will be sent")

        return issues

    def mask_sensitive_config(self) -> Dict[str, Any]:
        """Get configuration with sensitive values masked for display."""
        config_dict = asdict(self.config)

        sensitive_keys = ["openrouter_api_key", "gemini_api_key", "password"]

        def mask_value(obj):
            if isinstance(obj, dict):
                for key, value in obj.items():
                    if key in sensitive_keys and value:
                        obj[key] = f"{value[:8]}..." if len(value) > 8 else "***"
                    elif isinstance(value, dict):
                        mask_value(value)
            return obj

        return mask_value(config_dict)

# Global configuration instance
config_manager = ConfigManager()

def get_config() -> AppConfig:
    """Get the global configuration instance."""
    return config_manager.get_app_config()

def get_llm_config() -> LLMConfig:
    """Get LLM configuration."""
    return config_manager.get_llm_config()

def get_database_config() -> DatabaseConfig:
    """Get store configuration."""
    return config_manager.get_database_config()

def get_mail_config() -> MailConfig:
    """Get mail relay configuration."""
    return config_manager.get_mail_config()

def get_user_config() -> UserConfig:
    """Get user configuration."""
    return config_manager.get_user_config()

def validate_config() -> Dict[str, List[str]]:
    """Validate current configuration."""
    return config_manager.validate_config()
