"""
Configuration module for ResumePilot.

This module provides the document store and application configuration.
"""

from .database import (
    DatabaseManager,
    PersistenceError,
    PermissionDeniedError,
    ConnectivityError,
    get_db_manager
)
from .settings import (
    ConfigManager,
    AppConfig,
    LLMConfig,
    DatabaseConfig,
    MailConfig,
    UserConfig,
    get_config,
    get_llm_config,
    get_database_config,
    get_mail_config,
    get_user_config,
    validate_config,
    config_manager
)

__all__ = [
    'DatabaseManager',
    'PersistenceError',
    'PermissionDeniedError',
    'ConnectivityError',
    'get_db_manager',
    'ConfigManager',
    'AppConfig',
    'LLMConfig',
    'DatabaseConfig',
    'MailConfig',
    'UserConfig',
    'get_config',
    'get_llm_config',
    'get_database_config',
    'get_mail_config',
    'get_user_config',
    'validate_config',
    'config_manager'
]
