"""
Utility modules for ResumePilot.

This package provides logging, the notification channel and HTML helpers.
"""

from .logger import (
    setup_logging,
    get_logger,
    get_ai_logger,
    get_storage_logger,
    get_email_logger,
    get_ui_logger,
    get_workflow_logger,
    JobApplicationLogger
)

from .events import (
    Notification,
    NotificationChannel,
    NotificationInbox,
    get_notification_channel,
    PERSISTENCE_ERROR,
    PERSISTENCE_SAVED,
    MAIL_ERROR
)

from .html_text import (
    strip_wrapper_tags,
    strip_code_fences,
    html_to_text
)

__all__ = [
    # Logging
    'setup_logging',
    'get_logger',
    'get_ai_logger',
    'get_storage_logger',
    'get_email_logger',
    'get_ui_logger',
    'get_workflow_logger',
    'JobApplicationLogger',

    # Notifications
    'Notification',
    'NotificationChannel',
    'NotificationInbox',
    'get_notification_channel',
    'PERSISTENCE_ERROR',
    'PERSISTENCE_SAVED',
    'MAIL_ERROR',

    # HTML
    'strip_wrapper_tags',
    'strip_code_fences',
    'html_to_text'
]
