"""
Session state management for the Streamlit application.

This module handles initialization and management of session state variables
to ensure consistent state across reruns, and turns background notifications
into toasts.
"""

import streamlit as st

from resume_pilot.config import get_config, get_user_config
from resume_pilot.email_composer import get_mailer
from resume_pilot.ui.wizard import WizardState, reduce
from resume_pilot.utils import (
    NotificationChannel, NotificationInbox, get_ui_logger,
    MAIL_ERROR, PERSISTENCE_ERROR, PERSISTENCE_SAVED
)
from resume_pilot.workflow_orchestrator import ResumePilotOrchestrator

logger = get_ui_logger()

TOAST_ICONS = {"error": "❌", "warning": "⚠️", "success": "✅", "info": "ℹ️"}

def init_session_state():
    """Initialize all session state variables."""

    if 'config' not in st.session_state:
        try:
            st.session_state.config = get_config()
            st.session_state.config_status = "loaded"
        except Exception as e:
            st.session_state.config = None
            st.session_state.config_status = f"error: {str(e)}"

    # Each browser session gets its own channel so notifications never cross sessions
    if 'channel' not in st.session_state:
        channel = NotificationChannel()
        inbox = NotificationInbox()
        for topic in (PERSISTENCE_ERROR, PERSISTENCE_SAVED, MAIL_ERROR):
            channel.subscribe(topic, inbox)
        st.session_state.channel = channel
        st.session_state.inbox = inbox

    if 'orchestrator' not in st.session_state:
        st.session_state.orchestrator = ResumePilotOrchestrator(channel=st.session_state.channel)

    if 'mailer' not in st.session_state:
        st.session_state.mailer = get_mailer()

    if 'user_id' not in st.session_state:
        st.session_state.user_id = get_user_config().default_user_id

    if 'wizard' not in st.session_state:
        st.session_state.wizard = WizardState()

    if 'selected_application_id' not in st.session_state:
        st.session_state.selected_application_id = None

    # Locally edited applications, kept even if the background write fails
    if 'application_cache' not in st.session_state:
        st.session_state.application_cache = {}

def get_orchestrator() -> ResumePilotOrchestrator:
    return st.session_state.orchestrator

def get_channel() -> NotificationChannel:
    return st.session_state.channel

def get_wizard() -> WizardState:
    return st.session_state.wizard

def dispatch(action) -> WizardState:
    """Apply a wizard action to the session's wizard state."""
    st.session_state.wizard = reduce(st.session_state.wizard, action)
    return st.session_state.wizard

def show_pending_notifications():
    """Show toasts for notifications published since the last run."""
    inbox = st.session_state.get('inbox')
    if inbox is None:
        return
    for notification in inbox.drain():
        logger.debug(f"Showing notification: {notification.title}", topic=notification.topic)
        st.toast(
            f"**{notification.title}**: {notification.message}",
            icon=TOAST_ICONS.get(notification.level, "ℹ️"),
        )

def switch_user(user_id: str):
    """Change the active user and forget per-user state."""
    user_id = user_id.strip()
    if not user_id or user_id == st.session_state.get('user_id'):
        return
    st.session_state.user_id = user_id
    st.session_state.wizard = WizardState()
    st.session_state.selected_application_id = None
    st.session_state.application_cache = {}
    logger.info(f"Switched to user {user_id}")
