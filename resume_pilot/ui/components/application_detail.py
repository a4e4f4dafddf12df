"""
Application Detail View.

Shows one saved application with its four documents. Each document can be
viewed, edited, regenerated or downloaded as .docx. Edits are applied to the
local copy immediately and written to the store in the background.
"""

import asyncio
import base64
from dataclasses import replace

import streamlit as st

from resume_pilot.document_manager import DOCX_MIME_TYPE, sanitize_filename
from resume_pilot.models import DOCUMENT_FIELDS, DOCUMENT_LABELS
from resume_pilot.ui.utils.session import get_orchestrator
from resume_pilot.ui.utils.styling import create_status_badge, render_document
from resume_pilot.utils import get_ui_logger

logger = get_ui_logger()

class ApplicationDetailView:
    """Detail page for a single saved application."""

    def __init__(self, app_id):
        self.app_id = app_id
        self.orchestrator = get_orchestrator()
        self.user_id = st.session_state.get('user_id')
        self.cache = st.session_state.application_cache

    def _load(self):
        if self.app_id in self.cache:
            return self.cache[self.app_id]
        envelope = self.orchestrator.get_application(self.user_id, self.app_id)
        if envelope.ok:
            self.cache[self.app_id] = envelope.data
            return envelope.data
        st.error(envelope.error)
        return None

    def render(self):
        """Render the application detail page."""
        if st.button("← Back to applications"):
            st.session_state.selected_application_id = None
            st.rerun()

        application = self._load()
        if application is None:
            return

        st.markdown(f"### {application.job_title}")
        st.markdown(
            f"{application.company_name} &nbsp; {create_status_badge(application.status.value)}",
            unsafe_allow_html=True,
        )

        with st.expander("Original resume and job description"):
            col1, col2 = st.columns(2)
            col1.text_area("Resume", application.resume_text, height=250, disabled=True,
                           key=f"detail_resume_{self.app_id}")
            col2.text_area("Job Description", application.job_description_text, height=250, disabled=True,
                           key=f"detail_jd_{self.app_id}")

        tabs = st.tabs([DOCUMENT_LABELS[name] for name in DOCUMENT_FIELDS])
        for tab, field_name in zip(tabs, DOCUMENT_FIELDS):
            with tab:
                self._render_document(application, field_name)

    def _render_document(self, application, field_name):
        html = getattr(application, field_name)
        edit_key = f"editing_{self.app_id}_{field_name}"

        if st.session_state.get(edit_key):
            self._render_editor(application, field_name, edit_key)
            return

        render_document(html)

        col1, col2, col3 = st.columns(3)
        with col1:
            if html and st.button("✏️ Edit", key=f"edit_{self.app_id}_{field_name}"):
                st.session_state[edit_key] = True
                st.rerun()
        with col2:
            label = "🔄 Regenerate" if html else "✨ Generate"
            if st.button(label, key=f"regenerate_{self.app_id}_{field_name}"):
                self._regenerate(application, field_name)
        with col3:
            if html:
                self._render_download(application, field_name, html)

    def _render_editor(self, application, field_name, edit_key):
        with st.form(f"edit_form_{self.app_id}_{field_name}"):
            edited = st.text_area("HTML", getattr(application, field_name) or "", height=400)
            col1, col2 = st.columns(2)
            save = col1.form_submit_button("💾 Save", type="primary")
            cancel = col2.form_submit_button("Cancel")

        if save:
            self._apply_change(application, field_name, edited)
            st.session_state[edit_key] = False
            st.rerun()
        if cancel:
            st.session_state[edit_key] = False
            st.rerun()

    def _regenerate(self, application, field_name):
        profile = self.orchestrator.load_profile(self.user_id)
        with st.spinner(f"Generating {DOCUMENT_LABELS[field_name].lower()}..."):
            envelope = asyncio.run(self.orchestrator.regenerate_document(
                application, field_name, profile=profile.data if profile.ok else None
            ))
        if not envelope.ok:
            st.error(envelope.error)
            return
        self._apply_change(application, field_name, envelope.data)
        st.rerun()

    def _apply_change(self, application, field_name, html):
        """Update the local copy and write the change in the background."""
        self.cache[self.app_id] = replace(application, **{field_name: html})
        self.orchestrator.update_application_fields(self.user_id, self.app_id, {field_name: html})
        logger.info(f"Updated {field_name} of application {self.app_id}")

    def _render_download(self, application, field_name, html):
        envelope = self.orchestrator.generate_docx(html)
        if not envelope.ok:
            st.error(envelope.error)
            return
        name = sanitize_filename(f"{application.company_name} {DOCUMENT_LABELS[field_name]}")
        st.download_button(
            "⬇️ Download .docx",
            data=base64.b64decode(envelope.data),
            file_name=f"{name}.docx",
            mime=DOCX_MIME_TYPE,
            key=f"download_{self.app_id}_{field_name}",
        )
