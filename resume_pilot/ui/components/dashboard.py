"""
My Applications Tab Component.

This module lists the user's saved applications with summary metrics and
lets the user change an application's status or open it in the detail view.
"""

from dataclasses import replace
from datetime import datetime

import pandas as pd
import plotly.express as px
import streamlit as st

from resume_pilot.models import ApplicationStatus, DOCUMENT_FIELDS
from resume_pilot.ui.components.application_detail import ApplicationDetailView
from resume_pilot.ui.utils.session import get_orchestrator
from resume_pilot.ui.utils.styling import create_status_badge
from resume_pilot.utils import get_ui_logger

logger = get_ui_logger()

def format_date(value):
    try:
        return datetime.fromisoformat(value).strftime("%b %d, %Y")
    except (TypeError, ValueError):
        return value or "Unknown"

def applications_frame(applications):
    """Tabular summary of applications for display."""
    rows = [{
        "Job Title": app.job_title,
        "Company": app.company_name,
        "Applied": format_date(app.application_date),
        "Status": app.status.value,
        "Documents": sum(1 for name in DOCUMENT_FIELDS if app.has_document(name)),
    } for app in applications]
    return pd.DataFrame(rows, columns=["Job Title", "Company", "Applied", "Status", "Documents"])

def with_local_edits(applications, cache):
    """Replace stored applications with this session's edited copies."""
    return [cache.get(app.id, app) for app in applications]

class DashboardTab:
    """Dashboard of saved applications."""

    def __init__(self):
        self.orchestrator = get_orchestrator()
        self.user_id = st.session_state.get('user_id')
        self.cache = st.session_state.application_cache

    def render(self):
        """Render the dashboard tab content."""
        selected = st.session_state.get('selected_application_id')
        if selected:
            ApplicationDetailView(selected).render()
            return

        st.markdown("### 📋 My Applications")

        envelope = self.orchestrator.list_applications(self.user_id)
        if not envelope.ok:
            st.error(envelope.error)
            return

        applications = with_local_edits(envelope.data, self.cache)
        if not applications:
            st.info("You have not saved any applications yet. Use the Generator tab to create one.")
            return

        self._render_metrics(applications)
        self._render_application_list(applications)

    def _render_metrics(self, applications):
        frame = applications_frame(applications)
        counts = frame["Status"].value_counts()

        cols = st.columns(len(ApplicationStatus) + 1)
        cols[0].metric("Total", len(frame))
        for col, status in zip(cols[1:], ApplicationStatus.values()):
            col.metric(status, int(counts.get(status, 0)))

        with st.expander("📈 Status overview"):
            status_frame = pd.DataFrame({
                "Status": ApplicationStatus.values(),
                "Applications": [int(counts.get(status, 0)) for status in ApplicationStatus.values()],
            })
            fig = px.bar(status_frame, x="Status", y="Applications", color="Status")
            fig.update_layout(showlegend=False, height=280)
            st.plotly_chart(fig, width="stretch")
            st.dataframe(frame, width="stretch", hide_index=True)

    def _render_application_list(self, applications):
        statuses = ApplicationStatus.values()

        for app in applications:
            col1, col2, col3, col4 = st.columns([4, 2, 2, 1])

            with col1:
                st.markdown(f"**{app.job_title}**  \n{app.company_name}")
            with col2:
                st.caption(f"Applied {format_date(app.application_date)}")
                st.markdown(create_status_badge(app.status.value), unsafe_allow_html=True)
            with col3:
                st.selectbox(
                    "Status",
                    statuses,
                    index=statuses.index(app.status.value),
                    key=f"status_{app.id}",
                    label_visibility="collapsed",
                    on_change=self._on_status_change,
                    args=(app,),
                )
            with col4:
                if st.button("Open", key=f"open_{app.id}"):
                    st.session_state.selected_application_id = app.id
                    st.rerun()

            st.markdown("---")

    def _on_status_change(self, app):
        status = st.session_state[f"status_{app.id}"]
        envelope = self.orchestrator.update_application_status(self.user_id, app.id, status)
        if not envelope.ok:
            st.error(envelope.error)
            return
        # Kept even if the background write fails
        self.cache[app.id] = replace(app, status=ApplicationStatus(status))
        logger.info(f"Changing status of {app.id} to {status}")
