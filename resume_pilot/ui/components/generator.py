"""
Generator Tab Component.

The wizard that walks the user from a resume and a job description to an
analysis, an optimized resume, a cover letter, interview prep and a
follow-up email, and finally saves the session as an application.
"""

import asyncio
import base64

import streamlit as st

from resume_pilot.document_manager import DOCX_MIME_TYPE, sanitize_filename
from resume_pilot.models import DOCUMENT_LABELS
from resume_pilot.ui.utils.session import dispatch, get_orchestrator, get_wizard
from resume_pilot.ui.utils.styling import create_keyword_chips, create_score_gauge, render_document
from resume_pilot.ui.wizard import (
    AddSkill, AnalysisReady, CoverLetterReady, Failed, FollowUpReady, InterviewPrepReady,
    MoveSkill, OptimizedAnalysisReady, RemoveSkill, ResumeOptimized, Saved, SetText, Slot, Stage,
    Started, can_start
)
from resume_pilot.utils import get_ui_logger, html_to_text

logger = get_ui_logger()

class GeneratorTab:
    """Generator tab: the application-tailoring wizard."""

    def __init__(self):
        self.orchestrator = get_orchestrator()
        self.user_id = st.session_state.get('user_id')

    def render(self):
        """Render the generator tab content."""
        self._render_inputs()

        state = get_wizard()
        if state.error:
            st.error(state.error)

        if state.analysis is None:
            st.info("Paste your resume and a job description, then run the analysis to get started.")
            return

        self._render_analysis()
        self._render_skills()
        self._render_documents()
        self._render_save()

    def _render_inputs(self):
        state = get_wizard()
        col1, col2 = st.columns(2)

        with col1:
            st.text_area(
                "Your Resume",
                value=state.resume_text,
                height=300,
                key="resume_input",
                placeholder="Paste your resume here...",
                on_change=lambda: dispatch(SetText("resume_text", st.session_state.resume_input)),
            )

        with col2:
            st.text_area(
                "Job Description",
                value=state.job_description_text,
                height=300,
                key="job_description_input",
                placeholder="Paste the job description here...",
                on_change=lambda: dispatch(SetText("job_description_text", st.session_state.job_description_input)),
            )

        if st.button("✨ Analyze Suitability", type="primary", disabled=not can_start(state, Slot.ANALYSIS)):
            self._analyze()

    def _analyze(self):
        dispatch(Started(Slot.ANALYSIS))
        state = get_wizard()
        with st.spinner("Analyzing your resume against the job description..."):
            envelope = asyncio.run(self.orchestrator.run_job_suitability_analysis(
                state.resume_text, state.job_description_text
            ))
        if envelope.ok:
            dispatch(AnalysisReady(envelope.data))
        else:
            dispatch(Failed(Slot.ANALYSIS, envelope.error))
        st.rerun()

    def _render_analysis(self):
        state = get_wizard()
        analysis = state.analysis

        st.markdown("### 📊 Analysis")
        col1, col2 = st.columns([1, 2])

        with col1:
            st.plotly_chart(create_score_gauge(analysis.compatibility_score), width="stretch")
            if state.optimized_analysis is not None:
                st.plotly_chart(
                    create_score_gauge(state.optimized_analysis.compatibility_score, title="After optimization"),
                    width="stretch",
                )

        with col2:
            if analysis.is_right_for_me:
                st.success("This job looks like a good fit for you.")
            else:
                st.warning("This job may not be the best fit. Consider it carefully.")

            st.markdown("**Matched keywords**")
            st.markdown(create_keyword_chips(analysis.matched_keywords) or "None", unsafe_allow_html=True)
            st.markdown("**Missing keywords**")
            st.markdown(create_keyword_chips(analysis.missing_keywords, matched=False) or "None",
                        unsafe_allow_html=True)

    def _render_skills(self):
        state = get_wizard()
        st.markdown("### 🧩 Skills to add")
        st.caption("These skills will be woven into your optimized resume. Reorder them by priority.")

        suggestions = [k for k in state.analysis.missing_keywords if k not in state.skills_to_add]
        if suggestions:
            cols = st.columns(min(len(suggestions), 6))
            for i, keyword in enumerate(suggestions):
                with cols[i % len(cols)]:
                    if st.button(f"➕ {keyword}", key=f"suggest_{i}_{keyword}"):
                        dispatch(AddSkill(keyword))
                        st.rerun()

        if not state.skills_to_add:
            st.caption("Add missing keywords above or type your own.")

        for i, skill in enumerate(state.skills_to_add):
            col1, col2, col3, col4 = st.columns([6, 1, 1, 1])
            col1.write(f"{i + 1}. {skill}")
            if col2.button("⬆️", key=f"skill_up_{i}", disabled=i == 0):
                dispatch(MoveSkill(i, i - 1))
                st.rerun()
            if col3.button("⬇️", key=f"skill_down_{i}", disabled=i == len(state.skills_to_add) - 1):
                dispatch(MoveSkill(i, i + 1))
                st.rerun()
            if col4.button("🗑️", key=f"skill_remove_{i}"):
                dispatch(RemoveSkill(skill))
                st.rerun()

        with st.form("add_skill_form", clear_on_submit=True):
            new_skill = st.text_input("Add a skill", placeholder="e.g. Kubernetes")
            if st.form_submit_button("Add skill") and new_skill.strip():
                dispatch(AddSkill(new_skill))
                st.rerun()

    def _render_documents(self):
        state = get_wizard()
        tabs = st.tabs([
            "📄 Optimized Resume", "✉️ Cover Letter", "🎤 Interview Prep", "📧 Follow-up Email"
        ])

        with tabs[0]:
            self._render_document_panel("optimized_resume_html", Slot.OPTIMIZE, "Generate Optimized Resume",
                                        self._optimize, "Run the optimization to tailor your resume.")
        with tabs[1]:
            self._render_document_panel("cover_letter_html", Slot.COVER_LETTER, "Generate Cover Letter",
                                        self._cover_letter, "Optimize your resume first.")
        with tabs[2]:
            self._render_document_panel("interview_questions_html", Slot.INTERVIEW_PREP, "Generate Interview Prep",
                                        self._interview_prep, "Optimize your resume first.")
        with tabs[3]:
            self._render_document_panel("follow_up_email_html", Slot.FOLLOW_UP, "Generate Follow-up Email",
                                        self._follow_up, "Generate a cover letter first.")

        if state.stage == Stage.FOLLOW_UPS_GENERATED:
            st.caption("Follow-up material is ready. Save the application to keep it.")

    def _render_document_panel(self, field_name, slot, label, handler, locked_hint):
        state = get_wizard()
        html = state.documents()[field_name]
        allowed = can_start(state, slot)

        if not render_document(html):
            if not allowed and not state.is_busy(slot):
                st.caption(locked_hint)

        button_label = "🔄 Regenerate" if html else label
        if st.button(button_label, key=f"generate_{field_name}", disabled=not allowed):
            handler()

        if html:
            self._render_download(field_name, html)

    def _render_download(self, field_name, html):
        envelope = self.orchestrator.generate_docx(html)
        if not envelope.ok:
            st.error(envelope.error)
            return
        label = DOCUMENT_LABELS[field_name]
        st.download_button(
            f"⬇️ Download {label} (.docx)",
            data=base64.b64decode(envelope.data),
            file_name=f"{sanitize_filename(label)}.docx",
            mime=DOCX_MIME_TYPE,
            key=f"download_{field_name}",
        )

    def _optimize(self):
        dispatch(Started(Slot.OPTIMIZE))
        state = get_wizard()
        profile = self.orchestrator.load_profile(self.user_id)
        with st.spinner("Optimizing your resume..."):
            envelope = asyncio.run(self.orchestrator.run_resume_optimization(
                state.resume_text,
                state.job_description_text,
                additional_skills=list(state.skills_to_add),
                profile=profile.data if profile.ok else None,
            ))
        if envelope.ok:
            dispatch(ResumeOptimized(envelope.data.optimized_resume_html))
            if envelope.data.optimized_analysis is not None:
                dispatch(OptimizedAnalysisReady(envelope.data.optimized_analysis))
            self._persist_if_saved("optimized_resume_html", envelope.data.optimized_resume_html)
        else:
            dispatch(Failed(Slot.OPTIMIZE, envelope.error))
        st.rerun()

    def _cover_letter(self):
        dispatch(Started(Slot.COVER_LETTER))
        state = get_wizard()
        with st.spinner("Writing your cover letter..."):
            envelope = asyncio.run(self.orchestrator.run_cover_letter_generation(
                html_to_text(state.optimized_resume_html), state.job_description_text
            ))
        if envelope.ok:
            dispatch(CoverLetterReady(envelope.data))
            self._persist_if_saved("cover_letter_html", envelope.data)
        else:
            dispatch(Failed(Slot.COVER_LETTER, envelope.error))
        st.rerun()

    def _interview_prep(self):
        dispatch(Started(Slot.INTERVIEW_PREP))
        state = get_wizard()
        with st.spinner("Preparing interview questions..."):
            envelope = asyncio.run(self.orchestrator.run_interview_questions_generation(
                html_to_text(state.optimized_resume_html), state.job_description_text
            ))
        if envelope.ok:
            dispatch(InterviewPrepReady(envelope.data))
            self._persist_if_saved("interview_questions_html", envelope.data)
        else:
            dispatch(Failed(Slot.INTERVIEW_PREP, envelope.error))
        st.rerun()

    def _follow_up(self):
        dispatch(Started(Slot.FOLLOW_UP))
        state = get_wizard()
        with st.spinner("Drafting your follow-up email..."):
            envelope = asyncio.run(self.orchestrator.run_follow_up_email_generation(
                html_to_text(state.optimized_resume_html),
                html_to_text(state.cover_letter_html),
                state.job_description_text,
            ))
        if envelope.ok:
            dispatch(FollowUpReady(envelope.data))
            self._persist_if_saved("follow_up_email_html", envelope.data)
        else:
            dispatch(Failed(Slot.FOLLOW_UP, envelope.error))
        st.rerun()

    def _persist_if_saved(self, field_name, html):
        state = get_wizard()
        if state.saved_application_id:
            self.orchestrator.update_application_fields(
                self.user_id, state.saved_application_id, {field_name: html}
            )

    def _render_save(self):
        state = get_wizard()
        st.markdown("---")

        if state.stage == Stage.SAVED:
            st.success("Application saved. New documents are added to it automatically.")
            return

        with st.form("save_application_form"):
            col1, col2 = st.columns(2)
            job_title = col1.text_input("Job title", placeholder="Detected from the description if left empty")
            company_name = col2.text_input("Company", placeholder="Detected from the description if left empty")
            submitted = st.form_submit_button(
                "💾 Save Application", type="primary", disabled=not can_start(state, Slot.SAVE)
            )

        if submitted:
            dispatch(Started(Slot.SAVE))
            with st.spinner("Saving application..."):
                envelope = asyncio.run(self.orchestrator.save_application(
                    self.user_id,
                    state.resume_text,
                    state.job_description_text,
                    documents=state.documents(),
                    job_title=job_title.strip() or None,
                    company_name=company_name.strip() or None,
                ))
            if envelope.ok:
                dispatch(Saved(envelope.data))
                logger.info(f"Saved application {envelope.data}")
            else:
                dispatch(Failed(Slot.SAVE, envelope.error))
            st.rerun()
