"""
Application Workflow Orchestrator

This module is the single boundary between the UI and the generation,
export and storage layers. Every operation returns an Envelope carrying
either data or a user-facing error message; nothing here raises to the UI.
Store updates triggered from the dashboard are fire-and-forget: they run on
a background thread and report failures on the notification channel.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .ai_processing import (
    GenerationError, GenerationInvoker, InputValidationError, Operation,
    SuitabilityOutput
)
from .config.database import DatabaseManager, PermissionDeniedError, PersistenceError
from .document_manager import DocxExporter, DocumentExportError
from .models import ApplicationStatus, DOCUMENT_FIELDS, DOCUMENT_LABELS, JobApplication, UserProfile
from .utils import (
    Notification, NotificationChannel, get_notification_channel, get_workflow_logger,
    html_to_text, PERSISTENCE_ERROR, PERSISTENCE_SAVED
)

logger = get_workflow_logger()

DEFAULT_JOB_TITLE = "Untitled Position"
DEFAULT_COMPANY_NAME = "Unknown Company"

FAILURE_MESSAGES = {
    Operation.ANALYZE_SUITABILITY: "Failed to analyze job suitability.",
    Operation.OPTIMIZE_RESUME: "Failed to optimize resume.",
    Operation.GENERATE_COVER_LETTER: "Failed to generate cover letter.",
    Operation.GENERATE_INTERVIEW_QUESTIONS: "Failed to generate interview questions.",
    Operation.GENERATE_FOLLOW_UP_EMAIL: "Failed to generate follow-up email.",
    Operation.EXTRACT_JOB_DETAILS: "Failed to extract job details.",
}
DOCUMENT_FAILURE_MESSAGE = "Failed to generate document."
SAVE_FAILURE_MESSAGE = "Failed to save application."
LOAD_FAILURE_MESSAGE = "Failed to load your data."
PROFILE_FAILURE_MESSAGE = "Failed to save profile."

@dataclass
class Envelope:
    """Result of an orchestrated operation: data on success, error otherwise."""
    data: Any = None
    error: Optional[str] = None
    field_errors: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Any = None) -> "Envelope":
        return cls(data=data)

    @classmethod
    def failure(cls, error: str, field_errors: Optional[Dict[str, List[str]]] = None) -> "Envelope":
        return cls(error=error, field_errors=field_errors or {})

@dataclass
class OptimizationResult:
    """Optimized resume plus the re-analysis of it, when that succeeded."""
    optimized_resume_html: str
    optimized_analysis: Optional[SuitabilityOutput] = None

def describe_field_errors(field_errors: Dict[str, List[str]]) -> str:
    parts = [f"{name}: {'; '.join(messages)}" for name, messages in field_errors.items()]
    return "Invalid input. " + " ".join(parts) if parts else "Invalid input."

class ResumePilotOrchestrator:
    """Coordinates generation, export and storage for the UI."""

    def __init__(self, db_manager: Optional[DatabaseManager] = None,
                 invoker: Optional[GenerationInvoker] = None,
                 exporter: Optional[DocxExporter] = None,
                 channel: Optional[NotificationChannel] = None):
        self._db_manager = db_manager
        self._invoker = invoker
        self.exporter = exporter or DocxExporter()
        self.channel = channel or get_notification_channel()

    @property
    def db_manager(self) -> DatabaseManager:
        if self._db_manager is None:
            from .config import get_db_manager
            self._db_manager = get_db_manager()
        return self._db_manager

    @property
    def invoker(self) -> GenerationInvoker:
        if self._invoker is None:
            self._invoker = GenerationInvoker()
        return self._invoker

    async def _run(self, operation: Operation, payload: Dict[str, Any]) -> Envelope:
        """Invoke one generation operation and wrap the outcome."""
        start_time = time.monotonic()
        logger.operation_started(operation.value)

        try:
            output = await self.invoker.invoke(operation, payload)
        except InputValidationError as e:
            logger.warning(f"Rejected {operation.value} input: {e.field_errors}")
            logger.operation_completed(operation.value, "invalid_input")
            return Envelope.failure(describe_field_errors(e.field_errors), e.field_errors)
        except Exception as e:
            logger.exception(f"Error in {operation.value}: {e}")
            logger.operation_completed(operation.value, "failed")
            return Envelope.failure(FAILURE_MESSAGES[operation])

        elapsed = round(time.monotonic() - start_time, 2)
        logger.operation_completed(operation.value, "success", elapsed_seconds=elapsed)
        return Envelope.success(output)

    # Generation operations

    async def run_job_suitability_analysis(self, resume_text: str, job_description_text: str) -> Envelope:
        """Score the resume against the job description."""
        return await self._run(Operation.ANALYZE_SUITABILITY, {
            "resume_text": resume_text,
            "job_description_text": job_description_text,
        })

    async def run_resume_optimization(self, resume_text: str, job_description_text: str,
                                      additional_skills: Optional[List[str]] = None,
                                      profile: Optional[Union[UserProfile, Dict[str, Any]]] = None) -> Envelope:
        """
        Rewrite the resume for the job and re-score the result.

        The re-analysis is best effort: when it fails the optimized resume is
        still returned, without optimized_analysis.
        """
        payload: Dict[str, Any] = {
            "resume_text": resume_text,
            "job_description_text": job_description_text,
            "additional_skills": list(additional_skills) if additional_skills else None,
        }
        if profile is not None:
            payload["profile"] = profile.to_dict() if isinstance(profile, UserProfile) else dict(profile)

        envelope = await self._run(Operation.OPTIMIZE_RESUME, payload)
        if not envelope.ok:
            return envelope

        optimized_html = envelope.data.optimized_resume_html
        analysis = await self.run_job_suitability_analysis(html_to_text(optimized_html), job_description_text)
        if not analysis.ok:
            logger.warning(f"Re-analysis of optimized resume failed: {analysis.error}")

        return Envelope.success(OptimizationResult(
            optimized_resume_html=optimized_html,
            optimized_analysis=analysis.data if analysis.ok else None,
        ))

    async def run_cover_letter_generation(self, resume_text: str, job_description_text: str) -> Envelope:
        """Write a cover letter from the (optimized) resume."""
        envelope = await self._run(Operation.GENERATE_COVER_LETTER, {
            "resume_text": resume_text,
            "job_description_text": job_description_text,
        })
        return Envelope.success(envelope.data.cover_letter_html) if envelope.ok else envelope

    async def run_interview_questions_generation(self, resume_text: str, job_description_text: str) -> Envelope:
        """Prepare likely interview questions with STAR answers."""
        envelope = await self._run(Operation.GENERATE_INTERVIEW_QUESTIONS, {
            "resume_text": resume_text,
            "job_description_text": job_description_text,
        })
        return Envelope.success(envelope.data.interview_questions_html) if envelope.ok else envelope

    async def run_follow_up_email_generation(self, resume_text: str, cover_letter_text: str,
                                             job_description_text: str) -> Envelope:
        """Draft the follow-up email sent after applying."""
        envelope = await self._run(Operation.GENERATE_FOLLOW_UP_EMAIL, {
            "resume_text": resume_text,
            "cover_letter_text": cover_letter_text,
            "job_description_text": job_description_text,
        })
        return Envelope.success(envelope.data.follow_up_email_html) if envelope.ok else envelope

    async def run_job_details_extraction(self, job_description_text: str) -> Envelope:
        """Pull the job title and company name out of the description."""
        return await self._run(Operation.EXTRACT_JOB_DETAILS, {
            "job_description_text": job_description_text,
        })

    async def regenerate_document(self, application: JobApplication, field_name: str,
                                  profile: Optional[UserProfile] = None) -> Envelope:
        """Generate one document of a saved application again."""
        if field_name not in DOCUMENT_FIELDS:
            logger.warning(f"Regeneration requested for unknown document field {field_name!r}")
            return Envelope.failure("Unknown document.", {"field_name": [f"{field_name} is not a document"]})

        resume_text = application.resume_text
        if field_name != "optimized_resume_html" and application.has_document("optimized_resume_html"):
            resume_text = html_to_text(application.optimized_resume_html)

        if field_name == "optimized_resume_html":
            envelope = await self.run_resume_optimization(
                application.resume_text, application.job_description_text, profile=profile
            )
            return Envelope.success(envelope.data.optimized_resume_html) if envelope.ok else envelope
        if field_name == "cover_letter_html":
            return await self.run_cover_letter_generation(resume_text, application.job_description_text)
        if field_name == "interview_questions_html":
            return await self.run_interview_questions_generation(resume_text, application.job_description_text)
        if not application.has_document("cover_letter_html"):
            return Envelope.failure("Generate a cover letter before the follow-up email.")
        return await self.run_follow_up_email_generation(
            resume_text, html_to_text(application.cover_letter_html), application.job_description_text
        )

    # Document export

    def generate_docx(self, html: Optional[str]) -> Envelope:
        """Convert an HTML document to a base64-encoded DOCX payload."""
        try:
            payload = self.exporter.to_base64(html or "")
        except DocumentExportError as e:
            logger.error(f"Document export failed: {e}")
            return Envelope.failure(DOCUMENT_FAILURE_MESSAGE)
        return Envelope.success(payload)

    # Persistence

    async def save_application(self, user_id: str, resume_text: str, job_description_text: str,
                               documents: Optional[Dict[str, Optional[str]]] = None,
                               job_title: Optional[str] = None,
                               company_name: Optional[str] = None) -> Envelope:
        """
        Store the current session as a new application and return its id.

        Missing title or company are extracted from the description; when
        extraction finds nothing, placeholders are used.
        """
        if not job_title or not company_name:
            details = await self.run_job_details_extraction(job_description_text)
            if details.ok:
                job_title = job_title or details.data.job_title
                company_name = company_name or details.data.company_name
            else:
                logger.warning(f"Job detail extraction failed while saving: {details.error}")

        documents = documents or {}
        application = JobApplication(
            user_id=user_id,
            job_title=job_title or DEFAULT_JOB_TITLE,
            company_name=company_name or DEFAULT_COMPANY_NAME,
            resume_text=resume_text,
            job_description_text=job_description_text,
            **{name: documents.get(name) or None for name in DOCUMENT_FIELDS},
        )

        try:
            app_id = self.db_manager.create_application(user_id, application)
        except PersistenceError as e:
            logger.error(f"Failed to save application for {user_id}: {e}")
            return Envelope.failure(SAVE_FAILURE_MESSAGE)

        logger.info(f"Saved application {app_id}", job_title=application.job_title,
                    company_name=application.company_name)
        return Envelope.success(app_id)

    def update_application_fields(self, user_id: str, app_id: str, fields: Dict[str, Any]) -> Envelope:
        """
        Write changed fields in the background and return immediately.

        The envelope carries the worker thread. Failures are published on the
        persistence-error topic; the caller's local state is left as is.
        """
        worker = threading.Thread(
            target=self._write_application, args=(user_id, app_id, dict(fields)), daemon=True
        )
        worker.start()
        return Envelope.success(worker)

    def update_application_status(self, user_id: str, app_id: str,
                                  status: Union[ApplicationStatus, str]) -> Envelope:
        """Change an application's status in the background."""
        try:
            status = status if isinstance(status, ApplicationStatus) else ApplicationStatus(status)
        except ValueError:
            logger.warning(f"Rejected status {status!r} for application {app_id}")
            return Envelope.failure("Invalid status.", {
                "status": [f"Status must be one of: {', '.join(ApplicationStatus.values())}"]
            })
        return self.update_application_fields(user_id, app_id, {"status": status.value})

    def _write_application(self, user_id: str, app_id: str, fields: Dict[str, Any]) -> None:
        try:
            self.db_manager.update_application(user_id, app_id, fields)
        except PermissionDeniedError as e:
            logger.error(f"Permission denied updating application {app_id}: {e}")
            self.channel.publish(Notification(
                topic=PERSISTENCE_ERROR,
                title="Permission denied",
                message=f"Your changes to {self._describe(fields)} could not be saved.",
            ))
            return
        except PersistenceError as e:
            logger.error(f"Failed to update application {app_id}: {e}")
            self.channel.publish(Notification(
                topic=PERSISTENCE_ERROR,
                title="Save failed",
                message=f"Your changes to {self._describe(fields)} could not be saved. Please try again.",
            ))
            return
        except Exception as e:
            logger.exception(f"Unexpected error updating application {app_id}: {e}")
            self.channel.publish(Notification(
                topic=PERSISTENCE_ERROR,
                title="Save failed",
                message=f"Your changes to {self._describe(fields)} could not be saved.",
            ))
            return

        self.channel.publish(Notification(
            topic=PERSISTENCE_SAVED,
            title="Saved",
            message=f"Updated {self._describe(fields)}.",
            level="success",
        ))

    @staticmethod
    def _describe(fields: Dict[str, Any]) -> str:
        labels = [DOCUMENT_LABELS.get(name, name.replace("_", " ")) for name in fields]
        return ", ".join(labels)

    def get_application(self, user_id: str, app_id: str) -> Envelope:
        """Fetch one saved application."""
        try:
            application = self.db_manager.get_application(user_id, app_id)
        except PersistenceError as e:
            logger.error(f"Failed to load application {app_id}: {e}")
            return Envelope.failure(LOAD_FAILURE_MESSAGE)
        if application is None:
            return Envelope.failure("Application not found.")
        return Envelope.success(application)

    def list_applications(self, user_id: str) -> Envelope:
        """List the user's applications, newest first."""
        try:
            return Envelope.success(self.db_manager.list_applications(user_id))
        except PersistenceError as e:
            logger.error(f"Failed to list applications for {user_id}: {e}")
            return Envelope.failure(LOAD_FAILURE_MESSAGE)

    def load_profile(self, user_id: str) -> Envelope:
        """Return the user's profile, creating an empty one on first access."""
        try:
            return Envelope.success(self.db_manager.ensure_profile(user_id))
        except PersistenceError as e:
            logger.error(f"Failed to load profile for {user_id}: {e}")
            return Envelope.failure(LOAD_FAILURE_MESSAGE)

    def save_profile(self, user_id: str, partial_profile: Dict[str, Any]) -> Envelope:
        """Merge the given fields into the user's profile."""
        try:
            self.db_manager.write_profile(user_id, partial_profile)
            profile = self.db_manager.read_profile(user_id)
        except PersistenceError as e:
            logger.error(f"Failed to save profile for {user_id}: {e}")
            return Envelope.failure(PROFILE_FAILURE_MESSAGE)
        return Envelope.success(profile)
