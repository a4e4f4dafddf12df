import base64
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from resume_pilot.ai_processing import (
    GenerationError, InputValidationError, JobDetailsOutput, Operation, OptimizeResumeOutput,
    SuitabilityOutput
)
from resume_pilot.config.database import DatabaseManager
from resume_pilot.models import ApplicationStatus, DOCUMENT_FIELDS
from resume_pilot.utils import (
    NotificationChannel, NotificationInbox, PERSISTENCE_ERROR, PERSISTENCE_SAVED
)
from resume_pilot.workflow_orchestrator import (
    DEFAULT_COMPANY_NAME, Envelope, OptimizationResult, ResumePilotOrchestrator
)

RESUME = "Python developer, 3 years, Flask"
JOB = "Looking for a Senior Python Engineer with Flask and AWS experience"

ANALYSIS = SuitabilityOutput(
    compatibility_score=70,
    is_right_for_me=True,
    matched_keywords=["Python", "Flask"],
    missing_keywords=["AWS"],
)

class OrchestratorTestCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(str(Path(self.tmp.name) / "test.db"))
        self.invoker = MagicMock()
        self.invoker.invoke = AsyncMock()
        self.channel = NotificationChannel()
        self.inbox = NotificationInbox()
        self.channel.subscribe(PERSISTENCE_ERROR, self.inbox)
        self.channel.subscribe(PERSISTENCE_SAVED, self.inbox)
        self.orchestrator = ResumePilotOrchestrator(
            db_manager=self.db, invoker=self.invoker, channel=self.channel
        )

    def tearDown(self):
        self.tmp.cleanup()

class TestEnvelope(unittest.TestCase):

    def test_success_and_failure(self):
        self.assertTrue(Envelope.success({"a": 1}).ok)
        failure = Envelope.failure("nope", {"field": ["bad"]})
        self.assertFalse(failure.ok)
        self.assertIsNone(failure.data)
        self.assertEqual(failure.field_errors, {"field": ["bad"]})

class TestGenerationEnvelopes(OrchestratorTestCase):

    async def test_analysis_success(self):
        self.invoker.invoke.return_value = ANALYSIS

        envelope = await self.orchestrator.run_job_suitability_analysis(RESUME, JOB)

        self.assertTrue(envelope.ok)
        self.assertEqual(envelope.data.compatibility_score, 70)
        operation, payload = self.invoker.invoke.await_args.args
        self.assertEqual(operation, Operation.ANALYZE_SUITABILITY)
        self.assertEqual(payload, {"resume_text": RESUME, "job_description_text": JOB})

    async def test_generation_failure_becomes_operation_message(self):
        self.invoker.invoke.side_effect = GenerationError(Operation.ANALYZE_SUITABILITY, "boom")

        envelope = await self.orchestrator.run_job_suitability_analysis(RESUME, JOB)

        self.assertFalse(envelope.ok)
        self.assertEqual(envelope.error, "Failed to analyze job suitability.")

    async def test_unexpected_error_never_raises(self):
        self.invoker.invoke.side_effect = RuntimeError("unexpected")

        envelope = await self.orchestrator.run_follow_up_email_generation(RESUME, "<p>Letter</p>", JOB)

        self.assertEqual(envelope.error, "Failed to generate follow-up email.")

    async def test_input_validation_returns_field_messages(self):
        self.invoker.invoke.side_effect = InputValidationError(
            "Invalid input", {"resume_text": ["String should have at least 1 character"]}
        )

        envelope = await self.orchestrator.run_cover_letter_generation("", JOB)

        self.assertFalse(envelope.ok)
        self.assertIn("resume_text", envelope.field_errors)
        self.assertIn("resume_text", envelope.error)

    async def test_optimization_attaches_second_analysis(self):
        self.invoker.invoke.side_effect = [
            OptimizeResumeOutput(optimized_resume_html="<h1>Jane</h1><ul><li>Built AWS pipelines</li></ul>"),
            ANALYSIS.model_copy(update={"compatibility_score": 91}),
        ]

        envelope = await self.orchestrator.run_resume_optimization(RESUME, JOB, additional_skills=["AWS"])

        self.assertTrue(envelope.ok)
        self.assertIsInstance(envelope.data, OptimizationResult)
        self.assertEqual(envelope.data.optimized_analysis.compatibility_score, 91)

        first_payload = self.invoker.invoke.await_args_list[0].args[1]
        self.assertEqual(first_payload["additional_skills"], ["AWS"])
        second_operation, second_payload = self.invoker.invoke.await_args_list[1].args
        self.assertEqual(second_operation, Operation.ANALYZE_SUITABILITY)
        self.assertEqual(second_payload["resume_text"], "Jane\nBuilt AWS pipelines")

    async def test_failed_reanalysis_keeps_optimized_resume(self):
        self.invoker.invoke.side_effect = [
            OptimizeResumeOutput(optimized_resume_html="<h1>Jane</h1>"),
            GenerationError(Operation.ANALYZE_SUITABILITY, "rate limited"),
        ]

        envelope = await self.orchestrator.run_resume_optimization(RESUME, JOB)

        self.assertTrue(envelope.ok)
        self.assertEqual(envelope.data.optimized_resume_html, "<h1>Jane</h1>")
        self.assertIsNone(envelope.data.optimized_analysis)

    async def test_failed_optimization(self):
        self.invoker.invoke.side_effect = GenerationError(Operation.OPTIMIZE_RESUME, "bad json")

        envelope = await self.orchestrator.run_resume_optimization(RESUME, JOB)

        self.assertEqual(envelope.error, "Failed to optimize resume.")
        self.assertEqual(self.invoker.invoke.await_count, 1)

    async def test_profile_is_forwarded_to_optimization(self):
        self.invoker.invoke.side_effect = [
            OptimizeResumeOutput(optimized_resume_html="<h1>Jane</h1>"),
            ANALYSIS,
        ]
        profile = self.db.ensure_profile("user-1", {"first_name": "Jane"})

        await self.orchestrator.run_resume_optimization(RESUME, JOB, profile=profile)

        payload = self.invoker.invoke.await_args_list[0].args[1]
        self.assertEqual(payload["profile"]["first_name"], "Jane")

class TestDocumentExport(OrchestratorTestCase):

    def test_generate_docx_returns_base64(self):
        envelope = self.orchestrator.generate_docx("<h1>Jane Doe</h1><p>Engineer</p>")

        self.assertTrue(envelope.ok)
        self.assertTrue(base64.b64decode(envelope.data).startswith(b"PK"))

    def test_empty_document_is_an_error(self):
        envelope = self.orchestrator.generate_docx("")

        self.assertFalse(envelope.ok)
        self.assertEqual(envelope.error, "Failed to generate document.")

class TestPersistence(OrchestratorTestCase):

    async def test_save_before_any_generation_stores_absent_documents(self):
        self.invoker.invoke.return_value = JobDetailsOutput(job_title="Senior Python Engineer", company_name=None)

        envelope = await self.orchestrator.save_application("user-1", RESUME, JOB, documents={
            "optimized_resume_html": None, "cover_letter_html": "",
        })

        self.assertTrue(envelope.ok)
        application = self.db.get_application("user-1", envelope.data)
        self.assertEqual(application.job_title, "Senior Python Engineer")
        self.assertEqual(application.company_name, DEFAULT_COMPANY_NAME)
        self.assertEqual(application.status, ApplicationStatus.APPLIED)
        for name in DOCUMENT_FIELDS:
            self.assertFalse(application.has_document(name))

    async def test_save_uses_given_details_without_extraction(self):
        envelope = await self.orchestrator.save_application(
            "user-1", RESUME, JOB, documents={"cover_letter_html": "<p>Hi</p>"},
            job_title="Engineer", company_name="Initech",
        )

        self.invoker.invoke.assert_not_awaited()
        application = self.db.get_application("user-1", envelope.data)
        self.assertEqual(application.cover_letter_html, "<p>Hi</p>")

    async def test_save_survives_failed_extraction(self):
        self.invoker.invoke.side_effect = GenerationError(Operation.EXTRACT_JOB_DETAILS, "down")

        envelope = await self.orchestrator.save_application("user-1", RESUME, JOB)

        application = self.db.get_application("user-1", envelope.data)
        self.assertEqual(application.job_title, "Untitled Position")

    async def test_update_by_other_user_publishes_permission_error(self):
        app_id = (await self.orchestrator.save_application(
            "owner", RESUME, JOB, job_title="Engineer", company_name="Initech"
        )).data

        worker = self.orchestrator.update_application_fields("intruder", app_id, {"cover_letter_html": "<p>x</p>"}).data
        worker.join(timeout=5)

        notifications = self.inbox.drain()
        self.assertEqual(len(notifications), 1)
        self.assertEqual(notifications[0].topic, PERSISTENCE_ERROR)
        self.assertEqual(notifications[0].title, "Permission denied")
        self.assertIn("Cover Letter", notifications[0].message)
        self.assertFalse(self.db.get_application("owner", app_id).has_document("cover_letter_html"))

    async def test_status_update_runs_in_background(self):
        app_id = (await self.orchestrator.save_application(
            "user-1", RESUME, JOB, job_title="Engineer", company_name="Initech"
        )).data

        envelope = self.orchestrator.update_application_status("user-1", app_id, "Interviewing")
        self.assertTrue(envelope.ok)
        worker = envelope.data
        worker.join(timeout=5)

        self.assertEqual(self.db.get_application("user-1", app_id).status, ApplicationStatus.INTERVIEWING)
        self.assertEqual([n.topic for n in self.inbox.drain()], [PERSISTENCE_SAVED])

    def test_invalid_status_is_rejected(self):
        envelope = self.orchestrator.update_application_status("user-1", "abc", "Ghosted")

        self.assertFalse(envelope.ok)
        self.assertIn("status", envelope.field_errors)
        self.assertEqual(self.inbox.drain(), [])

    async def test_unexpected_background_failure_is_published(self):
        app_id = (await self.orchestrator.save_application(
            "user-1", RESUME, JOB, job_title="Engineer", company_name="Initech"
        )).data
        broken = MagicMock(wraps=self.db)
        broken.update_application.side_effect = RuntimeError("disk on fire")
        self.orchestrator._db_manager = broken

        self.orchestrator.update_application_fields("user-1", app_id, {"cover_letter_html": "<p>x</p>"}).data.join(timeout=5)

        notifications = self.inbox.drain()
        self.assertEqual([n.topic for n in notifications], [PERSISTENCE_ERROR])
        self.assertEqual(notifications[0].title, "Save failed")

    async def test_invalid_status_in_background_write_is_published(self):
        app_id = (await self.orchestrator.save_application(
            "user-1", RESUME, JOB, job_title="Engineer", company_name="Initech"
        )).data

        self.orchestrator.update_application_fields("user-1", app_id, {"status": "Ghosted"}).data.join(timeout=5)

        notifications = self.inbox.drain()
        self.assertEqual(len(notifications), 1)
        self.assertEqual(notifications[0].topic, PERSISTENCE_ERROR)
        self.assertEqual(self.db.get_application("user-1", app_id).status, ApplicationStatus.APPLIED)

    async def test_notifications_stay_with_their_session(self):
        app_id = (await self.orchestrator.save_application(
            "owner", RESUME, JOB, job_title="Engineer", company_name="Initech"
        )).data
        other_channel = NotificationChannel()
        other_inbox = NotificationInbox()
        other_channel.subscribe(PERSISTENCE_ERROR, other_inbox)
        other_session = ResumePilotOrchestrator(db_manager=self.db, invoker=self.invoker, channel=other_channel)

        self.orchestrator.update_application_fields("intruder", app_id, {"status": "Rejected"}).data.join(timeout=5)

        self.assertEqual(len(self.inbox.drain()), 1)
        self.assertEqual(other_inbox.drain(), [])
        self.assertIsNot(other_session.channel, self.orchestrator.channel)

    async def test_list_applications_newest_first(self):
        first = await self.orchestrator.save_application("user-1", RESUME, JOB, job_title="A", company_name="X")
        second = await self.orchestrator.save_application("user-1", RESUME, JOB, job_title="B", company_name="Y")

        envelope = self.orchestrator.list_applications("user-1")

        self.assertEqual([app.id for app in envelope.data], [second.data, first.data])

    def test_profile_is_created_on_first_load(self):
        envelope = self.orchestrator.load_profile("new-user")

        self.assertTrue(envelope.ok)
        self.assertEqual(envelope.data.user_id, "new-user")
        self.assertIsNotNone(self.db.read_profile("new-user"))

    def test_save_profile_merges(self):
        self.orchestrator.save_profile("user-1", {"first_name": "Jane"})
        envelope = self.orchestrator.save_profile("user-1", {"city": "Austin"})

        self.assertEqual(envelope.data.first_name, "Jane")
        self.assertEqual(envelope.data.city, "Austin")

    def test_save_profile_with_unknown_field_fails(self):
        envelope = self.orchestrator.save_profile("user-1", {"credits": 100})

        self.assertEqual(envelope.error, "Failed to save profile.")

class TestRegeneration(OrchestratorTestCase):

    async def test_follow_up_requires_cover_letter(self):
        app_id = (await self.orchestrator.save_application(
            "user-1", RESUME, JOB, job_title="Engineer", company_name="Initech"
        )).data
        application = self.db.get_application("user-1", app_id)

        envelope = await self.orchestrator.regenerate_document(application, "follow_up_email_html")

        self.assertFalse(envelope.ok)
        self.invoker.invoke.assert_not_awaited()

    async def test_cover_letter_uses_optimized_resume_text(self):
        app_id = (await self.orchestrator.save_application(
            "user-1", RESUME, JOB, documents={"optimized_resume_html": "<h1>Jane</h1><p>AWS expert</p>"},
            job_title="Engineer", company_name="Initech",
        )).data
        application = self.db.get_application("user-1", app_id)
        self.invoker.invoke.return_value = MagicMock(cover_letter_html="<p>Dear Hiring Manager,</p>")

        envelope = await self.orchestrator.regenerate_document(application, "cover_letter_html")

        self.assertEqual(envelope.data, "<p>Dear Hiring Manager,</p>")
        payload = self.invoker.invoke.await_args.args[1]
        self.assertEqual(payload["resume_text"], "Jane\nAWS expert")

    async def test_unknown_document_field_is_an_error(self):
        app_id = (await self.orchestrator.save_application(
            "user-1", RESUME, JOB, job_title="Engineer", company_name="Initech"
        )).data
        application = self.db.get_application("user-1", app_id)

        envelope = await self.orchestrator.regenerate_document(application, "status")

        self.assertFalse(envelope.ok)
        self.assertIn("field_name", envelope.field_errors)
        self.invoker.invoke.assert_not_awaited()

    async def test_resume_regeneration_uses_original_resume(self):
        app_id = (await self.orchestrator.save_application(
            "user-1", RESUME, JOB, documents={"optimized_resume_html": "<h1>Old</h1>"},
            job_title="Engineer", company_name="Initech",
        )).data
        application = self.db.get_application("user-1", app_id)
        self.invoker.invoke.side_effect = [
            OptimizeResumeOutput(optimized_resume_html="<h1>New</h1>"),
            ANALYSIS,
        ]

        envelope = await self.orchestrator.regenerate_document(application, "optimized_resume_html")

        self.assertEqual(envelope.data, "<h1>New</h1>")
        operation, payload = self.invoker.invoke.await_args_list[0].args
        self.assertEqual(operation, Operation.OPTIMIZE_RESUME)
        self.assertEqual(payload["resume_text"], RESUME)

    async def test_interview_prep_regeneration(self):
        app_id = (await self.orchestrator.save_application(
            "user-1", RESUME, JOB, job_title="Engineer", company_name="Initech"
        )).data
        application = self.db.get_application("user-1", app_id)
        self.invoker.invoke.return_value = MagicMock(interview_questions_html="<h2>Behavioral</h2>")

        envelope = await self.orchestrator.regenerate_document(application, "interview_questions_html")

        self.assertEqual(envelope.data, "<h2>Behavioral</h2>")
        operation, payload = self.invoker.invoke.await_args.args
        self.assertEqual(operation, Operation.GENERATE_INTERVIEW_QUESTIONS)
        self.assertEqual(payload["resume_text"], RESUME)

if __name__ == '__main__':
    unittest.main()
