import tempfile
import unittest
from pathlib import Path

from resume_pilot.config.database import (
    ConnectivityError, DatabaseManager, PermissionDeniedError, PersistenceError
)
from resume_pilot.models import ApplicationStatus, JobApplication

def make_application(user_id="user-1", **overrides):
    data = {
        "user_id": user_id,
        "job_title": "Backend Engineer",
        "company_name": "Initech",
        "resume_text": "Python developer",
        "job_description_text": "We need a Python developer",
    }
    data.update(overrides)
    return JobApplication(**data)

class TestDatabaseManager(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(str(Path(self.tmp.name) / "store.db"))

    def tearDown(self):
        self.tmp.cleanup()

    # Profiles

    def test_unknown_profile_is_none(self):
        self.assertIsNone(self.db.read_profile("nobody"))

    def test_write_profile_merges_partial_updates(self):
        self.db.write_profile("user-1", {"first_name": "Jane", "email": "jane@example.com"})
        self.db.write_profile("user-1", {"linkedin_url": "https://linkedin.com/in/jane"})

        profile = self.db.read_profile("user-1")

        self.assertEqual(profile.first_name, "Jane")
        self.assertEqual(profile.email, "jane@example.com")
        self.assertEqual(profile.linkedin_url, "https://linkedin.com/in/jane")
        self.assertIsNone(profile.github_url)

    def test_profile_rejects_unknown_fields(self):
        with self.assertRaises(PermissionDeniedError):
            self.db.write_profile("user-1", {"credits": 10})

    def test_ensure_profile_creates_once(self):
        created = self.db.ensure_profile("user-1", {"first_name": "Jane"})
        again = self.db.ensure_profile("user-1", {"first_name": "Other"})

        self.assertEqual(created.first_name, "Jane")
        self.assertEqual(again.first_name, "Jane")

    # Applications

    def test_create_and_get_application(self):
        app_id = self.db.create_application("user-1", make_application(cover_letter_html="<p>Hi</p>"))

        application = self.db.get_application("user-1", app_id)

        self.assertEqual(application.id, app_id)
        self.assertEqual(application.status, ApplicationStatus.APPLIED)
        self.assertEqual(application.cover_letter_html, "<p>Hi</p>")
        self.assertIsNone(application.optimized_resume_html)

    def test_empty_and_absent_documents_are_not_generated(self):
        app_id = self.db.create_application("user-1", make_application(cover_letter_html=""))

        application = self.db.get_application("user-1", app_id)

        self.assertEqual(application.cover_letter_html, "")
        self.assertFalse(application.has_document("cover_letter_html"))
        self.assertFalse(application.has_document("follow_up_email_html"))

    def test_cannot_create_for_another_user(self):
        with self.assertRaises(PermissionDeniedError):
            self.db.create_application("user-1", make_application(user_id="user-2"))

    def test_applications_are_private(self):
        app_id = self.db.create_application("user-1", make_application())

        self.assertIsNone(self.db.get_application("user-2", app_id))
        self.assertEqual(self.db.list_applications("user-2"), [])

    def test_list_is_newest_first_and_filterable(self):
        self.db.create_application("user-1", make_application(job_title="Old", application_date="2024-01-01T09:00:00"))
        self.db.create_application("user-1", make_application(
            job_title="New", application_date="2024-03-01T09:00:00", status=ApplicationStatus.INTERVIEWING
        ))

        titles = [app.job_title for app in self.db.list_applications("user-1")]
        interviewing = self.db.list_applications("user-1", status="Interviewing")

        self.assertEqual(titles, ["New", "Old"])
        self.assertEqual([app.job_title for app in interviewing], ["New"])

    def test_update_application_fields(self):
        app_id = self.db.create_application("user-1", make_application())

        self.db.update_application("user-1", app_id, {
            "status": ApplicationStatus.ACCEPTED,
            "follow_up_email_html": "<p>Following up</p>",
        })

        application = self.db.get_application("user-1", app_id)
        self.assertEqual(application.status, ApplicationStatus.ACCEPTED)
        self.assertEqual(application.follow_up_email_html, "<p>Following up</p>")
        self.assertEqual(application.job_title, "Backend Engineer")

    def test_update_denied_for_other_user(self):
        app_id = self.db.create_application("user-1", make_application())

        with self.assertRaises(PermissionDeniedError):
            self.db.update_application("user-2", app_id, {"status": "Rejected"})

    def test_update_denied_for_unknown_record(self):
        with self.assertRaises(PermissionDeniedError):
            self.db.update_application("user-1", "does-not-exist", {"status": "Rejected"})

    def test_update_denied_for_protected_fields(self):
        app_id = self.db.create_application("user-1", make_application())

        with self.assertRaises(PermissionDeniedError):
            self.db.update_application("user-1", app_id, {"user_id": "user-2"})

    def test_update_rejects_unknown_status(self):
        app_id = self.db.create_application("user-1", make_application())

        with self.assertRaises(PermissionDeniedError):
            self.db.update_application("user-1", app_id, {"status": "Ghosted"})

    def test_update_rejects_unstorable_values(self):
        app_id = self.db.create_application("user-1", make_application())

        with self.assertRaises(PersistenceError):
            self.db.update_application("user-1", app_id, {"cover_letter_html": object()})

        self.assertIsNone(self.db.get_application("user-1", app_id).cover_letter_html)

    def test_stats(self):
        self.db.create_application("user-1", make_application(optimized_resume_html="<h1>x</h1>"))
        self.db.create_application("user-1", make_application(status=ApplicationStatus.REJECTED))

        stats = self.db.get_stats("user-1")

        self.assertEqual(stats["total_applications"], 2)
        self.assertEqual(stats["applications_by_status"]["Rejected"], 1)
        self.assertEqual(stats["documents_generated"]["optimized_resume_html"], 1)

class TestConnectivity(unittest.TestCase):

    def test_unopenable_store_raises_connectivity_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            # A directory cannot be opened as a database file
            with self.assertRaises(ConnectivityError):
                DatabaseManager(tmp)

if __name__ == '__main__':
    unittest.main()
