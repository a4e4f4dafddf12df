import unittest
from dataclasses import replace

from resume_pilot.models import ApplicationStatus, JobApplication
from resume_pilot.ui.components.dashboard import applications_frame, with_local_edits

def make_application(app_id, **overrides):
    data = {
        "id": app_id,
        "user_id": "user-1",
        "job_title": "Backend Engineer",
        "company_name": "Initech",
        "resume_text": "Python developer",
        "job_description_text": "We need a Python developer",
        "application_date": "2024-03-01T09:00:00",
    }
    data.update(overrides)
    return JobApplication(**data)

class TestLocalEdits(unittest.TestCase):

    def test_changed_status_is_shown_before_write_completes(self):
        stored = [make_application("a"), make_application("b")]
        cache = {"b": replace(stored[1], status=ApplicationStatus.INTERVIEWING)}

        shown = with_local_edits(stored, cache)

        self.assertEqual([app.status for app in shown], [ApplicationStatus.APPLIED, ApplicationStatus.INTERVIEWING])
        self.assertIs(shown[0], stored[0])

    def test_cached_status_feeds_the_summary(self):
        stored = [make_application("a")]
        cache = {"a": replace(stored[0], status=ApplicationStatus.REJECTED)}

        frame = applications_frame(with_local_edits(stored, cache))

        self.assertEqual(list(frame["Status"]), ["Rejected"])

    def test_edits_for_other_applications_are_ignored(self):
        stored = [make_application("a")]
        cache = {"gone": make_application("gone", status=ApplicationStatus.ACCEPTED)}

        self.assertEqual(with_local_edits(stored, cache), stored)

class TestApplicationsFrame(unittest.TestCase):

    def test_counts_generated_documents(self):
        frame = applications_frame([make_application("a", cover_letter_html="<p>Hi</p>", follow_up_email_html="")])

        self.assertEqual(frame.loc[0, "Documents"], 1)
        self.assertEqual(frame.loc[0, "Applied"], "Mar 01, 2024")

    def test_empty_list_keeps_columns(self):
        frame = applications_frame([])

        self.assertEqual(list(frame.columns), ["Job Title", "Company", "Applied", "Status", "Documents"])

if __name__ == '__main__':
    unittest.main()
