"""
Data models for ResumePilot.

Profiles and applications are stored as JSON documents; these dataclasses
are the in-memory shape of those documents.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

class ApplicationStatus(Enum):
    """Lifecycle status of a saved job application."""
    APPLIED = "Applied"
    INTERVIEWING = "Interviewing"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"

    @classmethod
    def values(cls) -> List[str]:
        return [status.value for status in cls]

# The four generated documents an application can carry, in pipeline order.
DOCUMENT_FIELDS = (
    "optimized_resume_html",
    "cover_letter_html",
    "interview_questions_html",
    "follow_up_email_html",
)

DOCUMENT_LABELS = {
    "optimized_resume_html": "Optimized Resume",
    "cover_letter_html": "Cover Letter",
    "interview_questions_html": "Interview Prep",
    "follow_up_email_html": "Follow-up Email",
}

@dataclass
class UserProfile:
    """Contact details of a signed-in user."""
    user_id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    visa_status: Optional[str] = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        known = {key: value for key, value in data.items() if key in cls.__dataclass_fields__}
        return cls(**known)

@dataclass
class JobApplication:
    """One tailored application attempt saved by the user."""
    user_id: str
    job_title: str
    company_name: str
    resume_text: str
    job_description_text: str
    status: ApplicationStatus = ApplicationStatus.APPLIED
    application_date: str = field(default_factory=lambda: datetime.now().isoformat())
    id: Optional[str] = None
    optimized_resume_html: Optional[str] = None
    cover_letter_html: Optional[str] = None
    interview_questions_html: Optional[str] = None
    follow_up_email_html: Optional[str] = None

    def has_document(self, field_name: str) -> bool:
        """True when the document was generated; None and "" both mean not yet generated."""
        return bool(getattr(self, field_name))

    def to_document(self) -> Dict[str, Any]:
        """Serialize for storage, leaving out absent documents."""
        data = asdict(self)
        data["status"] = self.status.value
        data.pop("id", None)
        for name in DOCUMENT_FIELDS:
            if data[name] is None:
                del data[name]
        return data

    @classmethod
    def from_document(cls, app_id: str, data: Dict[str, Any]) -> "JobApplication":
        known = {key: value for key, value in data.items() if key in cls.__dataclass_fields__}
        known["status"] = ApplicationStatus(known.get("status", ApplicationStatus.APPLIED.value))
        known["id"] = app_id
        return cls(**known)
