"""
Document store for ResumePilot.

Profiles and job applications are kept as JSON documents in SQLite, keyed by
user identity. Applications form a per-user sub-collection addressed by an
opaque generated identifier.
"""

import sqlite3
import json
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, List, Optional, Any, Iterator
from pathlib import Path

from ..models import ApplicationStatus, JobApplication, UserProfile, DOCUMENT_FIELDS
from ..utils.logger import get_storage_logger

logger = get_storage_logger()

# Fields a user may change on an existing application.
UPDATABLE_FIELDS = frozenset(DOCUMENT_FIELDS) | {"status", "job_title", "company_name"}

class PersistenceError(Exception):
    """Base class for store failures."""

class PermissionDeniedError(PersistenceError):
    """The caller may not read or write the addressed document."""

class ConnectivityError(PersistenceError):
    """The store could not be reached or failed mid-operation."""

class DatabaseManager:
    """Manages the SQLite document store for profiles and applications."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database manager with path to SQLite database."""
        if db_path is None:
            from .settings import get_database_config
            db_path = get_database_config().path
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.init_database()

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory for dict-like access."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success and map sqlite failures."""
        try:
            conn = self.get_connection()
        except sqlite3.Error as e:
            raise ConnectivityError(f"Could not open store at {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise ConnectivityError(f"Store operation failed: {e}") from e
        finally:
            conn.close()

    def init_database(self) -> None:
        """Initialize database with all required tables."""
        with self._session() as conn:
            # Profiles - one document per user
            conn.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    user_id TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            # Applications - per-user sub-collection
            conn.execute("""
                CREATE TABLE IF NOT EXISTS applications (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    data TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.execute("CREATE INDEX IF NOT EXISTS idx_applications_user ON applications(user_id)")
        logger.info("Database initialized successfully")

    # Profile operations
    def read_profile(self, user_id: str) -> Optional[UserProfile]:
        """Return the stored profile, or None when the user has none yet."""
        with self._session() as conn:
            row = conn.execute(
                "SELECT data FROM profiles WHERE user_id = ?", (user_id,)
            ).fetchone()
        if row is None:
            return None
        data = json.loads(row["data"])
        data["user_id"] = user_id
        return UserProfile.from_dict(data)

    def write_profile(self, user_id: str, partial_profile: Dict[str, Any]) -> None:
        """Merge the given fields into the user's profile, creating it if needed."""
        fields = {k: v for k, v in partial_profile.items() if k != "user_id"}
        unknown = set(fields) - set(UserProfile.__dataclass_fields__)
        if unknown:
            raise PermissionDeniedError(f"Profile fields not writable: {', '.join(sorted(unknown))}")

        with self._session() as conn:
            row = conn.execute(
                "SELECT data FROM profiles WHERE user_id = ?", (user_id,)
            ).fetchone()
            if row is None:
                document = UserProfile(user_id=user_id).to_dict()
                document.update(fields)
                conn.execute(
                    "INSERT INTO profiles (user_id, data) VALUES (?, ?)",
                    (user_id, json.dumps(document)),
                )
            else:
                document = json.loads(row["data"])
                document.update(fields)
                conn.execute(
                    "UPDATE profiles SET data = ?, updated_at = ? WHERE user_id = ?",
                    (json.dumps(document), datetime.now().isoformat(), user_id),
                )

    def ensure_profile(self, user_id: str, defaults: Optional[Dict[str, Any]] = None) -> UserProfile:
        """Create the profile on first sign-in and return it."""
        profile = self.read_profile(user_id)
        if profile is None:
            self.write_profile(user_id, defaults or {})
            logger.info(f"Created profile for user {user_id}")
            profile = self.read_profile(user_id)
        return profile

    # Application operations
    def create_application(self, user_id: str, application: JobApplication) -> str:
        """Store a new application under the user and return its identifier."""
        if application.user_id != user_id:
            raise PermissionDeniedError("Cannot create an application for another user")

        app_id = uuid.uuid4().hex
        with self._session() as conn:
            conn.execute(
                "INSERT INTO applications (id, user_id, data) VALUES (?, ?, ?)",
                (app_id, user_id, json.dumps(application.to_document())),
            )
        application.id = app_id
        return app_id

    def get_application(self, user_id: str, app_id: str) -> Optional[JobApplication]:
        """Fetch one application owned by the user."""
        with self._session() as conn:
            row = conn.execute(
                "SELECT user_id, data FROM applications WHERE id = ?", (app_id,)
            ).fetchone()
        if row is None or row["user_id"] != user_id:
            return None
        return JobApplication.from_document(app_id, json.loads(row["data"]))

    def list_applications(self, user_id: str, status: Optional[str] = None) -> List[JobApplication]:
        """List the user's applications, most recent first."""
        with self._session() as conn:
            rows = conn.execute(
                "SELECT id, data FROM applications WHERE user_id = ?", (user_id,)
            ).fetchall()

        applications = [JobApplication.from_document(row["id"], json.loads(row["data"])) for row in rows]
        if status:
            applications = [app for app in applications if app.status.value == status]
        applications.sort(key=lambda app: app.application_date or "", reverse=True)
        return applications

    def update_application(self, user_id: str, app_id: str, partial_fields: Dict[str, Any]) -> None:
        """Apply a partial update to an application owned by the user."""
        if not partial_fields:
            return

        not_allowed = set(partial_fields) - UPDATABLE_FIELDS
        if not_allowed:
            raise PermissionDeniedError(f"Fields not writable: {', '.join(sorted(not_allowed))}")

        fields = dict(partial_fields)
        if "status" in fields:
            status = fields["status"]
            try:
                fields["status"] = status.value if isinstance(status, ApplicationStatus) else ApplicationStatus(status).value
            except ValueError:
                raise PermissionDeniedError(f"Status not writable: {status!r}") from None

        try:
            json.dumps(fields)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Fields cannot be stored: {e}") from e

        with self._session() as conn:
            row = conn.execute(
                "SELECT user_id, data FROM applications WHERE id = ?", (app_id,)
            ).fetchone()
            if row is None or row["user_id"] != user_id:
                raise PermissionDeniedError(f"No writable application {app_id} for user {user_id}")

            document = json.loads(row["data"])
            document.update(fields)
            conn.execute(
                "UPDATE applications SET data = ?, updated_at = ? WHERE id = ?",
                (json.dumps(document), datetime.now().isoformat(), app_id),
            )

    # Analytics and reporting
    def get_stats(self, user_id: str) -> Dict[str, Any]:
        """Get application statistics for the user."""
        applications = self.list_applications(user_id)
        by_status = {status: 0 for status in ApplicationStatus.values()}
        for app in applications:
            by_status[app.status.value] += 1

        documents = {name: sum(1 for app in applications if app.has_document(name)) for name in DOCUMENT_FIELDS}
        return {
            "total_applications": len(applications),
            "applications_by_status": by_status,
            "documents_generated": documents,
        }

_db_manager: Optional[DatabaseManager] = None

def get_db_manager() -> DatabaseManager:
    """Get the global database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager
