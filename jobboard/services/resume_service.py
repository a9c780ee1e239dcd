# resume_service.py
from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path

import requests
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from jobboard.cache.keys import APPLICANTS_LIST
from jobboard.errors import ConflictError, NotFoundError, ResumeParserError, ValidationError
from jobboard.models.user import Profile, User
from jobboard.schemas.profile import ParsedResume, ProfileRead
from jobboard.services.base import BaseService


logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


class ResumeParserClient:
    """Client for the third-party resume parsing API.

    The document is posted as raw bytes; the API answers with JSON holding name,
    email, phone and lists of skills, education and experience.
    """

    def __init__(self, url: str, api_key: str, *, timeout_sec: float = 30.0, session: requests.Session | None = None):
        self.url = url
        self.api_key = api_key
        self.timeout_sec = timeout_sec
        self._http = session or requests.Session()

    def parse(self, content: bytes) -> ParsedResume:
        if not self.api_key:
            raise ResumeParserError("Resume parser is not configured")
        headers = {"Content-Type": "application/octet-stream", "apikey": self.api_key}
        try:
            response = self._http.post(self.url, data=content, headers=headers, timeout=self.timeout_sec)
        except requests.RequestException as exc:
            logger.error("resume.parse request failed: %s", exc)
            raise ResumeParserError("Failed to reach resume parser") from exc

        if response.status_code != 200:
            logger.error("resume.parse non-200 status_code=%s", response.status_code)
            raise ResumeParserError(f"Failed to parse resume, status code: {response.status_code}")

        try:
            return ParsedResume.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            logger.error("resume.parse undecodable body: %s", exc)
            raise ResumeParserError("Resume parser returned an unreadable response") from exc


def _safe_filename(filename: str) -> str:
    name = Path(filename or "resume").name
    cleaned = _UNSAFE_FILENAME_RE.sub("_", name).strip("._")
    return cleaned or "resume"


class ResumeService(BaseService):
    def __init__(
        self,
        *args,
        parser: ResumeParserClient,
        resume_dir: Path,
        max_bytes: int,
        allowed_extensions: list[str],
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._parser = parser
        self._resume_dir = Path(resume_dir)
        self._max_bytes = max_bytes
        self._allowed_extensions = {ext.lower() for ext in allowed_extensions}

    def process_resume(self, user_id: int, filename: str, content: bytes) -> ProfileRead:
        self._validate_upload(filename, content)

        with self._transaction("check resume owner") as session:
            if session.get(User, user_id) is None:
                raise NotFoundError("User not found")

        # Nothing touches the disk until the parser has accepted the document.
        parsed = self._parser.parse(content)
        values = {
            "name": parsed.name,
            "email": parsed.email,
            "phone": parsed.phone,
            "skills": ", ".join(parsed.skills),
            "education": "; ".join(parsed.education),
            "experience": "; ".join(parsed.experience),
        }

        stored_path = self._store_file(user_id, filename, content)
        values["resume_file_address"] = str(stored_path)
        try:
            result, previous_path = self._save_profile(user_id, values)
        except Exception:
            stored_path.unlink(missing_ok=True)
            raise

        if previous_path and previous_path != str(stored_path):
            self._remove_file(Path(previous_path))

        self._logger.info("resume.processed user_id=%s profile_id=%s", user_id, result.id)
        # Applicant pages embed the profile.
        self._invalidate(APPLICANTS_LIST)
        return result

    def get_resume_data(self, user_id: int) -> ProfileRead:
        with self._transaction("get resume data") as session:
            profile = session.scalar(select(Profile).where(Profile.applicant_id == user_id))
            if profile is None:
                raise NotFoundError("Resume data not found")
            return ProfileRead.model_validate(profile)

    def _save_profile(self, user_id: int, values: dict[str, str]) -> tuple[ProfileRead, str | None]:
        """Upsert the user's profile; returns it with the file address it replaced."""
        with self._transaction("save profile") as session:
            profile = session.scalar(select(Profile).where(Profile.applicant_id == user_id))
            previous_path = None
            if profile is None:
                profile = Profile(applicant_id=user_id, **values)
                session.add(profile)
            else:
                previous_path = profile.resume_file_address
                for field, value in values.items():
                    setattr(profile, field, value)
            try:
                session.flush()
            except IntegrityError as exc:
                raise ConflictError("Another resume upload for this user is in progress") from exc
            session.refresh(profile)
            return ProfileRead.model_validate(profile), previous_path

    def _validate_upload(self, filename: str, content: bytes) -> None:
        if not content:
            raise ValidationError("Resume file is empty")
        if len(content) > self._max_bytes:
            raise ValidationError(f"Resume file exceeds {self._max_bytes} bytes")
        suffix = Path(filename or "").suffix.lower()
        if self._allowed_extensions and suffix not in self._allowed_extensions:
            raise ValidationError(f"Unsupported resume file type: {suffix or 'none'}")

    def _store_file(self, user_id: int, filename: str, content: bytes) -> Path:
        target_dir = self._resume_dir / str(user_id)
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / f"{uuid.uuid4().hex}-{_safe_filename(filename)}"
        path.write_bytes(content)
        return path

    def _remove_file(self, path: Path) -> None:
        # Only files under the resume directory are ours to delete.
        if self._resume_dir.resolve() not in path.resolve().parents:
            self._logger.warning("resume.cleanup skipped path outside resume dir path=%s", path)
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            self._logger.warning("resume.cleanup failed path=%s: %s", path, exc)
