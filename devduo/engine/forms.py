"""
Form Controller
Create/edit drafts for one entity kind, with at most one staged image.

Submission runs through an explicit state machine:

    IDLE -> VALIDATING -> [UPLOADING] -> PERSISTING -> DONE
                 \\             \\              \\
                  +-------------+--------------+-> FAILED

A second submit while one is in flight is refused, not queued.
"""

import dataclasses
import logging
import mimetypes
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

from devduo.bus.events import bus, EVENT_IMAGE_UPLOADED, EVENT_SUBMIT_FAILED
from devduo.config import config
from devduo.engine.manager import EntityManager
from devduo.errors import DataStoreError, SubmissionInFlight, ValidationError

logger = logging.getLogger(__name__)


class SubmitState(Enum):
    IDLE = 'idle'
    VALIDATING = 'validating'
    UPLOADING = 'uploading'
    PERSISTING = 'persisting'
    DONE = 'done'
    FAILED = 'failed'


_IN_FLIGHT = {SubmitState.VALIDATING, SubmitState.UPLOADING, SubmitState.PERSISTING}


@dataclass
class StagedFile:
    """An image picked for upload, held in memory until submit."""
    filename: str
    data: bytes
    content_type: Optional[str] = None

    @classmethod
    def from_path(cls, path) -> 'StagedFile':
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(filename=path.name, data=path.read_bytes(), content_type=content_type)

    @property
    def extension(self) -> str:
        """Original extension without the dot, or '' if the name has none."""
        return self.filename.rsplit('.', 1)[-1] if '.' in self.filename else ''


def object_path(folder: str, staged: StagedFile) -> str:
    """Randomized storage path under folder, keeping the original extension."""
    name = uuid.uuid4().hex
    if staged.extension:
        name = f"{name}.{staged.extension}"
    return f"{folder}/{name}"


class FormController:
    """Draft state and submission for one entity kind."""

    def __init__(self, manager: EntityManager):
        self.manager = manager
        self.schema = manager.schema
        self.draft = self.schema.defaults()
        self.editing = None
        self.staged_file: Optional[StagedFile] = None
        self.state = SubmitState.IDLE
        self.error: Optional[Exception] = None

    @property
    def in_flight(self) -> bool:
        return self.state in _IN_FLIGHT

    @property
    def can_submit(self) -> bool:
        return not self.in_flight and not self.validate()

    # -------------------------------------------------------------------------
    # Draft editing
    # -------------------------------------------------------------------------

    def set_field(self, name: str, value: Any) -> None:
        if name not in self.schema.fields:
            raise ValueError(f"Unknown {self.schema.label} field: {name}")
        self.draft[name] = value

    def toggle_technology(self, technology: str) -> List[str]:
        """Add the technology if absent, remove it if present. Order is preserved."""
        if 'technologies' not in self.schema.fields:
            raise ValueError(f"{self.schema.label.capitalize()}s have no technologies")
        current = list(self.draft.get('technologies') or [])
        if technology in current:
            current.remove(technology)
        else:
            current.append(technology)
        self.draft['technologies'] = current
        return current

    def stage_file(self, staged: Optional[StagedFile]) -> None:
        """Stage an image for the next submit, replacing any earlier one. None unstages."""
        if staged is None:
            self.staged_file = None
            return
        if not self.schema.image_field:
            raise ValueError(f"{self.schema.label.capitalize()}s have no image")
        if len(staged.data) > config.max_upload_bytes:
            raise ValueError(
                f"File size ({len(staged.data) / 1024 / 1024:.2f}MB) exceeds "
                f"maximum allowed ({config.MAX_UPLOAD_MB}MB)"
            )
        self.staged_file = staged

    def edit(self, record) -> None:
        """Switch to edit mode with the draft seeded from record."""
        self.editing = record
        self.draft = self.schema.draft_from(record)
        self.staged_file = None
        self.state = SubmitState.IDLE
        self.error = None

    def reset(self) -> None:
        """Back to an empty create-mode draft."""
        self.draft = self.schema.defaults()
        self.editing = None
        self.staged_file = None
        self.state = SubmitState.IDLE
        self.error = None

    def validate(self) -> List[str]:
        return self.schema.validate(self.draft)

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    def _upload(self) -> str:
        staged = self.staged_file
        path = object_path(self.schema.upload_folder, staged)
        self.manager.datastore.upload_object(config.IMAGE_BUCKET, path, staged.data, staged.content_type)
        url = self.manager.datastore.get_public_url(config.IMAGE_BUCKET, path)
        logger.info(f"Uploaded {self.schema.label} image {staged.filename} -> {path}")
        bus.emit(EVENT_IMAGE_UPLOADED, {'kind': self.schema.kind, 'path': path, 'url': url})
        return url

    def _failed(self, error: Exception) -> None:
        self.state = SubmitState.FAILED
        self.error = error
        bus.emit(EVENT_SUBMIT_FAILED, {'kind': self.schema.kind, 'error': str(error)})

    def submit(self):
        """
        Validate, upload the staged image if any, then insert or update.

        Returns: the saved record
        Raises:
            SubmissionInFlight: a submission is already outstanding
            ValidationError: the draft is invalid; no remote call was made
            DataStoreError: upload or save failed; the draft is kept for retry
        """
        if self.in_flight:
            raise SubmissionInFlight(f"A {self.schema.label} is already being saved")

        self.state = SubmitState.VALIDATING
        problems = self.validate()
        if problems:
            logger.debug(f"{self.schema.label} draft rejected: {problems}")
            self._failed(ValidationError(problems))
            raise self.error

        image_url = getattr(self.editing, self.schema.image_field) if self.editing and self.schema.image_field else None

        try:
            if self.staged_file is not None:
                self.state = SubmitState.UPLOADING
                image_url = self._upload()

            self.state = SubmitState.PERSISTING
            payload = self.schema.payload(self.draft, image_url)
            if self.editing is not None:
                self.manager.update(self.editing.id, payload)
                record = self.manager.find(self.editing.id) or dataclasses.replace(self.editing, **payload)
            else:
                record = self.manager.create(payload)
        except DataStoreError as e:
            logger.error(f"Error saving {self.schema.label}: {e}")
            self._failed(e)
            raise

        self.reset()
        self.state = SubmitState.DONE
        return record
