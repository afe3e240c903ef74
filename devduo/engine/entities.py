"""
Entity Schemas
Record-shape descriptors that parameterize the generic manager and form.
One schema per table: which fields are editable, which are required, how
rows become records and how drafts become the field set sent to the store.
"""

import copy
import dataclasses
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from dateutil.parser import isoparse

from devduo.models import (
    ContactMessage, Project, Testimonial,
    MESSAGE_STATUSES, PROJECT_CATEGORIES, MIN_RATING, MAX_RATING,
)

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

# A check inspects a draft and returns a problem message, or None when the draft is fine
Check = Callable[[Dict[str, Any]], Optional[str]]


def _label(name: str) -> str:
    return name.replace('_', ' ').capitalize()


def _parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as returned by the REST API (any fraction length)."""
    try:
        return isoparse(value)
    except ValueError:
        logger.warning(f"Unparseable timestamp {value!r}")
        return None


@dataclass(frozen=True, eq=False)
class EntitySchema:
    """Describes one record kind and the table it lives in."""
    kind: str
    label: str
    table: str
    model: Type
    fields: Tuple[str, ...]
    required: Tuple[str, ...]
    nullable: Tuple[str, ...] = ()
    checks: Tuple[Check, ...] = ()
    null_defaults: Dict[str, Any] = field(default_factory=dict)
    image_field: Optional[str] = None
    upload_folder: Optional[str] = None
    status_field: Optional[str] = None
    statuses: Tuple[str, ...] = ()
    order_by: str = 'created_at'
    privileged_delete: bool = True

    def defaults(self) -> Dict[str, Any]:
        """Fresh draft holding the model's defaults."""
        blank = self.model()
        return {name: copy.deepcopy(getattr(blank, name)) for name in self.fields}

    def draft_from(self, record) -> Dict[str, Any]:
        """Draft seeded from an existing record, for edit mode."""
        draft = {name: copy.deepcopy(getattr(record, name)) for name in self.fields}
        for name, default in self.null_defaults.items():
            if name in draft and draft[name] is None:
                draft[name] = copy.deepcopy(default)
        return draft

    def from_row(self, row: Dict[str, Any]):
        """Build a record from a stored row. Unknown columns are ignored."""
        known = {f.name for f in dataclasses.fields(self.model)}
        values = {key: value for key, value in row.items() if key in known}

        for name, default in self.null_defaults.items():
            if values.get(name) is None:
                values[name] = copy.deepcopy(default)

        if isinstance(values.get('created_at'), str):
            values['created_at'] = _parse_timestamp(values['created_at'])
        if values.get('id') is not None:
            values['id'] = str(values['id'])

        return self.model(**values)

    def payload(self, draft: Dict[str, Any], image_url: Optional[str] = None) -> Dict[str, Any]:
        """
        Assemble the field set sent to the store.
        Strings are trimmed, blank optional strings become None, and the
        image field (if any) is set to image_url.
        """
        data = {}
        for name in self.fields:
            value = draft.get(name)
            if isinstance(value, str):
                value = value.strip()
                if not value and name in self.nullable:
                    value = None
            elif isinstance(value, list):
                value = list(value)
            data[name] = value

        if self.image_field:
            data[self.image_field] = image_url
        return data

    def missing_fields(self, draft: Dict[str, Any]) -> List[str]:
        """Required fields that are empty after trimming whitespace."""
        return [name for name in self.required if not str(draft.get(name) or '').strip()]

    def validate(self, draft: Dict[str, Any]) -> List[str]:
        """All problems with a draft, required fields first. Empty list means valid."""
        problems = [f"{_label(name)} is required" for name in self.missing_fields(draft)]
        for check in self.checks:
            problem = check(draft)
            if problem:
                problems.append(problem)
        return problems


# =============================================================================
# FIELD CHECKS
# =============================================================================

def _email_check(name: str) -> Check:
    def check(draft):
        value = str(draft.get(name) or '').strip()
        if value and not _EMAIL_RE.match(value):
            return f"{_label(name)} is not a valid email address"
        return None
    return check


def _check_status(draft):
    if draft.get('status') not in MESSAGE_STATUSES:
        return f"Status must be one of: {', '.join(MESSAGE_STATUSES)}"
    return None


def _check_category(draft):
    if draft.get('category') not in PROJECT_CATEGORIES:
        return f"Category must be one of: {', '.join(PROJECT_CATEGORIES)}"
    return None


def _check_technologies(draft):
    technologies = draft.get('technologies')
    if not isinstance(technologies, list) or not all(isinstance(t, str) and t.strip() for t in technologies):
        return "Technologies must be a list of names"
    return None


def _check_rating(draft):
    rating = draft.get('rating')
    # bool is an int subclass; True is not a rating
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        return f"Rating must be a whole number from {MIN_RATING} to {MAX_RATING}"
    return None


# =============================================================================
# SCHEMAS
# =============================================================================

MESSAGES = EntitySchema(
    kind='messages',
    label='contact message',
    table='contact_messages',
    model=ContactMessage,
    fields=('name', 'email', 'subject', 'message', 'status'),
    required=('name', 'email', 'message'),
    nullable=('subject',),
    checks=(_email_check('email'), _check_status),
    null_defaults={'status': 'new'},
    status_field='status',
    statuses=MESSAGE_STATUSES,
)

PROJECTS = EntitySchema(
    kind='projects',
    label='project',
    table='projects',
    model=Project,
    fields=('title', 'description', 'category', 'project_url', 'technologies'),
    required=('title', 'description'),
    nullable=('project_url',),
    checks=(_check_category, _check_technologies),
    null_defaults={'technologies': []},
    image_field='image_url',
    upload_folder='projects',
)

TESTIMONIALS = EntitySchema(
    kind='testimonials',
    label='testimonial',
    table='client_feedbacks',
    model=Testimonial,
    fields=('client_name', 'client_email', 'project_title', 'feedback', 'rating'),
    required=('client_name', 'feedback'),
    nullable=('client_email', 'project_title'),
    checks=(_email_check('client_email'), _check_rating),
    image_field='client_image_url',
    upload_folder='testimonials',
)

SCHEMAS = {schema.kind: schema for schema in (MESSAGES, PROJECTS, TESTIMONIALS)}
