"""
Data Models
Dataclasses for all records. These are pure Python objects, no data store logic.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

# Contact message workflow, in display order
MESSAGE_STATUSES = ('new', 'read', 'replied', 'archived')

# Portfolio categories: value -> display label
PROJECT_CATEGORIES = {
    'web': 'Web Development',
    'mobile': 'Mobile App',
    'desktop': 'Desktop Application',
    'ai': 'AI/ML',
    'blockchain': 'Blockchain',
    'other': 'Other',
}

# Offered as suggestions when editing a project; free-form values are allowed too
COMMON_TECHNOLOGIES = [
    'React', 'Next.js', 'TypeScript', 'JavaScript', 'Node.js', 'Python',
    'Django', 'Flask', 'PostgreSQL', 'MongoDB', 'AWS', 'Docker',
    'Kubernetes', 'GraphQL', 'REST API', 'Tailwind CSS', 'Material UI',
]

MIN_RATING = 1
MAX_RATING = 5


@dataclass
class ContactMessage:
    """Message sent through the site's contact form"""
    id: Optional[str] = None
    name: str = ''
    email: str = ''
    subject: Optional[str] = None
    message: str = ''
    status: str = 'new'
    created_at: Optional[datetime] = None


@dataclass
class Project:
    """Portfolio project"""
    id: Optional[str] = None
    title: str = ''
    description: str = ''
    category: str = 'web'
    project_url: Optional[str] = None
    technologies: List[str] = field(default_factory=list)
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Testimonial:
    """Client feedback shown on the site"""
    id: Optional[str] = None
    client_name: str = ''
    client_email: Optional[str] = None
    project_title: Optional[str] = None
    feedback: str = ''
    rating: int = MAX_RATING
    client_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
