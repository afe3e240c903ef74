"""
Dev Duo Admin Configuration
Loads settings from environment variables with sensible defaults.
"""

import logging
import os
from pathlib import Path
from urllib.parse import urlparse
from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

# Load .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

BACKENDS = ('hosted', 'postgres')
_LOCAL_HOSTS = ('localhost', '127.0.0.1', '::1')


class Config:
    """Application configuration."""

    # Data store backend: 'hosted' (REST API) or 'postgres' (direct connection)
    DATASTORE_BACKEND = os.getenv('DATASTORE_BACKEND', 'hosted').strip().lower()
    if DATASTORE_BACKEND not in BACKENDS:
        _logger.critical(f"Unknown DATASTORE_BACKEND '{DATASTORE_BACKEND}'")
        raise ValueError(f"DATASTORE_BACKEND must be one of: {', '.join(BACKENDS)}")

    # Hosted backend. Credentials must come from .env; never hardcode them here
    DATASTORE_URL = os.getenv('DATASTORE_URL', '').rstrip('/')
    DATASTORE_KEY = os.getenv('DATASTORE_KEY', '')
    DATASTORE_ACCESS_TOKEN = os.getenv('DATASTORE_ACCESS_TOKEN', '')
    DATASTORE_TIMEOUT_SECONDS = float(os.getenv('DATASTORE_TIMEOUT_SECONDS', '30'))
    if DATASTORE_BACKEND == 'hosted' and not (DATASTORE_URL and DATASTORE_KEY):
        _logger.critical("DATASTORE_URL / DATASTORE_KEY are not set — cannot start. Copy .env.example to .env and configure it.")
        raise ValueError("DATASTORE_URL and DATASTORE_KEY environment variables must be set for the hosted backend.")
    if DATASTORE_BACKEND == 'hosted' and urlparse(DATASTORE_URL).scheme == 'http' \
            and urlparse(DATASTORE_URL).hostname not in _LOCAL_HOSTS:
        _logger.warning(f"DATASTORE_URL {DATASTORE_URL} is plain HTTP; the API key is sent unencrypted. Use HTTPS.")

    # Postgres backend
    DATABASE_URL = os.getenv('DATABASE_URL', '')
    if DATASTORE_BACKEND == 'postgres' and not DATABASE_URL:
        _logger.critical("DATABASE_URL is not set — cannot start. Copy .env.example to .env and configure it.")
        raise ValueError("DATABASE_URL environment variable is not set. Copy .env.example to .env and configure it.")
    LOCAL_STORAGE_PATH = os.getenv('LOCAL_STORAGE_PATH', 'uploads')
    PUBLIC_STORAGE_URL = os.getenv('PUBLIC_STORAGE_URL', '/storage')
    ADMIN_USER_ID = os.getenv('ADMIN_USER_ID', '')

    # Authorization for destructive actions
    ROLE_TABLE = os.getenv('ROLE_TABLE', 'user_roles')
    PRIVILEGED_ROLES = tuple(
        role.strip() for role in os.getenv('PRIVILEGED_ROLES', 'admin,super_admin').split(',')
        if role.strip()
    )

    # Image uploads
    IMAGE_BUCKET = os.getenv('IMAGE_BUCKET', 'project-images')
    MAX_UPLOAD_MB = int(os.getenv('MAX_UPLOAD_MB', '5'))

    # Loading screen shown by the menu launcher
    LOADING_SCREEN = os.getenv('LOADING_SCREEN', 'default')
    LOADING_VIDEO_SRC = os.getenv('LOADING_VIDEO_SRC', 'logo.mp4')
    LOADING_VIDEO_PLAYER = os.getenv('LOADING_VIDEO_PLAYER', 'ffplay -autoexit -loglevel quiet')

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024


# Singleton instance
config = Config()
