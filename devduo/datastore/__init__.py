"""
DataStore backends.
get_datastore() builds the backend selected by DATASTORE_BACKEND.
"""

from devduo.config import config
from devduo.datastore.base import DataStore


def get_datastore() -> DataStore:
    """Build the configured DataStore."""
    if config.DATASTORE_BACKEND == 'postgres':
        from devduo.datastore.postgres import PostgresDataStore

        return PostgresDataStore(
            dsn=config.DATABASE_URL,
            storage_path=config.LOCAL_STORAGE_PATH,
            public_url=config.PUBLIC_STORAGE_URL,
            user_id=config.ADMIN_USER_ID,
            role_table=config.ROLE_TABLE,
        )

    from devduo.datastore.hosted import HostedDataStore

    return HostedDataStore(
        base_url=config.DATASTORE_URL,
        api_key=config.DATASTORE_KEY,
        access_token=config.DATASTORE_ACCESS_TOKEN,
        role_table=config.ROLE_TABLE,
        timeout=config.DATASTORE_TIMEOUT_SECONDS,
    )
