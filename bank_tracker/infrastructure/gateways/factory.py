"""Build persistence gateways from configuration"""

import threading
from typing import Optional

from sqlalchemy.orm import sessionmaker

from bank_tracker.config import Settings
from bank_tracker.domain.gateway import PersistenceGateway
from bank_tracker.infrastructure.auth import CredentialStore
from bank_tracker.infrastructure.database.session import create_session_factory
from bank_tracker.infrastructure.gateways.local import LocalGateway, LocalStorage
from bank_tracker.infrastructure.gateways.remote import RemoteGateway


class GatewayFactory:
    """
    Creates one gateway per user session for the configured backend.

    The database engine is created on first use and shared by every
    gateway this factory hands out.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._session_factory: Optional[sessionmaker] = None
        self._lock = threading.Lock()

    def __call__(self) -> PersistenceGateway:
        if self.settings.storage_backend == "local":
            return LocalGateway(
                LocalStorage(self.settings.local_storage_path),
                CredentialStore(self.settings.local_credentials_path),
            )
        return RemoteGateway(self.session_factory)

    @property
    def session_factory(self) -> sessionmaker:
        with self._lock:
            if self._session_factory is None:
                self._session_factory = create_session_factory(self.settings.database_url)
            return self._session_factory
