"""Credential checks for the local backend"""

import json
import uuid
from pathlib import Path
from typing import Optional, Union

from werkzeug.security import check_password_hash, generate_password_hash

from bank_tracker.domain.exceptions import AuthError, RemoteError, ValidationError
from bank_tracker.domain.gateway import Authenticator
from bank_tracker.domain.models import Identity
from bank_tracker.utils.json_file import file_lock, read_json_file, write_json_file


class CredentialStore(Authenticator):
    """
    Users and password hashes kept in a JSON file.

    Layout: {"<email>": {"user_id": "...", "password_hash": "..."}}.
    Passwords are only ever stored as werkzeug hashes.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = file_lock(self.path)

    def add_user(self, email: str, password: str, user_id: Optional[str] = None) -> Identity:
        email = (email or "").strip().lower()
        if not email or not password:
            raise ValidationError("Email and password are required")

        password_hash = generate_password_hash(password)
        with self._lock:
            users = self._read()
            if email in users:
                raise ValidationError(f"User {email} already exists")

            identity = Identity(user_id=user_id or str(uuid.uuid4()), email=email)
            users[email] = {"user_id": identity.user_id, "password_hash": password_hash}
            try:
                write_json_file(self.path, users)
            except OSError as e:
                raise RemoteError(f"Could not save credentials: {e}") from e
        return identity

    def authenticate(self, email: str, password: str) -> Identity:
        email = (email or "").strip().lower()
        entry = self._read().get(email)
        if entry is None or not check_password_hash(entry["password_hash"], password):
            raise AuthError("Invalid email or password")
        return Identity(user_id=entry["user_id"], email=email)

    def _read(self) -> dict:
        try:
            with self._lock:
                return read_json_file(self.path)
        except (OSError, json.JSONDecodeError) as e:
            raise RemoteError(f"Could not read credentials: {e}") from e
