import logging
from typing import NamedTuple, Optional

import firebase_admin
from fastapi.concurrency import run_in_threadpool
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from errors import InvalidExternalToken

log = logging.getLogger(__name__)

APP_NAME = "blogging"


class ExternalIdentity(NamedTuple):
    email: str
    name: str
    picture: Optional[str] = None


class FirebaseVerifier:
    """Exchanges a Firebase ID token from Google sign-in for a verified identity."""

    def __init__(self, credentials_path: Optional[str] = None):
        self.credentials_path = credentials_path
        self._app = None

    @property
    def app(self):
        if self._app is None:
            try:
                self._app = firebase_admin.get_app(APP_NAME)
            except ValueError:
                if self.credentials_path:
                    cred = credentials.Certificate(self.credentials_path)
                else:
                    cred = credentials.ApplicationDefault()
                self._app = firebase_admin.initialize_app(cred, name=APP_NAME)
        return self._app

    def _verify(self, id_token: str) -> ExternalIdentity:
        try:
            decoded = auth.verify_id_token(id_token, app=self.app)
        except (ValueError, FirebaseError) as err:
            log.info("Google token rejected: %s", err)
            raise InvalidExternalToken(str(err) or None) from err
        email = decoded.get("email")
        if not email:
            raise InvalidExternalToken()
        return ExternalIdentity(email=email, name=decoded.get("name") or email.split("@")[0], picture=decoded.get("picture"))

    async def verify(self, id_token: str) -> ExternalIdentity:
        if not id_token:
            raise InvalidExternalToken()
        return await run_in_threadpool(self._verify, id_token)
