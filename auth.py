"""
Signup, password signin and Google sign-in.

Each operation validates its input before touching the database, then
persists or looks up the user and finally issues an access token. The
returned payload has the same shape for all three.
"""

import logging
import re

from fastapi.concurrency import run_in_threadpool

from errors import (
    DuplicateEmail,
    FederatedAccountOnly,
    InvalidCredentials,
    NotFound,
    PasswordAccountExists,
    UniquenessConflict,
    ValidationError,
)
from schemas import PersonalInfo, SessionPayload, User

log = logging.getLogger(__name__)

# ASCII word characters only
EMAIL_RE = re.compile(r"\w+(?:[.-]\w+)*@\w+(?:[.-]\w+)*\.\w{2,3}", re.ASCII)
PASSWORD_RE = re.compile(r"(?=.*\d)(?=.*[a-z])(?=.*[A-Z]).{6,20}", re.ASCII)
MAX_EMAIL_LENGTH = 254


def validate_signup(fullname: str, email: str, password: str) -> None:
    if len(fullname) < 3:
        raise ValidationError("Fullname must be at least 3 letters long")
    if not email:
        raise ValidationError("Enter email")
    if len(email) > MAX_EMAIL_LENGTH or not EMAIL_RE.fullmatch(email):
        raise ValidationError("Email is invalid")
    if not PASSWORD_RE.fullmatch(password):
        raise ValidationError(
            "Password should be 6 to 20 characters long with 1 numeric, 1 lowercase and 1 uppercase letters"
        )


class AuthService:
    def __init__(self, users, hasher, tokens, usernames, verifier):
        self.users = users
        self.hasher = hasher
        self.tokens = tokens
        self.usernames = usernames
        self.verifier = verifier

    def session_for(self, user_id: str, personal_info: dict) -> SessionPayload:
        return SessionPayload(
            access_token=self.tokens.issue(user_id),
            profile_img=personal_info.get("profile_img"),
            username=personal_info["username"],
            fullname=personal_info["fullname"],
        )

    async def _create_user(self, user: User) -> str:
        try:
            return await run_in_threadpool(self.users.insert, user.model_dump())
        except UniquenessConflict as err:
            if err.field == "personal_info.email":
                raise DuplicateEmail() from err
            raise

    async def signup(self, fullname: str, email: str, password: str) -> SessionPayload:
        validate_signup(fullname, email, password)

        hashed = await self.hasher.hash(password)
        username = await self.usernames.allocate(email)
        user = User(
            personal_info=PersonalInfo(fullname=fullname, email=email, password=hashed, username=username),
        )
        user_id = await self._create_user(user)
        log.info("New user %s signed up", username)
        return self.session_for(user_id, user.personal_info.model_dump())

    async def signin(self, email: str, password: str) -> SessionPayload:
        user = await run_in_threadpool(self.users.find_by_email, email)
        if not user:
            raise NotFound()
        if user.get("google_auth"):
            raise FederatedAccountOnly()

        info = user["personal_info"]
        try:
            matched = await self.hasher.verify(password, info.get("password"))
        except (ValueError, TypeError) as err:
            log.warning("Password check failed for %s: %s", info.get("username"), err)
            raise InvalidCredentials("Error occurred while login, please try again!") from err
        if not matched:
            raise InvalidCredentials()
        return self.session_for(str(user["_id"]), info)

    async def google_auth(self, access_token: str) -> SessionPayload:
        identity = await self.verifier.verify(access_token)

        user = await run_in_threadpool(self.users.find_by_email, identity.email)
        if user:
            if not user.get("google_auth"):
                raise PasswordAccountExists()
            return self.session_for(str(user["_id"]), user["personal_info"])

        username = await self.usernames.allocate(identity.email)
        new_user = User(
            personal_info=PersonalInfo(
                fullname=identity.name,
                email=identity.email,
                username=username,
                profile_img=identity.picture,
            ),
            google_auth=True,
        )
        user_id = await self._create_user(new_user)
        log.info("New Google user %s signed up", username)
        return self.session_for(user_id, new_user.personal_info.model_dump())
