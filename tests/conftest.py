import copy
import threading
import uuid

import pytest
from fastapi.testclient import TestClient

from auth import AuthService
from errors import InvalidExternalToken, PersistenceError, UniquenessConflict
from identity import ExternalIdentity
from main import create_app
from publish import PublishService
from security import PasswordHasher, TokenIssuer
from settings import Settings
from usernames import UsernameAllocator

SECRET = "test-secret"


class InMemoryUserRepository:
    """Same surface as database.UserRepository, with unique email/username."""

    def __init__(self):
        self.docs = {}
        self.lock = threading.Lock()
        self.fail_updates = False
        self.lookup_error = None

    def ensure_indexes(self):
        pass

    def find_by_email(self, email):
        if self.lookup_error:
            raise PersistenceError(self.lookup_error)
        for doc in self.docs.values():
            if doc["personal_info"]["email"] == email:
                return copy.deepcopy(doc)
        return None

    def username_exists(self, username):
        return any(d["personal_info"]["username"] == username for d in self.docs.values())

    def insert(self, doc):
        with self.lock:
            for field in ("email", "username"):
                value = doc["personal_info"][field]
                if any(d["personal_info"][field] == value for d in self.docs.values()):
                    raise UniquenessConflict(f"personal_info.{field}")
            user_id = uuid.uuid4().hex
            self.docs[user_id] = {**copy.deepcopy(doc), "_id": user_id}
        return user_id

    def record_publication(self, user_id, blog_ref, increment):
        if self.fail_updates:
            raise PersistenceError("connection reset")
        doc = self.docs.get(user_id)
        if doc is None:
            return False
        doc["account_info"]["total_posts"] += increment
        doc["blogs"].append(blog_ref)
        return True


class InMemoryBlogRepository:
    def __init__(self):
        self.docs = {}
        self.error = None

    def ensure_indexes(self):
        pass

    def insert(self, doc):
        if self.error:
            raise PersistenceError(self.error)
        if any(d["blog_id"] == doc["blog_id"] for d in self.docs.values()):
            raise PersistenceError("duplicate key error: blog_id")
        ref = uuid.uuid4().hex
        self.docs[ref] = copy.deepcopy(doc)
        return ref


class FakeVerifier:
    def __init__(self):
        self.identities = {}

    async def verify(self, id_token):
        if id_token not in self.identities:
            raise InvalidExternalToken("Firebase ID token has invalid signature.")
        return self.identities[id_token]

    def add(self, token, email, name, picture=None):
        self.identities[token] = ExternalIdentity(email=email, name=name, picture=picture)


class FakeUploader:
    def __init__(self):
        self.uploaded = []

    async def upload(self, image):
        self.uploaded.append(image)
        return "https://res.cloudinary.com/demo/image/upload/Blogging/banner.png"



@pytest.fixture
def settings():
    return Settings(secret_key=SECRET, bcrypt_rounds=4)


@pytest.fixture
def users():
    return InMemoryUserRepository()


@pytest.fixture
def blogs():
    return InMemoryBlogRepository()


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def tokens():
    return TokenIssuer(SECRET)


@pytest.fixture
def auth_service(users, tokens, verifier):
    return AuthService(
        users=users,
        hasher=PasswordHasher(rounds=4),
        tokens=tokens,
        usernames=UsernameAllocator(users),
        verifier=verifier,
    )


@pytest.fixture
def publisher(users, blogs):
    return PublishService(users, blogs)


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def client(settings, users, blogs, verifier, uploader):
    app = create_app(settings, users=users, blogs=blogs, verifier=verifier, uploader=uploader)
    with TestClient(app) as c:
        yield c
