import secrets
import string
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from jose import JWTError, jwt
from passlib.context import CryptContext

from errors import InvalidToken, MissingToken

ALPHANUMERIC = string.ascii_letters + string.digits


def random_suffix(length: int) -> str:
    return "".join(secrets.choice(ALPHANUMERIC) for _ in range(length))


class PasswordHasher:
    """bcrypt hashing, run off the event loop since it is CPU bound."""

    def __init__(self, rounds: int = 10):
        self.context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    async def hash(self, password: str) -> str:
        return await run_in_threadpool(self.context.hash, password)

    async def verify(self, password: str, password_hash: str) -> bool:
        # passlib raises ValueError/TypeError for a malformed or missing hash
        return await run_in_threadpool(self.context.verify, password, password_hash)


class TokenIssuer:
    """
    Signs and checks access tokens. The only claim is the user id.

    Tokens carry no "exp" claim, so an issued token stays valid for as long
    as the secret is unchanged.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self.secret_key = secret_key
        self.algorithm = algorithm

    def issue(self, user_id: str) -> str:
        return jwt.encode({"id": str(user_id)}, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> str:
        if not token:
            raise MissingToken()
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            raise InvalidToken()
        user_id = payload.get("id")
        if not user_id:
            raise InvalidToken()
        return user_id
