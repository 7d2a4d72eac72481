import logging

from fastapi.concurrency import run_in_threadpool

from security import random_suffix

log = logging.getLogger(__name__)

SUFFIX_LENGTH = 5


class UsernameAllocator:
    """
    Derives a handle from the local part of an email address. On a collision a
    random suffix is appended once; the suffixed name is not checked again and
    the unique index on username is the final guard.
    """

    def __init__(self, users):
        self.users = users

    async def allocate(self, email: str) -> str:
        username = email.split("@")[0]
        if await run_in_threadpool(self.users.username_exists, username):
            log.debug("username %s taken, adding suffix", username)
            username += random_suffix(SUFFIX_LENGTH)
        return username
