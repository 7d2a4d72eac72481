import logging
import re
from typing import List

from fastapi.concurrency import run_in_threadpool

from errors import AuthorUpdateFailed, PersistenceError, ValidationError
from schemas import Blog, BlogContent
from security import random_suffix

log = logging.getLogger(__name__)

MAX_DES_LENGTH = 200
MAX_TAGS = 10
SLUG_SUFFIX_LENGTH = 12


def slugify_title(title: str) -> str:
    """'Hello, World! 2024' -> 'Hello-World-2024-<random>'"""
    words = re.sub(r"[^a-zA-Z0-9]", " ", title).strip()
    return re.sub(r"\s+", "-", words) + "-" + random_suffix(SLUG_SUFFIX_LENGTH)


def validate_blog(title: str, des: str, banner: str, content: BlogContent, tags: List[str], draft: bool) -> None:
    if not title:
        raise ValidationError("You must provide a title")
    if draft:
        return
    if not des or len(des) > MAX_DES_LENGTH:
        raise ValidationError("You must provide a blog description under 200 characters")
    if not banner:
        raise ValidationError("You must provide a banner to publish the blog")
    if not content.blocks:
        raise ValidationError("There must be some blog content to publish the blog")
    if not tags or len(tags) > MAX_TAGS:
        raise ValidationError("Provide tags in order to publish the blog, Maximum 10")


class PublishService:
    def __init__(self, users, blogs):
        self.users = users
        self.blogs = blogs

    async def publish(
        self,
        author_id: str,
        title: str,
        des: str,
        banner: str,
        content: BlogContent,
        tags: List[str],
        draft: bool = False,
    ) -> str:
        validate_blog(title, des, banner, content, tags, draft)

        blog = Blog(
            blog_id=slugify_title(title),
            title=title,
            des=des,
            banner=banner,
            content=content,
            tags=[tag.lower() for tag in tags],
            author=author_id,
            draft=bool(draft),
        )
        blog_ref = await run_in_threadpool(self.blogs.insert, blog.model_dump())

        increment = 0 if draft else 1
        try:
            updated = await run_in_threadpool(self.users.record_publication, author_id, blog_ref, increment)
        except PersistenceError as err:
            log.error("Blog %s stored but author %s update failed: %s", blog.blog_id, author_id, err)
            raise AuthorUpdateFailed(blog.blog_id) from err
        if not updated:
            log.error("Blog %s stored but author %s was not found", blog.blog_id, author_id)
            raise AuthorUpdateFailed(blog.blog_id)

        log.info("Blog %s created by %s (draft=%s)", blog.blog_id, author_id, blog.draft)
        return blog.blog_id
