"""
Database Schemas

MongoDB collection schemas and the request/response bodies of the API,
defined as Pydantic models.
- User -> "users" collection
- Blog -> "blogs" collection
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PersonalInfo(BaseModel):
    fullname: str = Field(..., description="Display name")
    email: str = Field(..., description="Unique email address")
    password: Optional[str] = Field(None, description="BCrypt password hash, absent for Google accounts")
    username: str = Field(..., description="Unique handle derived from the email")
    profile_img: Optional[str] = Field(None, description="Optional profile image URL")


class AccountInfo(BaseModel):
    total_posts: int = 0


class User(BaseModel):
    """
    Users collection schema
    Collection name: "users"
    """
    personal_info: PersonalInfo
    google_auth: bool = Field(False, description="Account created through Google sign-in")
    account_info: AccountInfo = Field(default_factory=AccountInfo)
    blogs: List[Any] = Field(default_factory=list, description="Ids of blogs authored by this user")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class BlogContent(BaseModel):
    """Editor document; only the block list is inspected."""
    model_config = ConfigDict(extra="allow")

    blocks: List[Dict[str, Any]] = Field(default_factory=list)


class Blog(BaseModel):
    """
    Blogs collection schema
    Collection name: "blogs"
    """
    blog_id: str = Field(..., description="Unique slug derived from the title")
    title: str
    des: str = ""
    banner: str = ""
    content: BlogContent = Field(default_factory=BlogContent)
    tags: List[str] = Field(default_factory=list)
    author: Any = Field(..., description="Reference to the author's user _id")
    draft: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# Request bodies. Fields default to empty values so that the workflows can
# report which one is missing with their own messages.

class SignupRequest(BaseModel):
    fullname: str = ""
    email: str = ""
    password: str = ""


class SigninRequest(BaseModel):
    email: str = ""
    password: str = ""


class GoogleAuthRequest(BaseModel):
    access_token: str = ""


class CreateBlogRequest(BaseModel):
    title: str = ""
    des: str = ""
    banner: str = ""
    content: BlogContent = Field(default_factory=BlogContent)
    tags: List[str] = Field(default_factory=list)
    draft: bool = False


class UploadRequest(BaseModel):
    image: str = Field(..., description="Data URI or remote URL of the image")


# Responses

class SessionPayload(BaseModel):
    access_token: str
    profile_img: Optional[str] = None
    username: str
    fullname: str


class BlogCreated(BaseModel):
    id: str


class UploadResponse(BaseModel):
    url: str
