"""
FittedIn Backend — Post Schemas
================================
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from fittedin.schemas.user import UserSummary


def _strip_content(v: str) -> str:
    stripped = v.strip()
    if not stripped:
        raise ValueError("content must not be blank")
    return stripped


class PostWriteRequest(BaseModel):
    """Body of create and update."""
    content: str = Field(min_length=1, max_length=5000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        return _strip_content(v)


class CommentCreateRequest(BaseModel):
    content: str = Field(min_length=1, max_length=1000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        return _strip_content(v)


class CommentResponse(BaseModel):
    id: uuid.UUID
    post_id: uuid.UUID
    content: str
    author: UserSummary
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PostResponse(BaseModel):
    """
    A post as seen by the acting user.

    `comments` is only filled on the single-post view; lists carry the count.
    """
    id: uuid.UUID
    content: str
    author: UserSummary
    like_count: int = 0
    comment_count: int = 0
    liked_by_me: bool = False
    comments: Optional[List[CommentResponse]] = None
    created_at: datetime
    updated_at: datetime


class PostListResponse(BaseModel):
    posts: List[PostResponse]
    limit: int
    offset: int
