"""
FittedIn Backend — Post Routes
===============================

What:  Status updates, likes and comments, and the network feed.

Route order:
    /feed, /user/{user_id} and /comments/{comment_id} are declared before
    /{post_id}.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fittedin.database import get_db_session
from fittedin.schemas.common import ErrorResponse
from fittedin.schemas.post import (
    CommentCreateRequest,
    CommentResponse,
    PostListResponse,
    PostResponse,
    PostWriteRequest,
)
from fittedin.security import get_current_user_id
from fittedin.services.post_service import post_service

router = APIRouter(prefix="/api/posts", tags=["Posts"])

_NOT_FOUND = {404: {"description": "Post not found", "model": ErrorResponse}}
_AUTHOR_ONLY = {
    **_NOT_FOUND,
    403: {"description": "Not the author", "model": ErrorResponse},
}


@router.get(
    "/feed",
    response_model=PostListResponse,
    summary="Posts by me and my connections, newest first",
)
async def get_feed(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PostListResponse:
    return await post_service.get_feed(db, user_id, limit=limit, offset=offset)


@router.get(
    "/user/{author_id}",
    response_model=PostListResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Posts by one user",
)
async def get_user_posts(
    author_id: UUID,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PostListResponse:
    return await post_service.get_user_posts(db, user_id, author_id, limit=limit, offset=offset)


@router.delete(
    "/comments/{comment_id}",
    status_code=204,
    response_class=Response,
    responses={
        403: {"description": "Neither the comment's nor the post's author", "model": ErrorResponse},
        404: {"description": "Comment not found", "model": ErrorResponse},
    },
    summary="Delete a comment",
)
async def delete_comment(
    comment_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await post_service.delete_comment(db, user_id, comment_id)
    return Response(status_code=204)


@router.post("", response_model=PostResponse, status_code=201, summary="Publish a post")
async def create_post(
    body: PostWriteRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.create_post(db, user_id, body.content)


@router.get(
    "/{post_id}",
    response_model=PostResponse,
    responses=_NOT_FOUND,
    summary="Get a post with its comments",
)
async def get_post(
    post_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.get_post(db, user_id, post_id)


@router.put("/{post_id}", response_model=PostResponse, responses=_AUTHOR_ONLY, summary="Edit my post")
async def update_post(
    post_id: UUID,
    body: PostWriteRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.update_post(db, user_id, post_id, body.content)


@router.delete(
    "/{post_id}",
    status_code=204,
    response_class=Response,
    responses=_AUTHOR_ONLY,
    summary="Delete my post",
)
async def delete_post(
    post_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await post_service.delete_post(db, user_id, post_id)
    return Response(status_code=204)


@router.post(
    "/{post_id}/like",
    response_model=PostResponse,
    responses={**_NOT_FOUND, 409: {"description": "Already liked", "model": ErrorResponse}},
    summary="Like a post",
)
async def like_post(
    post_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.like_post(db, user_id, post_id)


@router.delete(
    "/{post_id}/like",
    response_model=PostResponse,
    responses={404: {"description": "Post not found or not liked", "model": ErrorResponse}},
    summary="Remove my like",
)
async def unlike_post(
    post_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.unlike_post(db, user_id, post_id)


@router.post(
    "/{post_id}/comment",
    response_model=CommentResponse,
    status_code=201,
    responses=_NOT_FOUND,
    summary="Comment on a post",
)
async def comment_on_post(
    post_id: UUID,
    body: CommentCreateRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    return await post_service.add_comment(db, user_id, post_id, body.content)
