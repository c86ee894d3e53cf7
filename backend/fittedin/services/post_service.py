"""
FittedIn Backend — Post Service
================================

What:  Status updates with likes and comments, and the network feed.
How:   Posts are readable by any signed-in user. Only the author may edit
       or delete a post; a comment may be deleted by its author or by the
       post's author. Like and comment counts are computed per page with one
       grouped query each.
Who:   routes/posts.py.

Feed:
    The acting user's posts plus those of every accepted connection,
    newest first.
"""

import logging
from typing import Dict, List, Set
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fittedin.exceptions import ConflictError, DatabaseError, ForbiddenError, NotFoundError
from fittedin.models.connection import Connection
from fittedin.models.post import Post, PostComment, PostLike
from fittedin.models.user import User
from fittedin.schemas.post import CommentResponse, PostListResponse, PostResponse
from fittedin.schemas.user import UserSummary

logger = logging.getLogger(__name__)


class PostService:

    # ══════════════════════════════════════════════════════════════════════
    # Posts
    # ══════════════════════════════════════════════════════════════════════

    async def create_post(self, db: AsyncSession, user_id: UUID, content: str) -> PostResponse:
        post = Post(user_id=user_id, content=content)
        db.add(post)
        await db.flush()
        logger.info("Post %s created by user %s", post.id, user_id)
        return await self.get_post(db, user_id, post.id)

    async def get_post(self, db: AsyncSession, user_id: UUID, post_id: UUID) -> PostResponse:
        """A single post with its comments, oldest comment first."""
        result = await db.execute(
            select(Post)
            .where(Post.id == post_id)
            .options(
                selectinload(Post.author),
                selectinload(Post.comments).selectinload(PostComment.author),
            )
            .execution_options(populate_existing=True)
        )
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFoundError(resource="post", message="Post not found")

        likes, _ = await self._counts(db, [post.id])
        response = self._as_response(
            post,
            like_count=likes.get(post.id, 0),
            comment_count=len(post.comments),
            liked_by_me=post.id in await self._liked_by(db, user_id, [post.id]),
        )
        response.comments = [CommentResponse.model_validate(c) for c in post.comments]
        return response

    async def update_post(
        self, db: AsyncSession, user_id: UUID, post_id: UUID, content: str
    ) -> PostResponse:
        """
        Raises:
            NotFoundError: no such post
            ForbiddenError: the acting user is not the author
        """
        post = await self._get_authored(db, user_id, post_id)
        post.content = content
        await db.flush()
        logger.info("Post %s edited", post_id)
        return await self.get_post(db, user_id, post_id)

    async def delete_post(self, db: AsyncSession, user_id: UUID, post_id: UUID) -> None:
        """Deletes the post with its likes and comments."""
        await self._get_authored(db, user_id, post_id)
        result = await db.execute(
            select(Post)
            .where(Post.id == post_id)
            .options(selectinload(Post.likes), selectinload(Post.comments))
            .execution_options(populate_existing=True)
        )
        await db.delete(result.scalar_one())
        await db.flush()
        logger.info("Post %s deleted by user %s", post_id, user_id)

    async def get_feed(
        self, db: AsyncSession, user_id: UUID, limit: int = 20, offset: int = 0
    ) -> PostListResponse:
        query = select(Post).where(Connection.in_network_of(Post.user_id, user_id))
        return await self._page(db, user_id, query, limit, offset)

    async def get_user_posts(
        self,
        db: AsyncSession,
        user_id: UUID,
        author_id: UUID,
        limit: int = 20,
        offset: int = 0,
    ) -> PostListResponse:
        if await db.get(User, author_id) is None:
            raise NotFoundError(resource="user", message="User not found")
        query = select(Post).where(Post.user_id == author_id)
        return await self._page(db, user_id, query, limit, offset)

    # ══════════════════════════════════════════════════════════════════════
    # Likes and comments
    # ══════════════════════════════════════════════════════════════════════

    async def like_post(self, db: AsyncSession, user_id: UUID, post_id: UUID) -> PostResponse:
        """
        Raises:
            NotFoundError: no such post
            ConflictError: already liked by this user
        """
        await self._get_post_row(db, post_id)
        if post_id in await self._liked_by(db, user_id, [post_id]):
            raise ConflictError("Post already liked")

        db.add(PostLike(post_id=post_id, user_id=user_id))
        try:
            await db.flush()
        except IntegrityError:
            # Concurrent like by the same user
            await db.rollback()
            raise ConflictError("Post already liked")
        return await self.get_post(db, user_id, post_id)

    async def unlike_post(self, db: AsyncSession, user_id: UUID, post_id: UUID) -> PostResponse:
        await self._get_post_row(db, post_id)
        result = await db.execute(
            select(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
        )
        like = result.scalar_one_or_none()
        if like is None:
            raise NotFoundError(resource="like", message="Post not liked")
        await db.delete(like)
        await db.flush()
        return await self.get_post(db, user_id, post_id)

    async def add_comment(
        self, db: AsyncSession, user_id: UUID, post_id: UUID, content: str
    ) -> CommentResponse:
        await self._get_post_row(db, post_id)
        comment = PostComment(post_id=post_id, user_id=user_id, content=content)
        db.add(comment)
        await db.flush()
        await db.refresh(comment, attribute_names=["author"])
        logger.info("Comment %s added to post %s", comment.id, post_id)
        return CommentResponse.model_validate(comment)

    async def delete_comment(self, db: AsyncSession, user_id: UUID, comment_id: UUID) -> None:
        """
        Either the comment's author or the post's author may delete it.

        Raises:
            NotFoundError: no such comment
            ForbiddenError: neither author
        """
        result = await db.execute(
            select(PostComment)
            .where(PostComment.id == comment_id)
            .options(selectinload(PostComment.post))
        )
        comment = result.scalar_one_or_none()
        if comment is None:
            raise NotFoundError(resource="comment", message="Comment not found")
        if user_id not in (comment.user_id, comment.post.user_id):
            raise ForbiddenError("Not allowed to delete this comment")
        await db.delete(comment)
        await db.flush()

    # ══════════════════════════════════════════════════════════════════════
    # Helpers
    # ══════════════════════════════════════════════════════════════════════

    async def _get_post_row(self, db: AsyncSession, post_id: UUID) -> Post:
        post = await db.get(Post, post_id)
        if post is None:
            raise NotFoundError(resource="post", message="Post not found")
        return post

    async def _get_authored(self, db: AsyncSession, user_id: UUID, post_id: UUID) -> Post:
        post = await self._get_post_row(db, post_id)
        if post.user_id != user_id:
            raise ForbiddenError("Only the author can change this post")
        return post

    async def _page(
        self, db: AsyncSession, user_id: UUID, query, limit: int, offset: int
    ) -> PostListResponse:
        try:
            result = await db.execute(
                query.options(selectinload(Post.author))
                .order_by(Post.created_at.desc(), Post.id)
                .limit(limit)
                .offset(offset)
            )
            posts = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve posts. Please try again.",
                context={"error_type": type(e).__name__},
            )

        ids = [p.id for p in posts]
        likes, comments = await self._counts(db, ids)
        liked = await self._liked_by(db, user_id, ids)
        return PostListResponse(
            posts=[
                self._as_response(
                    p,
                    like_count=likes.get(p.id, 0),
                    comment_count=comments.get(p.id, 0),
                    liked_by_me=p.id in liked,
                )
                for p in posts
            ],
            limit=limit,
            offset=offset,
        )

    @staticmethod
    async def _counts(db: AsyncSession, post_ids: List[UUID]):
        """(likes per post, comments per post) for the given ids."""
        if not post_ids:
            return {}, {}
        likes = await db.execute(
            select(PostLike.post_id, func.count(PostLike.id))
            .where(PostLike.post_id.in_(post_ids))
            .group_by(PostLike.post_id)
        )
        comments = await db.execute(
            select(PostComment.post_id, func.count(PostComment.id))
            .where(PostComment.post_id.in_(post_ids))
            .group_by(PostComment.post_id)
        )
        like_counts: Dict[UUID, int] = dict(likes.all())
        comment_counts: Dict[UUID, int] = dict(comments.all())
        return like_counts, comment_counts

    @staticmethod
    async def _liked_by(db: AsyncSession, user_id: UUID, post_ids: List[UUID]) -> Set[UUID]:
        if not post_ids:
            return set()
        result = await db.execute(
            select(PostLike.post_id).where(
                PostLike.user_id == user_id, PostLike.post_id.in_(post_ids)
            )
        )
        return set(result.scalars().all())

    @staticmethod
    def _as_response(
        post: Post, like_count: int, comment_count: int, liked_by_me: bool
    ) -> PostResponse:
        return PostResponse(
            id=post.id,
            content=post.content,
            author=UserSummary.model_validate(post.author),
            like_count=like_count,
            comment_count=comment_count,
            liked_by_me=liked_by_me,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
post_service = PostService()
