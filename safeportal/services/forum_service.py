"""
ForumService - community posts and comments.

Reads are open to every authenticated identity; writes belong to the author.
Each committed change is announced on the change feed so open forum views
can re-fetch.
"""

import uuid
from typing import List

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from safeportal.core import policies
from safeportal.core.exceptions import NotFound, PolicyViolation
from safeportal.core.policies import Principal
from safeportal.models.forum import ForumPost, ForumComment
from safeportal.services.realtime import ChangeEvent, change_feed

logger = structlog.get_logger()


class ForumService:

    # Posts

    @staticmethod
    async def create_post(db: AsyncSession, principal: Principal, title: str, content: str) -> ForumPost:
        post = ForumPost(user_id=principal.user_id, title=title, content=content, upvotes=0)
        db.add(post)
        await db.commit()
        await db.refresh(post)
        await change_feed.publish(ChangeEvent("forum_posts", "INSERT", post.id, post.user_id))
        return post

    @staticmethod
    async def list_posts(db: AsyncSession) -> List[ForumPost]:
        result = await db.execute(select(ForumPost).order_by(ForumPost.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def get_post(db: AsyncSession, post_id: uuid.UUID) -> ForumPost:
        post = await db.get(ForumPost, post_id)
        if not post:
            raise NotFound("Post not found")
        return post

    @staticmethod
    async def update_post(db: AsyncSession, principal: Principal, post_id: uuid.UUID, changes: dict) -> ForumPost:
        post = await ForumService.get_post(db, post_id)
        if not policies.can_modify_forum_row(principal, post):
            raise PolicyViolation("Users can only edit their own posts")
        for key, value in changes.items():
            setattr(post, key, value)
        await db.commit()
        await db.refresh(post)
        await change_feed.publish(ChangeEvent("forum_posts", "UPDATE", post.id, post.user_id))
        return post

    @staticmethod
    async def delete_post(db: AsyncSession, principal: Principal, post_id: uuid.UUID) -> None:
        post = await ForumService.get_post(db, post_id)
        if not policies.can_modify_forum_row(principal, post):
            raise PolicyViolation("Users can only delete their own posts")
        await db.execute(delete(ForumComment).where(ForumComment.post_id == post_id))
        await db.delete(post)
        await db.commit()
        logger.info("forum_post_deleted", post_id=str(post_id))
        await change_feed.publish(ChangeEvent("forum_posts", "DELETE", post_id, principal.user_id))

    @staticmethod
    async def upvote(db: AsyncSession, principal: Principal, post_id: uuid.UUID) -> ForumPost:
        """
        Single-statement increment so concurrent upvotes are never lost.
        updated_at is pinned to its current value: an upvote changes nothing
        but the counter.
        """
        post = await ForumService.get_post(db, post_id)
        await db.execute(
            update(ForumPost)
            .where(ForumPost.id == post_id)
            .values(upvotes=ForumPost.upvotes + 1, updated_at=ForumPost.updated_at)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        await db.refresh(post)
        await change_feed.publish(ChangeEvent("forum_posts", "UPDATE", post.id, post.user_id))
        return post

    # Comments

    @staticmethod
    async def add_comment(db: AsyncSession, principal: Principal, post_id: uuid.UUID, content: str) -> ForumComment:
        await ForumService.get_post(db, post_id)
        comment = ForumComment(post_id=post_id, user_id=principal.user_id, content=content)
        db.add(comment)
        await db.commit()
        await db.refresh(comment)
        await change_feed.publish(ChangeEvent("forum_comments", "INSERT", comment.id, comment.user_id))
        return comment

    @staticmethod
    async def list_comments(db: AsyncSession, post_id: uuid.UUID) -> List[ForumComment]:
        await ForumService.get_post(db, post_id)
        stmt = (
            select(ForumComment)
            .where(ForumComment.post_id == post_id)
            .order_by(ForumComment.created_at.asc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def _get_comment(db: AsyncSession, comment_id: uuid.UUID) -> ForumComment:
        comment = await db.get(ForumComment, comment_id)
        if not comment:
            raise NotFound("Comment not found")
        return comment

    @staticmethod
    async def update_comment(db: AsyncSession, principal: Principal, comment_id: uuid.UUID, content: str) -> ForumComment:
        comment = await ForumService._get_comment(db, comment_id)
        if not policies.can_modify_forum_row(principal, comment):
            raise PolicyViolation("Users can only edit their own comments")
        comment.content = content
        await db.commit()
        await db.refresh(comment)
        await change_feed.publish(ChangeEvent("forum_comments", "UPDATE", comment.id, comment.user_id))
        return comment

    @staticmethod
    async def delete_comment(db: AsyncSession, principal: Principal, comment_id: uuid.UUID) -> None:
        comment = await ForumService._get_comment(db, comment_id)
        if not policies.can_modify_forum_row(principal, comment):
            raise PolicyViolation("Users can only delete their own comments")
        await db.delete(comment)
        await db.commit()
        await change_feed.publish(ChangeEvent("forum_comments", "DELETE", comment_id, principal.user_id))
