from typing import Any, List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from safeportal.db.session import get_db
from safeportal.api import deps
from safeportal.core.policies import Principal
from safeportal.schemas.forum import (
    PostCreate,
    PostUpdate,
    PostResponse,
    CommentCreate,
    CommentResponse,
)
from safeportal.services.forum_service import ForumService

router = APIRouter()


@router.get("/posts", response_model=List[PostResponse])
async def read_posts(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    """
    All posts, newest first.
    """
    return await ForumService.list_posts(db)


@router.post("/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await ForumService.create_post(db, principal, payload.title, payload.content)


@router.get("/posts/{post_id}", response_model=PostResponse)
async def read_post(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await ForumService.get_post(db, post_id)


@router.patch("/posts/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: UUID,
    payload: PostUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await ForumService.update_post(db, principal, post_id, payload.model_dump(exclude_unset=True))


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
):
    await ForumService.delete_post(db, principal, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/posts/{post_id}/upvote", response_model=PostResponse)
async def upvote_post(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await ForumService.upvote(db, principal, post_id)


@router.get("/posts/{post_id}/comments", response_model=List[CommentResponse])
async def read_comments(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    """
    Comments of a post, oldest first.
    """
    return await ForumService.list_comments(db, post_id)


@router.post("/posts/{post_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: UUID,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await ForumService.add_comment(db, principal, post_id, payload.content)


@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: UUID,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await ForumService.update_comment(db, principal, comment_id, payload.content)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
):
    await ForumService.delete_comment(db, principal, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
