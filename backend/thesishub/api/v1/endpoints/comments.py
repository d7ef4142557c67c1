"""
Project comment threads

Comments and their replies live inside the project row; these routes are
mounted under /projects/{project_id}/comments.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.database import get_db
from thesishub.modules.auth.dependencies import Caller, get_caller, get_optional_caller
from thesishub.schemas.project import CommentCreate, CommentDeleteResponse, CommentResponse, ReplyResponse
from thesishub.services.comment_service import CommentService

router = APIRouter()


@router.get("/{project_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    project_id: str,
    caller: Optional[Caller] = Depends(get_optional_caller),
    db: AsyncSession = Depends(get_db),
):
    return await CommentService(db).list_comments(caller, project_id)


@router.post("/{project_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    project_id: str,
    body: CommentCreate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await CommentService(db).add_comment(caller, project_id, body.content)


@router.put("/{project_id}/comments/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    project_id: str,
    comment_id: str,
    body: CommentCreate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Only the comment's author may edit it"""
    return await CommentService(db).edit_comment(caller, project_id, comment_id, body.content)


@router.delete("/{project_id}/comments/{comment_id}", response_model=CommentDeleteResponse)
async def delete_comment(
    project_id: str,
    comment_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Author or admin; removes the replies too"""
    count = await CommentService(db).delete_comment(caller, project_id, comment_id)
    return CommentDeleteResponse(comment_count=count)


@router.post(
    "/{project_id}/comments/{comment_id}/replies",
    response_model=ReplyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_reply(
    project_id: str,
    comment_id: str,
    body: CommentCreate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await CommentService(db).add_reply(caller, project_id, comment_id, body.content)


@router.put("/{project_id}/comments/{comment_id}/replies/{reply_id}", response_model=ReplyResponse)
async def edit_reply(
    project_id: str,
    comment_id: str,
    reply_id: str,
    body: CommentCreate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    return await CommentService(db).edit_reply(caller, project_id, comment_id, reply_id, body.content)


@router.delete(
    "/{project_id}/comments/{comment_id}/replies/{reply_id}",
    response_model=CommentDeleteResponse,
)
async def delete_reply(
    project_id: str,
    comment_id: str,
    reply_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    count = await CommentService(db).delete_reply(caller, project_id, comment_id, reply_id)
    return CommentDeleteResponse(comment_count=count)
