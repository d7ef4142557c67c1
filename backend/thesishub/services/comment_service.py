"""
Comment Service - two-level comment threads embedded in a project

The whole thread is read, modified and written back in one UPDATE together
with ``comment_count``. Concurrent writers to the same project can lose each
other's changes; the counter is always recomputed from the written array so
it never drifts from it.
"""
import copy
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from thesishub.core.exceptions import CommentNotFoundError, NotOwnerError, ValidationError
from thesishub.core.logging_config import logger
from thesishub.core.types import generate_uuid, utcnow
from thesishub.models.project import Project
from thesishub.modules.auth.dependencies import Caller
from thesishub.schemas.project import CommentResponse, ReplyResponse
from thesishub.services.notification_service import Notifier
from thesishub.services.project_service import ProjectService

CONTENT_MAX_CHARS = 2000


def count_comments(comments: List[dict]) -> int:
    """Top-level comments plus their replies"""
    return sum(1 + len(c.get("replies") or []) for c in comments)


def normalize_content(content: Optional[str]) -> str:
    text = (content or "").strip()
    if not text:
        raise ValidationError("Comment cannot be empty", field="content")
    if len(text) > CONTENT_MAX_CHARS:
        raise ValidationError(f"Comment cannot exceed {CONTENT_MAX_CHARS} characters", field="content")
    return text


def _entry(caller: Caller, content: str) -> dict:
    now = utcnow().isoformat()
    return {
        "id": generate_uuid(),
        "author_id": caller.id,
        "author_name": caller.display_name,
        "author_photo_url": caller.photo_url,
        "content": content,
        "created_at": now,
        "updated_at": None,
    }


def _find(items: List[dict], item_id: str) -> Tuple[int, dict]:
    for index, item in enumerate(items):
        if item.get("id") == item_id:
            return index, item
    raise CommentNotFoundError(item_id)


class CommentService:
    def __init__(self, db: AsyncSession, notifier: Optional[Notifier] = None):
        self.db = db
        self.notifier = notifier or Notifier(db)
        self.projects = ProjectService(db, notifier=self.notifier)

    async def _load(self, caller: Optional[Caller], project_id: str) -> Tuple[Project, List[dict]]:
        project = await self.projects.get_readable(caller, project_id, lock=True)
        # Deep copy so the JSON column sees a new value on assignment
        return project, copy.deepcopy(list(project.comments or []))

    async def _save(self, project: Project, comments: List[dict]) -> None:
        project.comments = comments
        project.comment_count = count_comments(comments)
        await self.db.commit()

    async def list_comments(self, caller: Optional[Caller], project_id: str) -> List[CommentResponse]:
        project = await self.projects.get_readable(caller, project_id)
        return [CommentResponse.model_validate(c) for c in (project.comments or [])]

    # ========== Comments ==========

    async def add_comment(self, caller: Caller, project_id: str, content: str) -> CommentResponse:
        text = normalize_content(content)
        project, comments = await self._load(caller, project_id)

        comment = {**_entry(caller, text), "replies": []}
        comments.append(comment)
        await self._save(project, comments)

        result = CommentResponse.model_validate(comment)
        await self.notifier.comment_added(
            project.author_id, caller.id, caller.display_name, project.id, project.title, comment["id"]
        )
        return result

    async def edit_comment(self, caller: Caller, project_id: str, comment_id: str, content: str) -> CommentResponse:
        text = normalize_content(content)
        project, comments = await self._load(caller, project_id)

        _, comment = _find(comments, comment_id)
        if comment.get("author_id") != caller.id:
            raise NotOwnerError("You can only edit your own comments")
        comment["content"] = text
        comment["updated_at"] = utcnow().isoformat()
        await self._save(project, comments)
        return CommentResponse.model_validate(comment)

    async def delete_comment(self, caller: Caller, project_id: str, comment_id: str) -> int:
        """Removes the comment and its replies; returns the new comment_count"""
        project, comments = await self._load(caller, project_id)

        index, comment = _find(comments, comment_id)
        if comment.get("author_id") != caller.id and not caller.is_admin:
            raise NotOwnerError("You can only delete your own comments")
        del comments[index]
        await self._save(project, comments)
        logger.info(
            f"Comment {comment_id} deleted with {len(comment.get('replies') or [])} replies",
            extra={"project_id": project.id, "deleted_by": caller.id},
        )
        return project.comment_count

    # ========== Replies ==========

    async def add_reply(self, caller: Caller, project_id: str, comment_id: str, content: str) -> ReplyResponse:
        text = normalize_content(content)
        project, comments = await self._load(caller, project_id)

        _, comment = _find(comments, comment_id)
        reply = _entry(caller, text)
        comment.setdefault("replies", []).append(reply)
        await self._save(project, comments)

        result = ReplyResponse.model_validate(reply)
        await self.notifier.reply_added(
            comment["author_id"], caller.id, caller.display_name, project.id, project.title, comment_id
        )
        return result

    async def edit_reply(self, caller: Caller, project_id: str, comment_id: str, reply_id: str,
                         content: str) -> ReplyResponse:
        text = normalize_content(content)
        project, comments = await self._load(caller, project_id)

        _, comment = _find(comments, comment_id)
        _, reply = _find(comment.get("replies") or [], reply_id)
        if reply.get("author_id") != caller.id:
            raise NotOwnerError("You can only edit your own replies")
        reply["content"] = text
        reply["updated_at"] = utcnow().isoformat()
        await self._save(project, comments)
        return ReplyResponse.model_validate(reply)

    async def delete_reply(self, caller: Caller, project_id: str, comment_id: str, reply_id: str) -> int:
        project, comments = await self._load(caller, project_id)

        _, comment = _find(comments, comment_id)
        replies = comment.get("replies") or []
        index, reply = _find(replies, reply_id)
        if reply.get("author_id") != caller.id and not caller.is_admin:
            raise NotOwnerError("You can only delete your own replies")
        del replies[index]
        comment["replies"] = replies
        await self._save(project, comments)
        return project.comment_count
