"""
Unit Tests for embedded comment threads
"""
import pytest
from sqlalchemy import select

from thesishub.core.exceptions import (
    AccessDeniedError,
    CommentNotFoundError,
    NotOwnerError,
    ValidationError,
)
from thesishub.models.notification import Notification, NotificationType
from thesishub.models.project import ProjectStatus
from thesishub.services.comment_service import CommentService, count_comments
from thesishub.services.project_service import ProjectService


async def stored_counts(db, project_id):
    project = await ProjectService(db).get_model(project_id)
    return project.comment_count, count_comments(project.comments)


class TestCountComments:
    def test_counts_replies(self):
        comments = [{"replies": [{}, {}]}, {"replies": []}, {}]
        assert count_comments(comments) == 5

    def test_empty(self):
        assert count_comments([]) == 0


class TestComments:
    @pytest.mark.asyncio
    async def test_add_comment(self, db_session, as_caller, student, other_student, make_project):
        project = await make_project(student)
        caller = await as_caller(other_student)

        comment = await CommentService(db_session).add_comment(caller, project.id, "  Nice work!  ")
        assert comment.content == "Nice work!"
        assert comment.author_id == other_student.id
        assert comment.replies == []
        assert await stored_counts(db_session, project.id) == (1, 1)

    @pytest.mark.asyncio
    async def test_empty_or_long_content_rejected(self, db_session, as_caller, student, make_project):
        project = await make_project(student)
        caller = await as_caller(student)
        service = CommentService(db_session)
        with pytest.raises(ValidationError):
            await service.add_comment(caller, project.id, "   ")
        with pytest.raises(ValidationError):
            await service.add_comment(caller, project.id, "x" * 2001)

    @pytest.mark.asyncio
    async def test_cannot_comment_on_hidden_project(self, db_session, as_caller, student, other_student,
                                                    make_project):
        project = await make_project(student, ProjectStatus.REJECTED)
        with pytest.raises(AccessDeniedError):
            await CommentService(db_session).add_comment(await as_caller(other_student), project.id, "hi")

    @pytest.mark.asyncio
    async def test_only_author_edits(self, db_session, as_caller, student, other_student, admin_user,
                                     make_project):
        project = await make_project(student)
        service = CommentService(db_session)
        comment = await service.add_comment(await as_caller(other_student), project.id, "first")

        with pytest.raises(NotOwnerError):
            await service.edit_comment(await as_caller(student), project.id, comment.id, "hijack")
        with pytest.raises(NotOwnerError):
            await service.edit_comment(await as_caller(admin_user), project.id, comment.id, "admin edit")

        edited = await service.edit_comment(await as_caller(other_student), project.id, comment.id, "second")
        assert edited.content == "second"
        assert edited.updated_at is not None
        assert await stored_counts(db_session, project.id) == (1, 1)

    @pytest.mark.asyncio
    async def test_delete_removes_replies(self, db_session, as_caller, student, other_student, make_project):
        project = await make_project(student)
        service = CommentService(db_session)
        author = await as_caller(other_student)
        owner = await as_caller(student)

        keep = await service.add_comment(owner, project.id, "keep me")
        doomed = await service.add_comment(author, project.id, "delete me")
        for text in ("r1", "r2", "r3"):
            await service.add_reply(owner, project.id, doomed.id, text)
        await service.add_reply(author, project.id, keep.id, "r4")
        assert await stored_counts(db_session, project.id) == (6, 6)

        remaining = await service.delete_comment(author, project.id, doomed.id)
        assert remaining == 2
        assert await stored_counts(db_session, project.id) == (2, 2)

    @pytest.mark.asyncio
    async def test_delete_by_stranger_denied_admin_allowed(self, db_session, as_caller, student, other_student,
                                                           admin_user, make_project):
        project = await make_project(student)
        service = CommentService(db_session)
        comment = await service.add_comment(await as_caller(other_student), project.id, "text")

        with pytest.raises(NotOwnerError):
            await service.delete_comment(await as_caller(student), project.id, comment.id)
        assert await service.delete_comment(await as_caller(admin_user), project.id, comment.id) == 0

    @pytest.mark.asyncio
    async def test_missing_comment(self, db_session, as_caller, student, make_project):
        project = await make_project(student)
        with pytest.raises(CommentNotFoundError):
            await CommentService(db_session).delete_comment(await as_caller(student), project.id, "nope")


class TestReplies:
    @pytest.mark.asyncio
    async def test_reply_edit_and_delete(self, db_session, as_caller, student, other_student, make_project):
        project = await make_project(student)
        service = CommentService(db_session)
        owner = await as_caller(student)
        guest = await as_caller(other_student)

        comment = await service.add_comment(owner, project.id, "question?")
        reply = await service.add_reply(guest, project.id, comment.id, "answer")
        assert await stored_counts(db_session, project.id) == (2, 2)

        with pytest.raises(NotOwnerError):
            await service.edit_reply(owner, project.id, comment.id, reply.id, "not mine")
        edited = await service.edit_reply(guest, project.id, comment.id, reply.id, "better answer")
        assert edited.content == "better answer"

        with pytest.raises(NotOwnerError):
            await service.delete_reply(owner, project.id, comment.id, reply.id)
        assert await service.delete_reply(guest, project.id, comment.id, reply.id) == 1
        assert await stored_counts(db_session, project.id) == (1, 1)

    @pytest.mark.asyncio
    async def test_replies_are_one_level(self, db_session, as_caller, student, make_project):
        project = await make_project(student)
        service = CommentService(db_session)
        caller = await as_caller(student)
        comment = await service.add_comment(caller, project.id, "top")
        reply = await service.add_reply(caller, project.id, comment.id, "child")

        # A reply id is not a comment id
        with pytest.raises(CommentNotFoundError):
            await service.add_reply(caller, project.id, reply.id, "grandchild")

        listed = await service.list_comments(caller, project.id)
        assert len(listed) == 1
        assert [r.content for r in listed[0].replies] == ["child"]

    @pytest.mark.asyncio
    async def test_notifications(self, db_session, as_caller, student, other_student, make_project):
        project = await make_project(student)
        service = CommentService(db_session)

        comment = await service.add_comment(await as_caller(student), project.id, "own comment")
        await service.add_reply(await as_caller(other_student), project.id, comment.id, "reply")
        await service.add_comment(await as_caller(other_student), project.id, "guest comment")

        rows = (await db_session.execute(select(Notification).order_by(Notification.created_at))).scalars().all()
        assert sorted((n.recipient_id, n.type.value) for n in rows) == sorted([
            (student.id, NotificationType.REPLY.value),
            (student.id, NotificationType.COMMENT.value),
        ])
