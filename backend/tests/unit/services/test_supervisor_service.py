"""
Unit Tests for the supervisor directory
"""
import pytest

from thesishub.core.exceptions import AccessDeniedError, SupervisorNotFoundError
from thesishub.models.project import ProjectStatus
from thesishub.models.user import UserRole
from thesishub.schemas.user import SupervisorProfileUpdate
from thesishub.services.project_service import ProjectService
from thesishub.services.supervisor_service import SupervisorService


async def supervise(make_project, author, supervisor, status=ProjectStatus.APPROVED, **fields):
    return await make_project(author, status, supervisor_id=supervisor.id, supervisor_name=supervisor.name,
                              supervisor_department=supervisor.department, **fields)


class TestDirectory:
    @pytest.mark.asyncio
    async def test_list_with_load(self, db_session, make_user, student, make_project):
        busy = await make_user(UserRole.SUPERVISOR, name="Busy Bee", max_students=2)
        await make_user(UserRole.SUPERVISOR, name="Able Free")
        await supervise(make_project, student, busy)
        await supervise(make_project, student, busy, ProjectStatus.PENDING)

        listed = await SupervisorService(db_session).list_supervisors()
        assert [s["name"] for s in listed] == ["Able Free", "Busy Bee"]
        assert listed[1]["supervised_count"] == 2
        assert listed[1]["available_slots"] == 0
        assert listed[0]["available_slots"] == 5

    @pytest.mark.asyncio
    async def test_browse_filters_and_finished_projects(self, db_session, make_user, student, make_project):
        ai = await make_user(UserRole.SUPERVISOR, department="CSE", research_areas=["Machine Learning"])
        await make_user(UserRole.SUPERVISOR, department="EEE", research_areas=["Power Systems"])
        await supervise(make_project, student, ai, ProjectStatus.COMPLETED, title="Finished one")
        await supervise(make_project, student, ai, ProjectStatus.APPROVED, title="Still running")

        service = SupervisorService(db_session)
        by_area = await service.browse(research_area="machine")
        assert [s["id"] for s in by_area["items"]] == [ai.id]
        assert [p["title"] for p in by_area["items"][0]["recent_projects"]] == ["Finished one"]

        by_department = await service.browse(department="eee")
        assert by_department["total"] == 1

    @pytest.mark.asyncio
    async def test_profile_hides_non_public_projects(self, db_session, student, supervisor, make_project):
        await supervise(make_project, student, supervisor, ProjectStatus.APPROVED)
        await supervise(make_project, student, supervisor, ProjectStatus.REJECTED)

        profile = await SupervisorService(db_session).profile(None, supervisor.id)
        assert profile["stats"]["total_projects"] == 2
        assert profile["stats"]["projects_by_status"]["rejected"] == 1
        assert len(profile["recent_projects"]) == 1

    @pytest.mark.asyncio
    async def test_profile_of_non_supervisor(self, db_session, student):
        with pytest.raises(SupervisorNotFoundError):
            await SupervisorService(db_session).profile(None, student.id)


class TestSupervisedProjects:
    @pytest.mark.asyncio
    async def test_visibility(self, db_session, as_caller, student, supervisor, make_project):
        await supervise(make_project, student, supervisor, ProjectStatus.APPROVED)
        await supervise(make_project, student, supervisor, ProjectStatus.REJECTED)
        service = SupervisorService(db_session)

        public = await service.supervised_projects(None, supervisor.id)
        assert public["total"] == 1
        own = await service.supervised_projects(await as_caller(supervisor), supervisor.id)
        assert own["total"] == 2
        rejected = await service.supervised_projects(await as_caller(supervisor), supervisor.id, status="rejected")
        assert rejected["total"] == 1

    @pytest.mark.asyncio
    async def test_students(self, db_session, as_caller, student, other_student, supervisor, make_project):
        await supervise(make_project, student, supervisor)
        await supervise(make_project, student, supervisor)
        await supervise(make_project, other_student, supervisor)
        service = SupervisorService(db_session)

        students = await service.students(await as_caller(supervisor), supervisor.id)
        counts = {s["id"]: s["project_count"] for s in students}
        assert counts == {student.id: 2, other_student.id: 1}

        with pytest.raises(AccessDeniedError):
            await service.students(await as_caller(student), supervisor.id)

    @pytest.mark.asyncio
    async def test_stats_self_or_admin(self, db_session, as_caller, student, supervisor, admin_user,
                                       make_project):
        await supervise(make_project, student, supervisor, ProjectStatus.PENDING, year=2023)
        await supervise(make_project, student, supervisor, ProjectStatus.APPROVED, year=2024)
        service = SupervisorService(db_session)

        stats = await service.stats(await as_caller(supervisor), supervisor.id)
        assert stats["total_students"] == 1
        assert stats["pending_reviews"] == 1
        assert stats["projects_by_year"] == {"2023": 1, "2024": 1}
        assert len(stats["recent_activity"]) == 2

        assert (await service.stats(await as_caller(admin_user), supervisor.id))["total_projects"] == 2
        with pytest.raises(AccessDeniedError):
            await service.stats(await as_caller(student), supervisor.id)


class TestUpdateProfile:
    @pytest.mark.asyncio
    async def test_department_change_is_denormalised(self, db_session, as_caller, student, supervisor,
                                                     make_project):
        project = await supervise(make_project, student, supervisor)
        result = await SupervisorService(db_session).update_profile(
            await as_caller(supervisor), supervisor.id,
            SupervisorProfileUpdate(department="Data Science", research_areas=[" NLP ", ""], max_students=8),
        )
        assert result["department"] == "Data Science"
        assert result["research_areas"] == ["NLP"]
        assert result["max_students"] == 8

        stored = await ProjectService(db_session).get_model(project.id)
        assert stored.supervisor_department == "Data Science"

    @pytest.mark.asyncio
    async def test_only_self_or_admin(self, db_session, as_caller, supervisor, make_user):
        colleague = await make_user(UserRole.SUPERVISOR)
        with pytest.raises(AccessDeniedError):
            await SupervisorService(db_session).update_profile(
                await as_caller(colleague), supervisor.id, SupervisorProfileUpdate(bio="hacked")
            )
