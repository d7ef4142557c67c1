"""
ThesisHub - Test Configuration and Fixtures
"""
import os
import tempfile
from typing import AsyncGenerator, Callable, Optional
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['IDENTITY_JWT_SECRET'] = 'test-identity-secret-for-testing-only'
os.environ['IDENTITY_AUDIENCE'] = ''
os.environ['IDENTITY_ISSUER'] = ''
os.environ['STORAGE_MODE'] = 'local'
os.environ['LOCAL_STORAGE_PATH'] = tempfile.mkdtemp(prefix='thesishub-storage-')
os.environ['LOG_FILE'] = ''
os.environ['STUDENT_EMAIL_DOMAIN'] = 'ugrad.iiuc.ac.bd'
os.environ['SUPERVISOR_EMAIL_DOMAIN'] = 'iiuc.ac.bd'

from thesishub.main import app
from thesishub.core.database import Base, get_db, json_serializer
from thesishub.core.security import Identity, create_identity_token
from thesishub.models.project import Project, ProjectStatus
from thesishub.models.user import User, UserRole
from thesishub.modules.auth.dependencies import Caller, load_caller

fake = Faker()

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, json_serializer=json_serializer)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)

VALID_ABSTRACT = (
    "<p>This thesis studies <strong>automated grading</strong> of programming assignments "
    "using static analysis and test generation, and evaluates it on three university courses.</p>"
)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


# ========== Users ==========

@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable:
    """Factory: await make_user(role=..., is_admin=..., **fields)"""
    async def _make(role: Optional[UserRole] = UserRole.STUDENT, is_admin: bool = False, **fields) -> User:
        domain = 'iiuc.ac.bd' if role == UserRole.SUPERVISOR else 'ugrad.iiuc.ac.bd'
        user = User(
            id=fields.pop('id', fake.uuid4()),
            email=fields.pop('email', f"{fake.user_name()}{fake.random_int(1000, 9999)}@{domain}"),
            name=fields.pop('name', fake.name()),
            role=role,
            is_admin=is_admin,
            skills=[],
            research_areas=fields.pop('research_areas', []),
            social_links={},
            supervised_projects=[],
            recently_viewed=[],
            **fields
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _make


@pytest.fixture
async def student(make_user) -> User:
    return await make_user(UserRole.STUDENT)


@pytest.fixture
async def other_student(make_user) -> User:
    return await make_user(UserRole.STUDENT)


@pytest.fixture
async def supervisor(make_user) -> User:
    return await make_user(UserRole.SUPERVISOR, department='Computer Science')


@pytest.fixture
async def admin_user(make_user) -> User:
    return await make_user(UserRole.SUPERVISOR, is_admin=True)


def auth_headers_for(user: User) -> dict:
    """Bearer header for a token the identity resolver accepts"""
    token = create_identity_token(user.id, user.email, user.name)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def student_headers(student: User) -> dict:
    return auth_headers_for(student)


@pytest.fixture
def other_student_headers(other_student: User) -> dict:
    return auth_headers_for(other_student)


@pytest.fixture
def supervisor_headers(supervisor: User) -> dict:
    return auth_headers_for(supervisor)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return auth_headers_for(admin_user)


@pytest.fixture
def as_caller(db_session: AsyncSession) -> Callable:
    """Factory: await as_caller(user) -> Caller as the auth dependency builds it"""
    async def _caller(user: User) -> Caller:
        return await load_caller(db_session, Identity(id=user.id, email=user.email, name=user.name))
    return _caller


# ========== Projects ==========

@pytest.fixture
def make_project(db_session: AsyncSession) -> Callable:
    """Factory: await make_project(author, status=..., **fields) stored directly"""
    async def _make(author: User, status: ProjectStatus = ProjectStatus.APPROVED, **fields) -> Project:
        values = {
            "title": fake.sentence(nb_words=5).rstrip("."),
            "abstract": VALID_ABSTRACT,
            "tech_stack": ["Python"],
            "tags": [],
            "year": 2024,
            "likes": [],
            "like_count": 0,
            "bookmarks": [],
            "view_count": 0,
            "comments": [],
            "comment_count": 0,
        }
        values.update(fields)
        project = Project(
            author_id=author.id,
            author_name=author.name,
            author_email=author.email,
            status=status,
            **values
        )
        db_session.add(project)
        await db_session.commit()
        await db_session.refresh(project)
        return project
    return _make
