import pytest
from httpx import ASGITransport, AsyncClient

from main import app
from services.school_management.controllers.auth_service import issue_access_token
from services.school_management.models import User, UserRole
from shared.auth import get_password_hash
from shared.db import Base, build_engine, build_sessionmaker, get_db

API = "/api/v1"
SUPERADMIN_EMAIL = "superadmin@system.com"
SUPERADMIN_PASSWORD = "SuperAdmin@123"


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def superadmin(session_factory):
    async with session_factory() as session:
        user = User(
            name="System Super Admin",
            email=SUPERADMIN_EMAIL,
            hashed_password=get_password_hash(SUPERADMIN_PASSWORD),
            role=UserRole.SUPERADMIN,
        )
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
def superadmin_headers(superadmin):
    return bearer(issue_access_token(superadmin))


@pytest.fixture
def login_as(client):
    async def _login(email, password):
        resp = await client.post(f"{API}/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return bearer(resp.json()["accessToken"])

    return _login


@pytest.fixture
def create_school(client, superadmin_headers):
    async def _create(name="Lincoln", code="LIN01", admin_email="admin@lincoln.edu", **extra):
        body = {
            "name": name,
            "code": code,
            "adminName": f"{name} Admin",
            "adminEmail": admin_email,
            "adminPhone": "9876543210",
            **extra,
        }
        resp = await client.post(f"{API}/superadmin/schools", json=body, headers=superadmin_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


@pytest.fixture
async def school(create_school):
    return await create_school(district="Springfield", studentCount=420)


@pytest.fixture
def school_id(school):
    return school["school"]["id"]


@pytest.fixture
async def admin_headers(school, login_as):
    return await login_as("admin@lincoln.edu", school["temporaryPassword"])


@pytest.fixture
def create_tutor(client, superadmin_headers):
    async def _create(school_id, name="Jane", email="jane@lincoln.edu", phone="9000000001"):
        resp = await client.post(
            f"{API}/schools/{school_id}/tutors",
            json={"name": name, "email": email, "phone": phone},
            headers=superadmin_headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


@pytest.fixture
def create_grade(client, superadmin_headers):
    async def _create(school_id, name="Grade 1", sections=None, **extra):
        if sections is None:
            sections = [{"name": "A", "subjects": ["English", "Maths"]}]
        resp = await client.post(
            f"{API}/schools/{school_id}/grades",
            json={"gradeName": name, "sections": sections, **extra},
            headers=superadmin_headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create
