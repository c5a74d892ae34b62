"""
Society Management - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test_society.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['LOG_FILE'] = ''
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['SMTP_USER'] = ''
os.environ['SMTP_PASSWORD'] = ''

from society.main import app
from society.core.database import Base, get_db
from society.core.security import get_password_hash, create_access_token
from society.models.user import User, UserRole
from society.models.flat import Flat, FlatStatus
from society.services.notifier import notifier

fake = Faker()

TEST_PASSWORD = 'resident-pass-123'

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test_society.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh schema and session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    # Outstanding email tasks must not outlive the test loop
    await notifier.drain()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers_for(user: User) -> dict:
    token = create_access_token({'sub': str(user.id), 'role': user.role.value})
    return {'Authorization': f'Bearer {token}'}


async def create_flat(
    db: AsyncSession,
    wing: str = 'A',
    flat_no: str = '101',
    status: FlatStatus = FlatStatus.VACANT,
    **fields,
) -> Flat:
    flat = Flat(wing=wing, flat_no=flat_no, status=status, **fields)
    db.add(flat)
    await db.commit()
    await db.refresh(flat)
    return flat


async def create_resident(
    db: AsyncSession,
    flat: Optional[Flat] = None,
    verified: bool = True,
    active: bool = True,
    **fields,
) -> User:
    """Resident account, linked to ``flat`` (which becomes permanent) when given"""
    user = User(
        name=fields.pop('name', fake.name()),
        email=fields.pop('email', fake.unique.email()),
        hashed_password=get_password_hash(fields.pop('password', TEST_PASSWORD)),
        phone=fields.pop('phone', '9000000001'),
        role=UserRole.RESIDENT,
        is_verified=verified,
        is_active=active,
        **fields,
    )
    if flat is not None:
        user.wing = flat.wing
        user.flat_no = flat.flat_no
    db.add(user)
    await db.flush()
    if flat is not None:
        user.flat_id = flat.id
        flat.occupy(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create the admin account"""
    user = User(
        name='Society Admin',
        email=fake.unique.email(),
        hashed_password=get_password_hash('adminpassword123'),
        phone='9876543210',
        role=UserRole.ADMIN,
        is_active=True,
        is_verified=True
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return auth_headers_for(admin_user)


@pytest_asyncio.fixture
async def flat_a101(db_session: AsyncSession) -> Flat:
    return await create_flat(db_session, 'A', '101', owner_name='Owner A101')


@pytest_asyncio.fixture
async def resident_a101(db_session: AsyncSession, flat_a101: Flat) -> User:
    """Verified resident U1 living in A-101"""
    return await create_resident(db_session, flat_a101, name='Resident One')


@pytest.fixture
def resident_headers(resident_a101: User) -> dict:
    return auth_headers_for(resident_a101)
