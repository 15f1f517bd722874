"""Fixtures for repository and model tests."""

import pytest
from faker import Faker
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.models import Conversation, Customer, Mailbox, User
from helpdesk.repositories import (
    BaseRepository,
    ConversationRepository,
    CustomerRepository,
    MailboxRepository,
    ThreadRepository,
    UserRepository,
)


@pytest.fixture(scope="session")
def fake() -> Faker:
    """Faker with a fixed seed so failures are reproducible."""
    faker = Faker()
    faker.seed_instance(1234)
    return faker


@pytest.fixture
async def base_repo(db_session: AsyncSession) -> BaseRepository[User]:
    """BaseRepository bound to the User model, for the generic CRUD tests."""
    return BaseRepository(User, db_session)


@pytest.fixture
async def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
async def mailbox_repository(db_session: AsyncSession) -> MailboxRepository:
    return MailboxRepository(db_session)


@pytest.fixture
async def customer_repository(db_session: AsyncSession) -> CustomerRepository:
    return CustomerRepository(db_session)


@pytest.fixture
async def conversation_repository(db_session: AsyncSession) -> ConversationRepository:
    return ConversationRepository(db_session)


@pytest.fixture
async def thread_repository(db_session: AsyncSession) -> ThreadRepository:
    return ThreadRepository(db_session)


@pytest.fixture
def sample_user_data() -> dict[str, str]:
    """Deterministic payload for `create()` calls."""
    return {
        "first_name": "Test",
        "last_name": "Agent",
        "email": "agent@example.com",
        "hashed_password": "s3cret",
    }


@pytest.fixture
async def create_user(base_repo: BaseRepository[User], fake: Faker):
    """
    Factory creating agents with unique emails:

        user = await create_user(first_name="Bob")
    """
    async def _create(**overrides) -> User:
        data = {
            "first_name": fake.first_name()[:20],
            "last_name": fake.last_name()[:30],
            "email": fake.unique.email(),
            "hashed_password": "pw",
            "is_active": True,
        }
        data.update(overrides)
        return await base_repo.create(**data)

    return _create


@pytest.fixture
async def created_user(create_user) -> User:
    return await create_user()


@pytest.fixture
async def mailbox(mailbox_repository: MailboxRepository, fake: Faker) -> Mailbox:
    """Mailbox with its shared folders."""
    return await mailbox_repository.create_mailbox(name="Support", email=fake.unique.company_email())


@pytest.fixture
async def customer(customer_repository: CustomerRepository, fake: Faker) -> Customer:
    return await customer_repository.create_customer(
        first_name=fake.first_name()[:20],
        last_name=fake.last_name()[:30],
        emails=[fake.unique.email()],
    )


@pytest.fixture
async def create_conversation(
    conversation_repository: ConversationRepository,
    mailbox: Mailbox,
    customer: Customer,
    fake: Faker,
):
    """
    Factory creating conversations in the `mailbox` fixture for the `customer` fixture:

        conversation = await create_conversation(status=ConversationStatus.PENDING)
    """
    async def _create(**overrides) -> Conversation:
        data = {
            "mailbox_id": mailbox.id,
            "customer_id": customer.id,
            "subject": fake.sentence(nb_words=5),
        }
        data.update(overrides)
        return await conversation_repository.create_conversation(**data)

    return _create
