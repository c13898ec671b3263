"""
Pytest configuration and shared fixtures.
"""
from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from callbridge.calls.dependencies import (
    get_call_client,
    get_crm_client,
    get_registry_reader,
)
from callbridge.config import Settings, get_settings
from callbridge.crm.client import ContactRecord
from callbridge.main import create_app
from callbridge.registry.schemas import (
    Agent,
    AssignmentRecord,
    CallMode,
    RegistrySnapshot,
    TelephonyIdentity,
)

from helpers import (
    AGENT_PHONE,
    CONTACT_MOBILE,
    CONTACT_PHONE,
    ONE_LEG_NUMBER,
    PUBLIC_BASE,
    TWO_LEG_NUMBER,
    FakeCrm,
    FakeDispatcher,
    StaticRegistry,
)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        app_env="dev",
        database_url="sqlite+aiosqlite:///:memory:",
        database_auto_create=False,
        public_base_url=PUBLIC_BASE,
        hubspot_private_app_token="test-hubspot-token",
        twiml_app_sid="AP_FALLBACK",
        webhook_secret="",
    )


@pytest.fixture
def two_leg_identity() -> TelephonyIdentity:
    return TelephonyIdentity(
        account_sid="AC_TWO_LEG",
        auth_token="two_leg_auth_token",
        number=TWO_LEG_NUMBER,
    )


@pytest.fixture
def one_leg_identity() -> TelephonyIdentity:
    return TelephonyIdentity(
        account_sid="AC_ONE_LEG",
        auth_token="one_leg_auth_token",
        number=ONE_LEG_NUMBER,
        twiml_app_sid="AP_ONE_LEG",
    )


@pytest.fixture
def snapshot(
    two_leg_identity: TelephonyIdentity,
    one_leg_identity: TelephonyIdentity,
) -> RegistrySnapshot:
    return RegistrySnapshot(
        telephony_identities=[two_leg_identity, one_leg_identity],
        agents=[
            Agent(name="agent1", phone=AGENT_PHONE),
            Agent(name="alice", phone="+15556666666"),
        ],
        assignments=[
            AssignmentRecord(agent="agent1", mode=CallMode.TWO_LEG, identity_number=TWO_LEG_NUMBER),
            AssignmentRecord(agent="alice", mode=CallMode.ONE_LEG, identity_number=ONE_LEG_NUMBER),
        ],
    )


@pytest.fixture
def registry(snapshot: RegistrySnapshot) -> StaticRegistry:
    return StaticRegistry(snapshot)


@pytest.fixture
def contact() -> ContactRecord:
    return ContactRecord(
        id="123",
        phone=CONTACT_PHONE,
        mobilephone=CONTACT_MOBILE,
        owner_id="agent1",
    )


@pytest.fixture
def crm(contact: ContactRecord) -> FakeCrm:
    return FakeCrm(contacts={contact.id: contact})


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest_asyncio.fixture
async def async_client(
    test_settings: Settings,
    registry: StaticRegistry,
    crm: FakeCrm,
    dispatcher: FakeDispatcher,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with every external collaborator faked."""
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_registry_reader] = lambda: registry
    app.dependency_overrides[get_crm_client] = lambda: crm
    app.dependency_overrides[get_call_client] = lambda: dispatcher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
