"""
Configuration registry repository.

The call-routing core only needs `RegistryReader.snapshot()`; writes go
through `RegistryRepository.replace()` from the config endpoints.
"""

from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from callbridge.registry.models import AgentRow, AssignmentRow, TelephonyIdentityRow
from callbridge.registry.schemas import (
    Agent,
    AssignmentRecord,
    RegistryReplaceRequest,
    RegistrySnapshot,
    TelephonyIdentity,
)
from callbridge.shared.logging import get_logger

logger = get_logger(__name__)


class RegistryReader(Protocol):
    """Read capability over the current registry contents."""

    async def snapshot(self) -> RegistrySnapshot:
        """Return all identities, agents and assignments in registry order."""
        ...


class RegistryRepository:
    """Repository for registry database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def snapshot(self) -> RegistrySnapshot:
        """Load the three record sets, each ordered by primary key."""
        identities = await self._session.scalars(
            select(TelephonyIdentityRow).order_by(TelephonyIdentityRow.id)
        )
        agents = await self._session.scalars(select(AgentRow).order_by(AgentRow.id))
        assignments = await self._session.scalars(
            select(AssignmentRow).order_by(AssignmentRow.id)
        )

        return RegistrySnapshot(
            telephony_identities=[TelephonyIdentity.model_validate(r) for r in identities],
            agents=[Agent.model_validate(r) for r in agents],
            assignments=[AssignmentRecord.model_validate(r) for r in assignments],
        )

    async def replace(self, request: RegistryReplaceRequest) -> None:
        """Replace each provided record set wholesale.

        Sets that are None in the request are left untouched. The caller's
        session commit makes the replacement atomic.

        Args:
            request: Validated replacement sets.
        """
        if request.telephony_identities is not None:
            await self._session.execute(delete(TelephonyIdentityRow))
            self._session.add_all(
                TelephonyIdentityRow(**identity.model_dump())
                for identity in request.telephony_identities
            )
            logger.info(
                "Telephony identities replaced",
                extra={"count": len(request.telephony_identities)},
            )

        if request.agents is not None:
            await self._session.execute(delete(AgentRow))
            self._session.add_all(AgentRow(**agent.model_dump()) for agent in request.agents)
            logger.info("Agents replaced", extra={"count": len(request.agents)})

        if request.assignments is not None:
            await self._session.execute(delete(AssignmentRow))
            self._session.add_all(
                AssignmentRow(**assignment.model_dump()) for assignment in request.assignments
            )
            logger.info("Assignments replaced", extra={"count": len(request.assignments)})

        await self._session.flush()
