"""
Routing resolution: agent key + call mode -> telephony identity (and agent).
"""

from dataclasses import dataclass

from callbridge.registry.repository import RegistryReader
from callbridge.registry.schemas import (
    Agent,
    AssignmentRecord,
    CallMode,
    RegistrySnapshot,
    TelephonyIdentity,
)
from callbridge.shared.exceptions import ConfigurationError
from callbridge.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Route:
    """A resolved routing decision. `agent` is only set for two-leg routes."""

    mode: CallMode
    assignment: AssignmentRecord
    identity: TelephonyIdentity
    agent: Agent | None = None


def _reject(reason: str, agent_key: str | None, mode: CallMode) -> ConfigurationError:
    # The reason is logged only; callers always see the same message.
    logger.warning(
        "Routing resolution failed",
        extra={"reason": reason, "agent_key": agent_key, "mode": mode.value},
    )
    return ConfigurationError(details={"reason": reason})


def _find_assignment(
    snapshot: RegistrySnapshot,
    agent_key: str,
    mode: CallMode,
) -> AssignmentRecord | None:
    for assignment in snapshot.assignments:
        if assignment.agent != agent_key:
            continue
        # One-leg lookups skip other modes; two-leg lookups take the agent's
        # first assignment and reject it below if it is not two-leg.
        if mode is CallMode.ONE_LEG and assignment.mode is not CallMode.ONE_LEG:
            continue
        return assignment
    return None


def resolve_route(
    snapshot: RegistrySnapshot,
    agent_key: str | None,
    mode: CallMode,
) -> Route:
    """Resolve a route from a registry snapshot.

    Duplicate assignments resolve to the first in registry order.

    Raises:
        ConfigurationError: If any lookup misses or the mode does not match.
    """
    if not agent_key:
        raise _reject("missing_agent_key", agent_key, mode)

    assignment = _find_assignment(snapshot, agent_key, mode)
    if assignment is None:
        raise _reject("no_assignment", agent_key, mode)
    if assignment.mode is not mode:
        raise _reject("mode_mismatch", agent_key, mode)

    identity = next(
        (i for i in snapshot.telephony_identities if i.number == assignment.identity_number),
        None,
    )
    if identity is None:
        raise _reject("no_identity", agent_key, mode)

    agent = None
    if mode is CallMode.TWO_LEG:
        agent = next((a for a in snapshot.agents if a.name == assignment.agent), None)
        if agent is None:
            raise _reject("no_agent", agent_key, mode)

    return Route(mode=mode, assignment=assignment, identity=identity, agent=agent)


class RoutingResolver:
    """Resolves routes against the current registry contents on every call."""

    def __init__(self, registry: RegistryReader) -> None:
        self._registry = registry

    async def resolve(self, agent_key: str | None, mode: CallMode) -> Route:
        snapshot = await self._registry.snapshot()
        return resolve_route(snapshot, agent_key, mode)
