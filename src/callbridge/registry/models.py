"""
SQLAlchemy models for the configuration registry.
"""

from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from callbridge.registry.schemas import CallMode
from callbridge.shared.database import Base


class TelephonyIdentityRow(Base):
    """Provisioned Twilio account/number pair."""

    __tablename__ = "telephony_identities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_sid: Mapped[str] = mapped_column(String(64), nullable=False)
    auth_token: Mapped[str] = mapped_column(String(128), nullable=False)
    number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    twiml_app_sid: Mapped[str | None] = mapped_column(String(64), nullable=True)
    api_key_sid: Mapped[str | None] = mapped_column(String(64), nullable=True)
    api_key_secret: Mapped[str | None] = mapped_column(String(128), nullable=True)


class AgentRow(Base):
    """Agent reachable by phone."""

    __tablename__ = "agents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)


class AssignmentRow(Base):
    """Agent -> identity binding for one call mode.

    Duplicates per (agent, mode) are allowed; lookups take the lowest id.
    """

    __tablename__ = "agent_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    agent: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    mode: Mapped[CallMode] = mapped_column(
        SQLEnum(
            CallMode,
            name="call_mode",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
    )
    identity_number: Mapped[str] = mapped_column(String(32), nullable=False)
