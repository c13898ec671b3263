"""
FastAPI router for the configuration registry (read all / replace all).
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from callbridge.registry.repository import RegistryRepository
from callbridge.registry.schemas import RegistryReplaceRequest, RegistrySnapshot
from callbridge.shared.database import get_db_session
from callbridge.shared.exceptions import UpstreamError
from callbridge.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/config", tags=["config"])


def get_registry_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> RegistryRepository:
    return RegistryRepository(session)


@router.get("/all", response_model=RegistrySnapshot, response_model_by_alias=True)
async def read_all(
    repository: Annotated[RegistryRepository, Depends(get_registry_repository)],
) -> RegistrySnapshot:
    try:
        return await repository.snapshot()
    except SQLAlchemyError as e:
        logger.exception("Registry read failed")
        raise UpstreamError("Failed to fetch data") from e


@router.post("/all")
async def replace_all(
    body: RegistryReplaceRequest,
    repository: Annotated[RegistryRepository, Depends(get_registry_repository)],
) -> dict[str, Any]:
    """Replace one or more record sets; omitted sets are kept."""
    try:
        await repository.replace(body)
    except SQLAlchemyError as e:
        logger.exception("Registry write failed")
        raise UpstreamError("Failed to update config") from e
    return {"success": True}
