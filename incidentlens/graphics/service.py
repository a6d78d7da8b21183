import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from incidentlens.graphics.models import SavedGraphic
from incidentlens.graphics.schemas import GraphicCreate

logger = structlog.get_logger()


async def create_graphic(db: AsyncSession, data: GraphicCreate) -> SavedGraphic:
    graphic = SavedGraphic(**data.model_dump())
    db.add(graphic)
    await db.commit()
    await db.refresh(graphic)
    logger.info("graphic_saved", graphic_id=str(graphic.id), graphic_type=graphic.graphic_type)
    return graphic


async def get_graphics(db: AsyncSession) -> list[SavedGraphic]:
    result = await db.execute(select(SavedGraphic).order_by(SavedGraphic.created_at.desc()))
    return list(result.scalars().all())


async def get_graphic_by_id(db: AsyncSession, graphic_id: uuid.UUID) -> SavedGraphic | None:
    result = await db.execute(select(SavedGraphic).where(SavedGraphic.id == graphic_id))
    return result.scalar_one_or_none()


async def delete_graphic(db: AsyncSession, graphic: SavedGraphic) -> None:
    await db.delete(graphic)
    await db.commit()
