import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from incidentlens.database import get_db
from incidentlens.graphics.schemas import GraphicCreate, GraphicResponse
from incidentlens.graphics.service import create_graphic, delete_graphic, get_graphic_by_id, get_graphics
from incidentlens.schemas import DeletedResponse, Envelope

router = APIRouter(prefix="/graphics", tags=["graphics"])


@router.post("", response_model=Envelope[GraphicResponse], status_code=status.HTTP_201_CREATED)
async def create(
    data: GraphicCreate,
    db: AsyncSession = Depends(get_db),
):
    graphic = await create_graphic(db, data)
    return Envelope(data=GraphicResponse.model_validate(graphic))


@router.get("", response_model=Envelope[list[GraphicResponse]])
async def list_graphics(db: AsyncSession = Depends(get_db)):
    graphics = await get_graphics(db)
    return Envelope(data=[GraphicResponse.model_validate(g) for g in graphics])


@router.delete("/{graphic_id}", response_model=Envelope[DeletedResponse])
async def delete(
    graphic_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    graphic = await get_graphic_by_id(db, graphic_id)
    if not graphic:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Graphic not found")
    await delete_graphic(db, graphic)
    return Envelope(data=DeletedResponse(id=graphic_id))
