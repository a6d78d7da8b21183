"""Response envelope shared by every router: ``{"success": true, "data": ...}``.

Errors use the same shape with ``error`` instead of ``data`` (see
``incidentlens.middleware.error_handler``).
"""

from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T


class DeletedResponse(BaseModel):
    id: UUID
    deleted: bool = True
