"""Inventory listing and replacement endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from showroom.api.dependencies import get_inventory
from showroom.core.auth import verify_api_key
from showroom.core.rate_limit import RateLimitCategory, rate_limit
from showroom.schemas.vehicle import (
    InventoryReplaceRequest,
    InventoryReplaceResponse,
    VehicleListResponse,
)
from showroom.services.inventory import InventoryStore

router = APIRouter(prefix="/vehicles", tags=["Inventory"])


@router.get(
    "",
    response_model=VehicleListResponse,
    dependencies=[Depends(rate_limit(RateLimitCategory.GENERAL))],
)
def list_vehicles(inventory: InventoryStore = Depends(get_inventory)) -> VehicleListResponse:
    vehicles = list(inventory.vehicles)
    return VehicleListResponse(vehicles=vehicles, total=len(vehicles))


@router.put(
    "",
    response_model=InventoryReplaceResponse,
    dependencies=[
        Depends(rate_limit(RateLimitCategory.UPLOAD)),
        Depends(verify_api_key),
    ],
)
def replace_vehicles(
    body: InventoryReplaceRequest,
    inventory: InventoryStore = Depends(get_inventory),
) -> InventoryReplaceResponse:
    """Replace the whole inventory and rebuild the search index.

    Raises:
        ValidationAppError: 400 when two listings share an id.
    """

    index_size = inventory.replace(body.vehicles)
    return InventoryReplaceResponse(total=len(inventory), index_size=index_size)
