"""Pydantic schemas for vehicle listings."""

from typing import Literal

from pydantic import BaseModel, Field


class Vehicle(BaseModel):
    """A single listing in the dealership inventory."""

    id: str = Field(..., min_length=1, description="Stable listing identifier.")
    name: str = Field(..., description="Display name, e.g. 'Honda Civic EX'.")
    brand: str = Field("", description="Manufacturer, e.g. 'Honda'.")
    model: str = Field("", description="Model line, e.g. 'Civic'.")
    year: int = Field(0, ge=0, description="Model year.")
    price: int = Field(0, ge=0, description="Asking price in whole currency units.")
    kilometers: int = Field(0, ge=0, description="Odometer reading in kilometers.")
    transmission: Literal["manual", "automatic"] = Field("automatic")
    fuel_type: Literal["gasoline", "diesel", "hybrid", "electric"] = Field("gasoline")
    color: str = Field("")
    description: str = Field("")
    features: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    condition: Literal["new", "used"] = Field("used")
    category: str = Field("")
    is_active: bool = Field(True)


class VehicleListResponse(BaseModel):
    """Inventory listing response."""

    vehicles: list[Vehicle]
    total: int


class InventoryReplaceRequest(BaseModel):
    """Full replacement of the inventory collection."""

    vehicles: list[Vehicle] = Field(..., description="New ordered vehicle collection.")


class InventoryReplaceResponse(BaseModel):
    total: int = Field(..., description="Number of vehicles now in the inventory.")
    index_size: int = Field(..., description="Number of search keys in the rebuilt index.")
