from datetime import datetime
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, ConfigDict, Field


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    handle: Optional[str] = None
    title: Optional[str] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    status: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    available: bool = False
    inventory_qty: int = 0
    image_src: Optional[str] = None
    color: Optional[str] = None
    number: Optional[str] = None
    number_num: Optional[float] = None
    craft: Optional[str] = None
    hand_dye: bool = False
    metafields: Dict[str, Optional[str]] = Field(default_factory=dict)
    collections: List[str] = Field(default_factory=list)
    updated_at: Optional[datetime] = None


class ProductListOut(BaseModel):
    total: int
    page: int
    limit: int
    pages: int
    products: List[ProductOut]


class SyncAcceptedOut(BaseModel):
    message: str


class HealthOut(BaseModel):
    status: str
    shop: str
    products: int
    version: str
    database: Dict[str, Any] = Field(default_factory=dict)
    sync: Dict[str, Any] = Field(default_factory=dict)
