from typing import List, Optional

from pydantic import Field, field_validator

from storefront.core.config import settings
from storefront.schemas.common import CamelModel


class ProductImage(CamelModel):
    """One entry of a product gallery"""
    id: Optional[str] = None
    url: str = Field(..., min_length=1)
    filename: Optional[str] = None
    is_primary: bool = False
    order: int = 0


def _check_gallery_size(images: Optional[List[ProductImage]]) -> Optional[List[ProductImage]]:
    if images is not None and len(images) > settings.MAX_PRODUCT_IMAGES:
        raise ValueError(f"A product can have at most {settings.MAX_PRODUCT_IMAGES} images")
    return images


class ProductCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., ge=0)
    image: Optional[str] = None
    images: List[ProductImage] = Field(default_factory=list)
    image_id: Optional[str] = None
    rating: float = Field(0, ge=0, le=5)
    reviews: int = Field(0, ge=0)
    category: str = Field(..., min_length=1)
    in_stock: bool = True
    description: str = ""

    @field_validator('images')
    @classmethod
    def check_images(cls, v):
        return _check_gallery_size(v)


class ProductUpdate(CamelModel):
    """Partial update - only fields present in the body are applied"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    images: Optional[List[ProductImage]] = None
    image_id: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    reviews: Optional[int] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1)
    in_stock: Optional[bool] = None
    description: Optional[str] = None

    @field_validator('images')
    @classmethod
    def check_images(cls, v):
        return _check_gallery_size(v)
