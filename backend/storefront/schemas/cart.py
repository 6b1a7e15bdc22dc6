from pydantic import Field

from storefront.schemas.common import CamelModel


class CartItemAdd(CamelModel):
    product_id: int
    quantity: int = Field(1, ge=1)


class CartItemUpdate(CamelModel):
    product_id: int
    # Zero or negative removes the line
    quantity: int
