from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_serializer,
    field_validator,
)
from pydantic_core import PydanticCustomError

_url = TypeAdapter(AnyUrl)


class ProductIn(BaseModel):
    """Rules shared by the create and update product requests."""

    name: str = Field(max_length=255)
    description: str
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    stock_quantity: int = Field(ge=0, le=2**31 - 1)
    sku: Optional[str] = Field(default=None, max_length=255)
    image: Optional[str] = None

    @field_validator("image")
    @classmethod
    def image_is_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            _url.validate_python(value)
        except ValidationError:
            raise PydanticCustomError("url", "Input should be a valid URL")
        # keep the caller's spelling, AnyUrl would normalise it
        return value


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    price: Decimal
    stock_quantity: int
    sku: Optional[str] = None
    image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_serializer("price")
    def _price_two_places(self, price: Decimal) -> str:
        return f"{price:.2f}"
