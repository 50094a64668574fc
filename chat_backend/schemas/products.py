"""
Pydantic schema for catalog products.

Products are immutable once loaded. The same model is used for the catalog
file, the in-memory catalog and the ``product`` field of /chat responses.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

# Catalog identifiers are either numbers or strings, never booleans.
ProductId = Union[StrictInt, StrictStr]

IdType = Literal["number", "string"]


class Product(BaseModel):
    """A recommendable product."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "프리미엄 가죽 하네스",
                "price": "72,000",
                "image": "https://placehold.co/100x100/A0522D/ffffff?text=Leather",
                "link": "https://poopky-mall.com/product/1",
                "description": "고급스러운 가죽 소재",
            }
        },
    )

    id: ProductId = Field(
        ...,
        description="Identifier, unique within the catalog"
    )
    name: str = Field(..., min_length=1, description="Display name")
    price: str = Field(..., description="Display price, already formatted")
    image: str = Field(..., description="Image URL")
    link: str = Field(..., description="Product page URL")
    description: Optional[str] = Field(
        None,
        description="Short features used in the model manifest (never shown verbatim)"
    )
