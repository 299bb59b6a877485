"""Menu models."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

FEATURED_BUCKET_ID = "featured"
FEATURED_BUCKET_NAME = "注目商品"


class Menu(BaseModel):
    """A single menu item with its public image URL."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    id: int = Field(..., description="Menu row ID")
    name: str = Field(..., description="Menu item name")
    photo_url: str = Field(..., description="Public image URL")
    price: int = Field(..., ge=0, description="Price in yen")


class CategoryMenu(BaseModel):
    """Menu items grouped for display."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(
        ..., description="Bucket ID ('featured' or the category, prefixed on collision)"
    )
    category_name: str = Field(..., description="Display name")
    items: list[Menu] = Field(default_factory=list)
