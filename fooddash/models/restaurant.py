"""Normalized restaurant and suggestion models."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Restaurant(BaseModel):
    """Restaurant information shown in listings."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    id: str = Field(..., description="Place ID")
    restaurant_name: str | None = Field(None, description="Display name")
    primary_type: str | None = Field(None, description="Primary place type")
    photo_url: str = Field(..., description="First photo URL or placeholder")


class RestaurantSuggestion(BaseModel):
    """Restaurant autocomplete entry (specific place or query text)."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    type: str = Field(..., description="placePrediction or queryPrediction")
    place_id: str | None = Field(None, description="Only set for placePrediction")
    place_name: str = Field(..., description="Display name or query text")


class AddressSuggestion(BaseModel):
    """Address autocomplete entry."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    place_id: str = Field(..., alias="placeId", min_length=1)
    place_name: str = Field(..., alias="placeName", min_length=1)
    address_text: str = Field(..., min_length=1)
