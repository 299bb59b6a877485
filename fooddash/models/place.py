"""Data models for the external place-search service.

Every field returned by the Places API is optional; consumers must treat
absence as a valid state rather than an error.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PlacesModel(BaseModel):
    """Base for raw Places API payloads (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class Coordinate(BaseModel):
    """A latitude/longitude pair used as a search center."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude")
    lng: float = Field(..., ge=-180.0, le=180.0, description="Longitude")


class LocalizedText(PlacesModel):
    text: str | None = None
    language_code: str | None = None


class PlacePhoto(PlacesModel):
    name: str | None = Field(None, description="Photo resource name")


class LatLng(PlacesModel):
    latitude: float | None = None
    longitude: float | None = None


class Place(PlacesModel):
    """A single place as returned by nearby or text search."""

    id: str = Field(..., description="Place ID")
    display_name: LocalizedText | None = None
    primary_type: str | None = None
    photos: list[PlacePhoto] | None = None


class PlaceSearchResponse(PlacesModel):
    places: list[Place] | None = None


class StructuredFormat(PlacesModel):
    main_text: LocalizedText | None = None
    secondary_text: LocalizedText | None = None


class PlacePrediction(PlacesModel):
    place: str | None = None
    place_id: str | None = None
    structured_format: StructuredFormat | None = None


class QueryPrediction(PlacesModel):
    text: LocalizedText | None = None


class RawSuggestion(PlacesModel):
    """One autocomplete suggestion: a place or a free-text query prediction."""

    place_prediction: PlacePrediction | None = None
    query_prediction: QueryPrediction | None = None


class AutocompleteResponse(PlacesModel):
    suggestions: list[RawSuggestion] | None = None


class PlaceDetailsResponse(PlacesModel):
    """Raw place-details payload restricted by the requested field mask."""

    location: LatLng | None = None
    display_name: LocalizedText | None = None
    primary_type: str | None = None
    photos: list[PlacePhoto] | None = None


class PlaceDetails(BaseModel):
    """Requested subset of place details; absent fields stay ``None``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    location: LatLng | None = None
    display_name: str | None = None
    primary_type: str | None = None
    photo_url: str | None = None
