"""Data models for the Fooddash system."""

from fooddash.models.address import (
    Address,
    AddressResponse,
    RegisterAddressRequest,
    UserContext,
)
from fooddash.models.menu import FEATURED_BUCKET_ID, CategoryMenu, Menu
from fooddash.models.place import (
    Coordinate,
    Place,
    PlaceDetails,
    RawSuggestion,
)
from fooddash.models.restaurant import (
    AddressSuggestion,
    Restaurant,
    RestaurantSuggestion,
)
from fooddash.models.result import Failure, FailureReason, Result

__all__ = [
    "FEATURED_BUCKET_ID",
    "Address",
    "AddressResponse",
    "AddressSuggestion",
    "CategoryMenu",
    "Coordinate",
    "Failure",
    "FailureReason",
    "Menu",
    "Place",
    "PlaceDetails",
    "RawSuggestion",
    "RegisterAddressRequest",
    "Restaurant",
    "RestaurantSuggestion",
    "Result",
    "UserContext",
]
