"""Page-level restaurant discovery built on the Places gateway."""

import asyncio
import logging
from collections.abc import Awaitable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fooddash.config import Config, get_config
from fooddash.errors import ValidationError
from fooddash.models.menu import CategoryMenu
from fooddash.models.place import Coordinate, Place, PlaceDetails, RawSuggestion
from fooddash.models.restaurant import AddressSuggestion, Restaurant, RestaurantSuggestion
from fooddash.models.result import Failure, Result
from fooddash.services.menu_aggregator import MenuAggregator
from fooddash.services.places_gateway import PlacesGateway
from fooddash.services.transformer import transform_place_details, transform_place_results

logger = logging.getLogger(__name__)

# Place types shown in the "nearby" listing
RESTAURANT_TYPES = (
    "japanese_restaurant",
    "cafe",
    "cafeteria",
    "coffee_shop",
    "chinese_restaurant",
    "fast_food_restaurant",
    "hamburger_restaurant",
    "french_restaurant",
    "italian_restaurant",
    "pizza_restaurant",
    "ramen_restaurant",
    "sushi_restaurant",
    "korean_restaurant",
    "indian_restaurant",
)
SPECIALTY_TYPE = "ramen_restaurant"

NEARBY_RADIUS_METERS = 500.0
SPECIALTY_RADIUS_METERS = 1000.0
KEYWORD_RADIUS_METERS = 1000.0
CATEGORY_RADIUS_METERS = 500.0
RESTAURANT_AUTOCOMPLETE_RADIUS_METERS = 500.0
ADDRESS_AUTOCOMPLETE_RADIUS_METERS = 1000.0
MAX_RESULTS = 10

DETAIL_FIELDS = ("displayName", "photos", "primaryType")
GENERIC_ERROR = "Failed to fetch restaurants"


class HomeListings(BaseModel):
    """Both listings of the home page; each is independently data or error."""

    nearby: Result
    specialty: Result


class RestaurantDetail(BaseModel):
    """A restaurant page: place details plus its grouped menus."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    restaurant: PlaceDetails
    category_menus: list[CategoryMenu] = Field(default_factory=list)
    menu_error: str | None = None


def to_restaurant_suggestions(suggestions: list[RawSuggestion]) -> list[RestaurantSuggestion]:
    """Normalize restaurant autocomplete results, dropping unusable entries."""
    results = []
    for suggestion in suggestions:
        place = suggestion.place_prediction
        query = suggestion.query_prediction
        main_text = (
            place.structured_format.main_text
            if place and place.structured_format
            else None
        )
        if place and place.place_id and main_text and main_text.text:
            results.append(
                RestaurantSuggestion(
                    type="placePrediction",
                    place_id=place.place_id,
                    place_name=main_text.text,
                )
            )
        elif query and query.text and query.text.text:
            results.append(
                RestaurantSuggestion(type="queryPrediction", place_name=query.text.text)
            )
    return results


def to_address_suggestions(suggestions: list[RawSuggestion]) -> list[AddressSuggestion]:
    """Keep only place predictions that carry an ID, a name and an address."""
    results = []
    for suggestion in suggestions:
        place = suggestion.place_prediction
        if not place or not place.structured_format:
            continue
        fmt = place.structured_format
        name = fmt.main_text.text if fmt.main_text else None
        address_text = fmt.secondary_text.text if fmt.secondary_text else None
        if place.place_id and name and address_text:
            results.append(
                AddressSuggestion(
                    place_id=place.place_id, place_name=name, address_text=address_text
                )
            )
    return results


class DiscoveryService:
    """Composes gateway calls and result transformation per use case.

    Every operation returns ``Result`` with either ``data`` or ``error``;
    an empty listing is a success. Unexpected exceptions from the gateway
    are logged and turned into an error result.
    """

    def __init__(
        self,
        gateway: PlacesGateway,
        menus: MenuAggregator | None = None,
        config: Config | None = None,
    ) -> None:
        self.gateway = gateway
        self.menus = menus
        self.config = config or get_config()

    def _to_restaurants(self, places: list[Place]) -> list[Restaurant]:
        return transform_place_results(
            places, self.gateway.resolve_photo_url, self.config.placeholder_photo_url
        )

    async def _listing(
        self, call: Awaitable[list[Place] | Failure], use_case: str
    ) -> Result[list[Restaurant]]:
        try:
            places = await call
        except Exception:
            logger.exception(f"Unexpected error while fetching {use_case}")
            return Result.failure(GENERIC_ERROR)

        if isinstance(places, Failure):
            return Result.failure(places.message)

        restaurants = self._to_restaurants(places)
        logger.info(f"{use_case}: {len(restaurants)} restaurants")
        return Result.success(restaurants)

    async def nearby_restaurants(self, center: Coordinate) -> Result[list[Restaurant]]:
        """Restaurants of any listed type within 500 m."""
        return await self._listing(
            self.gateway.search_nearby(
                RESTAURANT_TYPES, center, NEARBY_RADIUS_METERS, MAX_RESULTS
            ),
            "nearby restaurants",
        )

    async def nearby_specialty(self, center: Coordinate) -> Result[list[Restaurant]]:
        """Ramen restaurants within 1000 m, closest first."""
        return await self._listing(
            self.gateway.search_nearby_single_type(
                SPECIALTY_TYPE, center, SPECIALTY_RADIUS_METERS, MAX_RESULTS
            ),
            "nearby specialty",
        )

    async def by_keyword(self, query: str, center: Coordinate) -> Result[list[Restaurant]]:
        """Text search biased to 1000 m around ``center``, closest first."""
        return await self._listing(
            self.gateway.search_by_text(query, center, KEYWORD_RADIUS_METERS, MAX_RESULTS),
            f"keyword '{query}'",
        )

    async def by_category(self, category: str, center: Coordinate) -> Result[list[Restaurant]]:
        """Restaurants of a single primary type within 500 m."""
        return await self._listing(
            self.gateway.search_nearby_single_type(
                category, center, CATEGORY_RADIUS_METERS, MAX_RESULTS, rank_by=None
            ),
            f"category '{category}'",
        )

    async def home(self, center: Coordinate) -> HomeListings:
        """Fetch both home listings concurrently and wait for both."""
        nearby, specialty = await asyncio.gather(
            self.nearby_restaurants(center), self.nearby_specialty(center)
        )
        return HomeListings(nearby=nearby, specialty=specialty)

    # ------------------------------------------------------------------
    # Autocomplete
    # ------------------------------------------------------------------

    async def restaurant_autocomplete(
        self, input_text: str, session_token: str
    ) -> Result[list[RestaurantSuggestion]]:
        """Restaurant suggestions, including free-text query predictions."""
        _require_autocomplete_params(input_text, session_token)
        center = Coordinate(
            lat=self.config.autocomplete_latitude, lng=self.config.autocomplete_longitude
        )
        try:
            raw = await self.gateway.autocomplete(
                input_text,
                session_token,
                center,
                RESTAURANT_AUTOCOMPLETE_RADIUS_METERS,
                restrict_to_category=True,
            )
        except Exception:
            logger.exception("Unexpected error during restaurant autocomplete")
            return Result.failure("Internal server error")

        if isinstance(raw, Failure):
            return Result.failure(raw.message)
        return Result.success(to_restaurant_suggestions(raw))

    async def address_autocomplete(
        self, input_text: str, session_token: str, center: Coordinate | None = None
    ) -> Result[list[AddressSuggestion]]:
        """Address suggestions (specific places only) near ``center``."""
        _require_autocomplete_params(input_text, session_token)
        if center is None:
            center = Coordinate(
                lat=self.config.autocomplete_latitude,
                lng=self.config.autocomplete_longitude,
            )
        try:
            raw = await self.gateway.autocomplete(
                input_text,
                session_token,
                center,
                ADDRESS_AUTOCOMPLETE_RADIUS_METERS,
                restrict_to_category=False,
            )
        except Exception:
            logger.exception("Unexpected error during address autocomplete")
            return Result.failure("Internal server error")

        if isinstance(raw, Failure):
            return Result.failure(raw.message)
        return Result.success(to_address_suggestions(raw))

    # ------------------------------------------------------------------
    # Restaurant page
    # ------------------------------------------------------------------

    async def restaurant_detail(
        self,
        place_id: str,
        session_token: str | None = None,
        menu_query: str | None = None,
    ) -> Result[RestaurantDetail]:
        """Place details plus menus matching the place's primary type."""
        try:
            details = await self.gateway.get_details(place_id, DETAIL_FIELDS, session_token)
        except Exception:
            logger.exception(f"Unexpected error fetching details for {place_id}")
            return Result.failure("Failed to fetch restaurant details")

        if isinstance(details, Failure):
            return Result.failure(details.message)

        restaurant = transform_place_details(details, self.gateway.resolve_photo_url)
        detail = RestaurantDetail(restaurant=restaurant)

        if restaurant.primary_type and self.menus is not None:
            menus = self.menus.fetch_category_menus(restaurant.primary_type, menu_query)
            if isinstance(menus, Failure):
                detail.menu_error = menus.message
            else:
                detail.category_menus = menus

        return Result.success(detail)


def _require_autocomplete_params(input_text: str, session_token: str) -> None:
    if not input_text:
        msg = "Input is required"
        raise ValidationError(msg)
    if not session_token:
        msg = "Session token is required"
        raise ValidationError(msg)
