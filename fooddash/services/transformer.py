"""Map raw place records into normalized restaurants."""

from collections.abc import Callable, Iterable

from fooddash.models.place import Place, PlaceDetails, PlaceDetailsResponse, PlacePhoto
from fooddash.models.restaurant import Restaurant


def first_photo_name(photos: list[PlacePhoto] | None) -> str | None:
    """Return the resource name of the first photo, if any."""
    if not photos:
        return None
    return photos[0].name or None


def transform_place_results(
    places: Iterable[Place],
    resolve_photo_url: Callable[[str], str],
    placeholder_url: str,
) -> list[Restaurant]:
    """Convert places to restaurants, preserving input order.

    No filtering happens here; missing optional fields map to ``None`` or the
    placeholder image.
    """
    restaurants = []
    for place in places:
        photo_name = first_photo_name(place.photos)
        restaurants.append(
            Restaurant(
                id=place.id,
                restaurant_name=place.display_name.text if place.display_name else None,
                primary_type=place.primary_type,
                photo_url=resolve_photo_url(photo_name) if photo_name else placeholder_url,
            )
        )
    return restaurants


def transform_place_details(
    details: PlaceDetailsResponse,
    resolve_photo_url: Callable[[str], str],
) -> PlaceDetails:
    """Flatten a details payload; only fields present upstream are set."""
    photo_name = first_photo_name(details.photos)
    return PlaceDetails(
        location=details.location,
        display_name=details.display_name.text if details.display_name else None,
        primary_type=details.primary_type,
        photo_url=resolve_photo_url(photo_name) if photo_name else None,
    )
