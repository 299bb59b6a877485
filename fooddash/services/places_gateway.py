"""Google Places (New) API gateway.

Turns a discovery intent into one request against the place-search
service and parses the optional-studded response. Non-success statuses
and transport problems come back as ``Failure`` values; a payload that
parses as JSON but does not match the expected shape raises, and is left
to the caller to convert.
"""

import logging
from collections.abc import Iterable
from typing import Any

import httpx

from fooddash.config import Config, get_config
from fooddash.models.place import (
    AutocompleteResponse,
    Coordinate,
    Place,
    PlaceDetailsResponse,
    PlaceSearchResponse,
    RawSuggestion,
)
from fooddash.models.result import Failure, FailureReason
from fooddash.services.cache import ResponseCache, get_response_cache

logger = logging.getLogger(__name__)

SEARCH_FIELD_MASK = "places.id,places.displayName,places.primaryType,places.photos"
RANK_BY_DISTANCE = "DISTANCE"


def _circle(center: Coordinate, radius_meters: float) -> dict[str, Any]:
    return {
        "circle": {
            "center": {"latitude": center.lat, "longitude": center.lng},
            "radius": float(radius_meters),
        }
    }


class PlacesGateway:
    """Client for nearby search, text search, autocomplete and place details.

    Successful responses are cached for ``places_cache_ttl_seconds`` keyed by
    the exact request, so repeated page loads within a day reuse results.
    """

    def __init__(
        self,
        config: Config | None = None,
        client: httpx.AsyncClient | None = None,
        cache: ResponseCache | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            config: Settings to use (defaults to the global config)
            client: Shared HTTP client; a short-lived one is opened per call if omitted
            cache: Response cache (defaults to the process-wide cache)
        """
        self.config = config or get_config()
        self.base_url = self.config.places_base_url.rstrip("/")
        self.client = client
        self.cache = cache if cache is not None else get_response_cache()

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_nearby(
        self,
        types: Iterable[str],
        center: Coordinate,
        radius_meters: float,
        max_results: int,
    ) -> list[Place] | Failure:
        """Nearby search restricted to any of ``types``.

        Results whose primary type is not one of ``types`` are dropped even
        though the request already restricts them server-side.
        """
        included = list(dict.fromkeys(types))
        body = {
            "includedTypes": included,
            "maxResultCount": max_results,
            "locationRestriction": _circle(center, radius_meters),
            "languageCode": self.config.places_language_code,
        }
        places = await self._search("places:searchNearby", body, "Nearby search")
        if isinstance(places, Failure):
            return places

        allowed = set(included)
        matching = [p for p in places if p.primary_type and p.primary_type in allowed]
        if len(matching) != len(places):
            logger.debug(
                f"Dropped {len(places) - len(matching)} places outside requested types"
            )
        return matching

    async def search_nearby_single_type(
        self,
        place_type: str,
        center: Coordinate,
        radius_meters: float,
        max_results: int = 10,
        rank_by: str | None = RANK_BY_DISTANCE,
    ) -> list[Place] | Failure:
        """Nearby search for places whose primary type is ``place_type``."""
        body: dict[str, Any] = {
            "includedPrimaryTypes": [place_type],
            "maxResultCount": max_results,
            "locationRestriction": _circle(center, radius_meters),
            "languageCode": self.config.places_language_code,
        }
        if rank_by:
            body["rankPreference"] = rank_by
        return await self._search("places:searchNearby", body, "Nearby search")

    async def search_by_text(
        self,
        query: str,
        center: Coordinate,
        radius_meters: float,
        page_size: int = 10,
        rank_by: str | None = RANK_BY_DISTANCE,
    ) -> list[Place] | Failure:
        """Free-text search biased (not restricted) towards ``center``."""
        body: dict[str, Any] = {
            "textQuery": query,
            "pageSize": page_size,
            "locationBias": _circle(center, radius_meters),
            "languageCode": self.config.places_language_code,
        }
        if rank_by:
            body["rankPreference"] = rank_by
        return await self._search("places:searchText", body, "Text search")

    async def _search(
        self, path: str, body: dict[str, Any], operation: str
    ) -> list[Place] | Failure:
        payload = await self._request(
            "POST", path, operation, json_body=body, field_mask=SEARCH_FIELD_MASK
        )
        if isinstance(payload, Failure):
            return payload

        response = PlaceSearchResponse.model_validate(payload)
        return list(response.places or [])

    # ------------------------------------------------------------------
    # Autocomplete / details
    # ------------------------------------------------------------------

    async def autocomplete(
        self,
        input_text: str,
        session_token: str,
        center: Coordinate,
        radius_meters: float,
        restrict_to_category: bool,
        category: str = "restaurant",
    ) -> list[RawSuggestion] | Failure:
        """Autocomplete predictions for ``input_text``.

        With ``restrict_to_category`` predictions are limited to ``category``
        and may include free-text query predictions; otherwise only
        specific-place predictions are requested.
        """
        body: dict[str, Any] = {
            "input": input_text,
            "sessionToken": session_token,
            "locationBias": _circle(center, radius_meters),
            "languageCode": self.config.places_language_code,
            "regionCode": self.config.places_region_code,
        }
        if restrict_to_category:
            body["includeQueryPredictions"] = True
            body["includedPrimaryTypes"] = [category]

        payload = await self._request(
            "POST", "places:autocomplete", "Autocomplete", json_body=body
        )
        if isinstance(payload, Failure):
            return payload

        response = AutocompleteResponse.model_validate(payload)
        return list(response.suggestions or [])

    async def get_details(
        self,
        place_id: str,
        fields: Iterable[str],
        session_token: str | None = None,
    ) -> PlaceDetailsResponse | Failure:
        """Fetch only the requested ``fields`` of a place.

        A requested field missing from the upstream payload is left as ``None``.
        """
        requested = list(dict.fromkeys(fields))
        params = {"languageCode": self.config.places_language_code}
        if session_token:
            params["sessionToken"] = session_token

        payload = await self._request(
            "GET",
            f"places/{place_id}",
            "Place details",
            params=params,
            field_mask=",".join(requested),
        )
        if isinstance(payload, Failure):
            return payload

        subset = {key: value for key, value in payload.items() if key in requested}
        return PlaceDetailsResponse.model_validate(subset)

    def resolve_photo_url(self, photo_resource_name: str, max_width_px: int = 400) -> str:
        """Build the media URL for a photo resource name (no network call)."""
        return (
            f"{self.base_url}/{photo_resource_name}/media"
            f"?key={self.config.google_api_key}&maxWidthPx={max_width_px}"
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _headers(self, field_mask: str | None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.config.google_api_key,
        }
        if field_mask:
            headers["X-Goog-FieldMask"] = field_mask
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        json_body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        field_mask: str | None = None,
    ) -> dict[str, Any] | Failure:
        url = f"{self.base_url}/{path}"
        cache_key = {
            "method": method,
            "url": url,
            "params": params,
            "body": json_body,
            "field_mask": field_mask,
        }
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"{operation}: cache hit for {path}")
            return cached

        try:
            if self.client is not None:
                response = await self.client.request(
                    method,
                    url,
                    json=json_body,
                    params=params,
                    headers=self._headers(field_mask),
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.request(
                        method,
                        url,
                        json=json_body,
                        params=params,
                        headers=self._headers(field_mask),
                    )
        except httpx.HTTPError as e:
            logger.error(f"{operation} transport error: {e}")
            return Failure(
                reason=FailureReason.TRANSPORT_ERROR,
                message=f"{operation} request could not be completed",
            )

        if not response.is_success:
            logger.error(
                f"{operation} failed with status {response.status_code}: "
                f"{response.text[:500]}"
            )
            return Failure(
                reason=FailureReason.UPSTREAM_ERROR,
                status_code=response.status_code,
                message=f"{operation} request failed with status {response.status_code}",
            )

        try:
            payload = response.json()
        except ValueError:
            logger.exception(f"{operation} returned a non-JSON body")
            return Failure(
                reason=FailureReason.TRANSPORT_ERROR,
                status_code=response.status_code,
                message=f"{operation} returned an unreadable response",
            )

        if not isinstance(payload, dict):
            msg = f"{operation} returned unexpected payload type {type(payload).__name__}"
            raise TypeError(msg)

        self.cache.set(cache_key, payload)
        return payload
