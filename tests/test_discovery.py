"""Tests for the discovery orchestrator."""

from types import SimpleNamespace

import httpx
import pytest

from fooddash.database import MenuRepository
from fooddash.errors import ValidationError
from fooddash.models import Coordinate
from fooddash.models.place import AutocompleteResponse
from fooddash.services.discovery import (
    RESTAURANT_TYPES,
    DiscoveryService,
    to_address_suggestions,
    to_restaurant_suggestions,
)
from fooddash.services.menu_aggregator import MenuAggregator
from fooddash.services.storage import StorageResolver

SHIBUYA = Coordinate(lat=35.6669248, lng=139.6514163)


@pytest.fixture
def menu_repository(database):
    return MenuRepository(database)


@pytest.fixture
def discovery(gateway, menu_repository, config):
    menus = MenuAggregator(menu_repository, StorageResolver(config))
    return DiscoveryService(gateway, menus, config)


class TestListings:
    """Tests for listing use cases."""

    @pytest.mark.asyncio
    async def test_nearby_drops_disallowed_types(self, discovery, places_api, make_place):
        """Test 3 allowed places plus 1 disallowed yields 3 restaurants."""
        places_api.reply(
            "places:searchNearby",
            payload={
                "places": [
                    make_place("a", primary_type="cafe"),
                    make_place("b", primary_type="ramen_restaurant"),
                    make_place("c", primary_type="italian_restaurant"),
                    make_place("d", primary_type="convenience_store"),
                ]
            },
        )

        result = await discovery.nearby_restaurants(SHIBUYA)

        assert result.ok
        assert len(result.data) == 3
        body = places_api.last_body()
        assert body["includedTypes"] == list(RESTAURANT_TYPES)
        assert body["locationRestriction"]["circle"]["radius"] == 500.0
        assert body["maxResultCount"] == 10

    @pytest.mark.asyncio
    async def test_specialty_parameters(self, discovery, places_api):
        """Test the ramen listing radius and ranking."""
        places_api.reply("places:searchNearby", payload={})

        result = await discovery.nearby_specialty(SHIBUYA)

        assert result.ok
        assert result.data == []
        body = places_api.last_body()
        assert body["includedPrimaryTypes"] == ["ramen_restaurant"]
        assert body["locationRestriction"]["circle"]["radius"] == 1000.0
        assert body["rankPreference"] == "DISTANCE"

    @pytest.mark.asyncio
    async def test_keyword_search(self, discovery, places_api, make_place):
        """Test text search biased around the given center."""
        places_api.reply("places:searchText", payload={"places": [make_place("k")]})

        result = await discovery.by_keyword("つけ麺", SHIBUYA)

        assert [r.id for r in result.data] == ["k"]
        body = places_api.last_body()
        assert body["locationBias"]["circle"]["center"]["latitude"] == SHIBUYA.lat
        assert body["locationBias"]["circle"]["radius"] == 1000.0

    @pytest.mark.asyncio
    async def test_category_search_has_no_ranking(self, discovery, places_api):
        """Test category search parameters."""
        places_api.reply("places:searchNearby", payload={})

        await discovery.by_category("sushi_restaurant", SHIBUYA)

        body = places_api.last_body()
        assert body["includedPrimaryTypes"] == ["sushi_restaurant"]
        assert body["locationRestriction"]["circle"]["radius"] == 500.0
        assert "rankPreference" not in body

    @pytest.mark.asyncio
    async def test_upstream_500_is_an_error_result(self, discovery, places_api):
        """Test that an upstream failure is returned, not raised."""
        places_api.reply("places:searchText", status_code=500, payload={})

        result = await discovery.by_keyword("寿司", SHIBUYA)

        assert result.ok is False
        assert result.data is None
        assert "500" in result.error

    @pytest.mark.asyncio
    async def test_malformed_payload_is_an_error_result(self, discovery, places_api):
        """Test that unexpected exceptions are converted at the boundary."""
        places_api.reply("places:searchNearby", payload={"places": [{"noId": True}]})

        result = await discovery.nearby_specialty(SHIBUYA)

        assert result.ok is False
        assert result.error == "Failed to fetch restaurants"

    @pytest.mark.asyncio
    async def test_home_listings_are_independent(self, discovery, places_api, make_place):
        """Test that both listings are fetched and fail independently."""
        calls = []

        def respond(request):
            calls.append(request)
            if b"includedTypes" in request.content:
                return httpx.Response(
                    200, json={"places": [make_place("n", primary_type="cafe")]}
                )
            return httpx.Response(500, json={})

        places_api.responder = respond

        listings = await discovery.home(SHIBUYA)

        assert len(calls) == 2
        assert [r.id for r in listings.nearby.data] == ["n"]
        assert listings.specialty.ok is False


class TestAutocomplete:
    """Tests for autocomplete use cases."""

    @pytest.mark.asyncio
    async def test_missing_session_token_makes_no_call(self, discovery, places_api):
        """Test that validation happens before any outbound call."""
        with pytest.raises(ValidationError):
            await discovery.restaurant_autocomplete("ラーメン", "")

        assert places_api.requests == []

    @pytest.mark.asyncio
    async def test_missing_input_makes_no_call(self, discovery, places_api):
        """Test that empty input is rejected."""
        with pytest.raises(ValidationError):
            await discovery.address_autocomplete("", "tok")

        assert places_api.requests == []

    @pytest.mark.asyncio
    async def test_restaurant_autocomplete(self, discovery, places_api, config):
        """Test normalized restaurant suggestions and the bias center."""
        places_api.reply(
            "places:autocomplete",
            payload={
                "suggestions": [
                    {
                        "placePrediction": {
                            "placeId": "p1",
                            "structuredFormat": {"mainText": {"text": "一風堂"}},
                        }
                    },
                    {"queryPrediction": {"text": {"text": "ラーメン 渋谷"}}},
                    {"placePrediction": {"placeId": "p2"}},
                ]
            },
        )

        result = await discovery.restaurant_autocomplete("ラーメン", "tok")

        assert [s.model_dump(by_alias=True) for s in result.data] == [
            {"type": "placePrediction", "placeId": "p1", "placeName": "一風堂"},
            {"type": "queryPrediction", "placeId": None, "placeName": "ラーメン 渋谷"},
        ]
        center = places_api.last_body()["locationBias"]["circle"]["center"]
        assert center == {
            "latitude": config.autocomplete_latitude,
            "longitude": config.autocomplete_longitude,
        }

    @pytest.mark.asyncio
    async def test_address_autocomplete_uses_given_center(self, discovery, places_api):
        """Test the caller-supplied bias center and 1000 m radius."""
        places_api.reply("places:autocomplete", payload={})

        result = await discovery.address_autocomplete(
            "渋谷", "tok", Coordinate(lat=35.0, lng=139.0)
        )

        assert result.data == []
        circle = places_api.last_body()["locationBias"]["circle"]
        assert circle["center"] == {"latitude": 35.0, "longitude": 139.0}
        assert circle["radius"] == 1000.0

    @pytest.mark.asyncio
    async def test_autocomplete_upstream_failure(self, discovery, places_api):
        """Test that upstream failures become error results."""
        places_api.reply("places:autocomplete", status_code=403, payload={})

        result = await discovery.address_autocomplete("渋谷", "tok")

        assert result.ok is False


class TestSuggestionNormalization:
    """Tests for the suggestion mapping functions."""

    def test_address_suggestions_require_all_fields(self):
        """Test that partial predictions are dropped."""
        raw = AutocompleteResponse.model_validate(
            {
                "suggestions": [
                    {
                        "placePrediction": {
                            "placeId": "p1",
                            "structuredFormat": {
                                "mainText": {"text": "渋谷ヒカリエ"},
                                "secondaryText": {"text": "東京都渋谷区渋谷２丁目"},
                            },
                        }
                    },
                    {
                        "placePrediction": {
                            "placeId": "p2",
                            "structuredFormat": {"mainText": {"text": "名前だけ"}},
                        }
                    },
                    {"queryPrediction": {"text": {"text": "渋谷"}}},
                ]
            }
        ).suggestions

        suggestions = to_address_suggestions(raw)

        assert len(suggestions) == 1
        assert suggestions[0].place_id == "p1"
        assert suggestions[0].address_text == "東京都渋谷区渋谷２丁目"

    def test_restaurant_suggestions_empty(self):
        """Test that no suggestions yields an empty list."""
        assert to_restaurant_suggestions([]) == []


class TestRestaurantDetail:
    """Tests for the restaurant page."""

    @pytest.mark.asyncio
    async def test_detail_with_menus(self, discovery, places_api, menu_repository):
        """Test that menus are looked up by the place's primary type."""
        menu_repository.add(
            name="特製ラーメン",
            price=1200,
            image_path="r.jpg",
            genre="ramen_restaurant",
            category="ラーメン",
            is_featured=True,
        )
        places_api.reply(
            "places/p1",
            payload={
                "displayName": {"text": "蔦"},
                "primaryType": "ramen_restaurant",
                "photos": [{"name": "places/p1/photos/a"}],
            },
        )

        result = await discovery.restaurant_detail("p1", "tok")

        detail = result.data
        assert detail.restaurant.display_name == "蔦"
        assert [b.id for b in detail.category_menus] == ["featured", "ラーメン"]
        assert detail.menu_error is None
        assert places_api.requests[-1].headers["X-Goog-FieldMask"] == (
            "displayName,photos,primaryType"
        )

    @pytest.mark.asyncio
    async def test_detail_without_primary_type_has_no_menus(self, discovery, places_api):
        """Test that menus are skipped when the type is unknown."""
        places_api.reply("places/p1", payload={"displayName": {"text": "店"}})

        result = await discovery.restaurant_detail("p1")

        assert result.data.category_menus == []

    @pytest.mark.asyncio
    async def test_detail_upstream_failure(self, discovery, places_api):
        """Test that a details failure is an error result."""
        places_api.reply("places/p1", status_code=404, payload={})

        result = await discovery.restaurant_detail("p1")

        assert result.ok is False

    @pytest.mark.asyncio
    async def test_invalid_menu_rows_keep_the_restaurant(
        self, discovery, places_api, menu_repository, monkeypatch
    ):
        """Test that bad menu data is reported separately from the place details."""
        row = SimpleNamespace(
            id=1,
            name="壊れた行",
            price=-500,
            image_path="x.jpg",
            genre="ramen_restaurant",
            category="ラーメン",
            is_featured=True,
        )
        monkeypatch.setattr(menu_repository, "find_by_genre", lambda *_args: [row])
        places_api.reply(
            "places/p1",
            payload={"displayName": {"text": "蔦"}, "primaryType": "ramen_restaurant"},
        )

        result = await discovery.restaurant_detail("p1")

        assert result.ok
        assert result.data.restaurant.display_name == "蔦"
        assert result.data.category_menus == []
        assert result.data.menu_error == "Failed to load menu information"
