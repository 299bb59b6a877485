"""Tests for menu persistence and category bucketing."""

from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from fooddash.database import MenuRepository
from fooddash.errors import PersistenceError
from fooddash.models import FEATURED_BUCKET_ID, Failure, FailureReason
from fooddash.services.menu_aggregator import MenuAggregator
from fooddash.services.storage import StorageResolver


@pytest.fixture
def repository(database):
    return MenuRepository(database)


@pytest.fixture
def aggregator(repository, config):
    return MenuAggregator(repository, StorageResolver(config))


@pytest.fixture
def ramen_menus(repository):
    """2 featured + 3 non-featured rows across 2 categories."""
    rows = [
        ("醤油ラーメン", "ラーメン", True),
        ("味噌ラーメン", "ラーメン", False),
        ("餃子", "サイド", True),
        ("チャーハン", "サイド", False),
        ("塩ラーメン", "ラーメン", False),
    ]
    for name, category, featured in rows:
        repository.add(
            name=name,
            price=900,
            image_path=f"ramen/{name}.jpg",
            genre="ramen_restaurant",
            category=category,
            is_featured=featured,
        )
    repository.add(
        name="カレー",
        price=800,
        image_path="curry.jpg",
        genre="indian_restaurant",
        category="カレー",
    )


class TestStorageResolver:
    """Tests for public URL resolution."""

    def test_absolute_url_when_configured(self, config):
        """Test URL composition with a configured base."""
        storage = StorageResolver(config)
        assert storage.get_public_url("ramen/a.jpg") == (
            "https://storage.example.com/object/public/menus/ramen/a.jpg"
        )

    def test_relative_path_without_base(self, config):
        """Test fallback to a root-relative path."""
        storage = StorageResolver(config.model_copy(update={"storage_public_url": None}))
        assert storage.get_public_url("/a.jpg") == "/menus/a.jpg"


class TestMenuAggregator:
    """Tests for MenuAggregator."""

    @pytest.mark.usefixtures("ramen_menus")
    def test_featured_bucket_first(self, aggregator):
        """Test bucket order and contents without a filter."""
        buckets = aggregator.fetch_category_menus("ramen_restaurant")

        assert [b.id for b in buckets] == [FEATURED_BUCKET_ID, "ラーメン", "サイド"]
        assert [m.name for m in buckets[0].items] == ["醤油ラーメン", "餃子"]
        assert sum(len(b.items) for b in buckets[1:]) == 5

    @pytest.mark.usefixtures("ramen_menus")
    def test_category_buckets_partition_rows(self, aggregator):
        """Test that non-featured buckets contain every row exactly once."""
        buckets = aggregator.fetch_category_menus("ramen_restaurant")

        ids = [m.id for b in buckets[1:] for m in b.items]
        assert len(ids) == len(set(ids)) == 5
        assert [m.name for m in buckets[1].items] == [
            "醤油ラーメン",
            "味噌ラーメン",
            "塩ラーメン",
        ]

    @pytest.mark.usefixtures("ramen_menus")
    def test_photo_urls_resolved(self, aggregator):
        """Test that image paths become public URLs."""
        buckets = aggregator.fetch_category_menus("ramen_restaurant")

        assert buckets[1].items[0].photo_url == (
            "https://storage.example.com/object/public/menus/ramen/醤油ラーメン.jpg"
        )

    @pytest.mark.usefixtures("ramen_menus")
    def test_filter_hides_featured_bucket(self, aggregator):
        """Test that a name filter drops the featured bucket."""
        buckets = aggregator.fetch_category_menus("ramen_restaurant", "ラーメン")

        assert [b.id for b in buckets] == ["ラーメン"]
        assert len(buckets[0].items) == 3

    @pytest.mark.usefixtures("ramen_menus")
    def test_blank_filter_is_no_filter(self, aggregator):
        """Test that whitespace is treated as no filter."""
        buckets = aggregator.fetch_category_menus("ramen_restaurant", "  ")
        assert buckets[0].id == FEATURED_BUCKET_ID

    def test_filter_is_case_insensitive(self, aggregator, repository):
        """Test case-insensitive name matching."""
        repository.add(
            name="Tonkotsu Ramen",
            image_path="t.jpg",
            genre="ramen_restaurant",
            category="Ramen",
        )

        buckets = aggregator.fetch_category_menus("ramen_restaurant", "tonkotsu")

        assert [m.name for m in buckets[0].items] == ["Tonkotsu Ramen"]

    def test_featured_bucket_present_even_if_empty(self, aggregator, repository):
        """Test that the featured bucket exists without featured rows."""
        repository.add(name="ナン", image_path="n.jpg", genre="indian_restaurant", category="パン")

        buckets = aggregator.fetch_category_menus("indian_restaurant")

        assert buckets[0].id == FEATURED_BUCKET_ID
        assert buckets[0].items == []

    @pytest.mark.usefixtures("ramen_menus")
    def test_no_matching_rows(self, aggregator):
        """Test that an unknown genre yields an empty list, not an error."""
        assert aggregator.fetch_category_menus("french_restaurant") == []
        assert aggregator.fetch_category_menus("ramen_restaurant", "パスタ") == []

    def test_persistence_error_becomes_failure(self, aggregator, monkeypatch):
        """Test that store failures surface as query_failed."""

        def broken(*_args, **_kwargs):
            raise PersistenceError("Database operation failed")

        monkeypatch.setattr(aggregator.repository, "find_by_genre", broken)

        result = aggregator.fetch_category_menus("ramen_restaurant")

        assert isinstance(result, Failure)
        assert result.reason == FailureReason.QUERY_FAILED

    def test_invalid_row_becomes_failure(self, aggregator, monkeypatch):
        """Test that a row the Menu model rejects surfaces as query_failed."""
        row = SimpleNamespace(
            id=1,
            name="壊れた行",
            price=-1,
            image_path="x.jpg",
            genre="ramen_restaurant",
            category="ラーメン",
            is_featured=False,
        )
        monkeypatch.setattr(aggregator.repository, "find_by_genre", lambda *_args: [row])

        result = aggregator.fetch_category_menus("ramen_restaurant")

        assert isinstance(result, Failure)
        assert result.reason == FailureReason.QUERY_FAILED
        assert result.message == "Failed to load menu information"

    def test_category_named_featured_gets_distinct_id(self, aggregator, repository):
        """Test that a category called 'featured' does not reuse the featured bucket ID."""
        for name, category in [("限定麺", "featured"), ("別枠", "category:featured")]:
            repository.add(
                name=name,
                price=1000,
                image_path="f.jpg",
                genre="ramen_restaurant",
                category=category,
                is_featured=True,
            )

        buckets = aggregator.fetch_category_menus("ramen_restaurant")

        ids = [b.id for b in buckets]
        assert len(ids) == len(set(ids)) == 3
        assert ids.count(FEATURED_BUCKET_ID) == 1
        assert buckets[0].id == FEATURED_BUCKET_ID
        assert [b.category_name for b in buckets[1:]] == ["featured", "category:featured"]


class TestDatabaseSession:
    """Tests for the transactional session wrapper."""

    def test_sqlalchemy_errors_are_wrapped(self, database):
        """Test that driver errors surface as PersistenceError."""
        with pytest.raises(PersistenceError), database.session() as session:
            raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    def test_like_wildcards_match_literally(self, repository, aggregator):
        """Test that % in the filter is not a wildcard."""
        repository.add(name="100% 豚骨", image_path="a.jpg", genre="ramen_restaurant", category="A")
        repository.add(name="1000 豚骨", image_path="b.jpg", genre="ramen_restaurant", category="A")

        buckets = aggregator.fetch_category_menus("ramen_restaurant", "100%")

        assert [m.name for m in buckets[0].items] == ["100% 豚骨"]

    def test_negative_price_rejected(self, repository):
        """Test that the menus table refuses a negative price."""
        with pytest.raises(PersistenceError):
            repository.add(
                name="マイナス",
                price=-1,
                image_path="m.jpg",
                genre="ramen_restaurant",
                category="A",
            )

        assert repository.find_by_genre("ramen_restaurant") == []
