"""Menu lookup grouped into display categories."""

import logging

from pydantic import ValidationError

from fooddash.database import MenuRepository, MenuRow
from fooddash.errors import PersistenceError
from fooddash.models.menu import FEATURED_BUCKET_ID, FEATURED_BUCKET_NAME, CategoryMenu, Menu
from fooddash.models.result import Failure, FailureReason
from fooddash.services.storage import StorageResolver

logger = logging.getLogger(__name__)

CATEGORY_ID_PREFIX = "category:"


class MenuAggregator:
    """Builds the ordered ``CategoryMenu`` list for a cuisine.

    Bucket order is: the featured bucket (only without a name filter),
    then one bucket per distinct category in first-seen row order.
    """

    def __init__(self, repository: MenuRepository, storage: StorageResolver) -> None:
        self.repository = repository
        self.storage = storage

    def _to_menu(self, row: MenuRow) -> Menu:
        return Menu(
            id=row.id,
            name=row.name,
            price=row.price,
            photo_url=self.storage.get_public_url(row.image_path),
        )

    def fetch_category_menus(
        self, primary_type: str, search_query: str | None = None
    ) -> list[CategoryMenu] | Failure:
        """Menus whose genre is ``primary_type``, grouped by category.

        Args:
            primary_type: Place primary type, e.g. ``ramen_restaurant``
            search_query: Optional case-insensitive substring of the menu name

        Returns:
            Ordered buckets (empty when nothing matches) or a ``query_failed`` Failure
        """
        search_query = (search_query or "").strip() or None

        try:
            rows = self.repository.find_by_genre(primary_type, search_query)
        except PersistenceError:
            logger.exception(f"Failed to load menus for {primary_type}")
            return Failure(
                reason=FailureReason.QUERY_FAILED,
                message="Failed to load menu information",
            )

        if not rows:
            return []

        try:
            category_menus = self._group(rows, include_featured=search_query is None)
        except ValidationError:
            logger.exception(f"Invalid menu rows for {primary_type}")
            return Failure(
                reason=FailureReason.QUERY_FAILED,
                message="Failed to load menu information",
            )

        logger.debug(
            f"Grouped {len(rows)} menus for {primary_type} into {len(category_menus)} buckets"
        )
        return category_menus

    def _group(self, rows: list[MenuRow], include_featured: bool) -> list[CategoryMenu]:
        category_menus: list[CategoryMenu] = []

        # Featured bucket is hidden while the user is filtering by name
        if include_featured:
            category_menus.append(
                CategoryMenu(
                    id=FEATURED_BUCKET_ID,
                    category_name=FEATURED_BUCKET_NAME,
                    items=[self._to_menu(row) for row in rows if row.is_featured],
                )
            )

        buckets: dict[str, list[Menu]] = {}
        for row in rows:
            buckets.setdefault(row.category, []).append(self._to_menu(row))

        for category, items in buckets.items():
            category_menus.append(
                CategoryMenu(
                    id=category_bucket_id(category), category_name=category, items=items
                )
            )
        return category_menus


def category_bucket_id(category: str) -> str:
    """Bucket ID for a category; never collides with the featured bucket."""
    if category == FEATURED_BUCKET_ID or category.startswith(CATEGORY_ID_PREFIX):
        return f"{CATEGORY_ID_PREFIX}{category}"
    return category
