"""Object storage public URL resolution."""

import logging

from fooddash.config import Config, get_config

logger = logging.getLogger(__name__)


class StorageResolver:
    """Resolves stored object paths to public URLs without a network call."""

    def __init__(self, config: Config | None = None, bucket: str | None = None) -> None:
        self.config = config or get_config()
        self.bucket = bucket or self.config.menu_bucket
        base = self.config.storage_public_url or ""
        self.base_url = base.rstrip("/")

    def get_public_url(self, path: str) -> str:
        """Return the public URL of ``path`` inside the bucket.

        Args:
            path: Object path such as ``ramen/shoyu.jpg``

        Returns:
            Absolute URL when storage is configured, otherwise a root-relative path
        """
        return f"{self.base_url}/{self.bucket}/{path.lstrip('/')}"
