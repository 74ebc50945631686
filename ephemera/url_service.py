"""Business logic for shortened URLs."""

import logging
from datetime import timedelta
from typing import Optional

from .common.url_builder import build_short_url
from .common.validators import is_valid_custom_alias, is_valid_url
from .counters import CounterUpdater
from .database.models import ClientMeta, ShortenedURL, URLClick, URLStats, utcnow
from .database.url_store import URLStore
from .errors import BadRequestError, ConflictError, DuplicateKeyError, NotFoundError
from .shortcode import ShortCodeGenerator, insert_with_unique_code


class URLService:
    """Service layer for URL shortening business logic."""

    def __init__(
        self,
        store: URLStore,
        counters: CounterUpdater,
        generator: Optional[ShortCodeGenerator] = None,
        base_url: str = "http://localhost:8080",
        max_collision_retries: int = 5,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize URL service.

        Args:
            store: URL store
            counters: Background counter updater
            generator: Optional short code generator
            base_url: Public base URL used to build short URLs
            max_collision_retries: Short code generation budget
            logger: Optional logger
        """
        self.store = store
        self.counters = counters
        self.generator = generator or ShortCodeGenerator()
        self.base_url = base_url
        self.max_collision_retries = max_collision_retries
        self.logger = logger or logging.getLogger(__name__)

    async def shorten(
        self,
        url: str,
        custom_alias: Optional[str] = None,
        expires_in_days: Optional[int] = None,
    ) -> ShortenedURL:
        """Create a shortened URL.

        Args:
            url: Absolute http(s) URL
            custom_alias: Optional caller-chosen short code
            expires_in_days: Days until expiry; None or 0 means never

        Raises:
            BadRequestError: If the URL, alias or expiry is invalid
            ConflictError: If the custom alias is already taken
            CodeGenerationExhaustedError: If no free code was found
        """
        is_valid, error = is_valid_url(url)
        if not is_valid:
            raise BadRequestError(f"invalid url format: {error}")

        if expires_in_days is not None and expires_in_days < 0:
            raise BadRequestError("expiresIn must not be negative")

        expires_at = None
        if expires_in_days:
            try:
                expires_at = utcnow() + timedelta(days=expires_in_days)
            except OverflowError as e:
                raise BadRequestError("expiresIn out of range") from e

        if custom_alias:
            return await self._create_with_alias(url, custom_alias, expires_at)

        async def _insert(code: str) -> ShortenedURL:
            return await self.store.create(
                ShortenedURL(short_code=code, original_url=url, expires_at=expires_at)
            )

        record = await insert_with_unique_code(
            self.generator.generate_short_code,
            self.store.short_code_exists,
            _insert,
            max_attempts=self.max_collision_retries,
            logger=self.logger,
        )
        self.logger.info(f"URL shortened: {record.short_code} (id {record.id})")
        return record

    async def redirect(self, short_code: str, client: Optional[ClientMeta] = None) -> str:
        """Resolve an active short code and record the click in the background.

        Raises:
            NotFoundError: If missing, expired or deleted
        """
        if not self.generator.is_valid_format(short_code):
            raise NotFoundError("short URL not found or expired")
        record = await self.store.find_active_by_short_code(short_code)
        self.counters.submit(
            self._record_click,
            record.id,
            client or ClientMeta(),
            description=f"click {short_code}",
        )
        return record.original_url

    async def get_stats(self, short_code: str, recent_limit: int = 100) -> URLStats:
        """Statistics of a URL including its most recent clicks.

        A failure to read clicks yields an empty click list.
        """
        record = await self.store.find_by_short_code(short_code)
        try:
            clicks = await self.store.get_recent_clicks(record.id, recent_limit)
        except Exception as e:
            self.logger.error(f"Failed to get recent clicks for {short_code}: {e}")
            clicks = []
        return URLStats(url=record, recent_clicks=clicks)

    async def delete_url(self, short_code: str) -> None:
        record = await self.store.find_by_short_code(short_code)
        await self.store.soft_delete(record.id)

    def short_url(self, short_code: str) -> str:
        return build_short_url(short_code, self.base_url)

    async def _create_with_alias(self, url, alias, expires_at) -> ShortenedURL:
        is_valid, error = is_valid_custom_alias(alias)
        if not is_valid:
            raise BadRequestError(error)

        if await self.store.short_code_exists(alias):
            raise ConflictError("custom alias already taken")

        try:
            record = await self.store.create(
                ShortenedURL(
                    short_code=alias,
                    original_url=url,
                    custom_alias=alias,
                    expires_at=expires_at,
                )
            )
        except DuplicateKeyError as e:
            raise ConflictError("custom alias already taken") from e

        self.logger.info(f"URL shortened with custom alias: {alias} (id {record.id})")
        return record

    async def _record_click(self, url_id: int, client: ClientMeta) -> None:
        try:
            await self.store.record_click(
                URLClick(
                    url_id=url_id,
                    ip_address=client.ip_address,
                    user_agent=client.user_agent,
                    referrer=client.referrer,
                )
            )
        except Exception as e:
            self.logger.error(f"Failed to record click for url {url_id}: {e}")

        if not await self.store.increment_click_count(url_id):
            self.logger.error(f"Failed to increment click count for url {url_id}")
