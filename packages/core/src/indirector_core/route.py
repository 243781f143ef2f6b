"""Route - the call surface and cache policy of an indirection."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from .context import get_context
from .domain.envelope import is_expired, stamp_expiration, utcnow
from .primitives.exceptions import (
    AuthorizationError,
    ConfigurationError,
    DevError,
    TerminusNotFoundError,
)
from .request import Request
from .utils import log_failure

if TYPE_CHECKING:
    from collections.abc import Callable

    from .context import IndirectorContext
    from .indirection import Indirection

logger = logging.getLogger("indirector.route")

# How far into the past ``expire`` pushes a cached instance.
EXPIRE_OFFSET = 60


class Route:
    """Routes requests for one indirection to its terminus and cache.

    Pattern:
    - find(key): check cache -> delegate to terminus -> stamp expiration -> cache result
    - save(instance): delegate to terminus -> write through to cache
    - destroy(key): delegate to terminus -> drop cache entry
    - search(key): delegate to terminus (never cached)
    - expire(key): push the cached copy's expiration into the past

    Cache failures are logged and treated as misses; terminus failures
    propagate to the caller.

    The terminus may be picked per request by overriding
    :meth:`select_terminus` or by passing a ``terminus_selector`` callable.
    """

    def __init__(
        self,
        indirection_name: str,
        terminus_class: str | None = None,
        cache_class: str | None = None,
        *,
        terminus_setting: str | None = None,
        context: IndirectorContext | None = None,
        terminus_selector: Callable[[Request], str | None] | None = None,
    ) -> None:
        self.indirection_name = str(indirection_name)
        self.terminus_setting = terminus_setting
        self._context = context
        self._terminus_selector = terminus_selector
        self._terminus_class: str | None = None
        self._cache_class: str | None = None
        if terminus_class is not None:
            self.terminus_class = terminus_class
        if cache_class is not None:
            self.cache_class = cache_class

    # ── Configuration ────────────────────────────────────────────

    @property
    def context(self) -> IndirectorContext:
        return self._context or get_context()

    @property
    def indirection(self) -> Indirection:
        found = self.context.indirections.instance(self.indirection_name)
        if found is None:
            raise ConfigurationError(
                f"Could not find indirection '{self.indirection_name}'"
            )
        return found

    @property
    def terminus_class(self) -> str:
        """The configured terminus name, read from the setting if unset."""
        if self._terminus_class is None:
            if not self.terminus_setting:
                raise DevError(
                    "No terminus class nor terminus setting was provided "
                    f"for indirection {self.indirection_name}"
                )
            self.terminus_class = self.context.settings.terminus_for(
                self.terminus_setting
            )
        return self._terminus_class  # type: ignore[return-value]

    @terminus_class.setter
    def terminus_class(self, terminus_name: str) -> None:
        self.validate_terminus_class(terminus_name)
        self._terminus_class = str(terminus_name)

    def reset_terminus_class(self) -> None:
        self._terminus_class = None

    @property
    def cache_class(self) -> str | None:
        return self._cache_class

    @cache_class.setter
    def cache_class(self, terminus_name: str | None) -> None:
        if terminus_name:
            self.validate_terminus_class(terminus_name)
        self._cache_class = str(terminus_name) if terminus_name else None

    def validate_terminus_class(self, terminus_name: str | None) -> None:
        if not terminus_name or not str(terminus_name).strip():
            raise TerminusNotFoundError(f"Invalid terminus name {terminus_name!r}")
        if self.context.termini.resolve(self.indirection_name, terminus_name) is None:
            raise TerminusNotFoundError(
                f"Could not find terminus {terminus_name} "
                f"for indirection {self.indirection_name}"
            )

    @property
    def has_cache(self) -> bool:
        return self._cache_class is not None

    @property
    def cache(self) -> Any:
        """The cache terminus instance."""
        if self._cache_class is None:
            raise DevError("Tried to cache when no cache class was set")
        return self.indirection.terminus(self._cache_class)

    @property
    def terminus(self) -> Any:
        """The statically configured terminus instance."""
        return self.indirection.terminus(self.terminus_class)

    def request(
        self,
        method: str,
        key_or_instance: Any,
        options: dict[str, Any] | None = None,
        *,
        instance: Any = None,
    ) -> Request:
        return Request(
            self.indirection_name,
            method,
            key_or_instance,
            options,
            instance=instance,
            masterport=self.context.settings.masterport,
        )

    # ── Operations ───────────────────────────────────────────────

    async def find(self, key: Any, options: dict[str, Any] | None = None) -> Any | None:
        """Return the instance for *key*, or ``None`` if nothing has it."""
        request = self.request("find", key, options)
        terminus, terminus_name = self.prepare(request)

        cached = await self.find_in_cache(request)
        if cached is not None:
            return cached

        if request.is_ignore_terminus():
            return None

        result = await terminus.find(request)
        if result is None:
            return None

        stamp_expiration(result, self.indirection.expiration())
        if self.has_cache and request.use_cache:
            logger.info("Caching %s for %s", self.indirection_name, request.key)
            await self._write_cache(
                self.request("save", request.key, options, instance=result)
            )

        caps = self.context.termini.capabilities(self.indirection_name, terminus_name)
        if caps.filter:
            return terminus.filter(result)
        return result

    async def find_in_cache(self, request: Request) -> Any | None:
        """Return an unexpired cached instance, or ``None``."""
        if not self.has_cache or request.is_ignore_cache():
            return None
        try:
            cached = await self.cache.find(request)
        except Exception as e:  # noqa: BLE001
            log_failure(
                logger,
                f"Cached {self.indirection_name} for {request.key} failed",
                e,
                trace=self.context.settings.trace,
            )
            return None
        if cached is None:
            return None
        if is_expired(cached):
            logger.info(
                "Not using expired %s for %s from cache; expired at %s",
                self.indirection_name,
                request.key,
                cached.expiration,
            )
            return None
        logger.debug("Using cached %s for %s", self.indirection_name, request.key)
        return cached

    async def save(
        self,
        key_or_instance: Any,
        instance: Any = None,
        options: dict[str, Any] | None = None,
    ) -> Any:
        """Save through the terminus, then write the instance to the cache."""
        request = self.request("save", key_or_instance, options, instance=instance)
        terminus, _ = self.prepare(request)

        result = await terminus.save(request)

        if self.has_cache:
            stamp_expiration(request.instance, self.indirection.expiration())
            await self._write_cache(request)
        return result

    async def search(
        self, key: Any, options: dict[str, Any] | None = None
    ) -> list[Any]:
        """Return every instance matching *key*; always a list."""
        request = self.request("search", key, options)
        terminus, terminus_name = self.prepare(request)

        result = await terminus.search(request)
        if result is None:
            return []
        if not isinstance(result, list):
            raise DevError(
                f"Search results from terminus {terminus_name} are not an array"
            )
        expiration = self.indirection.expiration()
        for found in result:
            stamp_expiration(found, expiration)
        return result

    async def destroy(self, key: Any, options: dict[str, Any] | None = None) -> Any:
        """Remove through the terminus and drop any cached copy."""
        request = self.request("destroy", key, options)
        terminus, _ = self.prepare(request)

        result = await terminus.destroy(request)

        if self.has_cache:
            try:
                cached = await self.cache.find(self.request("find", key, options))
                if cached is not None:
                    await self.cache.destroy(request)
            except Exception as e:  # noqa: BLE001
                log_failure(
                    logger,
                    f"Cache destroy of {self.indirection_name} for {request.key} failed",
                    e,
                    trace=self.context.settings.trace,
                )
        return result

    async def expire(self, key: Any, options: dict[str, Any] | None = None) -> Any:
        """Mark the cached copy of *key* expired without deleting it."""
        if not self.has_cache:
            return None
        find_request = self.request("find", key, options)
        try:
            instance = await self.cache.find(find_request)
            if instance is None:
                return None
            logger.info(
                "Expiring the %s cache of %s", self.indirection_name, find_request.key
            )
            instance.expiration = utcnow() - timedelta(seconds=EXPIRE_OFFSET)
            return await self.cache.save(
                self.request("save", find_request.key, options, instance=instance)
            )
        except Exception as e:  # noqa: BLE001
            log_failure(
                logger,
                f"Expiring {self.indirection_name} for {find_request.key} failed",
                e,
                trace=self.context.settings.trace,
            )
            return None

    # ── Terminus selection ───────────────────────────────────────

    def select_terminus(self, request: Request) -> str | None:
        """Pick the terminus name for *request* (static by default)."""
        if self._terminus_selector is not None:
            return self._terminus_selector(request)
        return self.terminus_class

    def prepare(self, request: Request) -> tuple[Any, str]:
        """Pick the terminus for *request* and check authorization."""
        terminus_name = self.select_terminus(request)
        if not terminus_name:
            raise TerminusNotFoundError(
                f"Could not determine appropriate terminus for {request}"
            )
        dest_terminus = self.indirection.terminus(terminus_name)
        self.check_authorization(request, dest_terminus, terminus_name)
        return dest_terminus, terminus_name

    def check_authorization(
        self, request: Request, terminus: Any, terminus_name: str
    ) -> None:
        # Authorization makes no sense without client information.
        if not request.node:
            return
        caps = self.context.termini.capabilities(self.indirection_name, terminus_name)
        if not caps.authorizer:
            return
        if not terminus.authorized(request):
            raise AuthorizationError(request.method, str(request), request.options)

    async def _write_cache(self, request: Request) -> None:
        try:
            await self.cache.save(request)
        except Exception as e:  # noqa: BLE001
            log_failure(
                logger,
                f"Caching {self.indirection_name} for {request.key} failed",
                e,
                trace=self.context.settings.trace,
            )


__all__ = ["Route"]
