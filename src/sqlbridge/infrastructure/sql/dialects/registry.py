"""
Dialect registry.

Resolves which dialect serves a connection from the database product name
(``PostgreSQL``, ``Microsoft SQL Server``, ...) or from a connection URL
(``postgresql+psycopg://...``, ``jdbc:mysql://...``). Resolution happens once
per product name and the identifier-length probe once per connection; both
results are cached for the lifetime of the registry and are safe to read
from several threads.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import ArgumentError

from sqlbridge.config import get_settings
from sqlbridge.utils.logging import get_logger

from ..core.identifier import QuoteMethod
from ..exceptions import PreconditionError
from .base import DialectDescriptor, SqlDialect
from .generic import GENERIC
from .hana import HANA
from .mysql import MYSQL
from .postgresql import POSTGRESQL
from .sqlite import SQLITE
from .sqlserver import SQLSERVER
from .vertica import VERTICA

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from sqlbridge.io.connectors.live_connection import LiveConnection

logger = get_logger(__name__)

BUILTIN_DIALECTS: Tuple[DialectDescriptor, ...] = (
    POSTGRESQL,
    MYSQL,
    SQLITE,
    SQLSERVER,
    HANA,
    VERTICA,
)


def url_scheme(identifier: str) -> Optional[str]:
    """
    Extract the backend name from a connection URL, or None if not a URL.

    Examples:
        >>> url_scheme("postgresql+psycopg://user@host/db")
        'postgresql'
        >>> url_scheme("jdbc:sqlserver://host:1433;databaseName=x")
        'sqlserver'
        >>> url_scheme("PostgreSQL") is None
        True
    """
    candidate = identifier.strip()
    if candidate.lower().startswith("jdbc:"):
        candidate = candidate[len("jdbc:"):]
    if "://" not in candidate and not candidate.lower().startswith("sqlite:"):
        return None

    try:
        return make_url(candidate).get_backend_name().lower()
    except (ArgumentError, ValueError):
        # Not a SQLAlchemy URL (e.g. JDBC-style properties); take the scheme verbatim
        scheme = candidate.split(":", 1)[0]
        return scheme.split("+", 1)[0].lower() or None


class DialectRegistry:
    """
    Registry of dialect descriptors with cached resolution.

    Usage:
        registry = DialectRegistry.default()
        dialect = registry.resolve("PostgreSQL")
        configured = registry.resolve_configured()   # from DATABASE_URL
        bound = registry.dialect_for(connection)   # probes identifier length once
    """

    def __init__(
        self,
        descriptors: Iterable[DialectDescriptor] = (),
        fallback: DialectDescriptor = GENERIC,
        quote_method: Optional[QuoteMethod] = None,
        numeric_scale_high: Optional[int] = None,
    ):
        self._descriptors: Dict[str, DialectDescriptor] = {}
        self.fallback = fallback
        self.quote_method = quote_method
        self.numeric_scale_high = numeric_scale_high
        self._lock = threading.Lock()
        self._dialect_cache: Dict[str, SqlDialect] = {}
        self._connection_cache: Dict[str, SqlDialect] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    @classmethod
    def default(cls, **kwargs) -> "DialectRegistry":
        """Create a registry holding every built-in dialect."""
        return cls(BUILTIN_DIALECTS, **kwargs)

    def register(self, descriptor: DialectDescriptor) -> None:
        """Register a dialect descriptor."""
        with self._lock:
            if descriptor.name in self._descriptors:
                raise ValueError(
                    f"Dialect '{descriptor.name}' is already registered. "
                    "Use a different name or create a new registry."
                )
            self._descriptors[descriptor.name] = descriptor
            # Earlier resolutions may now have a more specific match
            self._dialect_cache.clear()
            self._connection_cache.clear()

    @property
    def descriptors(self) -> List[DialectDescriptor]:
        return list(self._descriptors.values())

    def get(self, name: str) -> DialectDescriptor:
        """Retrieve a descriptor by dialect name."""
        if name == self.fallback.name:
            return self.fallback
        if name not in self._descriptors:
            available = sorted(self._descriptors)
            raise KeyError(f"Dialect '{name}' not found in registry. Available: {available}")
        return self._descriptors[name]

    def find_descriptor(self, identifier: str) -> DialectDescriptor:
        """
        Select the most specific descriptor for a product name or URL.

        Among the descriptors that match, the highest priority wins and, on a
        tie, the longest matching pattern. Falls back to the generic dialect.
        """
        scheme = url_scheme(identifier)
        product = identifier.strip().lower()

        best: Optional[Tuple[int, int, DialectDescriptor]] = None
        for descriptor in self._descriptors.values():
            if scheme is not None:
                matched = [s for s in descriptor.url_schemes if s == scheme]
            else:
                matched = [p for p in descriptor.product_patterns if p in product]
            if not matched:
                continue
            rank = (descriptor.priority, max(len(m) for m in matched), descriptor)
            if best is None or rank[:2] > best[:2]:
                best = rank

        return best[2] if best is not None else self.fallback

    def resolve(self, identifier: str) -> SqlDialect:
        """Return the (cached) dialect for a product name or connection URL."""
        cached = self._dialect_cache.get(identifier)
        if cached is not None:
            return cached

        with self._lock:
            cached = self._dialect_cache.get(identifier)
            if cached is None:
                descriptor = self.find_descriptor(identifier)
                cached = SqlDialect(
                    descriptor,
                    quote_method=self.quote_method,
                    numeric_scale_high=self.numeric_scale_high,
                )
                self._dialect_cache[identifier] = cached
                # URLs may carry credentials; log only their scheme
                scheme = url_scheme(identifier)
                logger.info(
                    "dialect.resolved",
                    identifier=identifier if scheme is None else f"{scheme}://",
                    dialect=descriptor.name,
                    fallback=descriptor is self.fallback,
                )
        return cached

    def resolve_configured(self) -> SqlDialect:
        """
        Return the dialect for the configured ``DATABASE_URL``.

        Raises:
            PreconditionError: If no DATABASE_URL is configured
        """
        url = get_settings().DATABASE_URL
        if not url:
            raise PreconditionError("DATABASE_URL is not configured")
        return self.resolve(url)

    def dialect_for(self, connection: "LiveConnection") -> SqlDialect:
        """
        Return the dialect for a live connection, bound to its identifier length.

        The product lookup and the identifier-length probe run once per
        ``connection.connection_key``.
        """
        key = connection.connection_key
        cached = self._connection_cache.get(key)
        if cached is not None:
            return cached

        dialect = self.resolve(connection.product_name)
        max_length = dialect.compute_max_identifier_length(connection)
        bound = dialect.with_identifier_length(max_length)

        with self._lock:
            # First writer wins so every caller sees the same instance
            cached = self._connection_cache.setdefault(key, bound)
        return cached


__all__ = [
    "BUILTIN_DIALECTS",
    "DialectRegistry",
    "url_scheme",
]
