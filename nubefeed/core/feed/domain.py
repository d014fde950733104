"""
Public storefront domain resolution.

Strategies run in order and the first one returning a host wins:
explicit override, static DOMAINS_MAP, /domains, /store. If none answers,
the platform fallback "{store_id}.{platform_domain}" is used. Remote
strategies never raise; a failed call just moves on to the next one.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional, Sequence

from nubefeed.core.tn_client import TiendanubeClient, TiendanubeError


logger = logging.getLogger(__name__)

HOST_RE = re.compile(r'^(?:[a-z0-9-]+\.)+[a-z]{2,}$', re.IGNORECASE)
SCHEME_RE = re.compile(r'^https?://', re.IGNORECASE)

# Fields searched, in order, when a domain arrives as an object
NESTED_DOMAIN_KEYS = ('domain', 'url', 'name', 'host')


def normalize_domain(value: Any, primary_language: str = 'es') -> Optional[str]:
    """
    Normalize a domain-like value to a bare host string.

    Strips whitespace, a leading http(s) scheme and trailing slashes. Numbers
    are stringified. Mappings are searched for domain/url/name/host and then
    the primary language key.

    Returns:
        Host string, or None if nothing usable was found
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        host = SCHEME_RE.sub('', value.strip()).rstrip('/')
        return host or None

    if isinstance(value, (int, float)):
        return str(value)

    if isinstance(value, Mapping):
        for key in NESTED_DOMAIN_KEYS + (primary_language,):
            if value.get(key):
                return normalize_domain(value[key], primary_language)
        return None

    return None


def is_likely_host(host: Optional[str]) -> bool:
    """True for a bare host such as shop.example.com (no scheme, port or path)."""
    return bool(host) and bool(HOST_RE.match(host))


def is_platform_subdomain(host: Optional[str], owned_domains: Iterable[str]) -> bool:
    """True if host is, or sits under, one of the platform's own domains."""
    if not host:
        return False
    host = host.lower()
    for domain in owned_domains:
        if host == domain or host.endswith('.' + domain):
            return True
    return False


def pick_best_domain(
    domains: Optional[Sequence[Any]],
    owned_domains: Iterable[str],
    primary_language: str = 'es'
) -> Optional[str]:
    """Prefer the first custom (non-platform) domain, else the first one."""
    if not domains:
        return None
    hosts = [h for h in (normalize_domain(d, primary_language) for d in domains) if h]
    if not hosts:
        return None
    owned = list(owned_domains)
    for host in hosts:
        if not is_platform_subdomain(host, owned):
            return host
    return hosts[0]


@dataclass(frozen=True)
class DomainRequest:
    """Inputs available to every domain strategy."""
    store_id: str
    client: Optional[TiendanubeClient] = None
    explicit_override: Optional[str] = None


DomainStrategy = Callable[[DomainRequest], Awaitable[Optional[str]]]


async def first_hit(strategies: Sequence[DomainStrategy], request: DomainRequest) -> Optional[str]:
    """Run strategies in order and return the first host produced."""
    for strategy in strategies:
        host = await strategy(request)
        if host:
            logger.debug(f"Domain for store {request.store_id} resolved by {strategy.__name__}: {host}")
            return host
    return None


class DomainResolver:
    """Resolves the public hostname used for feed links."""

    def __init__(
        self,
        domain_map: Optional[Mapping[str, str]] = None,
        platform_domain: str = 'tiendanube.com',
        owned_domains: Sequence[str] = ('tiendanube.com', 'mitiendanube.com'),
        primary_language: str = 'es'
    ):
        """
        Args:
            domain_map: Static store id -> host table (parsed DOMAINS_MAP)
            platform_domain: Domain used for the fallback host
            owned_domains: Platform domains whose subdomains are deprioritized
            primary_language: Language key tried on localized domain objects
        """
        self.domain_map = domain_map or {}
        self.platform_domain = platform_domain
        self.owned_domains = tuple(d.lower() for d in owned_domains)
        self.primary_language = primary_language
        self.strategies: List[DomainStrategy] = [
            self.from_override,
            self.from_static_map,
            self.from_domains_endpoint,
            self.from_store_endpoint,
        ]

    async def resolve(
        self,
        store_id: str,
        client: Optional[TiendanubeClient] = None,
        explicit_override: Optional[str] = None
    ) -> str:
        """
        Resolve the storefront host for a store. Never raises for remote failures.

        Args:
            store_id: Store id
            client: API client for the remote strategies (skipped if None)
            explicit_override: Host requested by the caller (e.g. ?domain=)

        Returns:
            Bare hostname
        """
        request = DomainRequest(str(store_id), client, explicit_override)
        host = await first_hit(self.strategies, request)
        return host or self.fallback(request.store_id)

    def fallback(self, store_id: str) -> str:
        return f"{store_id}.{self.platform_domain}"

    def normalize_override(self, value: Any) -> Optional[str]:
        """Validated override host, or None if it is not usable."""
        host = normalize_domain(value, self.primary_language)
        if host and is_likely_host(host) and not is_platform_subdomain(host, self.owned_domains):
            return host
        return None

    async def from_override(self, request: DomainRequest) -> Optional[str]:
        return self.normalize_override(request.explicit_override)

    async def from_static_map(self, request: DomainRequest) -> Optional[str]:
        host = normalize_domain(self.domain_map.get(request.store_id), self.primary_language)
        return host if is_likely_host(host) else None

    async def from_domains_endpoint(self, request: DomainRequest) -> Optional[str]:
        if request.client is None:
            return None
        try:
            data = await request.client.get_domains()
        except TiendanubeError as e:
            logger.info(f"/domains unavailable for store {request.store_id} (status={e.status_code}), trying /store")
            return None
        if not isinstance(data, list):
            return None
        return pick_best_domain(data, self.owned_domains, self.primary_language)

    async def from_store_endpoint(self, request: DomainRequest) -> Optional[str]:
        if request.client is None:
            return None
        try:
            store = await request.client.get_store()
        except TiendanubeError as e:
            logger.info(f"/store unavailable for store {request.store_id} (status={e.status_code}), using fallback")
            return None

        domains = None
        if isinstance(store.get('domains'), list):
            domains = store['domains']
        elif isinstance(store.get('domain'), list):
            domains = store['domain']

        host = (
            pick_best_domain(domains, self.owned_domains, self.primary_language)
            or normalize_domain(store.get('original_domain'), self.primary_language)
            or normalize_domain(store.get('store_domain'), self.primary_language)
        )
        return host if is_likely_host(host) else None
