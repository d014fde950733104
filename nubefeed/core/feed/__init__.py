"""
Feed generation core module.
"""

from .models import FeedItem, FeedConfig, FeedResult, CacheEntry
from .flattener import flatten_products
from .brand import BrandResolver
from .domain import DomainResolver
from .cache import MemoryFeedCache, RedisFeedCache
from .xml_writer import write_feed_xml
from .service import FeedService, StoreNotInstalledError

__all__ = [
    'FeedItem',
    'FeedConfig',
    'FeedResult',
    'CacheEntry',
    'flatten_products',
    'BrandResolver',
    'DomainResolver',
    'MemoryFeedCache',
    'RedisFeedCache',
    'write_feed_xml',
    'FeedService',
    'StoreNotInstalledError',
]
