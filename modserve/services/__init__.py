"""
ModServe 服务层

包含业务逻辑服务：清单合成、上游版本源、版本同步。
"""

from modserve.services.manifest import ManifestSynthesizer
from modserve.services.feed import ReleaseFeedClient
from modserve.services.sync import SyncStats, sync_records

__all__ = [
    "ManifestSynthesizer",
    "ReleaseFeedClient",
    "SyncStats",
    "sync_records",
]
