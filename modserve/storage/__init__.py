"""
ModServe 存储层

包含内容寻址文件存储与上传解码。
"""

from modserve.storage.artifact import (
    Artifact,
    ArtifactStore,
    LOGO,
    FILE,
    absolute_path,
    content_hash,
    parse_media_type,
)
from modserve.storage.upload import Upload, parse_data_url

__all__ = [
    "Artifact",
    "ArtifactStore",
    "LOGO",
    "FILE",
    "absolute_path",
    "content_hash",
    "parse_media_type",
    "Upload",
    "parse_data_url",
]
