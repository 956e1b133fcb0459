import uuid
from typing import Any, Optional

from slugify import slugify as _slugify

# 保留版本号中的点
SLUG_PATTERN = r"[^-a-z0-9.]+"


def slugify(text: Optional[str], keep: int = 255) -> str:
    """生成 URL 友好的 slug，非 ASCII 字符先音译（科技 -> ke-ji）"""
    return _slugify(text or "", max_length=keep, regex_pattern=SLUG_PATTERN).strip(".")


def generated_slug(prefix: str) -> str:
    """名称无法生成 slug 时使用的随机 slug，带前缀以免被当成数字 ID"""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def parse_id(value: Any) -> Optional[int]:
    """数字形式的标识返回整数，否则返回 None"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None
