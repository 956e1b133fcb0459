"""
上传内容解码

支持 JSON 中的 data URL（data:<media>;base64,<payload>）与 multipart 文件字段。
"""

import base64
import binascii
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote_to_bytes

from modserve.exceptions import ValidationError


@dataclass
class Upload:
    """待写入存储的上传内容"""

    content: bytes
    media_type: str


def parse_data_url(value: Optional[str]) -> Upload:
    """
    解析 data URL

    Args:
        value: data URL 字符串

    Returns:
        Upload: 解码后的内容与声明的媒体类型
    """
    if not isinstance(value, str) or not value.startswith("data:"):
        raise ValidationError("上传内容必须是 data URL")

    if "," not in value:
        raise ValidationError("data URL 缺少数据段")

    header, payload = value.split(",", 1)
    params = header[len("data:"):].split(";")
    is_base64 = params[-1].strip().lower() == "base64"
    if is_base64:
        params = params[:-1]

    # RFC 2397 默认类型
    media_type = ";".join(params).strip() or "text/plain;charset=US-ASCII"

    if is_base64:
        try:
            content = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"无效的 base64 数据: {e}") from e
    else:
        content = unquote_to_bytes(payload)

    return Upload(content=content, media_type=media_type)
