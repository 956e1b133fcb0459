"""
请求与响应辅助函数
"""

from typing import Any, Dict, Iterable, Optional, Tuple

from aiohttp import web
from sqlalchemy.ext.asyncio import AsyncSession

from modserve.exceptions import PayloadError
from modserve.services import ManifestSynthesizer
from modserve.storage import Upload, parse_data_url
from modserve.store import Repositories
from modserve.models import ServerConfig

CONFIG = web.AppKey("config", ServerConfig)
REPOSITORIES = web.AppKey("repositories", Repositories)
MANIFESTS = web.AppKey("manifests", ManifestSynthesizer)

SESSION = web.RequestKey("session", AsyncSession)


def session_of(request: web.Request) -> AsyncSession:
    return request[SESSION]


def repositories_of(request: web.Request) -> Repositories:
    return request.app[REPOSITORIES]


def message(status: int, text: str) -> web.Response:
    return web.json_response({"status": status, "message": text}, status=status)


def records(items: Iterable[Any]) -> web.Response:
    return web.json_response([item.to_dict() for item in items])


def record(item: Any) -> web.Response:
    return web.json_response(item.to_dict())


async def read_payload(request: web.Request) -> Tuple[Dict[str, Any], Optional[Upload]]:
    """
    读取请求体

    JSON 请求中的 upload 字段为 data URL；multipart 请求中的 upload 为文件字段。

    Returns:
        tuple: (字段, 上传内容)
    """
    if request.content_type.startswith("multipart/"):
        form = await request.post()
        fields: Dict[str, Any] = {}
        upload = None
        for key, value in form.items():
            if isinstance(value, web.FileField):
                if key == "upload":
                    upload = Upload(
                        content=value.file.read(),
                        media_type=value.content_type,
                    )
                continue
            fields[key] = _form_value(value)
        return fields, upload

    if not request.can_read_body:
        return {}, None

    try:
        data = await request.json()
    except ValueError as e:
        raise PayloadError(f"无法解析请求数据: {e}") from e

    if not isinstance(data, dict):
        raise PayloadError("请求数据必须是 JSON 对象")

    upload_value = data.pop("upload", None)
    upload = parse_data_url(upload_value) if upload_value else None
    return data, upload


def _form_value(value: str) -> Any:
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    return value
