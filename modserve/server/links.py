"""
关联接口

PATCH 建立关联、DELETE 解除关联。已关联 / 未关联属于常规结果，返回 412。
"""

from typing import Any

from aiohttp import web

from modserve.exceptions import ConflictError, NotFoundError
from modserve.server.helpers import message, read_payload, session_of
from modserve.store.association import Association


async def link(
    request: web.Request, relation: Association, a: Any, b: Any
) -> web.Response:
    """建立关联；带权限的关系从请求体读取 perm"""
    perm = None
    if relation.has_perm:
        fields, _ = await read_payload(request)
        perm = fields.get("perm")

    try:
        await relation.link(session_of(request), a, b, perm=perm)
    except ConflictError as e:
        return message(412, e.message)

    return message(200, f"{relation.b_label}关联成功")


async def unlink(
    request: web.Request, relation: Association, a: Any, b: Any
) -> web.Response:
    """解除关联"""
    try:
        await relation.unlink(session_of(request), a, b)
    except NotFoundError as e:
        return message(412, e.message)

    return message(200, f"{relation.b_label}已解除关联")
