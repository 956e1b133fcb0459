"""
ModServe Web 层

基于 aiohttp.web 的管理接口与启动器接口。
"""
