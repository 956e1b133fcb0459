"""
ModServe

整合包服务端：存储模组文件、管理构建关联，并向启动器提供清单。
"""

__version__ = "0.1.0"
