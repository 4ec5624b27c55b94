"""Task List - 基于 JSON 文件的任务清单服务"""

__version__ = "1.0.0"
