"""任务存储自定义异常"""


class TaskStoreError(Exception):
    """任务存储基础异常"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TaskValidationError(TaskStoreError):
    """输入校验失败（如标题为空）"""

    status_code = 400


class TaskNotFoundError(TaskStoreError):
    """任务不存在"""

    status_code = 404

    def __init__(self, task_id: int):
        super().__init__("Task not found")
        self.task_id = task_id


class MalformedInputError(TaskStoreError):
    """请求体无法解析"""

    status_code = 400


class StorageError(TaskStoreError):
    """任务文件读写失败"""

    status_code = 500
