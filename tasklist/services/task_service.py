import logging
from typing import Any, List, Mapping, Optional

from ..exceptions import TaskNotFoundError, TaskValidationError
from ..models.task import Task, utc_now
from ..storage.task_store import TaskStore

logger = logging.getLogger(__name__)


class TaskService:
    """任务增删改查，每个操作都是一次加锁的 读取-修改-写回"""

    def __init__(self, store: TaskStore):
        self.store = store

    def list_tasks(self) -> List[Task]:
        """查询全部任务"""
        return self.store.load()

    def get_task(self, task_id: int) -> Task:
        """查询单个任务"""
        return self._find(self.store.load(), task_id)

    def create_task(self, title: Optional[str], description: Optional[str] = None) -> List[Task]:
        """创建任务，返回更新后的完整列表"""
        title = (title or "").strip()
        if not title:
            raise TaskValidationError("Title is required.")
        description = (description or "").strip()

        with self.store.locked():
            tasks = self.store.load()
            now = utc_now()
            task = Task(
                id=max((t.id for t in tasks), default=0) + 1,
                title=title,
                description=description,
                completed=False,
                created_at=now,
                updated_at=now,
            )
            tasks.append(task)
            self.store.save(tasks)

        logger.info(f"任务已创建: {task.id}, 标题: {task.title}")
        return tasks

    def update_task(self, task_id: int, fields: Mapping[str, Any]) -> List[Task]:
        """
        部分更新任务

        Args:
            task_id: 任务ID
            fields: 可包含 title / description / completed，未提供或为 None 的字段保持不变

        Returns:
            更新后的完整任务列表

        Raises:
            TaskNotFoundError: 任务不存在
            TaskValidationError: 提供了空标题（整个更新不生效）
        """
        fields = {key: value for key, value in fields.items() if value is not None}

        with self.store.locked():
            tasks = self.store.load()
            task = self._find(tasks, task_id)

            # 先校验再修改，校验失败不落盘
            title = None
            if "title" in fields:
                title = str(fields["title"]).strip()
                if not title:
                    raise TaskValidationError("Title cannot be empty.")

            if title is not None:
                task.title = title
            if "description" in fields:
                task.description = str(fields["description"]).strip()
            if "completed" in fields:
                task.completed = bool(fields["completed"])

            task.touch()
            self.store.save(tasks)

        logger.info(f"任务已更新: {task_id}, 字段: {sorted(fields)}")
        return tasks

    def toggle_task(self, task_id: int) -> List[Task]:
        """切换完成状态"""
        with self.store.locked():
            tasks = self.store.load()
            task = self._find(tasks, task_id)
            task.completed = not task.completed
            task.touch()
            self.store.save(tasks)

        logger.info(f"任务状态已切换: {task_id}, completed={task.completed}")
        return tasks

    def delete_task(self, task_id: int) -> List[Task]:
        """删除任务，其余任务保持原有顺序"""
        with self.store.locked():
            tasks = self.store.load()
            task = self._find(tasks, task_id)
            tasks.remove(task)
            self.store.save(tasks)

        logger.info(f"任务已删除: {task_id}")
        return tasks

    @staticmethod
    def _find(tasks: List[Task], task_id: int) -> Task:
        for task in tasks:
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)
