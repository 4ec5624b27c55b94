"""任务存储 - 以单个 JSON 文件保存完整任务列表"""
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Union

from pydantic import ValidationError

from ..exceptions import StorageError
from ..models.task import Task

logger = logging.getLogger(__name__)


class TaskStore:
    """JSON 文件任务存储（每次读写完整快照）"""

    def __init__(self, db_file: Union[str, Path], strict_writes: bool = True):
        self.db_file = Path(db_file)
        self.strict_writes = strict_writes
        self._lock = threading.RLock()
        # 上次读取时是否有无法解析的内容（此时拒绝覆盖文件）
        self._has_unparsed = False

    @contextmanager
    def locked(self) -> Iterator[None]:
        """串行化 读取-修改-写回 流程"""
        with self._lock:
            yield

    def load(self) -> List[Task]:
        """
        读取完整任务列表

        文件不存在时初始化为空数组；文件不可读、不是合法 JSON
        或不是数组时按空列表处理，不向调用方抛出异常。
        无效记录会被跳过，并阻止后续写回，避免覆盖掉这些记录。

        Returns:
            按创建顺序排列的任务列表
        """
        with self._lock:
            self._has_unparsed = False

            if not self.db_file.exists():
                self._initialize()
                return []

            try:
                raw = self.db_file.read_text(encoding="utf-8")
                data = json.loads(raw or "[]")
            except OSError as e:
                logger.error(f"读取任务文件失败: {self.db_file}, 错误: {e}")
                return []
            except ValueError as e:
                logger.error(f"任务文件不是合法 JSON: {self.db_file}, 错误: {e}")
                self._has_unparsed = True
                return []

            if not isinstance(data, list):
                logger.error(f"任务文件格式错误（不是数组）: {self.db_file}")
                self._has_unparsed = True
                return []

            return self._parse_records(data)

    def save(self, tasks: List[Task]) -> None:
        """
        写回完整任务列表

        先写入同目录临时文件再原子替换，避免写到一半留下损坏的文件。

        Args:
            tasks: 完整任务列表

        Raises:
            StorageError: 上次读取有无法解析的内容，或写入失败且 strict_writes 开启
        """
        payload = json.dumps(
            [task.model_dump(mode="json", by_alias=True) for task in tasks],
            indent=2,
            ensure_ascii=False,
        )

        with self._lock:
            if self._has_unparsed:
                logger.error(f"任务文件包含无法解析的内容，拒绝覆盖: {self.db_file}")
                raise StorageError("Task file contains unreadable records")

            try:
                self._write_atomic(payload)
            except OSError as e:
                logger.error(f"写入任务文件失败: {self.db_file}, 错误: {e}", exc_info=True)
                if self.strict_writes:
                    raise StorageError("Failed to save tasks") from e

    def _parse_records(self, data: list) -> List[Task]:
        tasks: List[Task] = []
        seen_ids = set()

        for index, item in enumerate(data):
            try:
                task = Task.model_validate(item)
            except ValidationError as e:
                logger.warning(f"跳过无效任务记录 #{index}: {e.error_count()} 个错误")
                self._has_unparsed = True
                continue

            if task.id in seen_ids:
                logger.warning(f"跳过重复任务ID: {task.id}")
                self._has_unparsed = True
                continue

            seen_ids.add(task.id)
            tasks.append(task)

        return tasks

    def _initialize(self) -> None:
        try:
            self._write_atomic("[]")
            logger.info(f"已初始化任务文件: {self.db_file}")
        except OSError as e:
            logger.error(f"初始化任务文件失败: {self.db_file}, 错误: {e}")

    def _write_atomic(self, content: str) -> None:
        self.db_file.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=self.db_file.parent,
            prefix=f".{self.db_file.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, self.db_file)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
