import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import tasks
from .config import settings
from .exceptions import MalformedInputError, TaskStoreError
from .models.task import ErrorResponse

# 配置日志
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 启动时初始化任务文件
    factory = app.dependency_overrides.get(tasks.get_task_service, tasks.get_task_service)
    service = factory()
    logger.info("Task List 服务启动")
    logger.info(f"任务文件: {service.store.db_file}")
    logger.info(f"当前任务数: {len(service.list_tasks())}")
    yield
    logger.info("Task List 服务关闭")


app = FastAPI(
    title="Task List API",
    description="基于 JSON 文件持久化的任务清单 REST API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# 路由注册
app.include_router(tasks.router, tags=["任务管理"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump()
    )


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    """拒绝超过大小限制的请求体"""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > settings.max_body_bytes:
        return _error(400, "Request body too large")
    return await call_next(request)


@app.exception_handler(TaskStoreError)
async def task_store_error_handler(request: Request, exc: TaskStoreError):
    if exc.status_code >= 500:
        logger.error(f"请求处理失败: {request.method} {request.url.path}, 错误: {exc.message}")
    return _error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        error = MalformedInputError("Invalid JSON")
    elif errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Bad request")
        error = MalformedInputError(f"{field}: {message}" if field else message)
    else:
        error = MalformedInputError("Bad request")
    return _error(error.status_code, error.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # 未知路由和不支持的方法统一返回 404
    if exc.status_code in (404, 405):
        return _error(404, "Route not found")
    return _error(exc.status_code, str(exc.detail))


@app.get("/", summary="服务信息", tags=["系统"])
async def root():
    """获取 API 服务信息"""
    return {"message": "Task List API is running", "version": "1.0.0"}


@app.get("/health", summary="健康检查", tags=["系统"])
async def health():
    """检查服务健康状态"""
    return {"status": "healthy"}


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)


def run():
    import uvicorn

    # 任务文件没有跨进程锁，只能单 worker 运行
    uvicorn.run(
        "tasklist.main:app",
        host=settings.host,
        port=settings.port,
        workers=1,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
