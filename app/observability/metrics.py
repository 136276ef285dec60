"""
Prometheus 指标定义

所有指标统一在此文件定义，中间件和业务代码按需引用。
"""

from prometheus_client import Counter, Histogram

# ── 请求级指标 ──

REQUEST_TOTAL = Counter(
    "task_store_request_total",
    "HTTP 请求总数",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "task_store_request_duration_ms",
    "HTTP 请求耗时（毫秒）",
    ["method", "endpoint"],
    buckets=[5, 10, 25, 50, 100, 250, 500, 1000],
)

# ── 存储层指标 ──

STORE_OP_TOTAL = Counter(
    "task_store_op_total",
    "任务文件操作总数",
    ["operation", "outcome"],  # operation: create/show/list/update/delete/count，outcome: success/error
)

# ── 错误指标 ──

ERROR_TOTAL = Counter(
    "task_store_error_total",
    "错误总数",
    ["error_type"],  # directory_read/serialization/deserialization/file_open/file_write/file_remove
)


def record_store_success(operation: str) -> None:
    STORE_OP_TOTAL.labels(operation=operation, outcome="success").inc()


def record_store_error(operation: str, error_type: str) -> None:
    STORE_OP_TOTAL.labels(operation=operation, outcome="error").inc()
    ERROR_TOTAL.labels(error_type=error_type).inc()
