"""Worker runtime and HTTP surface."""

from .server import AppServer, create_app
from .worker import ExecutionRecord, ExecutionStatus, Worker

__all__ = ["Worker", "ExecutionRecord", "ExecutionStatus", "AppServer", "create_app"]
