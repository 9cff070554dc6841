"""MHO hospital operations delegation package."""

from .config import BackendConfig, ControllerConfig, ExecutorConfig, RouterConfig

__all__ = ["BackendConfig", "ControllerConfig", "ExecutorConfig", "RouterConfig"]
