"""Logging and observability utilities for SpecLinter.

This module provides structured logging, performance monitoring,
and observability hooks for the SpecLinter tool server. Console output
goes to stderr because stdout carries the MCP stdio transport.
"""

from __future__ import annotations

import json
import os
import sys
import time
import logging as std_logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
from functools import wraps

LOG_LEVEL_ENV = "SPECLINTER_LOG_LEVEL"
LOG_FILE_ENV = "SPECLINTER_LOG_FILE"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def setup_logging(log_level: Union[str, int, None] = None, log_file: Optional[Path] = None) -> None:
    """Setup structured logging for SpecLinter.

    Level and file default to the ``SPECLINTER_LOG_LEVEL`` and
    ``SPECLINTER_LOG_FILE`` environment variables.
    """
    if log_level is None:
        log_level = os.getenv(LOG_LEVEL_ENV, "INFO")
    if isinstance(log_level, str):
        log_level = log_level.upper()
    if log_file is None and os.getenv(LOG_FILE_ENV):
        log_file = Path(os.environ[LOG_FILE_ENV])

    logger = std_logging.getLogger("speclinter")
    logger.setLevel(log_level)

    # Clear existing handlers
    logger.handlers.clear()

    detailed_formatter = std_logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = std_logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(detailed_formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = std_logging.FileHandler(log_file)
        file_handler.setLevel(std_logging.DEBUG)
        file_handler.setFormatter(JsonFormatter())
        logger.addHandler(file_handler)

    logger.info("SpecLinter logging initialized")


class JsonFormatter(std_logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: std_logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry, default=str)


class PerformanceMonitor:
    """Keep timing metrics for tool operations in memory."""

    def __init__(self):
        self.metrics: Dict[str, List[Dict[str, Any]]] = {}

    def record_metric(self, name: str, value: Any, tags: Optional[Dict[str, str]] = None) -> None:
        metric = {
            "timestamp": _utc_now(),
            "name": name,
            "value": value,
            "tags": tags or {}
        }
        self.metrics.setdefault(name, []).append(metric)

        logger = std_logging.getLogger("speclinter.performance")
        logger.debug(f"Metric recorded: {name}={value}", extra={"extra_fields": metric})

    def get_metrics(self, name: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
        if name:
            return {name: self.metrics.get(name, [])}
        return self.metrics.copy()

    def clear(self) -> None:
        self.metrics.clear()


performance_monitor = PerformanceMonitor()


def log_performance(operation_name: str):
    """Decorator recording the duration of ``operation_name`` and logging failures."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            logger = std_logging.getLogger("speclinter.performance")

            try:
                logger.debug(f"Starting operation: {operation_name}")
                result = func(*args, **kwargs)

                duration = time.time() - start_time
                performance_monitor.record_metric(
                    f"{operation_name}_duration",
                    duration,
                    {"status": "success"}
                )
                logger.info(
                    f"Completed operation: {operation_name} in {duration:.3f}s",
                    extra={"extra_fields": {
                        "operation": operation_name,
                        "duration": duration,
                        "status": "success"
                    }}
                )
                return result

            except Exception as e:
                duration = time.time() - start_time
                performance_monitor.record_metric(
                    f"{operation_name}_duration",
                    duration,
                    {"status": "error", "error_type": type(e).__name__}
                )
                logger.error(
                    f"Failed operation: {operation_name} after {duration:.3f}s - {e}",
                    extra={"extra_fields": {
                        "operation": operation_name,
                        "duration": duration,
                        "status": "error",
                        "error_type": type(e).__name__,
                        "error_message": str(e)
                    }},
                    exc_info=True
                )
                raise

        return wrapper
    return decorator


@contextmanager
def log_operation(operation_name: str, **extra_fields):
    """Context manager to log operations with custom fields."""
    logger = std_logging.getLogger("speclinter.operations")
    start_time = time.time()

    logger.debug(f"Starting operation: {operation_name}", extra={"extra_fields": {
        "operation": operation_name,
        "status": "started",
        **extra_fields
    }})

    try:
        yield
        duration = time.time() - start_time
        logger.info(f"Completed operation: {operation_name} in {duration:.3f}s", extra={"extra_fields": {
            "operation": operation_name,
            "status": "completed",
            "duration": duration,
            **extra_fields
        }})

    except Exception as e:
        duration = time.time() - start_time
        logger.error(f"Failed operation: {operation_name} after {duration:.3f}s - {e}", extra={"extra_fields": {
            "operation": operation_name,
            "status": "failed",
            "duration": duration,
            "error_type": type(e).__name__,
            "error_message": str(e),
            **extra_fields
        }}, exc_info=True)
        raise


class ObservabilityHooks:
    """Callbacks fired on tool workflow events."""

    def __init__(self):
        self.hooks: Dict[str, List[Callable[..., Any]]] = {}
        self.logger = std_logging.getLogger("speclinter.observability")

    def register_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        self.hooks.setdefault(event_type, []).append(callback)
        self.logger.debug(f"Registered hook for event: {event_type}")

    def unregister_hooks(self, event_type: str) -> None:
        self.hooks.pop(event_type, None)

    def trigger_hooks(self, event_type: str, **data) -> None:
        """Run every callback for ``event_type``; a failing hook is logged and skipped."""
        for hook in self.hooks.get(event_type, []):
            try:
                hook(**data)
            except Exception as e:
                self.logger.error(f"Hook failed for event {event_type}: {e}")

    def log_workflow_event(self, event_type: str, feature_name: Optional[str] = None, **data) -> None:
        event_data = {
            "timestamp": _utc_now(),
            "event_type": event_type,
            "feature_name": feature_name,
            **data
        }
        self.logger.info(f"Workflow event: {event_type}", extra={"extra_fields": event_data})

        hook_data = {k: v for k, v in event_data.items() if k != "event_type"}
        self.trigger_hooks(event_type, **hook_data)


observability_hooks = ObservabilityHooks()


def log_tool_call(tool_name: str, phase: Optional[str] = None, **extra_fields):
    """Log an MCP tool invocation."""
    observability_hooks.log_workflow_event(
        f"tool_{tool_name.lower()}",
        tool_name=tool_name,
        phase=phase,
        **extra_fields
    )


def log_artifact_event(event_type: str, artifact_type: str, feature_name: str, **extra_fields):
    """Log an artifact-related event."""
    observability_hooks.log_workflow_event(
        f"artifact_{event_type.lower()}",
        feature_name=feature_name,
        artifact_type=artifact_type,
        **extra_fields
    )


def log_error_with_context(error: Exception, context: Dict[str, Any], **extra_fields):
    """Log an error with rich context information."""
    logger = std_logging.getLogger("speclinter.errors")

    error_data = {
        "timestamp": _utc_now(),
        "error_type": type(error).__name__,
        "error_message": str(error),
        "context": context,
        **extra_fields
    }
    logger.error(
        f"Error in {context.get('operation', 'unknown operation')}: {error}",
        extra={"extra_fields": error_data},
        exc_info=True
    )


# Convenience functions for common artifacts
def log_feature_saved(feature_name: str, task_count: int, **extra_fields):
    log_artifact_event("saved", "feature", feature_name, task_count=task_count, **extra_fields)


def log_feature_merged(feature_name: str, new_task_count: int, skipped: int, **extra_fields):
    log_artifact_event(
        "merged", "feature", feature_name,
        new_task_count=new_task_count, duplicate_tasks_skipped=skipped, **extra_fields
    )


def log_task_update(feature_name: str, task_id: str, status: str, **extra_fields):
    log_artifact_event("updated", "task", feature_name, task_id=task_id, status=status, **extra_fields)


def log_context_update(files: List[str], **extra_fields):
    observability_hooks.log_workflow_event("context_updated", files=files, **extra_fields)


def log_gherkin_generation(feature_name: str, task_id: str, scenario_count: int, **extra_fields):
    log_artifact_event(
        "generated", "gherkin", feature_name,
        task_id=task_id, scenario_count=scenario_count, **extra_fields
    )


def log_validation_stored(feature_name: str, overall_status: str, quality_score: int, **extra_fields):
    log_artifact_event(
        "stored", "validation", feature_name,
        overall_status=overall_status, quality_score=quality_score, **extra_fields
    )
