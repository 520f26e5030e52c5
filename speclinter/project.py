"""Project root resolution, initialization and task status operations."""

from __future__ import annotations

import logging
import os
import sqlite3
from pathlib import Path
from typing import Any, Dict, Optional

from .config import DEFAULT_CONFIG, config_manager
from .speclinter_logging import log_error_with_context, log_operation, observability_hooks
from .storage import Storage, StorageManager, create_project_layout
from .validation import SPECLINTER_DIR

PROJECT_ROOT_ENV = "SPECLINTER_PROJECT_ROOT"


def find_project_root(start: Path) -> Optional[Path]:
    """Nearest ancestor of ``start`` (inclusive) holding a ``.speclinter`` dir."""
    current = start.resolve()
    for candidate in (current, *current.parents):
        if (candidate / SPECLINTER_DIR).is_dir():
            return candidate
    return None


def resolve_project_root(explicit: Optional[str] = None) -> Path:
    """Pick the project root: argument, then environment, then ancestors, then cwd."""
    if explicit:
        return Path(explicit).expanduser().resolve()

    env_root = os.getenv(PROJECT_ROOT_ENV)
    if env_root:
        return Path(env_root).expanduser().resolve()

    cwd = Path.cwd()
    return find_project_root(cwd) or cwd.resolve()


def open_storage(project_root: Optional[str] = None) -> Storage:
    return StorageManager.create_initialized_storage(resolve_project_root(project_root))


def init_project(project_root: Optional[str] = None, force_reinit: bool = False) -> Dict[str, Any]:
    logger = logging.getLogger("speclinter.project")
    root = resolve_project_root(project_root)

    if (root / SPECLINTER_DIR).exists() and not force_reinit:
        return {
            "success": False,
            "message": "SpecLinter already initialized in this directory. Use force_reinit: true to reinitialize.",
            "project_root": str(root),
        }

    try:
        with log_operation("init_project", project_root=str(root), force_reinit=force_reinit):
            root.mkdir(parents=True, exist_ok=True)
            directories = create_project_layout(root, DEFAULT_CONFIG, overwrite=True)
            config_manager.clear_cache(root)
            Storage(root).initialize().close()
    except (OSError, sqlite3.Error) as e:
        log_error_with_context(e, {"operation": "init_project", "project_root": str(root)})
        return {
            "success": False,
            "message": f"Failed to initialize SpecLinter: {e}",
            "project_root": str(root),
        }

    logger.info(f"SpecLinter initialized at {root}")
    observability_hooks.log_workflow_event("project_initialized", project_root=str(root))
    return {
        "success": True,
        "message": "SpecLinter initialized successfully!",
        "project_root": str(root),
        "directories_created": list(directories),
        "next_steps": [
            "Run codebase analysis to generate AI-powered context files",
            "Use speclinter_analyze_codebase_prepare to start AI analysis",
            "Context files will be automatically generated with project-specific content",
        ],
    }


def get_task_status(feature_name: str, project_root: Optional[str] = None) -> Dict[str, Any]:
    with open_storage(project_root) as storage:
        return storage.get_feature_status(feature_name).to_dict()


def update_task_status(
    feature_name: str,
    task_id: str,
    status: str,
    notes: Optional[str] = None,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    with open_storage(project_root) as storage:
        task = storage.update_task_status(feature_name, task_id, status, notes)
        storage.update_active_file(feature_name)

    return {
        "task_id": task.id,
        "feature_name": task.feature_name,
        "status": task.status,
        "title": task.title,
        "updated": True,
    }
