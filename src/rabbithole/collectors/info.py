from __future__ import annotations

import os
import platform
import time
from pathlib import Path
from typing import Any, Dict, Optional

import psutil


VERSION = "0.1.0"
PROCESS_START = time.monotonic()


def get_info(config_path: Optional[str] = None, service: str = "rabbithole") -> Dict[str, Any]:
    return {
        "service": service,
        "version": VERSION,
        "pid": os.getpid(),
        "config_path": config_path,
        "python": platform.python_version(),
        "psutil": psutil.__version__,
        "platform": f"{platform.system()} {platform.release()}",
        "uptime_seconds": int(time.monotonic() - PROCESS_START),
        "git_commit": _git_commit(),
    }


def _git_commit(root: Optional[Path] = None) -> str:
    env = os.environ.get("RABBITHOLE_GIT_COMMIT")
    if env:
        return env

    git_dir = (root or Path.cwd()) / ".git"
    try:
        head = (git_dir / "HEAD").read_text(encoding="utf-8").strip()
        if head.startswith("ref:"):
            ref = head.split(" ", 1)[1].strip()
            return (git_dir / ref).read_text(encoding="utf-8").strip()[:12]
        return head[:12]
    except (OSError, IndexError):
        return "unknown"
