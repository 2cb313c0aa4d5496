"""Synchronous trigger for the external build step.

The build writes the module root and the manifest; this server only
shells out and reports the exit status. The calling handler blocks until
the process exits (or the optional timeout fires).
"""
from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path

from core import metrics
from core.config.schemas.server import BuildConfig
from core.errors import BuildFailure

log = logging.getLogger(__name__)


def run_build(cfg: BuildConfig, cwd: str | Path = ".") -> None:
    """Run ``cfg.command`` in ``cwd``; raise BuildFailure unless it exits 0.

    Output is inherited (goes to the server console), as a developer
    watching the server expects to see the build log there.
    """
    argv = shlex.split(cfg.command)
    if not argv:
        metrics.inc("builds_total", {"outcome": "error"})
        raise BuildFailure("Build command is empty")
    log.info("Triggering rebuild: %s", cfg.command)
    try:
        subprocess.run(argv, cwd=str(cwd), check=True, timeout=cfg.timeout_s)
    except subprocess.CalledProcessError as e:
        metrics.inc("builds_total", {"outcome": "error"})
        log.error("Build failed: %s", e)
        raise BuildFailure(
            f"Command failed: {cfg.command} (exit {e.returncode})"
        ) from e
    except subprocess.TimeoutExpired as e:
        metrics.inc("builds_total", {"outcome": "timeout"})
        log.error("Build timed out after %ss", cfg.timeout_s)
        raise BuildFailure(f"Command timed out: {cfg.command}") from e
    except OSError as e:
        metrics.inc("builds_total", {"outcome": "error"})
        log.error("Build could not start: %s", e)
        raise BuildFailure(f"Command could not start: {e}") from e
    metrics.inc("builds_total", {"outcome": "ok"})
    log.info("Build completed")


__all__ = ["run_build"]
