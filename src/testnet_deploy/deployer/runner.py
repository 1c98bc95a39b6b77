"""Run external commands"""

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from testnet_deploy.errors import CommandError, ConfigError

logger = logging.getLogger(__name__)


def quote_command(cmd: Sequence[str]) -> str:
    """Render a command the way a shell would accept it"""
    return " ".join(shlex.quote(str(part)) for part in cmd)


def format_command(template: Sequence[str], **values: str) -> List[str]:
    """Substitute placeholders such as {testnet} into a command template"""
    if isinstance(template, str) or not template:
        raise ConfigError(f"Command template must be a non-empty list, got {template!r}")

    try:
        return [str(part).format(**values) for part in template]
    except (KeyError, IndexError) as e:
        raise ConfigError(f"Unknown placeholder {e} in command template {list(template)}") from e


def run_command(
    cmd: Sequence[str],
    cwd: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
    check: bool = True,
    capture: bool = True,
    dry_run: bool = False,
) -> subprocess.CompletedProcess:
    """Run a command and return the result.

    With ``capture=False`` the command inherits the terminal, which is what
    long-running builds want. A missing executable is reported like a shell
    would, as exit status 127, and one that cannot be executed as 126.
    """
    cmd = [str(part) for part in cmd]

    if dry_run:
        logger.info("Would run: %s", quote_command(cmd))
        return subprocess.CompletedProcess(cmd, 0, "", "")

    logger.info("Running: %s", quote_command(cmd))

    run_env = None
    if env:
        run_env = os.environ.copy()
        run_env.update(env)

    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            env=run_env,
            capture_output=capture,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        logger.error("Executable not found: %s", cmd[0])
        raise CommandError(cmd, 127, str(e)) from e
    except OSError as e:
        logger.error("Cannot execute %s: %s", cmd[0], e)
        raise CommandError(cmd, 126, str(e)) from e

    if result.returncode != 0:
        logger.debug("Command exited with code %d", result.returncode)
        if check:
            if result.stderr:
                logger.error("stderr: %s", result.stderr.strip())
            raise CommandError(cmd, result.returncode, result.stderr)

    return result
