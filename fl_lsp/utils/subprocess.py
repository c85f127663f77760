"""
Subprocess utility functions for executing external commands on the event loop.
"""

import asyncio
import logging
import subprocess
from typing import Dict, List, Optional

# Configure logging
logger = logging.getLogger(__name__)


def _preview(output: str) -> str:
    return output[:200] + "..." if len(output) > 200 else output


async def run_command(
    cmd: List[str],
    timeout: Optional[float] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
) -> subprocess.CompletedProcess:
    """
    Run a command without blocking the event loop and handle logging consistently.

    Args:
        cmd: List of command line arguments
        timeout: Seconds to wait for the process to exit, or None to wait forever
        cwd: Current working directory for the command
        env: Environment variables to set for the command

    Returns:
        CompletedProcess instance with return code, decoded stdout and stderr

    Raises:
        OSError: If the process could not be spawned
        asyncio.TimeoutError: If the process did not exit in time; it is killed first
    """
    cmd_str = " ".join(cmd)
    logger.debug(f"Executing command: {cmd_str}")

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd,
        env=env,
    )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"Command timed out after {timeout}s: {cmd_str}")
        process.kill()
        await process.wait()
        raise

    result = subprocess.CompletedProcess(
        args=cmd,
        returncode=process.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )

    logger.debug(f"Command return code: {result.returncode}")
    if result.stdout:
        logger.debug(f"Command stdout: {_preview(result.stdout)}")
    if result.stderr:
        logger.debug(f"Command stderr: {_preview(result.stderr)}")

    return result
