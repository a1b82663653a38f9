"""Process runner for external command-line tools."""

import asyncio
import contextlib
import os
from collections.abc import Sequence
from pathlib import Path

from storedeploy.models.deployment import CommandResult
from storedeploy.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


class ProcessRunner:
    """Runs external commands asynchronously with a timeout.

    Never raises for command failures: a missing executable, a non-zero
    exit status and a timeout are all reported through ``CommandResult``.
    """

    def __init__(
        self,
        cwd: str | Path | None = None,
        env: dict[str, str] | None = None,
        secrets: Sequence[str] = (),
    ):
        self.cwd = Path(cwd) if cwd else Path.cwd()
        self.env = env
        self._secrets = [secret for secret in secrets if secret]

    def mask(self, text: str) -> str:
        """Hide secrets (tokens) in command lines and output."""
        for secret in self._secrets:
            text = text.replace(secret, "***")
        return text

    async def run(
        self,
        args: Sequence[str],
        *,
        timeout: float | None = DEFAULT_TIMEOUT,
        cwd: str | Path | None = None,
    ) -> CommandResult:
        """Run a command and capture its output."""
        args = [str(arg) for arg in args]
        workdir = Path(cwd) if cwd else self.cwd
        env = {**os.environ, **self.env} if self.env else None
        command_display = self.mask(" ".join(args))

        logger.debug("process.started", cmd=command_display, cwd=str(workdir))

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                cwd=str(workdir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except (FileNotFoundError, PermissionError) as e:
            logger.info("process.not_found", cmd=command_display, error=str(e))
            return CommandResult(args=args, error=f"{args[0]}: {e.strerror or e}")
        except OSError as e:
            logger.warning("process.spawn_failed", cmd=command_display, error=str(e))
            return CommandResult(args=args, error=str(e))

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            # The child may exit between the timeout and the kill
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            logger.warning("process.timeout", cmd=command_display, timeout=timeout)
            return CommandResult(
                args=args,
                returncode=process.returncode,
                error=f"Command timed out after {timeout:g}s: {command_display}",
                timed_out=True,
            )

        result = CommandResult(
            args=args,
            returncode=process.returncode,
            stdout=self.mask(stdout.decode(errors="replace")) if stdout else "",
            stderr=self.mask(stderr.decode(errors="replace")) if stderr else "",
        )

        logger.debug(
            "process.completed",
            cmd=command_display,
            returncode=process.returncode,
            stdout_len=len(result.stdout),
            stderr_len=len(result.stderr),
        )
        return result
