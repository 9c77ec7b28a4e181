"""Run external tools (ffmpeg, ffprobe) without blocking the event loop.

Commands run through `subprocess.run()` in a worker thread rather than
`asyncio.create_subprocess_exec()`; child watchers on some platforms hang in
`.wait()`.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
import subprocess
import time
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    args: tuple[str, ...]
    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command(self) -> str:
        return shlex.join(self.args)

    def stderr_tail(self, limit: int = 2000) -> str:
        """Last `limit` characters of stderr; ffmpeg puts the actual error at the end."""
        return self.stderr.decode("utf-8", errors="replace")[-limit:]


async def run_subprocess(
    args: Sequence[str],
    *,
    timeout_s: float | None = None,
) -> RunResult:
    """Run `args` and capture its output. A non-zero exit is reported, not raised."""
    argv = tuple(str(a) for a in args)

    def _run() -> subprocess.CompletedProcess[bytes]:
        return subprocess.run(
            list(argv),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
            timeout=timeout_s,
        )

    started = time.perf_counter()
    cp = await asyncio.to_thread(_run)
    logger.debug(
        "command finished (cmd=%s, code=%s, elapsed_ms=%s)",
        argv[0] if argv else "",
        cp.returncode,
        int((time.perf_counter() - started) * 1000),
    )
    return RunResult(
        args=argv,
        returncode=int(cp.returncode),
        stdout=cp.stdout or b"",
        stderr=cp.stderr or b"",
    )
