"""Launching external processes and streaming their output line by line."""

from __future__ import annotations

import logging
import subprocess
import threading
from typing import Callable, Dict, List, Optional, Sequence

logger = logging.getLogger("launchenv")

LineHandler = Callable[[str, bool], None]


class StreamingProcess:
    """Run a command and hand every output line to ``handler(line, is_stdout)``.

    One pump thread per stream reads lines; calls into ``handler`` are
    serialized with a lock so handlers never run concurrently.
    Exceptions raised by ``handler`` are collected in ``failures``.
    ``destroy`` may be called from any thread.
    """

    def __init__(
        self,
        args: Sequence[str],
        handler: LineHandler,
        *,
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None,
        kill_timeout: float = 5.0,
    ) -> None:
        self.args = list(args)
        self.handler = handler
        self.env = env
        self.cwd = cwd
        self.kill_timeout = kill_timeout
        self.process: Optional[subprocess.Popen] = None
        self.destroyed = threading.Event()
        self._lock = threading.Lock()
        self._threads: List[threading.Thread] = []
        self.failures: List[Exception] = []

    def _pump(self, pipe, stdout: bool) -> None:
        try:
            for line in iter(pipe.readline, ""):
                with self._lock:
                    try:
                        self.handler(line.rstrip("\r\n"), stdout)
                    except Exception as exc:
                        # The pipe is drained even after a handler failure.
                        if not self.failures:
                            logger.error(f"Failed to handle output of {self.args[0]}: {exc}")
                        self.failures.append(exc)
        finally:
            pipe.close()

    def start(self) -> None:
        logger.debug(f"Launching: {self.args}")
        self.process = subprocess.Popen(
            self.args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            env=self.env,
            cwd=self.cwd,
            text=True,
            errors="replace",
            bufsize=1,
        )
        for pipe, stdout in ((self.process.stdout, True), (self.process.stderr, False)):
            thread = threading.Thread(target=self._pump, args=(pipe, stdout), daemon=True)
            thread.start()
            self._threads.append(thread)
        if self.destroyed.is_set():
            self._terminate()

    def wait(self) -> int:
        """Block until the process has exited and all output was handled."""
        if self.process is None:
            raise RuntimeError("Process has not been started")
        code = self.process.wait()
        for thread in self._threads:
            thread.join()
        logger.debug(f"Process exited with code {code}: {self.args[0]}")
        return code

    def run(self) -> int:
        self.start()
        return self.wait()

    def _terminate(self) -> None:
        process = self.process
        if process is None or process.poll() is not None:
            return
        logger.info(f"Terminating process {process.pid}")
        process.terminate()
        try:
            process.wait(timeout=self.kill_timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Process {process.pid} did not terminate, killing it")
            process.kill()

    def destroy(self) -> None:
        self.destroyed.set()
        self._terminate()
