"""Runs the consuming command as a child process per delivery."""

from __future__ import annotations

import logging
import subprocess
from typing import List, Optional, Sequence

from amqp_consume.contracts import IPipeline, IPipelineRunner, PipelineResult


class SubprocessPipeline(IPipeline):
    """A child process whose standard input receives one message body.

    Standard output and error are inherited so the command's own output
    reaches the terminal unchanged.
    """

    def __init__(
        self,
        process: "subprocess.Popen[bytes]",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.process = process
        self.logger = logger or logging.getLogger(__name__)
        self.input_broken = False
        self._result: Optional[PipelineResult] = None

    def write(self, data: bytes) -> None:
        if self.input_broken or not data:
            return
        stdin = self.process.stdin
        if stdin is None or stdin.closed:
            raise ValueError("Pipeline input is already closed.")
        try:
            stdin.write(data)
        except BrokenPipeError:
            # the rest of the body is still drained by the caller
            self.input_broken = True
            self.logger.warning(
                "Command (pid %s) closed its input before the message was fully written",
                self.process.pid,
            )

    def close_input(self) -> None:
        stdin = self.process.stdin
        if stdin is None or stdin.closed:
            return
        try:
            stdin.close()
        except BrokenPipeError:
            self.input_broken = True

    def finish(self) -> PipelineResult:
        if self._result is not None:
            return self._result

        self.close_input()
        returncode = self.process.wait()
        self._result = PipelineResult(
            exited_cleanly=returncode == 0,
            returncode=returncode,
            input_broken=self.input_broken,
        )
        if returncode != 0:
            self.logger.warning(
                "Command (pid %s) exited with status %s", self.process.pid, returncode
            )
        return self._result

    def terminate(self) -> None:
        if self._result is not None:
            return
        if self.process.poll() is None:
            self.process.kill()
        self.finish()


class FailedPipeline(IPipeline):
    """Stands in for a command that could not be started."""

    def __init__(self, error: OSError) -> None:
        self.error = error

    def write(self, data: bytes) -> None:
        pass

    def close_input(self) -> None:
        pass

    def finish(self) -> PipelineResult:
        return PipelineResult(exited_cleanly=False)

    def terminate(self) -> None:
        pass


class SubprocessPipelineRunner(IPipelineRunner):
    """Spawns the configured command once per delivered message."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    def start(self, command: Sequence[str]) -> IPipeline:
        argv: List[str] = list(command)
        if not argv:
            raise ValueError("Consuming command must not be empty.")

        try:
            process = subprocess.Popen(argv, stdin=subprocess.PIPE)
        except OSError as exc:
            self.logger.error("Failed to start %s: %s", argv[0], exc)
            return FailedPipeline(exc)

        self.logger.debug("Started %s (pid %s)", argv[0], process.pid)
        return SubprocessPipeline(process, logger=self.logger)
