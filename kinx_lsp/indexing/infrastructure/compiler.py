"""
Kinx Compiler Adapter (asyncio subprocess)

Runs `kinx -ic --output-location` over the document text and returns the
combined stdout/stderr report.
"""

import asyncio
import time
from dataclasses import dataclass
from pathlib import Path

from kinx_lsp.common.exceptions import CompilerError, CompilerNotFoundError, CompilerTimeoutError
from kinx_lsp.common.observability import get_logger

logger = get_logger(__name__)

DEFAULT_END_MARKER = "__END__"


@dataclass(frozen=True)
class CompilerReport:
    output: str
    exit_code: int
    execution_time_ms: float


def build_command(executable: str, path: Path) -> list[str]:
    return [
        executable,
        "-ic",
        "--output-location",
        "--error-code=0",
        f"--filename={path.name}",
        f"--workdir={path.parent}",
    ]


class KinxCompiler:
    """
    Async compiler invoker.

    Usage:
        compiler = KinxCompiler("kinx", timeout=10.0)
        report = await compiler.compile(text, Path("/work/main.kx"))
    """

    def __init__(self, executable: str = "kinx", timeout: float = 10.0, end_marker: str = DEFAULT_END_MARKER):
        self.executable = executable
        self.timeout = timeout
        self.end_marker = end_marker

    async def compile(self, text: str, path: Path) -> CompilerReport:
        """
        Raises:
            CompilerNotFoundError: The executable does not exist
            CompilerTimeoutError: No report within `timeout` seconds
            CompilerError: Any other failure to run the process
        """
        command = build_command(self.executable, path)
        payload = f"{text}\n{self.end_marker}".encode("utf-8")
        start_time = time.time()

        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except FileNotFoundError as e:
            raise CompilerNotFoundError(
                "Kinx compiler executable not found", executable=self.executable, filename=path.name
            ) from e
        except OSError as e:
            raise CompilerError(
                f"Failed to start Kinx compiler: {e}", executable=self.executable, filename=path.name
            ) from e

        try:
            stdout, _ = await asyncio.wait_for(proc.communicate(payload), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            logger.error("compiler_timeout", executable=self.executable, filename=path.name, timeout=self.timeout)
            raise CompilerTimeoutError(
                "Kinx compiler timed out",
                executable=self.executable,
                filename=path.name,
                timeout=self.timeout,
            ) from e

        execution_time = (time.time() - start_time) * 1000
        output = stdout.decode("utf-8", errors="replace") if stdout else ""
        logger.debug(
            "compiler_finished",
            filename=path.name,
            exit_code=proc.returncode,
            output_lines=output.count("\n"),
            execution_time_ms=round(execution_time, 1),
        )
        return CompilerReport(output=output, exit_code=proc.returncode or 0, execution_time_ms=execution_time)
