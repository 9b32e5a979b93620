"""Run the external compiler shipped inside the dist bundle."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional

from distmat.modules.dist.domain import BuildConfig, CompilationError


class CompilerInvoker:
    def __init__(self, executable: str = "robovm", *, timeout: Optional[int] = None) -> None:
        self.executable = executable
        self.timeout = timeout
        self.log = logging.getLogger(self.__class__.__name__)

    def executable_path(self, home: Path) -> Path:
        bin_dir = Path(home) / "bin"
        if os.name == "nt":
            for suffix in (".bat", ".cmd", ".exe"):
                candidate = bin_dir / f"{self.executable}{suffix}"
                if candidate.exists():
                    return candidate
        return bin_dir / self.executable

    def build_command(self, config: BuildConfig) -> List[str]:
        cmd = [str(self.executable_path(config.home)), "-home", str(config.home)]
        if config.classpath:
            cmd += ["-cp", os.pathsep.join(str(entry) for entry in config.classpath)]
        if config.os is not None:
            cmd += ["-os", config.os.value]
        if config.arch is not None:
            cmd += ["-arch", config.arch.value]
        if config.output_dir is not None:
            cmd += ["-d", str(config.output_dir)]
        cmd.append(config.main_class)
        return cmd

    def compile(self, config: BuildConfig) -> subprocess.CompletedProcess:
        command = self.build_command(config)
        if not Path(command[0]).exists():
            raise CompilationError(
                f"Compiler executable not found in dist: {command[0]}",
                context={"home": config.home, "main_class": config.main_class},
            )
        if config.output_dir is not None:
            Path(config.output_dir).mkdir(parents=True, exist_ok=True)

        self.log.info("Building app main_class=%s home=%s", config.main_class, config.home)
        self.log.debug("Executing compiler cmd=%s", command)
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                cwd=str(config.output_dir or config.home),
                timeout=self.timeout,
                stdin=subprocess.DEVNULL,
            )
        except subprocess.TimeoutExpired as exc:
            self.log.error("Compiler timeout after %ss cmd=%s", self.timeout, command)
            raise CompilationError(
                f"Compiler timed out after {self.timeout}s",
                context={"home": config.home, "main_class": config.main_class},
            ) from exc
        except OSError as exc:
            raise CompilationError(
                f"Unable to start compiler {command[0]}: {exc}",
                context={"home": config.home, "main_class": config.main_class},
            ) from exc
        if completed.stdout:
            self.log.info("Compiler stdout: %s", completed.stdout.strip())
        if completed.stderr:
            self.log.warning("Compiler stderr: %s", completed.stderr.strip())
        if completed.returncode != 0:
            raise CompilationError(
                f"Compiler exited with status {completed.returncode}",
                context={
                    "home": config.home,
                    "main_class": config.main_class,
                    "stderr": (completed.stderr or "").strip()[-2000:],
                },
            )
        return completed
