"""Compiler adapter: the one external collaborator the pipeline depends on.

A compiler turns named contract sources into bytecode. The pipeline only
sees the CompilerAdapter protocol; CommandCompiler is the implementation for
a truffle-style project, where a build command compiles everything under
contracts/ and leaves one JSON artifact per contract in build/contracts/.

Usage:
    compiler = CommandCompiler.from_config(config)
    compiled = compiler.compile({"SETMERC20": source}, contracts=["Token"])
    compiled["SETMERC20"].deployed_bytecode
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Protocol, Sequence

from .config_schema import GeneratorConfig
from .errors import CompileError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledContract:
    """Bytecode pair read from a compiler artifact."""

    name: str
    bytecode: str
    deployed_bytecode: str

    def field(self, name: str) -> str:
        """Look up by artifact field name ('bytecode' or 'deployedBytecode')."""
        if name == "bytecode":
            return self.bytecode
        if name == "deployedBytecode":
            return self.deployed_bytecode
        raise ValueError(f"Unknown bytecode field: {name}")


class CompilerAdapter(Protocol):
    """Anything that can compile named sources and report per-contract bytecode."""

    def compile(
        self, sources: Mapping[str, str], contracts: Iterable[str] = ()
    ) -> dict[str, CompiledContract]:
        """Compile `sources` and return artifacts for them plus `contracts`.

        Raises:
            CompileError: On toolchain failure or a missing expected artifact
        """
        ...


class CommandCompiler:
    """Run a project build command and read its JSON artifacts."""

    def __init__(
        self,
        command: Sequence[str],
        project_dir: Path,
        source_dir: Path,
        build_dir: Path,
    ) -> None:
        self.command = list(command)
        self.project_dir = project_dir
        self.source_dir = source_dir
        self.build_dir = build_dir

    @classmethod
    def from_config(cls, config: GeneratorConfig) -> "CommandCompiler":
        return cls(
            command=config.compiler.command,
            project_dir=config.project_dir,
            source_dir=config.resolve(config.paths.specialized_dir),
            build_dir=config.resolve(config.paths.build_dir),
        )

    def compile(
        self, sources: Mapping[str, str], contracts: Iterable[str] = ()
    ) -> dict[str, CompiledContract]:
        self._write_sources(sources)
        self._run()
        names = list(sources) + [name for name in contracts if name not in sources]
        return {name: self.load_artifact(name) for name in names}

    def load_artifact(self, name: str) -> CompiledContract:
        """Read build/contracts/{name}.json."""
        path = self.build_dir / f"{name}.json"
        if not path.exists():
            raise CompileError(f"Compiler produced no artifact for {name} ({path})", contract=name)
        try:
            with open(path) as f:
                artifact = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CompileError(f"Unreadable artifact for {name}: {e}", contract=name) from e

        missing = [key for key in ("bytecode", "deployedBytecode") if key not in artifact]
        if missing:
            raise CompileError(
                f"Artifact for {name} lacks {', '.join(missing)}", contract=name
            )
        return CompiledContract(
            name=name,
            bytecode=artifact["bytecode"],
            deployed_bytecode=artifact["deployedBytecode"],
        )

    def _write_sources(self, sources: Mapping[str, str]) -> None:
        if not sources:
            return
        try:
            self.source_dir.mkdir(parents=True, exist_ok=True)
            for name, source in sources.items():
                (self.source_dir / f"{name}.sol").write_text(source)
        except OSError as e:
            raise CompileError(f"Could not write contract sources to {self.source_dir}: {e}") from e
        logger.debug(f"Wrote {len(sources)} sources to {self.source_dir}")

    def _run(self) -> None:
        logger.info(f"Compiling: {' '.join(self.command)} (in {self.project_dir})")
        try:
            subprocess.run(
                self.command,
                cwd=self.project_dir,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise CompileError(f"Compiler command not found: {self.command[0]}") from e
        except subprocess.CalledProcessError as e:
            output = (e.stderr or "") + (e.stdout or "")
            raise CompileError(
                f"Compiler exited with status {e.returncode}: {output.strip()[-2000:]}",
                output=output,
            ) from e
