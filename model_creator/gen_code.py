"""
External code-generation step.

The packaged GenCode.bat turns the EEPROM binary sitting next to the primary
config file into a C header. This module only orchestrates it: pick the
binary, give it the name the build script expects, run the script in that
directory and clean up. Output is surfaced, never parsed.
"""

import os
import shlex
import subprocess
from pathlib import Path
from typing import List

from model_creator.exceptions import CollaboratorFileMissingError, GenScriptError
from model_creator.models import StepOutcome
from model_creator.steps import BaseFileStep, resolve_relative


def find_binaries(directory: Path, extension: str = ".bin") -> List[Path]:
    """Binary files directly inside *directory*, sorted by name."""
    if not directory.is_dir():
        return []
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() == extension.lower()
    )


def quote_path(path: Path) -> str:
    """*path* as one shell word for ``shell=True`` (cmd.exe or /bin/sh)."""
    if os.name == "nt":
        return subprocess.list2cmdline([str(path)])
    return shlex.quote(str(path))


def delete_files(paths: List[Path], run_log=None) -> int:
    deleted = 0
    for path in paths:
        if path.exists():
            path.unlink()
            deleted += 1
            if run_log is not None:
                run_log.debug("gen_code", f"Deleted {path.name}")
    return deleted


class GenCodeStep(BaseFileStep):
    """Rename the single binary, run the generation script, delete the binaries."""

    name = "gen_code"
    role = "code generation script"

    def target_path(self, ctx) -> Path:
        return resolve_relative(ctx.work_dir, ctx.config.gen_script)

    def command_for(self, ctx) -> str:
        if ctx.config.gen_script_command:
            return ctx.config.gen_script_command
        return quote_path(self.target_path(ctx))

    def apply(self, ctx) -> StepOutcome:
        config = ctx.config
        work_dir = ctx.work_dir
        binaries = find_binaries(work_dir, config.binary_extension)

        if not binaries:
            ctx.run_log.info(self.name, f"No {config.binary_extension} file in {work_dir}; script not run")
            return StepOutcome.skipped(self.name, str(work_dir), "no binary file found")

        if len(binaries) > 1:
            names = [p.name for p in binaries]
            if ctx.dry_run:
                return StepOutcome.skipped(self.name, str(work_dir),
                                           f"dry run: would delete {len(names)} binary files", files=names)
            delete_files(binaries, ctx.run_log)
            ctx.run_log.warning(self.name, f"Found {len(names)} binary files; deleted all, script not run",
                                files=names)
            return StepOutcome.skipped(self.name, str(work_dir), "multiple binary files found and deleted",
                                       files=names)

        script = self.target_path(ctx)
        if not script.is_file():
            raise CollaboratorFileMissingError(self.role, str(script))

        target = work_dir / f"{ctx.eeprom_filename}{config.binary_extension}"
        command = self.command_for(ctx)

        if ctx.dry_run:
            return StepOutcome.applied(self.name, str(script),
                                       f"dry run: would rename {binaries[0].name} to {target.name} and run '{command}'")

        if binaries[0] != target:
            binaries[0].replace(target)
            ctx.run_log.info(self.name, f"Renamed {binaries[0].name} -> {target.name}")

        result = self._execute(ctx, command)

        deleted = delete_files(find_binaries(work_dir, config.binary_extension), ctx.run_log)
        ctx.run_log.info(self.name, f"Code generation finished; deleted {deleted} binary file(s)")
        return StepOutcome.applied(
            self.name, str(script), f"ran '{command}'",
            returncode=result.returncode,
            stdout=result.stdout[:config.log_output_truncation],
            stderr=result.stderr[:config.log_output_truncation],
        )

    def _execute(self, ctx, command: str) -> subprocess.CompletedProcess:
        config = ctx.config
        ctx.run_log.info(self.name, f"Running '{command}' in {ctx.work_dir}")

        try:
            result = subprocess.run(
                command,
                shell=True,
                cwd=str(ctx.work_dir),
                capture_output=True,
                text=True,
                errors="replace",
                check=True,
                timeout=config.gen_script_timeout,
            )
        except subprocess.CalledProcessError as e:
            if e.stdout:
                ctx.run_log.error(self.name, f"STDOUT: {e.stdout[:config.log_output_truncation]}")
            if e.stderr:
                ctx.run_log.error(self.name, f"STDERR: {e.stderr[:config.log_output_truncation]}")
            raise GenScriptError(command, returncode=e.returncode,
                                 stderr=(e.stderr or "")[:config.log_output_truncation])
        except subprocess.TimeoutExpired:
            raise GenScriptError(command, timeout=config.gen_script_timeout)

        if result.stdout:
            ctx.run_log.info(self.name, f"STDOUT: {result.stdout[:config.log_output_truncation]}")
        if result.stderr:
            ctx.run_log.warning(self.name, f"STDERR: {result.stderr[:config.log_output_truncation]}")
        return result
