"""Run one external command with an environment overlay, or describe it.

`launch` never raises for a process that cannot be started: the failure is
reported on stderr and folded into an `Exited(1)` result, so the caller only
has to turn a LaunchResult into an exit code.
"""
from __future__ import annotations
import os, shlex, signal, subprocess, logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Sequence, TextIO, Tuple, Union
import click

log = logging.getLogger(__name__)

class LaunchFailure(Exception): ...

@dataclass(frozen=True)
class LaunchRequest:
	command: str
	args: Tuple[str, ...] = ()
	cwd: Optional[str] = None
	env: Mapping[str, str] = field(default_factory=dict)
	dry_run: bool = False

	def __post_init__(self):
		object.__setattr__(self, 'args', tuple(self.args))
		object.__setattr__(self, 'env', dict(self.env))

	@property
	def argv(self) -> list[str]:
		return [self.command, *self.args]

@dataclass(frozen=True)
class Exited:
	"""The child ran to completion with `code`."""
	code: int

	@property
	def exit_code(self) -> Optional[int]:
		return self.code

	@property
	def signal(self) -> Optional[str]:
		return None

@dataclass(frozen=True)
class Signaled:
	"""The child was killed by signal `name` (e.g. 'SIGTERM')."""
	name: str

	@property
	def exit_code(self) -> Optional[int]:
		return None

	@property
	def signal(self) -> Optional[str]:
		return self.name

LaunchResult = Union[Exited, Signaled]

def format_command_line(command: str, args: Sequence[str] = ()) -> str:
	return ' '.join(shlex.quote(part) for part in (command, *args))

def signal_name(signum: int) -> str:
	try:
		return signal.Signals(signum).name
	except ValueError:
		return f'SIG{signum}'

def effective_env(overlay: Mapping[str, str]) -> dict[str, str]:
	env = dict(os.environ)
	env.update(overlay)
	return env

def _result_from_returncode(returncode: int) -> LaunchResult:
	# subprocess reports death-by-signal as -signum on POSIX
	if returncode < 0:
		return Signaled(signal_name(-returncode))
	return Exited(returncode)

def _describe(request: LaunchRequest, cwd: Optional[Path], out: Optional[TextIO]) -> None:
	click.echo(f'Would run: {format_command_line(request.command, request.args)}', file=out)
	if cwd is not None:
		click.echo(f'  in {cwd}', file=out)
	if request.env:
		entries = ', '.join(f'{k}={v}' for k, v in request.env.items())
		click.echo(f'  with env: {entries}', file=out)

def _spawn(request: LaunchRequest, cwd: Optional[Path]) -> int:
	try:
		# stdin/stdout/stderr are inherited so output streams straight to the terminal
		proc = subprocess.Popen(request.argv, cwd=cwd, env=effective_env(request.env))
	except (OSError, ValueError) as e:
		raise LaunchFailure(f'Failed to start {request.command!r}: {getattr(e, "strerror", None) or e}') from e
	log.info('Spawned %s (pid %s)', request.command, proc.pid)
	try:
		return proc.wait()
	except KeyboardInterrupt:
		# SIGINT from the terminal reaches the child too; reap it and report its status
		return proc.wait()

def launch(request: LaunchRequest, out: Optional[TextIO] = None) -> LaunchResult:
	"""Run (or, in dry-run mode, describe) `request` and block until it finishes."""
	cwd = Path(os.path.abspath(os.path.expanduser(request.cwd))) if request.cwd else None
	if request.dry_run:
		_describe(request, cwd, out)
		return Exited(0)
	try:
		returncode = _spawn(request, cwd)
	except LaunchFailure as e:
		log.error('%s', e)
		click.echo(f'Error: {e}', err=True)
		return Exited(1)
	result = _result_from_returncode(returncode)
	log.info('%s finished: exit_code=%s signal=%s', request.command, result.exit_code, result.signal)
	return result
