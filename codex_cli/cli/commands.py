"""CLI commands implemented with click.

Global options are only recognised before the sub-command name; everything
after it belongs to the sub-command. `CodexGroup.main` is the single error
boundary: parse errors, config errors and validation failures are reported
on stderr and turned into exit code 1.
"""
from __future__ import annotations
import sys, logging
from dataclasses import replace
from typing import Optional
import click
from codex_cli import __version__
from codex_cli.settings import APP_NAME
from codex_cli.lib.store import ConfigStore, ConfigError
from codex_cli.lib.launcher import LaunchRequest, launch
from codex_cli.lib.session import session_from_record

log = logging.getLogger(__name__)

class ValidationFailure(click.UsageError):
	exit_code = 1

class MissingValue(ValidationFailure):
	def __init__(self, option: str, ctx: Optional[click.Context] = None):
		super().__init__(f'Missing value for {option}', ctx)
		self.option = option

class UnknownOption(ValidationFailure):
	def __init__(self, option: str, ctx: Optional[click.Context] = None):
		super().__init__(f'Unknown option: {option}', ctx)
		self.option = option

class MissingCommand(ValidationFailure): ...

class UnknownCommand(ValidationFailure):
	def __init__(self, name: str, ctx: Optional[click.Context] = None):
		super().__init__(f'Unknown command: {name}', ctx)
		self.name = name

def _find_option(command: click.Command, ctx: click.Context, name: str) -> Optional[click.Option]:
	for param in command.get_params(ctx):
		if isinstance(param, click.Option) and name in param.opts + param.secondary_opts:
			return param
	return None

class _ParseErrors:
	"""Re-raise click's option parsing errors as ValidationFailure subclasses."""

	def parse_args(self, ctx, args):
		try:
			return super().parse_args(ctx, args)
		except click.NoSuchOption as e:
			raise UnknownOption(e.option_name, ctx) from e
		except click.BadOptionUsage as e:
			option = _find_option(self, ctx, e.option_name)
			# flags given an explicit value ("--stdin=x") keep click's message
			if option is not None and not option.is_flag:
				raise MissingValue(e.option_name, ctx) from e
			raise

class CodexCommand(_ParseErrors, click.Command):
	# leftover words are reported as unknown options instead of click's "unexpected extra argument"
	allow_extra_args = True

	def parse_args(self, ctx, args):
		rest = super().parse_args(ctx, args)
		if ctx.args and not ctx.resilient_parsing:
			raise UnknownOption(ctx.args[0], ctx)
		return rest

def split_command_line(args, value_options):
	"""Insert `--` before the first word that is not a `--` option or an option value.

	Single-dash words such as `-la` therefore start the command instead of
	being read as options.
	"""
	i = 0
	while i < len(args):
		token = args[i]
		if token == '--':
			return list(args)
		if not token.startswith('--'):
			return [*args[:i], '--', *args[i:]]
		name, sep, _ = token.partition('=')
		i += 2 if name in value_options and not sep else 1
	return list(args)

class ExecCommand(CodexCommand):
	def parse_args(self, ctx, args):
		value_options = {
			name for param in self.get_params(ctx) if isinstance(param, click.Option) and not param.is_flag
			for name in param.opts
		}
		return super().parse_args(ctx, split_command_line(args, value_options))

class CodexGroup(_ParseErrors, click.Group):
	command_class = CodexCommand

	def resolve_command(self, ctx, args):
		if ctx.params.get('show_version') or ctx.params.get('show_help'):
			# answered by the group callback before any sub-command runs
			return 'help', self.commands['help'], []
		name = args[0]
		cmd = self.get_command(ctx, name)
		if cmd is None:
			if ctx.resilient_parsing:
				return None, None, args[1:]
			raise UnknownCommand(name, ctx)
		return name, cmd, args[1:]

	def dispatch(self, args=None, prog_name=None, **extra) -> int:
		"""Run the CLI and map every outcome to an exit code."""
		try:
			rv = super().main(args, prog_name=prog_name, standalone_mode=False, **extra)
		except click.UsageError as e:
			click.echo(f'Error: {e.format_message()}', err=True)
			# unknown commands and bad global options also get the top-level usage
			if e.ctx is not None and e.ctx.parent is None:
				click.echo('', err=True)
				click.echo(e.ctx.get_help(), err=True)
			return 1
		except click.ClickException as e:
			click.echo(f'Error: {e.format_message()}', err=True)
			return 1
		except ConfigError as e:
			log.debug('config failure', exc_info=True)
			click.echo(f'Error: {e}', err=True)
			return 1
		except click.Abort:
			click.echo('Aborted!', err=True)
			return 1
		return rv if isinstance(rv, int) else 0

	def main(self, args=None, prog_name=None, complete_var=None, standalone_mode=True, **extra):
		code = self.dispatch(args, prog_name=prog_name, complete_var=complete_var, **extra)
		if standalone_mode:
			sys.exit(code)
		return code

def _require_value(ctx, param, value):
	if value == '':
		raise MissingValue(param.opts[0], ctx)
	return value

def _parse_env(ctx, param, pairs):
	env = {}
	for pair in pairs:
		if pair == '':
			raise MissingValue('--env', ctx)
		key, sep, value = pair.partition('=')
		if not sep or not key:
			raise ValidationFailure('--env expects KEY=VALUE', ctx)
		env[key] = value
	return env

CONTEXT_SETTINGS = {'help_option_names': ['-h', '--help']}

@click.group(APP_NAME, cls=CodexGroup, invoke_without_command=True, add_help_option=False, context_settings=CONTEXT_SETTINGS)
@click.option('-h', '--help', 'show_help', is_flag=True, help='Show help.')
@click.option('-V', '--version', 'show_version', is_flag=True, help='Show version.')
@click.option('--config', 'config_path', metavar='<path>', callback=_require_value, help='Use a specific config file.')
@click.pass_context
def cli(ctx, show_help, show_version, config_path):
	"""Save an API key locally and run commands with it.

	\b
	Examples:
	  codex login --stdin < token.txt
	  codex exec --cwd ./my-app --env NODE_ENV=development npm test
	  codex status
	"""
	if show_version:
		click.echo(f'{APP_NAME} {__version__}')
		ctx.exit(0)
	if show_help or ctx.invoked_subcommand is None:
		click.echo(ctx.get_help())
		ctx.exit(0)
	ctx.obj = ConfigStore(config_path)

@cli.command()
@click.option('--api-key', metavar='<value>', callback=_require_value, help='API key to store.')
@click.option('--stdin', 'read_stdin', is_flag=True, help='Read the API key from standard input.')
@click.option('--profile', metavar='<name>', callback=_require_value, help='Profile label to store.')
@click.pass_obj
def login(store: ConfigStore, api_key, read_stdin, profile):
	"""Save credentials locally."""
	# an explicit --api-key wins; stdin is only read when no key was given
	if not api_key and read_stdin:
		api_key = click.get_binary_stream('stdin').read().decode('utf-8', 'replace').strip()
	if not api_key:
		click.echo('Login requires either --api-key or --stdin to provide credentials.', err=True)
		return 1
	previous = store.load()
	record = replace(previous, api_key=api_key, profile=profile if profile is not None else previous.profile)
	store.save(record)
	click.echo(f'Saved credentials to {store.path}')
	return 0

@cli.command()
@click.pass_obj
def logout(store: ConfigStore):
	"""Remove stored credentials."""
	store.delete()
	click.echo('Removed stored credentials.')
	return 0

@cli.command()
@click.pass_obj
def status(store: ConfigStore):
	"""Display current configuration."""
	record = store.load()
	session = session_from_record(record)
	click.echo('Codex CLI configuration:')
	click.echo(f'  Config file: {store.path}')
	click.echo(f"  API key: {session.masked_key if session else '(not set)'}")
	click.echo(f"  Profile: {record.profile if record.profile is not None else '(default)'}")
	click.echo(f"  Updated: {record.updated_at or 'never'}")
	return 0

@cli.command('exec', cls=ExecCommand, context_settings={'allow_interspersed_args': False})
@click.option('--cwd', metavar='<path>', callback=_require_value, help='Working directory for the command.')
@click.option('--env', 'env', metavar='KEY=VALUE', multiple=True, callback=_parse_env, help='Extra environment variable (repeatable).')
@click.option('--dry-run', is_flag=True, help='Print what would run without running it.')
@click.argument('command', nargs=-1, type=click.UNPROCESSED)
def exec_command(cwd, env, dry_run, command):
	"""Run a command with the given environment.

	Options are read up to `--` or the first non-option word; the rest is the
	command line to run.
	"""
	if not command:
		raise MissingCommand('exec requires a command to run')
	result = launch(LaunchRequest(command[0], command[1:], cwd=cwd, env=env, dry_run=dry_run))
	if result.signal:
		click.echo(f'Command terminated by signal {result.signal}.', err=True)
		return 1
	return result.exit_code if result.exit_code is not None else 1

@cli.command('help')
@click.pass_context
def help_command(ctx):
	"""Show this help message."""
	click.echo(ctx.parent.get_help())
	return 0
