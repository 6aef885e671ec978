"""Credential store: one JSON record at a resolved path.

A missing file is the normal "not logged in" state: `load` returns an empty
record and `delete` is a no-op. Every other filesystem or decoding problem
surfaces as a ConfigError subclass.
"""
from __future__ import annotations
import json, os, logging
from contextlib import suppress
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from codex_cli.settings import CONFIG_PATH_ENV, DEFAULT_CONFIG_DIRNAME, DEFAULT_CONFIG_FILE, JSON_INDENT

log = logging.getLogger(__name__)

class ConfigError(Exception): ...
class IOFailure(ConfigError): ...
class ParseFailure(ConfigError): ...

_FIELDS = {'apiKey': 'api_key', 'profile': 'profile', 'updatedAt': 'updated_at'}

def utc_timestamp() -> str:
	"""Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
	return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')

@dataclass
class CredentialRecord:
	api_key: Optional[str] = None
	profile: Optional[str] = None
	updated_at: Optional[str] = None
	# keys written by other tools, carried through a load/save cycle untouched
	extra: Dict[str, Any] = field(default_factory=dict)

	@classmethod
	def from_dict(cls, raw: Any) -> 'CredentialRecord':
		if not isinstance(raw, dict):
			raise ParseFailure(f'Expected a JSON object, got {type(raw).__name__}')
		values: Dict[str, Any] = {}
		extra: Dict[str, Any] = {}
		for key, value in raw.items():
			attr = _FIELDS.get(key)
			if attr is None:
				extra[key] = value
				continue
			if value is not None and not isinstance(value, str):
				raise ParseFailure(f'Field {key!r} must be a string')
			values[attr] = value
		return cls(extra=extra, **values)

	def to_dict(self) -> Dict[str, Any]:
		out = dict(self.extra)
		for key, attr in _FIELDS.items():
			value = getattr(self, attr)
			if value is not None:
				out[key] = value
		return out

	def is_empty(self) -> bool:
		return not self.to_dict()

def resolve_path(explicit: str | os.PathLike | None = None) -> Path:
	"""Explicit path first, then $CODEX_CONFIG_PATH, then ~/.codex/config.json."""
	if explicit:
		return Path(explicit).expanduser().resolve()
	env_path = os.environ.get(CONFIG_PATH_ENV)
	if env_path:
		return Path(env_path).expanduser().resolve()
	return Path.home() / DEFAULT_CONFIG_DIRNAME / DEFAULT_CONFIG_FILE

class ConfigStore:
	def __init__(self, path: str | os.PathLike | None = None):
		self._path = resolve_path(path)

	@property
	def path(self) -> Path:
		return self._path

	def exists(self) -> bool:
		return self._path.is_file()

	def load(self) -> CredentialRecord:
		try:
			raw = self._path.read_text(encoding='utf-8')
		except FileNotFoundError:
			return CredentialRecord()
		except OSError as e:
			raise IOFailure(f'Cannot read {self._path}: {e.strerror or e}') from e
		except UnicodeDecodeError as e:
			raise ParseFailure(f'Malformed config file {self._path}: {e}') from e
		try:
			data = json.loads(raw)
		except json.JSONDecodeError as e:
			raise ParseFailure(f'Malformed config file {self._path}: {e}') from e
		return CredentialRecord.from_dict(data)

	def save(self, record: CredentialRecord) -> CredentialRecord:
		"""Stamp `updated_at`, then write the record atomically.

		The caller's object is left untouched; the stored copy is returned.
		"""
		stored = replace(record, updated_at=utc_timestamp(), extra=dict(record.extra))
		text = json.dumps(stored.to_dict(), indent=JSON_INDENT) + '\n'
		tmp = self._path.with_name(self._path.name + '.tmp')
		try:
			self._path.parent.mkdir(parents=True, exist_ok=True)
			tmp.write_text(text, encoding='utf-8')
			os.replace(tmp, self._path)
		except OSError as e:
			with suppress(OSError):
				tmp.unlink(missing_ok=True)
			raise IOFailure(f'Cannot write {self._path}: {e.strerror or e}') from e
		log.info('Saved credentials -> %s', self._path)
		return replace(stored, extra=dict(stored.extra))

	def delete(self) -> None:
		try:
			self._path.unlink()
		except FileNotFoundError:
			return
		except OSError as e:
			raise IOFailure(f'Cannot remove {self._path}: {e.strerror or e}') from e
		log.info('Removed credentials at %s', self._path)
