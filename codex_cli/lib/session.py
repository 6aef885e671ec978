"""Read-only session values handed to presentation layers.

A UI renders one of these and never touches the store or the launcher; the
raw API key never leaves this module unmasked through `to_dict`.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from codex_cli.settings import MASK_VISIBLE_CHARS
from .store import CredentialRecord

def mask_api_key(key: str) -> str:
	"""Replace every character except the last four with '*'.

	Keys of four characters or fewer are masked entirely.
	"""
	if len(key) <= MASK_VISIBLE_CHARS:
		return '*' * len(key)
	return '*' * (len(key) - MASK_VISIBLE_CHARS) + key[-MASK_VISIBLE_CHARS:]

@dataclass(frozen=True)
class SubscriptionSession:
	email: str
	verified_at: str
	method = 'subscription'

	def to_dict(self) -> Dict[str, Any]:
		return {'method': self.method, 'email': self.email, 'verifiedAt': self.verified_at}

@dataclass(frozen=True)
class ApiKeySession:
	api_key: str
	captured_at: str
	method = 'api-key'

	@property
	def masked_key(self) -> str:
		return mask_api_key(self.api_key)

	def to_dict(self) -> Dict[str, Any]:
		return {'method': self.method, 'maskedKey': self.masked_key, 'capturedAt': self.captured_at}

AuthSession = Union[SubscriptionSession, ApiKeySession]

def session_from_record(record: CredentialRecord) -> Optional[ApiKeySession]:
	if not record.api_key:
		return None
	return ApiKeySession(record.api_key, record.updated_at or '')
