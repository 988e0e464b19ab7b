from __future__ import annotations

import hmac
from fastapi import Header, HTTPException, status
from typing import Optional

from prepcoach.config import settings


def _presented_key(authorization: Optional[str], x_api_key: Optional[str]) -> Optional[str]:
	if x_api_key:
		return x_api_key
	if authorization and authorization.startswith("Bearer "):
		return authorization.removeprefix("Bearer ")
	return None


async def verify_api_key(
	authorization: Optional[str] = Header(default=None),
	x_api_key: Optional[str] = Header(default=None),
) -> None:
	"""Router dependency; a no-op unless `settings.api_key` is configured."""
	if not settings.api_key:
		return
	key = _presented_key(authorization, x_api_key)
	if not key:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")
	if not hmac.compare_digest(key, settings.api_key):
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
