from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from prepcoach.config import settings
from prepcoach.errors import CodeRunnerError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
	stdout: str
	stderr: Optional[str] = None

	@property
	def ok(self) -> bool:
		return not self.stderr


class CodeRunner:
	"""Client for the external sandbox.

	The sandbox accepts `{"code", "language"}` and answers
	`{"output", "error"}`.
	"""

	def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
		self._url = url
		self._timeout = timeout
		self._transport = transport

	@property
	def url(self) -> Optional[str]:
		return self._url or settings.code_runner_url

	@property
	def enabled(self) -> bool:
		return bool(self.url)

	async def run(self, code: str, language: str = "python") -> RunResult:
		if not self.url:
			raise CodeRunnerError("Code runner is not configured")
		timeout = self._timeout or settings.code_runner_timeout
		try:
			async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
				resp = await client.post(self.url, json={"code": code, "language": language})
				resp.raise_for_status()
				data = resp.json()
		except httpx.HTTPStatusError as e:
			raise CodeRunnerError(f"Code runner returned {e.response.status_code}") from e
		except (httpx.HTTPError, ValueError) as e:
			logger.warning("Code runner call failed: %s", e)
			raise CodeRunnerError(f"Code runner call failed: {e}") from e

		if not isinstance(data, dict):
			raise CodeRunnerError("Code runner returned an unexpected payload")
		return RunResult(stdout=data.get("output") or "", stderr=data.get("error") or None)


code_runner = CodeRunner()
