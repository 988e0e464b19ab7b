from __future__ import annotations

from fastapi import APIRouter, HTTPException

from prepcoach.errors import CodeRunnerError
from prepcoach.schemas import ExecuteIn, ExecuteOut
from prepcoach.services.code_runner import code_runner
from prepcoach.utils.audit import auditor


router = APIRouter()


@router.post("/execute", response_model=ExecuteOut)
async def execute(payload: ExecuteIn):
	if not code_runner.enabled:
		raise HTTPException(status_code=503, detail="Code runner is not configured")
	try:
		result = await code_runner.run(payload.code, payload.language)
	except CodeRunnerError as e:
		raise HTTPException(status_code=502, detail=str(e))

	await auditor.log("code_executed", language=payload.language, ok=result.ok)
	return ExecuteOut(output=result.stdout, error=result.stderr)
