from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from prepcoach.config import settings
from prepcoach.database import SessionLocal, init_db
from prepcoach.utils.logging import configure_logging
from prepcoach.routers.sessions import router as sessions_router
from prepcoach.routers.evaluate import router as evaluate_router
from prepcoach.routers.questions import router as questions_router
from prepcoach.routers.topic_progress import router as topic_progress_router
from prepcoach.routers.execute import router as execute_router
from prepcoach.services.code_runner import code_runner
from prepcoach.services.curriculum import seed_curriculum
from prepcoach.services.llm_service import llm_service
from prepcoach.utils.audit import auditor
from prepcoach.utils.security import verify_api_key


configure_logging(settings.log_level)
auditor.configure(settings.analytics_path)


@asynccontextmanager
async def lifespan(_: FastAPI):
	init_db()
	if settings.seed_curriculum:
		with SessionLocal() as db:
			seed_curriculum(db)
	yield


app = FastAPI(title="PrepCoach Backend", version="0.1.0", lifespan=lifespan)

# CORS
app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.cors_allow_origins,
	# Wildcard origins require credentials to be False per CORS spec
	allow_credentials=False if settings.cors_allow_origins == ["*"] else True,
	allow_methods=["*"],
	allow_headers=["*"],
	max_age=3600,
)


@app.get("/health")
async def health() -> JSONResponse:
	return JSONResponse({
		"status": "ok",
		"version": app.version,
		"llm": {"provider": settings.llm_provider, "enabled": llm_service.enabled},
		"code_runner": {"enabled": code_runner.enabled},
	})


# Routers
_protected = [Depends(verify_api_key)]
app.include_router(sessions_router, prefix="/api", tags=["sessions"], dependencies=_protected)
app.include_router(evaluate_router, prefix="/api", tags=["evaluation"], dependencies=_protected)
app.include_router(questions_router, prefix="/api", tags=["questions"], dependencies=_protected)
app.include_router(topic_progress_router, prefix="/api", tags=["progress"], dependencies=_protected)
app.include_router(execute_router, prefix="/api", tags=["execution"], dependencies=_protected)
