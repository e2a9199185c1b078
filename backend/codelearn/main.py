import asyncio
import contextlib
import logging
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI

from .cleanup import close_stale_sessions
from .db import build_engine, build_session_factory, init_db
from .generation import AnswerJudge, QuestionGenerator
from .llm_client import LLMClient
from .settings import Settings, get_settings
from .routers import auth, health, leaderboard, questions, sessions, skills

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 24 * 60 * 60


def _sweep_stale_sessions(app: FastAPI) -> None:
	db = app.state.session_factory()
	try:
		close_stale_sessions(db, timedelta(hours=app.state.settings.stale_session_hours))
	except Exception:
		logger.exception("Stale session sweep failed")
		db.rollback()
	finally:
		db.close()


async def _cleanup_watcher(app: FastAPI) -> None:
	while True:
		await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
		_sweep_stale_sessions(app)


def create_app(settings: Optional[Settings] = None, *, llm_client: Optional[LLMClient] = None) -> FastAPI:
	settings = settings or get_settings()
	logging.basicConfig(
		level=settings.log_level.upper(),
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
	)

	app = FastAPI(title="Code Comprehension Trainer API")
	app.state.settings = settings
	app.state.engine = build_engine(settings)
	app.state.session_factory = build_session_factory(app.state.engine)
	init_db(app.state.engine)

	client = llm_client or LLMClient(settings)
	app.state.llm_client = client
	app.state.question_generator = QuestionGenerator(client)
	app.state.answer_judge = AnswerJudge(client)

	app.include_router(health.router)
	app.include_router(auth.router)
	app.include_router(sessions.router)
	app.include_router(questions.router)
	app.include_router(skills.router)
	app.include_router(leaderboard.router)

	@app.get("/info")
	def info():
		return {"status": "ok", "llm_configured": client.configured}

	@app.on_event("startup")
	async def startup_event():
		_sweep_stale_sessions(app)
		app.state.cleanup_task = asyncio.create_task(_cleanup_watcher(app))

	@app.on_event("shutdown")
	async def shutdown_event():
		task = getattr(app.state, "cleanup_task", None)
		if task is not None:
			task.cancel()
			with contextlib.suppress(asyncio.CancelledError):
				await task
		await client.aclose()
		app.state.engine.dispose()

	return app
