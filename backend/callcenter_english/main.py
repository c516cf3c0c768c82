from datetime import datetime, timedelta, timezone
import logging

from fastapi import FastAPI, APIRouter, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .db import Base, engine, SessionLocal, check_connection
from .settings import settings
from .routers import auth, users, progress, lessons, quizzes, ai, tts, assessments
from .seed import seed_database
from .speech_synthesis import get_audio_dir
from .uploads import get_uploads_dir, purge_stale_files

logger = logging.getLogger(__name__)

app = FastAPI(title="Call Center English API")
app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.cors_origin_list,
	allow_methods=["*"],
	allow_headers=["*"],
)

api = APIRouter(prefix="/api")
api.include_router(auth.router)
api.include_router(users.router)
api.include_router(progress.router)
api.include_router(lessons.router)
api.include_router(quizzes.router)
api.include_router(ai.router)
api.include_router(tts.router)
api.include_router(assessments.router)


@api.get("/health")
def health():
	return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


app.include_router(api)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
	# Malformed or missing fields are a plain client error
	return JSONResponse(
		status_code=400,
		content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
	)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
	logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
	return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


def configure_logging() -> None:
	logging.basicConfig(
		level=getattr(logging, settings.log_level.upper(), logging.INFO),
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
	)


@app.on_event("startup")
async def startup_event():
	configure_logging()
	Base.metadata.create_all(bind=engine)
	if not check_connection():
		logger.warning("Database connection failed. Some features may not work.")
	# Temp files orphaned by a previous process
	max_age = timedelta(hours=settings.temp_file_max_age_hours)
	for directory in (get_uploads_dir(), get_audio_dir()):
		purge_stale_files(directory, max_age)
	if settings.seed_on_startup:
		db = SessionLocal()
		try:
			seed_database(db)
		finally:
			db.close()
