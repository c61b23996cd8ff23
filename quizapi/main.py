import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quizapi.core.config import settings
from quizapi.core.exceptions import register_exception_handlers
from quizapi.db.sessions import Database
from quizapi.routes import auth, quiz
from quizapi.services.email_service import EmailService
from quizapi.services.quiz_generator import QuizGenerator

logger = logging.getLogger("quizapi")


def configure_logging() -> None:
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=settings.LOG_LEVEL,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )


def create_app(database=None, quiz_generator=None, mailer=None) -> FastAPI:
    """Build the application; the resource handles default to ones built from settings."""
    configure_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Generate multiple-choice quizzes from news articles and track results",
        debug=settings.DEBUG,
    )

    app.state.database = database or Database(settings.DATABASE_URL)
    app.state.quiz_generator = quiz_generator or QuizGenerator()
    app.state.mailer = mailer or EmailService()

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Register routers
    app.include_router(auth.router)
    app.include_router(auth.recovery_router)
    app.include_router(quiz.router)

    @app.on_event("startup")
    def startup_event():
        app.state.database.connect()
        logger.info("%s v%s started", settings.APP_NAME, settings.APP_VERSION)

    @app.on_event("shutdown")
    def shutdown_event():
        app.state.database.close()
        logger.info("%s stopped", settings.APP_NAME)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
