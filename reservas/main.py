import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from reservas.core import config
from reservas.core.logging_config import setup_logging
from reservas.database import Base, engine, ensure_scheduling_schema
from reservas.models import appointment, business, calendar, service  # noqa: F401
from reservas.routes import appointment_routes, availability_routes, calendar_routes

setup_logging()
config.validate_runtime_config()

app = FastAPI(title='Reservas Scheduling API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_scheduling_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Reservas Scheduling API Running'}


app.include_router(availability_routes.router, prefix='/availability')
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(calendar_routes.router, prefix='/calendar')
