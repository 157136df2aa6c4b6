import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from salon_api.core import config
from salon_api.database import Base, engine
from salon_api.models import appointment, salon, settings, user  # noqa: F401
from salon_api.routes import appointment_routes, auth_routes, salon_routes, settings_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

config.validate_runtime_config()

app = FastAPI(title='Salon & Spa Booking API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL.')


@app.get('/')
def root():
    return {'status': 'Salon Booking API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(salon_routes.router, prefix='/salons')
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(settings_routes.router, prefix='/settings')
