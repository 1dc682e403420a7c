import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from clinic_backend.core import config
from clinic_backend.core.errors import AppointmentError, PersistenceFailure
from clinic_backend.database import Base, engine, ensure_appointment_schema
from clinic_backend.models import appointment, user  # noqa: F401
from clinic_backend.routes import appointment_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

app = FastAPI()

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
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.exception_handler(AppointmentError)
async def appointment_error_handler(request: Request, exc: AppointmentError) -> JSONResponse:
    if isinstance(exc, PersistenceFailure):
        logger.error('Persistence failure on %s %s', request.method, request.url.path, exc_info=exc.__cause__)
    return JSONResponse(status_code=exc.status_code, content={'success': False, 'message': exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get('msg', 'Invalid request.') if errors else 'Invalid request.'
    return JSONResponse(status_code=400, content={'success': False, 'message': message})


@app.get('/')
def root():
    return {'status': 'Clinic Appointment API Running'}


app.include_router(appointment_routes.router, prefix='/appointments')
