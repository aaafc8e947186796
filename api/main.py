import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.dependencies import cleanup_dependencies, init_dependencies
from api.error_handlers import register_exception_handlers
from api.routes import exchange
from config.logging_config import setup_logging
from config.settings import get_settings

logger = logging.getLogger(__name__)


settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
	setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
	logger.info(f'Starting {settings.APP_NAME}...')

	init_dependencies(settings)

	logger.info('Application ready')

	yield

	logger.info('Shutting down...')
	await cleanup_dependencies()


app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
	logger.error(f'Unhandled exception: {exc}', exc_info=True)
	return JSONResponse(status_code=500, content={'detail': 'Internal server error'})


@app.middleware('http')
async def log_requests(request: Request, call_next):
	start_time = time.perf_counter()

	response = await call_next(request)

	response_time = (time.perf_counter() - start_time) * 1000
	log = logger.info if response.status_code < 400 else logger.warning
	log(f'{response.status_code} {request.method} {request.url.path} ({response_time:.2f}ms)')

	return response


app.include_router(exchange.router)
register_exception_handlers(app)


if __name__ == '__main__':
	import uvicorn

	logger.info(f'Starting server on {settings.HOST}:{settings.PORT}')

	uvicorn.run('api.main:app', host=settings.HOST, port=settings.PORT, reload=settings.DEBUG, log_level='info')
