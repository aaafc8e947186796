import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.exceptions.exchange import InvalidRequestError, NoProvidersAvailableError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
	@app.exception_handler(InvalidRequestError)
	async def invalid_request_handler(request: Request, exc: InvalidRequestError):
		logger.warning(f'Rejected request {request.url.path}: {exc}')
		return JSONResponse(status_code=400, content={'detail': str(exc), 'error_code': exc.error_code})

	@app.exception_handler(NoProvidersAvailableError)
	async def no_providers_handler(request: Request, exc: NoProvidersAvailableError):
		logger.error(f'No providers available: {exc}')
		return JSONResponse(
			status_code=503, content={'detail': str(exc), 'error_code': exc.error_code}
		)
