# Run from project root: uvicorn app.main:app --reload

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.routes import router
from app.core.errors import CartRequestError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


app = FastAPI(title="Shopping Assistant Backend")
app.include_router(router)


@app.exception_handler(CartRequestError)
async def cart_request_error_handler(request: Request, exc: CartRequestError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if request.url.path == "/api/chat":
        return JSONResponse(status_code=500, content={"error": "Failed to process request"})
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})
