from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
import logging

from .config import settings
from .routers import submit

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("finalize")

# Sent on every response, preflight included
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

NOT_FOUND_PATH = "/404"
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]

app = FastAPI(
    title="Finalize Estimate API",
    description="Estimate form submissions for Finalize, stored in Airtable",
    version="1.0.0",
    # Every path outside the API redirects to /404, docs included
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)


@app.middleware("http")
async def cors(request: Request, call_next):
    """Answer every OPTIONS with 204 and stamp CORS headers on everything else."""
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


app.include_router(submit.router, prefix="/api")


@app.api_route(NOT_FOUND_PATH, methods=ALL_METHODS, include_in_schema=False)
def not_found():
    return JSONResponse(status_code=404, content={"success": False, "error": "Not found"})


# Must stay last: catches every path no other route claimed
@app.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
def redirect_unknown(request: Request, path: str):
    target = request.url.replace(path=NOT_FOUND_PATH, query="", fragment="")
    logger.info("Unknown path /%s, redirecting to %s", path, NOT_FOUND_PATH)
    return RedirectResponse(url=str(target), status_code=301)
