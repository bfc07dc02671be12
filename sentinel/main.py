from fastapi import FastAPI
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from sentinel.api.routes import router
from sentinel.api.admin_routes import router as admin_router
from sentinel.llm.errors import GatewayError
from sentinel.observability.logging import log
from sentinel.settings import settings

app = FastAPI(title="SentinelAI SMS Risk API")

origins = [x.strip() for x in settings.CORS_ORIGINS.split(",") if x.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "SentinelAI API is running. Use /health and POST /api/analyze.",
    }


@app.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Error envelope: every failure is {"error": "<message>"}; no partial
# assessment is ever returned.
# ---------------------------------------------------------------------------
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(x) for x in (first.get("loc") or ())[1:]) or "body"
    return JSONResponse(
        status_code=400,
        content={"error": f"Invalid request: {field}: {first.get('msg', 'invalid value')}"},
    )


@app.exception_handler(GatewayError)
async def gateway_exception_handler(request: Request, exc: GatewayError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


@app.exception_handler(Exception)
async def universal_exception_handler(request: Request, exc: Exception):
    log(event="unhandled_exception", path=request.url.path, errorType=type(exc).__name__, error=str(exc)[:300])
    return JSONResponse(
        status_code=500,
        content={"error": "Analysis service temporarily unavailable"},
    )


log(
    event="boot",
    classifierBackend=settings.CLASSIFIER_BACKEND,
    assistantBackend=settings.ASSISTANT_BACKEND,
    gatewayConfigured=bool(settings.GATEWAY_API_KEY),
)
