import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
import structlog

from studypartner.db import init_db
from studypartner.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from studypartner.routers import auth as auth_router
from studypartner.routers import notes as notes_router
from studypartner.routers import study as study_router
from studypartner.services.logging import bind_request, configure_logging, log_api_request
from studypartner.services.monitoring import health_checker, get_metrics, REQUEST_COUNT, REQUEST_DURATION

configure_logging()
logger = structlog.get_logger()


app = FastAPI(
    title="StudyPartner",
    description="Turn uploaded notes into summaries, flashcards and quizzes",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.middleware("http")
async def observe_request(request: Request, call_next):
    request_id = bind_request(request)
    start_time = time.perf_counter()
    log_api_request(request)

    try:
        response = await call_next(request)
    except Exception as e:
        log_api_request(request, error=e)
        raise

    process_time = time.perf_counter() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    response.headers["X-Request-ID"] = request_id

    # route template keeps label cardinality bounded
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code
    ).inc()
    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=endpoint
    ).observe(process_time)

    log_api_request(request, response, duration=round(process_time, 4))
    return response


# ----------------- Health & Monitoring Endpoints -----------------
@app.get("/health")
def health_check():
    """Health check endpoint"""
    return health_checker.get_health_status()


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint"""
    return get_metrics()


# ----------------- Startup -----------------
@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("studypartner_started")


# ----------------- Routers -----------------
app.include_router(auth_router.router)
app.include_router(notes_router.router)
app.include_router(study_router.router)
