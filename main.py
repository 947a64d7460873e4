import sys

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from budgetbuddy.api.routes import router
from budgetbuddy.config import get_settings
from budgetbuddy.deps import store

settings = get_settings()

# Configure loguru
logger.remove()
logger.add(
    sys.stderr, level=settings.log_level, format="{time:HH:mm:ss} | {level:<7} | {message}"
)

app = FastAPI(title="Budget Buddy", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("{} {}", request.method, request.url.path)
    response: Response = await call_next(request)
    logger.info("→ {}", response.status_code)
    return response


app.include_router(router)


@app.on_event("startup")
async def startup():
    """Report where records live and whether the chat assistant can reach the model."""
    logger.info("Records stored in {}", settings.db_path or "memory (not persisted)")
    logger.info("Monthly budget is {}", store.get_budget())
    if not settings.openrouter_api_key:
        logger.warning(
            "OPENROUTER_API_KEY not set, dashboard works but chat falls back to canned replies"
        )
    else:
        logger.info("Chat assistant using {}", settings.llm_model)


@app.on_event("shutdown")
async def shutdown():
    """Flush and close the record store."""
    store.close()
    logger.info("Record store closed")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
