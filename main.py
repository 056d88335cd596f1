from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from routers.resolve import router as resolve_router
from config import settings
import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)

app = FastAPI(
    title="Overcast Episode Resolver",
    description="Matches any podcast/video page to its Overcast episode",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o for o in settings.cors_origins if "*" not in o],
    allow_origin_regex=r"^chrome-extension://.*$",
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["*"],
)

app.include_router(resolve_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8001, reload=True)
