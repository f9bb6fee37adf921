import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from cardwise.application.cards import find_card, replace_card
from cardwise.application.config import AppConfig, resolve_config
from cardwise.application.factory import get_card_repository, get_session_log
from cardwise.application.scheduler import apply_review, select_study_batch
from cardwise.application.stats import DeckStatistics, StatsCalculator
from cardwise.consts import VERSION
from cardwise.domain.errors import (
    CardNotFoundError,
    InvalidQualityError,
    InvalidUserIdError,
    StorageError,
    UnknownStudyModeError,
)
from cardwise.domain.models import Card

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cardwise.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"cardwise server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("cardwise server shutting down...")


app = FastAPI(
    title="cardwise",
    description="HTTP API for spaced-repetition study sessions.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class ReviewRequest(BaseModel):
    quality: int
    user_id: str | None = None


start_time = time.time()


def _config(user_id: str | None) -> AppConfig:
    return resolve_config({"user_id": user_id})


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/cards/batch", response_model=list[Card])
async def get_batch(mode: str = "mixed", user_id: str | None = None):
    """
    Cards a study session in the given mode would cover, in study order.
    An empty list means there is nothing to study in that mode.
    """
    config = _config(user_id)
    try:
        cards = await get_card_repository(config).load(config.user_id)
        return select_study_batch(cards, mode, datetime.now())
    except (UnknownStudyModeError, InvalidUserIdError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except StorageError as e:
        logger.error(f"Batch selection failed: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.post("/cards/{card_id}/review", response_model=Card)
async def review_card(card_id: str, req: ReviewRequest):
    """
    Apply one review to a card and persist the collection.
    """
    config = _config(req.user_id)
    repo = get_card_repository(config)

    try:
        cards = await repo.load(config.user_id)
        updated = apply_review(find_card(cards, card_id), req.quality, datetime.now())
    except CardNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except (InvalidQualityError, InvalidUserIdError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except StorageError as e:
        logger.error(f"Review failed: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    if not await repo.save(config.user_id, replace_card(cards, updated)):
        raise HTTPException(status_code=500, detail="Failed to save cards")

    logger.info(f"Reviewed {card_id} via API (quality={req.quality})")
    return updated


@app.get("/stats", response_model=DeckStatistics)
async def get_stats(user_id: str | None = None):
    config = _config(user_id)
    try:
        cards = await get_card_repository(config).load(config.user_id)
        sessions = await get_session_log(config).load(config.user_id)
    except InvalidUserIdError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    return StatsCalculator().compute(cards, sessions, datetime.now())
