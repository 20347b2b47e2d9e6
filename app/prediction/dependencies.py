# app/prediction/dependencies.py
from functools import lru_cache

from app.core.database import SessionLocal
from app.prediction.orchestrator import PredictionOrchestrator
from app.prediction.predictor import KeywordPredictionService


@lru_cache
def get_orchestrator() -> PredictionOrchestrator:
    return PredictionOrchestrator(SessionLocal, KeywordPredictionService())
