# app/prediction/predictor.py
"""
Category / priority prediction for ticket text.

The orchestrator only depends on the ``PredictionService`` protocol. The
bundled implementation scores keywords from a model handle that is passed in
at construction, so swapping in a trained model means providing another
``PredictionService``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prediction:
    category: str
    priority_label: str


class PredictionService(Protocol):
    def predict(self, ticket_text: str) -> Prediction | None:
        """Return the predicted labels, or None when prediction is not possible."""
        ...


@dataclass
class KeywordModel:
    """Keyword lists per label. The first label of each mapping is the fallback."""

    categories: dict[str, list[str]]
    priorities: dict[str, list[str]] = field(default_factory=dict)
    default_priority: str = "Low"


DEFAULT_MODEL = KeywordModel(
    categories={
        "Incident Response": ["incident", "breach", "attack", "compromised", "outage", "suspicious"],
        "Network Security": ["network", "firewall", "vpn", "wifi", "router", "port", "dns", "proxy"],
        "Authentication": ["password", "login", "log in", "mfa", "2fa", "locked", "sso", "account"],
        "Data Backup and Recovery": ["backup", "restore", "recover", "recovery", "deleted", "lost file"],
        "Malware Protection": ["malware", "virus", "ransomware", "trojan", "antivirus", "phishing", "spam"],
        "Mobile Security": ["mobile", "phone", "tablet", "android", "iphone", "ios", "lost device"],
    },
    priorities={
        "High": ["urgent", "asap", "critical", "breach", "ransomware", "down", "outage", "immediately"],
        "Medium": ["slow", "error", "cannot", "can't", "unable", "fails", "failing"],
        "Low": ["question", "request", "how to", "when", "please"],
    },
)

_WORD = re.compile(r"[a-z0-9']+")


def _score(text: str, keywords: list[str]) -> int:
    tokens = set(_WORD.findall(text))
    score = 0
    for keyword in keywords:
        if " " in keyword:
            score += text.count(keyword)
        elif keyword in tokens:
            score += 1
    return score


class KeywordPredictionService:
    """PredictionService backed by an injected KeywordModel."""

    def __init__(self, model: KeywordModel | None = None):
        self.model = model or DEFAULT_MODEL
        if not self.model.categories:
            raise ValueError("KeywordModel needs at least one category")

    def _best(self, text: str, labels: dict[str, list[str]], fallback: str) -> str:
        best_label, best_score = fallback, 0
        for label, keywords in labels.items():
            score = _score(text, keywords)
            if score > best_score:
                best_label, best_score = label, score
        return best_label

    def predict(self, ticket_text: str) -> Prediction | None:
        if not ticket_text or not ticket_text.strip():
            logger.warning("Empty ticket text, nothing to predict.")
            return None
        text = ticket_text.lower()
        first_category = next(iter(self.model.categories))
        category = self._best(text, self.model.categories, first_category)
        priority = self._best(text, self.model.priorities, self.model.default_priority)
        logger.debug("Predicted category=%s priority=%s", category, priority)
        return Prediction(category=category, priority_label=priority)
