"""
Assessment model
----------------
The single result shape produced by every classifier path (local heuristic or
remote model). Instances are frozen; sequences are stored as tuples so a
produced assessment cannot be mutated after the fact.

Field names follow the JSON contract used by the web client and the classifier
prompt (camelCase), so `to_dict()` is a plain field dump.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

RISK_LEVELS = ("low", "medium", "high")
SEVERITIES = ("low", "medium", "high")

# Score thresholds: < MEDIUM_FROM is low, < HIGH_FROM is medium, else high
MEDIUM_FROM = 35
HIGH_FROM = 65


def level_for_score(score: int) -> str:
    if score < MEDIUM_FROM:
        return "low"
    if score < HIGH_FROM:
        return "medium"
    return "high"


@dataclass(frozen=True)
class ThreatIndicator:
    title: str
    description: str
    severity: str = "medium"

    def to_dict(self) -> dict:
        return {"title": self.title, "description": self.description, "severity": self.severity}


@dataclass(frozen=True)
class SenderAnalysis:
    phone: str
    inContacts: bool = False
    reportCount: int = 0
    isNew: bool = False

    def to_dict(self) -> dict:
        return {
            "phone": self.phone,
            "inContacts": self.inContacts,
            "reportCount": self.reportCount,
            "isNew": self.isNew,
        }


@dataclass(frozen=True)
class ContentAnalysis:
    hasLinks: bool = False
    hasUrgency: bool = False
    grammarScore: int = 5
    keywords: Tuple[str, ...] = ()
    linkDomain: Optional[str] = None

    def to_dict(self) -> dict:
        out = {
            "hasLinks": self.hasLinks,
            "hasUrgency": self.hasUrgency,
            "grammarScore": self.grammarScore,
            "keywords": list(self.keywords),
        }
        # Absent domain is omitted, not null
        if self.linkDomain:
            out["linkDomain"] = self.linkDomain
        return out


@dataclass(frozen=True)
class Recommendations:
    do: Tuple[str, ...] = ()
    dont: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"do": list(self.do), "dont": list(self.dont)}


@dataclass(frozen=True)
class Assessment:
    riskScore: int
    riskLevel: str
    confidence: int
    verdict: str
    action: str
    senderAnalysis: SenderAnalysis
    contentAnalysis: ContentAnalysis = field(default_factory=ContentAnalysis)
    recommendations: Recommendations = field(default_factory=Recommendations)
    threats: Tuple[ThreatIndicator, ...] = ()

    def to_dict(self) -> dict:
        return {
            "riskScore": self.riskScore,
            "riskLevel": self.riskLevel,
            "confidence": self.confidence,
            "verdict": self.verdict,
            "action": self.action,
            "threats": [t.to_dict() for t in self.threats],
            "senderAnalysis": self.senderAnalysis.to_dict(),
            "contentAnalysis": self.contentAnalysis.to_dict(),
            "recommendations": self.recommendations.to_dict(),
        }
