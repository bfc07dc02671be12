"""
Normalize untrusted classifier output into an `Assessment`.

Every field is rebuilt independently: wrong type, missing or out of range
values fall back to a fixed default, so one bad field never invalidates the
rest. Nothing here raises on malformed structure; parsing the raw text into an
object is the caller's job (see sentinel.llm.analyzer).
"""

from __future__ import annotations

import math
from typing import Any, List, Mapping, Optional

from sentinel.core.assessment import (
    RISK_LEVELS,
    SEVERITIES,
    Assessment,
    ContentAnalysis,
    Recommendations,
    SenderAnalysis,
    ThreatIndicator,
)

DEFAULT_RISK_SCORE = 50
DEFAULT_RISK_LEVEL = "medium"
DEFAULT_CONFIDENCE = 80
DEFAULT_GRAMMAR_SCORE = 5
DEFAULT_VERDICT = "Unable to determine message safety"
DEFAULT_ACTION = "Exercise caution with this message"
DEFAULT_DO = ("Be cautious with this message",)
DEFAULT_DONT = ("Do not share personal information",)


def _as_number(v: Any) -> Optional[float]:
    """Finite float from int/float/numeric string, else None (bools are rejected)."""
    if isinstance(v, bool) or v is None:
        return None
    if not isinstance(v, (int, float, str)):
        return None
    try:
        f = float(v.strip() if isinstance(v, str) else v)
    except (OverflowError, ValueError):
        # ints beyond float range overflow
        return None
    return f if math.isfinite(f) else None


def _bounded_int(v: Any, default: int, lo: int, hi: int) -> int:
    n = _as_number(v)
    if n is None:
        n = default
    return int(max(lo, min(hi, round(n))))


def _text(v: Any, default: str) -> str:
    if isinstance(v, str) and v.strip():
        return v
    return default


def _str_list(v: Any, default: tuple = ()) -> tuple:
    if not isinstance(v, list):
        return tuple(default)
    return tuple(str(x) for x in v if isinstance(x, (str, int, float)) and not isinstance(x, bool))


def _mapping(v: Any) -> Mapping:
    return v if isinstance(v, Mapping) else {}


def _threats(v: Any) -> tuple:
    if not isinstance(v, list):
        return ()
    out: List[ThreatIndicator] = []
    for item in v:
        if not isinstance(item, Mapping):
            continue
        title = item.get("title")
        if not isinstance(title, str) or not title.strip():
            continue
        desc = item.get("description")
        sev = str(item.get("severity") or "").lower()
        out.append(
            ThreatIndicator(
                title=title,
                description=desc if isinstance(desc, str) else "",
                severity=sev if sev in SEVERITIES else "medium",
            )
        )
    return tuple(out)


def _risk_level(v: Any) -> str:
    if isinstance(v, str) and v.strip().upper() in {lvl.upper() for lvl in RISK_LEVELS}:
        return v.strip().lower()
    return DEFAULT_RISK_LEVEL


def normalize_assessment(raw: Any, fallback_sender_phone: str) -> Assessment:
    """
    Rebuild a valid Assessment from `raw` (usually a dict decoded from model JSON).

    Notes:
    - senderAnalysis.phone is always `fallback_sender_phone`; inContacts is
      always False (no contact list at this layer).
    - riskLevel is validated but not re-derived from riskScore, so the two can
      disagree if the classifier returned an inconsistent pair.
    """
    data = _mapping(raw)
    sender = _mapping(data.get("senderAnalysis"))
    content = _mapping(data.get("contentAnalysis"))
    recs = _mapping(data.get("recommendations"))

    link_domain = content.get("linkDomain")
    if not isinstance(link_domain, str) or not link_domain.strip():
        link_domain = None

    return Assessment(
        riskScore=_bounded_int(data.get("riskScore"), DEFAULT_RISK_SCORE, 0, 100),
        riskLevel=_risk_level(data.get("riskLevel")),
        confidence=_bounded_int(data.get("confidence"), DEFAULT_CONFIDENCE, 0, 100),
        verdict=_text(data.get("verdict"), DEFAULT_VERDICT),
        action=_text(data.get("action"), DEFAULT_ACTION),
        threats=_threats(data.get("threats")),
        senderAnalysis=SenderAnalysis(
            phone=fallback_sender_phone,
            inContacts=False,
            reportCount=_bounded_int(sender.get("reportCount"), 0, 0, 10**9),
            isNew=bool(sender.get("isNew")),
        ),
        contentAnalysis=ContentAnalysis(
            hasLinks=bool(content.get("hasLinks")),
            linkDomain=link_domain,
            hasUrgency=bool(content.get("hasUrgency")),
            grammarScore=_bounded_int(content.get("grammarScore"), DEFAULT_GRAMMAR_SCORE, 1, 10),
            keywords=_str_list(content.get("keywords")),
        ),
        recommendations=Recommendations(
            do=_str_list(recs.get("do"), DEFAULT_DO),
            dont=_str_list(recs.get("dont"), DEFAULT_DONT),
        ),
    )
