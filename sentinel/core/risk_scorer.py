"""
Deterministic SMS Risk Scoring
------------------------------
Purpose:
- Turn raw message text + sender metadata into an `Assessment` without any
  network call (demo path, offline mode, and fallback for the remote model).
- Keep every rule explainable: each fired signal maps to one threat entry and
  to the literal trigger words reported back as keywords.

Matching is plain case-insensitive substring search over the lower-cased text.
Scoring is additive with non-negative weights on top of a positive base, then
clamped at 100.
"""

from __future__ import annotations

import random
import re
import zlib
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import urlsplit

from sentinel.core.assessment import (
    Assessment,
    ContentAnalysis,
    Recommendations,
    SenderAnalysis,
    ThreatIndicator,
    level_for_score,
)
from sentinel.settings import settings

BASE_SCORE = 20
UNKNOWN_SENDER_WEIGHT = 10
MAX_SCORE = 100


@dataclass(frozen=True)
class Signal:
    name: str
    terms: Tuple[str, ...]
    weight: int
    threat: ThreatIndicator


# Order matters: threats and keywords are reported in this order.
LINK_SIGNAL = Signal(
    name="link",
    terms=("http", "bit.ly", "link"),
    weight=25,
    threat=ThreatIndicator(
        "Suspicious Link Detected",
        "The message contains a shortened or suspicious URL",
        "high",
    ),
)
URGENCY_SIGNAL = Signal(
    name="urgency",
    terms=("urgent", "immediate", "expire", "block"),
    weight=20,
    threat=ThreatIndicator(
        "Urgency Tactics Detected",
        "The message creates artificial time pressure",
        "high",
    ),
)
SENSITIVE_SIGNAL = Signal(
    name="sensitive_request",
    terms=("otp", "pin", "password"),
    weight=25,
    threat=ThreatIndicator(
        "Information Request (Red Flag)",
        "Asks for sensitive information like OTP/PIN",
        "high",
    ),
)
MONEY_SIGNAL = Signal(
    name="money_lure",
    terms=("₹", "lakhs", "prize", "won"),
    weight=15,
    threat=ThreatIndicator(
        "Too-Good-To-Be-True Offer",
        "Promises money, prizes or winnings",
        "medium",
    ),
)
SIGNALS: Tuple[Signal, ...] = (LINK_SIGNAL, URGENCY_SIGNAL, SENSITIVE_SIGNAL, MONEY_SIGNAL)

UNKNOWN_SENDER_THREAT = ThreatIndicator("Unknown Sender", "Number not in your contacts", "medium")

_VERDICTS = {
    "high": "This message is likely a smishing attempt",
    "medium": "This message shows some suspicious characteristics",
    "low": "This message appears to be legitimate",
}
_ACTIONS = {
    "high": "Do NOT click links or share personal information",
    "medium": "Verify the sender through official channels before responding",
    "low": "Safe to proceed, but always stay vigilant",
}

_DONT = (
    "Don't click any links in the message",
    "Don't call the number back",
    "Don't share OTPs, passwords, or PINs",
    "Don't forward message without warning others",
    "Don't respond to the sender",
)

URL_RE = re.compile(r"(https?://[^\s<>\"']+|bit\.ly/[^\s<>\"']*|www\.[^\s<>\"']+)", re.I)


def match_signal(text: str, signal: Signal) -> List[str]:
    """Trigger words of `signal` present in already lower-cased `text`."""
    return [t for t in signal.terms if t in text]


def extract_link_domain(text: str) -> Optional[str]:
    """Host of the first URL-looking token, e.g. 'bit.ly' or 'kyc-update.xyz'."""
    m = URL_RE.search(text or "")
    if not m:
        return None
    raw = m.group(1).rstrip(".,;:!?)")
    if "://" not in raw:
        raw = "http://" + raw
    try:
        host = urlsplit(raw).hostname
    except ValueError:
        return None
    return host or None


def _report_count(phone: str, score: int) -> int:
    # Stand-in for a sender reputation lookup; stable per phone.
    if score <= 50:
        return 0
    return 10 + zlib.crc32((phone or "").encode("utf-8")) % 50


def _grammar_score(fired: int) -> int:
    return max(6, 9 - fired)


def _recommendations(score: int) -> Recommendations:
    do = (
        "Delete this message immediately",
        "Block the sender number on your phone",
        "Report to your bank (if impersonating)" if score > 50 else "Keep this for your records",
        "Inform 3 friends/family about this scam",
        "Check your bank account for unauthorized activity",
    )
    return Recommendations(do=do, dont=_DONT)


class RiskScorer:
    """
    Keyword heuristic classifier.

    apply_unknown_sender_penalty:
      add UNKNOWN_SENDER_WEIGHT (and an "Unknown Sender" threat) when the
      sender is not in the user's contacts.
    rng:
      source for the bounded confidence value; inject a seeded
      `random.Random` for reproducible output.
    """

    def __init__(self, apply_unknown_sender_penalty: bool = True, rng: Optional[random.Random] = None):
        self.apply_unknown_sender_penalty = bool(apply_unknown_sender_penalty)
        self._rng = rng or random.Random()

    def score(self, message_text: str, sender_phone: str, sender_in_contacts: bool = False) -> Assessment:
        text = (message_text or "").lower()
        in_contacts = bool(sender_in_contacts)

        score = BASE_SCORE
        fired: List[Signal] = []
        keywords: List[str] = []
        for signal in SIGNALS:
            hits = match_signal(text, signal)
            if not hits:
                continue
            fired.append(signal)
            score += signal.weight
            for h in hits:
                if h not in keywords:
                    keywords.append(h)

        penalized = self.apply_unknown_sender_penalty and not in_contacts
        if penalized:
            score += UNKNOWN_SENDER_WEIGHT

        score = min(score, MAX_SCORE)
        level = level_for_score(score)

        threats = [s.threat for s in fired]
        # A bare unknown number is not a red flag on its own
        if penalized and fired:
            threats.append(UNKNOWN_SENDER_THREAT)

        has_link = LINK_SIGNAL in fired
        return Assessment(
            riskScore=score,
            riskLevel=level,
            confidence=85 + self._rng.randint(0, 9),
            verdict=_VERDICTS[level],
            action=_ACTIONS[level],
            threats=tuple(threats),
            senderAnalysis=SenderAnalysis(
                phone=sender_phone,
                inContacts=in_contacts,
                reportCount=_report_count(sender_phone, score),
                isNew=score > 60,
            ),
            contentAnalysis=ContentAnalysis(
                hasLinks=has_link,
                linkDomain=extract_link_domain(message_text) if has_link else None,
                hasUrgency=URGENCY_SIGNAL in fired,
                grammarScore=_grammar_score(len(fired)),
                keywords=tuple(keywords),
            ),
            recommendations=_recommendations(score),
        )


def default_scorer() -> RiskScorer:
    return RiskScorer(apply_unknown_sender_penalty=settings.SCORER_UNKNOWN_SENDER_PENALTY)
