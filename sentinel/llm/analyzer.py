import json
import logging
from typing import Any, Dict, Optional, Protocol

from sentinel.settings import settings
from sentinel.core.assessment import Assessment, level_for_score
from sentinel.core.normalizer import normalize_assessment
from sentinel.core.risk_scorer import RiskScorer, default_scorer
from sentinel.llm.errors import ClassificationError, GatewayError
from sentinel.llm.gateway_client import chat_completion
from sentinel.llm.prompting import ANALYZER_LANGUAGE_INSTRUCTIONS, render_prompt
from sentinel.observability.logging import log
import sentinel.observability.metrics as metrics

logger = logging.getLogger("sentinel_analyzer")

_JSON_SHAPE = """{{
  "riskScore": <number 0-100>,
  "riskLevel": "<LOW or MEDIUM or HIGH>",
  "confidence": <number 0-100>,
  "verdict": "<brief explanation of why this is/isn't a scam>",
  "action": "<what the user should do>",
  "threats": [
    {{
      "title": "<threat name>",
      "description": "<brief description>",
      "severity": "<high or medium or low>"
    }}
  ],
  "senderAnalysis": {{
    "phone": "{phone}",
    "inContacts": false,
    "reportCount": <estimated reports 0-100>,
    "isNew": <boolean>
  }},
  "contentAnalysis": {{
    "hasLinks": <boolean>,
    "linkDomain": "<domain if link present or null>",
    "hasUrgency": <boolean>,
    "grammarScore": <1-10>,
    "keywords": ["<suspicious keywords found>"]
  }},
  "recommendations": {{
    "do": ["<action 1>", "<action 2>", "<action 3>", "<action 4>"],
    "dont": ["<thing to avoid 1>", "<thing to avoid 2>", "<thing to avoid 3>", "<thing to avoid 4>"]
  }}
}}"""


class Classifier(Protocol):
    name: str

    def classify(
        self,
        message_text: str,
        sender_phone: str,
        sender_in_contacts: bool = False,
        language: str = "english",
    ) -> Assessment:
        ...


def _strip_code_fences(text: str) -> str:
    s = (text or "").strip()
    if s.startswith("```json"):
        s = s[7:]
    elif s.startswith("```"):
        s = s[3:]
    if s.endswith("```"):
        s = s[:-3]
    return s.strip()


def extract_json(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from model output.
    1) Strip markdown code fences and try json.loads
    2) Fall back to decoding the first object starting at the first '{'
    Raises ClassificationError when no JSON object can be recovered.
    """
    s = _strip_code_fences(text)
    if not s:
        raise ClassificationError("Empty model output")

    try:
        obj = json.loads(s)
    except ValueError:
        start = s.find("{")
        if start == -1:
            raise ClassificationError("No JSON object found in model output")
        try:
            obj, _ = json.JSONDecoder().raw_decode(s[start:])
        except ValueError as e:
            raise ClassificationError(f"Failed to parse analysis result: {e}") from e

    if not isinstance(obj, dict):
        raise ClassificationError("Model output is not a JSON object")
    return obj


def build_user_prompt(message_text: str, sender_phone: str) -> str:
    return (
        "Analyze this SMS message for scam indicators:\n\n"
        f'Message: "{message_text}"\n'
        f"Sender Phone: {sender_phone}\n\n"
        "Return a JSON object with this exact structure:\n"
        + _JSON_SHAPE.format(phone=sender_phone)
    )


class HeuristicClassifier:
    name = "heuristic"

    def __init__(self, scorer: Optional[RiskScorer] = None):
        self.scorer = scorer or default_scorer()

    def classify(self, message_text, sender_phone, sender_in_contacts=False, language="english") -> Assessment:
        # Templates are English-only; language is accepted for interface parity.
        return self.scorer.score(message_text, sender_phone, sender_in_contacts)


class GatewayClassifier:
    name = "llm"

    def classify(self, message_text, sender_phone, sender_in_contacts=False, language="english") -> Assessment:
        system = render_prompt(
            "analyzer_system.txt",
            language_instruction=ANALYZER_LANGUAGE_INSTRUCTIONS.get(language, ANALYZER_LANGUAGE_INSTRUCTIONS["english"]),
        )
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": build_user_prompt(message_text, sender_phone)},
        ]
        out = chat_completion(messages, temperature=0.3)
        try:
            raw = extract_json(out)
        except ClassificationError:
            log(event="classifier_parse_failed", content=out)
            raise

        assessment = normalize_assessment(raw, sender_phone)
        if assessment.riskLevel != level_for_score(assessment.riskScore):
            log(
                event="assessment_level_mismatch",
                riskScore=assessment.riskScore,
                riskLevel=assessment.riskLevel,
            )
        return assessment


class FallbackClassifier:
    """Try `primary`; on any gateway failure degrade to `fallback`."""

    def __init__(self, primary: Classifier, fallback: Classifier):
        self.primary = primary
        self.fallback = fallback
        self.name = primary.name

    def classify(self, message_text, sender_phone, sender_in_contacts=False, language="english") -> Assessment:
        try:
            return self.primary.classify(message_text, sender_phone, sender_in_contacts, language)
        except GatewayError as e:
            logger.warning("classifier_fallback_used err=%s", type(e).__name__)
            log(event="classifier_fallback_used", backend=self.primary.name, errorType=type(e).__name__)
            try:
                metrics.increment_fallback()
            except Exception:
                pass
            return self.fallback.classify(message_text, sender_phone, sender_in_contacts, language)


def get_classifier(backend: Optional[str] = None) -> Classifier:
    backend = (backend or settings.CLASSIFIER_BACKEND or "llm").lower()
    if backend == "heuristic":
        return HeuristicClassifier()
    if settings.CLASSIFIER_FALLBACK_TO_HEURISTIC:
        return FallbackClassifier(GatewayClassifier(), HeuristicClassifier())
    return GatewayClassifier()
