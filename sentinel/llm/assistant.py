from typing import Any, Dict, List, Optional

from sentinel.settings import settings
from sentinel.llm.gateway_client import chat_completion
from sentinel.llm.prompting import ASSISTANT_LANGUAGE_INSTRUCTIONS, render_prompt


# ============================================================
# Prompt assembly
# ============================================================

def _threat_titles(context: Dict[str, Any]) -> str:
    titles = []
    for t in context.get("threats") or []:
        if isinstance(t, dict) and t.get("title"):
            titles.append(str(t["title"]))
    return ", ".join(titles) or "None detected"


def build_system_prompt(context: Dict[str, Any], language: str) -> str:
    score = context.get("riskScore")
    return render_prompt(
        "assistant_system.txt",
        language_instruction=ASSISTANT_LANGUAGE_INSTRUCTIONS.get(language, ASSISTANT_LANGUAGE_INSTRUCTIONS["english"]),
        message_content=context.get("messageContent") or "Not provided",
        risk_level=context.get("riskLevel") or "Unknown",
        risk_score=score if score is not None else "N/A",
        verdict=context.get("verdict") or "Not analyzed",
        threats=_threat_titles(context),
    )


def build_messages(
    question: str,
    context: Dict[str, Any],
    language: str,
    history: Optional[List[Dict[str, str]]] = None,
) -> List[Dict[str, str]]:
    """System prompt, then the last CHAT_HISTORY_LIMIT turns, then the question."""
    messages = [{"role": "system", "content": build_system_prompt(context, language)}]
    limit = max(0, int(settings.CHAT_HISTORY_LIMIT))
    recent = (history or [])[-limit:] if limit else []
    for m in recent:
        messages.append({
            "role": "user" if m.get("role") == "user" else "assistant",
            "content": str(m.get("content") or ""),
        })
    messages.append({"role": "user", "content": question})
    return messages


# ============================================================
# Offline replies (no gateway)
# ============================================================

_CLICKED_REPLY = """Don't panic! Here's what to do immediately:
1. Disconnect from the internet
2. Don't enter any information on the opened site
3. Clear your browser cache and history
4. Change your banking passwords immediately
5. Call your bank's fraud helpline
6. Monitor your account for 48 hours

Would you like the fraud helpline numbers for major banks?"""

_REPORT_REPLY = """To report this scam in India:
1. Call Cyber Crime Helpline: 1930 (24/7)
2. File online at: cybercrime.gov.in
3. Report to your bank's fraud department
4. Block and report the sender number
5. Save all evidence (this analysis report)

The National Cyber Crime Portal accepts complaints in multiple languages."""

_OTP_REPLY = """If you shared your OTP, act immediately:
1. Call your bank NOW and block your account temporarily
2. Change all passwords (bank, email, UPI apps)
3. Check for unauthorized transactions
4. File a complaint at cybercrime.gov.in
5. Inform your bank about potential fraud

Time is critical - the faster you act, the better chance of recovery!"""

_HELPLINE_REPLY = """Important helpline numbers:
• Cyber Crime: 1930 (24/7)
• SBI Fraud: 1800-111-109
• HDFC Fraud: 1800-120-2767
• ICICI Fraud: 1800-1080
• RBI Helpline: 14440

Save these numbers for emergencies!"""


def canned_reply(question: str, context: Dict[str, Any]) -> str:
    """Keyword-routed reply used when the assistant runs without a model."""
    q = (question or "").lower()
    level = str(context.get("riskLevel") or "unknown").lower()
    try:
        score = int(context.get("riskScore") or 0)
    except (TypeError, ValueError, OverflowError):
        score = 0
    threats = [t for t in (context.get("threats") or []) if isinstance(t, dict)]

    if "risky" in q or "why" in q:
        reasons = ", ".join(str(t.get("title")) for t in threats if t.get("title"))
        tail = (
            "Banks and legitimate companies never ask for OTPs or passwords via SMS."
            if score > 60
            else "While not immediately dangerous, always verify through official channels."
        )
        return f"This message shows {len(threats)} red flags: {reasons or 'suspicious patterns'}. {tail}"
    if "clicked" in q or "link" in q:
        return _CLICKED_REPLY
    if "report" in q or "police" in q:
        return _REPORT_REPLY
    if "otp" in q or "shared" in q:
        return _OTP_REPLY
    if "helpline" in q or "number" in q:
        return _HELPLINE_REPLY

    advice = (
        "I strongly recommend not interacting with this message and blocking the sender."
        if level == "high"
        else "While caution is advised, verify through official channels before taking any action."
    )
    return (
        f"I understand you're concerned about this message. Based on my analysis, the risk level is "
        f"{level} ({score}/100). {advice} Is there anything specific you'd like to know?"
    )


def answer_question(
    question: str,
    context: Dict[str, Any],
    language: str = "english",
    history: Optional[List[Dict[str, str]]] = None,
    backend: Optional[str] = None,
) -> str:
    backend = (backend or settings.ASSISTANT_BACKEND or "llm").lower()
    if backend == "canned":
        return canned_reply(question, context)
    messages = build_messages(question, context, language, history)
    return chat_completion(messages, temperature=0.7, max_tokens=500)
