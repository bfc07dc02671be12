import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette.concurrency import run_in_threadpool

from sentinel.api.schemas import (
    AnalysisRecordModel,
    AnalysisStats,
    AnalyzeRequest,
    AssessmentResponse,
    ChatRequest,
    ChatResponse,
    SaveAnalysisRequest,
    SaveAnalysisResponse,
)
from sentinel.api.auth import client_id, require_api_key, require_user
from sentinel.api.validation import clean_phone, is_valid_phone, validate_question, validate_submission
from sentinel.llm.analyzer import Classifier, HeuristicClassifier, get_classifier
from sentinel.llm.assistant import answer_question
from sentinel.llm.errors import GatewayError
from sentinel.observability.logging import log
from sentinel.queue.jobs import enqueue_retention_purge
from sentinel.settings import settings
from sentinel.store import analysis_repo
from sentinel.store.models import AnalysisRecord
from sentinel.store.usage import consume_demo_quota
import sentinel.observability.metrics as metrics

router = APIRouter(prefix="/api", dependencies=[Depends(require_api_key)])


def _safe_metric(fn, *args) -> None:
    # Metrics are best-effort; a Redis hiccup must not fail the request.
    try:
        fn(*args)
    except Exception as e:
        log(event="metrics_unavailable", metric=getattr(fn, "__name__", "?"), errorType=type(e).__name__)


async def _classify(classifier: Classifier, req: AnalyzeRequest) -> dict:
    message, phone = validate_submission(req.messageContent, req.senderPhone)
    start = time.time()
    try:
        assessment = await run_in_threadpool(
            classifier.classify, message, phone, req.senderInContacts, req.language
        )
    except GatewayError as e:
        _safe_metric(metrics.increment_failure)
        log(
            event="analyze_failed",
            backend=classifier.name,
            errorType=type(e).__name__,
            status=e.status_code,
        )
        raise

    elapsed_ms = int((time.time() - start) * 1000)
    _safe_metric(metrics.record_analysis, classifier.name, assessment.riskLevel, elapsed_ms)
    log(
        event="analyze_done",
        backend=classifier.name,
        riskScore=assessment.riskScore,
        riskLevel=assessment.riskLevel,
        threats=len(assessment.threats),
        elapsedMs=elapsed_ms,
        messageContent=message,
    )
    return assessment.to_dict()


@router.post("/analyze", response_model=AssessmentResponse, response_model_exclude_none=True)
async def analyze(req: AnalyzeRequest):
    return await _classify(get_classifier(), req)


@router.post("/demo/analyze", response_model=AssessmentResponse, response_model_exclude_none=True)
async def demo_analyze(req: AnalyzeRequest, cid: str = Depends(client_id)):
    """Anonymous trial: local heuristic only, limited per client id."""
    # Validate before charging the quota
    validate_submission(req.messageContent, req.senderPhone)
    allowed, used = await run_in_threadpool(consume_demo_quota, cid)
    if not allowed:
        log(event="demo_limit_reached", clientId=cid, used=used)
        raise HTTPException(status_code=429, detail="Demo limit reached. Sign up to continue analyzing messages.")
    return await _classify(HeuristicClassifier(), req)


@router.post("/chat", response_model=ChatResponse)
async def chat(req: ChatRequest, user_id: str = Depends(require_user)):
    question = validate_question(req.userQuestion)
    context = req.analysisContext.model_dump()
    history = [t.model_dump() for t in req.chatHistory]
    try:
        reply = await run_in_threadpool(answer_question, question, context, req.language, history)
    except GatewayError as e:
        _safe_metric(metrics.record_chat, False)
        log(event="chat_failed", userId=user_id, errorType=type(e).__name__, status=e.status_code)
        raise
    _safe_metric(metrics.record_chat, True)
    log(event="chat_done", userId=user_id, question=question, reply=reply, historyTurns=len(history))
    return ChatResponse(response=reply)


@router.post("/analyses", response_model=SaveAnalysisResponse)
async def save_analysis(req: SaveAnalysisRequest, user_id: str = Depends(require_user)):
    if not req.messageContent.strip() or not req.senderPhone.strip():
        raise HTTPException(status_code=400, detail="Sender phone and message content are required")
    phone = clean_phone(req.senderPhone)
    if not is_valid_phone(phone):
        raise HTTPException(status_code=400, detail="Invalid phone number. Use + followed by 10-15 digits.")
    sender = req.senderAnalysis.model_dump() if req.senderAnalysis else {"phone": phone}
    record = AnalysisRecord(
        userId=user_id,
        senderPhone=phone,
        messageContent=req.messageContent,
        dateReceived=req.dateReceived,
        timeReceived=req.timeReceived,
        screenshotUrl=req.screenshotUrl,
        language=req.language,
        riskScore=req.riskScore,
        riskLevel=req.riskLevel,
        verdict=req.verdict,
        threats=[t.model_dump() for t in req.threats],
        recommendations=req.recommendations.model_dump(),
        senderAnalysis=sender,
        contentAnalysis=req.contentAnalysis.model_dump(exclude_none=True),
    )
    analysis_id = await run_in_threadpool(analysis_repo.save_analysis, record)

    try:
        await run_in_threadpool(enqueue_retention_purge, user_id)
    except Exception as e:
        # Saved already; retention catches up on the next save.
        log(event="retention_enqueue_failed", userId=user_id, errorType=type(e).__name__)

    return SaveAnalysisResponse(id=analysis_id)


@router.get("/analyses", response_model=list[AnalysisRecordModel])
async def list_analyses(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    user_id: str = Depends(require_user),
):
    rows = await run_in_threadpool(
        analysis_repo.list_analyses, user_id, limit or settings.HISTORY_DEFAULT_LIMIT
    )
    return [r.__dict__ for r in rows]


@router.get("/analyses/stats", response_model=AnalysisStats)
async def analysis_stats(user_id: str = Depends(require_user)):
    return await run_in_threadpool(analysis_repo.analysis_stats, user_id)


@router.get("/analyses/{analysis_id}", response_model=AnalysisRecordModel)
async def get_analysis(analysis_id: str, user_id: str = Depends(require_user)):
    rec = await run_in_threadpool(analysis_repo.get_analysis, user_id, analysis_id)
    if rec is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return rec.__dict__


@router.delete("/analyses/{analysis_id}")
async def delete_analysis(analysis_id: str, user_id: str = Depends(require_user)):
    ok = await run_in_threadpool(analysis_repo.delete_analysis, user_id, analysis_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return {"success": True}
