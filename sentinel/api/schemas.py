from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

from sentinel.llm.prompting import LANGUAGES

RiskLevel = Literal["low", "medium", "high"]
Severity = Literal["low", "medium", "high"]


def _language(v: Any) -> str:
    s = str(v or "").strip().lower()
    return s if s in LANGUAGES else "english"


class AnalyzeRequest(BaseModel):
    messageContent: str = ""
    senderPhone: str = ""
    senderInContacts: bool = False
    language: str = "english"

    @field_validator("language", mode="before")
    @classmethod
    def _norm_language(cls, v: Any) -> str:
        return _language(v)


class Threat(BaseModel):
    title: str
    description: str = ""
    severity: Severity = "medium"


class SenderAnalysisModel(BaseModel):
    phone: str
    inContacts: bool = False
    reportCount: int = 0
    isNew: bool = False


class ContentAnalysisModel(BaseModel):
    hasLinks: bool = False
    linkDomain: Optional[str] = None
    hasUrgency: bool = False
    grammarScore: int = 5
    keywords: List[str] = Field(default_factory=list)


class RecommendationsModel(BaseModel):
    do: List[str] = Field(default_factory=list)
    dont: List[str] = Field(default_factory=list)


class AssessmentResponse(BaseModel):
    riskScore: int
    riskLevel: RiskLevel
    confidence: int
    verdict: str
    action: str
    threats: List[Threat] = Field(default_factory=list)
    senderAnalysis: SenderAnalysisModel
    contentAnalysis: ContentAnalysisModel
    recommendations: RecommendationsModel


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class AnalysisContext(BaseModel):
    messageContent: Optional[str] = None
    riskLevel: Optional[str] = None
    riskScore: Optional[float] = None
    verdict: Optional[str] = None
    threats: Optional[List[Dict[str, Any]]] = None


class ChatRequest(BaseModel):
    userQuestion: str = ""
    analysisContext: AnalysisContext = Field(default_factory=AnalysisContext)
    language: str = "english"
    chatHistory: List[ChatTurn] = Field(default_factory=list)

    @field_validator("language", mode="before")
    @classmethod
    def _norm_language(cls, v: Any) -> str:
        return _language(v)


class ChatResponse(BaseModel):
    response: str


class SaveAnalysisRequest(BaseModel):
    senderPhone: str
    messageContent: str
    dateReceived: str = ""
    timeReceived: str = ""
    screenshotUrl: Optional[str] = None
    language: str = "english"
    riskScore: int
    riskLevel: str
    verdict: str = ""
    threats: List[Threat] = Field(default_factory=list)
    recommendations: RecommendationsModel = Field(default_factory=RecommendationsModel)
    senderAnalysis: Optional[SenderAnalysisModel] = None
    contentAnalysis: ContentAnalysisModel = Field(default_factory=ContentAnalysisModel)

    @field_validator("language", mode="before")
    @classmethod
    def _norm_language(cls, v: Any) -> str:
        return _language(v)

    @field_validator("riskLevel")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        up = (v or "").strip().upper()
        if up not in ("LOW", "MEDIUM", "HIGH"):
            raise ValueError("riskLevel must be LOW, MEDIUM or HIGH")
        return up

    @field_validator("riskScore")
    @classmethod
    def _bounded_score(cls, v: int) -> int:
        return max(0, min(100, int(v)))


class SaveAnalysisResponse(BaseModel):
    id: str


class AnalysisRecordModel(BaseModel):
    id: str
    userId: str
    senderPhone: str
    messageContent: str
    dateReceived: str = ""
    timeReceived: str = ""
    screenshotUrl: Optional[str] = None
    language: str = "english"
    riskScore: Optional[int] = None
    riskLevel: Optional[str] = None
    verdict: Optional[str] = None
    threats: List[Dict[str, Any]] = Field(default_factory=list)
    recommendations: Dict[str, Any] = Field(default_factory=dict)
    senderAnalysis: Dict[str, Any] = Field(default_factory=dict)
    contentAnalysis: Dict[str, Any] = Field(default_factory=dict)
    createdAt: int = 0
    updatedAt: int = 0


class AnalysisStats(BaseModel):
    total: int = 0
    highRisk: int = 0
    mediumRisk: int = 0
    lowRisk: int = 0
