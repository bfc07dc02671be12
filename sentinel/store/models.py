from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

@dataclass
class AnalysisRecord:
    # Identity
    id: str = ""
    userId: str = ""

    # What the user submitted
    senderPhone: str = ""
    messageContent: str = ""
    dateReceived: str = ""   # YYYY-MM-DD as entered by the user
    timeReceived: str = ""   # HH:MM as entered by the user
    screenshotUrl: Optional[str] = None
    language: str = "english"

    # Assessment snapshot (stored verbatim; riskLevel upper-cased LOW/MEDIUM/HIGH)
    riskScore: Optional[int] = None
    riskLevel: Optional[str] = None
    verdict: Optional[str] = None
    threats: List[Dict[str, Any]] = field(default_factory=list)
    recommendations: Dict[str, Any] = field(default_factory=dict)
    senderAnalysis: Dict[str, Any] = field(default_factory=dict)
    contentAnalysis: Dict[str, Any] = field(default_factory=dict)

    # Epoch ms
    createdAt: int = 0
    updatedAt: int = 0

    def __post_init__(self):
        # Older rows and some clients send lower-case levels
        if isinstance(self.riskLevel, str):
            self.riskLevel = self.riskLevel.upper() or None
