"""
Pydantic models for policy analysis requests, results, and session views.

Field names are snake_case in Python and camelCase on the wire, matching the
structured output the reasoning model is asked to produce.
"""

import base64
import binascii
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for immutable, camelCase-serialised domain values."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Evidence(CamelModel):
    """A user-supplied media file attached to an analysis request."""

    filename: str = Field(..., min_length=1)
    mime_type: str = Field(..., min_length=1, description="e.g. image/png")
    data: str = Field(..., min_length=1, description="Base64-encoded file contents.")
    caption: Optional[str] = Field(None, description="Optional user context.")

    @field_validator("data")
    @classmethod
    def _require_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except binascii.Error as exc:
            raise ValueError("Evidence data must be base64-encoded.") from exc
        return value


class AnalysisRequest(CamelModel):
    """Input collected by the dashboard form."""

    policy_text: str = Field(..., description="Free-text policy description.")
    geography: str = Field("", description="Optional target geography or context.")
    evidence: Optional[Evidence] = None

    @field_validator("policy_text")
    @classmethod
    def _require_policy_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Policy text must not be empty.")
        return value

    @field_validator("geography", mode="before")
    @classmethod
    def _normalise_geography(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        return value


class Source(CamelModel):
    """Web reference attached by the model's search grounding."""

    title: str
    uri: str


class HistoricalPrecedent(CamelModel):
    case_name: str
    outcome: Literal["Success", "Failure", "Mixed"]
    relevance: str


class Diagnosis(CamelModel):
    root_cause: str
    symptoms: tuple[str, ...] = Field(default_factory=tuple)
    historical_precedents: tuple[HistoricalPrecedent, ...] = Field(
        default_factory=tuple
    )


class GovernmentStrategy(CamelModel):
    policy_changes: tuple[str, ...] = Field(default_factory=tuple)
    infrastructure: tuple[str, ...] = Field(default_factory=tuple)
    enforcement: str = ""


class SocietyStrategy(CamelModel):
    ngo_role: str = ""
    mobilization_events: tuple[str, ...] = Field(default_factory=tuple)


class IndividualStrategy(CamelModel):
    daily_actions: tuple[str, ...] = Field(default_factory=tuple)
    incentives: str = ""


class Blueprint(CamelModel):
    """Coordinated strategy across government, civil society, and individuals."""

    government: GovernmentStrategy
    society: SocietyStrategy
    individual: IndividualStrategy


class TimelineEvent(CamelModel):
    year_offset: int = Field(..., ge=1, description="Years into the future.")
    scenario_description: str
    impact_type: Literal["Economic", "Social", "Environmental", "Trust"]
    risk_level: Literal["Critical", "High", "Moderate", "Low"]


class Viability(CamelModel):
    cost_band: Literal["Low", "Medium", "High", "Mega-Project"]
    cost_reasoning: str
    success_probability: int = Field(..., ge=0, le=100)
    success_factors: tuple[str, ...] = Field(default_factory=tuple)


class Stakeholder(CamelModel):
    group: str = Field(..., min_length=1)
    sentiment: Literal["Positive", "Neutral", "Negative", "Mixed"]
    concern: str
    influence: int = Field(..., ge=0, le=100)
    required_actions: tuple[str, ...] = Field(default_factory=tuple)


class ResearchPaper(CamelModel):
    title: str
    institution: str
    year: int
    relevance: str
    uri: str


class NewsArticle(CamelModel):
    title: str
    source: str
    date: str
    description: str
    uri: str


class EvidenceAnalysis(CamelModel):
    """Forensic audit of the attached evidence."""

    media_type: Literal["image", "video", "pdf", "none"] = "none"
    visual_context: str = ""
    detected_risks: tuple[str, ...] = Field(default_factory=tuple)
    behavioral_patterns: Optional[tuple[str, ...]] = None


class AnalysisPayload(CamelModel):
    """The portion of an analysis produced by the reasoning model."""

    title: str
    executive_summary: str
    diagnosis: Diagnosis
    blueprint: Blueprint
    shadow_timeline: tuple[TimelineEvent, ...]
    viability: Viability
    stakeholders: tuple[Stakeholder, ...]
    research_papers: tuple[ResearchPaper, ...]
    news_articles: tuple[NewsArticle, ...]
    visualization_prompt: str
    evidence_analysis: Optional[EvidenceAnalysis] = None


class PolicyAnalysis(AnalysisPayload):
    """A completed analysis run. Created once per successful call, never mutated."""

    id: str
    created_at: datetime
    sources: tuple[Source, ...] = Field(default_factory=tuple)
    input_evidence: Optional[Evidence] = None
    raw_input: str


class HistoryEntry(CamelModel):
    """Compact listing used by the history sidebar."""

    id: str
    title: str
    created_at: datetime
    raw_input: str

    @classmethod
    def from_analysis(cls, analysis: PolicyAnalysis) -> "HistoryEntry":
        return cls(
            id=analysis.id,
            title=analysis.title,
            created_at=analysis.created_at,
            raw_input=analysis.raw_input,
        )


class SessionSnapshot(CamelModel):
    """Consistent read of the orchestrator and result store state."""

    state: Literal["IDLE", "ANALYZING", "RESULTS", "ERROR", "ABOUT"]
    error_message: Optional[str] = None
    current_id: Optional[str] = None
    has_image: bool = False
    history: tuple[HistoryEntry, ...] = Field(default_factory=tuple)


class PlaybackStatus(CamelModel):
    state: Literal["IDLE", "LOADING", "PLAYING"]
    key: Optional[str] = None


_STRING = {"type": "STRING"}
_STRING_LIST = {"type": "ARRAY", "items": _STRING}


def _enum(*values: str, description: str | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "STRING", "enum": list(values)}
    if description:
        schema["description"] = description
    return schema


ANALYSIS_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {
            "type": "STRING",
            "description": "A short, professional title for the analysis report.",
        },
        "executiveSummary": {
            "type": "STRING",
            "description": "A high-level synthesis of the policy impact.",
        },
        "diagnosis": {
            "type": "OBJECT",
            "properties": {
                "rootCause": {
                    "type": "STRING",
                    "description": "The underlying systemic issue, distinguished from symptoms.",
                },
                "symptoms": _STRING_LIST,
                "historicalPrecedents": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": {
                            "caseName": {
                                "type": "STRING",
                                "description": "City/Country and Year",
                            },
                            "outcome": _enum("Success", "Failure", "Mixed"),
                            "relevance": {
                                "type": "STRING",
                                "description": "Why this precedent applies to the current simulation.",
                            },
                        },
                        "required": ["caseName", "outcome", "relevance"],
                    },
                },
            },
            "required": ["rootCause", "symptoms", "historicalPrecedents"],
        },
        "blueprint": {
            "type": "OBJECT",
            "properties": {
                "government": {
                    "type": "OBJECT",
                    "properties": {
                        "policyChanges": _STRING_LIST,
                        "infrastructure": _STRING_LIST,
                        "enforcement": _STRING,
                    },
                },
                "society": {
                    "type": "OBJECT",
                    "properties": {
                        "ngoRole": _STRING,
                        "mobilizationEvents": _STRING_LIST,
                    },
                },
                "individual": {
                    "type": "OBJECT",
                    "properties": {
                        "dailyActions": _STRING_LIST,
                        "incentives": _STRING,
                    },
                },
            },
            "required": ["government", "society", "individual"],
        },
        "shadowTimeline": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "yearOffset": {
                        "type": "INTEGER",
                        "description": "Years into the future (e.g., 2, 5, 10, 20)",
                    },
                    "scenarioDescription": {
                        "type": "STRING",
                        "description": "Probabilistic future state.",
                    },
                    "impactType": _enum("Economic", "Social", "Environmental", "Trust"),
                    "riskLevel": _enum("Critical", "High", "Moderate", "Low"),
                },
                "required": [
                    "yearOffset",
                    "scenarioDescription",
                    "impactType",
                    "riskLevel",
                ],
            },
        },
        "viability": {
            "type": "OBJECT",
            "properties": {
                "costBand": _enum("Low", "Medium", "High", "Mega-Project"),
                "costReasoning": _STRING,
                "successProbability": {"type": "INTEGER", "description": "0-100"},
                "successFactors": _STRING_LIST,
            },
            "required": ["costBand", "costReasoning", "successProbability"],
        },
        "stakeholders": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "group": {
                        "type": "STRING",
                        "description": (
                            "Name of the group, institution, or specific political "
                            "leader (e.g. 'Mayor', 'Governor', 'Local Unions')."
                        ),
                    },
                    "sentiment": _enum("Positive", "Neutral", "Negative", "Mixed"),
                    "concern": {
                        "type": "STRING",
                        "description": "The primary motivation or fear of this group (first person perspective).",
                    },
                    "requiredActions": {
                        "type": "ARRAY",
                        "items": _STRING,
                        "description": (
                            "Specific actionable steps this stakeholder must fulfil "
                            "for the solution to work."
                        ),
                    },
                    "influence": {"type": "INTEGER", "description": "Power level 0-100"},
                },
                "required": ["group", "sentiment", "concern", "influence"],
            },
        },
        "researchPapers": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": _STRING,
                    "institution": {
                        "type": "STRING",
                        "description": "University, research center, or place of study.",
                    },
                    "year": {"type": "INTEGER"},
                    "relevance": _STRING,
                    "uri": _STRING,
                },
                "required": ["title", "institution", "year", "relevance", "uri"],
            },
        },
        "newsArticles": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": _STRING,
                    "source": {
                        "type": "STRING",
                        "description": "The news organization (e.g., NYT, BBC).",
                    },
                    "date": {"type": "STRING", "description": "e.g. 2024-10-12 14:30"},
                    "description": {
                        "type": "STRING",
                        "description": "Short summary of the reported problem or pain point.",
                    },
                    "uri": _STRING,
                },
                "required": ["title", "source", "date", "description", "uri"],
            },
        },
        "visualizationPrompt": {
            "type": "STRING",
            "description": (
                "A highly descriptive, photorealistic prompt for an image generation "
                "model to visualize the positive future state of this policy."
            ),
        },
        "evidenceAnalysis": {
            "type": "OBJECT",
            "description": (
                "Analysis of the attached evidence. If no attachment, leave fields "
                "empty/default."
            ),
            "properties": {
                "mediaType": _enum("image", "video", "pdf", "none"),
                "visualContext": {
                    "type": "STRING",
                    "description": "Visual forensic audit of the scene.",
                },
                "detectedRisks": {
                    "type": "ARRAY",
                    "items": _STRING,
                    "description": "Visible hazards or neglect signals.",
                },
                "behavioralPatterns": {
                    "type": "ARRAY",
                    "items": _STRING,
                    "description": "If video: movement patterns, traffic flow, etc.",
                },
            },
        },
    },
    "required": [
        "title",
        "executiveSummary",
        "diagnosis",
        "blueprint",
        "shadowTimeline",
        "viability",
        "stakeholders",
        "researchPapers",
        "newsArticles",
        "visualizationPrompt",
    ],
}


__all__ = [
    "ANALYSIS_RESPONSE_SCHEMA",
    "AnalysisPayload",
    "AnalysisRequest",
    "Blueprint",
    "Diagnosis",
    "Evidence",
    "EvidenceAnalysis",
    "GovernmentStrategy",
    "HistoricalPrecedent",
    "HistoryEntry",
    "IndividualStrategy",
    "NewsArticle",
    "PlaybackStatus",
    "PolicyAnalysis",
    "ResearchPaper",
    "SessionSnapshot",
    "SocietyStrategy",
    "Source",
    "Stakeholder",
    "TimelineEvent",
    "Viability",
]
