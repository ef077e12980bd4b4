from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from reportsync.core.enums import DiagnosticKind, Severity


class ContactInfo(BaseModel):
    phone: Optional[str] = None
    email: Optional[str] = None


class DraftLocation(BaseModel):
    # left untyped on purpose: the location check reports bad values
    latitude: Any = None
    longitude: Any = None


class ReportDraft(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[str] = None
    location: Optional[DraftLocation] = None
    photos: Optional[List[Any]] = None
    custom_fields: Dict[str, Any] = Field(default_factory=dict)
    anonymous: bool = False
    contact: Optional[ContactInfo] = None


class Diagnostic(BaseModel):
    kind: DiagnosticKind
    code: str
    message: str
    severity: Severity


class ValidationVerdict(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    score: int = Field(..., ge=0, le=100)
    diagnostics: List[Diagnostic] = Field(default_factory=list)


class SubmissionDecision(BaseModel):
    can_submit: bool
    rejection_reasons: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    score: int = 0
