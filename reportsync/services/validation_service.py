from __future__ import annotations

from typing import Iterable, List

from reportsync.core.config import Settings
from reportsync.core.enums import DiagnosticKind
from reportsync.schemas.validation import (
    Diagnostic,
    ReportDraft,
    SubmissionDecision,
    ValidationVerdict,
)
from reportsync.services import validators
from reportsync.services.validators import CheckResult, ValidationLimits

LOW_QUALITY_REASON = (
    "The report quality is too low. Review the suggestions and improve the content."
)
REVISE_NOTE = "Consider reviewing and improving the report before sending it"
POSITIVE_NOTE = "Excellent! Your report is of very good quality"


def _dedup(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(items))


class ValidationService:
    """
    Runs the independent report checks and folds them into one verdict.
    The score starts at 100, every check subtracts its penalty, and the
    result is clamped to [0, 100].
    """

    def __init__(self, directory, settings: Settings):
        self.directory = directory
        self.settings = settings
        self.limits = ValidationLimits(max_photos=settings.max_photos)

    async def _run_checks(self, draft: ReportDraft) -> List[CheckResult]:
        return [
            validators.check_basic_fields(draft, self.limits),
            await validators.check_category(draft, self.directory),
            validators.check_content(draft, self.limits),
            validators.check_location(draft, self.limits),
            validators.check_photos(draft, self.limits),
            validators.check_contact(draft, self.limits),
        ]

    async def validate(self, draft: ReportDraft) -> ValidationVerdict:
        results = await self._run_checks(draft)

        diagnostics: List[Diagnostic] = []
        seen = set()
        for d in (d for r in results for d in r.diagnostics):
            if (d.kind, d.message) not in seen:
                seen.add((d.kind, d.message))
                diagnostics.append(d)

        def messages(kind: DiagnosticKind) -> List[str]:
            return _dedup(d.message for d in diagnostics if d.kind == kind)

        errors = messages(DiagnosticKind.error)
        score = 100 - sum(r.penalty for r in results)

        return ValidationVerdict(
            is_valid=not errors,
            errors=errors,
            warnings=messages(DiagnosticKind.warning),
            suggestions=messages(DiagnosticKind.suggestion),
            score=max(0, min(100, score)),
            diagnostics=diagnostics,
        )

    async def decide_submission(self, draft: ReportDraft) -> SubmissionDecision:
        return self.decide(await self.validate(draft))

    def decide(self, verdict: ValidationVerdict) -> SubmissionDecision:
        """Accept/reject on top of a verdict: errors, or a score under the threshold."""
        reasons = list(verdict.errors)
        can_submit = verdict.is_valid
        if verdict.score < self.settings.min_submission_score:
            can_submit = False
            reasons.append(LOW_QUALITY_REASON)

        return SubmissionDecision(
            can_submit=can_submit,
            rejection_reasons=reasons,
            recommendations=verdict.warnings + verdict.suggestions,
            score=verdict.score,
        )

    async def generate_recommendations(self, draft: ReportDraft) -> List[str]:
        verdict = await self.validate(draft)
        out = list(verdict.suggestions)
        if verdict.score < 70:
            out.append(REVISE_NOTE)
        if verdict.score >= 80:
            out.append(POSITIVE_NOTE)
        return out
