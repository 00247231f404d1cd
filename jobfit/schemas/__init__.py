from .analysis import (
    AnalysisResult,
    AtsBreakdown,
    AutofillRequest,
    ExtractedDocument,
    JobDetails,
    JobInput,
    MatchBreakdown,
    MatchEvidence,
    ReferralStrategy,
    SalaryInsights,
    StarComponents,
    TailoredBulletPoint,
    schema_descriptor,
)

__all__ = [
    "AnalysisResult",
    "AtsBreakdown",
    "AutofillRequest",
    "ExtractedDocument",
    "JobDetails",
    "JobInput",
    "MatchBreakdown",
    "MatchEvidence",
    "ReferralStrategy",
    "SalaryInsights",
    "StarComponents",
    "TailoredBulletPoint",
    "schema_descriptor",
]
