from .types import (
    CoverageAuditCheck,
    CoverageAuditReport,
    ErrorType,
    Evaluation,
    EventEntry,
    EventType,
    ForensicArtifact,
    MatchStatus,
    Metric,
    Phase,
    PlayerEntry,
    Role,
    ScoringRules,
    SetDescriptor,
    SubstitutionRecord,
    TeamRoster,
    TeamSide,
    ValidationError,
    ValidationIssue,
    ValidationResult,
    Zone,
)

__all__ = [
    "CoverageAuditCheck",
    "CoverageAuditReport",
    "ErrorType",
    "Evaluation",
    "EventEntry",
    "EventType",
    "ForensicArtifact",
    "MatchStatus",
    "Metric",
    "Phase",
    "PlayerEntry",
    "Role",
    "ScoringRules",
    "SetDescriptor",
    "SubstitutionRecord",
    "TeamRoster",
    "TeamSide",
    "ValidationError",
    "ValidationIssue",
    "ValidationResult",
    "Zone",
]
