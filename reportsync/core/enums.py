from enum import Enum


class ReportStatus(str, Enum):
    new = "new"
    in_process = "in_process"
    resolved = "resolved"
    rejected = "rejected"


class ReportPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class IdentitySource(str, Enum):
    local = "local"
    remote = "remote"


class DataTier(str, Enum):
    remote = "remote"
    local = "local"
    defaults = "defaults"


class DiagnosticKind(str, Enum):
    error = "error"
    warning = "warning"
    suggestion = "suggestion"


class Severity(str, Enum):
    blocking = "blocking"
    notice = "notice"
    hint = "hint"
