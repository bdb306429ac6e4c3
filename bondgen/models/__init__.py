"""Domain models for the bond certificate generator.

Result types, schedule rows, assembled bonds, template tag maps and the
records written to the diagnostics log.
"""

from .bond import AssembledBond, AssemblyPreview, BondFile, NumberingConfig, SupplementaryInfo
from .error_record import ErrorRecord
from .processing_result import GenerationResult
from .result import ErrorCode, ServiceError, ServiceResult, failure, success
from .schedule import (
    CusipRow,
    CusipSchedule,
    CusipScheduleRow,
    DateFormat,
    MaturityRow,
    MaturitySchedule,
    MaturityScheduleRow,
    ParsedField,
    RowStatus,
    ScheduleDiagnostics,
    ScheduleSummary,
)
from .template import ALL_TAGS, OPTIONAL_TAGS, REQUIRED_TAGS, TagMap, TagPosition

__all__ = [
    # Results
    "ErrorCode",
    "ServiceError",
    "ServiceResult",
    "success",
    "failure",
    # Schedules
    "RowStatus",
    "DateFormat",
    "ParsedField",
    "MaturityScheduleRow",
    "CusipScheduleRow",
    "MaturityRow",
    "CusipRow",
    "ScheduleSummary",
    "ScheduleDiagnostics",
    "MaturitySchedule",
    "CusipSchedule",
    # Bonds
    "AssembledBond",
    "AssemblyPreview",
    "BondFile",
    "NumberingConfig",
    "SupplementaryInfo",
    # Templates
    "REQUIRED_TAGS",
    "OPTIONAL_TAGS",
    "ALL_TAGS",
    "TagMap",
    "TagPosition",
    # Run output
    "ErrorRecord",
    "GenerationResult",
]
