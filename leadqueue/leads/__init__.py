"""Lead queue ingestion: grouping, dedup and persistence."""

from .grouping import IMAGE_GROUP_WINDOW, group_submissions
from .schemas import (
    ContextMessage,
    LeadRecord,
    SubmissionGroup,
    SubmissionImage,
    SyncResult,
    lead_key,
)
from .service import LeadSyncService
from .storage import EstimationStore, LeadStore, OrderSource, SqlEstimationStore, SqlLeadStore

__all__ = [
    "ContextMessage",
    "EstimationStore",
    "IMAGE_GROUP_WINDOW",
    "LeadRecord",
    "LeadStore",
    "LeadSyncService",
    "OrderSource",
    "SqlEstimationStore",
    "SqlLeadStore",
    "SubmissionGroup",
    "SubmissionImage",
    "SyncResult",
    "group_submissions",
    "lead_key",
]
