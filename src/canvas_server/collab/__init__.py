"""Collaborative customization: policy, request/result types and the engine.

Typical usage::

    from canvas_server.collab import CollaborationEngine, CollaborationRequest
"""

from canvas_server.collab.engine import (
    CollaborationEngine,
    collaboration_signature,
    compute_financials,
)
from canvas_server.collab.policy import (
    CollaborationPolicy,
    ConstantScoringPolicy,
    ScoringPolicy,
    load_collaboration_policy,
    load_configured_policy,
)
from canvas_server.collab.types import (
    CollaborationQuote,
    CollaborationRequest,
    CollaborationResult,
    CollaborationStage,
    FinancialBreakdown,
    ScoringContext,
)

__all__ = [
    "CollaborationEngine",
    "CollaborationPolicy",
    "CollaborationQuote",
    "CollaborationRequest",
    "CollaborationResult",
    "CollaborationStage",
    "ConstantScoringPolicy",
    "FinancialBreakdown",
    "ScoringContext",
    "ScoringPolicy",
    "collaboration_signature",
    "compute_financials",
    "load_collaboration_policy",
    "load_configured_policy",
]
