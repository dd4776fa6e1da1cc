"""Audit event type constants.

Events use ``domain.action`` in the past tense: they record facts about
committed operations.
"""


class AuditEvents:
    """All audit event types written by the engines."""

    ASSET_MINTED = "asset.minted"
    """Detail: asset_id, owner, base_template, fee"""

    ASSET_LOCKED = "asset.locked"
    """Detail: asset_id, owner"""

    TRAIT_DEFINED = "trait.defined"
    """Detail: name, base_rarity, customization_cost, creator"""

    TRAIT_APPLIED = "trait.applied"
    """Detail: asset_id, slot_index, trait_type, trait_value, cost, rarity_score"""

    COLLABORATION_COMPLETED = "collaboration.completed"
    """Detail: see CollaborationResult.to_event_payload()"""
