"""
Skill bundle registry.

One immutable SkillBundle per supported business type. Unknown or missing
business types resolve to the ecommerce bundle and are flagged as a fallback
so the report can record it.

Usage:
    from backend.skills import resolve_skill_bundle

    bundle, using_fallback = resolve_skill_bundle(client.businessType)
"""

import logging
from typing import Any, Dict, Tuple

from backend.models.enums import BusinessType
from backend.skills import ecommerce, lead_gen, local, saas
from backend.skills.types import SkillBundle

logger = logging.getLogger(__name__)


DEFAULT_BUSINESS_TYPE = BusinessType.ECOMMERCE

SKILL_BUNDLES: Dict[BusinessType, SkillBundle] = {
    BusinessType.ECOMMERCE: ecommerce.BUNDLE,
    BusinessType.LEAD_GEN: lead_gen.BUNDLE,
    BusinessType.SAAS: saas.BUNDLE,
    BusinessType.LOCAL: local.BUNDLE,
}


def resolve_business_type(value: Any) -> Tuple[BusinessType, bool]:
    """
    Map a stored business type onto a supported one.

    Accepts the enum itself or its string value ("lead_gen" is treated as
    "lead-gen"). Anything else resolves to ecommerce.

    Returns:
        (business_type, using_fallback)
    """
    if isinstance(value, BusinessType):
        return value, False
    if isinstance(value, str):
        normalized = value.strip().lower().replace("_", "-")
        try:
            return BusinessType(normalized), False
        except ValueError:
            pass
    logger.warning(f"Unknown business type {value!r}, falling back to {DEFAULT_BUSINESS_TYPE.value}")
    return DEFAULT_BUSINESS_TYPE, True


def get_skill_bundle(business_type: BusinessType) -> SkillBundle:
    """Return the bundle registered for a business type."""
    return SKILL_BUNDLES[business_type]


def resolve_skill_bundle(value: Any) -> Tuple[SkillBundle, bool]:
    """Resolve a stored business type straight to its bundle plus the fallback flag."""
    business_type, using_fallback = resolve_business_type(value)
    return get_skill_bundle(business_type), using_fallback


__all__ = [
    "DEFAULT_BUSINESS_TYPE",
    "SKILL_BUNDLES",
    "SkillBundle",
    "get_skill_bundle",
    "resolve_business_type",
    "resolve_skill_bundle",
]
