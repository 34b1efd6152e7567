"""Privacy mode and MEV route selection for the routing circuit.

Both selections read only ``privacy_priority`` (0-1000) and ``risk_level``
(0-1000). Each is a chain of threshold checks ending in an unconditional
default, so every input pair maps to exactly one member.
"""

from cipherplan.models import MevRoute, PrivacyMode

_PRIORITY_HIGH = 667
_PRIORITY_MID = 334
_RISK_HIGH = 800
_RISK_MID = 400
_PRIVATE_ROUTE_RISK = 600

_PRIVACY_SLICES_PER_TIER = 2


def select_privacy_mode(privacy_priority: int, risk_level: int) -> PrivacyMode:
    if privacy_priority >= _PRIORITY_HIGH or risk_level > _RISK_HIGH:
        return PrivacyMode.MAX_GHOST
    if privacy_priority >= _PRIORITY_MID or risk_level > _RISK_MID:
        return PrivacyMode.STEALTH
    return PrivacyMode.NORMAL


def select_mev_route(privacy_priority: int, risk_level: int) -> MevRoute:
    """Private route only when maximum privacy meets elevated risk."""
    privacy_mode = select_privacy_mode(privacy_priority, risk_level)
    if privacy_mode is PrivacyMode.MAX_GHOST and risk_level > _PRIVATE_ROUTE_RISK:
        return MevRoute.PRIVATE
    if privacy_priority >= _PRIORITY_MID or risk_level > _RISK_MID:
        return MevRoute.BUNDLED
    return MevRoute.STANDARD


def privacy_extra_slices(privacy_priority: int) -> int:
    """More privacy means smaller, more numerous slices."""
    tiers = (privacy_priority >= _PRIORITY_MID) + (privacy_priority >= _PRIORITY_HIGH)
    return tiers * _PRIVACY_SLICES_PER_TIER
