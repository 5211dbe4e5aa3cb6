"""Structured HTTP errors for subscription gating."""

from typing import Optional
from fastapi import HTTPException

FEATURE_LOCKED = "FEATURE_LOCKED"


def feature_locked_exception(
    feature: str,
    required_plan: Optional[str],
    current_plan: str,
    message: Optional[str] = None,
) -> HTTPException:
    """403 carrying enough for the client to show an upgrade prompt."""
    return HTTPException(
        status_code=403,
        detail={
            "code": FEATURE_LOCKED,
            "feature": feature,
            "requiredPlan": required_plan,
            "currentPlan": current_plan,
            "message": message or f"The '{feature}' feature requires a higher plan.",
        },
    )
