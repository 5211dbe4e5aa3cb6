"""The three fixed subscription plans.

Plans can be edited (name, description, price, features) but never created or
removed; the ids below are the only valid plan ids.
"""

from typing import Any, Dict, List, Optional

PLAN_DURATION_DAYS = 30

PLAN_ORDER = ["plan-free", "plan-medium", "plan-plus"]

DEFAULT_PLANS: List[Dict[str, Any]] = [
    {
        "id": "plan-free",
        "name": "Plan Free",
        "description": "Perfecto para comenzar con funcionalidades básicas",
        "price": 0,
        "duration_days": PLAN_DURATION_DAYS,
        "is_active": True,
        "is_popular": False,
        "features": [
            "Administrar perfil profesional",
            "Configurar horarios de atención",
            "Gestión básica de suscripción",
            "Sistema de referidos",
        ],
    },
    {
        "id": "plan-medium",
        "name": "Plan Medium",
        "description": "Ideal para médicos con práctica establecida",
        "price": 15000,
        "duration_days": PLAN_DURATION_DAYS,
        "is_active": True,
        "is_popular": True,
        "features": [
            "Todo lo del Plan Free",
            "Registrar nuevos pacientes",
            "Gestión completa de pacientes",
            "Administrar citas y agenda",
            "Sistema de reseñas y testimonios",
            "Estadísticas básicas",
        ],
    },
    {
        "id": "plan-plus",
        "name": "Plan Plus",
        "description": "La solución completa para profesionales",
        "price": 25000,
        "duration_days": PLAN_DURATION_DAYS,
        "is_active": True,
        "is_popular": False,
        "features": [
            "Todo lo del Plan Medium",
            "Video consultas ilimitadas",
            "Salas virtuales personalizadas",
            "Estadísticas avanzadas",
            "Soporte prioritario",
        ],
    },
]

EDITABLE_FIELDS = ("name", "description", "price", "features")


def get_plan_config(plan_id: str) -> Optional[Dict[str, Any]]:
    for plan in DEFAULT_PLANS:
        if plan["id"] == plan_id:
            return plan
    return None


def is_fixed_plan(plan_id: str) -> bool:
    return get_plan_config(plan_id) is not None


def plan_sort_key(plan_id: str) -> int:
    try:
        return PLAN_ORDER.index(plan_id)
    except ValueError:
        return len(PLAN_ORDER)


def build_plan_update(plan_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
    """Filter an edit request down to what a fixed plan may change.

    Raises ValueError for ids outside the fixed catalog. ``is_active`` is
    always forced on and only plan-medium is flagged popular.
    """
    if not is_fixed_plan(plan_id):
        raise ValueError("Only the predefined fixed plans can be updated")

    allowed: Dict[str, Any] = {}
    for key in EDITABLE_FIELDS:
        value = updates.get(key)
        if value is None:
            continue
        if key == "price":
            value = float(value)
        if key == "features" and not isinstance(value, list):
            continue
        allowed[key] = value

    allowed["is_active"] = True
    allowed["is_popular"] = plan_id == "plan-medium"
    return allowed
