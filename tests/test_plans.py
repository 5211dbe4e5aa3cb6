"""Tests for the fixed plan catalog."""

import pytest
from sqlalchemy import select

from app.core.plans import DEFAULT_PLANS, build_plan_update, is_fixed_plan
from app.core.seed import seed_plans
from app.models.subscription_plan import SubscriptionPlan


def test_catalog_has_three_fixed_plans():
    assert [(p["id"], p["price"]) for p in DEFAULT_PLANS] == [
        ("plan-free", 0),
        ("plan-medium", 15000),
        ("plan-plus", 25000),
    ]
    assert all(p["duration_days"] == 30 for p in DEFAULT_PLANS)


def test_only_fixed_plans_are_editable():
    assert is_fixed_plan("plan-plus") is True
    with pytest.raises(ValueError):
        build_plan_update("plan-gold", {"price": 1})


def test_plan_update_filters_fields():
    changes = build_plan_update("plan-plus", {
        "price": "30000",
        "name": "Plan Plus+",
        "features": "not a list",
        "is_active": False,
        "id": "plan-hacked",
    })
    assert changes == {"price": 30000.0, "name": "Plan Plus+", "is_active": True, "is_popular": False}


def test_only_medium_is_popular():
    assert build_plan_update("plan-medium", {})["is_popular"] is True
    assert build_plan_update("plan-free", {})["is_popular"] is False


@pytest.mark.asyncio
async def test_seed_plans_is_idempotent(db):
    assert await seed_plans(db) == 3

    plan = (await db.execute(select(SubscriptionPlan).where(SubscriptionPlan.id == "plan-medium"))).scalar_one()
    plan.price = 18000
    await db.commit()

    assert await seed_plans(db) == 0
    await db.refresh(plan)
    assert plan.price == 18000


@pytest.mark.asyncio
async def test_public_plan_listing_is_ordered_by_price(client, plans):
    resp = await client.get("/api/v1/subscriptions/plans")
    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()] == ["plan-free", "plan-medium", "plan-plus"]
