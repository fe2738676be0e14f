# -*- coding: utf-8 -*-
"""
Tests del catálogo de planes de compra de créditos.
"""

import pytest

from app.modules.billing.catalog import DEFAULT_PLANS
from app.modules.billing.errors import PlanNotFound


async def test_seed_default_plans_only_once(session, services):
    assert await services.catalog.seed_default_plans(session, "INR") == len(DEFAULT_PLANS)
    assert await services.catalog.seed_default_plans(session, "INR") == 0


async def test_active_plans_are_sorted_by_price(session, services):
    await services.catalog.seed_default_plans(session, "INR")
    plans = await services.catalog.list_active_plans(session)
    prices = [p.price_cents for p in plans]
    assert prices == sorted(prices)


async def test_total_credits_include_bonus(session, services):
    plan = await services.catalog.create_plan(
        session, name="Bonus", base_credits=1000, bonus_credits=100, price_cents=90000, currency="INR"
    )
    assert plan.total_credits == 1100


async def test_deactivated_plan_cannot_be_resolved(session, services):
    plan = await services.catalog.create_plan(session, name="Old", base_credits=100, price_cents=10000)
    await services.catalog.deactivate_plan(session, plan.id, actor="admin")

    with pytest.raises(PlanNotFound):
        await services.catalog.resolve_plan(session, plan.id)
    assert plan in await services.catalog.list_plans(session)
    assert plan not in await services.catalog.list_active_plans(session)


async def test_unknown_fields_are_rejected(session, services):
    with pytest.raises(ValueError):
        await services.catalog.create_plan(session, name="X", base_credits=1, price_cents=1, colour="red")
