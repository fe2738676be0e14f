# -*- coding: utf-8 -*-
"""
Tests de administración de slabs (siempre una partición de [1, ∞)).
"""

import pytest

from app.modules.billing.errors import SlabConfigurationError, SlabNotFound
from app.modules.billing.pricing import SlabBand


async def test_load_engine_uses_active_slabs(session, services, priced):
    engine = await services.slabs.load_engine(session)
    assert engine.resolve_cost(10) == 100
    assert engine.resolve_cost(11) == 200


async def test_replace_keeps_previous_slabs_as_inactive(session, services, priced):
    await services.slabs.replace_slabs(session, [SlabBand(1, None, 90)], actor="admin")

    active = await services.slabs.list_slabs(session)
    every = await services.slabs.list_slabs(session, include_inactive=True)

    assert [(s.min_users, s.max_users, s.cycle_cost) for s in active] == [(1, None, 90)]
    assert len(every) == 4


async def test_replace_rejects_invalid_partition(session, services, priced):
    with pytest.raises(SlabConfigurationError):
        await services.slabs.replace_slabs(session, [SlabBand(1, 5, 50), SlabBand(7, None, 90)])


async def test_update_slab_cost(session, services, priced):
    first = priced[0]
    slab = await services.slabs.update_slab(session, first.id, cycle_cost=120, actor="admin")
    assert slab.cycle_cost == 120
    engine = await services.slabs.load_engine(session)
    assert engine.resolve_cost(3) == 120


async def test_update_that_opens_a_gap_is_rejected(session, services, priced):
    with pytest.raises(SlabConfigurationError):
        await services.slabs.update_slab(session, priced[0].id, max_users=8)


async def test_deactivating_a_middle_slab_is_rejected(session, services, priced):
    with pytest.raises(SlabConfigurationError):
        await services.slabs.deactivate_slab(session, priced[1].id)


async def test_create_slab_on_empty_table(session, services):
    slab = await services.slabs.create_slab(session, min_users=1, max_users=None, cycle_cost=75)
    assert slab.is_active
    assert (await services.slabs.load_engine(session)).resolve_cost(40) == 75


async def test_unknown_slab_raises_not_found(session, services):
    with pytest.raises(SlabNotFound):
        await services.slabs.update_slab(session, 999, cycle_cost=10)
