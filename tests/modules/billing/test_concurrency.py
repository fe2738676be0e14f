# -*- coding: utf-8 -*-
"""
Tests de concurrencia: dos sesiones independientes (misma base) operando
sobre el mismo comedor.

- asyncio.gather: escritores simultáneos; el saldo final, la prueba
  gratuita y la factura quedan únicos y consistentes.
- Carreras forzadas: el otro escritor confirma justo dentro de la ventana
  entre la lectura y la escritura, para recorrer el reintento del
  compare-and-swap y la recuperación por IntegrityError.
"""

import asyncio
from datetime import date

import pytest
from sqlalchemy import func, select

from app.modules.billing.credits import CreditTransaction, CreditTxReason
from app.modules.billing.cycles import Bill, MessMembership, cycle_window_for
from app.modules.billing.errors import AlreadyUsed
from app.modules.billing.pricing import SlabBand
from app.modules.billing.trial import FreeTrialRecord

MESS = "mess-race"
MARCH = cycle_window_for(date(2026, 3, 18), "month")


async def _post_and_commit(session_factory, services, delta, reason, ref):
    async with session_factory() as session:
        result = await services.ledger.post(session, MESS, delta, reason, ref)
        await session.commit()
        return result


async def _count(session, model, *criteria):
    result = await session.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def _seed_billable_mess(session_factory, services, *, funds=500, users=5):
    async with session_factory() as session:
        await services.slabs.replace_slabs(
            session, [SlabBand(min_users=1, max_users=None, cycle_cost=100)], actor="test"
        )
        for i in range(users):
            session.add(MessMembership(mess_id=MESS, user_id=f"u-{i}", status="active"))
        await services.ledger.post(session, MESS, funds, CreditTxReason.PURCHASE, "gtx-seed")
        await session.commit()


# -----------------------------------------------------------------------------
# Escritores simultáneos
# -----------------------------------------------------------------------------
async def test_concurrent_credit_and_debit_keep_balance(session_factory, services):
    await _post_and_commit(session_factory, services, 100, CreditTxReason.PURCHASE, "gtx-1")

    credit, debit = await asyncio.gather(
        _post_and_commit(session_factory, services, 50, CreditTxReason.PURCHASE, "gtx-2"),
        _post_and_commit(session_factory, services, -80, CreditTxReason.ADJUSTMENT, "adm-1"),
    )

    assert credit.created and debit.created
    async with session_factory() as session:
        audit = await services.ledger.audit(session, MESS)
        assert audit.consistent
        assert audit.cached == 70
        assert await services.ledger.balance_of(session, MESS) == 70


async def test_many_concurrent_posts_sum_exactly(session_factory, services):
    await asyncio.gather(
        *(
            _post_and_commit(session_factory, services, 10, CreditTxReason.PURCHASE, f"gtx-{i}")
            for i in range(8)
        )
    )

    async with session_factory() as session:
        audit = await services.ledger.audit(session, MESS)
        assert audit.consistent
        assert audit.cached == 80


async def test_concurrent_duplicate_posts_apply_once(session_factory, services):
    first, second = await asyncio.gather(
        _post_and_commit(session_factory, services, 100, CreditTxReason.PURCHASE, "gtx-dup"),
        _post_and_commit(session_factory, services, 100, CreditTxReason.PURCHASE, "gtx-dup"),
    )

    assert sorted([first.created, second.created]) == [False, True]
    assert first.transaction.id == second.transaction.id
    async with session_factory() as session:
        assert await services.ledger.balance_of(session, MESS) == 100


async def test_concurrent_trial_activation_grants_once(session_factory, services):
    async def activate():
        async with session_factory() as session:
            record = await services.trials.activate(session, MESS)
            await session.commit()
            return record

    results = await asyncio.gather(activate(), activate(), return_exceptions=True)

    granted = [r for r in results if isinstance(r, FreeTrialRecord)]
    refused = [r for r in results if isinstance(r, AlreadyUsed)]
    assert len(granted) == 1
    assert len(refused) == 1

    async with session_factory() as session:
        assert await _count(session, FreeTrialRecord, FreeTrialRecord.mess_id == MESS) == 1
        assert await _count(
            session, CreditTransaction, CreditTransaction.reason == CreditTxReason.TRIAL_GRANT
        ) == 1
        audit = await services.ledger.audit(session, MESS)
        assert audit.consistent
        assert audit.cached == services.config.trial_credits


async def test_concurrent_generate_yields_single_bill(session_factory, services):
    await _seed_billable_mess(session_factory, services)

    async def generate():
        async with session_factory() as session:
            bill = await services.cycles.generate(session, MESS, MARCH)
            await session.commit()
            return bill

    first, second = await asyncio.gather(generate(), generate())

    assert first.id == second.id
    async with session_factory() as session:
        assert await _count(session, Bill, Bill.mess_id == MESS) == 1
        assert await _count(
            session, CreditTransaction, CreditTransaction.reason == CreditTxReason.BILL_DEBIT
        ) == 1
        audit = await services.ledger.audit(session, MESS)
        assert audit.consistent
        assert audit.cached == 400


# -----------------------------------------------------------------------------
# Carreras forzadas
# -----------------------------------------------------------------------------
async def test_stale_balance_retries_compare_and_swap(session_factory, services, monkeypatch):
    await _post_and_commit(session_factory, services, 100, CreditTxReason.PURCHASE, "gtx-1")

    repo = services.ledger.account_repo
    real_swap = repo.compare_and_swap_balance
    swaps = []

    async def recording_swap(*args, **kwargs):
        swapped = await real_swap(*args, **kwargs)
        swaps.append(swapped)
        return swapped

    monkeypatch.setattr(repo, "compare_and_swap_balance", recording_swap)

    async with session_factory() as slow:
        # La sesión lenta conserva la cuenta leída antes del otro escritor
        await services.accounts.get_or_open_account(slow, MESS)
        await slow.commit()

        await _post_and_commit(session_factory, services, 50, CreditTxReason.PURCHASE, "gtx-2")
        swaps.clear()

        result = await services.ledger.post(slow, MESS, -30, CreditTxReason.ADJUSTMENT, "adm-1")
        await slow.commit()

    assert swaps == [False, True]
    assert result.balance == 120
    async with session_factory() as session:
        audit = await services.ledger.audit(session, MESS)
        assert audit.consistent
        assert audit.cached == 120


async def test_duplicate_post_race_returns_committed_transaction(session_factory, services, monkeypatch):
    repo = services.ledger.tx_repo
    real_lookup = repo.get_by_reference
    lookups = []

    async def lookup_before_other_commit(*args, **kwargs):
        lookups.append(args)
        if len(lookups) == 1:
            return None
        return await real_lookup(*args, **kwargs)

    winner = await _post_and_commit(session_factory, services, 100, CreditTxReason.PURCHASE, "gtx-dup")
    monkeypatch.setattr(repo, "get_by_reference", lookup_before_other_commit)

    async with session_factory() as session:
        result = await services.ledger.post(session, MESS, 100, CreditTxReason.PURCHASE, "gtx-dup")
        await session.commit()

    assert result.created is False
    assert result.transaction.id == winner.transaction.id
    assert result.balance == 100
    async with session_factory() as session:
        audit = await services.ledger.audit(session, MESS)
        assert audit.consistent
        assert audit.cached == 100


async def test_trial_activation_race_raises_already_used(session_factory, services, monkeypatch):
    async with session_factory() as session:
        await services.trials.activate(session, MESS)
        await session.commit()

    real_get_record = services.trials.get_record
    reads = []

    async def read_before_other_commit(*args, **kwargs):
        reads.append(args)
        if len(reads) == 1:
            return None
        return await real_get_record(*args, **kwargs)

    monkeypatch.setattr(services.trials, "get_record", read_before_other_commit)

    async with session_factory() as session:
        with pytest.raises(AlreadyUsed) as exc_info:
            await services.trials.activate(session, MESS)
        await session.commit()

    assert exc_info.value.record is not None
    async with session_factory() as session:
        assert await _count(session, FreeTrialRecord, FreeTrialRecord.mess_id == MESS) == 1
        assert await services.ledger.balance_of(session, MESS) == services.config.trial_credits


async def test_generate_race_returns_committed_bill(session_factory, services, monkeypatch):
    await _seed_billable_mess(session_factory, services)
    async with session_factory() as session:
        winner = await services.cycles.generate(session, MESS, MARCH)
        await session.commit()

    real_find = services.cycles.find_bill
    finds = []

    async def find_before_other_commit(*args, **kwargs):
        finds.append(args)
        if len(finds) == 1:
            return None
        return await real_find(*args, **kwargs)

    monkeypatch.setattr(services.cycles, "find_bill", find_before_other_commit)

    async with session_factory() as session:
        loser = await services.cycles.generate(session, MESS, MARCH)
        await session.commit()

    assert loser.id == winner.id
    async with session_factory() as session:
        assert await _count(session, Bill, Bill.mess_id == MESS) == 1
        assert await services.ledger.balance_of(session, MESS) == 400
