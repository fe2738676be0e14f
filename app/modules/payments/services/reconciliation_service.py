# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/reconciliation_service.py

Conciliación de pagos de la pasarela contra el ledger de créditos.

Es la única vía que acredita el ledger por movimiento de dinero externo.

verify(order, gateway_transaction_id, prueba):
- WebhookProof: firma HMAC obligatoria; `captured` acredita, `failed`
  marca la orden como fallida sin tocar el ledger.
- ManualProof: queda `pending` hasta que un admin aprueba o rechaza.
- Idempotente por gateway_transaction_id (UNIQUE en
  payment_verifications y reference_id del movimiento `purchase`).
- Orden vencida: se persiste como `expired`, la verificación queda
  `rejected` y se lanza OrderExpired. Nunca se acredita tarde.

Autor: MessCredit
Fecha: 2026-03-07
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.logging_config import get_audit_logger
from app.shared.config.settings_billing import BillingConfig
from app.shared.utils.datetime_helpers import utcnow
from app.modules.billing.catalog import CreditPurchaseCatalog
from app.modules.billing.credits import (
    AccountService,
    CreditAccountStatus,
    CreditLedger,
    CreditTxReason,
)
from app.modules.billing.metrics import GATEWAY_WEBHOOKS
from app.modules.payments.enums import (
    GatewayPaymentStatus,
    PaymentOrderStatus,
    VerificationMethod,
    VerificationStatus,
)
from app.modules.payments.errors import (
    GatewaySignatureMismatch,
    OrderExpired,
    OrderNotFound,
    OrderNotVerifiable,
    VerificationNotFound,
)
from app.modules.payments.models import PaymentOrder, PaymentVerification
from app.modules.payments.repositories import (
    PaymentOrderRepository,
    PaymentVerificationRepository,
)
from .gateway_client import LocalPaymentGateway, PaymentGateway
from .webhooks.signature_verification import verify_gateway_signature

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()

EXPIRED_REASON = "order_expired"


@dataclass(frozen=True)
class WebhookProof:
    """Evento firmado enviado por la pasarela."""
    signature: str
    gateway_status: GatewayPaymentStatus
    failure_reason: Optional[str] = None


@dataclass(frozen=True)
class ManualProof:
    """Comprobante subido por el dueño del comedor (llave opaca del blob store)."""
    proof_reference: str
    submitted_by: Optional[str] = None


PaymentProof = Union[WebhookProof, ManualProof]


class ReconciliationService:
    """Órdenes de pago y su verificación idempotente."""

    def __init__(
        self,
        config: BillingConfig,
        ledger: CreditLedger,
        accounts: AccountService,
        catalog: CreditPurchaseCatalog,
        gateway: Optional[PaymentGateway] = None,
        order_repo: Optional[PaymentOrderRepository] = None,
        verification_repo: Optional[PaymentVerificationRepository] = None,
    ):
        self.config = config
        self.ledger = ledger
        self.accounts = accounts
        self.catalog = catalog
        self.gateway = gateway or LocalPaymentGateway()
        self.order_repo = order_repo or PaymentOrderRepository()
        self.verification_repo = verification_repo or PaymentVerificationRepository()

    # ------------------------------------------------------------------
    # Órdenes
    # ------------------------------------------------------------------
    async def create_order(
        self,
        session: AsyncSession,
        mess_id: str,
        *,
        plan_id: Optional[int] = None,
        requested_credits: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> PaymentOrder:
        """
        Abre una orden por un plan del catálogo o por créditos sueltos.

        Raises:
            ValueError: ni plan ni créditos (o ambos), o créditos <= 0
            PlanNotFound: plan inexistente o inactivo
            GatewayError: la pasarela rechazó la orden
        """
        if (plan_id is None) == (requested_credits is None):
            raise ValueError("exactly one of plan_id or requested_credits is required")

        if plan_id is not None:
            plan = await self.catalog.resolve_plan(session, plan_id)
            credits = plan.total_credits
            amount_cents = plan.price_cents
            currency = plan.currency
        else:
            if requested_credits <= 0:
                raise ValueError("requested_credits must be > 0")
            credits = requested_credits
            amount_cents = requested_credits * self.config.price_per_credit_cents
            currency = self.config.currency

        await self.accounts.get_or_open_account(session, mess_id)

        receipt = f"{mess_id}:{uuid.uuid4().hex[:12]}"
        gateway_order = await self.gateway.create_order(
            amount_cents=amount_cents,
            currency=currency,
            receipt=receipt,
        )

        now = now or utcnow()
        order = await self.order_repo.create(
            session,
            mess_id=mess_id,
            plan_id=plan_id,
            credits=credits,
            amount_cents=amount_cents,
            currency=currency,
            gateway_order_ref=gateway_order.reference,
            status=PaymentOrderStatus.CREATED,
            expires_at=now + timedelta(minutes=self.config.payment_order_ttl_minutes),
        )
        logger.info(
            "Payment order created: id=%s mess=%s ref=%s credits=%d amount=%d %s",
            order.id, mess_id, order.gateway_order_ref, credits, amount_cents, currency,
        )
        return order

    async def get_order(
        self,
        session: AsyncSession,
        order_id: int,
        *,
        mess_id: Optional[str] = None,
        for_update: bool = False,
    ) -> PaymentOrder:
        order = await self.order_repo.get(session, order_id, for_update=for_update)
        if order is None or (mess_id is not None and order.mess_id != mess_id):
            raise OrderNotFound(f"Payment order {order_id} not found", order_id=order_id)
        return order

    async def get_order_by_ref(self, session: AsyncSession, gateway_order_ref: str) -> PaymentOrder:
        order = await self.order_repo.get_by_gateway_ref(session, gateway_order_ref, for_update=True)
        if order is None:
            raise OrderNotFound(
                f"Payment order {gateway_order_ref} not found",
                gateway_order_ref=gateway_order_ref,
            )
        return order

    async def list_orders(self, session: AsyncSession, mess_id: str, *, limit: int = 50) -> Sequence[PaymentOrder]:
        return await self.order_repo.list_by_mess(session, mess_id, limit=limit)

    # ------------------------------------------------------------------
    # Verificación
    # ------------------------------------------------------------------
    async def verify(
        self,
        session: AsyncSession,
        order_id: int,
        gateway_transaction_id: str,
        proof: PaymentProof,
        *,
        now: Optional[datetime] = None,
    ) -> PaymentVerification:
        """
        Verifica una orden con la prueba recibida.

        Raises:
            GatewaySignatureMismatch: firma del webhook inválida (sin efectos)
            OrderNotFound: la orden no existe
            OrderExpired: la orden venció (queda persistida como expired)
            OrderNotVerifiable: la orden ya está fallida/verificada con otra
                transacción o la transacción pertenece a otra orden
        """
        if not gateway_transaction_id:
            raise ValueError("gateway_transaction_id is required")
        now = now or utcnow()
        order = await self.get_order(session, order_id, for_update=True)
        is_webhook = isinstance(proof, WebhookProof)

        if is_webhook and not verify_gateway_signature(
            self.config.gateway_webhook_secret,
            order_ref=order.gateway_order_ref,
            gateway_transaction_id=gateway_transaction_id,
            status=proof.gateway_status.value,
            signature=proof.signature,
        ):
            GATEWAY_WEBHOOKS.labels("bad_signature").inc()
            audit_logger.warning(
                "gateway_signature_mismatch order=%s ref=%s gtx=%s",
                order.id, order.gateway_order_ref, gateway_transaction_id,
            )
            raise GatewaySignatureMismatch(
                "Gateway webhook signature mismatch",
                order_id=order.id,
            )

        existing = await self.verification_repo.get_by_gateway_transaction_id(session, gateway_transaction_id)
        if existing is not None:
            if existing.order_id != order.id:
                raise OrderNotVerifiable(
                    f"Gateway transaction {gateway_transaction_id} belongs to another order",
                    order_id=order.id,
                    gateway_transaction_id=gateway_transaction_id,
                )
            if is_webhook:
                GATEWAY_WEBHOOKS.labels("duplicate").inc()
            logger.info(
                "Duplicate verification: order=%s gtx=%s status=%s",
                order.id, gateway_transaction_id, existing.status.value,
            )
            return existing

        if order.is_expired_at(now) and not await self._held_by_manual_proof(session, order):
            await self._reject_late(session, order, gateway_transaction_id, proof, now=now)
            if is_webhook:
                GATEWAY_WEBHOOKS.labels("rejected").inc()
            raise OrderExpired(
                f"Payment order {order.id} expired before verification",
                order_id=order.id,
                gateway_transaction_id=gateway_transaction_id,
            )

        if order.status != PaymentOrderStatus.CREATED:
            raise OrderNotVerifiable(
                f"Payment order {order.id} is {order.status.value}",
                order_id=order.id,
                status=order.status.value,
            )

        if isinstance(proof, ManualProof):
            verification = await self._insert_verification(
                session,
                order,
                gateway_transaction_id,
                method=VerificationMethod.MANUAL_PROOF,
                status=VerificationStatus.PENDING,
                proof_reference=proof.proof_reference,
                submitted_by=proof.submitted_by,
            )
            logger.info(
                "Manual payment proof submitted: order=%s gtx=%s verification=%s",
                order.id, gateway_transaction_id, verification.id,
            )
            return verification

        if proof.gateway_status == GatewayPaymentStatus.FAILED:
            reason = proof.failure_reason or "payment_failed"
            verification = await self._insert_verification(
                session,
                order,
                gateway_transaction_id,
                method=VerificationMethod.WEBHOOK,
                status=VerificationStatus.FAILED,
                failure_reason=reason,
            )
            if verification.status == VerificationStatus.FAILED:
                order.status = PaymentOrderStatus.FAILED
                order.failure_reason = reason
                await session.flush()
            GATEWAY_WEBHOOKS.labels("failed").inc()
            logger.info("Payment failed: order=%s gtx=%s reason=%s", order.id, gateway_transaction_id, reason)
            return verification

        verification = await self._insert_verification(
            session,
            order,
            gateway_transaction_id,
            method=VerificationMethod.WEBHOOK,
            status=VerificationStatus.PENDING,
        )
        if verification.status == VerificationStatus.PENDING:
            await self._credit(session, order, verification, now=now)
        GATEWAY_WEBHOOKS.labels("verified").inc()
        return verification

    async def _held_by_manual_proof(self, session: AsyncSession, order: PaymentOrder) -> bool:
        # Un comprobante enviado antes del vencimiento mantiene viva la orden
        if order.status != PaymentOrderStatus.CREATED:
            return False
        return await self.verification_repo.has_pending_manual(session, order.id)

    async def _insert_verification(
        self,
        session: AsyncSession,
        order: PaymentOrder,
        gateway_transaction_id: str,
        **fields,
    ) -> PaymentVerification:
        """INSERT bajo SAVEPOINT; una carrera con la misma transacción devuelve la existente."""
        try:
            async with session.begin_nested():
                return await self.verification_repo.create(
                    session,
                    order_id=order.id,
                    mess_id=order.mess_id,
                    gateway_transaction_id=gateway_transaction_id,
                    **fields,
                )
        except IntegrityError:
            existing = await self.verification_repo.get_by_gateway_transaction_id(
                session, gateway_transaction_id
            )
            if existing is None:
                raise
            logger.info("Concurrent verification resolved to existing: gtx=%s", gateway_transaction_id)
            return existing

    async def _credit(
        self,
        session: AsyncSession,
        order: PaymentOrder,
        verification: PaymentVerification,
        *,
        now: datetime,
    ) -> None:
        result = await self.ledger.post(
            session,
            order.mess_id,
            order.credits,
            CreditTxReason.PURCHASE,
            verification.gateway_transaction_id,
            description=f"Credit purchase - order {order.gateway_order_ref}",
            tx_metadata={
                "order_id": order.id,
                "plan_id": order.plan_id,
                "amount_cents": order.amount_cents,
                "currency": order.currency,
                "method": verification.method.value,
            },
        )
        verification.status = VerificationStatus.VERIFIED
        verification.verified_at = now
        verification.credit_transaction_id = result.transaction.id
        order.status = PaymentOrderStatus.VERIFIED
        order.verified_at = now
        await session.flush()

        account = await self.accounts.get_account(session, order.mess_id)
        if account.status == CreditAccountStatus.SUSPENDED:
            await self.accounts.set_status(session, account, CreditAccountStatus.ACTIVE)

        logger.info(
            "Payment verified: order=%s mess=%s gtx=%s credits=%d balance=%d",
            order.id, order.mess_id, verification.gateway_transaction_id, order.credits, result.balance,
        )

    async def _reject_late(
        self,
        session: AsyncSession,
        order: PaymentOrder,
        gateway_transaction_id: str,
        proof: PaymentProof,
        *,
        now: datetime,
    ) -> None:
        if order.status == PaymentOrderStatus.CREATED:
            order.status = PaymentOrderStatus.EXPIRED
            order.failure_reason = EXPIRED_REASON
            await session.flush()

        await self._insert_verification(
            session,
            order,
            gateway_transaction_id,
            method=(
                VerificationMethod.WEBHOOK if isinstance(proof, WebhookProof) else VerificationMethod.MANUAL_PROOF
            ),
            status=VerificationStatus.REJECTED,
            failure_reason=EXPIRED_REASON,
            proof_reference=getattr(proof, "proof_reference", None),
            submitted_by=getattr(proof, "submitted_by", None),
        )
        audit_logger.warning(
            "late_payment_rejected order=%s ref=%s gtx=%s expires_at=%s now=%s",
            order.id, order.gateway_order_ref, gateway_transaction_id,
            order.expires_at.isoformat(), now.isoformat(),
        )

    # ------------------------------------------------------------------
    # Revisión manual (admin)
    # ------------------------------------------------------------------
    async def _get_verification(self, session: AsyncSession, verification_id: int) -> PaymentVerification:
        verification = await self.verification_repo.get(session, verification_id, for_update=True)
        if verification is None:
            raise VerificationNotFound(
                f"Payment verification {verification_id} not found",
                verification_id=verification_id,
            )
        return verification

    async def list_pending_manual(self, session: AsyncSession) -> Sequence[PaymentVerification]:
        return await self.verification_repo.list_pending_manual(session)

    async def approve_manual(
        self,
        session: AsyncSession,
        verification_id: int,
        *,
        reviewer: str,
        now: Optional[datetime] = None,
    ) -> PaymentVerification:
        """
        Aprueba un comprobante manual y acredita la orden.
        Un comprobante enviado antes del vencimiento se puede aprobar después.
        """
        verification = await self._get_verification(session, verification_id)
        if verification.status == VerificationStatus.VERIFIED:
            return verification
        if verification.method != VerificationMethod.MANUAL_PROOF or verification.status != VerificationStatus.PENDING:
            raise OrderNotVerifiable(
                f"Verification {verification.id} is not a pending manual proof",
                verification_id=verification.id,
                status=verification.status.value,
            )

        order = await self.get_order(session, verification.order_id, for_update=True)
        if order.status != PaymentOrderStatus.CREATED:
            raise OrderNotVerifiable(
                f"Payment order {order.id} is {order.status.value}",
                order_id=order.id,
                status=order.status.value,
            )

        now = now or utcnow()
        verification.reviewed_by = reviewer
        verification.reviewed_at = now
        await self._credit(session, order, verification, now=now)
        audit_logger.info(
            "manual_proof_approved verification=%s order=%s mess=%s credits=%d reviewer=%s",
            verification.id, order.id, order.mess_id, order.credits, reviewer,
        )
        return verification

    async def reject_manual(
        self,
        session: AsyncSession,
        verification_id: int,
        *,
        reviewer: str,
        reason: str,
        now: Optional[datetime] = None,
    ) -> PaymentVerification:
        verification = await self._get_verification(session, verification_id)
        if verification.status == VerificationStatus.REJECTED:
            return verification
        if verification.method != VerificationMethod.MANUAL_PROOF or verification.status != VerificationStatus.PENDING:
            raise OrderNotVerifiable(
                f"Verification {verification.id} is not a pending manual proof",
                verification_id=verification.id,
                status=verification.status.value,
            )

        now = now or utcnow()
        verification.status = VerificationStatus.REJECTED
        verification.reviewed_by = reviewer
        verification.reviewed_at = now
        verification.failure_reason = reason

        order = await self.get_order(session, verification.order_id, for_update=True)
        if order.status == PaymentOrderStatus.CREATED:
            order.status = PaymentOrderStatus.FAILED
            order.failure_reason = reason
        await session.flush()

        audit_logger.info(
            "manual_proof_rejected verification=%s order=%s reviewer=%s reason=%s",
            verification.id, order.id, reviewer, reason,
        )
        return verification

    # ------------------------------------------------------------------
    # Expiración (job)
    # ------------------------------------------------------------------
    async def expire_orders(self, session: AsyncSession, *, now: Optional[datetime] = None) -> int:
        """
        Marca como `expired` las órdenes vencidas sin verificar.
        Las órdenes con comprobante manual pendiente no expiran.
        """
        now = now or utcnow()
        orders = await self.order_repo.list_expirable(session, now)
        for order in orders:
            order.status = PaymentOrderStatus.EXPIRED
            order.failure_reason = EXPIRED_REASON
        await session.flush()
        if orders:
            logger.info("Payment orders expired: %d", len(orders))
        return len(orders)


__all__ = [
    "ReconciliationService",
    "WebhookProof",
    "ManualProof",
    "PaymentProof",
]
