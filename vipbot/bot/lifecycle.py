"""
Ciclo de vida do pagamento VIP: criação do PIX, verificação e liberação do acesso.

Estados de um pagamento: inexistente -> pending -> paid (final).
"""
import asyncio
import logging
from dataclasses import dataclass

from ..api_gateway.pix_service import IntentHandle
from ..config.plans import UNKNOWN_PLAN_KEY, VIP_PLANS, Plan, get_plan
from ..database.database import STATUS_PAID, STATUS_PENDING, PaymentIntent
from ..errors import TransientUnconfirmed
from ..utils.cpf import generate_cpf

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InitiateResult:
    plan: Plan
    handle: IntentHandle

    @property
    def external_id(self) -> str:
        return self.handle.external_id

    @property
    def payment_code(self) -> str:
        return self.handle.payment_code


@dataclass(frozen=True)
class Grant:
    vip_link: str
    support_link: str


class PaymentLifecycle:
    def __init__(self, settings, gateway, store=None, catalog=VIP_PLANS, document_generator=generate_cpf):
        self.settings = settings
        self.gateway = gateway
        self.store = store
        self.catalog = catalog
        self.document_generator = document_generator

    async def initiate(self, user_id, plan_key: str) -> InitiateResult:
        """
        Gera o PIX do plano escolhido.

        Raises:
            NotFound: plano desconhecido (o gateway não é chamado)
            GatewayError: o gateway não gerou o PIX (nenhum registro é criado)
        """
        plan = get_plan(plan_key, self.catalog)

        handle = await self.gateway.create_intent(plan.valor, user_id, self.document_generator())

        intent = PaymentIntent(
            user_id=str(user_id),
            external_id=handle.external_id,
            plan_key=plan.key,
            amount=plan.valor,
            status=STATUS_PENDING,
        )
        await self._save(intent)

        return InitiateResult(plan=plan, handle=handle)

    async def check(self, user_id, external_id: str) -> Grant:
        """
        Verifica se o pagamento foi confirmado.

        Raises:
            TransientUnconfirmed: ainda não pago (ou gateway indisponível)
        """
        record = await self._find(external_id)

        # Já pago no banco: libera sem chamar a API
        if record and record.paid:
            logger.info(f"♻️ Pagamento {external_id} já confirmado no banco")
            return self.grant()

        result = await self.gateway.get_status(external_id)
        if not result.paid:
            logger.info(f"⏳ Pagamento {external_id} ainda não confirmado: {result.status}")
            raise TransientUnconfirmed(external_id, result.status)

        if record:
            await self._mark_paid(record)
        else:
            # Registro perdido na criação: salva direto como pago
            logger.warning(f"⚠️ Pagamento {external_id} confirmado sem registro local, recriando")
            await self._save(PaymentIntent(
                user_id=str(user_id),
                external_id=external_id,
                plan_key=UNKNOWN_PLAN_KEY,
                amount=0,
                status=STATUS_PAID,
            ))

        logger.info(f"💰 Pagamento confirmado: {external_id} (user {user_id})")
        return self.grant()

    def grant(self) -> Grant:
        return Grant(vip_link=self.settings.vip_link, support_link=self.settings.support_link)

    async def _save(self, intent: PaymentIntent):
        if self.store is None:
            logger.warning(f"⚠️ Sem banco configurado, pagamento {intent.external_id} não foi salvo")
            return
        try:
            await asyncio.to_thread(self.store.create, intent)
        except Exception as e:
            logger.error(f"❌ Erro ao salvar no banco: {e}")

    async def _find(self, external_id):
        if self.store is None:
            return None
        try:
            return await asyncio.to_thread(self.store.find_by_external_id, external_id)
        except Exception as e:
            logger.error(f"❌ Erro ao buscar pagamento {external_id}: {e}")
            return None

    async def _mark_paid(self, record: PaymentIntent):
        try:
            await asyncio.to_thread(self.store.mark_paid, record)
        except Exception as e:
            logger.error(f"❌ Erro ao atualizar pagamento {record.external_id}: {e}")
