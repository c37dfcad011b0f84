"""
Catálogo fixo dos planos VIP
"""
from dataclasses import dataclass
from types import MappingProxyType

from ..errors import NotFound


@dataclass(frozen=True)
class Plan:
    key: str
    nome: str
    valor: float
    emoji: str = '📦'

    @property
    def valor_formatado(self) -> str:
        """Valor no formato brasileiro, ex: 23,90"""
        return f"{self.valor:.2f}".replace('.', ',')

    @property
    def botao_texto(self) -> str:
        return f"{self.emoji} {self.nome} - R$ {self.valor_formatado}"


# ======== CONFIGURAÇÃO DOS PLANOS VIP =============
VIP_PLANS = MappingProxyType({
    '1mes': Plan('1mes', '1 Mês', 23.90, '📦'),
    '3meses': Plan('3meses', '3 Meses', 44.70, '🔥'),
    '12meses': Plan('12meses', '12 Meses', 178.00, '💥'),
})
# ==================================================

# Plano usado em registros recuperados sem a compra original
UNKNOWN_PLAN_KEY = 'unknown'


def get_plan(plan_key: str, catalog=VIP_PLANS) -> Plan:
    plan = catalog.get(plan_key)
    if plan is None:
        raise NotFound(f"Plano não encontrado: {plan_key}")
    return plan


def plans(catalog=VIP_PLANS):
    return list(catalog.values())
