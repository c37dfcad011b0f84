"""
Exceções do fluxo de pagamento VIP
"""


class VipBotError(Exception):
    """Erro base do bot"""


class GatewayError(VipBotError):
    """Gateway PIX inacessível ou resposta inválida"""


class DuplicateKey(VipBotError):
    """Já existe um pagamento com o mesmo external_id"""

    def __init__(self, external_id):
        super().__init__(f"Pagamento duplicado: {external_id}")
        self.external_id = external_id


class NotFound(VipBotError):
    """Plano ou registro inexistente"""


class TransientUnconfirmed(VipBotError):
    """Pagamento ainda não confirmado - o usuário pode tentar novamente"""

    def __init__(self, external_id, status=None):
        super().__init__(f"Pagamento {external_id} ainda não confirmado (status: {status})")
        self.external_id = external_id
        self.status = status
