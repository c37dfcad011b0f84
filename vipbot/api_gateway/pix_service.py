"""
Serviço de integração com o gateway PIX
"""
import io
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
import qrcode

from ..errors import GatewayError

logger = logging.getLogger(__name__)

# Nomes que o gateway já usou para o código copia e cola
PAYMENT_CODE_FIELDS = ('copiaCola', 'pix_code', 'pix_copia_cola')


@dataclass(frozen=True)
class IntentHandle:
    external_id: str
    payment_code: str


@dataclass(frozen=True)
class StatusResult:
    status: str

    @property
    def paid(self) -> bool:
        return self.status == 'paid'


def normalize_create_response(data: Any) -> IntentHandle:
    """
    Converte a resposta do createPix em um IntentHandle.

    Aceita o formato atual {success, data: {id, copiaCola}} e o formato
    antigo {id, pix_code}.
    """
    if not isinstance(data, dict):
        raise GatewayError("malformed response")

    if data.get('error'):
        raise GatewayError(str(data['error']))

    if 'data' in data:
        if not data.get('success') or not isinstance(data['data'], dict):
            raise GatewayError("malformed response")
        payload = data['data']
    else:
        payload = data

    external_id = payload.get('id')
    payment_code = next((payload[f] for f in PAYMENT_CODE_FIELDS if payload.get(f)), None)
    if not external_id or not payment_code:
        raise GatewayError("malformed response")

    return IntentHandle(external_id=str(external_id), payment_code=str(payment_code))


class PixGatewayService:
    """Gerencia as chamadas ao gateway PIX (criação e status)"""

    def __init__(self, base_url: str, api_key: str, http_client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(10.0, read=30.0),
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10)
        )

    async def create_intent(self, amount: float, user_id, taxpayer_id: str) -> IntentHandle:
        """
        Cria uma cobrança PIX no gateway

        Raises:
            GatewayError: erro retornado pela API, resposta inválida ou falha de rede
        """
        params = {
            'apiKey': self.api_key,
            'value': f"{amount:.2f}",
            'user_id': str(user_id),
            'cpf': taxpayer_id,
        }
        try:
            response = await self.http_client.get(f"{self.base_url}/api/createPix", params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.error(f"❌ Erro na criação do PIX: {e}")
            raise GatewayError(str(e)) from e

        try:
            handle = normalize_create_response(data)
        except GatewayError as e:
            logger.error(f"❌ Gateway recusou o PIX para user {user_id}: {e}")
            raise

        logger.info(f"✅ PIX criado: {handle.external_id} - {handle.payment_code[:30]}...")
        return handle

    async def get_status(self, external_id: str) -> StatusResult:
        """
        Consulta o status de uma cobrança.

        Nunca levanta exceção: qualquer falha vira StatusResult('error'), que
        o chamador trata como "ainda não confirmado".
        """
        try:
            response = await self.http_client.get(
                f"{self.base_url}/api/status/{quote(external_id, safe='')}",
                params={'apiKey': self.api_key}
            )
            response.raise_for_status()
            data: Dict[str, Any] = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.error(f"❌ Erro ao checar status de {external_id}: {e}")
            return StatusResult('error')

        status = data.get('status') if isinstance(data, dict) else None
        if not status:
            logger.warning(f"⚠️ Resposta de status sem campo 'status' para {external_id}: {data}")
            return StatusResult('error')

        logger.info(f"🔍 Status {external_id}: {status}")
        return StatusResult(str(status))

    async def aclose(self):
        if not self.http_client.is_closed:
            await self.http_client.aclose()


def render_qr_code(payment_code: str) -> bytes:
    """
    Gera QR Code como bytes PNG a partir do código PIX

    Args:
        payment_code: Código PIX copia e cola

    Returns:
        Bytes da imagem PNG, ou b"" se não foi possível gerar
    """
    if not payment_code:
        return b""

    try:
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=4,
        )
        qr.add_data(payment_code)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        img.save(buffer, format='PNG')
        return buffer.getvalue()

    except Exception as e:
        logger.error(f"❌ Erro ao gerar QR Code: {e}")
        return b""
