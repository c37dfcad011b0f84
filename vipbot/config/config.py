import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# Links padrão do grupo VIP e do suporte
DEFAULT_VIP_LINK = 'https://t.me/+3tFGdcaEztdmNDUx'
DEFAULT_SUPPORT_LINK = 'https://t.me/larissakovask'


@dataclass(frozen=True)
class Settings:
    """Configuração imutável, carregada uma vez na inicialização"""
    bot_token: Optional[str]
    gateway_url: str
    gateway_api_key: str
    database_url: Optional[str]
    database_sslmode: str = 'prefer'
    port: int = 8080
    vip_link: str = DEFAULT_VIP_LINK
    support_link: str = DEFAULT_SUPPORT_LINK
    log_level: str = 'INFO'


def load_settings(environ=None) -> Settings:
    """Monta as configurações a partir das variáveis de ambiente"""
    env = os.environ if environ is None else environ

    return Settings(
        # Bot Telegram
        bot_token=env.get('BOT_TOKEN') or env.get('TELEGRAM_BOT_TOKEN'),
        # Gateway PIX
        gateway_url=env.get('API_GATEWAY_URL', '').rstrip('/'),
        gateway_api_key=env.get('API_KEY', ''),
        # Banco de dados (opcional - sem ele o bot roda sem persistência)
        database_url=env.get('DATABASE_URL') or None,
        database_sslmode=env.get('DATABASE_SSLMODE', 'prefer'),
        # Server
        port=int(env.get('PORT', '8080')),
        # Destinos liberados após o pagamento
        vip_link=env.get('VIP_LINK', DEFAULT_VIP_LINK),
        support_link=env.get('SUPPORT_LINK', DEFAULT_SUPPORT_LINK),
        log_level=env.get('LOG_LEVEL', 'INFO').upper(),
    )
