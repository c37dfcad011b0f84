#!/usr/bin/env python3
"""
Ponto de entrada principal para o deploy
Inicia o servidor de health check e o bot Telegram
"""

import logging
import sys

from .config.config import load_settings


def setup_logging(level='INFO'):
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, level, logging.INFO)
    )
    # A apiKey do gateway vai na query string, não deixar o httpx logar as URLs
    logging.getLogger('httpx').setLevel(logging.WARNING)


def main():
    """Função principal que inicia health check + bot"""
    settings = load_settings()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    logger.info("🚀 === BOT VIP PIX INICIANDO ===")
    logger.info("=" * 50)

    if not settings.bot_token:
        logger.critical("❌ ERRO CRÍTICO: BOT_TOKEN não configurado")
        sys.exit(1)
    if not settings.gateway_url:
        logger.warning("⚠️ API_GATEWAY_URL não configurada - geração de PIX vai falhar")

    from .api_gateway.health_server import start_health_server
    from .api_gateway.pix_service import PixGatewayService
    from .bot.bot import main as bot_main
    from .bot.lifecycle import PaymentLifecycle
    from .database.database import get_store

    try:
        logger.info(f"📡 Iniciando servidor de health check na porta {settings.port}...")
        start_health_server(settings.port)

        gateway = PixGatewayService(settings.gateway_url, settings.gateway_api_key)
        lifecycle = PaymentLifecycle(settings, gateway, store=get_store(settings))

        logger.info("🤖 Iniciando Bot Telegram...")
        # Executa bot (blocking)
        bot_main(settings, lifecycle)

    except KeyboardInterrupt:
        logger.info("Aplicação interrompida pelo usuário")
    except Exception as e:
        logger.error(f"Erro fatal na aplicação: {e}")
        raise
    finally:
        logger.info("Aplicação finalizada")


if __name__ == '__main__':
    main()
