#!/usr/bin/env python3
"""
Servidor de health check para a plataforma de deploy
Responde 200 em qualquer rota enquanto o processo estiver de pé
"""

import logging
from threading import Thread

from flask import Flask

logger = logging.getLogger(__name__)

app = Flask(__name__)


@app.route('/', defaults={'path': ''}, methods=['GET', 'HEAD'])
@app.route('/<path:path>', methods=['GET', 'HEAD'])
def health(path):
    """Health check endpoint"""
    return 'Bot is running', 200, {'Content-Type': 'text/plain; charset=utf-8'}


def run_health_server(port):
    """Executa servidor de health check"""
    logger.info(f"❤️ Health check: http://0.0.0.0:{port}/")
    app.run(
        host='0.0.0.0',
        port=port,
        debug=False,
        use_reloader=False
    )


def start_health_server(port):
    """Inicia servidor de health check em background"""
    health_thread = Thread(target=run_health_server, args=(port,), daemon=True)
    health_thread.start()
    return health_thread
