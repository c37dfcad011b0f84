#!/usr/bin/env python3
"""
Módulo de Database PostgreSQL para os pagamentos PIX
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

import psycopg2
import psycopg2.errors
import psycopg2.extras

from ..errors import DuplicateKey

logger = logging.getLogger(__name__)

STATUS_PENDING = 'pending'
STATUS_PAID = 'paid'


@dataclass(frozen=True)
class PaymentIntent:
    user_id: str
    external_id: str
    plan_key: str
    amount: float
    status: str = STATUS_PENDING
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def paid(self) -> bool:
        return self.status == STATUS_PAID

    @classmethod
    def from_row(cls, row):
        return cls(
            user_id=row['user_id'],
            external_id=row['external_id'],
            plan_key=row['plan_key'],
            amount=float(row['amount']),
            status=row['status'],
            created_at=row['created_at'],
        )


class PaymentStore:
    def __init__(self, database_url, sslmode='prefer'):
        if not database_url:
            raise ValueError("DATABASE_URL é obrigatório")
        self.database_url = database_url
        self.sslmode = sslmode

    @contextmanager
    def get_connection(self):
        """Context manager para conexões PostgreSQL"""
        conn = None
        try:
            conn = psycopg2.connect(self.database_url, sslmode=self.sslmode)
            yield conn
            conn.commit()
        except Exception as e:
            if conn:
                conn.rollback()
            logger.error(f"❌ Erro no database: {e}")
            raise
        finally:
            if conn:
                conn.close()

    def init_tables(self):
        """Criar tabela de pagamentos se não existir"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS payments (
                    id SERIAL PRIMARY KEY,
                    user_id VARCHAR(64) NOT NULL,
                    external_id VARCHAR(255) UNIQUE NOT NULL,
                    plan_key VARCHAR(64) NOT NULL,
                    amount NUMERIC(10,2) NOT NULL,
                    status VARCHAR(16) NOT NULL DEFAULT 'pending',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );
            """)
        logger.info("✅ Tabela payments pronta")

    def create(self, intent: PaymentIntent) -> PaymentIntent:
        """Salvar pagamento novo. Nunca sobrescreve um external_id existente."""
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT INTO payments (user_id, external_id, plan_key, amount, status, created_at)
                    VALUES (%s, %s, %s, %s, %s, %s)
                """, (
                    intent.user_id, intent.external_id, intent.plan_key,
                    intent.amount, intent.status, intent.created_at
                ))
        except psycopg2.errors.UniqueViolation as e:
            raise DuplicateKey(intent.external_id) from e

        logger.info(f"💳 Pagamento salvo: {intent.external_id} ({intent.status})")
        return intent

    def find_by_external_id(self, external_id) -> Optional[PaymentIntent]:
        """Buscar pagamento pelo id do gateway"""
        with self.get_connection() as conn:
            cursor = conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            cursor.execute("SELECT * FROM payments WHERE external_id = %s", (external_id,))
            row = cursor.fetchone()
        return PaymentIntent.from_row(row) if row else None

    def mark_paid(self, record: PaymentIntent) -> PaymentIntent:
        """Marca um pagamento pendente como pago"""
        if record.paid:
            raise ValueError(f"Pagamento {record.external_id} já está pago")

        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE payments SET status = %s WHERE external_id = %s AND status = %s",
                (STATUS_PAID, record.external_id, STATUS_PENDING)
            )
            updated = cursor.rowcount

        if not updated:
            logger.warning(f"⚠️ Nenhuma linha pendente atualizada para {record.external_id}")
        else:
            logger.info(f"✅ Status atualizado: {record.external_id} -> {STATUS_PAID}")
        return replace(record, status=STATUS_PAID)


def get_store(settings) -> Optional[PaymentStore]:
    """
    Cria o store de pagamentos. Sem DATABASE_URL, ou se o banco não responder,
    retorna None e o bot segue sem persistência.
    """
    if not settings.database_url:
        logger.error("❌ DATABASE_URL não configurado! Bot rodando sem persistência.")
        return None

    store = PaymentStore(settings.database_url, sslmode=settings.database_sslmode)
    try:
        store.init_tables()
    except psycopg2.Error as e:
        logger.error(f"❌ Erro ao conectar no banco: {e}")
        logger.error("💡 DICA: Verifique se DATABASE_URL está correta.")
        return None

    logger.info("✅ Database PostgreSQL inicializado")
    return store
