from dataclasses import replace

import pytest

from vipbot.api_gateway.pix_service import IntentHandle, StatusResult
from vipbot.config.config import load_settings
from vipbot.database.database import STATUS_PAID
from vipbot.errors import DuplicateKey


class FakeStore:
    """Store em memória com a mesma interface do PaymentStore"""

    def __init__(self):
        self.records = {}
        self.create_calls = 0
        self.mark_paid_calls = 0

    def create(self, intent):
        self.create_calls += 1
        if intent.external_id in self.records:
            raise DuplicateKey(intent.external_id)
        self.records[intent.external_id] = intent
        return intent

    def find_by_external_id(self, external_id):
        return self.records.get(external_id)

    def mark_paid(self, record):
        self.mark_paid_calls += 1
        if record.paid:
            raise ValueError("already paid")
        updated = replace(record, status=STATUS_PAID)
        self.records[record.external_id] = updated
        return updated


@pytest.fixture
def settings():
    return load_settings({
        'BOT_TOKEN': '123456:TEST',
        'API_GATEWAY_URL': 'https://gateway.test/',
        'API_KEY': 'secret',
        'VIP_LINK': 'https://t.me/+vip',
        'SUPPORT_LINK': 'https://t.me/suporte',
    })


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def gateway(mocker):
    gw = mocker.Mock()
    gw.create_intent = mocker.AsyncMock(return_value=IntentHandle('abc123', '000201abc'))
    gw.get_status = mocker.AsyncMock(return_value=StatusResult('pending'))
    gw.aclose = mocker.AsyncMock()
    return gw
