import asyncio

import pytest

from vipbot.api_gateway.pix_service import StatusResult
from vipbot.bot import bot
from vipbot.bot.lifecycle import PaymentLifecycle
from vipbot.database.database import PaymentIntent
from vipbot.errors import DuplicateKey, GatewayError


@pytest.fixture
def lifecycle(settings, gateway, store):
    return PaymentLifecycle(settings, gateway, store=store, document_generator=lambda: '52998224725')


@pytest.fixture
def context(mocker, lifecycle):
    ctx = mocker.Mock()
    ctx.bot_data = {'lifecycle': lifecycle}
    ctx.bot.send_message = mocker.AsyncMock()
    ctx.bot.send_photo = mocker.AsyncMock()
    return ctx


def callback_update(mocker, data, user_id=42, chat_id=1000):
    update = mocker.Mock()
    update.callback_query.data = data
    update.callback_query.answer = mocker.AsyncMock()
    update.callback_query.from_user.id = user_id
    update.callback_query.message.chat_id = chat_id
    return update


def sent_texts(context):
    return [c.args[1] for c in context.bot.send_message.await_args_list]


def callback_data(markup):
    return [button.callback_data for row in markup.inline_keyboard for button in row]


def test_start_shows_plan_menu(mocker, context):
    update = mocker.Mock()
    update.effective_user.first_name = 'Ana'
    update.effective_message.reply_text = mocker.AsyncMock()

    asyncio.run(bot.start(update, context))

    text = update.effective_message.reply_text.await_args.args[0]
    markup = update.effective_message.reply_text.await_args.kwargs['reply_markup']
    assert 'Olá, Ana!' in text
    assert callback_data(markup) == ['plano_1mes', 'plano_3meses', 'plano_12meses']


def test_start_from_edited_message(mocker, context):
    update = mocker.Mock()
    update.message = None
    update.effective_user.first_name = None
    update.effective_message.reply_text = mocker.AsyncMock()

    asyncio.run(bot.start(update, context))

    assert 'Olá, Amigo!' in update.effective_message.reply_text.await_args.args[0]


def test_select_plan_shows_code_and_check_button(mocker, context, store):
    update = callback_update(mocker, 'plano_1mes')

    asyncio.run(bot.callback_processar_plano(update, context))

    texts = sent_texts(context)
    assert any('R$ 23.90' in t for t in texts)
    assert '<code>000201abc</code>' in texts
    last = context.bot.send_message.await_args_list[-1]
    assert callback_data(last.kwargs['reply_markup']) == ['check_abc123']
    context.bot.send_photo.assert_awaited_once()
    assert store.records['abc123'].status == 'pending'


def test_select_unknown_plan(mocker, context, gateway):
    update = callback_update(mocker, 'plano_vitalicio')

    asyncio.run(bot.callback_processar_plano(update, context))

    assert sent_texts(context) == ['❌ Plano não encontrado.']
    gateway.create_intent.assert_not_awaited()


def test_select_plan_gateway_failure(mocker, context, gateway, store):
    gateway.create_intent.side_effect = GatewayError('x')
    update = callback_update(mocker, 'plano_3meses')

    asyncio.run(bot.callback_processar_plano(update, context))

    assert 'Erro ao gerar o pagamento' in sent_texts(context)[-1]
    assert store.create_calls == 0


def test_select_plan_duplicate_key_still_shows_code(mocker, context, store):
    mocker.patch.object(store, 'create', side_effect=DuplicateKey('abc123'))
    update = callback_update(mocker, 'plano_1mes')

    asyncio.run(bot.callback_processar_plano(update, context))

    assert '<code>000201abc</code>' in sent_texts(context)


def test_qr_failure_does_not_block_code(mocker, context):
    context.bot.send_photo.side_effect = RuntimeError('telegram down')
    update = callback_update(mocker, 'plano_1mes')

    asyncio.run(bot.callback_processar_plano(update, context))

    assert '<code>000201abc</code>' in sent_texts(context)


def test_check_not_confirmed_offers_retry(mocker, context, store):
    store.records['abc123'] = PaymentIntent('42', 'abc123', '1mes', 23.90)
    update = callback_update(mocker, 'check_abc123')

    asyncio.run(bot.callback_verificar_pagamento(update, context))

    call = context.bot.send_message.await_args
    assert 'ainda não confirmado' in call.args[1]
    assert callback_data(call.kwargs['reply_markup']) == ['check_abc123']
    assert store.records['abc123'].status == 'pending'


def test_check_paid_grants_access(mocker, context, gateway, store):
    store.records['abc123'] = PaymentIntent('42', 'abc123', '1mes', 23.90)
    gateway.get_status.return_value = StatusResult('paid')
    update = callback_update(mocker, 'check_abc123')

    asyncio.run(bot.callback_verificar_pagamento(update, context))

    call = context.bot.send_message.await_args
    assert 'PAGAMENTO CONFIRMADO' in call.args[1]
    urls = [b.url for row in call.kwargs['reply_markup'].inline_keyboard for b in row]
    assert urls == ['https://t.me/+vip', 'https://t.me/suporte']
    assert store.records['abc123'].status == 'paid'
    assert store.mark_paid_calls == 1


def test_build_application_registers_handlers(settings, lifecycle):
    application = bot.build_application(settings, lifecycle)

    assert application.bot_data['lifecycle'] is lifecycle
    handlers = application.handlers[0]
    assert len(handlers) == 3
    assert application.error_handlers
