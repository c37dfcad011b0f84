#!/usr/bin/env python3
"""
Bot Telegram - Venda de acesso VIP com pagamento PIX
"""
import logging
from html import escape

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ParseMode
from telegram.ext import Application, CallbackQueryHandler, CommandHandler, ContextTypes

from ..config.plans import plans
from ..errors import GatewayError, NotFound, TransientUnconfirmed
from ..api_gateway.pix_service import render_qr_code

logger = logging.getLogger(__name__)

PLAN_PREFIX = 'plano_'
CHECK_PREFIX = 'check_'


def plans_keyboard(catalog_plans=None) -> InlineKeyboardMarkup:
    catalog_plans = catalog_plans if catalog_plans is not None else plans()
    keyboard = [[InlineKeyboardButton(p.botao_texto, callback_data=f"{PLAN_PREFIX}{p.key}")] for p in catalog_plans]
    return InlineKeyboardMarkup(keyboard)


def check_keyboard(external_id: str, texto: str = "✅ JÁ PAGUEI! VERIFICAR") -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[InlineKeyboardButton(texto, callback_data=f"{CHECK_PREFIX}{external_id}")]])


def grant_keyboard(grant) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [InlineKeyboardButton("😎 ENTRAR NO GRUPO VIP", url=grant.vip_link)],
        [InlineKeyboardButton("📞 Suporte / Ajuda", url=grant.support_link)]
    ])


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handler do comando /start - mostra os planos"""
    user = update.effective_user
    nome_user = user.first_name if user and user.first_name else 'Amigo'
    logger.info(f"🚀 /start de {user.id if user else '?'}")

    lifecycle = context.bot_data['lifecycle']
    await update.effective_message.reply_text(
        f"Olá, {escape(nome_user)}! 🔥 OFERTA VERÃO 2026 🔥\n\n"
        f"💜 Escolha seu plano VIP para acesso EXCLUSIVO:",
        reply_markup=plans_keyboard(plans(lifecycle.catalog)),
        parse_mode=ParseMode.HTML
    )


async def callback_processar_plano(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Gera o PIX do plano selecionado"""
    query = update.callback_query
    await query.answer()
    chat_id = query.message.chat_id
    user_id = query.from_user.id
    plan_key = query.data[len(PLAN_PREFIX):]

    lifecycle = context.bot_data['lifecycle']
    plan = lifecycle.catalog.get(plan_key)
    if plan is None:
        logger.warning(f"⚠️ Plano '{plan_key}' não encontrado para {user_id}.")
        await context.bot.send_message(chat_id, "❌ Plano não encontrado.")
        return

    await context.bot.send_message(
        chat_id,
        f"🔄 Gerando seu PIX para o plano <b>{escape(plan.nome)}</b>...",
        parse_mode=ParseMode.HTML
    )

    try:
        result = await lifecycle.initiate(user_id, plan_key)
    except NotFound:
        await context.bot.send_message(chat_id, "❌ Plano não encontrado.")
        return
    except GatewayError as e:
        logger.error(f"❌ Falha ao gerar PIX para {user_id}: {e}")
        await context.bot.send_message(
            chat_id,
            "❌ Erro ao gerar o pagamento. Tente novamente mais tarde ou contate o suporte."
        )
        return

    await enviar_mensagem_pix(context, chat_id, result)


async def enviar_mensagem_pix(context: ContextTypes.DEFAULT_TYPE, chat_id: int, result):
    """Envia valor, QR Code, copia e cola e o botão de verificação"""
    await context.bot.send_message(
        chat_id,
        f"💳 <b>AQUI ESTÁ SEU PIX!</b>\n\n"
        f"Valor: R$ {result.plan.valor:.2f}\n\n"
        f"Copie o código abaixo e pague no seu banco:",
        parse_mode=ParseMode.HTML
    )

    qr_png = render_qr_code(result.payment_code)
    if qr_png:
        try:
            await context.bot.send_photo(chat_id=chat_id, photo=qr_png)
        except Exception as e:
            logger.error(f"❌ Falha ao enviar foto do QR Code para {chat_id}: {e}")

    await context.bot.send_message(
        chat_id,
        f"<code>{escape(result.payment_code)}</code>",
        parse_mode=ParseMode.HTML
    )

    await context.bot.send_message(
        chat_id,
        "⏳ <b>Após realizar o pagamento, clique no botão abaixo para liberar seu acesso imediatamente:</b>",
        reply_markup=check_keyboard(result.external_id),
        parse_mode=ParseMode.HTML
    )


async def callback_verificar_pagamento(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handler do botão "JÁ PAGUEI" - verifica o pagamento"""
    query = update.callback_query
    await query.answer("Verificando pagamento...")
    chat_id = query.message.chat_id
    user_id = query.from_user.id
    external_id = query.data[len(CHECK_PREFIX):]

    lifecycle = context.bot_data['lifecycle']
    try:
        grant = await lifecycle.check(user_id, external_id)
    except TransientUnconfirmed:
        await context.bot.send_message(
            chat_id,
            "⏳ Pagamento ainda não confirmado. Aguarde alguns segundos e tente clicar novamente.",
            reply_markup=check_keyboard(external_id, "🔄 Tentar Novamente")
        )
        return

    await enviar_acesso_vip(context, chat_id, grant)


async def enviar_acesso_vip(context: ContextTypes.DEFAULT_TYPE, chat_id: int, grant):
    await context.bot.send_message(
        chat_id,
        "🎉 <b>PAGAMENTO CONFIRMADO!</b>\n\n"
        "Seja bem-vindo(a) à área VIP! 🔥\n\n"
        "👇 <b>Clique no botão abaixo para entrar:</b>",
        reply_markup=grant_keyboard(grant),
        parse_mode=ParseMode.HTML
    )


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE):
    """Registra erros não tratados dos handlers"""
    logger.error(f"❌ Erro não tratado no update {update}: {context.error}", exc_info=context.error)

    if isinstance(update, Update) and update.effective_chat:
        try:
            await context.bot.send_message(
                update.effective_chat.id,
                "❌ Um erro inesperado ocorreu. Por favor, tente novamente mais tarde."
            )
        except Exception as e:
            logger.warning(f"⚠️ Não foi possível avisar o usuário: {e}")


def build_application(settings, lifecycle) -> Application:
    """Cria a aplicação e registra os handlers"""

    async def post_shutdown(application: Application):
        logger.info("🔒 Fechando cliente HTTP...")
        await lifecycle.gateway.aclose()

    application = (
        Application.builder()
        .token(settings.bot_token)
        .concurrent_updates(True)
        .post_shutdown(post_shutdown)
        .build()
    )
    application.bot_data['lifecycle'] = lifecycle

    application.add_handler(CommandHandler("start", start))
    application.add_handler(CallbackQueryHandler(callback_processar_plano, pattern=f'^{PLAN_PREFIX}'))
    application.add_handler(CallbackQueryHandler(callback_verificar_pagamento, pattern=f'^{CHECK_PREFIX}'))
    application.add_error_handler(error_handler)
    logger.info("✅ Handlers registrados com sucesso")

    return application


def main(settings, lifecycle):
    """Função principal - executa o bot (bloqueante)"""
    application = build_application(settings, lifecycle)

    logger.info("🤖 Bot iniciado!")
    logger.info("📌 Comandos: /start")

    application.run_polling(drop_pending_updates=True)
