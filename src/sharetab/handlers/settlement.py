from __future__ import annotations

from html import escape

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from sharetab.config import Settings
from sharetab.db.repo import ShareTabRepository
from sharetab.keyboards import back_to_trip_keyboard
from sharetab.logging import get_logger
from sharetab.services.money import format_money
from sharetab.services.names import format_name_for_display
from sharetab.services.payments import new_payment
from sharetab.services.settlement import settle_trip
from sharetab.services.trips import format_balances, format_payments, format_transfers
from sharetab.utils.parse import parse_amount, split_args

settlement_router = Router()
log = get_logger(__name__)


async def build_settlement_message(repo: ShareTabRepository, code: str, currency: str) -> tuple[str, str]:
    trip = await repo.get_trip_by_code(code)
    result = await settle_trip(repo, trip.id)
    log.info("settlement.requested", trip_id=trip.id, transfers=len(result.settlements))
    text = "\n\n".join(
        [
            f"💸 <b>{escape(trip.name)}</b>",
            format_balances(result.individual_balances, currency),
            format_transfers(result.settlements, currency),
        ]
    )
    return text, trip.code


@settlement_router.message(Command("settle"))
async def cmd_settle(message: Message, repo: ShareTabRepository, settings: Settings) -> None:
    args = split_args(message.text or "", "settle")
    if len(args) != 1:
        await message.answer("Usage: /settle [code]")
        return

    text, code = await build_settlement_message(repo, args[0], settings.currency)
    await message.answer(text, reply_markup=back_to_trip_keyboard(code))


@settlement_router.callback_query(F.data.startswith("settle:"))
async def cb_settle(callback: CallbackQuery, repo: ShareTabRepository, settings: Settings) -> None:
    text, code = await build_settlement_message(repo, callback.data.split(":", 1)[1], settings.currency)
    if callback.message:
        await callback.message.edit_text(text, reply_markup=back_to_trip_keyboard(code))
    await callback.answer()


@settlement_router.message(Command("pay"))
async def cmd_pay(message: Message, repo: ShareTabRepository, settings: Settings) -> None:
    args = split_args(message.text or "", "pay")
    if len(args) not in (4, 5):
        await message.answer("Usage: /pay [code] | [from] | [to] | [amount] [| note]")
        return

    code, payer, receiver, amount, *note = args
    draft = new_payment(payer, receiver, parse_amount(amount), note[0] if note else "")
    trip = await repo.get_trip_by_code(code)
    payment = await repo.create_payment(trip.id, draft)
    log.info("payment.recorded", trip_id=trip.id, payment_id=payment.id)

    await message.answer(
        f"✅ Recorded: {escape(format_name_for_display(payment.from_person))} paid "
        f"{escape(format_name_for_display(payment.to_person))} {format_money(payment.amount, settings.currency)}.",
        reply_markup=back_to_trip_keyboard(trip.code),
    )


@settlement_router.message(Command("payments"))
async def cmd_payments(message: Message, repo: ShareTabRepository, settings: Settings) -> None:
    args = split_args(message.text or "", "payments")
    if len(args) != 1:
        await message.answer("Usage: /payments [code]")
        return

    trip = await repo.get_trip_by_code(args[0])
    payments = await repo.get_payments_for_trip(trip.id)
    await message.answer(format_payments(payments, settings.currency), reply_markup=back_to_trip_keyboard(trip.code))


@settlement_router.callback_query(F.data.startswith("payments:"))
async def cb_payments(callback: CallbackQuery, repo: ShareTabRepository, settings: Settings) -> None:
    trip = await repo.get_trip_by_code(callback.data.split(":", 1)[1])
    payments = await repo.get_payments_for_trip(trip.id)
    if callback.message:
        await callback.message.edit_text(
            format_payments(payments, settings.currency),
            reply_markup=back_to_trip_keyboard(trip.code),
        )
    await callback.answer()


@settlement_router.message(Command("delpayment"))
async def cmd_delpayment(message: Message, repo: ShareTabRepository) -> None:
    args = split_args(message.text or "", "delpayment")
    if len(args) != 2:
        await message.answer("Usage: /delpayment [code] | [payment id]")
        return

    try:
        payment_id = int(args[1].lstrip("#"))
    except ValueError:
        await message.answer("Invalid payment id")
        return

    trip = await repo.get_trip_by_code(args[0])
    await repo.delete_payment(trip.id, payment_id)
    log.info("payment.deleted", trip_id=trip.id, payment_id=payment_id)
    await message.answer("🗑 Payment deleted.", reply_markup=back_to_trip_keyboard(trip.code))
