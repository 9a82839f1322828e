from __future__ import annotations

from html import escape

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from sharetab.config import Settings
from sharetab.db.repo import ShareTabRepository
from sharetab.keyboards import back_to_trip_keyboard
from sharetab.logging import get_logger
from sharetab.services.allocation import calculate_single_bill
from sharetab.services.expenses import expense_participants, new_equal_expense, new_itemized_expense
from sharetab.services.money import divide_money, format_money
from sharetab.services.trips import format_bill, format_expenses
from sharetab.utils.parse import body_lines, parse_amount, parse_extras, parse_item_lines, parse_people, split_args

expenses_router = Router()
log = get_logger(__name__)


@expenses_router.message(Command("addexpense"))
async def cmd_addexpense(message: Message, repo: ShareTabRepository, settings: Settings) -> None:
    args = split_args(message.text or "", "addexpense")
    if len(args) < 5:
        await message.answer(
            "Usage: /addexpense [code] | [description] | [amount] | [payer] | [a, b, c] "
            "[| tax | service | discount]"
        )
        return

    code, description, amount, payer, people, *extra_args = args
    extras = parse_extras(extra_args)
    expense = new_equal_expense(
        description,
        parse_amount(amount),
        payer,
        parse_people(people),
        **extras,
    )

    trip = await repo.get_trip_by_code(code)
    await repo.add_participants(trip.id, expense_participants(expense))
    await repo.store_expense(trip.id, expense)
    log.info("expense.added", trip_id=trip.id, expense_id=expense.id, split_type=expense.split_type.value)

    share = format_money(divide_money(expense.amount, len(expense.split_among)), settings.currency)
    await message.answer(
        f"✅ Added <b>{escape(description)}</b>: {format_money(expense.amount, settings.currency)}, "
        f"{share} each for {len(expense.split_among)} people.",
        reply_markup=back_to_trip_keyboard(trip.code),
    )


@expenses_router.message(Command("additems"))
async def cmd_additems(message: Message, repo: ShareTabRepository, settings: Settings) -> None:
    text = message.text or ""
    args = split_args(text, "additems")
    lines = body_lines(text)
    if len(args) < 2 or not lines:
        await message.answer(
            "Usage: /additems [code] | [description] [| tax | service | discount]\n"
            "then one item per line: [description] | [price] [x qty] [-discount] | [payer] | [a, b]"
        )
        return

    code, description, *extra_args = args
    items, line_extras = parse_item_lines(lines)
    extras = {**parse_extras(extra_args), **line_extras}
    expense = new_itemized_expense(description, items, **extras)

    trip = await repo.get_trip_by_code(code)
    await repo.add_participants(trip.id, expense_participants(expense))
    await repo.store_expense(trip.id, expense)
    log.info("expense.added", trip_id=trip.id, expense_id=expense.id, split_type=expense.split_type.value)

    await message.answer(
        f"✅ Added <b>{escape(description)}</b> with {len(expense.items)} items: "
        f"{format_money(expense.amount, settings.currency)}.",
        reply_markup=back_to_trip_keyboard(trip.code),
    )


@expenses_router.message(Command("bill"))
async def cmd_bill(message: Message, settings: Settings) -> None:
    lines = body_lines(message.text or "")
    if not lines:
        await message.answer(
            "Usage: /bill, then one item per line:\n"
            "[description] | [price] [x qty] [-discount] | [payer] | [a, b]\n"
            "and optionally: tax=10 service=5 discount=2"
        )
        return

    items, extras = parse_item_lines(lines)
    bill = calculate_single_bill(items, **extras)
    await message.answer(format_bill(bill, settings.currency))


@expenses_router.message(Command("expenses"))
async def cmd_expenses(message: Message, repo: ShareTabRepository, settings: Settings) -> None:
    args = split_args(message.text or "", "expenses")
    if len(args) != 1:
        await message.answer("Usage: /expenses [code]")
        return

    trip = await repo.get_trip_by_code(args[0])
    expenses = await repo.get_expenses_for_trip(trip.id)
    await message.answer(format_expenses(expenses, settings.currency), reply_markup=back_to_trip_keyboard(trip.code))


@expenses_router.callback_query(F.data.startswith("expenses:"))
async def cb_expenses(callback: CallbackQuery, repo: ShareTabRepository, settings: Settings) -> None:
    trip = await repo.get_trip_by_code(callback.data.split(":", 1)[1])
    expenses = await repo.get_expenses_for_trip(trip.id)
    if callback.message:
        await callback.message.edit_text(
            format_expenses(expenses, settings.currency),
            reply_markup=back_to_trip_keyboard(trip.code),
        )
    await callback.answer()


@expenses_router.message(Command("removeexpense"))
async def cmd_removeexpense(message: Message, repo: ShareTabRepository) -> None:
    args = split_args(message.text or "", "removeexpense")
    if len(args) != 2:
        await message.answer("Usage: /removeexpense [code] | [expense id]")
        return

    trip = await repo.get_trip_by_code(args[0])
    await repo.remove_expense(trip.id, args[1])
    log.info("expense.removed", trip_id=trip.id, expense_id=args[1])
    await message.answer("🗑 Expense removed.", reply_markup=back_to_trip_keyboard(trip.code))
