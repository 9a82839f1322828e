from __future__ import annotations

from html import escape

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.types import CallbackQuery, ErrorEvent, Message

from sharetab.keyboards import main_menu_keyboard
from sharetab.logging import get_logger

basic_router = Router()
log = get_logger(__name__)

HELP_TEXT = (
    "<b>📖 Commands</b>\n\n"
    "<b>Trips:</b>\n"
    "/newtrip name | your name - start a trip\n"
    "/trip code - trip card\n"
    "/join code | name - add a participant\n\n"
    "<b>Expenses:</b>\n"
    "/addexpense code | description | amount | payer | a, b, c [| tax | service | discount]\n"
    "/additems code | description [| tax | service | discount]\n"
    "  then one item per line: description | price [x qty] [-discount] | payer | a, b\n"
    "/expenses code - list expenses\n"
    "/removeexpense code | expense id\n"
    "/bill + item lines - split a single bill without a trip\n\n"
    "<b>Settling up:</b>\n"
    "/settle code - balances and the fewest transfers\n"
    "/pay code | from | to | amount [| note] - record a payment\n"
    "/payments code, /delpayment code | id\n"
)

BILL_HINT = (
    "🧾 <b>Split a bill</b>\n\n"
    "Send /bill followed by one item per line:\n"
    "<code>/bill\n"
    "Pizza | 100 | alice | alice, bob\n"
    "Cola | 5 x2 | bob | bob\n"
    "tax=10 service=5</code>"
)


@basic_router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    user = message.from_user
    name = user.first_name if user else "there"
    await message.answer(
        f"👋 Hi, {name}!\n\n"
        "I'm <b>ShareTab</b>: I keep track of shared trip expenses and work out "
        "who pays whom with as few transfers as possible.",
        reply_markup=main_menu_keyboard(),
    )


@basic_router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


@basic_router.callback_query(F.data == "menu:help")
async def cb_help(callback: CallbackQuery) -> None:
    if callback.message:
        await callback.message.answer(HELP_TEXT)
    await callback.answer()


@basic_router.callback_query(F.data == "menu:bill")
async def cb_bill(callback: CallbackQuery) -> None:
    if callback.message:
        await callback.message.answer(BILL_HINT)
    await callback.answer()


async def on_user_error(event: ErrorEvent) -> bool:
    """Report validation and lookup failures back to the chat."""
    log.info("handler.rejected", error=str(event.exception))
    text = f"❌ {escape(str(event.exception))}"
    if event.update.message:
        await event.update.message.answer(text)
    elif event.update.callback_query:
        await event.update.callback_query.answer(text, show_alert=True)
    return True
