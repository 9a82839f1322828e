from __future__ import annotations

from html import escape

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from sharetab.db.repo import ShareTabRepository
from sharetab.keyboards import trip_keyboard
from sharetab.logging import get_logger
from sharetab.services.names import format_name_for_display
from sharetab.services.trips import format_trip_card
from sharetab.services.validation import require_text
from sharetab.utils.parse import split_args

trips_router = Router()
log = get_logger(__name__)


@trips_router.message(Command("newtrip"))
async def cmd_newtrip(message: Message, repo: ShareTabRepository) -> None:
    args = split_args(message.text or "", "newtrip")
    if len(args) != 2:
        await message.answer("Usage: /newtrip [trip name] | [your name]")
        return

    name, participant = args
    require_text(name, "trip name")
    require_text(participant, "participant")

    trip = await repo.create_trip(name, participant)
    log.info("trip.created", trip_id=trip.id, code=trip.code)
    await message.answer(
        f"✅ Trip created!\n\n{format_trip_card(trip)}\n\nShare the code so others can /join.",
        reply_markup=trip_keyboard(trip.code),
    )


@trips_router.message(Command("trip"))
async def cmd_trip(message: Message, repo: ShareTabRepository) -> None:
    args = split_args(message.text or "", "trip")
    if len(args) != 1:
        await message.answer("Usage: /trip [code]")
        return

    trip = await repo.get_trip_by_code(args[0])
    await message.answer(format_trip_card(trip), reply_markup=trip_keyboard(trip.code))


@trips_router.callback_query(F.data.startswith("trip:"))
async def cb_trip(callback: CallbackQuery, repo: ShareTabRepository) -> None:
    code = callback.data.split(":", 1)[1]
    trip = await repo.get_trip_by_code(code)
    if callback.message:
        await callback.message.edit_text(format_trip_card(trip), reply_markup=trip_keyboard(trip.code))
    await callback.answer()


@trips_router.message(Command("join"))
async def cmd_join(message: Message, repo: ShareTabRepository) -> None:
    args = split_args(message.text or "", "join")
    if len(args) != 2:
        await message.answer("Usage: /join [code] | [name]")
        return

    code, name = args
    require_text(name, "participant")
    trip = await repo.get_trip_by_code(code)
    await repo.add_participants(trip.id, [name])
    log.info("trip.participant_added", trip_id=trip.id)
    await message.answer(f"✅ {escape(format_name_for_display(name))} joined <b>{escape(trip.name)}</b>.")
