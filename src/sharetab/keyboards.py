from __future__ import annotations

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup


def main_menu_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🧾 Split a bill", callback_data="menu:bill")],
            [InlineKeyboardButton(text="ℹ️ Help", callback_data="menu:help")],
        ]
    )


def trip_keyboard(code: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="Expenses", callback_data=f"expenses:{code}"),
                InlineKeyboardButton(text="Payments", callback_data=f"payments:{code}"),
            ],
            [InlineKeyboardButton(text="💸 Settle up", callback_data=f"settle:{code}")],
        ]
    )


def back_to_trip_keyboard(code: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[[InlineKeyboardButton(text="◀️ Back to trip", callback_data=f"trip:{code}")]]
    )
