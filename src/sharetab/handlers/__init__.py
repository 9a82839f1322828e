from sharetab.handlers.basic import basic_router, on_user_error
from sharetab.handlers.expenses import expenses_router
from sharetab.handlers.settlement import settlement_router
from sharetab.handlers.trips import trips_router

__all__ = [
    "basic_router",
    "expenses_router",
    "on_user_error",
    "settlement_router",
    "trips_router",
]
