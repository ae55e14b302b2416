from .stock_reservation import (
    InvalidQuantity,
    ReservationLine,
    ReservedItem,
    StockError,
    StockFailure,
    StockReservationError,
    release,
    reserve,
)

__all__ = [
    "InvalidQuantity",
    "ReservationLine",
    "ReservedItem",
    "StockError",
    "StockFailure",
    "StockReservationError",
    "release",
    "reserve",
]
