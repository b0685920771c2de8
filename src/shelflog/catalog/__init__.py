"""Books, ratings and shelves."""

from .books import BookCatalog, BookSummary
from .ratings import Rating, RatingService
from .shelves import Shelf, ShelvedBook, favorites, wishlist

__all__ = [
    "BookCatalog",
    "BookSummary",
    "Rating",
    "RatingService",
    "Shelf",
    "ShelvedBook",
    "favorites",
    "wishlist",
]
