"""
src/resources — per-resource batch services on top of src/batch_client.

Module layout
-------------
base.py   — ResourceBatch base class, IBLOCK parameter helper
lists.py  — ListsBatch, FieldBatch, SectionBatch, ElementBatch
sale.py   — OrderBatch, BasketItemBatch (id-based listing)
scrum.py  — EpicBatch, BacklogBatch
"""

from .lists import ElementBatch, FieldBatch, ListsBatch, SectionBatch
from .sale import BasketItemBatch, OrderBatch
from .scrum import BacklogBatch, EpicBatch

__all__ = [
    "ListsBatch",
    "FieldBatch",
    "SectionBatch",
    "ElementBatch",
    "OrderBatch",
    "BasketItemBatch",
    "EpicBatch",
    "BacklogBatch",
]
