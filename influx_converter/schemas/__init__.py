from .point import Point
from .report import TableReport
from .row_set import RowSet

__all__ = ["Point", "RowSet", "TableReport"]
