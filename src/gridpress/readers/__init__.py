"""Workbook loaders."""

from .dataframe_reader import DataFrameReader, to_cell_value

__all__ = ["DataFrameReader", "to_cell_value"]
