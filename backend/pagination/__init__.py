"""Pagination of single-flow invoice documents into fixed-height print pages."""
