"""Application layer package."""

from application.batch import BatchDriver, iter_inputs

__all__ = ["BatchDriver", "iter_inputs"]
