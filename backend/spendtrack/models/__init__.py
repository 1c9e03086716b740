from spendtrack.models.expense import Expense

__all__ = ["Expense"]
