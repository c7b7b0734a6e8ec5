"""
Dashboard aggregation.

A pure function of a transaction list: no store access, no rounding.
Categories and months come out in first-seen order; sort them yourself if
you need a different order.
"""

from typing import Dict, Iterable

from schemas import CategoryTotal, DashboardSummary, MonthlySummary, TransactionOut


def month_key(transaction: TransactionOut) -> str:
    return transaction.date.strftime("%Y-%m")


def aggregate(transactions: Iterable[TransactionOut]) -> DashboardSummary:
    total_income = 0.0
    total_expense = 0.0
    category_totals: Dict[str, float] = {}
    monthly: Dict[str, Dict[str, float]] = {}

    for t in transactions:
        month = monthly.setdefault(month_key(t), {"income": 0.0, "expense": 0.0})
        if t.type == "income":
            total_income += t.amount
            month["income"] += t.amount
        else:
            total_expense += t.amount
            month["expense"] += t.amount
            # income is not broken out by category
            category_totals[t.category] = category_totals.get(t.category, 0.0) + t.amount

    return DashboardSummary(
        total_income=total_income,
        total_expense=total_expense,
        balance=total_income - total_expense,
        category_totals=[
            CategoryTotal(category=category, total=total)
            for category, total in category_totals.items()
        ],
        monthly_data=[
            MonthlySummary(
                month=key,
                income=values["income"],
                expense=values["expense"],
                balance=values["income"] - values["expense"],
            )
            for key, values in monthly.items()
        ],
    )
