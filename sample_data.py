"""Fixed demo dataset shown when the API cannot be reached."""

from datetime import date

from schemas import TransactionOut

SAMPLE_TRANSACTIONS = [
    TransactionOut(id="1", description="Salário", amount=5000, date=date(2023, 5, 1), category="Salário", type="income"),
    TransactionOut(id="2", description="Aluguel", amount=1200, date=date(2023, 5, 5), category="Moradia", type="expense"),
    TransactionOut(id="3", description="Supermercado", amount=500, date=date(2023, 5, 10), category="Alimentação", type="expense"),
    TransactionOut(id="4", description="Internet", amount=100, date=date(2023, 5, 15), category="Serviços", type="expense"),
    TransactionOut(id="5", description="Freelance", amount=1000, date=date(2023, 5, 20), category="Freelance", type="income"),
    TransactionOut(id="6", description="Restaurante", amount=150, date=date(2023, 5, 25), category="Lazer", type="expense"),
    TransactionOut(id="7", description="Salário", amount=5000, date=date(2023, 6, 1), category="Salário", type="income"),
    TransactionOut(id="8", description="Aluguel", amount=1200, date=date(2023, 6, 5), category="Moradia", type="expense"),
    TransactionOut(id="9", description="Supermercado", amount=450, date=date(2023, 6, 10), category="Alimentação", type="expense"),
]
