"""
HTTP client for the Expense Manager API.

Every call returns a Result instead of raising: either the decoded data or
an Unavailable describing why there is none (network error, timeout after
the fixed ceiling, or a non-2xx answer). Calls are never retried.

The session token is an argument of each authenticated call; the client
keeps no "current token" of its own.

Whether to show demo content when the API is unavailable is the caller's
decision: see dashboard_or_demo() and transactions_or_demo().
"""

import argparse
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Generic, List, Optional, Tuple, TypeVar, Union

import requests
import structlog
from pydantic import ValidationError as PydanticValidationError

from aggregation import aggregate
from sample_data import SAMPLE_TRANSACTIONS
from schemas import DashboardSummary, Identity, TransactionIn, TransactionOut
from settings import get_client_settings

logger = structlog.get_logger(__name__)

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Unavailable:
    reason: str
    status_code: Optional[int] = None


@dataclass(frozen=True)
class Result(Generic[T]):
    data: Optional[T] = None
    error: Optional[Unavailable] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        return self.data if self.ok else default

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        if not self.ok:
            return Result(error=self.error)
        try:
            return Result(data=fn(self.data))
        except (PydanticValidationError, KeyError, TypeError, ValueError):
            return Result(error=Unavailable("Unexpected response from server"))


class ExpenseClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        settings = get_client_settings()
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.timeout
        self.session = session or requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Result[Any]:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        url = self.base_url + path

        try:
            response = self.session.request(
                method, url, headers=headers, json=json, params=params, timeout=self.timeout
            )
        except requests.Timeout:
            logger.info("request_timed_out", method=method, path=path)
            return Result(error=Unavailable("Request timed out"))
        except requests.RequestException as e:
            logger.info("request_failed", method=method, path=path, error=str(e))
            return Result(error=Unavailable("Server unreachable"))

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.ok:
            detail = body.get("detail") if isinstance(body, dict) else None
            return Result(error=Unavailable(detail or response.reason or "Request failed", response.status_code))
        if body is None:
            return Result(error=Unavailable("Unexpected response from server", response.status_code))
        return Result(data=body)

    # ----------------------
    # Auth
    # ----------------------
    def register(self, email: str, password: str) -> Result[str]:
        return self._request("POST", "/auth/register", json={"email": email, "password": password}) \
            .map(lambda body: body["message"])

    def login(self, email: str, password: str) -> Result[str]:
        return self._request("POST", "/auth/login", json={"email": email, "password": password}) \
            .map(lambda body: body["token"])

    def me(self, token: str) -> Result[Identity]:
        return self._request("GET", "/auth/me", token=token).map(Identity.model_validate)

    # ----------------------
    # Transactions
    # ----------------------
    def list_transactions(
        self,
        token: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category: Optional[str] = None,
    ) -> Result[List[TransactionOut]]:
        params = {}
        if start_date:
            params["startDate"] = start_date.isoformat()
        if end_date:
            params["endDate"] = end_date.isoformat()
        if category:
            params["category"] = category
        return self._request("GET", "/transactions", token=token, params=params) \
            .map(lambda body: [TransactionOut.model_validate(item) for item in body])

    def get_transaction(self, token: str, transaction_id: str) -> Result[TransactionOut]:
        return self._request("GET", f"/transactions/{transaction_id}", token=token) \
            .map(TransactionOut.model_validate)

    def create_transaction(self, token: str, fields: TransactionIn) -> Result[TransactionOut]:
        return self._request("POST", "/transactions", token=token, json=fields.model_dump(mode="json")) \
            .map(TransactionOut.model_validate)

    def update_transaction(self, token: str, transaction_id: str, fields: TransactionIn) -> Result[TransactionOut]:
        return self._request(
            "PUT", f"/transactions/{transaction_id}", token=token, json=fields.model_dump(mode="json")
        ).map(TransactionOut.model_validate)

    def delete_transaction(self, token: str, transaction_id: str) -> Result[str]:
        return self._request("DELETE", f"/transactions/{transaction_id}", token=token) \
            .map(lambda body: body["message"])

    def dashboard(self, token: str) -> Result[DashboardSummary]:
        return self._request("GET", "/dashboard", token=token).map(DashboardSummary.model_validate)


# ----------------------
# Presentation helpers
# ----------------------
def dashboard_or_demo(result: Result[DashboardSummary]) -> Tuple[DashboardSummary, bool]:
    """Return (summary, is_demo); the demo summary is aggregated from the sample set."""
    if result.ok:
        return result.data, False
    return aggregate(SAMPLE_TRANSACTIONS), True


def transactions_or_demo(result: Result[List[TransactionOut]]) -> Tuple[List[TransactionOut], bool]:
    if result.ok:
        return result.data, False
    return list(SAMPLE_TRANSACTIONS), True


def format_amount(value: Union[int, float]) -> str:
    return f"{value:,.2f}"


def render_dashboard(summary: DashboardSummary, is_demo: bool = False) -> str:
    lines = []
    if is_demo:
        lines.append("[demo data: the server is unavailable]")
    lines.append(f"Income:  {format_amount(summary.total_income)}")
    lines.append(f"Expense: {format_amount(summary.total_expense)}")
    lines.append(f"Balance: {format_amount(summary.balance)}")

    if summary.category_totals:
        lines.append("")
        lines.append("Expenses by category")
        for item in summary.category_totals:
            lines.append(f"  {item.category}: {format_amount(item.total)}")

    if summary.monthly_data:
        lines.append("")
        lines.append("Month     Income      Expense     Balance")
        for m in summary.monthly_data:
            lines.append(
                f"{m.month}  {format_amount(m.income):>10}  {format_amount(m.expense):>10}  {format_amount(m.balance):>10}"
            )
    return "\n".join(lines)


def distinct_categories(transactions: List[TransactionOut]) -> List[str]:
    """Categories in first-seen order, for a filter picker."""
    return list(dict.fromkeys(t.category for t in transactions))


def render_transactions(transactions: List[TransactionOut], is_demo: bool = False) -> str:
    lines = []
    if is_demo:
        lines.append("[demo data: the server is unavailable]")
    if not transactions:
        lines.append("No transactions found.")
        return "\n".join(lines)

    lines.append(f"{'Date':<10}  {'Description':<20}  {'Category':<15}  {'Type':<7}  {'Amount':>10}")
    for t in transactions:
        sign = "-" if t.type == "expense" else "+"
        lines.append(
            f"{t.date.isoformat():<10}  {t.description:<20}  {t.category:<15}  {t.type:<7}  "
            f"{sign + format_amount(t.amount):>10}"
        )
    lines.append("")
    lines.append("Categories: " + ", ".join(distinct_categories(transactions)))
    return "\n".join(lines)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Show the expense dashboard or transaction list for an account.")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("view", nargs="?", choices=["dashboard", "transactions"], default="dashboard")
    parser.add_argument("--api-url", default=None, help="API base URL")
    parser.add_argument("--start-date", type=date.fromisoformat, default=None, help="YYYY-MM-DD, inclusive")
    parser.add_argument("--end-date", type=date.fromisoformat, default=None, help="YYYY-MM-DD, inclusive")
    parser.add_argument("--category", default=None)
    args = parser.parse_args(argv)

    client = ExpenseClient(base_url=args.api_url)
    login = client.login(args.email, args.password)
    if login.error and login.error.status_code in (400, 401, 403):
        print(f"Login failed: {login.error.reason}")
        return 1

    if not login.ok:
        result = Result(error=login.error)
    elif args.view == "transactions":
        result = client.list_transactions(
            login.data, start_date=args.start_date, end_date=args.end_date, category=args.category
        )
    else:
        result = client.dashboard(login.data)

    if result.error and result.error.status_code in (401, 403):
        print(f"Session rejected: {result.error.reason}")
        return 1

    if args.view == "transactions":
        transactions, is_demo = transactions_or_demo(result)
        print(render_transactions(transactions, is_demo))
    else:
        summary, is_demo = dashboard_or_demo(result)
        print(render_dashboard(summary, is_demo))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
