from dataclasses import dataclass, field
from typing import Optional, List, Dict, Tuple
from decimal import Decimal
from datetime import datetime, date, time, timedelta

import pandas as pd
from sqlalchemy.orm import Session

from carparts.models.order import Order
from carparts.db.enums import OrderStatus, PaymentMethod
from carparts.services.order_service import OrderService, ResolvedOrder
from carparts.errors import ValidationError
from carparts.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SalesReport:
    year: int
    month: int
    start: datetime
    end: datetime
    total_sales: Decimal
    sales_by_payment_method: Dict[str, Decimal]
    orders: List[ResolvedOrder] = field(default_factory=list)


def parse_year_month(
    year: Optional[str],
    month: Optional[str],
    today: Optional[date] = None,
) -> Tuple[int, int]:
    '''
    Parse query-string year/month. Missing values default to the current
    year / month; unparsable values or a month outside 1-12 are rejected.
    '''
    today = today or date.today()
    try:
        year_num = int(year) if year not in (None, "") else today.year
        month_num = int(month) if month not in (None, "") else today.month
    except (TypeError, ValueError):
        raise ValidationError(
            "Invalid date parameters. Year must be a valid number and month must be between 1-12."
        )

    if month_num < 1 or month_num > 12 or year_num < 1 or year_num > 9999:
        raise ValidationError(
            "Invalid date parameters. Year must be a valid number and month must be between 1-12."
        )
    return year_num, month_num


def month_range(year: int, month: int) -> Tuple[datetime, datetime]:
    '''
    First instant and last instant of a calendar month, local server time.
    The end is the last day of the month at 23:59:59.999999.
    '''
    start = datetime(year, month, 1)
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    last_day = next_month - timedelta(days=1)
    end = datetime.combine(last_day, time.max)
    return start, end


class SalesReportService:
    """
    Monthly sales aggregation over COMPLETED orders of one user.
    """

    def __init__(self, db: Session, order_service: OrderService):
        self.db = db
        self.order_service = order_service

    def generate_sales_report(self, *, user_id: str, year: int, month: int) -> SalesReport:
        """
        :param user_id: report owner
        :param year: calendar year
        :param month: 1-indexed month
        :return: totals, totals per payment method, matched orders and range
        :rtype: SalesReport
        """
        start, end = month_range(year, month)
        logger.info("Generating sales report for %s-%02d (%s .. %s)", year, month, start, end)

        orders = (
            self.db.query(Order)
            .filter(
                Order.status == OrderStatus.COMPLETED,
                Order.user_id == user_id,
                Order.created_at >= start,
                Order.created_at <= end,
            )
            .order_by(Order.created_at.asc())
            .all()
        )
        logger.info("Found %d orders in date range", len(orders))

        total_sales = sum((Decimal(o.total_amount) for o in orders), Decimal("0"))

        # orders without CASH/CARD count toward the total only
        by_method = {method.value: Decimal("0") for method in PaymentMethod}
        for o in orders:
            if o.payment_method is not None:
                by_method[o.payment_method.value] += Decimal(o.total_amount)

        return SalesReport(
            year=year,
            month=month,
            start=start,
            end=end,
            total_sales=total_sales,
            sales_by_payment_method=by_method,
            orders=self.order_service.resolve_many(orders),
        )

    def generate_df_report(self, report: SalesReport) -> pd.DataFrame:
        """
        Flatten a SalesReport into one row per order plus a totals row.

        This function does NOT touch the database.
        """
        rows = []
        for resolved in report.orders:
            o = resolved.order
            rows.append({
                "Order #": o.order_number,
                "Date": o.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                "Customer": o.customer_name or "Walk-in Customer",
                "Items": sum(item.quantity for item in o.items),
                "Payment Method": o.payment_method.value if o.payment_method else "N/A",
                "Total": float(o.total_amount),
            })

        columns = ["Order #", "Date", "Customer", "Items", "Payment Method", "Total"]
        df = pd.DataFrame(rows, columns=columns)

        totals = pd.DataFrame([
            {"Order #": "TOTAL", "Total": float(report.total_sales)},
            {"Order #": "CASH", "Total": float(report.sales_by_payment_method["CASH"])},
            {"Order #": "CARD", "Total": float(report.sales_by_payment_method["CARD"])},
        ], columns=columns)

        if df.empty:
            return totals
        return pd.concat([df, totals], ignore_index=True)
