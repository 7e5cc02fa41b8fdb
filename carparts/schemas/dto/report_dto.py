from typing import Dict, List
from datetime import datetime

from carparts.services.sales_report_service import SalesReport
from carparts.schemas.dto.base_dto import BaseDTO
from carparts.schemas.dto.order_dto import OrderDTO


class DateRangeDTO(BaseDTO):
    start: datetime
    end: datetime


class SalesReportDTO(BaseDTO):
    total_sales: float
    sales_by_payment_method: Dict[str, float]
    orders: List[OrderDTO]
    date_range: DateRangeDTO

    @classmethod
    def from_domain_model(cls, report: SalesReport) -> "SalesReportDTO":
        return cls(
            total_sales=float(report.total_sales),
            sales_by_payment_method={
                method: float(amount)
                for method, amount in report.sales_by_payment_method.items()
            },
            orders=[OrderDTO.from_domain_model(o) for o in report.orders],
            date_range=DateRangeDTO(start=report.start, end=report.end),
        )
