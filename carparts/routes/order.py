# carparts/routes/order.py
import io

from flask import Blueprint, request, jsonify, current_app, Response, send_file

from carparts.db.session import get_session
from carparts.db.enums import OrderStatus
from carparts.services.audit_log_service import AuditLogService
from carparts.services.order_service import OrderService
from carparts.services.receipt_service import PersistedOrder, render_receipt
from carparts.services.sales_report_service import SalesReportService, parse_year_month
from carparts.schemas.requests import (
    parse_body,
    OrderCreateRequest,
    OrderStatusUpdateRequest,
    ReceiptPreviewRequest,
)
from carparts.schemas.dto.order_dto import OrderDTO
from carparts.schemas.dto.report_dto import SalesReportDTO
from carparts.routes.guards import login_required, current_user
from carparts.errors import ValidationError
import pandas as pd

order_bp = Blueprint('order', __name__, url_prefix='/orders')


def build_order_service(db) -> OrderService:
    audit_log_service = AuditLogService(db)
    return OrderService(
        db,
        audit_log_service,
        max_number_attempts=current_app.config['ORDER_NUMBER_MAX_ATTEMPTS'],
    )


def _receipt_response(text: str):
    if request.args.get('format') == 'text':
        return Response(text, mimetype='text/plain; charset=utf-8')
    return jsonify({"status": "success", "data": {"receipt": text}})


@order_bp.route('', methods=['GET'])
@login_required
def list_orders():
    """Orders of the current user, newest first, optional ?status= filter."""
    status = None
    raw_status = request.args.get('status')
    if raw_status:
        try:
            status = OrderStatus(raw_status.upper())
        except ValueError:
            raise ValidationError(f"Invalid status: {raw_status}")

    db = get_session()
    try:
        order_service = build_order_service(db)
        orders = order_service.list_orders(user_id=current_user().id, status=status)
        resolved = order_service.resolve_many(orders)
        return jsonify([OrderDTO.from_domain_model(r).to_json() for r in resolved])
    finally:
        db.close()


@order_bp.route('', methods=['POST'])
@login_required
def create_order():
    body = parse_body(OrderCreateRequest, request.get_json(silent=True))

    db = get_session()
    try:
        order_service = build_order_service(db)
        result = order_service.create_order(
            user_id=current_user().id,
            items=body.to_lines(),
            total_amount=body.total_amount,
            status=body.status,
            payment_method=body.payment_method,
            customer_name=body.customer_name,
            customer_phone=body.customer_phone,
            customer_email=body.customer_email,
            car_registration=body.car_registration,
            cash_received=body.cash_received,
        )
        db.commit()

        payload = OrderDTO.from_domain_model(result.resolved).to_json()
        payload["inventoryAdjustment"] = result.inventory.to_dict()
        return jsonify(payload), 201
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@order_bp.route('/report', methods=['GET'])
@login_required
def sales_report():
    """Monthly totals over COMPLETED orders (?year=&month=, 1-indexed month)."""
    year, month = parse_year_month(request.args.get('year'), request.args.get('month'))

    db = get_session()
    try:
        report_service = SalesReportService(db, build_order_service(db))
        report = report_service.generate_sales_report(
            user_id=current_user().id,
            year=year,
            month=month,
        )
        return jsonify(SalesReportDTO.from_domain_model(report).to_json())
    finally:
        db.close()


@order_bp.route('/report/export', methods=['GET'])
@login_required
def export_sales_report():
    """Download the monthly report as an Excel workbook."""
    year, month = parse_year_month(request.args.get('year'), request.args.get('month'))

    db = get_session()
    try:
        report_service = SalesReportService(db, build_order_service(db))
        report = report_service.generate_sales_report(
            user_id=current_user().id,
            year=year,
            month=month,
        )
        df = report_service.generate_df_report(report)

        output = io.BytesIO()
        with pd.ExcelWriter(output, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name=f"{year}-{month:02d}")
        output.seek(0)

        return send_file(
            output,
            mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
            as_attachment=True,
            download_name=f"sales_report_{year}_{month:02d}.xlsx",
        )
    finally:
        db.close()


@order_bp.route('/receipt/preview', methods=['POST'])
@login_required
def preview_receipt():
    """Render a receipt from a self-contained order shape without storing anything."""
    body = parse_body(ReceiptPreviewRequest, request.get_json(silent=True))
    return _receipt_response(render_receipt(body.to_receipt_input()))


@order_bp.route('/<order_id>', methods=['GET'])
@login_required
def get_order(order_id):
    db = get_session()
    try:
        order_service = build_order_service(db)
        order = order_service.get_order(user_id=current_user().id, order_id=order_id)
        return jsonify(OrderDTO.from_domain_model(order_service.resolve(order)).to_json())
    finally:
        db.close()


@order_bp.route('/<order_id>', methods=['PUT'])
@login_required
def update_order_status(order_id):
    """Status / payment transition."""
    body = parse_body(OrderStatusUpdateRequest, request.get_json(silent=True))

    db = get_session()
    try:
        order_service = build_order_service(db)
        resolved = order_service.update_order_status(
            user_id=current_user().id,
            order_id=order_id,
            status=body.status,
            payment_method=body.payment_method,
            cash_received=body.cash_received,
        )
        db.commit()
        return jsonify(OrderDTO.from_domain_model(resolved).to_json())
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@order_bp.route('/<order_id>/receipt', methods=['GET'])
@login_required
def order_receipt(order_id):
    db = get_session()
    try:
        order_service = build_order_service(db)
        order = order_service.get_order(user_id=current_user().id, order_id=order_id)
        resolved = order_service.resolve(order)
        text = render_receipt(PersistedOrder(order=order, parts=resolved.parts))
        return _receipt_response(text)
    finally:
        db.close()
