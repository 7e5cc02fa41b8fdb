# carparts/routes/cart.py
from flask import Blueprint, request, jsonify, session

from carparts.db.session import get_session
from carparts.db.enums import OrderStatus, PaymentMethod
from carparts.services.barcode_cart import BarcodeCart, CartPart
from carparts.services.part_service import PartService
from carparts.schemas.requests import (
    parse_body,
    CartScanRequest,
    CartQuantityRequest,
    CartCheckoutRequest,
)
from carparts.schemas.dto.cart_dto import CartDTO
from carparts.schemas.dto.order_dto import OrderDTO
from carparts.routes.guards import login_required, current_user
from carparts.routes.order import build_order_service
from carparts.errors import NotFoundError, ValidationError
from carparts.logger import get_logger

logger = get_logger(__name__)

cart_bp = Blueprint('cart', __name__, url_prefix='/cart')

SESSION_CART_KEY = "barcode_cart"


def _load_cart() -> BarcodeCart:
    return BarcodeCart.from_state(session.get(SESSION_CART_KEY))


def _save_cart(cart: BarcodeCart) -> None:
    session[SESSION_CART_KEY] = cart.to_state()


def _cart_response(cart: BarcodeCart):
    return jsonify(CartDTO.from_domain_model(cart).to_json())


@cart_bp.route('', methods=['GET'])
@login_required
def get_cart():
    return _cart_response(_load_cart())


@cart_bp.route('/scan', methods=['POST'])
@login_required
def scan():
    """Resolve a barcode to one of the user's parts and add one unit of it."""
    body = parse_body(CartScanRequest, request.get_json(silent=True))

    db = get_session()
    try:
        part = PartService(db).get_part_by_barcode(
            user_id=current_user().id,
            barcode=body.barcode,
        )
        cart_part = CartPart.from_part(part)
    finally:
        db.close()

    cart = _load_cart()
    cart.scan(cart_part)
    _save_cart(cart)
    return _cart_response(cart)


@cart_bp.route('/items/<part_id>', methods=['PUT'])
@login_required
def set_quantity(part_id):
    body = parse_body(CartQuantityRequest, request.get_json(silent=True))

    cart = _load_cart()
    if not cart.set_quantity(part_id, body.quantity):
        raise NotFoundError("Item not in cart")
    _save_cart(cart)
    return _cart_response(cart)


@cart_bp.route('/items/<part_id>', methods=['DELETE'])
@login_required
def remove_item(part_id):
    cart = _load_cart()
    if not cart.remove_item(part_id):
        raise NotFoundError("Item not in cart")
    _save_cart(cart)
    return _cart_response(cart)


@cart_bp.route('', methods=['DELETE'])
@login_required
def clear_cart():
    cart = _load_cart()
    cart.clear()
    _save_cart(cart)
    return _cart_response(cart)


@cart_bp.route('/checkout', methods=['POST'])
@login_required
def checkout():
    """
    Turn the cart into a COMPLETED order.
    The cart is emptied only once the order has been committed.
    """
    body = parse_body(CartCheckoutRequest, request.get_json(silent=True))

    cart = _load_cart()
    lines = cart.checkout_items()
    total_amount = cart.total_amount

    if body.payment_method == PaymentMethod.CASH:
        if body.cash_received is None:
            raise ValidationError("Cash received is required for cash payments")
        if body.cash_received < total_amount:
            raise ValidationError("Cash received is less than the total amount")

    db = get_session()
    try:
        order_service = build_order_service(db)
        result = order_service.create_order(
            user_id=current_user().id,
            items=lines,
            total_amount=total_amount,
            status=OrderStatus.COMPLETED,
            payment_method=body.payment_method,
            customer_name=body.customer_name,
            customer_phone=body.customer_phone,
            cash_received=body.cash_received,
        )
        db.commit()

        payload = OrderDTO.from_domain_model(result.resolved).to_json()
        payload["inventoryAdjustment"] = result.inventory.to_dict()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    logger.info("Cart checked out as order %s", payload.get("orderNumber"))
    cart.clear()
    _save_cart(cart)
    return jsonify(payload), 201
