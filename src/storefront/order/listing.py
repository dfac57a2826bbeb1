"""Order read path: the shopper's own orders and the admin order list."""

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.order.administration import order_by_number
from storefront.order.order import Order, OrderStatus, PaymentStatus, _parse

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _list_entry(order):
    entry = order.summary()
    entry["item_count"] = len(order.items)
    return entry


def _page(filters, page, limit):
    if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError({"page": [f"Page must be 1 or more and limit between 1 and {MAX_PAGE_SIZE}"]})

    query = current_domain.repository_for(Order)._dao.query
    if filters:
        query = query.filter(**filters)
    result = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()

    return {
        "data": [_list_entry(order) for order in result.items],
        "meta": {
            "total": result.total,
            "page": page,
            "limit": limit,
            "total_pages": -(-result.total // limit),
        },
    }


def _status_filters(status=None, payment_status=None):
    filters = {}
    if status:
        filters["status"] = _parse(OrderStatus, status, "status").value
    if payment_status:
        filters["payment_status"] = _parse(PaymentStatus, payment_status, "payment_status").value
    return filters


def customer_order(number, customer_id=None):
    """An order as its owner sees it.

    Orders placed by a signed-in customer are visible to that customer only;
    anyone else gets not-found, which does not reveal that the number exists.
    Guest orders are visible by number.
    """
    order = order_by_number(number)
    if order.customer_id and str(order.customer_id) != str(customer_id):
        raise ObjectNotFoundError(f"Order {number} does not exist")
    return order


def customer_orders(customer_id, page=1, limit=DEFAULT_PAGE_SIZE, status=None):
    """One page of a customer's orders, newest first. Guests have none."""
    if not customer_id:
        return {"data": [], "meta": {"total": 0, "page": page, "limit": limit, "total_pages": 0}}
    filters = _status_filters(status)
    filters["customer_id"] = str(customer_id)
    return _page(filters, page, limit)


def admin_orders(page=1, limit=DEFAULT_PAGE_SIZE, status=None, payment_status=None):
    """One page of all orders, newest first, optionally narrowed by status."""
    return _page(_status_filters(status, payment_status), page, limit)
