from __future__ import annotations

from typing import Any

from apps.common.phone import mask_phone

from . import workflow
from .models import Order, OrderItem, OrderStatusHistory


def _iso(value):
    return value.isoformat() if value else None


def serialize_item(item: OrderItem) -> dict[str, Any]:
    return {
        "id": str(item.id),
        "name": item.name,
        "product_id": str(item.product_id) if item.product_id else None,
        "variant_id": str(item.variant_id) if item.variant_id else None,
        "combo_id": str(item.combo_id) if item.combo_id else None,
        "quantity": item.quantity,
        "unit_price": item.unit_price_cents,
        "options_price": item.options_price_cents,
        "total_price": item.total_price_cents,
        "selected_options": item.selected_options,
        "notes": item.notes,
    }


def serialize_history(row: OrderStatusHistory) -> dict[str, Any]:
    return {
        "previous_status": row.previous_status,
        "status": row.status,
        "changed_by_type": row.changed_by_type,
        "changed_by_id": row.changed_by_id,
        "notes": row.notes,
        "created_at": _iso(row.created_at),
    }


def serialize_order_summary(order: Order) -> dict[str, Any]:
    """Compact shape pushed to the restaurant screens and the driver app."""
    driver = order.driver if order.driver_id else None
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "restaurant_id": str(order.restaurant_id),
        "status": order.status,
        "status_label": order.get_status_display(),
        "service_type": order.service_type,
        "customer_name": order.customer_name,
        "customer_phone": mask_phone(order.customer_phone),
        "total": order.total_cents,
        "driver": {"id": str(driver.id), "name": driver.name} if driver else None,
        "estimated_ready_at": _iso(order.estimated_ready_at),
        "created_at": _iso(order.created_at),
        "version": order.version,
        "actions": workflow.flags(order),
    }


def serialize_order_detail(order: Order, *, full_phone: bool = False) -> dict[str, Any]:
    data = serialize_order_summary(order)
    if full_phone:
        data["customer_phone"] = order.customer_phone
    data.update(
        {
            "zone": order.zone,
            "payment_status": order.payment_status,
            "payment_method": order.payment_method,
            "customer_email": order.customer_email,
            "delivery_address": order.delivery_address,
            "notes": order.notes,
            "subtotal": order.subtotal_cents,
            "delivery_fee": order.delivery_fee_cents,
            "discount": order.discount_cents,
            "cancellation_reason": order.cancellation_reason,
            "timestamps": {
                "ready_at": _iso(order.ready_at),
                "assigned_to_driver_at": _iso(order.assigned_to_driver_at),
                "picked_up_at": _iso(order.picked_up_at),
                "delivered_at": _iso(order.delivered_at),
                "completed_at": _iso(order.completed_at),
                "cancelled_at": _iso(order.cancelled_at),
            },
            "items": [serialize_item(i) for i in order.items.all()],
            "history": [serialize_history(h) for h in order.status_history.all()],
        }
    )
    return data
