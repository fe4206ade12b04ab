# logistics/services/deliveries.py
"""
Delivery status rules.

pending → assigned → picked_up → in_transit → delivered
pending / assigned → cancelled
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from logistics.schemas.delivery import DeliveryOut

TRANSITIONS = {
    "pending": {"assigned", "cancelled"},
    "assigned": {"picked_up", "cancelled"},
    "picked_up": {"in_transit"},
    "in_transit": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}


class InvalidTransition(ValueError):
    pass


def can_transition(current: str, new: str) -> bool:
    return new in TRANSITIONS.get(current, set())


def status_patch(
    delivery: Dict[str, Any],
    new_status: str,
    default_fee: int,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Fields to write for a status change; raises InvalidTransition."""
    current = delivery.get("status", "pending")
    if not can_transition(current, new_status):
        raise InvalidTransition(f"{current} → {new_status}")

    now = now or datetime.now(timezone.utc)
    patch: Dict[str, Any] = {"status": new_status, "statusUpdatedAt": now}
    if new_status == "picked_up":
        patch["pickupTime"] = now
    elif new_status == "in_transit":
        patch["startTime"] = now
    elif new_status == "delivered":
        patch["deliveryTime"] = now
        patch["endTime"] = now
        patch["completedAt"] = now
        if not delivery.get("driverEarnings"):
            patch["driverEarnings"] = delivery.get("deliveryFee") or default_fee
    return patch


def assign_patch(delivery: Dict[str, Any], driver_id: str) -> Dict[str, Any]:
    current = delivery.get("status", "pending")
    if current == "assigned":
        # reassignment keeps the status
        return {"driverId": driver_id}
    if not can_transition(current, "assigned"):
        raise InvalidTransition(f"{current} → assigned")
    return {"driverId": driver_id, "status": "assigned", "statusUpdatedAt": datetime.now(timezone.utc)}


def to_delivery_out(src: Dict[str, Any]) -> DeliveryOut:
    return DeliveryOut(
        id=src.get("id", ""),
        company_id=src.get("companyId", ""),
        customer_id=src.get("customerId", ""),
        customer_name=src.get("customerName", "") or "",
        driver_id=src.get("driverId"),
        delivery_address=src.get("deliveryAddress", "") or "",
        items=src.get("items") or [],
        status=src.get("status", "pending"),
        delivery_fee=src.get("deliveryFee"),
        driver_earnings=src.get("driverEarnings"),
        note=src.get("note", "") or "",
    )
