"""
FILE: nexuschain/notifications/relay.py
Domain event → addressed notification mapping, best-effort dispatch

Addresses:
    product:{id}   clients tracking one product
    user:{id}      every socket of one user
    role:{ROLE}    every socket of users holding ROLE
    *              every connected socket
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol
import logging

from nexuschain.shared.models import KnownStatus

logger = logging.getLogger(__name__)

BROADCAST = "*"

Payload = Dict[str, Any]


def product_room(product_id: Any) -> str:
    return f"product:{product_id}"


def user_room(user_id: Any) -> str:
    return f"user:{user_id}"


def role_room(role: Any) -> str:
    return f"role:{getattr(role, 'value', role)}"


@dataclass(frozen=True)
class Notification:
    address: str
    event: str
    payload: Payload


class Transport(Protocol):
    async def send(self, address: str, event: str, payload: Payload) -> None:
        ...


# Event builders — pure, operate on serialized (camelCase) dicts

def product_created(product: Payload) -> List[Notification]:
    return [
        Notification(user_room(product["manufacturerId"]), "product:created", {
            "product": product,
            "message": "Product registered successfully",
        }),
        Notification(role_room("ADMIN"), "product:created", {
            "product": product,
            "message": f"New product registered: {product['name']}",
        }),
    ]


def product_updated(product: Payload) -> List[Notification]:
    return [
        Notification(product_room(product["id"]), "product:updated", {
            "product": product,
            "message": "Product updated",
        }),
        Notification(user_room(product["manufacturerId"]), "product:updated", {
            "product": product,
            "message": "Your product was updated",
        }),
    ]


def checkpoint_added(checkpoint: Payload, product: Payload) -> List[Notification]:
    return [
        Notification(product_room(product["id"]), "checkpoint:added", {
            "checkpoint": checkpoint,
            "product": product,
            "message": f"New checkpoint: {checkpoint['location']}",
        }),
        Notification(user_room(product["manufacturerId"]), "checkpoint:added", {
            "checkpoint": checkpoint,
            "product": product,
            "message": f"New checkpoint added for {product['name']}",
        }),
    ]


def checkpoint_updated(checkpoint: Payload) -> List[Notification]:
    return [
        Notification(product_room(checkpoint["productId"]), "checkpoint:updated", {
            "checkpoint": checkpoint,
            "message": "Checkpoint updated",
        }),
    ]


def checkpoint_deleted(checkpoint_id: Any, product: Payload) -> List[Notification]:
    return [
        Notification(product_room(product["id"]), "checkpoint:deleted", {
            "checkpointId": str(checkpoint_id),
            "product": product,
            "message": "Checkpoint deleted",
        }),
    ]


def status_changed(old_status: str, new_status: str, product: Payload) -> List[Notification]:
    notifications = [
        Notification(product_room(product["id"]), "product:status:changed", {
            "productId": product["id"],
            "oldStatus": old_status,
            "newStatus": new_status,
            "message": f"Status changed from {old_status} to {new_status}",
        }),
        Notification(user_room(product["manufacturerId"]), "product:status:changed", {
            "productId": product["id"],
            "oldStatus": old_status,
            "newStatus": new_status,
            "product": product,
            "message": f"{product['name']} status changed to {new_status}",
        }),
    ]
    if new_status == KnownStatus.DELIVERED:
        notifications.append(
            Notification(role_room("LOGISTICS"), "product:delivered", {
                "product": product,
                "message": f"Product delivered: {product['name']}",
            })
        )
    return notifications


def location_updated(
    old_location: Optional[str], new_location: str, checkpoint: Payload, product: Payload
) -> List[Notification]:
    return [
        Notification(product_room(product["id"]), "product:location:updated", {
            "productId": product["id"],
            "oldLocation": old_location,
            "newLocation": new_location,
            "checkpoint": checkpoint,
            "message": f"Location updated to {new_location}",
        }),
    ]


def temperature_alert(
    checkpoint: Payload, product: Payload, alert_type: str, threshold: float
) -> List[Notification]:
    data = {
        "checkpoint": checkpoint,
        "product": product,
        "alertType": alert_type,
        "temperature": checkpoint["temperature"],
        "threshold": threshold,
        "message": f"Temperature alert for {product['name']}: {checkpoint['temperature']}°C",
    }
    return [
        Notification(product_room(product["id"]), "temperature:alert", data),
        Notification(user_room(product["manufacturerId"]), "temperature:alert", data),
        Notification(role_room("LOGISTICS"), "temperature:alert", data),
        Notification(role_room("ADMIN"), "temperature:alert", data),
    ]


def blockchain_confirmed(product: Payload, transaction_hash: str) -> List[Notification]:
    return [
        Notification(product_room(product["id"]), "blockchain:confirmed", {
            "product": product,
            "transactionHash": transaction_hash,
            "message": "Blockchain transaction confirmed",
        }),
        Notification(user_room(product["manufacturerId"]), "blockchain:confirmed", {
            "product": product,
            "transactionHash": transaction_hash,
            "message": f"{product['name']} blockchain registration confirmed",
        }),
    ]


# Relay

class NotificationRelay:
    """
    Fire-and-forget fan-out. A failing transport is logged and skipped;
    it never propagates into the mutation that triggered it.
    """

    def __init__(self, transport: Transport):
        self.transport = transport

    async def publish(self, address: str, event: str, payload: Payload) -> bool:
        try:
            await self.transport.send(address, event, payload)
            return True
        except Exception as e:
            logger.error(f"Notification delivery failed [{event} → {address}]: {e}")
            return False

    async def dispatch(self, notifications: Iterable[Notification]) -> int:
        """Publish every notification; returns how many reached the transport."""
        delivered = 0
        for notification in notifications:
            if await self.publish(notification.address, notification.event, notification.payload):
                delivered += 1
        return delivered
