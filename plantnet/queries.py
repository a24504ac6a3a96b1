# plantnet/queries.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import Integer, cast, update
from sqlalchemy.orm import Session

from .models import Order, Plant, User, order_doc


def get_user(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_plant(db: Session, plant_id: int) -> Optional[Plant]:
    return db.query(Plant).filter(Plant.id == plant_id).first()


def get_order(db: Session, order_id: int) -> Optional[Order]:
    return db.query(Order).filter(Order.id == order_id).first()


def increment_quantity(db: Session, plant_id: int, delta: int) -> int:
    """Atomic `quantity = quantity + delta`. Returns the number of matched plants."""
    result = db.execute(
        update(Plant)
        .where(Plant.id == plant_id)
        .values(quantity=Plant.quantity + delta)
    )
    db.commit()
    return result.rowcount


def _orders_with_plant(db: Session, criterion, plant_fields: List[str]) -> List[Dict[str, Any]]:
    """
    Orders matching `criterion`, each joined to the plant its plant_id string
    points at. Inner join: orders whose plant is gone drop out of the result.
    Only `plant_fields` are copied onto the order; the plant itself is not returned.
    """
    rows = (
        db.query(Order, Plant)
        .join(Plant, Plant.id == cast(Order.plant_id, Integer))
        .filter(criterion)
        .order_by(Order.id)
        .all()
    )

    out: List[Dict[str, Any]] = []
    for order, plant in rows:
        doc = order_doc(order)
        for field in plant_fields:
            doc[field] = getattr(plant, field)
        out.append(doc)
    return out


def customer_orders(db: Session, email: str) -> List[Dict[str, Any]]:
    return _orders_with_plant(db, Order.customer_email == email, ["name", "image", "category"])


def seller_orders(db: Session, email: str) -> List[Dict[str, Any]]:
    return _orders_with_plant(db, Order.seller == email, ["name"])
