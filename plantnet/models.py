# plantnet/models.py
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import BigInteger, Column, DateTime, Float, Integer, String, Text

from .db import Base


class Role(str, enum.Enum):
    customer = "customer"
    seller = "seller"
    admin = "admin"


class UserStatus(str, enum.Enum):
    requested = "Requested"
    verified = "Verified"


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    image = Column(String, nullable=True)
    role = Column(String, nullable=False, default=Role.customer.value)
    status = Column(String, nullable=True)  # None | Requested | Verified
    timestamp = Column(BigInteger, nullable=False)  # epoch ms


class Plant(Base):
    __tablename__ = "plants"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=True)
    description = Column(Text, default="")
    image = Column(String, nullable=True)
    price = Column(Float, default=0.0)
    quantity = Column(Integer, default=0)  # may go negative, never clamped
    seller_email = Column(String, index=True, nullable=False)
    seller_name = Column(String, nullable=True)
    seller_image = Column(String, nullable=True)


class Order(Base):
    __tablename__ = "orders"
    id = Column(Integer, primary_key=True)
    plant_id = Column(String, nullable=False)  # plants.id as sent by the client
    customer_email = Column(String, index=True, nullable=False)
    customer_name = Column(String, nullable=True)
    customer_image = Column(String, nullable=True)
    seller = Column(String, index=True, nullable=False)  # seller email
    quantity = Column(Integer, default=1)
    price = Column(Float, default=0.0)
    address = Column(String, default="")
    status = Column(String, default="Pending")  # Pending | Processing | Delivered | ...
    created_at = Column(DateTime, default=datetime.utcnow)


# -------------------
# Serialisation
# -------------------
def user_doc(u: User) -> dict:
    return {
        "_id": str(u.id),
        "email": u.email,
        "name": u.name,
        "image": u.image,
        "role": u.role,
        "status": u.status,
        "timestamp": u.timestamp,
    }


def plant_doc(p: Plant) -> dict:
    return {
        "_id": str(p.id),
        "name": p.name,
        "category": p.category,
        "description": p.description,
        "image": p.image,
        "price": p.price,
        "quantity": p.quantity,
        "seller": {
            "email": p.seller_email,
            "name": p.seller_name,
            "image": p.seller_image,
        },
    }


def order_doc(o: Order) -> dict:
    return {
        "_id": str(o.id),
        "plantId": o.plant_id,
        "customer": {
            "email": o.customer_email,
            "name": o.customer_name,
            "image": o.customer_image,
        },
        "seller": o.seller,
        "quantity": o.quantity,
        "price": o.price,
        "address": o.address,
        "status": o.status,
        "created_at": o.created_at.isoformat() if o.created_at else None,
    }
