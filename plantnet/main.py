# plantnet/main.py
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks, Cookie, Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .auth import clear_session_cookie, create_token, decode_token, set_session_cookie
from .config import settings
from .db import Base, engine, get_db
from .emailer import send_email
from .models import Order, Plant, Role, User, UserStatus, plant_doc, user_doc
from .queries import (
    customer_orders,
    get_order,
    get_plant,
    get_user,
    increment_quantity,
    seller_orders,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("plantnet")

app = FastAPI(title="plantNet API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Base.metadata.create_all(bind=engine)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("%s %s %s %.1f ms", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


# -------------------
# Schemas
# -------------------
class IdentityIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    # signed as sent; users are keyed by the exact string
    email: str = Field(..., min_length=1)


class UserIn(BaseModel):
    name: Optional[str] = None
    image: Optional[str] = None


class RoleIn(BaseModel):
    role: Role


class PersonIn(BaseModel):
    email: str = Field(..., min_length=1)
    name: Optional[str] = None
    image: Optional[str] = None


class PlantIn(BaseModel):
    name: str
    category: Optional[str] = None
    description: str = ""
    image: Optional[str] = None
    price: float = 0.0
    quantity: int = 0
    seller: Optional[PersonIn] = None


class OrderIn(BaseModel):
    plantId: str = Field(..., pattern=r"^\d+$")
    customer: PersonIn
    seller: str = Field(..., min_length=1)
    quantity: int = 1
    price: float = 0.0
    address: str = ""
    status: str = "Pending"


class QuantityIn(BaseModel):
    quantityToUpdate: int
    status: Optional[str] = None


class OrderStatusIn(BaseModel):
    status: str


# -------------------
# Helpers
# -------------------
def _now_ms() -> int:
    return int(time.time() * 1000)


def _inserted(obj_id: int) -> Dict[str, Any]:
    return {"acknowledged": True, "insertedId": str(obj_id)}


def _updated(matched: int, modified: Optional[int] = None) -> Dict[str, Any]:
    return {
        "acknowledged": True,
        "matchedCount": matched,
        "modifiedCount": matched if modified is None else modified,
    }


def _deleted(count: int) -> Dict[str, Any]:
    return {"acknowledged": True, "deletedCount": count}


# -------------------
# Session + guards
# -------------------
def require_identity(
    token: str | None = Cookie(default=None),
    authorization: str | None = Header(default=None),
) -> Dict[str, Any]:
    """
    Claims of the session credential.
    Cookie first; API clients may send the same token as a Bearer header.
    """
    if not token and authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()

    if not token:
        raise HTTPException(status_code=401, detail="unauthorized access")

    claims = decode_token(token)
    if not claims or not claims.get("email"):
        raise HTTPException(status_code=401, detail="unauthorized access")
    return claims


def require_admin(
    identity: Dict[str, Any] = Depends(require_identity),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    u = get_user(db, identity["email"])
    if not u or u.role != Role.admin.value:
        raise HTTPException(status_code=403, detail="Forbidden access! Admin only action!!")
    return identity


def require_seller(
    identity: Dict[str, Any] = Depends(require_identity),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    u = get_user(db, identity["email"])
    if not u or u.role != Role.seller.value:
        raise HTTPException(status_code=403, detail="Forbidden access! Seller only action!!")
    return identity


# -------------------
# Health
# -------------------
@app.get("/")
def root():
    return {"ok": True, "service": "plantnet-api"}


# -------------------
# Users
# -------------------
@app.post("/users/{email}")
def save_user(
    email: str,
    background_tasks: BackgroundTasks,
    payload: Optional[UserIn] = None,
    db: Session = Depends(get_db),
):
    existing = get_user(db, email)
    if existing:
        return user_doc(existing)

    payload = payload or UserIn()

    u = User(
        email=email,
        name=payload.name,
        image=payload.image,
        role=Role.customer.value,
        timestamp=_now_ms(),
    )
    db.add(u)
    try:
        db.commit()
    except IntegrityError:
        # another first-contact request for the same email won the insert
        db.rollback()
        return user_doc(get_user(db, email))
    db.refresh(u)

    # no recipient: the mailer logs and skips it
    background_tasks.add_task(send_email, None, None)
    return user_doc(u)


@app.patch("/users/{email}")
def request_role_change(
    email: str,
    _identity: Dict[str, Any] = Depends(require_identity),
    db: Session = Depends(get_db),
):
    u = get_user(db, email)
    if not u or u.status == UserStatus.requested.value:
        raise HTTPException(
            status_code=400,
            detail="You have already requested, wait to verify your proposal",
        )

    u.status = UserStatus.requested.value
    db.add(u)
    db.commit()
    return _updated(1)


@app.get("/all-users/{email}")
def all_users(
    email: str,
    _admin: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    users = db.query(User).filter(User.email != email).order_by(User.id).all()
    return [user_doc(u) for u in users]


@app.patch("/user/role/{email}")
def update_user_role(
    email: str,
    payload: RoleIn,
    _admin: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db),
):
    u = get_user(db, email)
    if not u:
        return _updated(0)

    u.role = payload.role.value
    u.status = UserStatus.verified.value
    db.add(u)
    db.commit()
    return _updated(1)


@app.get("/users/role/{email}")
def user_role(email: str, db: Session = Depends(get_db)):
    u = get_user(db, email)
    return {"role": u.role if u else None}


# -------------------
# Session
# -------------------
@app.post("/jwt")
def issue_token(payload: IdentityIn, response: Response):
    token = create_token(payload.model_dump())
    set_session_cookie(response, token)
    return {"success": True}


@app.get("/logout")
def logout(response: Response):
    clear_session_cookie(response)
    return {"success": True}


# -------------------
# Plants
# -------------------
@app.get("/plants/seller")
def seller_inventory(
    seller: Dict[str, Any] = Depends(require_seller),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    plants = db.query(Plant).filter(Plant.seller_email == seller["email"]).order_by(Plant.id).all()
    return [plant_doc(p) for p in plants]


@app.delete("/plants/{plant_id}")
def delete_plant(
    plant_id: int,
    seller: Dict[str, Any] = Depends(require_seller),
    db: Session = Depends(get_db),
):
    plant = get_plant(db, plant_id)
    if not plant:
        raise HTTPException(status_code=404, detail="Plant not found")
    if plant.seller_email != seller["email"]:
        raise HTTPException(status_code=403, detail="Forbidden access! Not your plant!!")

    db.delete(plant)
    db.commit()
    return _deleted(1)


@app.post("/plants")
def add_plant(
    payload: PlantIn,
    seller: Dict[str, Any] = Depends(require_seller),
    db: Session = Depends(get_db),
):
    # listed under the caller; the body may only supply display name and image
    u = get_user(db, seller["email"])
    owner = payload.seller or PersonIn(email=seller["email"], name=u.name if u else None, image=u.image if u else None)

    plant = Plant(
        name=payload.name,
        category=payload.category,
        description=payload.description,
        image=payload.image,
        price=payload.price,
        quantity=payload.quantity,
        seller_email=seller["email"],
        seller_name=owner.name,
        seller_image=owner.image,
    )
    db.add(plant)
    db.commit()
    db.refresh(plant)
    return _inserted(plant.id)


@app.get("/plants")
def list_plants(db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    plants = db.query(Plant).order_by(Plant.id).limit(20).all()
    return [plant_doc(p) for p in plants]


@app.get("/plants/{plant_id}")
def plant_detail(plant_id: int, db: Session = Depends(get_db)):
    plant = get_plant(db, plant_id)
    if not plant:
        raise HTTPException(status_code=404, detail="Plant not found")
    return plant_doc(plant)


@app.patch("/plants/quantity/{plant_id}")
def update_quantity(
    plant_id: int,
    payload: QuantityIn,
    _identity: Dict[str, Any] = Depends(require_identity),
    db: Session = Depends(get_db),
):
    delta = payload.quantityToUpdate if payload.status == "increase" else -payload.quantityToUpdate
    matched = increment_quantity(db, plant_id, delta)
    if not matched:
        raise HTTPException(status_code=404, detail="Plant not found")
    return _updated(matched)


# -------------------
# Orders
# -------------------
@app.post("/order")
def place_order(
    payload: OrderIn,
    background_tasks: BackgroundTasks,
    _identity: Dict[str, Any] = Depends(require_identity),
    db: Session = Depends(get_db),
):
    order = Order(
        plant_id=payload.plantId,
        customer_email=str(payload.customer.email),
        customer_name=payload.customer.name,
        customer_image=payload.customer.image,
        seller=str(payload.seller),
        quantity=payload.quantity,
        price=payload.price,
        address=payload.address,
        status=payload.status,
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    logger.info("order %s placed: plant=%s customer=%s", order.id, order.plant_id, order.customer_email)

    background_tasks.add_task(
        send_email,
        order.customer_email,
        {
            "subject": "Order Successful",
            "message": f"You have placed an order successfully. Transaction id: {order.id}",
        },
    )
    background_tasks.add_task(
        send_email,
        order.seller,
        {
            "subject": "Hurry!, You have an order to process",
            "message": f"Get the plants ready for {order.customer_name}",
        },
    )
    return _inserted(order.id)


@app.get("/customer-orders/{email}")
def orders_for_customer(
    email: str,
    _identity: Dict[str, Any] = Depends(require_identity),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    return customer_orders(db, email)


@app.get("/seller-orders/{email}")
def orders_for_seller(
    email: str,
    _seller: Dict[str, Any] = Depends(require_seller),
    db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
    return seller_orders(db, email)


@app.patch("/orders/{order_id}")
def update_order_status(
    order_id: int,
    payload: OrderStatusIn,
    _seller: Dict[str, Any] = Depends(require_seller),
    db: Session = Depends(get_db),
):
    order = get_order(db, order_id)
    if not order:
        return _updated(0)

    modified = 0 if order.status == payload.status else 1
    order.status = payload.status
    db.add(order)
    db.commit()
    return _updated(1, modified)


@app.delete("/orders/{order_id}")
def cancel_order(
    order_id: int,
    _identity: Dict[str, Any] = Depends(require_identity),
    db: Session = Depends(get_db),
):
    order = get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if order.status == "Delivered":
        raise HTTPException(status_code=409, detail="Cannot cancel once the product has been delivered")

    db.delete(order)
    db.commit()
    return _deleted(1)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
