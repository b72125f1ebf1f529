# order_store.py
import logging
import random
import string
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    create_engine,
)
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

import pricing_config as cfg
from catalog import (
    Catalog,
    Material,
    MaterialThickness,
    Option,
    default_catalog,
    resolve_material_class,
    resolve_option_type,
)
from quote_cart import Cart
from quote_models import SelectedOption

logger = logging.getLogger(__name__)

Base = declarative_base()
engine = None
SessionLocal = None

SELECTED_OPTIONS_VERSION = 2


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


# ----------------------------
# Catalog tables
# ----------------------------
class MaterialRow(Base):
    __tablename__ = "materials"

    id = Column(String, primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    description = Column(String, default="")
    base_price = Column(Float, default=0)
    material_class = Column(String, nullable=False, default="plywood_standard")
    is_active = Column(Boolean, default=True)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=_now)


class ThicknessRow(Base):
    __tablename__ = "material_thicknesses"

    id = Column(String, primary_key=True, default=_uuid)
    material_id = Column(String, ForeignKey("materials.id"), nullable=False, index=True)
    thickness_mm = Column(Float, nullable=False)
    price = Column(Float, nullable=False)
    size = Column(Integer, default=0)  # 0 = 3x6, 1 = 4x8
    is_available = Column(Boolean, default=True)


class OptionRow(Base):
    __tablename__ = "options"

    id = Column(String, primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    description = Column(String, default="")
    price = Column(Float, nullable=False)
    option_type = Column(String, nullable=False)
    unit = Column(String, default="")
    is_active = Column(Boolean, default=True)
    sort_order = Column(Integer, default=0)


# ----------------------------
# Orders
# ----------------------------
class Order(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    order_number = Column(String, unique=True, nullable=False)
    status = Column(String, nullable=False, default="pending")

    total_amount = Column(Integer, nullable=False)  # yen, copied from the cart
    points_used = Column(Integer, default=0)

    shipping_address = Column(JSON, nullable=False)
    payment_method = Column(String, nullable=False)
    payment_status = Column(String, nullable=False, default="pending")
    customer_email = Column(String, nullable=True)
    shipping_eta = Column(String, nullable=True)

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String, primary_key=True, default=_uuid)
    order_id = Column(String, ForeignKey("orders.id"), nullable=False, index=True)

    width_mm = Column(Integer, nullable=False)
    depth_mm = Column(Integer, nullable=False)
    height_mm = Column(Integer, nullable=False)
    material_id = Column(String, nullable=False)
    thickness_id = Column(String, nullable=False)

    selected_options = Column(JSON, nullable=True)
    bend_buckle_config = Column(JSON, nullable=True)  # workshop reference only
    special_requests = Column(String, nullable=True)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Integer, nullable=False)
    subtotal = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")


# ----------------------------
# Setup
# ----------------------------
def configure_database(url: str) -> None:
    global engine, SessionLocal

    if url.startswith("sqlite"):
        # one shared connection so an in-memory database survives across sessions
        engine = create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    else:
        engine = create_engine(url, pool_pre_ping=True)
    SessionLocal = sessionmaker(bind=engine)

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_catalog(db, default_catalog())
    finally:
        db.close()


def seed_catalog(db: Session, catalog: Catalog) -> bool:
    """Load the default catalog into an empty database. Returns True if it seeded."""
    if db.query(MaterialRow).first() is not None:
        return False

    for m in catalog.materials:
        db.add(
            MaterialRow(
                id=m.id,
                name=m.name,
                description=m.description,
                base_price=m.base_price,
                material_class=m.material_class.value,
                is_active=m.is_active,
                sort_order=m.sort_order,
            )
        )
    for t in catalog.thicknesses:
        db.add(
            ThicknessRow(
                id=t.id,
                material_id=t.material_id,
                thickness_mm=t.thickness_mm,
                price=t.price,
                size=t.size,
                is_available=t.is_available,
            )
        )
    for o in catalog.options:
        db.add(
            OptionRow(
                id=o.id,
                name=o.name,
                description=o.description,
                price=o.price,
                option_type=o.option_type.value,
                unit=o.unit,
                is_active=o.is_active,
                sort_order=o.sort_order,
            )
        )
    db.commit()
    logger.info(
        "seeded catalog: %d materials, %d thicknesses, %d options",
        len(catalog.materials),
        len(catalog.thicknesses),
        len(catalog.options),
    )
    return True


# ----------------------------
# Catalog records
# ----------------------------
def material_record(row: MaterialRow) -> Material:
    return Material(
        id=row.id,
        name=row.name,
        material_class=resolve_material_class(row.material_class),
        description=row.description or "",
        base_price=row.base_price or 0,
        is_active=bool(row.is_active),
        sort_order=row.sort_order or 0,
    )


def thickness_record(row: ThicknessRow) -> MaterialThickness:
    return MaterialThickness(
        id=row.id,
        material_id=row.material_id,
        thickness_mm=row.thickness_mm,
        price=row.price,
        size=row.size or 0,
        is_available=bool(row.is_available),
    )


def option_record(row: OptionRow) -> Option:
    return Option(
        id=row.id,
        name=row.name,
        option_type=resolve_option_type(row.option_type),
        price=row.price,
        unit=row.unit or "",
        description=row.description or "",
        is_active=bool(row.is_active),
        sort_order=row.sort_order or 0,
    )


def load_catalog(db: Session) -> Catalog:
    return Catalog(
        materials=[material_record(r) for r in db.query(MaterialRow).order_by(MaterialRow.sort_order)],
        thicknesses=[thickness_record(r) for r in db.query(ThicknessRow).order_by(ThicknessRow.thickness_mm)],
        options=[option_record(r) for r in db.query(OptionRow).order_by(OptionRow.sort_order)],
    )


def _apply(row, fields: Dict[str, Any]):
    for key, value in fields.items():
        if value is not None:
            setattr(row, key, value)
    return row


def save_row(db: Session, row):
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_row(db: Session, model, row_id: str, fields: Dict[str, Any]):
    row = db.get(model, row_id)
    if row is None:
        return None
    return save_row(db, _apply(row, fields))


def delete_row(db: Session, model, row_id: str) -> bool:
    row = db.get(model, row_id)
    if row is None:
        return False
    db.delete(row)
    db.commit()
    return True


def delete_material(db: Session, material_id: str) -> bool:
    """Delete a material together with its thickness rows."""
    row = db.get(MaterialRow, material_id)
    if row is None:
        return False
    db.query(ThicknessRow).filter(ThicknessRow.material_id == material_id).delete()
    db.delete(row)
    db.commit()
    logger.info("material %s deleted", material_id)
    return True


# ----------------------------
# selected_options at rest
# ----------------------------
def encode_selected_options(options: Iterable[SelectedOption]) -> Dict[str, Any]:
    return {
        "version": SELECTED_OPTIONS_VERSION,
        "options": [o.to_dict() for o in options],
    }


def decode_selected_options(raw: Any) -> List[Dict[str, Any]]:
    """
    Read any stored shape back as a list of option objects.

    v2: {"version": 2, "options": [{...}]}
    v1: a bare list, either option-id strings or {option_id, quantity, ...} objects
    """
    if raw is None:
        return []

    if isinstance(raw, dict):
        version = raw.get("version")
        if version != SELECTED_OPTIONS_VERSION:
            raise ValueError(f"unsupported selected_options version: {version}")
        return [dict(o) for o in raw.get("options") or []]

    if isinstance(raw, list):
        out = []
        for entry in raw:
            if isinstance(entry, str):
                out.append({"option_id": entry, "quantity": 1})
            elif isinstance(entry, dict):
                out.append(dict(entry))
            else:
                raise ValueError(f"unsupported selected_options entry: {entry!r}")
        return out

    raise ValueError(f"unsupported selected_options value: {type(raw).__name__}")


# ----------------------------
# Orders
# ----------------------------
def generate_order_number() -> str:
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=9))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


def create_order_from_cart(
    db: Session,
    cart: Cart,
    *,
    user_id: str,
    shipping_address: Dict[str, Any],
    payment_method: str,
    points_used: int = 0,
    customer_email: Optional[str] = None,
) -> Order:
    """Persist the cart as an order. Prices are copied from the cart lines as-is."""
    if len(cart) == 0:
        raise ValueError("cart is empty")
    if payment_method not in cfg.PAYMENT_METHODS:
        raise ValueError(f"unsupported payment method: {payment_method}")

    order = Order(
        user_id=user_id,
        order_number=generate_order_number(),
        status="pending",
        total_amount=cart.total_amount,
        points_used=points_used or 0,
        shipping_address=shipping_address,
        payment_method=payment_method,
        payment_status="pending",
        customer_email=customer_email,
    )

    for line in cart.lines:
        q = line.quote
        order.items.append(
            OrderItem(
                width_mm=q.width_mm,
                depth_mm=q.depth_mm,
                height_mm=q.height_mm,
                material_id=q.material.id,
                thickness_id=q.thickness.id,
                selected_options=encode_selected_options(q.selected_options),
                bend_buckle_config=q.bend_buckle_config.to_dict() if q.bend_buckle_config else None,
                special_requests=q.special_requests or None,
                quantity=line.quantity,
                unit_price=line.total_price,
                subtotal=line.line_total,
            )
        )

    # order and items commit together or not at all
    try:
        db.add(order)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(order)

    logger.info("order created: %s user=%s total=%s", order.order_number, user_id, order.total_amount)
    return order


def update_order_status(db: Session, order_id: str, status: str, shipping_eta: Optional[str] = None) -> Optional[Order]:
    if status not in cfg.ORDER_STATUSES:
        raise ValueError(f"unsupported status: {status}")

    order = db.get(Order, order_id)
    if order is None:
        return None

    previous = order.status
    order.status = status
    order.updated_at = _now()
    if shipping_eta:
        order.shipping_eta = shipping_eta
    db.commit()
    db.refresh(order)

    logger.info("order %s status %s -> %s", order.order_number, previous, status)
    return order


def list_orders(db: Session, *, user_id: Optional[str] = None, status: Optional[str] = None, limit: int = 50) -> List[Order]:
    q = db.query(Order)
    if user_id is not None:
        q = q.filter(Order.user_id == user_id)
    if status and status != "all":
        q = q.filter(Order.status == status)
    return q.order_by(Order.created_at.desc()).limit(limit).all()


def order_to_dict(o: Order, *, include_items: bool = False) -> Dict[str, Any]:
    d = {
        "id": o.id,
        "user_id": o.user_id,
        "order_number": o.order_number,
        "status": o.status,
        "total_amount": o.total_amount,
        "points_used": o.points_used,
        "shipping_address": o.shipping_address,
        "payment_method": o.payment_method,
        "payment_status": o.payment_status,
        "customer_email": o.customer_email,
        "shipping_eta": o.shipping_eta,
        "created_at": o.created_at.isoformat() if o.created_at else None,
        "updated_at": o.updated_at.isoformat() if o.updated_at else None,
    }
    if include_items:
        d["items"] = [
            {
                "id": item.id,
                "width_mm": item.width_mm,
                "depth_mm": item.depth_mm,
                "height_mm": item.height_mm,
                "material_id": item.material_id,
                "thickness_id": item.thickness_id,
                "selected_options": decode_selected_options(item.selected_options),
                "bend_buckle_config": item.bend_buckle_config,
                "special_requests": item.special_requests,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "subtotal": item.subtotal,
            }
            for item in o.items
        ]
    return d
