import logging
import os
from dataclasses import asdict
from typing import Dict, List, Literal, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

import order_store
from catalog import Catalog, OptionType, default_catalog
from notifications import send_order_received
from order_store import MaterialRow, OptionRow, Order, ThicknessRow
from quote_builder import QuoteBuilder
from quote_cart import Cart
from quote_models import BendBuckleConfig
from quote_pdf import make_quote_pdf
from validation import QuoteError

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)


# ----------------------------
# App + config
# ----------------------------
app = FastAPI(title="Crate Quote API", version="1.0.0")

ALLOWED_ORIGINS = [
    o.strip()
    for o in os.environ.get("ALLOWED_ORIGINS", "http://localhost:5173").split(",")
    if o.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Admin key for /admin/* routes
API_KEY = os.environ.get("API_KEY", "")

DATABASE_URL = os.environ.get("DATABASE_URL", "")
if DATABASE_URL:
    order_store.configure_database(DATABASE_URL)

# Per-session carts, keyed by a client-chosen cart id. Never shared.
CARTS: Dict[str, Cart] = {}


# ----------------------------
# Errors
# ----------------------------
@app.exception_handler(QuoteError)
async def quote_error_handler(request: Request, exc: QuoteError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": exc.message,
            "error_type": exc.code,
            "details": exc.to_dict(),
        },
    )


# ----------------------------
# Helpers
# ----------------------------
def _require_api_key(x_api_key: Optional[str]) -> None:
    if API_KEY:
        if not x_api_key or x_api_key != API_KEY:
            raise HTTPException(status_code=401, detail="Unauthorized")


def _require_user(x_user_id: Optional[str]) -> str:
    # the auth gateway resolves the bearer token and forwards the user id
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id


def get_db():
    if order_store.SessionLocal is None:
        yield None
        return
    db = order_store.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _db_required(db: Optional[Session]) -> Session:
    if db is None:
        raise HTTPException(status_code=500, detail="DB not configured (missing DATABASE_URL).")
    return db


def _catalog(db: Optional[Session]) -> Catalog:
    return order_store.load_catalog(db) if db is not None else default_catalog()


def _cart(cart_id: str) -> Cart:
    cart = CARTS.get(cart_id)
    if cart is None:
        raise HTTPException(status_code=404, detail="Cart not found")
    return cart


def _drop_if_empty(cart_id: str) -> None:
    if not CARTS.get(cart_id):
        CARTS.pop(cart_id, None)


# ----------------------------
# Request models
# ----------------------------
class SelectedOptionRequest(BaseModel):
    option_id: str
    quantity: int = Field(1, ge=1)
    reinforcement_length: Optional[float] = None
    reinforcement_width: Optional[float] = None
    fitting_distance_width: Optional[float] = None
    fitting_distance_depth: Optional[float] = None
    fitting_distance_height: Optional[float] = None
    fitting_count_width: Optional[int] = None
    fitting_count_depth: Optional[int] = None
    fitting_count_height: Optional[int] = None


class BendBuckleEdgeRequest(BaseModel):
    first_distance: float = 0
    count: int = 0


class BendBuckleGroupRequest(BaseModel):
    enabled: bool = False
    edge1: BendBuckleEdgeRequest = BendBuckleEdgeRequest()
    edge2: BendBuckleEdgeRequest = BendBuckleEdgeRequest()
    edge3: BendBuckleEdgeRequest = BendBuckleEdgeRequest()
    edge4: BendBuckleEdgeRequest = BendBuckleEdgeRequest()


class BendBuckleRequest(BaseModel):
    top: BendBuckleGroupRequest = BendBuckleGroupRequest()
    sides: BendBuckleGroupRequest = BendBuckleGroupRequest()
    bottom: BendBuckleGroupRequest = BendBuckleGroupRequest()


class QuoteRequest(BaseModel):
    material_id: Optional[str] = None
    thickness_id: Optional[str] = None
    width_mm: int = 0
    depth_mm: int = 0
    height_mm: int = 0
    quantity: int = Field(1, ge=1)
    selected_options: List[SelectedOptionRequest] = []
    bend_buckle_config: Optional[BendBuckleRequest] = None
    special_requests: str = ""


class CartQuantityRequest(BaseModel):
    quantity: int


class ShippingAddress(BaseModel):
    postal_code: str = Field(min_length=1)
    prefecture: str = Field(min_length=1)
    city: str = Field(min_length=1)
    address_line: str = Field(min_length=1)
    building: Optional[str] = None
    recipient_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)


class CheckoutRequest(BaseModel):
    shipping_address: ShippingAddress
    payment_method: Literal["credit_card", "bank_transfer", "invoice"]
    points_used: int = Field(0, ge=0)
    customer_email: Optional[str] = None


class MaterialCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    base_price: float = Field(0, ge=0)
    material_class: Literal["plywood_lauan", "plywood_standard"] = "plywood_standard"
    is_active: bool = True
    sort_order: int = Field(0, ge=0)


class MaterialUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    base_price: Optional[float] = Field(None, ge=0)
    material_class: Optional[Literal["plywood_lauan", "plywood_standard"]] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)


class ThicknessCreate(BaseModel):
    thickness_mm: float = Field(gt=0)
    price: float = Field(ge=0)
    size: Literal[0, 1] = 0
    is_available: bool = True


class ThicknessUpdate(BaseModel):
    thickness_mm: Optional[float] = Field(None, gt=0)
    price: Optional[float] = Field(None, ge=0)
    size: Optional[Literal[0, 1]] = None
    is_available: Optional[bool] = None


OptionTypeName = Literal["handle", "buckle", "reinforcement", "express", "screw", "Skids"]


class OptionCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    price: float = Field(ge=0)
    option_type: OptionTypeName
    unit: str = ""
    is_active: bool = True
    sort_order: int = Field(0, ge=0)


class OptionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    option_type: Optional[OptionTypeName] = None
    unit: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)


class StatusUpdate(BaseModel):
    status: Literal["pending", "confirmed", "manufacturing", "shipped", "delivered"]
    shipping_eta: Optional[str] = None


# ----------------------------
# Quote assembly
# ----------------------------
def _build_quote(req: QuoteRequest, catalog: Catalog) -> QuoteBuilder:
    """Replay a request onto a fresh builder, the way the quote form edits one."""
    bend_buckles = (
        BendBuckleConfig.from_dict(req.bend_buckle_config.model_dump())
        if req.bend_buckle_config
        else None
    )
    builder = QuoteBuilder(
        width=req.width_mm,
        depth=req.depth_mm,
        height=req.height_mm,
        quantity=req.quantity,
        bend_buckle_config=bend_buckles,
        special_requests=req.special_requests,
    )

    if req.material_id:
        material = catalog.material(req.material_id)
        if material is None:
            raise HTTPException(status_code=404, detail=f"Material not found: {req.material_id}")
        if not material.is_active:
            raise HTTPException(status_code=422, detail=f"Material not available: {req.material_id}")
        builder.set_material(material)

    if req.thickness_id:
        thickness = catalog.thickness(req.thickness_id)
        if thickness is None:
            raise HTTPException(status_code=404, detail=f"Thickness not found: {req.thickness_id}")
        if not thickness.is_available:
            raise HTTPException(status_code=422, detail=f"Thickness not available: {req.thickness_id}")
        try:
            builder.set_thickness(thickness)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

    for o in req.selected_options:
        option = catalog.option(o.option_id)
        if option is None:
            raise HTTPException(status_code=404, detail=f"Option not found: {o.option_id}")
        if not option.is_active:
            raise HTTPException(status_code=422, detail=f"Option not available: {o.option_id}")

        prior = next((s.quantity for s in builder.selected_options if s.option.id == option.id), 0)
        if prior == 0:
            builder.add_option(option)
        builder.update_option_quantity(option.id, prior + o.quantity)

        if option.option_type == OptionType.REINFORCEMENT:
            builder.set_reinforcement_size(
                option.id, length=o.reinforcement_length, width=o.reinforcement_width
            )
            continue

        for axis in ("width", "depth", "height"):
            distance = getattr(o, f"fitting_distance_{axis}")
            count = getattr(o, f"fitting_count_{axis}")
            if distance is not None or count is not None:
                builder.set_fitting(option.id, axis, distance=distance, count=count)

    return builder


def _quote_payload(builder: QuoteBuilder) -> dict:
    return {
        "price": builder.price.to_dict() if builder.price else None,
        "dimension_error": builder.dimension_error.to_dict() if builder.dimension_error else None,
        "warning": builder.warning.to_dict() if builder.warning else None,
        "selected_options": [o.to_dict() for o in builder.selected_options],
        "bend_buckle_config": builder.bend_buckle_config.to_dict(),
    }


# ----------------------------
# Routes: catalog
# ----------------------------
@app.get("/health")
def health():
    return {"ok": True}


@app.get("/materials")
def list_materials(active_only: bool = False, db: Optional[Session] = Depends(get_db)):
    materials = _catalog(db).materials
    if active_only:
        materials = [m for m in materials if m.is_active]
    return {"materials": [asdict(m) for m in materials]}


@app.get("/materials/{material_id}")
def get_material(material_id: str, db: Optional[Session] = Depends(get_db)):
    material = _catalog(db).material(material_id)
    if material is None:
        raise HTTPException(status_code=404, detail="Material not found")
    return {"material": asdict(material)}


@app.get("/materials/{material_id}/thicknesses")
def list_thicknesses(material_id: str, available_only: bool = False, db: Optional[Session] = Depends(get_db)):
    catalog = _catalog(db)
    if catalog.material(material_id) is None:
        raise HTTPException(status_code=404, detail="Material not found")
    rows = catalog.thicknesses_for(material_id, available_only=available_only)
    return {"thicknesses": [asdict(t) for t in rows]}


@app.get("/options")
def list_options(active_only: bool = False, db: Optional[Session] = Depends(get_db)):
    options = _catalog(db).options
    if active_only:
        options = [o for o in options if o.is_active]
    return {"options": [asdict(o) for o in options]}


@app.get("/options/{option_id}")
def get_option(option_id: str, db: Optional[Session] = Depends(get_db)):
    option = _catalog(db).option(option_id)
    if option is None:
        raise HTTPException(status_code=404, detail="Option not found")
    return {"option": asdict(option)}


# ----------------------------
# Routes: live quote + cart
# ----------------------------
@app.post("/quote")
def quote(req: QuoteRequest, db: Optional[Session] = Depends(get_db)):
    builder = _build_quote(req, _catalog(db))
    return _quote_payload(builder)


@app.get("/cart/{cart_id}")
def get_cart(cart_id: str):
    # unknown ids read as an empty cart without allocating one
    return CARTS.get(cart_id, Cart()).to_dict()


@app.post("/cart/{cart_id}/lines", status_code=201)
def add_cart_line(cart_id: str, req: QuoteRequest, db: Optional[Session] = Depends(get_db)):
    builder = _build_quote(req, _catalog(db))
    quote = builder.snapshot()
    cart = CARTS.setdefault(cart_id, Cart())
    line_id = cart.add(quote)
    return {"line_id": line_id, "cart": cart.to_dict()}


@app.patch("/cart/{cart_id}/lines/{line_id}")
def update_cart_line(cart_id: str, line_id: str, req: CartQuantityRequest):
    cart = _cart(cart_id)
    if cart.get(line_id) is None:
        raise HTTPException(status_code=404, detail="Cart line not found")
    cart.update_quantity(line_id, req.quantity)
    _drop_if_empty(cart_id)
    return cart.to_dict()


@app.delete("/cart/{cart_id}/lines/{line_id}")
def remove_cart_line(cart_id: str, line_id: str):
    cart = _cart(cart_id)
    if cart.get(line_id) is None:
        raise HTTPException(status_code=404, detail="Cart line not found")
    cart.remove(line_id)
    _drop_if_empty(cart_id)
    return cart.to_dict()


@app.delete("/cart/{cart_id}")
def clear_cart(cart_id: str):
    CARTS.pop(cart_id, None)
    return Cart().to_dict()


@app.get("/cart/{cart_id}/quote.pdf")
def cart_pdf(cart_id: str, x_user_email: Optional[str] = Header(default=None)):
    cart = CARTS.get(cart_id)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart is empty")
    pdf = make_quote_pdf(cart, customer_email=x_user_email)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="crate-quote-{cart_id}.pdf"'},
    )


# ----------------------------
# Routes: orders (customer)
# ----------------------------
@app.post("/cart/{cart_id}/checkout", status_code=201)
def checkout(
    cart_id: str,
    req: CheckoutRequest,
    background_tasks: BackgroundTasks,
    x_user_id: Optional[str] = Header(default=None),
    db: Optional[Session] = Depends(get_db),
):
    """
    Turn the cart into an order. Prices are the ones frozen in the cart
    lines; nothing is repriced here.
    """
    user_id = _require_user(x_user_id)
    db = _db_required(db)

    cart = CARTS.get(cart_id)
    if not cart:
        raise HTTPException(status_code=400, detail="Cart is empty")

    order = order_store.create_order_from_cart(
        db,
        cart,
        user_id=user_id,
        shipping_address=req.shipping_address.model_dump(),
        payment_method=req.payment_method,
        points_used=req.points_used,
        customer_email=req.customer_email,
    )
    CARTS.pop(cart_id, None)
    logger.info("cart %s checked out as %s", cart_id, order.order_number)

    if req.customer_email:
        background_tasks.add_task(
            send_order_received,
            req.customer_email,
            order.order_number,
            order.total_amount,
            len(order.items),
        )

    return {"order": order_store.order_to_dict(order, include_items=True)}


@app.get("/me/orders")
def my_orders(
    limit: int = 50,
    x_user_id: Optional[str] = Header(default=None),
    db: Optional[Session] = Depends(get_db),
):
    user_id = _require_user(x_user_id)
    db = _db_required(db)
    orders = order_store.list_orders(db, user_id=user_id, limit=limit)
    return {"orders": [order_store.order_to_dict(o) for o in orders]}


@app.get("/me/orders/{order_id}")
def my_order(
    order_id: str,
    x_user_id: Optional[str] = Header(default=None),
    db: Optional[Session] = Depends(get_db),
):
    user_id = _require_user(x_user_id)
    db = _db_required(db)

    o = db.get(Order, order_id)
    if o is None:
        raise HTTPException(status_code=404, detail="Order not found")
    if o.user_id != user_id:
        raise HTTPException(status_code=403, detail="Not authorized to view this order")
    return {"order": order_store.order_to_dict(o, include_items=True)}


# ----------------------------
# Routes: admin
# ----------------------------
@app.get("/admin/orders")
def admin_orders(
    status: Optional[str] = None,
    limit: int = 50,
    x_api_key: Optional[str] = Header(default=None),
    db: Optional[Session] = Depends(get_db),
):
    _require_api_key(x_api_key)
    db = _db_required(db)
    orders = order_store.list_orders(db, status=status, limit=limit)
    return {"orders": [order_store.order_to_dict(o) for o in orders]}


@app.get("/admin/orders/{order_id}")
def admin_order(order_id: str, x_api_key: Optional[str] = Header(default=None), db: Optional[Session] = Depends(get_db)):
    _require_api_key(x_api_key)
    db = _db_required(db)
    o = db.get(Order, order_id)
    if o is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return {"order": order_store.order_to_dict(o, include_items=True)}


@app.put("/admin/orders/{order_id}/status")
def admin_order_status(
    order_id: str,
    req: StatusUpdate,
    x_api_key: Optional[str] = Header(default=None),
    db: Optional[Session] = Depends(get_db),
):
    _require_api_key(x_api_key)
    db = _db_required(db)
    o = order_store.update_order_status(db, order_id, req.status, req.shipping_eta)
    if o is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return {"order": order_store.order_to_dict(o)}


@app.post("/admin/materials", status_code=201)
def admin_create_material(req: MaterialCreate, x_api_key: Optional[str] = Header(default=None), db: Optional[Session] = Depends(get_db)):
    _require_api_key(x_api_key)
    db = _db_required(db)
    row = order_store.save_row(db, MaterialRow(**req.model_dump()))
    return {"material": asdict(order_store.material_record(row))}


@app.put("/admin/materials/{material_id}")
def admin_update_material(
    material_id: str,
    req: MaterialUpdate,
    x_api_key: Optional[str] = Header(default=None),
    db: Optional[Session] = Depends(get_db),
):
    _require_api_key(x_api_key)
    db = _db_required(db)
    row = order_store.update_row(db, MaterialRow, material_id, req.model_dump(exclude_unset=True))
    if row is None:
        raise HTTPException(status_code=404, detail="Material not found")
    return {"material": asdict(order_store.material_record(row))}


@app.delete("/admin/materials/{material_id}")
def admin_delete_material(material_id: str, x_api_key: Optional[str] = Header(default=None), db: Optional[Session] = Depends(get_db)):
    _require_api_key(x_api_key)
    db = _db_required(db)
    if not order_store.delete_material(db, material_id):
        raise HTTPException(status_code=404, detail="Material not found")
    return {"message": "Material deleted"}


@app.post("/admin/materials/{material_id}/thicknesses", status_code=201)
def admin_create_thickness(
    material_id: str,
    req: ThicknessCreate,
    x_api_key: Optional[str] = Header(default=None),
    db: Optional[Session] = Depends(get_db),
):
    _require_api_key(x_api_key)
    db = _db_required(db)
    if db.get(MaterialRow, material_id) is None:
        raise HTTPException(status_code=404, detail="Material not found")
    row = order_store.save_row(db, ThicknessRow(material_id=material_id, **req.model_dump()))
    return {"thickness": asdict(order_store.thickness_record(row))}


@app.put("/admin/thicknesses/{thickness_id}")
def admin_update_thickness(
    thickness_id: str,
    req: ThicknessUpdate,
    x_api_key: Optional[str] = Header(default=None),
    db: Optional[Session] = Depends(get_db),
):
    _require_api_key(x_api_key)
    db = _db_required(db)
    row = order_store.update_row(db, ThicknessRow, thickness_id, req.model_dump(exclude_unset=True))
    if row is None:
        raise HTTPException(status_code=404, detail="Thickness not found")
    return {"thickness": asdict(order_store.thickness_record(row))}


@app.delete("/admin/thicknesses/{thickness_id}")
def admin_delete_thickness(thickness_id: str, x_api_key: Optional[str] = Header(default=None), db: Optional[Session] = Depends(get_db)):
    _require_api_key(x_api_key)
    db = _db_required(db)
    if not order_store.delete_row(db, ThicknessRow, thickness_id):
        raise HTTPException(status_code=404, detail="Thickness not found")
    return {"message": "Thickness deleted"}


@app.post("/admin/options", status_code=201)
def admin_create_option(req: OptionCreate, x_api_key: Optional[str] = Header(default=None), db: Optional[Session] = Depends(get_db)):
    _require_api_key(x_api_key)
    db = _db_required(db)
    row = order_store.save_row(db, OptionRow(**req.model_dump()))
    return {"option": asdict(order_store.option_record(row))}


@app.put("/admin/options/{option_id}")
def admin_update_option(
    option_id: str,
    req: OptionUpdate,
    x_api_key: Optional[str] = Header(default=None),
    db: Optional[Session] = Depends(get_db),
):
    _require_api_key(x_api_key)
    db = _db_required(db)
    row = order_store.update_row(db, OptionRow, option_id, req.model_dump(exclude_unset=True))
    if row is None:
        raise HTTPException(status_code=404, detail="Option not found")
    return {"option": asdict(order_store.option_record(row))}


@app.delete("/admin/options/{option_id}")
def admin_delete_option(option_id: str, x_api_key: Optional[str] = Header(default=None), db: Optional[Session] = Depends(get_db)):
    _require_api_key(x_api_key)
    db = _db_required(db)
    if not order_store.delete_row(db, OptionRow, option_id):
        raise HTTPException(status_code=404, detail="Option not found")
    return {"message": "Option deleted"}
