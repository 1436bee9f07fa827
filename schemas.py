# Input schemas. Lax mode coerces form strings ("12.50", "true") into typed values;
# update schemas apply only the fields a caller set, and never a null on a NOT NULL column.

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import (
    BaseModel, ConfigDict, EmailStr, Field, TypeAdapter, ValidationError, field_validator, model_validator,
)

from errors import ValidationFailed

SLUG_PATTERN = r"^[a-z0-9-]+$"

Gender = Literal["MALE", "FEMALE", "UNISEX"]
MetalType = Literal["GOLD", "SILVER", "DIAMOND", "PEARL", "PLATINUM", "GEMSTONE", "OTHER"]
Currency = Literal["INR", "BHD"]
PaymentMethod = Literal["CASH", "CARD", "UPI", "BANK_TRANSFER", "STRIPE"]
PaymentStatus = Literal["PENDING", "PAID", "FAILED", "REFUNDED"]
OrderStatus = Literal["PENDING", "CONFIRMED", "PROCESSING", "SHIPPED", "DELIVERED", "CANCELLED"]
EstimateStatus = Literal["PENDING", "SENT", "ACCEPTED", "REJECTED"]
LayoutType = Literal["grid", "featured", "mixed"]
ItemSize = Literal["small", "normal", "large"]
SortKey = Literal["price_asc", "price_desc", "newest", "popular"]


def validate(schema, data):
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise ValidationFailed.from_pydantic(exc) from exc


_email = TypeAdapter(EmailStr)

def normalize_email(value):
    """Lookup key matching what ``EmailStr`` stored at signup."""
    try:
        return _email.validate_python(value)
    except ValidationError:
        # phone numbers and typos are looked up as typed
        return value


def not_null(*fields):
    # validators only run on values the caller sent, so omitted fields stay optional
    def check(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value
    return field_validator(*fields)(check)


# ---------- Users ----------

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    phone: Optional[str] = Field(None, min_length=10)
    role: Literal["admin", "guest"] = "guest"

class LoginRequest(BaseModel):
    # email or mobile number
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

class SendOtpRequest(BaseModel):
    phone: str = Field(..., min_length=10, description="Phone number must be at least 10 digits")

class VerifyOtpRequest(BaseModel):
    phone: str = Field(..., min_length=10)
    otp: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")

class ResetPasswordRequest(VerifyOtpRequest):
    new_password: str = Field(..., min_length=6)


# ---------- Products ----------

class ProductCreate(BaseModel):
    name: str
    description: str
    category: str
    sub_category: Optional[str] = None
    material: Optional[str] = None
    price_inr: Decimal = Field(..., ge=0)
    price_bhd: Decimal = Field(..., ge=0)
    gross_weight: Decimal = Field(..., ge=0)
    net_weight: Decimal = Field(..., ge=0)
    purity: Optional[str] = None
    gemstones: List[str] = Field(default_factory=list)
    size: Optional[str] = None
    gender: Gender = "UNISEX"
    occasion: Optional[str] = None
    stock: int = Field(0, ge=0)
    images: List[str] = Field(default_factory=list)
    is_active: bool = True
    is_featured: bool = False
    is_new_arrival: bool = False
    metal_type: MetalType = "GOLD"
    is_metal_price_based: bool = False
    making_charges_percentage: Decimal = Decimal("15")
    custom_price_inr: Optional[Decimal] = Field(None, ge=0)
    custom_price_bhd: Optional[Decimal] = Field(None, ge=0)
    product_code: Optional[str] = None
    stones: Optional[str] = "None"
    gold_rate_at_creation: Optional[Decimal] = None
    barcode: Optional[str] = None
    barcode_image_url: Optional[str] = None

class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    material: Optional[str] = None
    price_inr: Optional[Decimal] = Field(None, ge=0)
    price_bhd: Optional[Decimal] = Field(None, ge=0)
    gross_weight: Optional[Decimal] = Field(None, ge=0)
    net_weight: Optional[Decimal] = Field(None, ge=0)
    purity: Optional[str] = None
    gemstones: Optional[List[str]] = None
    size: Optional[str] = None
    gender: Optional[Gender] = None
    occasion: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    images: Optional[List[str]] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    is_new_arrival: Optional[bool] = None
    metal_type: Optional[MetalType] = None
    is_metal_price_based: Optional[bool] = None
    making_charges_percentage: Optional[Decimal] = None
    custom_price_inr: Optional[Decimal] = Field(None, ge=0)
    custom_price_bhd: Optional[Decimal] = Field(None, ge=0)
    product_code: Optional[str] = None
    stones: Optional[str] = None
    gold_rate_at_creation: Optional[Decimal] = None
    barcode: Optional[str] = None
    barcode_image_url: Optional[str] = None

    check_not_null = not_null(
        "name", "description", "category", "price_inr", "price_bhd", "gross_weight",
        "net_weight", "stock", "images", "is_active", "is_featured", "is_new_arrival",
        "is_metal_price_based",
    )

class ProductFilters(BaseModel):
    category: Optional[str] = None
    sub_category: Optional[str] = None
    material: Optional[str] = None
    price_min: Optional[Decimal] = Field(None, ge=0)
    price_max: Optional[Decimal] = Field(None, ge=0)
    gender: Optional[Gender] = None
    occasion: Optional[str] = None
    sort_by: Optional[SortKey] = None


# ---------- Cart ----------

class CartItemCreate(BaseModel):
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    product_id: str
    quantity: int = Field(1, ge=1)

    @model_validator(mode="after")
    def one_owner(self):
        if bool(self.session_id) == bool(self.user_id):
            raise ValueError("exactly one of session_id or user_id is required")
        return self


# ---------- Orders and bills ----------

class LineItem(BaseModel):
    """Snapshot of a product at the time of sale; stored as given."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    product_id: str
    product_name: str
    quantity: int = Field(..., ge=1)
    price_inr: str
    price_bhd: str
    gross_weight: str
    net_weight: str
    making_charges: str
    discount: str = "0"
    sgst: str = "0"
    cgst: str = "0"
    vat: str = "0"
    total: str

class OrderCreate(BaseModel):
    order_number: Optional[str] = None
    customer_name: str
    customer_email: EmailStr
    customer_phone: str
    customer_address: str
    currency: Currency = "INR"
    subtotal: Decimal
    making_charges: Decimal
    gst: Decimal
    vat: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    shipping: Decimal = Decimal("0")
    paid_amount: Decimal
    payment_method: PaymentMethod = "CASH"
    payment_status: PaymentStatus = "PENDING"
    order_status: OrderStatus = "PENDING"
    stripe_payment_intent_id: Optional[str] = None
    items: List[LineItem]

class BillCreate(BaseModel):
    bill_number: Optional[str] = None
    customer_name: str
    customer_email: str
    customer_phone: str
    customer_address: str
    currency: Currency = "INR"
    subtotal: Decimal
    making_charges: Decimal
    gst: Decimal
    vat: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    paid_amount: Decimal
    payment_method: PaymentMethod = "CASH"
    items: List[LineItem]

class BillUpdate(BaseModel):
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    currency: Optional[Currency] = None
    subtotal: Optional[Decimal] = None
    making_charges: Optional[Decimal] = None
    gst: Optional[Decimal] = None
    vat: Optional[Decimal] = None
    discount: Optional[Decimal] = None
    paid_amount: Optional[Decimal] = None
    payment_method: Optional[PaymentMethod] = None
    items: Optional[List[LineItem]] = None

    check_not_null = not_null(
        "customer_name", "customer_email", "customer_phone", "customer_address", "currency",
        "subtotal", "making_charges", "gst", "vat", "discount", "paid_amount", "items",
    )


# ---------- Estimates ----------

class EstimateCreate(BaseModel):
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    product_name: str
    category: str
    purity: str
    gross_weight: Decimal
    net_weight: Decimal
    product_code: str
    metal_value: Decimal
    making_charges_percentage: Decimal
    making_charges: Decimal
    stone_diamond_charges_percentage: Decimal = Decimal("0")
    stone_diamond_charges: Decimal = Decimal("0")
    wastage_percentage: Decimal = Decimal("2")
    wastage_charges: Decimal
    hallmarking_charges: Decimal = Decimal("450")
    subtotal: Decimal
    total_amount: Decimal
    currency: Currency = "INR"
    valid_until: datetime
    status: EstimateStatus = "PENDING"
    sent_to_whatsapp: bool = False

class EstimateUpdate(BaseModel):
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    product_name: Optional[str] = None
    category: Optional[str] = None
    purity: Optional[str] = None
    gross_weight: Optional[Decimal] = None
    net_weight: Optional[Decimal] = None
    product_code: Optional[str] = None
    metal_value: Optional[Decimal] = None
    making_charges_percentage: Optional[Decimal] = None
    making_charges: Optional[Decimal] = None
    stone_diamond_charges_percentage: Optional[Decimal] = None
    stone_diamond_charges: Optional[Decimal] = None
    wastage_percentage: Optional[Decimal] = None
    wastage_charges: Optional[Decimal] = None
    hallmarking_charges: Optional[Decimal] = None
    subtotal: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    currency: Optional[Currency] = None
    valid_until: Optional[datetime] = None
    status: Optional[EstimateStatus] = None
    sent_to_whatsapp: Optional[bool] = None

    check_not_null = not_null(
        "customer_name", "customer_phone", "product_name", "category", "purity",
        "gross_weight", "net_weight", "product_code", "metal_value",
        "making_charges_percentage", "making_charges", "wastage_charges", "subtotal",
        "total_amount", "currency", "valid_until", "status",
    )


# ---------- Categories ----------

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, pattern=SLUG_PATTERN,
                      description="lowercase letters, numbers, and hyphens only")
    description: Optional[str] = None
    parent_id: Optional[str] = None
    display_order: int = 0
    is_active: bool = True

class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = Field(None, min_length=1, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    parent_id: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None

    check_not_null = not_null("name", "slug", "is_active")


# ---------- Home page layout ----------

class HomeSectionCreate(BaseModel):
    title: str = Field(..., min_length=1)
    subtitle: Optional[str] = None
    description: Optional[str] = None
    layout_type: LayoutType = "grid"
    is_active: bool = True
    display_order: int = 0
    background_color: str = "#fff8e1"
    text_color: str = "#8b4513"

class HomeSectionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    subtitle: Optional[str] = None
    description: Optional[str] = None
    layout_type: Optional[LayoutType] = None
    is_active: Optional[bool] = None
    display_order: Optional[int] = None
    background_color: Optional[str] = None
    text_color: Optional[str] = None

    check_not_null = not_null("title", "layout_type", "is_active")

class HomeSectionItemCreate(BaseModel):
    section_id: str
    product_id: str
    display_name: Optional[str] = None
    display_price: Optional[str] = None
    display_price_inr: Optional[str] = None
    display_price_bhd: Optional[str] = None
    position: int = 0
    size: ItemSize = "normal"

class HomeSectionItemUpdate(BaseModel):
    product_id: Optional[str] = None
    display_name: Optional[str] = None
    display_price: Optional[str] = None
    display_price_inr: Optional[str] = None
    display_price_bhd: Optional[str] = None
    position: Optional[int] = None
    size: Optional[ItemSize] = None

    check_not_null = not_null("product_id", "position")
