import uuid
from datetime import datetime, date
from decimal import Decimal
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import Numeric

db = SQLAlchemy()

def new_id():
    return str(uuid.uuid4())

class SerializerMixin:
    # columns left out of to_dict()
    private_fields = ()

    def to_dict(self):
        out = {}
        for column in self.__table__.columns:
            if column.key in self.private_fields:
                continue
            value = getattr(self, column.key)
            if isinstance(value, Decimal):
                value = str(value)
            elif isinstance(value, (datetime, date)):
                value = value.isoformat()
            out[column.key] = value
        return out

    def __repr__(self):
        return f"<{type(self).__name__} id={self.id}>"

class User(SerializerMixin, db.Model):
    __tablename__ = "users"
    private_fields = ("password", "otp_code")

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(20), index=True)
    role = db.Column(db.String(10), nullable=False, default="guest")
    stripe_customer_id = db.Column(db.String(120))
    stripe_subscription_id = db.Column(db.String(120))
    # forgot-password flow
    otp_code = db.Column(db.String(6))
    otp_expiry = db.Column(db.DateTime)
    otp_verified = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def is_admin(self):
        return self.role == "admin"

class Product(SerializerMixin, db.Model):
    __tablename__ = "products"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(100), nullable=False, index=True)  # Category.slug
    sub_category = db.Column(db.String(100))
    material = db.Column(db.String(50), default="GOLD_22K")
    price_inr = db.Column(Numeric(10, 2), nullable=False)
    price_bhd = db.Column(Numeric(10, 3), nullable=False)
    gross_weight = db.Column(Numeric(8, 2), nullable=False)
    net_weight = db.Column(Numeric(8, 2), nullable=False)
    purity = db.Column(db.String(20))  # 22K, 925, PT950
    gemstones = db.Column(db.JSON, default=list)
    size = db.Column(db.String(50))
    gender = db.Column(db.String(10), default="UNISEX")
    occasion = db.Column(db.String(50))
    stock = db.Column(db.Integer, nullable=False, default=0)
    images = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)
    is_new_arrival = db.Column(db.Boolean, nullable=False, default=False)
    metal_type = db.Column(db.String(20), default="GOLD")
    is_metal_price_based = db.Column(db.Boolean, nullable=False, default=False)
    making_charges_percentage = db.Column(Numeric(5, 2), default=Decimal("15.00"))
    custom_price_inr = db.Column(Numeric(10, 2))
    custom_price_bhd = db.Column(Numeric(10, 3))
    product_code = db.Column(db.String(50), unique=True)
    stones = db.Column(db.String(100), default="None")
    gold_rate_at_creation = db.Column(Numeric(10, 2))
    barcode = db.Column(db.String(100))
    barcode_image_url = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

class CartItem(SerializerMixin, db.Model):
    __tablename__ = "cart_items"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    session_id = db.Column(db.String(120), index=True)  # guests
    user_id = db.Column(db.String(36), index=True)      # logged-in users
    product_id = db.Column(db.String(36), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (db.CheckConstraint("quantity >= 1", name="ck_cart_items_quantity"),)

class Order(SerializerMixin, db.Model):
    __tablename__ = "orders"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    order_number = db.Column(db.String(50), unique=True, nullable=False)
    customer_name = db.Column(db.String(120), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(20), nullable=False)
    customer_address = db.Column(db.Text, nullable=False)
    currency = db.Column(db.String(3), default="INR")
    subtotal = db.Column(Numeric(12, 3), nullable=False)
    making_charges = db.Column(Numeric(12, 3), nullable=False)
    gst = db.Column(Numeric(12, 3), nullable=False)
    vat = db.Column(Numeric(12, 3), nullable=False, default=0)
    discount = db.Column(Numeric(12, 3), nullable=False, default=0)
    shipping = db.Column(Numeric(12, 3), nullable=False, default=0)
    total = db.Column(Numeric(12, 3), nullable=False)
    paid_amount = db.Column(Numeric(12, 3), nullable=False)
    payment_method = db.Column(db.String(20), default="CASH")
    payment_status = db.Column(db.String(20), nullable=False, default="PENDING")
    order_status = db.Column(db.String(20), nullable=False, default="PENDING")
    stripe_payment_intent_id = db.Column(db.String(120))
    items = db.Column(db.JSON, nullable=False)  # line-item snapshot
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

class Bill(SerializerMixin, db.Model):
    __tablename__ = "bills"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    bill_number = db.Column(db.String(50), unique=True, nullable=False)
    customer_name = db.Column(db.String(120), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(20), nullable=False)
    customer_address = db.Column(db.Text, nullable=False)
    currency = db.Column(db.String(3), default="INR")
    subtotal = db.Column(Numeric(12, 3), nullable=False)
    making_charges = db.Column(Numeric(12, 3), nullable=False)
    gst = db.Column(Numeric(12, 3), nullable=False)
    vat = db.Column(Numeric(12, 3), nullable=False, default=0)
    discount = db.Column(Numeric(12, 3), nullable=False, default=0)
    total = db.Column(Numeric(12, 3), nullable=False)
    paid_amount = db.Column(Numeric(12, 3), nullable=False)
    payment_method = db.Column(db.String(20), default="CASH")
    items = db.Column(db.JSON, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

class Estimate(SerializerMixin, db.Model):
    __tablename__ = "estimates"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    quotation_no = db.Column(db.String(30), unique=True, nullable=False)
    customer_name = db.Column(db.String(120), nullable=False)
    customer_phone = db.Column(db.String(20), nullable=False)
    customer_email = db.Column(db.String(255))
    product_name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(100), nullable=False)
    purity = db.Column(db.String(20), nullable=False)
    gross_weight = db.Column(Numeric(8, 2), nullable=False)
    net_weight = db.Column(Numeric(8, 2), nullable=False)
    product_code = db.Column(db.String(50), nullable=False)
    metal_value = db.Column(Numeric(10, 2), nullable=False)
    making_charges_percentage = db.Column(Numeric(5, 2), nullable=False)
    making_charges = db.Column(Numeric(10, 2), nullable=False)
    stone_diamond_charges_percentage = db.Column(Numeric(5, 2), default=0)
    stone_diamond_charges = db.Column(Numeric(10, 2), default=0)
    wastage_percentage = db.Column(Numeric(5, 2), default=2)
    wastage_charges = db.Column(Numeric(10, 2), nullable=False)
    hallmarking_charges = db.Column(Numeric(10, 2), default=450)
    subtotal = db.Column(Numeric(10, 2), nullable=False)
    total_amount = db.Column(Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="INR")
    valid_until = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(10), nullable=False, default="PENDING")
    sent_to_whatsapp = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

class Category(SerializerMixin, db.Model):
    __tablename__ = "categories"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(120), nullable=False)
    slug = db.Column(db.String(120), unique=True, nullable=False)
    description = db.Column(db.Text)
    # plain reference, no cascade: deletion is guarded in storage
    parent_id = db.Column(db.String(36), index=True)
    display_order = db.Column(db.Integer, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

class HomeSection(SerializerMixin, db.Model):
    __tablename__ = "home_sections"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(200), nullable=False)
    subtitle = db.Column(db.String(200))
    description = db.Column(db.Text)
    layout_type = db.Column(db.String(20), nullable=False, default="grid")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    display_order = db.Column(db.Integer, default=0)
    background_color = db.Column(db.String(20), default="#fff8e1")
    text_color = db.Column(db.String(20), default="#8b4513")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

class HomeSectionItem(SerializerMixin, db.Model):
    __tablename__ = "home_section_items"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    section_id = db.Column(db.String(36), db.ForeignKey("home_sections.id"), nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False)
    display_name = db.Column(db.String(200))
    display_price = db.Column(db.String(50))  # legacy single-currency label
    display_price_inr = db.Column(db.String(50))
    display_price_bhd = db.Column(db.String(50))
    position = db.Column(db.Integer, nullable=False, default=0)
    size = db.Column(db.String(10), default="normal")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
