import secrets, string
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from werkzeug.security import generate_password_hash, check_password_hash

# minor units per currency: rupees to paise, dinars to fils
CURRENCY_PLACES = {"INR": 2, "BHD": 3}

# werkzeug's salted default (scrypt), not bcrypt with cost 10
def hash_password(plain):
    return generate_password_hash(plain)

def check_password(hashed, plain):
    if not hashed:
        return False
    return check_password_hash(hashed, plain)

def generate_reference(prefix, length=8):
    alphabet = string.ascii_uppercase + string.digits
    return f"{prefix}-" + ''.join(secrets.choice(alphabet) for _ in range(length))

def quotation_number(prefix: str, year: int, month: int, seq: int) -> str:
    return f"{prefix}-{year}-{month:02d}-{seq:03d}"

def month_bounds(moment: datetime):
    """Half-open [start, end) range covering the calendar month of ``moment``."""
    start = datetime(moment.year, moment.month, 1)
    if moment.month == 12:
        end = datetime(moment.year + 1, 1, 1)
    else:
        end = datetime(moment.year, moment.month + 1, 1)
    return start, end

def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))

def quantize_money(value, currency="INR") -> Decimal:
    places = CURRENCY_PLACES.get((currency or "INR").upper(), 2)
    return to_decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)

def order_total(subtotal, making_charges, gst, vat=0, shipping=0, discount=0, currency="INR"):
    total = (to_decimal(subtotal) + to_decimal(making_charges) + to_decimal(gst)
             + to_decimal(vat) + to_decimal(shipping) - to_decimal(discount))
    return quantize_money(total, currency)

def bill_total(subtotal, making_charges, gst, discount=0, currency="INR"):
    total = to_decimal(subtotal) + to_decimal(making_charges) + to_decimal(gst) - to_decimal(discount)
    return quantize_money(total, currency)
