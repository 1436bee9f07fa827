# Repository over the models. Reads and updates of a missing row return None;
# composite views return plain dicts. Needs an application context.

from datetime import datetime

from flask import current_app
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from errors import ValidationFailed
from schemas import normalize_email
from models import db, User, Product, CartItem, Order, Bill, Estimate, Category, HomeSection, HomeSectionItem
from services import (
    hash_password, check_password, generate_reference, quotation_number,
    month_bounds, order_total, bill_total,
)


def _changes(data):
    # only the fields the caller set
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=True)
    return dict(data)


class DatabaseStorage:
    def __init__(self, clock=datetime.utcnow):
        self.clock = clock

    def _commit(self):
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise

    def _update(self, model, id, changes):
        obj = db.session.get(model, id)
        if obj is None:
            return None
        for key, value in changes.items():
            setattr(obj, key, value)
        if hasattr(obj, "updated_at"):
            obj.updated_at = self.clock()
        self._commit()
        return obj

    # ---------- Users ----------

    def get_user(self, id):
        return db.session.get(User, id)

    def get_user_by_email(self, email):
        return User.query.filter_by(email=normalize_email(email)).first()

    def get_user_by_phone(self, phone):
        return User.query.filter_by(phone=phone).first()

    def create_user(self, data):
        fields = data.model_dump(exclude_none=True)
        fields["password"] = hash_password(fields["password"])
        user = User(**fields)
        db.session.add(user)
        self._commit()
        return user

    def authenticate_user(self, email, password):
        # same answer for unknown email and wrong password
        user = self.get_user_by_email(email)
        if user is None or not check_password(user.password, password):
            return None
        return user

    def update_stripe_customer_id(self, user_id, customer_id):
        return self._update(User, user_id, {"stripe_customer_id": customer_id})

    def update_user_stripe_info(self, user_id, customer_id, subscription_id):
        return self._update(User, user_id, {
            "stripe_customer_id": customer_id,
            "stripe_subscription_id": subscription_id,
        })

    def update_user_otp(self, user_id, otp_code, otp_expiry):
        # expiry is stored only; callers compare it to the current time
        return self._update(User, user_id, {
            "otp_code": otp_code,
            "otp_expiry": otp_expiry,
            "otp_verified": False,
        })

    def update_user_otp_verified(self, user_id, verified):
        return self._update(User, user_id, {"otp_verified": verified})

    def update_user_password(self, user_id, new_password):
        return self._update(User, user_id, {"password": hash_password(new_password)})

    def clear_user_otp(self, user_id):
        return self._update(User, user_id, {
            "otp_code": None,
            "otp_expiry": None,
            "otp_verified": False,
        })

    # ---------- Products ----------

    def _active_products(self):
        return Product.query.filter(Product.is_active.is_(True))

    def get_all_products(self):
        return self._active_products().order_by(Product.created_at.desc()).all()

    def get_product(self, id):
        return self._active_products().filter(Product.id == id).first()

    def get_products_by_category(self, category):
        return (
            self._active_products()
            .filter(Product.category == category)
            .order_by(Product.created_at.desc())
            .all()
        )

    def get_featured_products(self):
        return (
            self._active_products()
            .filter(Product.is_featured.is_(True))
            .order_by(Product.created_at.desc())
            .all()
        )

    def search_products(self, query, filters=None):
        q = self._active_products()
        if query:
            q = q.filter(db.or_(
                Product.name.icontains(query, autoescape=True),
                Product.description.icontains(query, autoescape=True),
            ))

        sort_by = None
        if filters is not None:
            if filters.category:
                q = q.filter(Product.category == filters.category)
            if filters.sub_category:
                q = q.filter(Product.sub_category == filters.sub_category)
            if filters.material:
                q = q.filter(Product.material == filters.material)
            if filters.price_min is not None:
                q = q.filter(Product.price_inr >= filters.price_min)
            if filters.price_max is not None:
                q = q.filter(Product.price_inr <= filters.price_max)
            if filters.gender:
                q = q.filter(Product.gender == filters.gender)
            if filters.occasion:
                q = q.filter(Product.occasion == filters.occasion)
            sort_by = filters.sort_by

        if sort_by == "price_asc":
            q = q.order_by(Product.price_inr.asc(), Product.created_at.desc())
        elif sort_by == "price_desc":
            q = q.order_by(Product.price_inr.desc(), Product.created_at.desc())
        elif sort_by == "popular":
            q = q.order_by(Product.is_featured.desc(), Product.created_at.desc())
        else:
            q = q.order_by(Product.created_at.desc())
        return q.all()

    def create_product(self, data):
        product = Product(**data.model_dump(exclude_none=True))
        db.session.add(product)
        self._commit()
        return product

    def update_product(self, id, data):
        return self._update(Product, id, _changes(data))

    def delete_product(self, id):
        # soft delete
        matched = Product.query.filter_by(id=id).update({"is_active": False})
        self._commit()
        return matched > 0

    # ---------- Cart ----------

    def _cart_owner(self, session_id=None, user_id=None):
        if user_id:
            return CartItem.user_id == user_id
        if session_id:
            return CartItem.session_id == session_id
        return None

    def _cart_query(self, session_id=None, user_id=None):
        owner = self._cart_owner(session_id, user_id)
        if owner is None:
            return None
        return CartItem.query.filter(owner)

    def get_cart_items(self, session_id=None, user_id=None):
        owner = self._cart_owner(session_id, user_id)
        if owner is None:
            return []
        rows = (
            db.session.query(CartItem, Product)
            .join(Product, CartItem.product_id == Product.id)
            .filter(owner, Product.is_active.is_(True))
            .order_by(CartItem.created_at)
            .all()
        )
        return [
            {"id": item.id, "product_id": item.product_id, "quantity": item.quantity,
             "product": product.to_dict()}
            for item, product in rows
        ]

    def add_to_cart(self, data):
        q = self._cart_query(data.session_id, data.user_id)
        existing = q.filter_by(product_id=data.product_id).first()
        if existing:
            existing.quantity += data.quantity
            existing.updated_at = self.clock()
            self._commit()
            return existing
        item = CartItem(**data.model_dump(exclude_none=True))
        db.session.add(item)
        self._commit()
        return item

    def update_cart_item(self, id, quantity):
        if quantity < 1:
            raise ValidationFailed([{"field": "quantity", "message": "Quantity must be at least 1"}])
        return self._update(CartItem, id, {"quantity": quantity})

    def remove_from_cart(self, id):
        deleted = CartItem.query.filter_by(id=id).delete()
        self._commit()
        return deleted > 0

    def clear_cart(self, session_id=None, user_id=None):
        q = self._cart_query(session_id, user_id)
        if q is None:
            return False
        q.delete()
        self._commit()
        return True

    # ---------- Orders ----------

    def get_all_orders(self):
        return Order.query.order_by(Order.created_at.desc()).all()

    def get_order(self, id):
        return db.session.get(Order, id)

    def get_order_by_number(self, order_number):
        return Order.query.filter_by(order_number=order_number).first()

    def create_order(self, data):
        fields = data.model_dump(exclude_none=True)
        if not fields.get("order_number"):
            fields["order_number"] = generate_reference(current_app.config.get("ORDER_PREFIX", "PJ-ORD"))
        fields["total"] = order_total(
            fields["subtotal"], fields["making_charges"], fields["gst"],
            vat=fields.get("vat"), shipping=fields.get("shipping"),
            discount=fields.get("discount"), currency=fields.get("currency"),
        )
        now = self.clock()
        order = Order(**fields, created_at=now, updated_at=now)
        db.session.add(order)
        self._commit()
        current_app.logger.info("order %s created, total %s %s", order.order_number, order.total, order.currency)
        return order

    def update_order_status(self, id, status):
        return self._update(Order, id, {"order_status": status})

    def update_payment_status(self, id, status, payment_intent_id=None):
        changes = {"payment_status": status}
        if payment_intent_id:
            changes["stripe_payment_intent_id"] = payment_intent_id
        return self._update(Order, id, changes)

    # ---------- Bills ----------

    def get_all_bills(self):
        return Bill.query.order_by(Bill.created_at.desc()).all()

    def get_bill(self, id):
        return db.session.get(Bill, id)

    def get_bill_by_number(self, bill_number):
        return Bill.query.filter_by(bill_number=bill_number).first()

    def create_bill(self, data):
        fields = data.model_dump(exclude_none=True)
        if not fields.get("bill_number"):
            fields["bill_number"] = generate_reference(current_app.config.get("BILL_PREFIX", "PJ-BILL"))
        fields["total"] = bill_total(
            fields["subtotal"], fields["making_charges"], fields["gst"],
            discount=fields.get("discount"), currency=fields.get("currency"),
        )
        now = self.clock()
        bill = Bill(**fields, created_at=now, updated_at=now)
        db.session.add(bill)
        self._commit()
        current_app.logger.info("bill %s created, total %s %s", bill.bill_number, bill.total, bill.currency)
        return bill

    def update_bill(self, id, data):
        bill = db.session.get(Bill, id)
        if bill is None:
            return None
        changes = _changes(data)
        merged = {key: changes.get(key, getattr(bill, key))
                  for key in ("subtotal", "making_charges", "gst", "discount", "currency")}
        changes["total"] = bill_total(
            merged["subtotal"], merged["making_charges"], merged["gst"],
            discount=merged["discount"], currency=merged["currency"],
        )
        return self._update(Bill, id, changes)

    def search_bills(self, query):
        return (
            Bill.query.filter(db.or_(
                Bill.customer_name.icontains(query, autoescape=True),
                Bill.customer_phone.icontains(query, autoescape=True),
                Bill.bill_number.icontains(query, autoescape=True),
            ))
            .order_by(Bill.created_at.desc())
            .all()
        )

    def get_bills_by_date_range(self, start_date, end_date):
        return (
            Bill.query.filter(Bill.created_at >= start_date, Bill.created_at <= end_date)
            .order_by(Bill.created_at.desc())
            .all()
        )

    # ---------- Estimates ----------

    def get_all_estimates(self):
        return Estimate.query.order_by(Estimate.created_at.desc()).all()

    def get_estimate(self, id):
        return db.session.get(Estimate, id)

    def create_estimate(self, data):
        # count and insert share a transaction; quotation_no is unique, so a
        # concurrent writer with the same number fails instead of duplicating
        now = self.clock()
        start, end = month_bounds(now)
        prefix = current_app.config.get("QUOTATION_PREFIX", "PJ-QTN")
        try:
            count = db.session.scalar(
                db.select(func.count(Estimate.id))
                .where(Estimate.created_at >= start, Estimate.created_at < end)
            )
            estimate = Estimate(
                **data.model_dump(exclude_none=True),
                quotation_no=quotation_number(prefix, now.year, now.month, count + 1),
                created_at=now,
                updated_at=now,
            )
            db.session.add(estimate)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        current_app.logger.info("estimate %s created", estimate.quotation_no)
        return estimate

    def update_estimate(self, id, data):
        return self._update(Estimate, id, _changes(data))

    def set_estimate_status(self, id, status):
        return self._update(Estimate, id, {"status": status})

    def mark_estimate_sent(self, id):
        return self._update(Estimate, id, {"status": "SENT", "sent_to_whatsapp": True})

    # ---------- Categories ----------

    def _ordered_categories(self):
        return Category.query.order_by(Category.display_order, Category.name)

    def get_all_categories(self):
        return self._ordered_categories().all()

    def get_categories_hierarchy(self):
        # orphans and members of a parent cycle become roots
        categories = self.get_all_categories()
        nodes = {c.id: dict(c.to_dict(), children=[]) for c in categories}
        roots = []
        for c in categories:
            parent = nodes.get(c.parent_id) if c.parent_id and c.parent_id != c.id else None
            if parent is None:
                roots.append(nodes[c.id])
            else:
                parent["children"].append(nodes[c.id])

        seen = set()

        def walk(node):
            stack = [node]
            while stack:
                current = stack.pop()
                seen.add(current["id"])
                stack.extend(current["children"])

        for root in roots:
            walk(root)
        for c in categories:
            if c.id in seen:
                continue
            # unreachable from any root: break the cycle here
            node = nodes[c.id]
            siblings = nodes[c.parent_id]["children"]
            siblings[:] = [n for n in siblings if n is not node]
            roots.append(node)
            walk(node)
        return roots

    def get_category(self, id):
        return db.session.get(Category, id)

    def get_category_by_slug(self, slug):
        return Category.query.filter_by(slug=slug).first()

    def get_main_categories(self):
        return self._ordered_categories().filter(Category.parent_id.is_(None)).all()

    def get_sub_categories(self, parent_id):
        return self._ordered_categories().filter(Category.parent_id == parent_id).all()

    def create_category(self, data):
        now = self.clock()
        category = Category(**data.model_dump(exclude_none=True), created_at=now, updated_at=now)
        db.session.add(category)
        self._commit()
        return category

    def update_category(self, id, data):
        return self._update(Category, id, _changes(data))

    def delete_category(self, id):
        # soft-deleted products still hold the slug
        category = db.session.get(Category, id)
        if category is None:
            return False
        if Category.query.filter_by(parent_id=id).first() is not None:
            current_app.logger.warning("category %s not deleted: has subcategories", category.slug)
            return False
        if Product.query.filter_by(category=category.slug).first() is not None:
            current_app.logger.warning("category %s not deleted: referenced by products", category.slug)
            return False
        db.session.delete(category)
        self._commit()
        return True

    def reorder_categories(self, category_ids):
        now = self.clock()
        try:
            for index, category_id in enumerate(category_ids):
                Category.query.filter_by(id=category_id).update(
                    {"display_order": index, "updated_at": now}
                )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("category reorder rolled back")
            return False
        return True

    # ---------- Home sections ----------

    def _with_items(self, section):
        return dict(section.to_dict(), items=self.get_home_section_items(section.id))

    def get_all_home_sections(self):
        sections = (
            HomeSection.query.filter(HomeSection.is_active.is_(True))
            .order_by(HomeSection.display_order, HomeSection.created_at)
            .all()
        )
        return [self._with_items(s) for s in sections]

    def get_all_home_sections_for_admin(self):
        sections = HomeSection.query.order_by(HomeSection.display_order, HomeSection.created_at).all()
        return [self._with_items(s) for s in sections]

    def get_home_section(self, id):
        section = db.session.get(HomeSection, id)
        if section is None:
            return None
        return self._with_items(section)

    def create_home_section(self, data):
        now = self.clock()
        section = HomeSection(**data.model_dump(exclude_none=True), created_at=now, updated_at=now)
        db.session.add(section)
        self._commit()
        return section

    def update_home_section(self, id, data):
        return self._update(HomeSection, id, _changes(data))

    def delete_home_section(self, id):
        try:
            HomeSectionItem.query.filter_by(section_id=id).delete()
            deleted = HomeSection.query.filter_by(id=id).delete()
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        return deleted > 0

    def get_home_section_items(self, section_id):
        # inner join: missing or soft-deleted products drop out
        rows = (
            db.session.query(HomeSectionItem, Product)
            .join(Product, HomeSectionItem.product_id == Product.id)
            .filter(HomeSectionItem.section_id == section_id, Product.is_active.is_(True))
            .order_by(HomeSectionItem.position)
            .all()
        )
        return [dict(item.to_dict(), product=product.to_dict()) for item, product in rows]

    def add_home_section_item(self, data):
        item = HomeSectionItem(**data.model_dump(exclude_none=True), created_at=self.clock())
        db.session.add(item)
        self._commit()
        return item

    def update_home_section_item(self, item_id, data):
        return self._update(HomeSectionItem, item_id, _changes(data))

    def delete_home_section_item(self, item_id):
        deleted = HomeSectionItem.query.filter_by(id=item_id).delete()
        self._commit()
        return deleted > 0


storage = DatabaseStorage()
