from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q

from apps.common.models import BaseModel, SortableModel
from apps.common.validators import validate_upload

from . import validity
from .validity import ValidityWindow

ZONES = ("capital", "interior")
SERVICE_TYPES = ("pickup", "delivery")


def price_field(zone: str, service_type: str, *, prefix: str = "price") -> str:
    if zone not in ZONES:
        raise ValueError(f"unknown zone: {zone}")
    if service_type not in SERVICE_TYPES:
        raise ValueError(f"unknown service type: {service_type}")
    return f"{prefix}_{service_type}_{zone}_cents"


def _cents(**kwargs):
    return models.IntegerField(validators=[MinValueValidator(0)], **kwargs)


class PricedModel(models.Model):
    """Four price columns: pickup/delivery x capital/interior, in cents."""

    price_pickup_capital_cents = _cents(default=0)
    price_delivery_capital_cents = _cents(default=0)
    price_pickup_interior_cents = _cents(default=0)
    price_delivery_interior_cents = _cents(default=0)

    class Meta:
        abstract = True

    def price_cents(self, zone: str, service_type: str) -> int:
        return getattr(self, price_field(zone, service_type))

    def prices(self) -> dict:
        return {
            "pickup_capital": self.price_pickup_capital_cents,
            "delivery_capital": self.price_delivery_capital_cents,
            "pickup_interior": self.price_pickup_interior_cents,
            "delivery_interior": self.price_delivery_interior_cents,
        }


class ValidityWindowModel(models.Model):
    validity_type = models.CharField(max_length=20, choices=validity.VALIDITY_CHOICES, default=validity.PERMANENT)
    valid_from = models.DateField(null=True, blank=True)
    valid_until = models.DateField(null=True, blank=True)
    time_from = models.TimeField(null=True, blank=True)
    time_until = models.TimeField(null=True, blank=True)
    # ISO weekdays, 1 = Monday; empty means every day
    weekdays = models.JSONField(default=list, blank=True)

    class Meta:
        abstract = True

    def validity_window(self, *, is_active: bool = True) -> ValidityWindow:
        return ValidityWindow(
            is_active=is_active,
            validity_type=self.validity_type,
            valid_from=self.valid_from,
            valid_until=self.valid_until,
            time_from=self.time_from,
            time_until=self.time_until,
            weekdays=validity.normalize_weekdays(self.weekdays),
        )

    def window_is_valid(self, moment=None) -> bool:
        return validity.is_valid_at(self.validity_window(), moment)


class Category(BaseModel, SortableModel):
    name = models.CharField(max_length=120)
    description = models.TextField(blank=True)
    image = models.ImageField(upload_to="uploads/menu/categories/", max_length=255, blank=True, null=True, validators=[validate_upload])
    is_active = models.BooleanField(default=True)
    is_combo_category = models.BooleanField(default=False)
    uses_variants = models.BooleanField(default=False)
    # sizes offered by the category's products, e.g. ["15cm", "30cm"]
    variant_definitions = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ["sort_order", "created_at"]
        verbose_name_plural = "categories"

    def __str__(self):
        return self.name


class Section(BaseModel, SortableModel):
    """Customization step shown on a product (bread, vegetables, sauces...)."""

    title = models.CharField(max_length=120)
    description = models.TextField(blank=True)
    is_required = models.BooleanField(default=False)
    allow_multiple = models.BooleanField(default=False)
    min_selections = models.PositiveIntegerField(default=0)
    max_selections = models.PositiveIntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["sort_order", "created_at"]

    def __str__(self):
        return self.title


class SectionOption(BaseModel, SortableModel):
    sort_scope = "section"

    section = models.ForeignKey(Section, on_delete=models.CASCADE, related_name="options")
    name = models.CharField(max_length=120)
    is_extra = models.BooleanField(default=False)
    price_modifier_cents = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["sort_order", "created_at"]
        indexes = [models.Index(fields=["section", "sort_order"], name="menu_option_order_idx")]

    def __str__(self):
        return self.name


class Product(BaseModel, SortableModel, PricedModel):
    sort_scope = "category"

    category = models.ForeignKey(Category, on_delete=models.CASCADE, related_name="products")
    name = models.CharField(max_length=160)
    description = models.TextField(blank=True)
    image = models.ImageField(upload_to="uploads/menu/products/", max_length=255, blank=True, null=True, validators=[validate_upload])
    has_variants = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    sections = models.ManyToManyField(Section, through="ProductSection", related_name="products", blank=True)

    class Meta:
        ordering = ["sort_order", "created_at"]
        indexes = [models.Index(fields=["category", "is_active", "sort_order"], name="menu_product_order_idx")]

    def __str__(self):
        return self.name


class ProductVariant(BaseModel, SortableModel, PricedModel):
    sort_scope = "product"

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="variants")
    sku = models.CharField(max_length=60, blank=True)
    name = models.CharField(max_length=120)
    size = models.CharField(max_length=40, blank=True)
    is_active = models.BooleanField(default=True)
    is_daily_special = models.BooleanField(default=False)
    daily_special_days = models.JSONField(default=list, blank=True)
    daily_special_price_pickup_capital_cents = _cents(null=True, blank=True)
    daily_special_price_delivery_capital_cents = _cents(null=True, blank=True)
    daily_special_price_pickup_interior_cents = _cents(null=True, blank=True)
    daily_special_price_delivery_interior_cents = _cents(null=True, blank=True)

    class Meta:
        ordering = ["sort_order", "created_at"]

    def __str__(self):
        return f"{self.product.name} {self.name}" if self.product_id else self.name

    def daily_special_price_cents(self, zone: str, service_type: str) -> int | None:
        return getattr(self, price_field(zone, service_type, prefix="daily_special_price"))

    def is_daily_special_on(self, isoweekday: int) -> bool:
        if not (self.is_daily_special and self.is_active):
            return False
        return isoweekday in validity.normalize_weekdays(self.daily_special_days)


class ProductSection(BaseModel, SortableModel):
    sort_scope = "product"

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="product_sections")
    section = models.ForeignKey(Section, on_delete=models.PROTECT, related_name="product_sections")

    class Meta:
        ordering = ["sort_order", "created_at"]
        constraints = [models.UniqueConstraint(fields=["product", "section"], name="uniq_product_section")]


class Combo(BaseModel, SortableModel, PricedModel):
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name="combos")
    name = models.CharField(max_length=160)
    description = models.TextField(blank=True)
    image = models.ImageField(upload_to="uploads/menu/combos/", max_length=255, blank=True, null=True, validators=[validate_upload])
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["sort_order", "created_at"]

    def __str__(self):
        return self.name

    def is_available(self) -> bool:
        """Active, every fixed product active and every choice group with an active option."""
        if not self.is_active:
            return False
        for item in self.items.all():
            if item.is_choice_group:
                if not any(opt.product.is_active for opt in item.options.all()):
                    return False
            elif item.product is None or not item.product.is_active:
                return False
        return True


class ComboItem(BaseModel, SortableModel):
    sort_scope = "combo"

    combo = models.ForeignKey(Combo, on_delete=models.CASCADE, related_name="items")
    is_choice_group = models.BooleanField(default=False)
    choice_label = models.CharField(max_length=120, blank=True)
    product = models.ForeignKey(Product, on_delete=models.PROTECT, null=True, blank=True, related_name="+")
    variant = models.ForeignKey(ProductVariant, on_delete=models.PROTECT, null=True, blank=True, related_name="+")
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    class Meta:
        ordering = ["sort_order", "created_at"]
        constraints = [
            models.CheckConstraint(
                check=Q(is_choice_group=True) | Q(product__isnull=False),
                name="combo_item_fixed_has_product",
            )
        ]

    def __str__(self):
        if self.is_choice_group:
            return self.choice_label or "Opción"
        return str(self.product) if self.product_id else "-"


class ComboItemOption(BaseModel, SortableModel):
    sort_scope = "combo_item"

    combo_item = models.ForeignKey(ComboItem, on_delete=models.CASCADE, related_name="options")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="+")
    variant = models.ForeignKey(ProductVariant, on_delete=models.PROTECT, null=True, blank=True, related_name="+")

    class Meta:
        ordering = ["sort_order", "created_at"]


class BadgeType(BaseModel, SortableModel):
    name = models.CharField(max_length=60)
    color = models.CharField(max_length=20, default="#008938")
    text_color = models.CharField(max_length=20, default="#ffffff")
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["sort_order", "created_at"]

    def __str__(self):
        return self.name


class ItemBadge(BaseModel, ValidityWindowModel):
    BADGE_VALIDITY_TYPES = (validity.PERMANENT, validity.DATE_RANGE, validity.WEEKDAYS)

    badge_type = models.ForeignKey(BadgeType, on_delete=models.CASCADE, related_name="item_badges")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, null=True, blank=True, related_name="badges")
    combo = models.ForeignKey(Combo, on_delete=models.CASCADE, null=True, blank=True, related_name="badges")

    class Meta:
        ordering = ["badge_type__sort_order", "created_at"]
        constraints = [
            models.CheckConstraint(
                check=(Q(product__isnull=False) & Q(combo__isnull=True)) | (Q(product__isnull=True) & Q(combo__isnull=False)),
                name="item_badge_single_target",
            )
        ]

    def is_valid_now(self, moment=None) -> bool:
        return validity.is_valid_at(self.validity_window(is_active=self.badge_type.is_active), moment)


class Promotion(BaseModel, ValidityWindowModel):
    TYPE_TWO_FOR_ONE = "two_for_one"
    TYPE_PERCENTAGE = "percentage_discount"
    TYPE_DAILY_SPECIAL = "daily_special"
    TYPE_BUNDLE = "bundle_special"
    TYPE_CHOICES = [
        (TYPE_TWO_FOR_ONE, "2x1"),
        (TYPE_PERCENTAGE, "Descuento porcentual"),
        (TYPE_DAILY_SPECIAL, "Sub del Día"),
        (TYPE_BUNDLE, "Combinado"),
    ]

    name = models.CharField(max_length=160)
    description = models.TextField(blank=True)
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    is_active = models.BooleanField(default=True)
    special_bundle_price_capital_cents = _cents(null=True, blank=True)
    special_bundle_price_interior_cents = _cents(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["type", "is_active"], name="menu_promotion_type_idx")]

    def __str__(self):
        return self.name

    @property
    def is_bundle(self) -> bool:
        return self.type == self.TYPE_BUNDLE

    def is_valid_now(self, moment=None) -> bool:
        """Bundles use their own window; other types need one valid item."""
        if self.is_bundle:
            return validity.is_valid_at(self.validity_window(is_active=self.is_active), moment)
        if not self.is_active:
            return False
        return any(item.window_is_valid(moment) for item in self.items.all())

    def bundle_price_cents(self, zone: str) -> int | None:
        return getattr(self, f"special_bundle_price_{zone}_cents")

    def bundle_is_available(self) -> bool:
        for item in self.bundle_items.all():
            if item.is_choice_group:
                if not any(opt.product.is_active for opt in item.options.all()):
                    return False
            elif item.product is None or not item.product.is_active:
                return False
        return True


class PromotionItem(BaseModel, ValidityWindowModel):
    SERVICE_BOTH = "both"
    SERVICE_CHOICES = [(SERVICE_BOTH, "Ambos"), ("pickup", "Solo para llevar"), ("delivery", "Solo domicilio")]

    promotion = models.ForeignKey(Promotion, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, null=True, blank=True, related_name="promotion_items")
    variant = models.ForeignKey(ProductVariant, on_delete=models.CASCADE, null=True, blank=True, related_name="promotion_items")
    category = models.ForeignKey(Category, on_delete=models.CASCADE, null=True, blank=True, related_name="promotion_items")
    combo = models.ForeignKey(Combo, on_delete=models.CASCADE, null=True, blank=True, related_name="promotion_items")
    service_type = models.CharField(max_length=10, choices=SERVICE_CHOICES, default=SERVICE_BOTH)
    special_price_pickup_capital_cents = _cents(null=True, blank=True)
    special_price_delivery_capital_cents = _cents(null=True, blank=True)
    special_price_pickup_interior_cents = _cents(null=True, blank=True)
    special_price_delivery_interior_cents = _cents(null=True, blank=True)
    discount_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )

    class Meta:
        ordering = ["created_at"]

    def special_price_cents(self, zone: str, service_type: str) -> int | None:
        return getattr(self, price_field(zone, service_type, prefix="special_price"))

    def applies_to_service(self, service_type: str) -> bool:
        return self.service_type in (self.SERVICE_BOTH, service_type)

    def is_valid_now(self, moment=None) -> bool:
        return validity.is_valid_at(self.validity_window(is_active=self.promotion.is_active), moment)


class BundlePromotionItem(BaseModel, SortableModel):
    sort_scope = "promotion"

    promotion = models.ForeignKey(Promotion, on_delete=models.CASCADE, related_name="bundle_items")
    is_choice_group = models.BooleanField(default=False)
    choice_label = models.CharField(max_length=120, blank=True)
    product = models.ForeignKey(Product, on_delete=models.PROTECT, null=True, blank=True, related_name="+")
    variant = models.ForeignKey(ProductVariant, on_delete=models.PROTECT, null=True, blank=True, related_name="+")
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    class Meta:
        ordering = ["sort_order", "created_at"]


class BundlePromotionItemOption(BaseModel, SortableModel):
    sort_scope = "bundle_item"

    bundle_item = models.ForeignKey(BundlePromotionItem, on_delete=models.CASCADE, related_name="options")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="+")
    variant = models.ForeignKey(ProductVariant, on_delete=models.PROTECT, null=True, blank=True, related_name="+")

    class Meta:
        ordering = ["sort_order", "created_at"]
