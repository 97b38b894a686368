import apps.common.validators
import django.core.validators
import django.db.models.deletion
import uuid
from django.db import migrations, models


def cents(**kwargs):
    return models.IntegerField(validators=[django.core.validators.MinValueValidator(0)], **kwargs)


def base_fields():
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


def sort_field():
    return ("sort_order", models.PositiveIntegerField(db_index=True, default=0))


def price_fields():
    return [
        ("price_pickup_capital_cents", cents(default=0)),
        ("price_delivery_capital_cents", cents(default=0)),
        ("price_pickup_interior_cents", cents(default=0)),
        ("price_delivery_interior_cents", cents(default=0)),
    ]


VALIDITY_CHOICES = [
    ("permanent", "Permanente"),
    ("date_range", "Rango de fechas"),
    ("time_range", "Horario"),
    ("date_time_range", "Fechas y horario"),
    ("weekdays", "Días de la semana"),
]


def validity_fields():
    return [
        ("validity_type", models.CharField(choices=VALIDITY_CHOICES, default="permanent", max_length=20)),
        ("valid_from", models.DateField(blank=True, null=True)),
        ("valid_until", models.DateField(blank=True, null=True)),
        ("time_from", models.TimeField(blank=True, null=True)),
        ("time_until", models.TimeField(blank=True, null=True)),
        ("weekdays", models.JSONField(blank=True, default=list)),
    ]


SORTED = {"ordering": ["sort_order", "created_at"]}


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Category",
            fields=base_fields()
            + [
                sort_field(),
                ("name", models.CharField(max_length=120)),
                ("description", models.TextField(blank=True)),
                ("image", models.ImageField(blank=True, max_length=255, null=True, upload_to="uploads/menu/categories/", validators=[apps.common.validators.validate_upload])),
                ("is_active", models.BooleanField(default=True)),
                ("is_combo_category", models.BooleanField(default=False)),
                ("uses_variants", models.BooleanField(default=False)),
                ("variant_definitions", models.JSONField(blank=True, default=list)),
            ],
            options={"ordering": ["sort_order", "created_at"], "verbose_name_plural": "categories"},
        ),
        migrations.CreateModel(
            name="Section",
            fields=base_fields()
            + [
                sort_field(),
                ("title", models.CharField(max_length=120)),
                ("description", models.TextField(blank=True)),
                ("is_required", models.BooleanField(default=False)),
                ("allow_multiple", models.BooleanField(default=False)),
                ("min_selections", models.PositiveIntegerField(default=0)),
                ("max_selections", models.PositiveIntegerField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options=SORTED,
        ),
        migrations.CreateModel(
            name="SectionOption",
            fields=base_fields()
            + [
                sort_field(),
                ("name", models.CharField(max_length=120)),
                ("is_extra", models.BooleanField(default=False)),
                ("price_modifier_cents", models.IntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("section", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="options", to="menu.section")),
            ],
            options={
                "ordering": ["sort_order", "created_at"],
                "indexes": [models.Index(fields=["section", "sort_order"], name="menu_option_order_idx")],
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=base_fields()
            + [sort_field()]
            + price_fields()
            + [
                ("name", models.CharField(max_length=160)),
                ("description", models.TextField(blank=True)),
                ("image", models.ImageField(blank=True, max_length=255, null=True, upload_to="uploads/menu/products/", validators=[apps.common.validators.validate_upload])),
                ("has_variants", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("category", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="products", to="menu.category")),
            ],
            options={
                "ordering": ["sort_order", "created_at"],
                "indexes": [models.Index(fields=["category", "is_active", "sort_order"], name="menu_product_order_idx")],
            },
        ),
        migrations.CreateModel(
            name="ProductVariant",
            fields=base_fields()
            + [sort_field()]
            + price_fields()
            + [
                ("sku", models.CharField(blank=True, max_length=60)),
                ("name", models.CharField(max_length=120)),
                ("size", models.CharField(blank=True, max_length=40)),
                ("is_active", models.BooleanField(default=True)),
                ("is_daily_special", models.BooleanField(default=False)),
                ("daily_special_days", models.JSONField(blank=True, default=list)),
                ("daily_special_price_pickup_capital_cents", cents(blank=True, null=True)),
                ("daily_special_price_delivery_capital_cents", cents(blank=True, null=True)),
                ("daily_special_price_pickup_interior_cents", cents(blank=True, null=True)),
                ("daily_special_price_delivery_interior_cents", cents(blank=True, null=True)),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="variants", to="menu.product")),
            ],
            options=SORTED,
        ),
        migrations.CreateModel(
            name="ProductSection",
            fields=base_fields()
            + [
                sort_field(),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="product_sections", to="menu.product")),
                ("section", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="product_sections", to="menu.section")),
            ],
            options={
                "ordering": ["sort_order", "created_at"],
                "constraints": [models.UniqueConstraint(fields=("product", "section"), name="uniq_product_section")],
            },
        ),
        migrations.AddField(
            model_name="product",
            name="sections",
            field=models.ManyToManyField(blank=True, related_name="products", through="menu.ProductSection", to="menu.section"),
        ),
        migrations.CreateModel(
            name="Combo",
            fields=base_fields()
            + [sort_field()]
            + price_fields()
            + [
                ("name", models.CharField(max_length=160)),
                ("description", models.TextField(blank=True)),
                ("image", models.ImageField(blank=True, max_length=255, null=True, upload_to="uploads/menu/combos/", validators=[apps.common.validators.validate_upload])),
                ("is_active", models.BooleanField(default=True)),
                ("category", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="combos", to="menu.category")),
            ],
            options=SORTED,
        ),
        migrations.CreateModel(
            name="ComboItem",
            fields=base_fields()
            + [
                sort_field(),
                ("is_choice_group", models.BooleanField(default=False)),
                ("choice_label", models.CharField(blank=True, max_length=120)),
                ("quantity", models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ("combo", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="menu.combo")),
                ("product", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="menu.product")),
                ("variant", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="menu.productvariant")),
            ],
            options={
                "ordering": ["sort_order", "created_at"],
                "constraints": [
                    models.CheckConstraint(
                        check=models.Q(("is_choice_group", True), ("product__isnull", False), _connector="OR"),
                        name="combo_item_fixed_has_product",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ComboItemOption",
            fields=base_fields()
            + [
                sort_field(),
                ("combo_item", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="options", to="menu.comboitem")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="+", to="menu.product")),
                ("variant", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="menu.productvariant")),
            ],
            options=SORTED,
        ),
        migrations.CreateModel(
            name="BadgeType",
            fields=base_fields()
            + [
                sort_field(),
                ("name", models.CharField(max_length=60)),
                ("color", models.CharField(default="#008938", max_length=20)),
                ("text_color", models.CharField(default="#ffffff", max_length=20)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options=SORTED,
        ),
        migrations.CreateModel(
            name="ItemBadge",
            fields=base_fields()
            + validity_fields()
            + [
                ("badge_type", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="item_badges", to="menu.badgetype")),
                ("product", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="badges", to="menu.product")),
                ("combo", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="badges", to="menu.combo")),
            ],
            options={
                "ordering": ["badge_type__sort_order", "created_at"],
                "constraints": [
                    models.CheckConstraint(
                        check=models.Q(
                            models.Q(("product__isnull", False), ("combo__isnull", True)),
                            models.Q(("product__isnull", True), ("combo__isnull", False)),
                            _connector="OR",
                        ),
                        name="item_badge_single_target",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Promotion",
            fields=base_fields()
            + validity_fields()
            + [
                ("name", models.CharField(max_length=160)),
                ("description", models.TextField(blank=True)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("two_for_one", "2x1"),
                            ("percentage_discount", "Descuento porcentual"),
                            ("daily_special", "Sub del Día"),
                            ("bundle_special", "Combinado"),
                        ],
                        max_length=30,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("special_bundle_price_capital_cents", cents(blank=True, null=True)),
                ("special_bundle_price_interior_cents", cents(blank=True, null=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["type", "is_active"], name="menu_promotion_type_idx")],
            },
        ),
        migrations.CreateModel(
            name="PromotionItem",
            fields=base_fields()
            + validity_fields()
            + [
                ("service_type", models.CharField(choices=[("both", "Ambos"), ("pickup", "Solo para llevar"), ("delivery", "Solo domicilio")], default="both", max_length=10)),
                ("special_price_pickup_capital_cents", cents(blank=True, null=True)),
                ("special_price_delivery_capital_cents", cents(blank=True, null=True)),
                ("special_price_pickup_interior_cents", cents(blank=True, null=True)),
                ("special_price_delivery_interior_cents", cents(blank=True, null=True)),
                (
                    "discount_percentage",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=5,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)],
                    ),
                ),
                ("promotion", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="menu.promotion")),
                ("product", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="promotion_items", to="menu.product")),
                ("variant", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="promotion_items", to="menu.productvariant")),
                ("category", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="promotion_items", to="menu.category")),
                ("combo", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="promotion_items", to="menu.combo")),
            ],
            options={"ordering": ["created_at"]},
        ),
        migrations.CreateModel(
            name="BundlePromotionItem",
            fields=base_fields()
            + [
                sort_field(),
                ("is_choice_group", models.BooleanField(default=False)),
                ("choice_label", models.CharField(blank=True, max_length=120)),
                ("quantity", models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ("promotion", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="bundle_items", to="menu.promotion")),
                ("product", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="menu.product")),
                ("variant", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="menu.productvariant")),
            ],
            options=SORTED,
        ),
        migrations.CreateModel(
            name="BundlePromotionItemOption",
            fields=base_fields()
            + [
                sort_field(),
                ("bundle_item", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="options", to="menu.bundlepromotionitem")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="+", to="menu.product")),
                ("variant", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="menu.productvariant")),
            ],
            options=SORTED,
        ),
    ]
