from django.contrib import admin, messages
from django.db import transaction

from .forms import ItemBadgeForm, PromotionForm, PromotionItemForm
from .models import (
    BadgeType,
    BundlePromotionItem,
    BundlePromotionItemOption,
    Category,
    Combo,
    ComboItem,
    ComboItemOption,
    ItemBadge,
    Product,
    ProductSection,
    ProductVariant,
    Promotion,
    PromotionItem,
    Section,
    SectionOption,
)
from .services import SectionInUse, delete_section
from .validity import status_at


class SortableAdmin(admin.ModelAdmin):
    """Bulk deletes go row by row so every scope stays 1..n."""

    ordering = ("sort_order", "created_at")
    exclude = ("sort_order",)

    @transaction.atomic
    def delete_queryset(self, request, queryset):
        for obj in queryset:
            self.delete_model(request, obj)


class SortableInline(admin.TabularInline):
    """Positions come from the reorder endpoints, never from the form."""

    extra = 0
    ordering = ("sort_order",)
    exclude = ("sort_order",)


class ItemBadgeInline(admin.TabularInline):
    model = ItemBadge
    form = ItemBadgeForm
    extra = 0


class ProductBadgeInline(ItemBadgeInline):
    fk_name = "product"
    exclude = ("combo",)


class ComboBadgeInline(ItemBadgeInline):
    fk_name = "combo"
    exclude = ("product",)


@admin.register(Category)
class CategoryAdmin(SortableAdmin):
    list_display = ("name", "sort_order", "is_active", "is_combo_category", "uses_variants")
    list_filter = ("is_active", "is_combo_category")
    search_fields = ("name",)


class ProductVariantInline(SortableInline):
    model = ProductVariant
    fields = (
        "name",
        "sku",
        "size",
        "price_pickup_capital_cents",
        "price_delivery_capital_cents",
        "price_pickup_interior_cents",
        "price_delivery_interior_cents",
        "is_daily_special",
        "daily_special_days",
        "is_active",
    )


class ProductSectionInline(SortableInline):
    model = ProductSection
    autocomplete_fields = ("section",)


@admin.register(Product)
class ProductAdmin(SortableAdmin):
    list_display = ("name", "category", "sort_order", "price_pickup_capital_cents", "has_variants", "is_active")
    list_filter = ("is_active", "has_variants", "category")
    search_fields = ("name", "description", "category__name")
    list_select_related = ("category",)
    ordering = ("category__sort_order", "sort_order")
    inlines = [ProductVariantInline, ProductSectionInline, ProductBadgeInline]


@admin.register(ProductVariant)
class ProductVariantAdmin(SortableAdmin):
    list_display = ("__str__", "sku", "size", "is_daily_special", "is_active")
    list_filter = ("is_active", "is_daily_special")
    search_fields = ("name", "sku", "product__name")
    list_select_related = ("product",)


class SectionOptionInline(SortableInline):
    model = SectionOption


@admin.register(Section)
class SectionAdmin(SortableAdmin):
    list_display = ("title", "sort_order", "is_required", "allow_multiple", "is_active")
    list_filter = ("is_active", "is_required")
    search_fields = ("title",)
    inlines = [SectionOptionInline]

    def delete_model(self, request, obj):
        try:
            delete_section(obj)
        except SectionInUse as e:
            # sections still attached to products are kept
            messages.error(request, str(e))


class ComboItemOptionInline(SortableInline):
    model = ComboItemOption


@admin.register(ComboItem)
class ComboItemAdmin(SortableAdmin):
    list_display = ("__str__", "combo", "is_choice_group", "quantity", "sort_order")
    list_select_related = ("combo", "product")
    inlines = [ComboItemOptionInline]


class ComboItemInline(SortableInline):
    model = ComboItem
    show_change_link = True


@admin.register(Combo)
class ComboAdmin(SortableAdmin):
    list_display = ("name", "category", "sort_order", "price_pickup_capital_cents", "is_active", "available")
    list_filter = ("is_active",)
    search_fields = ("name",)
    inlines = [ComboItemInline, ComboBadgeInline]

    @admin.display(boolean=True, description="Disponible")
    def available(self, obj):
        return obj.is_available()


@admin.register(BadgeType)
class BadgeTypeAdmin(SortableAdmin):
    list_display = ("name", "color", "text_color", "sort_order", "is_active")


class PromotionItemInline(admin.StackedInline):
    model = PromotionItem
    form = PromotionItemForm
    extra = 0
    autocomplete_fields = ("product", "category")


class BundleItemInline(SortableInline):
    model = BundlePromotionItem
    show_change_link = True


@admin.register(Promotion)
class PromotionAdmin(admin.ModelAdmin):
    form = PromotionForm
    list_display = ("name", "type", "is_active", "validity_type", "valid_from", "valid_until", "status")
    list_filter = ("type", "is_active", "validity_type")
    search_fields = ("name", "description")
    inlines = [PromotionItemInline, BundleItemInline]

    @admin.display(description="Estado")
    def status(self, obj):
        if not obj.is_bundle:
            return "active" if obj.is_valid_now() else "inactive"
        return status_at(obj.validity_window(is_active=obj.is_active))


class BundleOptionInline(SortableInline):
    model = BundlePromotionItemOption


@admin.register(BundlePromotionItem)
class BundlePromotionItemAdmin(SortableAdmin):
    list_display = ("promotion", "choice_label", "product", "is_choice_group", "quantity", "sort_order")
    list_select_related = ("promotion", "product")
    inlines = [BundleOptionInline]
