import logging

from django.db import transaction

from .models import Category, Combo, ItemBadge, Product, Section

log = logging.getLogger(__name__)


class SectionInUse(Exception):
    def __init__(self, section: Section, product_count: int):
        self.section = section
        self.product_count = product_count
        super().__init__(
            f"No se puede eliminar la sección «{section.title}» porque la usan {product_count} producto(s)."
        )


def item_model(item_type: str):
    return Combo if item_type == "combo" else Product


def toggle_active(obj) -> bool:
    obj.is_active = not obj.is_active
    obj.save(update_fields=["is_active", "updated_at"])
    log.info("%s %s is_active=%s", obj._meta.model_name, obj.pk, obj.is_active)
    return obj.is_active


@transaction.atomic
def sync_badges(item, badges: list[dict]) -> list[ItemBadge]:
    """Replace the badges of a product or combo with ``badges``."""
    target = {"combo": item} if isinstance(item, Combo) else {"product": item}
    ItemBadge.objects.filter(**target).delete()
    created = [ItemBadge.objects.create(**target, **values) for values in badges]
    return created


@transaction.atomic
def delete_section(section: Section) -> None:
    in_use = section.product_sections.count()
    if in_use:
        raise SectionInUse(section, in_use)
    section.delete()


def menu_structure(moment=None) -> list[dict]:
    """Categories with their products or combos, for the menu order page."""
    structure = []
    categories = Category.objects.all()
    for category in categories:
        if category.is_combo_category:
            items = Combo.objects.filter(category=category).prefetch_related("badges__badge_type")
            item_type = "combo"
        else:
            items = Product.objects.filter(category=category).prefetch_related("badges__badge_type")
            item_type = "product"
        structure.append(
            {
                "category": category,
                "item_type": item_type,
                "items": [
                    {
                        "obj": obj,
                        "badges": [
                            {"badge": b, "active": b.is_valid_now(moment)} for b in obj.badges.all()
                        ],
                    }
                    for obj in items
                ],
            }
        )
    return structure

