from django import forms

from . import validity
from .models import BadgeType, ItemBadge, Promotion, PromotionItem


class WeekdaysField(forms.TypedMultipleChoiceField):
    def __init__(self, **kwargs):
        kwargs.setdefault("choices", validity.WEEKDAY_CHOICES)
        kwargs.setdefault("coerce", int)
        kwargs.setdefault("required", False)
        kwargs.setdefault("widget", forms.CheckboxSelectMultiple)
        super().__init__(**kwargs)

    def prepare_value(self, value):
        if isinstance(value, (list, tuple, set, frozenset)):
            return [str(v) for v in value]
        return value


class ValidityWindowFormMixin:
    """Clears fields foreign to the chosen validity type and checks the ranges."""

    allowed_validity_types = tuple(t for t, _ in validity.VALIDITY_CHOICES)

    def clean(self):
        cleaned = super().clean()
        vtype = cleaned.get("validity_type") or validity.PERMANENT
        if vtype not in self.allowed_validity_types:
            self.add_error("validity_type", "Tipo de vigencia no permitido.")
            return cleaned
        cleaned.update(validity.clean_window_fields(vtype, cleaned))

        needs = validity.FIELDS_BY_TYPE[vtype]
        if "valid_from" in needs:
            start, end = cleaned.get("valid_from"), cleaned.get("valid_until")
            if not start:
                self.add_error("valid_from", "Indica la fecha de inicio.")
            if not end:
                self.add_error("valid_until", "Indica la fecha de fin.")
            if start and end and end < start:
                self.add_error("valid_until", "La fecha de fin debe ser igual o posterior a la de inicio.")
        if "time_from" in needs:
            start, end = cleaned.get("time_from"), cleaned.get("time_until")
            if not start:
                self.add_error("time_from", "Indica la hora de inicio.")
            if not end:
                self.add_error("time_until", "Indica la hora de fin.")
            if start and end and end < start:
                self.add_error("time_until", "La hora de fin debe ser igual o posterior a la de inicio.")
        if "weekdays" in needs and not cleaned.get("weekdays"):
            self.add_error("weekdays", "Selecciona al menos un día.")
        cleaned["weekdays"] = sorted(cleaned.get("weekdays") or [])
        return cleaned


class PromotionForm(ValidityWindowFormMixin, forms.ModelForm):
    weekdays = WeekdaysField()

    class Meta:
        model = Promotion
        fields = "__all__"

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("type") == Promotion.TYPE_BUNDLE:
            for zone in ("capital", "interior"):
                name = f"special_bundle_price_{zone}_cents"
                if cleaned.get(name) is None:
                    self.add_error(name, "El combinado necesita precio para esta zona.")
        return cleaned


class PromotionItemForm(ValidityWindowFormMixin, forms.ModelForm):
    weekdays = WeekdaysField()

    class Meta:
        model = PromotionItem
        fields = "__all__"

    def clean(self):
        cleaned = super().clean()
        targets = [cleaned.get(n) for n in ("product", "variant", "category", "combo")]
        if not any(targets):
            raise forms.ValidationError("Elige un producto, variante, categoría o combo.")
        return cleaned


class ItemBadgeForm(ValidityWindowFormMixin, forms.ModelForm):
    allowed_validity_types = ItemBadge.BADGE_VALIDITY_TYPES
    weekdays = WeekdaysField()

    class Meta:
        model = ItemBadge
        fields = "__all__"


class BadgeAssignmentForm(ValidityWindowFormMixin, forms.Form):
    """One entry of the badge editor on the menu order page."""

    allowed_validity_types = ItemBadge.BADGE_VALIDITY_TYPES

    badge_type_id = forms.ModelChoiceField(queryset=BadgeType.objects.all())
    validity_type = forms.ChoiceField(
        choices=[(t, label) for t, label in validity.VALIDITY_CHOICES if t in ItemBadge.BADGE_VALIDITY_TYPES]
    )
    valid_from = forms.DateField(required=False)
    valid_until = forms.DateField(required=False)
    weekdays = WeekdaysField()

    def badge_values(self) -> dict:
        data = self.cleaned_data
        return {
            "badge_type": data["badge_type_id"],
            "validity_type": data["validity_type"],
            "valid_from": data.get("valid_from"),
            "valid_until": data.get("valid_until"),
            "weekdays": data.get("weekdays") or [],
        }


class ItemRefForm(forms.Form):
    item_type = forms.ChoiceField(choices=[("product", "Producto"), ("combo", "Combo")])
    item_id = forms.UUIDField()
