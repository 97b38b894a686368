from django import forms

from apps.common.phone import to_e164

from .models import Order, OrderStatus, ServiceType


class CustomerOrderForm(forms.Form):
    """Header of an order placed by the customer app."""

    restaurant_id = forms.UUIDField()
    service_type = forms.ChoiceField(choices=ServiceType.choices)
    payment_method = forms.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, required=False)
    customer_name = forms.CharField(max_length=160)
    customer_phone = forms.CharField(max_length=32)
    customer_email = forms.EmailField(required=False)
    notes = forms.CharField(required=False, max_length=1000)

    def clean_customer_phone(self):
        try:
            return to_e164(self.cleaned_data["customer_phone"])
        except ValueError as e:
            raise forms.ValidationError(str(e))

    def clean_payment_method(self):
        return self.cleaned_data.get("payment_method") or "cash"


class DeliveryAddressForm(forms.Form):
    address = forms.CharField(max_length=255)
    reference = forms.CharField(max_length=255, required=False)
    latitude = forms.DecimalField(max_digits=11, decimal_places=8, required=False, min_value=-90, max_value=90)
    longitude = forms.DecimalField(max_digits=11, decimal_places=8, required=False, min_value=-180, max_value=180)

    def snapshot(self) -> dict:
        data = self.cleaned_data
        out = {"address": data["address"], "reference": data.get("reference") or ""}
        if data.get("latitude") is not None and data.get("longitude") is not None:
            out["latitude"] = float(data["latitude"])
            out["longitude"] = float(data["longitude"])
        return out


class OrderLineForm(forms.Form):
    product_id = forms.UUIDField(required=False)
    variant_id = forms.UUIDField(required=False)
    combo_id = forms.UUIDField(required=False)
    bundle_id = forms.UUIDField(required=False)
    quantity = forms.IntegerField(min_value=1, max_value=99)
    notes = forms.CharField(required=False, max_length=255)

    def clean(self):
        cleaned = super().clean()
        picked = [name for name in ("product_id", "combo_id", "bundle_id") if cleaned.get(name)]
        if len(picked) != 1:
            raise forms.ValidationError("Cada línea lleva un producto, un combo o un combinado.")
        return cleaned


class CancelForm(forms.Form):
    reason = forms.CharField(max_length=255, error_messages={"required": "Indica el motivo de la cancelación."})
    version = forms.IntegerField(required=False)


class AssignDriverForm(forms.Form):
    driver_id = forms.UUIDField(error_messages={"required": "Selecciona un repartidor.", "invalid": "Repartidor inválido."})
    version = forms.IntegerField(required=False)


class OrderFilterForm(forms.Form):
    date = forms.DateField(required=False)
    status = forms.ChoiceField(required=False)
    service_type = forms.ChoiceField(choices=[("", "Todos")] + ServiceType.choices, required=False)
    page = forms.IntegerField(required=False, min_value=1)
    per_page = forms.IntegerField(required=False, min_value=1)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["status"].choices = [("", "Todos")] + OrderStatus.choices
