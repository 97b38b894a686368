from django import forms

from apps.common.phone import to_e164
from apps.restaurants.models import Restaurant

from .models import Driver


class DriverForm(forms.ModelForm):
    password = forms.CharField(
        widget=forms.PasswordInput(render_value=False),
        required=False,
        min_length=8,
        help_text="Déjalo vacío para conservar la contraseña actual.",
    )

    class Meta:
        model = Driver
        fields = ["restaurant", "name", "email", "phone", "is_active"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["restaurant"].queryset = Restaurant.objects.filter(is_active=True)
        if not self.instance.pk:
            self.fields["password"].required = True
            self.fields["password"].help_text = ""

    def clean_email(self):
        return (self.cleaned_data.get("email") or "").strip().lower()

    def clean_phone(self):
        raw = (self.cleaned_data.get("phone") or "").strip()
        if not raw:
            return ""
        try:
            return to_e164(raw)
        except ValueError as e:
            raise forms.ValidationError(str(e))

    def save(self, commit=True):
        driver = super().save(commit=False)
        if self.cleaned_data.get("password"):
            driver.set_password(self.cleaned_data["password"])
        if not driver.is_active:
            driver.is_available = False
        if commit:
            driver.save()
        return driver


class DriverFilterForm(forms.Form):
    STATUS_CHOICES = [("", "Todos"), ("active", "Activos"), ("inactive", "Inactivos"), ("available", "Disponibles")]

    q = forms.CharField(required=False, max_length=100)
    restaurant = forms.ModelChoiceField(queryset=Restaurant.objects.all(), required=False)
    status = forms.ChoiceField(choices=STATUS_CHOICES, required=False)

    def apply(self, qs):
        if not self.is_valid():
            return qs
        data = self.cleaned_data
        if data.get("q"):
            q = data["q"]
            qs = qs.filter(name__icontains=q) | qs.filter(email__icontains=q) | qs.filter(phone__icontains=q)
        if data.get("restaurant"):
            qs = qs.filter(restaurant=data["restaurant"])
        status = data.get("status")
        if status == "active":
            qs = qs.filter(is_active=True)
        elif status == "inactive":
            qs = qs.filter(is_active=False)
        elif status == "available":
            qs = qs.filter(is_active=True, is_available=True)
        return qs


class LoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField()


class LocationForm(forms.Form):
    latitude = forms.DecimalField(max_digits=11, decimal_places=8, min_value=-90, max_value=90)
    longitude = forms.DecimalField(max_digits=11, decimal_places=8, min_value=-180, max_value=180)


class DeliverForm(LocationForm):
    notes = forms.CharField(required=False, max_length=255)


class AvailabilityForm(forms.Form):
    is_available = forms.BooleanField(required=False)
