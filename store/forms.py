from django import forms
from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.password_validation import validate_password

from .models import Category, Product

User = get_user_model()

REGISTRATION_FAILED = "Registration failed. The email may already be in use."
LOGIN_FAILED = "Email or password is incorrect."


# -------------------------------
# Accounts
# -------------------------------
class RegisterForm(forms.Form):
    name = forms.CharField(max_length=150)
    email = forms.EmailField()
    password = forms.CharField(widget=forms.PasswordInput, strip=False)

    def clean_email(self):
        email = User.objects.normalize_email(self.cleaned_data['email'])
        if User.objects.filter(email__iexact=email).exists():
            raise forms.ValidationError(REGISTRATION_FAILED)
        return email

    def clean_password(self):
        password = self.cleaned_data['password']
        validate_password(password)
        return password


class LoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField(widget=forms.PasswordInput, strip=False)

    def __init__(self, *args, request=None, **kwargs):
        self.request = request
        self.user = None
        super().__init__(*args, **kwargs)

    def clean(self):
        cleaned_data = super().clean()
        email = cleaned_data.get('email')
        password = cleaned_data.get('password')
        if email and password:
            self.user = authenticate(self.request, email=email, password=password)
        # Same message for unknown email and wrong password
        if self.user is None:
            raise forms.ValidationError(LOGIN_FAILED)
        return cleaned_data


class ProfileForm(forms.ModelForm):
    class Meta:
        model = User
        fields = ['name', 'address', 'phone_number', 'birth_date']
        widgets = {
            'birth_date': forms.DateInput(attrs={'type': 'date'}),
        }


# -------------------------------
# Catalog
# -------------------------------
class IdListField(forms.Field):
    """
    Repeated query parameter of ids. Entries that are not integers are
    skipped; ids with no matching row are kept so they still narrow the
    result.
    """
    widget = forms.SelectMultiple

    def to_python(self, value):
        if not value:
            return []
        if not isinstance(value, (list, tuple)):
            value = [value]
        ids = []
        for raw in value:
            try:
                ids.append(int(raw))
            except (TypeError, ValueError):
                continue
        return ids


class SearchForm(forms.Form):
    SORT_CHOICES = [
        ('newest', 'Newest'),
        ('price_asc', 'Price: low to high'),
        ('price_desc', 'Price: high to low'),
    ]

    q = forms.CharField(required=False, max_length=200)
    category = IdListField(required=False)
    min_price = forms.DecimalField(required=False, min_value=0, decimal_places=2)
    max_price = forms.DecimalField(required=False, min_value=0, decimal_places=2)
    sort = forms.ChoiceField(required=False, choices=SORT_CHOICES)

    def filters(self):
        """
        Cleaned filter values. A field that fails validation is dropped
        rather than rejecting the whole search.
        """
        self.is_valid()
        return {
            name: value
            for name, value in self.cleaned_data.items()
            if value not in (None, '', [])
        }


# -------------------------------
# Cart
# -------------------------------
class AddToCartForm(forms.Form):
    quantity = forms.IntegerField(min_value=1)


# -------------------------------
# Back-office
# -------------------------------
class ProductForm(forms.ModelForm):
    class Meta:
        model = Product
        fields = ['name', 'description', 'price', 'stock_quantity', 'image', 'category']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['category'].queryset = Category.objects.order_by('name')
        self.fields['category'].required = False

    def clean_stock_quantity(self):
        stock = self.cleaned_data['stock_quantity']
        if stock < 0:
            raise forms.ValidationError("Stock cannot be negative.")
        return stock


class CategoryForm(forms.ModelForm):
    class Meta:
        model = Category
        fields = ['name']
