from django import forms


class BillingSessionForm(forms.Form):
    price_id = forms.CharField(max_length=120, required=False)
