from django import forms
from django.conf import settings

from .models import FILTER_TYPE_CHOICES, PlanningWatch


def _max_limit():
    return settings.PLANNING_DATA.get("MAX_LIMIT", 1000)


class FilterFieldsMixin:
    def clean_filter_value(self):
        value = self.cleaned_data["filter_value"].strip()
        if not value:
            raise forms.ValidationError("Please enter a filter value.")
        return value

    def clean_limit(self):
        limit = self.cleaned_data["limit"]
        if limit is None:
            return limit
        if limit < 1 or limit > _max_limit():
            raise forms.ValidationError(f"Limit must be between 1 and {_max_limit()}.")
        return limit


class PlanningSearchForm(FilterFieldsMixin, forms.Form):
    filter_type = forms.ChoiceField(
        label="Search by",
        choices=FILTER_TYPE_CHOICES,
        initial="postcode",
    )
    filter_value = forms.CharField(
        label="Value",
        max_length=255,
        widget=forms.TextInput(
            attrs={
                "placeholder": "e.g. SW1A 1AA or Ealing",
            }
        ),
    )
    limit = forms.IntegerField(initial=10)
    webhook_url = forms.URLField(
        label="Webhook URL",
        required=False,
        help_text="New applications are POSTed here (e.g. a Zapier catch hook).",
    )


class PlanningWatchForm(FilterFieldsMixin, forms.ModelForm):
    class Meta:
        model = PlanningWatch
        fields = ["filter_type", "filter_value", "limit", "webhook_url"]
