import base64
import json

from django import forms
from django.utils import timezone

from .parsing import lenient_float, lenient_int, parse_business_hours_input, parse_json_object


class SupabaseForm(forms.Form):
    """
    Form bound to one Supabase table row.

    ``initial_from_row`` maps a stored row onto form fields and ``to_row``
    maps cleaned data back onto columns. Blank optional text becomes None.
    """

    @classmethod
    def initial_from_row(cls, row):
        return {name: row.get(name) for name in cls.base_fields if row.get(name) is not None}

    def to_row(self):
        row = {}
        for name, value in self.cleaned_data.items():
            if isinstance(value, str):
                value = value.strip() or None
            row[name] = value
        return row


class MenuItemForm(SupabaseForm):
    name = forms.CharField(max_length=200)
    description = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 3}))
    # Free text on purpose: parsed leniently, see parsing.lenient_float
    price = forms.CharField(max_length=50)
    category_id = forms.ChoiceField(required=False, choices=[('', 'No category')])
    image_url = forms.CharField(required=False, max_length=2000)
    # an upload replaces image_url with an inline data URL
    image_file = forms.FileField(required=False)
    meta_title = forms.CharField(required=False, max_length=200)
    meta_description = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 2}))
    meta_keywords = forms.CharField(required=False, max_length=500)
    is_active = forms.BooleanField(required=False, initial=True)
    is_gluten_free = forms.BooleanField(required=False)
    is_vegan = forms.BooleanField(required=False)

    def __init__(self, *args, categories=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['category_id'].choices = [('', 'No category')] + [
            (c['id'], c['name']) for c in categories
        ]

    @classmethod
    def initial_from_row(cls, row):
        initial = super().initial_from_row(row)
        if row.get('price') is not None:
            initial['price'] = str(row['price'])
        return initial

    def to_row(self):
        row = super().to_row()
        row['price'] = lenient_float(self.cleaned_data['price'])
        upload = row.pop('image_file', None)
        if upload:
            encoded = base64.b64encode(upload.read()).decode('ascii')
            row['image_url'] = f"data:{upload.content_type};base64,{encoded}"
        return row


class MenuCategoryForm(SupabaseForm):
    name = forms.CharField(max_length=200)
    description = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 3}))
    display_order = forms.CharField(required=False, max_length=20)
    is_active = forms.BooleanField(required=False, initial=True)

    @classmethod
    def initial_from_row(cls, row):
        initial = super().initial_from_row(row)
        if row.get('display_order') is not None:
            initial['display_order'] = str(row['display_order'])
        return initial

    def to_row(self):
        row = super().to_row()
        row['display_order'] = lenient_int(self.cleaned_data.get('display_order') or '0')
        return row


class ArticleForm(SupabaseForm):
    STATUS_CHOICES = [('draft', 'Draft'), ('published', 'Published')]

    title = forms.CharField(max_length=300)
    content = forms.CharField(widget=forms.Textarea(attrs={'rows': 12}))
    category = forms.CharField(required=False, max_length=100)
    featured_image = forms.CharField(required=False, max_length=2000)
    meta_title = forms.CharField(required=False, max_length=200)
    meta_description = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 2}))
    meta_keywords = forms.CharField(required=False, max_length=500)
    status = forms.ChoiceField(choices=STATUS_CHOICES, initial='draft')

    def to_row(self):
        row = super().to_row()
        # Saving as published (re)stamps the publication date
        row['published_at'] = timezone.now().isoformat() if row['status'] == 'published' else None
        return row


class SEOSettingsForm(SupabaseForm):
    site_meta_title = forms.CharField(required=False, max_length=200)
    site_meta_description = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 3}))
    site_meta_keywords = forms.CharField(required=False, max_length=500)
    og_image = forms.CharField(required=False, max_length=2000)
    custom_scripts = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 6}))


class ContactInfoForm(SupabaseForm):
    SOCIAL_NETWORKS = ('facebook', 'instagram', 'twitter')

    address = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 3}))
    email = forms.EmailField(required=False)
    phone = forms.CharField(required=False, max_length=50)
    maps_link = forms.CharField(required=False, max_length=2000)
    business_hours = forms.CharField(
        required=False,
        widget=forms.Textarea(attrs={'rows': 8}),
        help_text='JSON object, e.g. {"Monday - Friday": "11:00 - 22:00"}. Plain text is kept as-is.',
    )
    facebook = forms.URLField(required=False)
    instagram = forms.URLField(required=False)
    twitter = forms.URLField(required=False)

    @classmethod
    def initial_from_row(cls, row):
        initial = {
            name: row.get(name) or ''
            for name in ('address', 'email', 'phone', 'maps_link')
        }
        initial['business_hours'] = json.dumps(parse_json_object(row.get('business_hours')), indent=2)
        social_links = parse_json_object(row.get('social_links'))
        for network in cls.SOCIAL_NETWORKS:
            initial[network] = social_links.get(network, '')
        return initial

    def to_row(self):
        row = super().to_row()
        row['business_hours'] = parse_business_hours_input(self.cleaned_data.get('business_hours'))
        social_links = {}
        for network in self.SOCIAL_NETWORKS:
            url = row.pop(network, None)
            if url:
                social_links[network] = url
        row['social_links'] = social_links
        return row


class NewsletterForm(forms.Form):
    # Deliberately a CharField: the '@' check lives in newsletter.subscribe
    email = forms.CharField(max_length=254, required=False)


class ContactMessageForm(forms.Form):
    name = forms.CharField(max_length=200, required=False)
    email = forms.CharField(max_length=254, required=False)
    subject = forms.CharField(max_length=300, required=False)
    message = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 5}))
