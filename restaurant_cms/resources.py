"""Content tables managed through the generic admin CRUD views."""
from dataclasses import dataclass
from typing import Optional, Tuple, Type

from .forms import (
    ArticleForm,
    ContactInfoForm,
    MenuCategoryForm,
    MenuItemForm,
    SEOSettingsForm,
    SupabaseForm,
)


@dataclass(frozen=True)
class Resource:
    key: str
    table: str
    form_class: Type[SupabaseForm]
    singular: str
    plural: str
    order: Optional[str] = None
    list_columns: Tuple[Tuple[str, str], ...] = ()
    # Singletons hold one row (site-wide settings): no list, edit in place
    singleton: bool = False


MENU_ITEMS = Resource(
    key='menu-items',
    table='menu_items',
    form_class=MenuItemForm,
    singular='menu item',
    plural='Menu Items',
    order='name.asc',
    list_columns=(('name', 'Name'), ('price', 'Price'), ('category_name', 'Category'),
                  ('is_active', 'Active')),
)

MENU_CATEGORIES = Resource(
    key='categories',
    table='menu_categories',
    form_class=MenuCategoryForm,
    singular='category',
    plural='Menu Categories',
    order='display_order.asc',
    list_columns=(('name', 'Name'), ('display_order', 'Order'), ('is_active', 'Active')),
)

ARTICLES = Resource(
    key='articles',
    table='articles',
    form_class=ArticleForm,
    singular='article',
    plural='Articles',
    order='created_at.desc',
    list_columns=(('title', 'Title'), ('category', 'Category'), ('status', 'Status'),
                  ('published_at', 'Published')),
)

SEO_SETTINGS = Resource(
    key='seo',
    table='seo_settings',
    form_class=SEOSettingsForm,
    singular='SEO settings',
    plural='SEO Settings',
    singleton=True,
)

CONTACT_INFO = Resource(
    key='contact-info',
    table='contact_info',
    form_class=ContactInfoForm,
    singular='contact information',
    plural='Contact Information',
    singleton=True,
)

RESOURCES = {r.key: r for r in (MENU_ITEMS, MENU_CATEGORIES, ARTICLES, SEO_SETTINGS, CONTACT_INFO)}
