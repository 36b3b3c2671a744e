from django.urls import path
from . import site_views

app_name = 'restaurant_cms'

urlpatterns = [
    path('', site_views.menu_view, name='menu'),
    path('menu/', site_views.menu_view, name='menu_page'),
    path('news/', site_views.news_view, name='news'),
    path('news/<uuid:article_id>/', site_views.article_view, name='article'),
    path('newsletter/subscribe/', site_views.subscribe_view, name='subscribe'),
    path('contact/', site_views.contact_view, name='contact'),
]
