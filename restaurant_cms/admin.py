from django.contrib import admin
from django.urls import path
from .models import SiteContent
from . import views


@admin.register(SiteContent)
class SiteContentAdmin(admin.ModelAdmin):
    """
    Admin interface for the restaurant site content.

    Uses virtual model pattern - overrides all URLs to custom views.
    Staff users manage Supabase-backed content through these views; login
    and permissions are left to Django admin.
    """

    # Rows are managed by the custom views, not the ModelAdmin machinery
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return request.user.is_staff

    def has_delete_permission(self, request, obj=None):
        return False

    def has_view_permission(self, request, obj=None):
        return request.user.is_staff

    # Override URLs to use custom views
    def get_urls(self):
        urls = super().get_urls()
        admin_view = self.admin_site.admin_view
        custom_urls = [
            path('',
                 admin_view(views.dashboard_view),
                 name='restaurant_cms_sitecontent_changelist'),  # Match Django admin URL pattern
            path('dashboard/',
                 admin_view(views.dashboard_view),
                 name='restaurant_cms_dashboard'),
            path('messages/',
                 admin_view(views.message_list_view),
                 name='restaurant_cms_message_list'),
            path('messages/<uuid:message_id>/read/',
                 admin_view(views.message_mark_read_view),
                 name='restaurant_cms_message_mark_read'),
            path('messages/<uuid:message_id>/delete/',
                 admin_view(views.message_delete_view),
                 name='restaurant_cms_message_delete'),
            path('subscribers/',
                 admin_view(views.subscriber_list_view),
                 name='restaurant_cms_subscriber_list'),
            path('subscribers/flush-local/',
                 admin_view(views.flush_local_subscribers_view),
                 name='restaurant_cms_subscriber_flush'),
            path('subscribers/<uuid:subscription_id>/delete/',
                 admin_view(views.subscriber_delete_view),
                 name='restaurant_cms_subscriber_delete'),
            path('profiles/',
                 admin_view(views.profile_list_view),
                 name='restaurant_cms_profile_list'),
            path('content/<slug:resource_key>/',
                 admin_view(views.resource_list_view),
                 name='restaurant_cms_resource_list'),
            path('content/<slug:resource_key>/add/',
                 admin_view(views.resource_form_view),
                 name='restaurant_cms_resource_add'),
            path('content/<slug:resource_key>/edit/',
                 admin_view(views.resource_form_view),
                 name='restaurant_cms_resource_edit'),
            path('content/<slug:resource_key>/<uuid:object_id>/',
                 admin_view(views.resource_form_view),
                 name='restaurant_cms_resource_change'),
            path('content/<slug:resource_key>/<uuid:object_id>/delete/',
                 admin_view(views.resource_delete_view),
                 name='restaurant_cms_resource_delete'),
        ]
        return custom_urls + urls

    # Customize admin changelist (won't be used, but good for consistency)
    list_display = ('__str__',)
