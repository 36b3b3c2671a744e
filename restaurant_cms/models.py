from django.db import models


class SiteContent(models.Model):
    """
    Virtual model for Django admin integration.

    This model does not create a database table (managed=False).
    It exists solely to register with Django admin and provide
    navigation, permissions, and breadcrumbs.

    Menu, articles, settings and submissions live in Supabase and are
    read and written via the SupabaseClient.
    """

    class Meta:
        managed = False
        verbose_name = "Site Content"
        verbose_name_plural = "Restaurant Site"
        default_permissions = ('view', 'change')
        # Don't create migrations for this model
        db_table = ''
