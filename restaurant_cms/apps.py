from django.apps import AppConfig


class RestaurantCMSConfig(AppConfig):
    name = 'restaurant_cms'
    verbose_name = 'Restaurant CMS'
    default_auto_field = 'django.db.models.AutoField'
