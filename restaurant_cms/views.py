import logging
from django.http import Http404, HttpResponse
from django.shortcuts import render, redirect
from django.urls import reverse
from django.contrib import messages
from django.views.decorators.http import require_POST
from .supabase import SupabaseClient, eq, parse_timestamp
from .exceptions import ConfigurationError, FallbackStoreError, SupabaseAPIError
from .resources import RESOURCES, MENU_CATEGORIES
from .newsletter import SUBSCRIPTIONS_TABLE, CONTACT_MESSAGES_TABLE, flush_local_subscriptions
from .storage import get_fallback_store
from . import export, inbox

logger = logging.getLogger(__name__)

SITE_HEADER = 'Restaurant CMS'


def _config_error(request):
    return render(request, 'admin/restaurant_cms/config_error.html', {
        'title': 'Restaurant CMS - Configuration Error',
        'site_header': SITE_HEADER,
        'error_message': 'RESTAURANT_CMS settings are missing or invalid. '
                         'Please configure SUPABASE_URL, ANON_KEY and SERVICE_JWT '
                         '(or JWT_SECRET) in settings.py',
    })


def _admin_client():
    client = SupabaseClient(privileged=True)
    if not client.is_configured():
        raise ConfigurationError("Restaurant CMS admin client is not configured")
    return client


def _get_resource(resource_key):
    try:
        return RESOURCES[resource_key]
    except KeyError:
        raise Http404(f"Unknown resource: {resource_key}")


def dashboard_view(request):
    """
    Display content counts for every managed table.
    """
    try:
        client = _admin_client()
    except ConfigurationError:
        return _config_error(request)

    context = {
        'title': 'Restaurant Dashboard',
        'site_header': SITE_HEADER,
        'has_permission': True,
    }

    try:
        context['stats'] = {
            'menu_items': client.count('menu_items'),
            'articles': client.count('articles'),
            'subscribers': client.count(SUBSCRIPTIONS_TABLE),
            'messages': client.count(CONTACT_MESSAGES_TABLE),
            'profiles': client.count('profiles'),
        }
        context['api_healthy'] = True
    except SupabaseAPIError as e:
        logger.error(f"Supabase API error in dashboard_view: {str(e)}", exc_info=True)
        context['stats'] = None
        context['api_healthy'] = False
        messages.error(
            request,
            'Unable to load dashboard statistics. The API is not responding. Please try again later.'
        )

    return render(request, 'admin/restaurant_cms/dashboard.html', context)


def resource_list_view(request, resource_key):
    """
    List rows of a content table ordered by its sort column.
    """
    resource = _get_resource(resource_key)
    if resource.singleton:
        return redirect('admin:restaurant_cms_resource_edit', resource_key=resource.key)

    try:
        client = _admin_client()
    except ConfigurationError:
        return _config_error(request)

    context = {
        'title': resource.plural,
        'site_header': SITE_HEADER,
        'resource': resource,
        'has_permission': True,
    }

    try:
        rows = client.select(resource.table, order=resource.order)
        if resource is RESOURCES['menu-items']:
            categories = client.select(MENU_CATEGORIES.table, columns='id,name')
            names = {c['id']: c['name'] for c in categories}
            for row in rows:
                row['category_name'] = names.get(row.get('category_id'), '')
        for row in rows:
            row['published_at'] = parse_timestamp(row.get('published_at'))
        context['rows'] = [
            {'id': row.get('id'), 'cells': [row.get(column) for column, _ in resource.list_columns]}
            for row in rows
        ]
        context['api_healthy'] = True
    except SupabaseAPIError as e:
        logger.error(f"Supabase API error in resource_list_view ({resource.table}): {str(e)}", exc_info=True)
        context['rows'] = []
        context['api_healthy'] = False
        messages.error(request, f'Failed to load {resource.plural.lower()}. Please try again later.')

    return render(request, 'admin/restaurant_cms/resource_list.html', context)


def resource_form_view(request, resource_key, object_id=None):
    """
    Create or update a row. Singleton resources always edit their one row,
    inserting it on first save.
    """
    resource = _get_resource(resource_key)

    try:
        client = _admin_client()
    except ConfigurationError:
        return _config_error(request)

    form_kwargs = {}
    try:
        if resource is RESOURCES['menu-items']:
            form_kwargs['categories'] = client.select(
                MENU_CATEGORIES.table, columns='id,name', order=MENU_CATEGORIES.order
            )

        if resource.singleton:
            existing = client.select_one(resource.table)
        elif object_id is not None:
            existing = client.select_one(resource.table, {'id': eq(object_id)})
            if existing is None:
                raise Http404(f"{resource.singular} {object_id} not found")
        else:
            existing = None
    except SupabaseAPIError as e:
        logger.error(f"Supabase API error loading {resource.table}: {str(e)}", exc_info=True)
        messages.error(request, f'Failed to fetch {resource.singular}. Please try again later.')
        return redirect('admin:restaurant_cms_dashboard')

    if request.method == 'POST':
        form = resource.form_class(request.POST, request.FILES, **form_kwargs)
        if form.is_valid():
            row = form.to_row()
            try:
                if existing is not None:
                    client.update(resource.table, row, {'id': eq(existing['id'])})
                    messages.success(request, f'{resource.singular.capitalize()} updated successfully')
                else:
                    client.insert(resource.table, row)
                    messages.success(request, f'{resource.singular.capitalize()} created successfully')
            except SupabaseAPIError as e:
                logger.error(f"Supabase API error saving {resource.table}: {str(e)}", exc_info=True)
                messages.error(request, f'Failed to save {resource.singular}: {e}')
            else:
                if resource.singleton:
                    return redirect('admin:restaurant_cms_resource_edit', resource_key=resource.key)
                return redirect('admin:restaurant_cms_resource_list', resource_key=resource.key)
    else:
        initial = resource.form_class.initial_from_row(existing) if existing else None
        form = resource.form_class(initial=initial, **form_kwargs)

    verb = 'Edit' if existing is not None else 'Add'
    return render(request, 'admin/restaurant_cms/resource_form.html', {
        'title': resource.plural if resource.singleton else f'{verb} {resource.singular}',
        'site_header': SITE_HEADER,
        'resource': resource,
        'form': form,
        'object': existing,
        'has_permission': True,
    })


def resource_delete_view(request, resource_key, object_id):
    """
    Ask for confirmation on GET, delete the row by id on POST.
    No cascading: menu items keep pointing at a deleted category.
    """
    resource = _get_resource(resource_key)
    if resource.singleton:
        raise Http404(f"{resource.plural} cannot be deleted")

    try:
        client = _admin_client()
    except ConfigurationError:
        return _config_error(request)

    if request.method == 'POST':
        try:
            client.delete(resource.table, {'id': eq(object_id)})
            messages.success(request, f'{resource.singular.capitalize()} deleted successfully')
        except SupabaseAPIError as e:
            logger.error(f"Supabase API error deleting from {resource.table}: {str(e)}", exc_info=True)
            messages.error(request, f'Failed to delete {resource.singular}')
        return redirect('admin:restaurant_cms_resource_list', resource_key=resource.key)

    return render(request, 'admin/restaurant_cms/confirm_delete.html', {
        'title': f'Delete {resource.singular}',
        'site_header': SITE_HEADER,
        'question': f'Are you sure you want to delete this {resource.singular}?',
        'cancel_url': reverse('admin:restaurant_cms_resource_list', kwargs={'resource_key': resource.key}),
        'resource': resource,
        'has_permission': True,
    })


def message_list_view(request):
    """
    Display contact messages. ``?format=csv`` exports the loaded list.
    """
    try:
        client = _admin_client()
    except ConfigurationError:
        return _config_error(request)

    try:
        contact_messages = inbox.load_messages(client)
        api_healthy = True
    except SupabaseAPIError as e:
        logger.error(f"Supabase API error in message_list_view: {str(e)}", exc_info=True)
        contact_messages = []
        api_healthy = False
        messages.error(request, 'Failed to load contact messages')

    if request.GET.get('format') == 'csv':
        response = HttpResponse(export.messages_csv(contact_messages), content_type='text/csv; charset=utf-8')
        response['Content-Disposition'] = 'attachment; filename="contact_messages.csv"'
        return response

    return render(request, 'admin/restaurant_cms/message_list.html', {
        'title': 'Contact Messages',
        'site_header': SITE_HEADER,
        'contact_messages': contact_messages,
        'stats': inbox.message_stats(contact_messages),
        'api_healthy': api_healthy,
        'has_permission': True,
    })


@require_POST
def message_mark_read_view(request, message_id):
    try:
        client = _admin_client()
    except ConfigurationError:
        return _config_error(request)

    try:
        inbox.mark_message_read(client, str(message_id))
        messages.success(request, 'Message marked as read')
    except SupabaseAPIError as e:
        logger.error(f"Supabase API error marking message {message_id} read: {str(e)}", exc_info=True)
        messages.error(request, 'Failed to update message status')
    return redirect('admin:restaurant_cms_message_list')


def message_delete_view(request, message_id):
    try:
        client = _admin_client()
    except ConfigurationError:
        return _config_error(request)

    if request.method == 'POST':
        try:
            inbox.delete_message(client, str(message_id))
            messages.success(request, 'Contact message has been deleted successfully')
        except SupabaseAPIError as e:
            logger.error(f"Supabase API error deleting message {message_id}: {str(e)}", exc_info=True)
            messages.error(request, 'Failed to delete message from database')
        return redirect('admin:restaurant_cms_message_list')

    return render(request, 'admin/restaurant_cms/confirm_delete.html', {
        'title': 'Delete contact message',
        'site_header': SITE_HEADER,
        'question': 'Are you sure you want to delete this message?',
        'cancel_url': reverse('admin:restaurant_cms_message_list'),
        'has_permission': True,
    })


def subscriber_list_view(request):
    """
    Display newsletter subscribers plus signups held in the local fallback
    store. ``?format=csv`` exports the loaded Supabase list.
    """
    try:
        client = _admin_client()
    except ConfigurationError:
        return _config_error(request)

    try:
        subscribers = inbox.load_subscribers(client)
        api_healthy = True
    except SupabaseAPIError as e:
        logger.error(f"Supabase API error in subscriber_list_view: {str(e)}", exc_info=True)
        subscribers = []
        api_healthy = False
        messages.error(request, 'Failed to load newsletter subscribers')

    if request.GET.get('format') == 'csv':
        response = HttpResponse(export.subscribers_csv(subscribers), content_type='text/csv; charset=utf-8')
        response['Content-Disposition'] = 'attachment; filename="newsletter_subscribers.csv"'
        return response

    try:
        local_entries = get_fallback_store(request).list()
    except FallbackStoreError as e:
        logger.error(f"Fallback store unavailable: {e}")
        local_entries = []

    return render(request, 'admin/restaurant_cms/subscriber_list.html', {
        'title': 'Newsletter Subscribers',
        'site_header': SITE_HEADER,
        'subscribers': subscribers,
        'local_entries': local_entries,
        'stats': inbox.subscriber_stats(subscribers),
        'api_healthy': api_healthy,
        'has_permission': True,
    })


def subscriber_delete_view(request, subscription_id):
    try:
        client = _admin_client()
    except ConfigurationError:
        return _config_error(request)

    if request.method == 'POST':
        try:
            inbox.delete_subscriber(client, str(subscription_id))
            messages.success(request, 'Newsletter subscriber has been removed successfully')
        except SupabaseAPIError as e:
            logger.error(f"Supabase API error deleting subscriber {subscription_id}: {str(e)}", exc_info=True)
            messages.error(request, 'Failed to remove subscriber from database')
        return redirect('admin:restaurant_cms_subscriber_list')

    return render(request, 'admin/restaurant_cms/confirm_delete.html', {
        'title': 'Remove subscriber',
        'site_header': SITE_HEADER,
        'question': 'Are you sure you want to delete this subscription?',
        'cancel_url': reverse('admin:restaurant_cms_subscriber_list'),
        'has_permission': True,
    })


@require_POST
def flush_local_subscribers_view(request):
    """Push fallback-stored signups to Supabase"""
    try:
        client = _admin_client()
    except ConfigurationError:
        return _config_error(request)

    try:
        counts = flush_local_subscriptions(client, get_fallback_store(request))
    except FallbackStoreError as e:
        logger.error(f"Fallback store unavailable: {e}", exc_info=True)
        messages.error(request, 'The local subscription store is not available')
    else:
        if counts['kept']:
            messages.warning(
                request,
                f"Pushed {counts['pushed']} subscriber(s); {counts['kept']} could not be pushed and remain local."
            )
        else:
            messages.success(
                request,
                f"Pushed {counts['pushed']} subscriber(s); {counts['already_remote']} were already in Supabase."
            )
    return redirect('admin:restaurant_cms_subscriber_list')


def profile_list_view(request):
    """
    Read-only list of user profiles.
    """
    try:
        client = _admin_client()
    except ConfigurationError:
        return _config_error(request)

    try:
        profiles = client.select('profiles', order='created_at.desc')
        for profile in profiles:
            profile['created_at'] = parse_timestamp(profile.get('created_at'))
        api_healthy = True
    except SupabaseAPIError as e:
        logger.error(f"Supabase API error in profile_list_view: {str(e)}", exc_info=True)
        profiles = []
        api_healthy = False
        messages.error(request, 'Failed to fetch user profiles')

    return render(request, 'admin/restaurant_cms/profile_list.html', {
        'title': 'User Profiles',
        'site_header': SITE_HEADER,
        'profiles': profiles,
        'api_healthy': api_healthy,
        'has_permission': True,
    })
