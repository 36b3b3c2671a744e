"""Public restaurant pages and visitor submission endpoints."""
import logging
from django.conf import settings
from django.http import Http404
from django.shortcuts import render, redirect
from django.contrib import messages
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST
from .supabase import SupabaseClient, eq, parse_timestamp
from .exceptions import ConfigurationError, FallbackStoreError, SubmissionValidationError, SupabaseAPIError
from .forms import ContactMessageForm, NewsletterForm
from .newsletter import (
    MISSING_FIELDS_MESSAGE,
    OUTCOME_MESSAGES,
    SubscriptionOutcome,
    subscribe,
    submit_contact_message,
)
from .parsing import parse_json_object
from .storage import get_fallback_store

logger = logging.getLogger(__name__)

PUBLISHED = {'status': eq('published')}


def _cached_rows(request, client, table, filters=None, order=None, limit=None):
    """
    Read a public table through the cache. When the API fails, fall back to
    the last rows fetched successfully and warn the visitor.
    """
    try:
        return client.cached_select(table, filters=filters, order=order, limit=limit)
    except SupabaseAPIError as e:
        logger.error(f"Supabase API error reading {table}: {str(e)}", exc_info=True)
        stale = client.last_known(table, filters=filters, order=order, limit=limit)
        if stale is not None:
            messages.warning(request, 'Unable to refresh content. Showing cached data.')
            return stale
        raise


def decode_contact_info(row):
    """Contact info row with business_hours/social_links as dicts, or None"""
    if not row:
        return None
    info = dict(row)
    info['business_hours'] = parse_json_object(row.get('business_hours'))
    info['social_links'] = parse_json_object(row.get('social_links'))
    info['address_lines'] = (row.get('address') or '').splitlines()
    return info


def _base_context(request, client):
    context = {
        'contact_info': None,
        'site_name': getattr(settings, 'RESTAURANT_CMS', {}).get('SITE_NAME', 'Restaurant'),
    }
    try:
        rows = _cached_rows(request, client, 'contact_info', limit=1)
        context['contact_info'] = decode_contact_info(rows[0] if rows else None)
    except SupabaseAPIError:
        pass
    if context['contact_info'] is None:
        messages.warning(
            request,
            'Contact Info Unavailable: unable to load contact or business hours information.'
        )
    return context


def _public_client(request):
    client = SupabaseClient()
    if not client.is_configured():
        raise ConfigurationError("Restaurant CMS client is not configured")
    return client


def _config_error(request):
    return render(request, 'restaurant_cms/config_error.html', {
        'error_message': 'RESTAURANT_CMS settings are missing or invalid. '
                         'Please configure SUPABASE_URL and ANON_KEY in settings.py',
    }, status=503)


def group_menu(categories, items):
    """Group active items under their category; uncategorized items go last"""
    by_category = {c['id']: [] for c in categories}
    uncategorized = []
    for item in items:
        bucket = by_category.get(item.get('category_id'))
        (bucket if bucket is not None else uncategorized).append(item)

    sections = [
        {'category': c, 'items': by_category[c['id']]}
        for c in categories
        if by_category[c['id']]
    ]
    if uncategorized:
        sections.append({'category': None, 'items': uncategorized})
    return sections


def menu_view(request):
    try:
        client = _public_client(request)
    except ConfigurationError:
        return _config_error(request)

    context = _base_context(request, client)
    selected = request.GET.get('category', 'all')
    categories = []
    try:
        categories = _cached_rows(request, client, 'menu_categories',
                                  filters={'is_active': eq(True)}, order='display_order.asc')
        items = _cached_rows(request, client, 'menu_items',
                             filters={'is_active': eq(True)}, order='name.asc')
        sections = group_menu(categories, items)
    except SupabaseAPIError:
        sections = []
        messages.error(request, 'Failed to load menu data')

    if selected != 'all':
        sections = [s for s in sections if s['category'] and s['category']['id'] == selected]

    context.update({
        'sections': sections,
        'categories': categories,
        'selected_category': selected,
    })
    return render(request, 'restaurant_cms/menu.html', context)


def _prepare_article(article):
    article = dict(article)
    article['published_at'] = parse_timestamp(article.get('published_at'))
    article['created_at'] = parse_timestamp(article.get('created_at'))
    return article


def news_view(request):
    try:
        client = _public_client(request)
    except ConfigurationError:
        return _config_error(request)

    context = _base_context(request, client)
    selected = request.GET.get('category', 'all')

    try:
        articles = [
            _prepare_article(a)
            for a in _cached_rows(request, client, 'articles', filters=PUBLISHED, order='published_at.desc')
        ]
    except SupabaseAPIError:
        articles = []
        messages.error(request, 'Failed to load articles')

    categories = []
    for article in articles:
        category = article.get('category')
        if category and category not in categories:
            categories.append(category)

    if selected != 'all':
        articles = [a for a in articles if a.get('category') == selected]

    context.update({
        'articles': articles,
        'categories': categories,
        'selected_category': selected,
        'newsletter_form': NewsletterForm(initial=request.session.pop('newsletter_form', None)),
        'contact_form': ContactMessageForm(initial=request.session.pop('contact_form', None)),
    })
    return render(request, 'restaurant_cms/news.html', context)


def article_view(request, article_id):
    try:
        client = _public_client(request)
    except ConfigurationError:
        return _config_error(request)

    context = _base_context(request, client)
    try:
        article = client.select_one('articles', {'id': eq(article_id), **PUBLISHED})
        related = _cached_rows(request, client, 'articles',
                               filters={**PUBLISHED, 'id': f'neq.{article_id}'},
                               order='published_at.desc', limit=3)
    except SupabaseAPIError as e:
        logger.error(f"Supabase API error in article_view: {str(e)}", exc_info=True)
        messages.error(request, 'Failed to load article')
        return redirect('restaurant_cms:news')

    if article is None:
        raise Http404("Article not found")

    context.update({
        'article': _prepare_article(article),
        'related_articles': [_prepare_article(a) for a in related],
    })
    return render(request, 'restaurant_cms/article.html', context)


def _redirect_back(request):
    target = request.POST.get('next') or request.META.get('HTTP_REFERER')
    if target and url_has_allowed_host_and_scheme(target, allowed_hosts={request.get_host()}):
        return redirect(target)
    return redirect(reverse('restaurant_cms:news'))


def _notify(request, level, title, description):
    getattr(messages, level)(request, f'{title} {description}')


@require_POST
def subscribe_view(request):
    """
    Newsletter signup. On success the field is cleared; otherwise the typed
    address is kept for the redirected form.
    """
    form = NewsletterForm(request.POST)
    email = form.data.get('email', '')

    try:
        client = _public_client(request)
    except ConfigurationError:
        return _config_error(request)

    try:
        result = subscribe(email, client, get_fallback_store(request))
    except SubmissionValidationError as e:
        _notify(request, 'error', 'Invalid Email', str(e))
        request.session['newsletter_form'] = {'email': email}
        return _redirect_back(request)
    except FallbackStoreError as e:
        logger.error(f"Fallback store unavailable: {e}", exc_info=True)
        _notify(request, *OUTCOME_MESSAGES[SubscriptionOutcome.FAILED])
        request.session['newsletter_form'] = {'email': email}
        return _redirect_back(request)

    _notify(request, *result.notification)
    if not result.succeeded:
        request.session['newsletter_form'] = {'email': email}
    return _redirect_back(request)


@require_POST
def contact_view(request):
    form = ContactMessageForm(request.POST)
    data = {name: form.data.get(name, '') for name in form.fields}

    try:
        client = _public_client(request)
    except ConfigurationError:
        return _config_error(request)

    try:
        submit_contact_message(
            data['name'], data['email'], data['message'], client, subject=data['subject']
        )
    except SubmissionValidationError as e:
        title = 'Missing Information' if str(e) == MISSING_FIELDS_MESSAGE else 'Invalid Email'
        _notify(request, 'error', title, str(e))
        request.session['contact_form'] = data
        return _redirect_back(request)
    except SupabaseAPIError as e:
        logger.error(f"Contact message could not be stored: {str(e)}")
        _notify(request, 'error', 'Error', 'Failed to send message. Please try again later.')
        request.session['contact_form'] = data
        return _redirect_back(request)

    _notify(
        request, 'success', 'Message Sent Successfully!',
        "Your message has been sent and will be reviewed by our team. We'll get back to you soon!"
    )
    return _redirect_back(request)
