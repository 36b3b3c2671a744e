"""
Generate a JWT for privileged Supabase access.

The token carries ``role`` (service_role by default, which bypasses RLS),
``iat`` and ``exp``. Store it as RESTAURANT_CMS['SERVICE_JWT'] or let the
client mint short-lived tokens itself from RESTAURANT_CMS['JWT_SECRET'].
"""
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from restaurant_cms.tokens import generate_jwt


class Command(BaseCommand):
    help = "Generate a Supabase JWT signed with the project's JWT secret."

    def add_arguments(self, parser):
        parser.add_argument('--secret', help="JWT secret (defaults to RESTAURANT_CMS['JWT_SECRET'])")
        parser.add_argument('--role', default='service_role')
        parser.add_argument('--expiry-days', type=int, default=365)

    def handle(self, *args, **options):
        config = getattr(settings, 'RESTAURANT_CMS', {})
        secret = options['secret'] or config.get('JWT_SECRET')
        if not secret:
            raise CommandError("No JWT secret given and RESTAURANT_CMS['JWT_SECRET'] is not set")
        if options['expiry_days'] <= 0:
            raise CommandError("--expiry-days must be positive")

        token = generate_jwt(secret, role=options['role'],
                             expiry_seconds=options['expiry_days'] * 24 * 3600)
        self.stdout.write(token)
        self.stderr.write(
            f"Token for role '{options['role']}' expires in {options['expiry_days']} days. "
            "Keep it out of version control."
        )
