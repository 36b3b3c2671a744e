from django.core.management.base import BaseCommand, CommandError

from restaurant_cms.exceptions import ConfigurationError, FallbackStoreError
from restaurant_cms.newsletter import flush_local_subscriptions
from restaurant_cms.storage import get_fallback_store
from restaurant_cms.supabase import SupabaseClient


class Command(BaseCommand):
    help = "Push newsletter signups held in the configured fallback store to Supabase."

    def handle(self, *args, **options):
        client = SupabaseClient(privileged=True)
        if not client.is_configured():
            raise CommandError("RESTAURANT_CMS is not configured for privileged access")

        try:
            # request-bound stores (sessions) raise FallbackStoreError here
            store = get_fallback_store()
            pending = len(store.list())
            if not pending:
                self.stdout.write("No local subscriptions to push.")
                return
            counts = flush_local_subscriptions(client, store)
        except (ConfigurationError, FallbackStoreError) as e:
            raise CommandError(str(e))

        self.stdout.write(
            f"Pushed {counts['pushed']}, already in Supabase {counts['already_remote']}, "
            f"kept locally {counts['kept']} (of {pending})."
        )
        if counts['kept']:
            self.stderr.write(self.style.WARNING("Some subscriptions could not be pushed; run again later."))
        else:
            self.stdout.write(self.style.SUCCESS("Local fallback store is empty."))
