"""
Move contact form submissions stored in the legacy metadata encoding
(member_subscriptions rows with is_subscribed = false) into contact_messages.
"""
from django.core.management.base import BaseCommand, CommandError

from restaurant_cms.exceptions import SupabaseAPIError
from restaurant_cms.metadata import ContactFormPayload, decode_metadata, legacy_row_to_contact_message
from restaurant_cms.newsletter import CONTACT_MESSAGES_TABLE, SUBSCRIPTIONS_TABLE
from restaurant_cms.supabase import SupabaseClient, eq

MIGRATED_STATUS = 'migrated'


class Command(BaseCommand):
    help = "Copy legacy metadata-bag contact messages into the contact_messages table."

    def add_arguments(self, parser):
        parser.add_argument('--dry-run', action='store_true',
                            help="Report what would be migrated without writing.")
        parser.add_argument('--keep-source', action='store_true',
                            help="Mark legacy rows as migrated instead of deleting them.")

    def handle(self, *args, **options):
        client = SupabaseClient(privileged=True)
        if not client.is_configured():
            raise CommandError("RESTAURANT_CMS is not configured for privileged access")

        try:
            legacy_rows = client.select(
                SUBSCRIPTIONS_TABLE,
                filters={'is_subscribed': eq(False), 'metadata': 'not.is.null'},
                order='subscribed_at.asc',
            )
        except SupabaseAPIError as e:
            raise CommandError(f"Could not read legacy rows: {e}")

        migrated = skipped = 0
        for row in legacy_rows:
            message = legacy_row_to_contact_message(row)
            payload = decode_metadata(row.get('metadata'))
            if message is None or not isinstance(payload, ContactFormPayload):
                skipped += 1
                continue
            if payload.status == MIGRATED_STATUS:
                skipped += 1
                continue

            self.stdout.write(f"{row.get('email')} @ {row.get('subscribed_at')}: {message['subject']}")
            if options['dry_run']:
                migrated += 1
                continue

            try:
                if self._already_copied(client, message):
                    self.stdout.write("  already in contact_messages, finishing source row")
                    inserted = []
                else:
                    inserted = client.insert(CONTACT_MESSAGES_TABLE, message)
            except SupabaseAPIError as e:
                raise CommandError(f"Migration stopped at row {row.get('id')}: {e}")

            try:
                if options['keep_source']:
                    client.update(
                        SUBSCRIPTIONS_TABLE,
                        {'metadata': payload.with_status(MIGRATED_STATUS).to_metadata()},
                        {'id': eq(row['id'])},
                    )
                else:
                    client.delete(SUBSCRIPTIONS_TABLE, {'id': eq(row['id'])})
            except SupabaseAPIError as e:
                self._roll_back(client, inserted)
                raise CommandError(f"Migration stopped at row {row.get('id')}: {e}")
            migrated += 1

        prefix = "Would migrate" if options['dry_run'] else "Migrated"
        self.stdout.write(self.style.SUCCESS(f"{prefix} {migrated} message(s), skipped {skipped}."))

    @staticmethod
    def _already_copied(client, message):
        """True when an earlier, interrupted run already inserted this message"""
        created_at = message.get('created_at')
        return client.select_one(CONTACT_MESSAGES_TABLE, {
            'email': eq(message['email']),
            'subject': eq(message['subject']),
            'created_at': eq(created_at) if created_at else 'is.null',
        }) is not None

    def _roll_back(self, client, inserted):
        for row in inserted:
            try:
                client.delete(CONTACT_MESSAGES_TABLE, {'id': eq(row['id'])})
            except SupabaseAPIError as e:
                # a re-run detects the copy and only finishes the source row
                self.stderr.write(f"Could not roll back contact message {row['id']}: {e}")
