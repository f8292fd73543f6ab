import datetime as dt

from django.core.management.base import BaseCommand, CommandError

from watchtime.conf import engine_setting
from watchtime.services import abandon_stale_sessions


class Command(BaseCommand):
    help = "Mark active watch sessions without recent heartbeats as abandoned and commit their minutes."

    def add_arguments(self, parser):
        parser.add_argument(
            "--idle-minutes",
            type=int,
            default=None,
            help="Minutes since the last heartbeat (default: WATCHTIME['STALE_SESSION_MINUTES']).",
        )

    def handle(self, *args, **options):
        idle = options["idle_minutes"]
        if idle is None:
            idle = engine_setting("STALE_SESSION_MINUTES")
        if idle <= 0:
            raise CommandError("--idle-minutes must be > 0")

        count = abandon_stale_sessions(dt.timedelta(minutes=idle))
        self.stdout.write(self.style.SUCCESS(f"Abandoned {count} stale session(s)."))
