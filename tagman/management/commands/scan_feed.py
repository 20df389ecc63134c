"""
Management command to replay reader output through a scan session.

Each input line is a reader message ({"action": "remove", "uid": "..."}).
Packaged products need a quantity: pass --quantity to confirm every pending
movement with it, otherwise pending movements are cancelled.

Usage:
    python manage.py scan_feed --direction exit --input scans.jsonl
    python manage.py scan_feed --direction exit --quantity 10 --area 3 < scans.jsonl
"""

import sys

from django.core.management.base import BaseCommand, CommandError

from tagman.events import parse_reader_message
from tagman.exceptions import TagError
from tagman.models.enums import Direction
from tagman.service import build_session


class Command(BaseCommand):
    """Process a file of reader messages."""

    help = 'Processes RFID reader messages as stock movements'

    def add_arguments(self, parser):
        parser.add_argument(
            '--direction',
            required=True,
            choices=Direction.values,
            help='Movement direction for this session',
        )
        parser.add_argument(
            '--input',
            default='-',
            help='File with one reader message per line (default: stdin)',
        )
        parser.add_argument(
            '--quantity',
            type=int,
            default=None,
            help='Quantity used to confirm packaged products',
        )
        parser.add_argument(
            '--area',
            type=int,
            default=None,
            help='Destination area id for exits',
        )
        parser.add_argument(
            '--session-name',
            default='scan_feed',
            help='Session label for logs',
        )

    def handle(self, *args, **options):
        direction = Direction(options['direction'])
        quantity = options['quantity']
        area_id = options['area']

        if area_id is not None and direction != Direction.EXIT:
            raise CommandError('--area only applies to exits')

        session = build_session(name=options['session_name'], direction=direction)
        stream = self._open(options['input'])
        counts = {'committed': 0, 'cancelled': 0, 'failed': 0, 'skipped': 0}

        try:
            for line in stream:
                event = parse_reader_message(line)
                if event is None:
                    continue
                if event.direction != direction:
                    counts['skipped'] += 1
                    continue
                counts[self._process(session, event, quantity, area_id)] += 1
        finally:
            if stream is not sys.stdin:
                stream.close()
            session.deactivate()

        self.stdout.write(self.style.SUCCESS(
            f"{counts['committed']} committed, {counts['cancelled']} cancelled, "
            f"{counts['failed']} failed, {counts['skipped']} skipped"
        ))

    def _open(self, path):
        if path == '-':
            return sys.stdin
        try:
            return open(path, encoding='utf-8')
        except OSError as e:
            raise CommandError(f'Cannot read {path}: {e.strerror}') from e

    def _process(self, session, event, quantity, area_id) -> str:
        try:
            outcome = session.handle_scan(event, area_id=area_id)
            if outcome.committed:
                result = outcome.result
            elif quantity is None:
                session.cancel()
                self.stdout.write(
                    f'{event.tag}: packaged product '
                    f'({outcome.pending.product.units_per_package} units), cancelled without --quantity'
                )
                return 'cancelled'
            else:
                result = session.confirm(event.tag, quantity, area_id=area_id)
        except TagError as e:
            self.stderr.write(f'{event.tag}: {e.code} {e.message}')
            return 'failed'

        self.stdout.write(
            f'{event.tag}: {result.direction.value} {result.quantity} '
            f'({result.product.name}, lot {result.batch.lot_number or result.batch.id}), '
            f'remaining {result.remaining}'
        )
        return 'committed'
