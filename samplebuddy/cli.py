#!/usr/bin/env python
"""
Sample Buddy Command Line
=========================
Run inventory operations against the local store without the desktop window.

Usage:
    sample-buddy --operator Mario scan SC-01 CA-01 2501234-001
    sample-buddy create-box SC-01 CA-02
    sample-buddy search 2501
    sample-buddy logs --csv activity.csv
    sample-buddy rename sample <sample id> 2501234-003
    sample-buddy move box <box id> <shelf id>
    sample-buddy dispose --box <box id>
    sample-buddy delete --shelf <shelf id> --password <password>
    sample-buddy export backup.json

Exit status is 0 when every operation succeeded and 1 when one was rejected.
"""

import argparse
import logging
import sys
from typing import Dict, List, Optional

from database.session import DatabaseManager
from database.utils import export_logs_to_csv
from samplebuddy.inventory.models import ItemKind, ItemStatus, Selection
from samplebuddy.manager import SampleManager

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='sample-buddy',
        description="Laboratory sample archiving: shelves, boxes and samples"
    )
    parser.add_argument(
        '--database',
        default=None,
        help='Database URL (default: SAMPLE_BUDDY_DATABASE_URL or ~/.sample_buddy/sample_buddy.db)'
    )
    parser.add_argument(
        '--operator', '-o',
        default=None,
        help='Log in as this operator before running the command'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    sub = parser.add_subparsers(dest='command', required=True)

    scan = sub.add_parser('scan', help='Scan codes through the archiving cycle (shelf, box, sample)')
    scan.add_argument('codes', nargs='+', help='Codes in scan order')

    shelf = sub.add_parser('create-shelf', help='Create a shelf')
    shelf.add_argument('code')

    box = sub.add_parser('create-box', help='Create a box in a shelf')
    box.add_argument('shelf')
    box.add_argument('code')

    sample = sub.add_parser('create-sample', help='Create a sample in a box')
    sample.add_argument('shelf')
    sample.add_argument('box')
    sample.add_argument('code')

    search = sub.add_parser('search', help='Search shelves, boxes and samples by code')
    search.add_argument('term')
    search.add_argument('--status', choices=[s.value for s in ItemStatus], default=None,
                        help='Only list samples with this status')

    logs = sub.add_parser('logs', help='Show the activity log')
    logs.add_argument('--limit', '-n', type=int, default=20, help='Entries to show (0 for all)')
    logs.add_argument('--csv', default=None, help='Write the full log to this CSV file')

    export = sub.add_parser('export', help='Export the database to a JSON file')
    export.add_argument('path')

    imp = sub.add_parser('import', help='Replace the database with an exported JSON file')
    imp.add_argument('path')

    kinds = [k.value for k in ItemKind]
    rename = sub.add_parser('rename', help='Change the code of a shelf, box or sample')
    rename.add_argument('kind', choices=kinds)
    rename.add_argument('id', help='Item id (see search)')
    rename.add_argument('code', help='New code')

    move = sub.add_parser('move', help='Move a box to another shelf or a sample to another box')
    move.add_argument('kind', choices=[ItemKind.BOX.value, ItemKind.SAMPLE.value])
    move.add_argument('id', help='Item id (see search)')
    move.add_argument('target', help='Id of the new shelf or box')

    password = sub.add_parser('set-password', help='Change the delete password')
    password.add_argument('--old', required=True, help='Current password')
    password.add_argument('--new', required=True, help='New password')
    password.add_argument('--confirm', required=True, help='New password again')

    printer = sub.add_parser('printer', help='Set the label size and printer')
    printer.add_argument('width', type=float, help='Label width in cm')
    printer.add_argument('height', type=float, help='Label height in cm')
    printer.add_argument('--name', default='', help='Printer name')

    for name, help_text in (('dispose', 'Dispose items and their contents'),
                            ('delete', 'Delete items and their contents')):
        bulk = sub.add_parser(name, help=help_text)
        bulk.add_argument('--shelf', action='append', default=[], help='Shelf id (repeatable)')
        bulk.add_argument('--box', action='append', default=[], help='Box id (repeatable)')
        bulk.add_argument('--sample', action='append', default=[], help='Sample id (repeatable)')
        if name == 'delete':
            bulk.add_argument('--password', required=True, help='Delete password')

    return parser


def _report(result: Dict) -> bool:
    if result['success']:
        print(result['message'])
        if not result.get('saved', True):
            print("  Warning: the change could not be saved", file=sys.stderr)
        return True
    print(f"Error [{result.get('code')}]: {result['error']}", file=sys.stderr)
    return False


def _print_search(manager: SampleManager, term: str, status: Optional[str]) -> None:
    results = manager.search(term, ItemStatus(status) if status else None)
    state = manager.get_state()
    print(f"Shelves ({len(results.shelves)}):")
    for shelf in results.shelves:
        print(f"  {shelf.code}  [{shelf.status.value}]  {len(shelf.box_ids)} boxes  id={shelf.id}")
        for box in state.iter_boxes(shelf):
            print(f"    {box.code}  [{box.status.value}]  {len(box.sample_ids)} samples  id={box.id}")
    print(f"Samples ({len(results.samples)}):")
    for hit in results.samples:
        print(f"  {hit.sample.code}  {hit.shelf_code}/{hit.box_code}  "
              f"[{hit.sample.status.value}]  id={hit.sample.id}")


def _run(manager: SampleManager, args) -> bool:
    if args.command == 'scan':
        ok = True
        for code in args.codes:
            ok = _report(manager.on_scan(code)) and ok
        status = manager.archiving_status()
        print(f"Next step: {status.step.value}")
        return ok

    if args.command == 'create-shelf':
        return _report(manager.on_create_shelf(args.code))
    if args.command == 'create-box':
        return _report(manager.on_create_box(args.shelf, args.code))
    if args.command == 'create-sample':
        return _report(manager.on_create_sample(args.shelf, args.box, args.code))

    if args.command == 'rename':
        return _report(manager.on_rename(args.kind, args.id, args.code))
    if args.command == 'move':
        return _report(manager.on_move(args.kind, args.id, args.target))
    if args.command == 'set-password':
        return _report(manager.change_password(args.old, args.new, args.confirm))
    if args.command == 'printer':
        return _report(manager.update_printer_settings(args.width, args.height, args.name))

    if args.command == 'search':
        _print_search(manager, args.term, args.status)
        return True

    if args.command == 'logs':
        logs = manager.recent_logs()
        if args.csv:
            path = export_logs_to_csv(logs, args.csv)
            print(f"Wrote {len(logs)} log entries to {path}")
        for entry in logs[:args.limit] if args.limit else logs:
            print(entry)
        return True

    if args.command == 'export':
        return _report(manager.export_database(args.path))
    if args.command == 'import':
        return _report(manager.import_database(args.path))

    selection = Selection(shelves=args.shelf, boxes=args.box, samples=args.sample)
    if selection.is_empty():
        print("Error: select at least one --shelf, --box or --sample", file=sys.stderr)
        return False
    if args.command == 'dispose':
        return _report(manager.on_bulk_dispose(selection))
    return _report(manager.on_bulk_delete(selection, args.password))


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    db = DatabaseManager(args.database)
    try:
        manager = SampleManager(db=db)
        if args.operator and args.operator != manager.current_operator:
            if not _report(manager.login(args.operator)):
                return 1
        return 0 if _run(manager, args) else 1
    finally:
        db.dispose()


if __name__ == '__main__':
    sys.exit(main())
