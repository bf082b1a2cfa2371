#!/usr/bin/env python3
"""CLI for the concurrent test progress reporter."""

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

from core import BuildSession, load_event_log, replay_events
from testlog_reporter.config import load_config
from testlog_reporter.console import Console, OutputStyle


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(levelname)s: %(message)s'
    )


def _build_session(args) -> BuildSession:
    config = load_config(args.config)
    style = OutputStyle.from_config(config)
    if args.ascii:
        style = dataclasses.replace(style, ascii=True)
    if args.plain:
        style = dataclasses.replace(style, decorated=False)
    return BuildSession(console=Console(stream=sys.stdout, style=style), config=config)


def _finish(session: BuildSession, args) -> int:
    totals = session.finish()
    if args.format == 'json':
        print(json.dumps({"tasks": session.aggregator.tasks_run, **totals.as_dict()}, indent=2))
    return 0 if totals.failed == 0 else 1


def _abort(session: BuildSession, message: str) -> int:
    # Tasks that already ran still get their build total
    print(f"Error: {message}", file=sys.stderr)
    session.finish()
    return 1


def cmd_report(args):
    """Render JUnit XML result directories, one test task per directory."""
    session = _build_session(args)

    for results_dir in args.dirs:
        path = Path(results_dir)
        if not path.is_dir():
            return _abort(session, f"not a directory: {results_dir}")
        adapter = session.adapter('report', task_name=args.task_name or path.name, results_dir=path)
        adapter.task_started()
        adapter.task_finished()

    return _finish(session, args)


def cmd_replay(args):
    """Replay JSON-lines event logs through the live renderer."""
    session = _build_session(args)

    for log_file in args.files:
        try:
            records = load_event_log(log_file)
        except OSError as e:
            return _abort(session, f"cannot read {log_file}: {e}")

        adapter = session.adapter('live', task_name=args.task_name or Path(log_file).stem)
        adapter.task_started()
        try:
            replay_events(adapter, records, workers=args.workers)
        except (TypeError, ValueError) as e:
            adapter.task_finished()
            return _abort(session, f"{log_file}: {e}")
        adapter.task_finished()

    return _finish(session, args)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Sequential-looking progress output for concurrent test runs')
    parser.add_argument('-v', '--verbose', action='store_true')
    parser.add_argument('--config', help='Path to a .env style config file')

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--ascii', action='store_true', help='Use plain ASCII symbols')
    common.add_argument('--plain', action='store_true', help='No colour and no in-place progress lines')
    common.add_argument('--task-name', help='Task name shown in the run header')
    common.add_argument('--format', '-f', choices=['text', 'json'], default='text')

    sub = parser.add_subparsers(dest='command')

    # report
    p = sub.add_parser('report', parents=[common], help='Render JUnit XML result directories')
    p.add_argument('dirs', nargs='+', help='Directories containing *.xml result files')

    # replay
    p = sub.add_parser('replay', parents=[common], help='Replay recorded test events')
    p.add_argument('files', nargs='+', help='JSON-lines event logs')
    p.add_argument('--workers', '-w', type=int, default=4, help='Worker threads (default: 4)')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)

    cmds = {
        'report': cmd_report,
        'replay': cmd_replay,
    }
    return cmds[args.command](args)


if __name__ == '__main__':
    sys.exit(main())
