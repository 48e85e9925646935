"""CLI entrypoint for the trending-terms pipeline."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from .api import TrendAPI
from .config import load_config
from .models import SessionReport, TermCount, TrendConfig
from .service_http import serve


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="term-trends", description="Trending terms over a sliding window of text events."
    )
    parser.add_argument("--config", type=Path, help="Path to a key=value configuration file.")
    parser.add_argument(
        "--window-size", type=int, default=None, help="Window size in seconds (default 600)."
    )
    parser.add_argument(
        "--allowed-lateness",
        type=int,
        default=None,
        help="Seconds an entry may trail the watermark before it is dropped (default 30).",
    )
    parser.add_argument(
        "--capacity",
        type=int,
        default=None,
        help="Reorder buffer capacity before a forced flush (default 10000).",
    )
    parser.add_argument(
        "--no-late-handling",
        action="store_true",
        help="Assume ordered input and count entries as they arrive.",
    )
    parser.add_argument("--stopwords", type=Path, help="Newline-delimited stopword list.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Process an input file, answering ACTION K=<n> queries.")
    run.add_argument("path", type=Path, help="Path to the UTF-8 input file.")
    run.add_argument("--output", type=Path, help="Write the report here instead of stdout.")

    top = sub.add_parser("top", help="Process an input file and print the final top-K.")
    top.add_argument("path", type=Path, help="Path to the UTF-8 input file.")
    top.add_argument("--top-k", type=int, default=None, help="Number of terms to show.")
    top.add_argument("--json", action="store_true", help="Emit JSON instead of text.")

    http = sub.add_parser("serve", help="Run the HTTP service.")
    http.add_argument("--host", default="127.0.0.1", help="Host interface to bind.")
    http.add_argument("--port", type=int, default=8000, help="TCP port for the service.")

    return parser


def _config_from_args(args: argparse.Namespace) -> TrendConfig:
    return load_config(
        args.config,
        window_size=args.window_size,
        allowed_lateness=args.allowed_lateness,
        buffer_capacity=args.capacity,
        late_handling=False if args.no_late_handling else None,
        stopwords_path=str(args.stopwords) if args.stopwords else None,
    )


def _write_ranking(out: TextIO, ranking: list[TermCount]) -> None:
    if not ranking:
        print("  (no terms in window)", file=out)
    for position, row in enumerate(ranking, start=1):
        print(f"{position}. {row.term} ({row.count})", file=out)


def _write_report(out: TextIO, report: SessionReport) -> None:
    buf = report.buffer
    print("== statistics ==", file=out)
    print(f"events processed: {report.events_processed}", file=out)
    print(f"events rejected: {report.events_rejected}", file=out)
    print(f"terms recorded: {report.terms_recorded}", file=out)
    print(f"distinct terms in window: {report.distinct_terms}", file=out)
    if report.late_handling:
        print(f"entries released: {buf.processed}", file=out)
        print(f"entries dropped: {buf.dropped}", file=out)
        print(f"entries buffered: {buf.buffered}", file=out)
        print(f"forced flushes: {buf.forced_flushes}", file=out)
        print(f"watermark: {buf.watermark}", file=out)
        print(f"max observed timestamp: {buf.max_observed_timestamp}", file=out)
        print(f"drop rate: {buf.drop_rate:.2f}%", file=out)


def _run(api: TrendAPI, lines: TextIO, out: TextIO) -> None:
    last_prefix = ""
    for result in api.iter_lines(lines):
        if result.error is not None:
            print(f"skipped: {result.error}", file=out)
        elif result.kind == "event":
            last_prefix = result.prefix
        elif result.kind == "query" and result.ranking is not None:
            print(f"{last_prefix} top {result.k} terms:".lstrip(), file=out)
            _write_ranking(out, result.ranking)
    _write_report(out, api.finish())


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = _config_from_args(args)

    if args.command == "serve":
        serve(config, host=args.host, port=args.port)
        return 0

    api = TrendAPI(config)
    try:
        fh = args.path.open("r", encoding="utf-8")
    except OSError as exc:
        print(f"Cannot open input file {args.path}: {exc}", file=sys.stderr)
        return 1

    with fh:
        if args.command == "run":
            if args.output:
                try:
                    out = args.output.open("w", encoding="utf-8")
                except OSError as exc:
                    print(f"Cannot open output file {args.output}: {exc}", file=sys.stderr)
                    return 1
                with out:
                    _run(api, fh, out)
            else:
                _run(api, fh, sys.stdout)
            return 0
        if args.command == "top":
            api.ingest_lines(fh)
            api.finish()
            ranking = api.top_k(args.top_k)
            if args.json:
                print(json.dumps([row.model_dump() for row in ranking], ensure_ascii=False))
            else:
                _write_ranking(sys.stdout, ranking)
            return 0
    parser.error(f"Unsupported command {args.command}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
