import argparse

from waftester.core.config import load_config
from waftester.core.engine import Engine, validate_uris
from waftester.core.models import ConfigError
from waftester.reporters.console import Log
from waftester.reporters.report import Report, write_json_report

VERSION = "1.0.0"
DEFAULT_RATE = 50


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="WAF differential tester")
    p.add_argument("-c", "--config", default="./config.yml",
                   help="path to the yaml config file")
    p.add_argument("-w", "--worker", type=int, default=10,
                   help="maximum number of requests sent concurrently")
    p.add_argument("-r", "--rate", type=int, default=DEFAULT_RATE,
                   help="maximum transactions per second")
    p.add_argument("-o", "--output", default="output",
                   help="directory for results.json")
    p.add_argument("-d", "--debug", action="store_true",
                   help="debug logging")
    p.add_argument("-v", "--version", action="store_true",
                   help="print the version and exit")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.version:
        print(f"WAF Tester version {VERSION}")
        return 0

    log = Log(verbose=2 if args.debug else 1)
    rate = args.rate if args.rate > 0 else DEFAULT_RATE
    log.info(f"starting WAF Tester version {VERSION} with {args.worker} workers at {rate} req/s")

    try:
        run = load_config(args.config)
        validate_uris(run)
    except (ConfigError, ValueError, ConnectionError) as exc:
        log.error(f"exiting: {exc}")
        return 1

    engine = Engine(run, workers=args.worker, rate=rate, logger=log)
    try:
        results = engine.run()
    except KeyboardInterrupt:
        log.warn("interrupt signal detected - shutting down workers")
        engine.stop()
        return 130
    except (ConfigError, OSError) as exc:
        log.error(f"error running tests: {exc}")
        return 1

    log.info("generating report...")
    results.finalize()
    report = Report.from_results(results)
    try:
        out = write_json_report(report, args.output)
    except OSError as exc:
        log.error(f"unable to write report: {exc}")
        return 1
    log.summary(report)
    log.ok(f"report written to {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
