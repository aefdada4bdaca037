"""Command line entry point: serve gauges from a YAML configuration."""
import argparse
import logging
import signal
import sys
import threading

from pythonjsonlogger.json import JsonFormatter

from longgauge.config import Config, load_config
from longgauge.control_api import ControlAPI
from longgauge.engine import ReportingEngine, run_engine_thread

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_log_formatter(log_format: str) -> logging.Formatter:
    """Return a JSON or plain text formatter."""
    if log_format == "json":
        return JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt=DATE_FORMAT,
            rename_fields={"asctime": "time", "levelname": "level", "name": "logger"}
        )
    return logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(log_level: str, log_format: str):
    """Install a single stderr handler on the root logger."""
    handler = logging.StreamHandler()
    handler.setFormatter(build_log_formatter(log_format))

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        handlers=[handler],
        force=True
    )

    for noisy in ("urllib3", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="longgauge",
        description="Label-partitioned int64 gauges with Prometheus and OTLP export"
    )
    parser.add_argument("--config", "-c", required=True, help="Path to configuration YAML file")
    return parser


def serve(config: Config):
    """Start the reporting loop in the background and block on the control API."""
    logger = logging.getLogger(__name__)

    try:
        engine = ReportingEngine(config)
    except Exception as e:
        logger.error(f"Failed to initialize engine: {e}", exc_info=True)
        sys.exit(1)

    threading.Thread(target=run_engine_thread, args=(engine,), daemon=True).start()

    def shutdown(signum, frame):
        logger.info(f"Received signal {signum}, shutting down")
        engine.stop()
        sys.exit(0)

    for signum in (signal.SIGINT, signal.SIGTERM):
        signal.signal(signum, shutdown)

    api_host = config.global_.control_api_host
    api_port = config.global_.control_api_port
    logger.info(f"Control API on {api_host}:{api_port}")
    try:
        ControlAPI(engine).run(host=api_host, port=api_port)
    except Exception as e:
        logger.error(f"Control API error: {e}", exc_info=True)
        engine.stop()
        sys.exit(1)


def main():
    args = build_parser().parse_args()

    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.global_.log_level, config.global_.log_format)
    logging.getLogger(__name__).info(
        f"Loaded {len(config.gauges)} gauges from {args.config}, "
        f"tick interval {config.global_.tick_interval_s}s"
    )

    serve(config)


if __name__ == "__main__":
    main()
