"""CLI entry point for the base-station aggregator."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import time
from typing import Optional, Sequence

import uvicorn

from .common.config import get_settings
from .core.receiver import get_receiver, start_receiver, stop_receiver
from .main import create_app

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="dqi-aggregator",
        description="WSN base-station aggregator (ACKs + DQI feedback)",
    )
    p.add_argument("-v", "--visualize", action="store_true", help="serve live node data over HTTP")
    p.add_argument("--broker-host", help="MQTT broker of the radio gateway")
    p.add_argument("--broker-port", type=int)
    p.add_argument("--topic-prefix")
    p.add_argument("--api-host")
    p.add_argument("--api-port", type=int)
    p.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    # Un error de parseo o de configuración sale con código 2 antes de tocar la red
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ValueError as e:
        parser.error(f"invalid configuration: {e}")

    overrides = {
        "mqtt_host": args.broker_host,
        "mqtt_port": args.broker_port,
        "topic_prefix": args.topic_prefix,
        "api_host": args.api_host,
        "api_port": args.api_port,
        "log_level": args.log_level,
    }
    settings = dataclasses.replace(settings, **{k: v for k, v in overrides.items() if v is not None})

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    logger.info("DQI aggregator starting")
    logger.info(
        "Config: broker=%s:%d prefix=%s window=%d+%d visualize=%s",
        settings.mqtt_host,
        settings.mqtt_port,
        settings.topic_prefix,
        settings.window.size,
        settings.window.offset,
        args.visualize,
    )

    if not start_receiver(settings):
        logger.error("Could not start the aggregator")
        stop_receiver()
        return 1

    try:
        if args.visualize:
            uvicorn.run(
                create_app(get_receiver()),
                host=settings.api_host,
                port=settings.api_port,
                log_level=settings.log_level.lower(),
            )
        else:
            while True:
                time.sleep(60)
                logger.info("%s", get_receiver().dispatcher.stats)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        stop_receiver()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
