"""Entry point — runs a RemoteLogger against a collector with sample traffic."""

import logging
import os
import random
import signal
import threading
import time

from remote_logger.config import CONFIG_PATH_ENV, build_parser, load_config, load_yaml_config
from remote_logger.pipeline import RemoteLogger

SAMPLE_EVENTS = [
    ("debug", "Network request completed"),
    ("info", "Application list refreshed"),
    ("info", "Organization switched"),
    ("info", "Deployment started"),
    ("warn", "Metrics endpoint slow to respond"),
    ("error", "Failed to load network groups"),
]


def generate_sample_logs(remote: RemoteLogger, logs_per_second: int, run_time: int,
                         shutdown: threading.Event):
    """Emit random sample entries at *logs_per_second* for *run_time* seconds."""
    for _ in range(run_time):
        if shutdown.is_set():
            break

        second_start = time.monotonic()
        for _ in range(logs_per_second):
            if shutdown.is_set():
                break
            level, message = random.choice(SAMPLE_EVENTS)
            getattr(remote, level)(message, metadata={"source": "sample"})

        elapsed = time.monotonic() - second_start
        remaining = 1.0 - elapsed
        if remaining > 0 and not shutdown.is_set():
            shutdown.wait(timeout=remaining)


def main(argv=None):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    parser = build_parser(description="Remote logger demo client")
    parser.add_argument("--storage-dir", type=str,
                        default=os.environ.get("STORAGE_DIR", ".remote_logger"))
    parser.add_argument("--logs-per-second", type=int,
                        default=int(os.environ.get("LOGS_PER_SECOND", "5")))
    parser.add_argument("--run-time", type=int,
                        default=int(os.environ.get("RUN_TIME", "30")))
    parser.add_argument("--app-version", type=str, default="Unknown")
    parser.add_argument("--build-number", type=str, default="Unknown")
    args = parser.parse_args(argv)

    config = load_config(args, load_yaml_config(args.config or os.environ.get(CONFIG_PATH_ENV)))
    shutdown_event = threading.Event()

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    remote = RemoteLogger(args.storage_dir, app_version=args.app_version,
                          build_number=args.build_number)
    if not remote.configure(config):
        logger.warning("Running console-only; entries will not be shipped")

    logger.info("Device %s, session %s", remote.device_id, remote.session_id)
    try:
        generate_sample_logs(remote, args.logs_per_second, args.run_time, shutdown_event)
    finally:
        remote.close()
        logger.info("Pipeline metrics: %s", remote.metrics.snapshot())


if __name__ == "__main__":
    main()
