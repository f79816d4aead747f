"""Command-line access to the reconstruction service.

Usage:
    # Connectivity probe
    omnisplat-capture status

    # Upload a finished session and submit it for reconstruction
    omnisplat-capture submit session.json

    # Follow a job until it finishes and print its results
    omnisplat-capture wait job_123

    # With a config file and JSON logs
    omnisplat-capture --config omnisplat.yaml --json-logs job-status job_123

The API key comes from --api-key, the config file, or OMNISPLAT_API_KEY.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from .config import AppConfig, load_config
from .manifest import load_session_manifest
from .processing.client import ProcessingSubmissionClient
from .processing.models import ApiResult
from .processing.polling import wait_for_job
from .utils.logging import get_logger, setup_logging

logger = get_logger("cli")


def _emit(result: ApiResult) -> int:
    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0 if result.success else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="omnisplat-capture",
        description="Submit georeferenced capture sessions for 3D reconstruction",
    )
    parser.add_argument("--config", type=Path, help="YAML or JSON config file")
    parser.add_argument("--api-key", help="Processing service API key")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Check connectivity and credentials")
    sub.add_parser("network-info", help="Show render network capacity and pricing")

    job_status = sub.add_parser("job-status", help="Poll a job once")
    job_status.add_argument("job_id")

    job_results = sub.add_parser("job-results", help="Fetch results of a completed job")
    job_results.add_argument("job_id")

    wait = sub.add_parser("wait", help="Poll a job until it finishes")
    wait.add_argument("job_id")
    wait.add_argument("--interval", type=float, help="Seconds between polls")
    wait.add_argument("--timeout", type=float, help="Give up after this many seconds")

    submit = sub.add_parser("submit", help="Upload a session manifest and submit a job")
    submit.add_argument("manifest", type=Path, help="Manifest written by export_session_manifest")
    submit.add_argument("--skip-upload", action="store_true", help="Reference assets by their local URIs")
    submit.add_argument(
        "--force",
        action="store_true",
        help="Submit even with fewer photos than min_photos_for_processing",
    )

    return parser


def run_submit(client: ProcessingSubmissionClient, config: AppConfig, args: Any) -> int:
    manifest = load_session_manifest(args.manifest)
    session = manifest.session

    minimum = config.capture.min_photos_for_processing
    if len(manifest.photos) < minimum and not args.force:
        logger.error(
            f"Session {session.session_id} has {len(manifest.photos)} photos; "
            f"at least {minimum} are needed for processing (use --force to override)"
        )
        return 1

    remote_uris = None
    if not args.skip_upload:
        upload = client.upload_assets(manifest.assets)
        if not upload.success:
            return _emit(upload)
        remote_uris = upload.payload.remote_uris

    return _emit(client.submit_reconstruction_job(
        manifest.photos,
        manifest.videos,
        session,
        remote_uris=remote_uris,
    ))


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        cloud_logging=args.json_logs,
    )

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load config: {e}")
        return 1

    api_key = args.api_key or config.processing.api_key
    if not api_key:
        logger.error("No API key: pass --api-key or set OMNISPLAT_API_KEY")
        return 1

    client = ProcessingSubmissionClient(config.processing)
    connected = client.initialize(api_key)
    if args.command == "status" or not connected.success:
        return _emit(connected)

    if args.command == "network-info":
        return _emit(client.get_network_info())
    if args.command == "job-status":
        return _emit(client.check_job_status(args.job_id))
    if args.command == "job-results":
        return _emit(client.get_job_results(args.job_id))
    if args.command == "wait":
        return _emit(wait_for_job(
            client,
            args.job_id,
            poll_interval_s=args.interval,
            timeout_s=args.timeout,
        ))
    if args.command == "submit":
        try:
            return run_submit(client, config, args)
        except (OSError, ValueError, KeyError) as e:
            logger.error(f"Cannot read manifest {args.manifest}: {e}")
            return 1

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
