#!/usr/bin/env python3
"""
s3update  —  Push a local directory tree to an S3 bucket
=========================================================

Only files that are missing remotely, or whose MD5 differs from the digest
stored in the object's user metadata, are uploaded. Objects that exist but
carry no digest metadata are re-uploaded once so they get one.

The bucket name must appear in the source directory path; keys are the
file paths below that directory component:

  s3update /home/me/www.example.com www.example.com
      /home/me/www.example.com/css/site.css  →  s3://www.example.com/css/site.css

Credentials, region and endpoint come from the nearest .s3update YAML file
(searched upward from the current directory), the global config at
$XDG_CONFIG_HOME/s3update/config.yaml, or the usual AWS environment.
"""
import sys
import argparse

from s3update import config as _cfg
from s3update.errors import ConfigurationError, RemoteTransientError


def cmd_sync(args) -> int:
    """Load configuration, run the sync, return the process exit code."""
    from s3update.core.sync_engine import run_sync
    from s3update.utils.logging import log, error

    try:
        cfg_path = _cfg.load_settings(args.profile)
        if cfg_path is not None:
            log(f"[config] Using {cfg_path} (profile {args.profile})")
        overrides = {}
        if args.region:
            overrides["region"] = args.region
        if args.endpoint_url:
            overrides["endpoint_url"] = args.endpoint_url
        if args.workers is not None:
            overrides["workers"] = args.workers
        _cfg.apply_profile(overrides)

        summary = run_sync(
            args.source_dir,
            args.bucket,
            dry_run=args.dry_run,
            verify=args.verify,
            verbose=args.verbose,
        )
    except ConfigurationError as exc:
        error(f"error: {exc}")
        return 1
    except RemoteTransientError as exc:
        error(f"error: cannot reach the object store: {exc}")
        return 1
    except KeyboardInterrupt:
        error("Interrupted by user.")
        return 130

    return 0 if summary.ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="s3update",
        usage="%(prog)s [options] <source dir> <bucket>",
        description="Upload new and changed files from a local tree to an S3 bucket",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("source_dir", metavar="SOURCE_DIR",
                        help="Local directory to upload from; its path must contain BUCKET")
    parser.add_argument("bucket", metavar="BUCKET",
                        help="Bucket name, also the path component marking the bucket root")
    parser.add_argument("--profile", metavar="NAME", default="default",
                        help="Config profile to use (default: default)")
    parser.add_argument("-w", "--workers", type=int, metavar="N",
                        help=f"Concurrent upload workers (default: {_cfg.WORKERS})")
    parser.add_argument("--region", metavar="REGION",
                        help=f"S3 region (default: {_cfg.S3_REGION})")
    parser.add_argument("--endpoint-url", metavar="URL",
                        help="S3-compatible endpoint (MinIO, SeaweedFS, …)")
    parser.add_argument("-n", "--dry-run", action="store_true",
                        help="Decide and report, but write nothing")
    parser.add_argument("--verify", action="store_true",
                        help="Read each uploaded object back and check its digest")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show every file, not just uploads")
    return parser


def main(argv=None):
    """CLI entry point for s3update"""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be at least 1")
    sys.exit(cmd_sync(args))


if __name__ == "__main__":
    main()
