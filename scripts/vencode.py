#!/usr/bin/env python3
"""
Command-line utility for submitting and following Vencode encoding jobs.
"""

import argparse
import json
import logging
import sys
import threading
from pathlib import Path

# Add the parent directory to Python path to import vencode_client
sys.path.insert(0, str(Path(__file__).parent.parent))

from vencode_client import ALL_JOBS, ClientConfig, S3Storage, VencodeClient

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def create_client(args) -> VencodeClient:
    """Create a VencodeClient from the environment and command-line flags."""
    overrides = {}
    if args.debug:
        overrides['debug'] = True
    return VencodeClient(ClientConfig.from_env(env_file=args.env_file, **overrides))


def print_event(event):
    print(json.dumps(event, ensure_ascii=False), flush=True)


def follow(client: VencodeClient, job_id=None):
    """Print events until interrupted or until the stream is given up."""
    done = threading.Event()

    def on_close(subscription):
        print(f"❌ Event stream for {subscription.topic} closed after repeated failures")
        done.set()

    if job_id:
        client.listen(job_id, print_event, on_close=on_close)
    else:
        client.listen_all(print_event, on_close=on_close)

    print(f"👂 Listening to {job_id or 'all jobs'} (Ctrl-C to stop)")
    try:
        while not done.wait(0.5):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        client.stop_listening(job_id or ALL_JOBS)


def submit(args):
    """Submit an encoding job."""
    with create_client(args) as client:
        input_url = args.input
        if args.upload:
            if not client.config.storage:
                raise ValueError("--upload requires S3_BUCKET to be configured")
            input_url = S3Storage(client.config.storage).upload_input(args.upload)

        if not input_url:
            raise ValueError("Provide an input URL or --upload FILE")

        builder = client.job().with_input(input_url)
        if args.format:
            builder.to_format(args.format)
        if args.res:
            builder.to_resolutions(args.res)
        if args.notify:
            builder.notify(args.notify)

        job = builder.run()
        print("✅ Submitted job")
        print(f"📋 Job ID: {job.id}")
        print(f"📊 Status: {job.status.value.upper()}")

        if args.watch:
            follow(client, job.id)


def status(args):
    """Show the status of a job."""
    with create_client(args) as client:
        job = client.get_job_metadata(args.job_id)

        print(f"📋 Job ID: {job.id}")
        print(f"📊 Status: {job.status.value.upper()}")
        if job.progress is not None:
            print(f"📈 Progress: {job.progress:.1f}%")


def cancel(args):
    """Cancel a running job."""
    with create_client(args) as client:
        client.stop_job(args.job_id)
        print(f"🛑 Cancelled job {args.job_id}")


def watch(args):
    """Print progress events for one job or for every job."""
    with create_client(args) as client:
        follow(client, args.job_id)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Submit and follow Vencode encoding jobs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Submit a job with two renditions and follow its progress
  python scripts/vencode.py submit https://example.com/source.mov \\
    --res 1080p out-1080 720p out-720 --format mp4 --watch

  # Upload a local file to the configured bucket first
  python scripts/vencode.py submit --upload ./source.mov --res 720p out-720

  # Check job status
  python scripts/vencode.py status abc-123-def

  # Follow every job of the account
  python scripts/vencode.py watch
        """
    )

    # Configuration
    parser.add_argument('--env-file', default='.env', help='Environment file to load (default: .env)')
    parser.add_argument('--debug', action='store_true', help='Log event stream lifecycle')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Submit command
    submit_parser = subparsers.add_parser('submit', help='Submit an encoding job')
    submit_parser.add_argument('input', nargs='?', help='URL of the source video')
    submit_parser.add_argument('--upload', help='Local file to upload to S3 and use as input')
    submit_parser.add_argument('--res', nargs='+', help='Alternating resolution and output key')
    submit_parser.add_argument('--format', help='Output container (default: mp4)')
    submit_parser.add_argument('--notify', help='Webhook URL notified on completion')
    submit_parser.add_argument('--watch', action='store_true', help='Follow progress events after submitting')

    # Status command
    status_parser = subparsers.add_parser('status', help='Check job status')
    status_parser.add_argument('job_id', help='Job ID to check')

    # Cancel command
    cancel_parser = subparsers.add_parser('cancel', help='Cancel a job')
    cancel_parser.add_argument('job_id', help='Job ID to cancel')

    # Watch command
    watch_parser = subparsers.add_parser('watch', help='Follow progress events')
    watch_parser.add_argument('job_id', nargs='?', help='Job ID to follow (default: all jobs)')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == 'submit':
            submit(args)
        elif args.command == 'status':
            status(args)
        elif args.command == 'cancel':
            cancel(args)
        elif args.command == 'watch':
            watch(args)

    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
