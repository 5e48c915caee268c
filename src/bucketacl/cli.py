"""CLI entry point for bucketacl."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from bucketacl.client import ACLClient
from bucketacl.codec import parse_acl_body, policy_to_dict
from bucketacl.config import ACLClientConfig, load_config
from bucketacl.errors import ACLError
from bucketacl.inputs import ACLInput, ExplicitACL, acl_input_from_fields
from bucketacl.logging_config import configure_logging

logger = logging.getLogger("bucketacl")

_GRANT_OPTIONS = (
    "grant_read",
    "grant_write",
    "grant_read_acp",
    "grant_write_acp",
    "grant_full_control",
)


def _add_put_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--acl", type=str, default=None, help="Canned ACL keyword (e.g. public-read)"
    )
    for dest in _GRANT_OPTIONS:
        flag = "--" + dest.replace("_", "-")
        parser.add_argument(
            flag,
            dest=dest,
            type=str,
            default=None,
            help=f"Comma-separated grantees for {flag[2:]} (id=... or uri=...)",
        )
    parser.add_argument(
        "--policy",
        type=Path,
        default=None,
        help="Path to a JSON policy document with explicit grants",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="bucketacl",
        description="bucketacl - read and write bucket and object ACLs",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: built-in defaults)",
    )
    parser.add_argument(
        "--endpoint",
        type=str,
        default=None,
        help="Service endpoint URL (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config, default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["text", "json"],
        help="Log format: 'text' (human-readable) or 'json' (structured)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    get_bucket = sub.add_parser("get-bucket-acl", help="Print a bucket's ACL")
    get_bucket.add_argument("bucket")

    get_object = sub.add_parser("get-object-acl", help="Print an object's ACL")
    get_object.add_argument("bucket")
    get_object.add_argument("key")
    get_object.add_argument("--version-id", default=None)

    put_bucket = sub.add_parser("put-bucket-acl", help="Set a bucket's ACL")
    put_bucket.add_argument("bucket")
    _add_put_options(put_bucket)

    put_object = sub.add_parser("put-object-acl", help="Set an object's ACL")
    put_object.add_argument("bucket")
    put_object.add_argument("key")
    put_object.add_argument("--version-id", default=None)
    _add_put_options(put_object)

    return parser.parse_args(argv)


def acl_input_from_args(args: argparse.Namespace) -> ACLInput:
    """Resolve put options into a single ACL input.

    Raises:
        ValidationError: If no style or more than one style is given.
        MalformedACL: If the policy file is not a valid policy document.
        OSError: If the policy file cannot be read.
    """
    grant_fields = {dest: getattr(args, dest) for dest in _GRANT_OPTIONS}
    if args.policy is not None:
        if args.acl or any(grant_fields.values()):
            # let the resolver report the conflict
            return acl_input_from_fields(grants=[], acl=args.acl, **grant_fields)
        owner, grants = parse_acl_body(args.policy.read_bytes())
        return ExplicitACL(grants, owner)
    return acl_input_from_fields(acl=args.acl, **grant_fields)


async def run(args: argparse.Namespace, config: ACLClientConfig) -> dict | None:
    """Execute the selected command and return what should be printed."""
    acl_input = None
    if args.command.startswith("put-"):
        acl_input = acl_input_from_args(args)

    async with ACLClient.from_config(config) as client:
        if args.command == "get-bucket-acl":
            return policy_to_dict(await client.get_bucket_acl(args.bucket))
        if args.command == "get-object-acl":
            policy = await client.get_object_acl(args.bucket, args.key, args.version_id)
            return policy_to_dict(policy)

        if args.command == "put-bucket-acl":
            ack = await client.put_bucket_acl(args.bucket, acl_input)
        else:
            ack = await client.put_object_acl(args.bucket, args.key, acl_input, args.version_id)
        logger.info("ACL updated (status=%d request_id=%s)", ack.status_code, ack.request_id)
        return None


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the bucketacl CLI.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].
    """
    args = parse_args(argv)

    # Use a basic stderr logger for config-loading errors
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    config = ACLClientConfig()
    if args.config is not None:
        try:
            config = load_config(args.config)
        except FileNotFoundError:
            logger.error("Config file not found: %s", args.config)
            sys.exit(1)
        except Exception as exc:
            logger.error("Failed to load config: %s", exc)
            sys.exit(1)

    if args.endpoint is not None:
        config.client.endpoint = args.endpoint
    if args.log_level is not None:
        config.logging.level = args.log_level
    if args.log_format is not None:
        config.logging.format = args.log_format

    configure_logging(level=config.logging.level, fmt=config.logging.format)

    try:
        output = asyncio.run(run(args, config))
    except ACLError as exc:
        logger.error("%s: %s", exc.code, exc)
        sys.exit(1)
    except OSError as exc:
        logger.error("Cannot read input: %s", exc)
        sys.exit(1)

    if output is not None:
        json.dump(output, sys.stdout, indent=2)
        sys.stdout.write("\n")


if __name__ == "__main__":
    main()
