"""Operator command line for the backend services."""

import argparse
import asyncio
import logging

from dgisback.app import create_config, open_services

LOGGER = logging.getLogger(__name__)


async def _init(env_file: str) -> None:
    config = create_config(env_file)
    async with open_services(config) as services:
        if await services.users.count_users() != 0:
            LOGGER.info("Users already exist, indexes are up to date")
            return
        credentials = config.security_manager.prompt_owner_credentials()
        await services.users.ensure_indexes(credentials)


async def _watch_unread(env_file: str, user_id: str) -> None:
    config = create_config(env_file)
    async with open_services(config) as services:
        async for count in services.notifications.watch_unread_count(user_id):
            print(f"unread notifications for {user_id}: {count}")


def main() -> None:
    """Parse arguments and run the selected command."""
    parser = argparse.ArgumentParser(
        description="Manage the DGIS inspection backend.",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=".env",
        help="Path to the environment configuration file.",
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser(
        "init",
        help="Create indexes and seed the chairman account if no users exist.",
    )
    watch = commands.add_parser(
        "watch-unread",
        help="Print a user's unread notification count on every change.",
    )
    watch.add_argument("--user-id", required=True, help="Hex identifier of the user.")
    args = parser.parse_args()

    try:
        if args.command == "init":
            asyncio.run(_init(args.env_file))
        else:
            asyncio.run(_watch_unread(args.env_file, args.user_id))
    except KeyboardInterrupt:
        LOGGER.info("Interrupted")


if __name__ == "__main__":
    main()
