"""Command-line entry point: consume a queue, piping each message into a command."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, NoReturn, Optional, Sequence

from amqp_consume import __version__
from amqp_consume.consumer import (
    DEFAULT_RABBITMQ_URL,
    ConsumeOptions,
    Consumer,
    ConsumerDependencies,
)
from amqp_consume.errors import BrokerRPCError, ConfigurationError
from amqp_consume.resolver import QueueSpec

logger = logging.getLogger("amqp_consume")

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="amqp-consume",
        usage="%(prog)s [OPTIONS]... <command> <args>",
        description=(
            "Consume messages from a RabbitMQ queue and run a command for each one, "
            "with the message body on its standard input. A message is acknowledged "
            "when the command exits with status 0."
        ),
    )
    parser.add_argument(
        "-u",
        "--url",
        help="AMQP URL (default: $RABBITMQ_URL or %s)" % DEFAULT_RABBITMQ_URL.replace("%", "%%"),
    )
    parser.add_argument("-q", "--queue", help="the queue to consume from")
    parser.add_argument("-e", "--exchange", help="bind the queue to this exchange")
    parser.add_argument("-r", "--routing-key", help="the routing key to bind with")
    parser.add_argument(
        "-d", "--declare", action="store_true", help="declare an auto-delete queue"
    )
    parser.add_argument("-A", "--no-ack", action="store_true", help="consume in no-ack mode")
    parser.add_argument(
        "-c",
        "--count",
        type=int,
        default=-1,
        metavar="LIMIT",
        help="stop consuming after this many messages are consumed",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("command", nargs=argparse.REMAINDER, help="the consuming command")
    return parser


def configure_logging(verbose: bool = False) -> None:
    # stdout belongs to the consuming command
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _command_from(args: argparse.Namespace) -> List[str]:
    command = list(args.command or [])
    if command and command[0] == "--":
        command = command[1:]
    return command


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    dependencies: Optional[ConsumerDependencies] = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    command = _command_from(args)
    if not command:
        print("consuming command not specified", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return EXIT_FAILURE

    queue_spec = QueueSpec(
        name=args.queue or None,
        exchange=args.exchange or None,
        routing_key=args.routing_key or None,
        declare=args.declare,
    )
    options = ConsumeOptions(command=command, no_ack=args.no_ack, count=args.count)
    url = args.url or os.getenv("RABBITMQ_URL") or DEFAULT_RABBITMQ_URL

    try:
        queue_spec.validate()
        consumer = Consumer.from_url(
            url,
            queue_spec=queue_spec,
            options=options,
            dependencies=dependencies,
        )
        consumer.start()
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE
    except BrokerRPCError as exc:
        logger.error("%s failed: %s", exc.rpc, exc.detail)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED

    return 0


if __name__ == "__main__":
    sys.exit(main())
