"""
Interactive shell for the calculator agent.

This script:
- Validates command-line options
- Opens an in-memory session for one user
- Reads one utterance per line and prints the agent's answer
- Stops on a "quit" line or at end of input
"""

import argparse
import sys
from typing import Optional, Sequence, TextIO

from pydantic import BaseModel, Field, ValidationError

from calculator_agent.agent.policy import ConversationPolicy
from calculator_agent.common.config import AgentSettings, LogLevel
from calculator_agent.common.logger import logger, set_level
from calculator_agent.common.models import Session
from calculator_agent.dispatch.dispatcher import BatchDispatcher


QUIT_COMMAND = "quit"


class CliArgs(BaseModel):
    """
    Pydantic model used to validate CLI arguments.

    Attributes
    ----------
    user_id : str
        Identity the session is opened for.
    max_workers : int
        Concurrent invocations per batch.
    log_level : str
        Package log level.
    """

    user_id: str = Field(default="calculator_user", min_length=1)
    max_workers: int = Field(default=4, ge=1, le=64)
    log_level: LogLevel = "INFO"


def parse_args(argv: Optional[Sequence[str]] = None) -> CliArgs:
    """
    Parse and validate command-line arguments.

    :param argv: Arguments to parse, defaults to sys.argv[1:]
    :return: Validated CLI arguments
    :rtype: CliArgs
    """
    parser = argparse.ArgumentParser(
        description="Calculator agent: ask arithmetic questions in plain language"
    )
    parser.add_argument("--user-id", default="calculator_user", help="Session user identity")
    parser.add_argument("--max-workers", type=int, default=4, help="Concurrent invocations per batch")
    parser.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING or ERROR")

    args = parser.parse_args(argv)

    try:
        return CliArgs(
            user_id=args.user_id,
            max_workers=args.max_workers,
            log_level=args.log_level.upper(),
        )
    except ValidationError as exc:
        parser.error(str(exc))


def build_policy(settings: AgentSettings) -> ConversationPolicy:
    """
    Wire the session, dispatcher and planner for one interactive process.

    :param AgentSettings settings: Runtime settings
    :return: Ready conversation policy
    :rtype: ConversationPolicy
    """
    return ConversationPolicy(
        dispatcher=BatchDispatcher(max_workers=settings.max_workers),
        session=Session(app_name=settings.app_name, user_id=settings.user_id),
    )


def run_shell(
    policy: ConversationPolicy,
    settings: AgentSettings,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> int:
    """
    Answer utterances line by line until "quit" or end of input.

    :param stdin: Input stream, defaults to sys.stdin
    :param stdout: Output stream, defaults to sys.stdout
    :return: Number of answered turns
    :rtype: int
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    answered = 0
    while True:
        stdout.write(settings.user_prompt)
        stdout.flush()
        line = stdin.readline()
        # End of input closes the session like "quit"
        if not line:
            break
        utterance = line.strip()
        if utterance.lower() == QUIT_COMMAND:
            break
        if not utterance:
            continue

        stdout.write(settings.agent_prompt)
        stdout.write(policy.respond(utterance) + "\n")
        stdout.flush()
        answered += 1
    return answered


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Console entry point.
    """
    cli_args = parse_args(argv)
    settings = AgentSettings(
        user_id=cli_args.user_id,
        max_workers=cli_args.max_workers,
        log_level=cli_args.log_level,
    )
    set_level(settings.log_level)

    logger.info(f"🧮 Starting session for {settings.user_id}")
    policy = build_policy(settings)
    try:
        turns = run_shell(policy, settings)
    except KeyboardInterrupt:
        turns = len(policy.session.turns)
    logger.info(f"👋 Session closed after {turns} turn(s)")


if __name__ == "__main__":
    main()
