"""Composition root for the diagbundle orchestration system.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Configuration loading via config module
- Adapter instantiation
- Core service initialization
- Dependency injection
- Entry point selection (server or CLI)
"""

import asyncio
import json
import logging
import signal
import sys
from typing import Any

from diagbundle.adapters.access.rest import RESTAccessControlAdapter
from diagbundle.adapters.access.static import StaticAccessControlAdapter
from diagbundle.adapters.badquery.sqlite import SQLiteBadQueryStore
from diagbundle.adapters.cli.commands import CLICommandHandler
from diagbundle.adapters.executor.shell import ShellCommandExecutor
from diagbundle.adapters.jobs.rest import RESTJobLookupAdapter
from diagbundle.adapters.scheduler.janitor import WorkspaceJanitor
from diagbundle.adapters.server.http_server import DiagnosisHTTPServer
from diagbundle.adapters.server.receiver import DiagnosisRequestReceiver
from diagbundle.config import Settings, load_settings
from diagbundle.core.access_gate import AccessGate
from diagbundle.core.diagnosis_service import DiagnosisService
from diagbundle.core.locator import BundleLocator
from diagbundle.core.ports import AccessControlPort
from diagbundle.core.runner import DiagnosticRunner
from diagbundle.core.workspace import WorkspaceManager


async def _run_cli_interactive(cli_handler: CLICommandHandler) -> None:
    """Run interactive CLI loop.

    Provides a REPL-like interface for diagnosis commands.

    Args:
        cli_handler: CLICommandHandler instance for executing commands.
    """
    logger = logging.getLogger(__name__)
    logger.info("Starting interactive CLI. Type 'help' for available commands or 'exit' to quit.")

    loop = asyncio.get_running_loop()

    while True:
        try:
            # Read command from stdin in a thread to avoid blocking
            command_line = await loop.run_in_executor(None, input, "diagbundle> ")

            command_line = command_line.strip()

            if not command_line:
                continue

            if command_line.lower() == "exit":
                logger.info("Exiting CLI")
                break

            if command_line.lower() == "help":
                _print_cli_help()
                continue

            parts = command_line.split(maxsplit=1)
            command = parts[0].lower()
            args_str = parts[1] if len(parts) > 1 else ""

            try:
                args = json.loads(args_str) if args_str else {}
            except json.JSONDecodeError:
                logger.error("Invalid JSON arguments. Use 'help' for command syntax.")
                continue

            try:
                result = await _execute_cli_command(cli_handler, command, args)
                print(json.dumps(result, indent=2, default=str))
            except Exception as e:
                logger.error(f"Command execution error: {e}", exc_info=True)
                print(json.dumps({"status": "error", "message": str(e)}, indent=2))

        except EOFError:
            logger.info("EOF received, exiting CLI")
            break
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            continue


async def _execute_cli_command(
    cli_handler: CLICommandHandler,
    command: str,
    args: dict[str, Any],
) -> dict[str, Any]:
    """Execute a CLI command.

    Args:
        cli_handler: CLICommandHandler instance.
        command: Command name.
        args: Command arguments.

    Returns:
        Command result dictionary.

    Raises:
        ValueError: If command is not recognized or a parameter is missing.
    """
    if command == "project":
        if "project" not in args:
            raise ValueError("Missing required parameter: project")
        return await cli_handler.dump_project(
            project=args["project"],
            verbose=args.get("verbose", False),
        )

    elif command == "job":
        if "job_id" not in args:
            raise ValueError("Missing required parameter: job_id")
        return await cli_handler.dump_job(
            job_id=args["job_id"],
            verbose=args.get("verbose", False),
        )

    elif command == "bad-queries":
        if "project" not in args:
            raise ValueError("Missing required parameter: project")
        return await cli_handler.bad_queries(
            project=args["project"],
            output_format=args.get("format", "json"),
        )

    elif command == "sweep":
        return await cli_handler.sweep()

    else:
        raise ValueError(f"Unknown command: {command}. Use 'help' for available commands.")


def _print_cli_help() -> None:
    """Print CLI help message."""
    help_text = """
Available Commands (JSON format):

  project
    Generate a diagnosis package for a project.
    Required: project

    Example: project {"project": "sales_cube"}

  job
    Generate a diagnosis package for a job.
    Required: job_id

    Example: job {"job_id": "job-42"}

  bad-queries
    Show the bad-query history of a project.
    Required: project
    Optional: format (json, text)

    Example: bad-queries {"project": "sales_cube", "format": "text"}

  sweep
    Remove workspaces older than the retention window.

  help
    Show this help message.

  exit
    Exit the CLI.

Note: All commands accept arguments as a single JSON object.
Provide the JSON after the command name on the same line.
    """
    print(help_text)


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def build_access_control(settings: Settings) -> AccessControlPort:
    """Select the access-control adapter from configuration."""
    if settings.access_backend == "rest":
        return RESTAccessControlAdapter(
            api_url=settings.access_service_url,
            api_key=settings.access_api_key,
        )
    return StaticAccessControlAdapter.from_entries(settings.allowed_projects)


def build_service(
    settings: Settings,
    access_control: AccessControlPort,
    jobs: RESTJobLookupAdapter,
    bad_queries: SQLiteBadQueryStore,
    workspaces: WorkspaceManager,
) -> DiagnosisService:
    """Wire the core diagnosis pipeline."""
    runner = DiagnosticRunner(
        executor=ShellCommandExecutor(kill_grace_seconds=settings.kill_grace_seconds),
        workspaces=workspaces,
        locator=BundleLocator(suffix=settings.archive_suffix),
        installation_home=settings.installation_home,
        script_name=settings.diag_script_name,
        script_dir=settings.diag_script_dir,
        default_timeout=settings.diag_timeout,
    )
    return DiagnosisService(
        gate=AccessGate(access_control, jobs),
        runner=runner,
        workspaces=workspaces,
        bad_queries=bad_queries,
    )


async def _wait_for_shutdown() -> None:
    """Block until SIGTERM or SIGINT is received."""
    logger = logging.getLogger(__name__)
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _handle_signal(sig: int) -> None:
        logger.info(f"Received signal {sig}, initiating graceful shutdown...")
        stop_event.set()

    try:
        loop.add_signal_handler(signal.SIGTERM, _handle_signal, signal.SIGTERM)
        loop.add_signal_handler(signal.SIGINT, _handle_signal, signal.SIGINT)
    except NotImplementedError:
        logger.debug("Signal handlers not available on this platform")

    await stop_event.wait()


async def bootstrap() -> None:
    """Load configuration, wire adapters, and start the application.

    This is the composition root: the single place where all components
    are instantiated and wired together.

    Steps:
    1. Load configuration from environment
    2. Configure logging
    3. Instantiate adapters with configuration
    4. Initialize core services
    5. Select and start run mode
    """
    # Step 1: Load configuration
    settings = load_settings()

    # Step 2: Configure logging
    configure_logging("DEBUG" if settings.debug else settings.log_level, settings.log_format)
    logger = logging.getLogger(__name__)
    logger.info("Loading diagbundle...")

    # Step 3: Instantiate adapters
    access_control = build_access_control(settings)
    logger.info(f"Access-control adapter: {settings.access_backend}")

    jobs = RESTJobLookupAdapter(
        api_url=settings.job_service_url,
        api_key=settings.job_service_api_key,
    )
    bad_queries = SQLiteBadQueryStore(db_path=settings.bad_query_db_path)
    logger.info(f"Bad-query store initialized: {settings.bad_query_db_path}")

    workspaces = WorkspaceManager(root=settings.workspace_root or None)
    janitor = WorkspaceJanitor(
        workspaces=workspaces,
        retention_seconds=settings.workspace_retention_hours * 3600,
        interval_seconds=settings.janitor_interval_seconds,
    )

    # Step 4: Initialize core services
    service = build_service(settings, access_control, jobs, bad_queries, workspaces)

    # Step 5: Select run mode and start
    logger.info(f"Starting in {settings.run_mode} mode...")

    try:
        if settings.run_mode == "server":
            receiver = DiagnosisRequestReceiver(service, timeout=settings.diag_timeout)
            http_server = DiagnosisHTTPServer(
                receiver=receiver,
                host=settings.server_host,
                port=settings.server_port,
                api_key=settings.server_api_key or None,
                require_auth=settings.server_require_auth,
            )
            await janitor.start()
            await http_server.start()
            try:
                await _wait_for_shutdown()
            finally:
                await http_server.stop()
                await janitor.stop()

        elif settings.run_mode == "cli":
            cli_handler = CLICommandHandler(
                service,
                user=settings.cli_user,
                janitor=janitor,
                timeout=settings.diag_timeout,
            )
            await _run_cli_interactive(cli_handler)

        else:
            logger.error(f"Unknown run mode: {settings.run_mode}")
            sys.exit(1)

    finally:
        await jobs.close()
        await bad_queries.close()
        if hasattr(access_control, "close"):
            await access_control.close()


def main() -> None:
    """Application entry point.

    Exit codes:
        0: Successful shutdown
        1: Fatal bootstrap or runtime error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    logger = logging.getLogger(__name__)
    try:
        asyncio.run(bootstrap())
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except asyncio.CancelledError:
        logger.info("Graceful shutdown completed")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
