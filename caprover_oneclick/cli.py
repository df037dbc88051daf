"""Command line interface for one-click app deployment."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List

from .client import CapRoverClient
from .config import PlatformConfig, load_config, load_variables_file
from .console import ConsolePrompt, write_stdout_text
from .errors import OneClickError
from .orchestrator import deploy_one_click_app, render_one_click_app
from .parser import load_template_file
from .yaml_out import render_template_yaml, write_template_file


def _add_connection_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=Path, help="YAML file with connection settings.")
    parser.add_argument("--address", help="Captain address without protocol.")
    parser.add_argument(
        "--password",
        help="Captain password (defaults to the CAPROVER_PASSWORD environment variable).",
    )
    parser.add_argument("--namespace", help="Captain namespace (default: captain).")
    parser.add_argument("--protocol", choices=["http://", "https://"], help="Protocol prefix.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")


def _add_template_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("app", help="One-click app name, e.g. wordpress.")
    parser.add_argument(
        "--app-namespace",
        default="oneclick",
        help="Prefix for the generated app name ($$cap_appname = PREFIX-APP).",
    )
    parser.add_argument(
        "--var",
        action="append",
        default=[],
        metavar="ID=VALUE",
        help="Variable value, e.g. '$$cap_db_user=admin'. Repeatable.",
    )
    parser.add_argument("--vars-file", type=Path, help="YAML mapping of variable id to value.")
    parser.add_argument(
        "--template-file",
        type=Path,
        help="Use a local template instead of the one-click catalog.",
    )
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Prompt for missing or invalid variables.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="caprover-oneclick",
        description="Deploy CapRover one-click apps in dependency order.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List the one-click app catalog.")
    _add_connection_args(list_parser)

    render_parser = subparsers.add_parser(
        "render", help="Resolve variables and print the template without deploying."
    )
    _add_connection_args(render_parser)
    _add_template_args(render_parser)
    render_parser.add_argument("-o", "--output", type=Path, help="Write the template here.")

    deploy_parser = subparsers.add_parser("deploy", help="Deploy a one-click app.")
    _add_connection_args(deploy_parser)
    _add_template_args(deploy_parser)

    serve_parser = subparsers.add_parser("serve", help="Serve the JSON web API.")
    _add_connection_args(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address.")
    serve_parser.add_argument("--port", type=int, default=8001, help="Bind port.")
    return parser


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def parse_var_args(values: List[str]) -> Dict[str, str]:
    variables: Dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Variables must look like ID=VALUE, got {item!r}")
        variables[key.strip()] = value
    return variables


def collect_variables(args: argparse.Namespace) -> Dict[str, str]:
    variables: Dict[str, str] = {}
    if args.vars_file:
        variables.update(load_variables_file(args.vars_file))
    variables.update(parse_var_args(args.var))
    return variables


def build_config(args: argparse.Namespace) -> PlatformConfig:
    overrides = {
        "address": args.address,
        "password": args.password,
        "namespace": args.namespace,
        "protocol": args.protocol,
    }
    config = load_config(args.config, overrides=overrides)
    if not config.address:
        raise ValueError("No captain address configured (use --address or CAPROVER_ADDRESS)")
    return config


def _run_list(client: CapRoverClient) -> int:
    for entry in client.list_one_click_templates():
        title = f" - {entry.display_name}" if entry.display_name else ""
        official = " (official)" if entry.is_official else ""
        write_stdout_text(f"{entry.name}{title}{official}")
    return 0


def _run_render(client: CapRoverClient, args: argparse.Namespace) -> int:
    template_source = load_template_file(args.template_file) if args.template_file else None
    rendered = render_one_click_app(
        client,
        args.app,
        args.app_namespace,
        collect_variables(args),
        prompt=ConsolePrompt() if args.interactive else None,
        template_source=template_source,
    )
    start = rendered.template.info.start_instructions
    if start:
        logging.info("%s", start)
    if args.output:
        write_template_file(rendered.text, args.output)
    else:
        write_stdout_text(render_template_yaml(rendered.text))
    return 0


def _run_deploy(client: CapRoverClient, config: PlatformConfig, args: argparse.Namespace) -> int:
    template_source = load_template_file(args.template_file) if args.template_file else None
    result = deploy_one_click_app(
        client,
        args.app,
        args.app_namespace,
        collect_variables(args),
        prompt=ConsolePrompt() if args.interactive else None,
        config=config,
        template_source=template_source,
    )
    write_stdout_text(f"Deployed {result.app_name}: {', '.join(result.deployed)}")
    if result.end_instructions:
        write_stdout_text(result.end_instructions)
    return 0


def _run_serve(client: CapRoverClient, config: PlatformConfig, args: argparse.Namespace) -> int:
    from .webui import configure, run

    configure(client, config)
    run(host=args.host, port=args.port)
    return 0


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = build_config(args)
        client = CapRoverClient.login(config)
        if args.command == "list":
            return _run_list(client)
        if args.command == "render":
            return _run_render(client, args)
        if args.command == "serve":
            return _run_serve(client, config, args)
        return _run_deploy(client, config, args)
    except (OneClickError, OSError, ValueError) as exc:
        logging.error("caprover-oneclick failed: %s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
