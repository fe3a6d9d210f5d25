"""
model-creator command line.

Thin glue over ModelSynchronizer and FanCreator: arguments are taken as
already chosen by the operator, nothing is prompted for.

Examples::

    # Inspect a config file (blocks, prefix, candidates for line 120)
    model-creator list Project/Src/Config/Config_PGEL.h --line 120

    # New model derived from an existing one
    model-creator new-model Project/Src/Config/Config_PGEL.h \\
        --reference PGEL_KFW72C_4_12K_3S_001 --name PGEL_KFW72C_4_12K_3S_002 \\
        --eeprom-version 1981 --software-version 0x19035B01 --motor1 COMP_A

    # New fan model
    model-creator new-fan Driver/.../Custom.h --reference FAN_A --name FAN_B \\
        --poles 4 --rs 10.5 --ld 120 --lq 130 --ke 35.2
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from model_creator import __version__
from model_creator.config import ModelCreatorConfig
from model_creator.exceptions import ModelCreatorError
from model_creator.fan_creator import FanCreator
from model_creator.models import (
    FanParameters,
    MotorTypes,
    NewFanRequest,
    NewModelRequest,
    StepStatus,
    SyncReport,
)
from model_creator.synchronizer import ModelSynchronizer

console = Console()
logger = logging.getLogger(__name__)

_STATUS_STYLE = {
    StepStatus.APPLIED: "green",
    StepStatus.SKIPPED: "yellow",
    StepStatus.FAILED: "red",
}


# --------- CLI Argument Parsing ---------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="model-creator",
        description="Create new model and fan variants in preprocessor config files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Warnings and errors only")

    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="Show the blocks of a Config_*.h file")
    p_list.add_argument("config_file")
    p_list.add_argument("--line", type=int, default=None,
                        help="1-based line; narrows candidates to that block's board model")

    p_model = sub.add_parser("new-model", help="Create a model arm from a reference arm")
    p_model.add_argument("config_file")
    p_model.add_argument("--reference", required=True, help="Reference block name")
    p_model.add_argument("--name", required=True, help="New block name")
    p_model.add_argument("--eeprom-version", required=True, help="EEPROM data version, e.g. 1981")
    p_model.add_argument("--software-version", default=None, help="0x + 8 hex digits")
    p_model.add_argument("--code-name", default=None, help="Customer part number (max 30 chars)")
    p_model.add_argument("--motor1", default=None, help="Compressor type for Custom.h")
    p_model.add_argument("--motor2", default=None, help="Fan type for Custom.h")
    p_model.add_argument("--skip-gen-code", action="store_true", help="Do not run the generation script")
    p_model.add_argument("--dry-run", action="store_true", help="Report edits without writing")

    p_fan = sub.add_parser("new-fan", help="Create a fan model from a reference fan")
    p_fan.add_argument("custom_header")
    p_fan.add_argument("--reference", required=True, help="Reference fan name without MOTOR2_")
    p_fan.add_argument("--name", required=True, help="New fan name without MOTOR2_")
    p_fan.add_argument("--poles", type=int, required=True, help="Pole pairs")
    p_fan.add_argument("--rs", type=float, required=True, help="Phase resistance")
    p_fan.add_argument("--ld", type=float, required=True, help="d-axis inductance")
    p_fan.add_argument("--lq", type=float, required=True, help="q-axis inductance")
    p_fan.add_argument("--ke", type=float, required=True, help="Back-EMF constant")
    p_fan.add_argument("--dry-run", action="store_true", help="Report edits without writing")

    return parser


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )


# --------- Output ---------
def print_report(report: SyncReport, title: str) -> None:
    prefix = "[DRY RUN] " if report.dry_run else ""
    console.print(f"\n[bold]{escape(prefix + title)}[/bold]")
    for key, value in report.identifiers.items():
        console.print(f"  {key:<16} {value}")

    console.print("")
    for outcome in report.outcomes:
        style = _STATUS_STYLE[outcome.status]
        label = outcome.status.value.upper()
        console.print(f"  [{style}]{label:<8}[/{style}] {outcome.step:<20} {escape(outcome.reason)}")
        stdout = outcome.details.get("stdout")
        if stdout:
            console.print(stdout, markup=False, highlight=False)

    counts = report.counts()
    console.print(
        f"\n  Applied: {counts['applied']}  Skipped: {counts['skipped']}  Failed: {counts['failed']}"
    )


def cmd_list(args, config: ModelCreatorConfig) -> int:
    line = args.line - 1 if args.line else None
    info = ModelSynchronizer(config).describe_file(args.config_file, line=line)

    console.print(f"[bold]{info['file']}[/bold]")
    console.print(f"  customer: {info['customer']}   prefix: {info['prefix']}")
    for block in info["blocks"]:
        marker = "*" if block.name == info["current_block"] else " "
        console.print(f" {marker} {block.start_line + 1:>5}-{block.end_line + 1:<5} {block.name}")

    if info["current_block"]:
        console.print(f"\n  Block at line {args.line}: {info['current_block']} "
                      f"(board model: {info['board_model'] or 'unknown'})")
    console.print(f"  Reference candidates: {len(info['candidates'])}")
    for name in info["candidates"]:
        console.print(f"    {name}")

    motor_types = info["motor_types"]
    console.print(f"\n  Motor types in {escape(info['custom_header'])}:")
    console.print(f"    --motor1: {', '.join(motor_types['compressor']) or '(none)'}")
    console.print(f"    --motor2: {', '.join(motor_types['fan']) or '(none)'}")
    return 0


def cmd_new_model(args, config: ModelCreatorConfig) -> int:
    request = NewModelRequest(
        config_path=args.config_file,
        reference_name=args.reference,
        new_name=args.name,
        eeprom_version=args.eeprom_version,
        software_version=args.software_version,
        custom_code_name=args.code_name,
        motor_types=MotorTypes(args.motor1, args.motor2),
        run_gen_code=not args.skip_gen_code,
        dry_run=args.dry_run,
    )
    report = ModelSynchronizer(config).create_model(request)
    print_report(report, f"New model {request.new_name}")
    return 1 if report.has_failures else 0


def cmd_new_fan(args, config: ModelCreatorConfig) -> int:
    request = NewFanRequest(
        custom_header_path=args.custom_header,
        reference_name=args.reference,
        new_name=args.name,
        parameters=FanParameters(poles=args.poles, rs=args.rs, ld=args.ld, lq=args.lq, ke=args.ke),
        dry_run=args.dry_run,
    )
    report = FanCreator(config).create_fan(request)
    print_report(report, f"New fan MOTOR2_{request.new_name}")
    return 1 if report.has_failures else 0


_COMMANDS = {
    "list": cmd_list,
    "new-model": cmd_new_model,
    "new-fan": cmd_new_fan,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.quiet)
    config = ModelCreatorConfig.from_env()

    try:
        return _COMMANDS[args.command](args, config)
    except ModelCreatorError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        logger.debug(f"Details: {e.details}")
        return 1
    except OSError as e:
        console.print(f"[red]I/O error: {escape(str(e))}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
