#!/usr/bin/env python3
"""
TOPOFORGE CLI
-----------
Command-line entry point for the prover deployment tooling.

  generate  Replicate the GPU worker in a compose manifest
  plan      Write broker capacity settings for the GPU count
  probe     Print the number of detected GPUs

Author: TopoForge Team
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.logging import RichHandler

from topoforge.cli.formatter import TopoFormatter, console
from topoforge.core.config import load_config
from topoforge.core.engine import TopologyEngine
from topoforge.core.errors import TopoForgeError, check_device_count
from topoforge.core.probe import count_devices

VERSION = "0.1.0"


class TopoForgeCLI:
    """
    CLI wrapper that translates user commands into Engine actions.
    Every TopoForgeError aborts the command with exit status 1.
    """

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="topoforge",
            description="TopoForge - Multi-GPU prover topology generator",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.formatter = TopoFormatter()
        self._setup_args()

    def _setup_args(self):
        self.parser.add_argument("--version", action="version", version=f"topoforge v{VERSION}")
        self.parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        gen_parser = subparsers.add_parser("generate", help="Replicate GPU workers in a compose manifest")
        gen_parser.add_argument("path", help="Path to the compose manifest")
        gen_parser.add_argument("--gpus", type=int, help="GPU count (default: probe with nvidia-smi)")
        gen_parser.add_argument("--config", help="YAML file overriding generator settings")
        gen_parser.add_argument("--dry-run", action="store_true", help="Preview results without writing")
        gen_parser.add_argument("--diff", action="store_true", help="Show a unified diff of the changes")
        gen_parser.add_argument("--no-validate", action="store_true", help="Skip the pre-flight YAML check")
        gen_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

        plan_parser = subparsers.add_parser("plan", help="Write broker capacity settings")
        plan_parser.add_argument("--gpus", type=int, help="GPU count (default: probe with nvidia-smi)")
        plan_parser.add_argument("--settings", default="broker.toml", help="Settings file to update")
        plan_parser.add_argument("--template", help="Template copied over the settings file first")
        plan_parser.add_argument("--dry-run", action="store_true", help="Show the plan without writing")

        subparsers.add_parser("probe", help="Print the number of detected GPUs")

    def _device_count(self, args: argparse.Namespace) -> int:
        if args.gpus is None:
            return count_devices()
        return check_device_count(args.gpus)

    def _confirm(self, args: argparse.Namespace) -> bool:
        if args.dry_run or args.yes:
            return True
        choice = console.input(f"\n[bold yellow]Rewrite {args.path}? (y/N): [/bold yellow]").lower()
        return choice == "y"

    def _run_generate(self, args: argparse.Namespace) -> int:
        devices = self._device_count(args)
        engine = TopologyEngine(load_config(args.config), validate=not args.no_validate)

        if devices > 1 and not self._confirm(args):
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            return 1

        report = engine.generate_file(args.path, devices, dry_run=args.dry_run)
        if args.diff:
            self.formatter.display_diff(report["original_content"], report["generated_content"], args.path)
        self.formatter.print_generation_report(report)
        return 0

    def _run_plan(self, args: argparse.Namespace) -> int:
        devices = self._device_count(args)
        engine = TopologyEngine()
        report = engine.apply_capacity(args.settings, devices,
                                       template_path=args.template, dry_run=args.dry_run)
        self.formatter.print_capacity(report)
        return 0

    def run(self, argv: Optional[List[str]] = None) -> int:
        args = self.parser.parse_args(argv)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.INFO,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

        if args.command is None:
            self.formatter.print_header("Prover Topology Generator", VERSION)
            self.parser.print_help()
            return 0

        try:
            if args.command == "generate":
                self.formatter.print_header("Compose Topology", VERSION)
                return self._run_generate(args)
            if args.command == "plan":
                self.formatter.print_header("Broker Capacity", VERSION)
                return self._run_plan(args)
            console.print(f"Found {count_devices()} GPU(s)")
            return 0
        except TopoForgeError as e:
            self.formatter.print_error(e)
            return 1


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(TopoForgeCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
