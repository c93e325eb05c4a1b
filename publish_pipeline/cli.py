from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from .config import config_path_for, load_build_config
from .environment import PipelineSettings, should_publish
from .errors import PipelineError
from .pipeline import CompilePipeline, PipelineLayout
from .publish import asset_path_from_url


def _load_local_env(root: Path) -> None:
    env_file = root / ".env"
    if env_file.exists():
        load_dotenv(env_file)


def _configure_logging(*, verbose: bool, stream) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        stream=stream,
    )


def _add_layout_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--root", default=".", help="Project root containing config/, server/ and process.json.")
    parser.add_argument("--env", dest="env_override", help="Environment name; overrides NODE_ENV.")
    parser.add_argument("--config-dir")
    parser.add_argument("--views-dir")
    parser.add_argument("--process-file")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="publish-pipeline", description="Compile, relocate and publish web assets.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run the full compile-and-publish pipeline")
    _add_layout_arguments(run)
    run.add_argument("--json", action="store_true", help="Print the pipeline result as JSON on success.")
    run.add_argument("--verbose", action="store_true")

    resolve = subparsers.add_parser("resolve", help="Show the resolved environment and configuration")
    _add_layout_arguments(resolve)
    return parser


def _layout_from_args(args: argparse.Namespace) -> PipelineLayout:
    return PipelineLayout.for_root(
        args.root,
        config_dir=args.config_dir,
        views_dir=args.views_dir,
        process_path=args.process_file,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    layout = _layout_from_args(args)
    _load_local_env(layout.root)

    if args.command == "run":
        _configure_logging(verbose=args.verbose, stream=sys.stderr if args.json else sys.stdout)
        try:
            settings = PipelineSettings.from_env(root=layout.root, env_override=args.env_override)
            pipeline = CompilePipeline(layout, settings)
            result = asyncio.run(pipeline.run())
        except PipelineError as exc:
            print(str(exc), file=sys.stderr)
            return 1
        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
        return 0

    if args.command == "resolve":
        try:
            settings = PipelineSettings.from_env(root=layout.root, env_override=args.env_override)
            config = load_build_config(layout.config_dir, settings.environment, root=layout.root)
        except PipelineError as exc:
            print(str(exc), file=sys.stderr)
            return 1
        payload = {
            "environment": settings.environment,
            "raw_environment": settings.raw_environment,
            "package_name": settings.package_name,
            "config_path": str(config_path_for(layout.config_dir, settings.environment)),
            "output_path": str(config.output_path),
            "public_path": config.public_path,
            "asset_path": asset_path_from_url(config.public_path),
            "publish": should_publish(settings.environment),
            "publish_adapter": config.publish.adapter,
            "views_dir": str(layout.views_dir),
            "process_path": str(layout.process_path),
        }
        print(json.dumps(payload, indent=2))
        return 0

    parser.error(f"Unknown command '{args.command}'")
    return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
