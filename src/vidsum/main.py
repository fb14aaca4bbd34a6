"""Main entry point for the application."""

import argparse
import asyncio
import sys
from typing import List, Optional, Tuple

from vidsum import config
from vidsum.obsidian import (
    DEFAULT_FOLDER,
    TEMPLATES,
    ObsidianConfig,
    detect_obsidian_vaults,
    validate_obsidian_vault,
)
from vidsum.pipeline import run_video_summariser
from vidsum.platforms import is_platform_supported, supported_platforms


def segment_range(
    segment_minutes: Optional[int],
    min_minutes: Optional[float],
    max_minutes: Optional[float],
) -> Tuple[float, float]:
    """
    Resolve the segment length window in minutes.

    ``-s N`` means roughly N minutes, i.e. N-1 (at least 1) to N+1.
    Explicit --min-minutes/--max-minutes override either bound.
    """
    if segment_minutes is None:
        segment_minutes = config.get_default_segment_minutes()

    if segment_minutes:
        low, high = max(1, segment_minutes - 1), segment_minutes + 1
    else:
        low, high = config.DEFAULT_SEGMENT_MINUTES_MIN, config.DEFAULT_SEGMENT_MINUTES_MAX

    if min_minutes is not None:
        low = min_minutes
    if max_minutes is not None:
        high = max_minutes
    if low > high:
        raise ValueError(f"--min-minutes ({low:g}) must not exceed --max-minutes ({high:g})")
    return low, high


def summarize_video(args: argparse.Namespace) -> int:
    """Run the summariser for one URL; returns the process exit code."""
    if not is_platform_supported(args.url):
        print(f"Error: unsupported video URL: {args.url}")
        print(f"Supported platforms: {', '.join(supported_platforms())}")
        return 1

    try:
        low, high = segment_range(args.segment_minutes, args.min_minutes, args.max_minutes)
        # Fail before any network work when no key is configured
        config.load_api_key()
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    obsidian = None
    if args.obsidian:
        if not validate_obsidian_vault(args.obsidian):
            print(f"Warning: {args.obsidian} has no .obsidian folder, exporting anyway")
        obsidian = ObsidianConfig(
            vault_path=args.obsidian,
            folder_name=args.obsidian_folder,
            template=args.obsidian_template,
        )

    output_dir = args.output or config.get_default_output_dir() or config.DEFAULT_OUTPUT_DIR

    try:
        asyncio.run(
            run_video_summariser(
                args.url,
                output_dir=output_dir,
                segment_minutes_min=low,
                segment_minutes_max=high,
                language=args.language,
                model=args.model,
                style=args.style,
                segmentation=args.segmentation,
                enable_token_monitoring=not args.no_token_monitoring,
                save_token_files=args.save_token_files,
                obsidian=obsidian,
                verbose=args.verbose,
            )
        )
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 1
    except Exception as e:
        print(f"Error: summarisation failed: {e}")
        if "api key" in str(e).lower() or "authentication" in type(e).__name__.lower():
            print("Check your OpenAI API key: vidsum config show")
        return 1
    return 0


def run_config_command(args: argparse.Namespace) -> int:
    action = args.config_command
    if action == "set-key":
        config.set_api_key(args.value)
    elif action == "remove-key":
        config.remove_api_key()
    elif action == "show":
        config.show_config()
    elif action == "reset":
        config.reset_config()
    elif action == "path":
        print(config.get_config_path())
    elif action == "set-output-dir":
        config.set_default_output_dir(args.value)
    elif action == "set-segment-minutes":
        if args.value <= 0:
            print("Error: segment minutes must be a positive integer")
            return 1
        config.set_default_segment_minutes(args.value)
    elif action == "detect-vaults":
        vaults = detect_obsidian_vaults()
        if not vaults:
            print("No Obsidian vaults found")
        for vault in vaults:
            print(vault)
    else:
        print(
            "Usage: vidsum config "
            "{set-key,remove-key,show,reset,path,set-output-dir,set-segment-minutes,detect-vaults}"
        )
        return 1
    return 0


def list_platforms() -> int:
    print("Supported platforms:")
    for platform in supported_platforms():
        print(f"  - {platform}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="vidsum - Summarise YouTube and Bilibili videos with an LLM",
        prog="vidsum",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Summarize command
    summarize_parser = subparsers.add_parser("summarize", help="Summarise a video")
    summarize_parser.add_argument("url", help="YouTube/Bilibili URL or BV/AV id")
    summarize_parser.add_argument("-o", "--output", help="Output directory")
    summarize_parser.add_argument("-s", "--segment-minutes", type=int, help="Approximate segment length in minutes")
    summarize_parser.add_argument("--min-minutes", type=float, help="Minimum segment length in minutes")
    summarize_parser.add_argument("--max-minutes", type=float, help="Maximum segment length in minutes")
    summarize_parser.add_argument("--language", default=config.DEFAULT_LANGUAGE, help="Summary language")
    summarize_parser.add_argument("--model", default=config.DEFAULT_MODEL, help="OpenAI model")
    summarize_parser.add_argument("--style", choices=["full", "simple", "table"], default="full", help="Markdown style")
    summarize_parser.add_argument(
        "--segmentation", choices=["smart", "time"], default="smart", help="Topic-aware or fixed-window segments"
    )
    summarize_parser.add_argument("--obsidian", metavar="VAULT", help="Also export the note to this Obsidian vault")
    summarize_parser.add_argument("--obsidian-folder", default=DEFAULT_FOLDER, help="Folder inside the vault")
    summarize_parser.add_argument("--obsidian-template", choices=TEMPLATES, default="standard", help="Note template")
    summarize_parser.add_argument("--no-token-monitoring", action="store_true", help="Disable token usage reporting")
    summarize_parser.add_argument("--save-token-files", action="store_true", help="Write token report files")
    summarize_parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")

    # Config command
    config_parser = subparsers.add_parser("config", help="Manage the global configuration")
    config_sub = config_parser.add_subparsers(dest="config_command")
    config_sub.add_parser("set-key", help="Save the OpenAI API key").add_argument("value", metavar="API_KEY")
    config_sub.add_parser("remove-key", help="Remove the saved API key")
    config_sub.add_parser("show", help="Show the current configuration")
    config_sub.add_parser("reset", help="Delete the config file")
    config_sub.add_parser("path", help="Print the config file path")
    config_sub.add_parser("set-output-dir", help="Set the default output directory").add_argument("value", metavar="DIR")
    config_sub.add_parser("set-segment-minutes", help="Set the default segment length").add_argument(
        "value", metavar="MINUTES", type=int
    )
    config_sub.add_parser("detect-vaults", help="List Obsidian vaults found in common locations")

    # Platforms command
    subparsers.add_parser("platforms", help="List supported platforms")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point with subcommands."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "summarize":
        code = summarize_video(args)
    elif args.command == "config":
        code = run_config_command(args)
    elif args.command == "platforms":
        code = list_platforms()
    else:
        parser.print_help()
        code = 0

    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
