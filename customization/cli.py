"""
Command-line interface for inspecting a customization setup.

Usage:
    python -m customization list
    python -m customization check --user ~/.config/agent-customization/customization.yaml
    python -m customization render agentic_tools --set WORKSPACE_INFO=... --set PROJECT_SUMMARY=...
    python -m customization run bugs --file main.py --line 42 --selection-file snippet.py
    python -m customization subchat locate
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ConfigLoader
from .engine import Customization
from .errors import CustomizationError
from .logging_config import configure_from_environment


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="customization",
        description="Inspect and validate agent customization configs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  customization list                             # Prompts, commands, code lens, subchat tools
  customization check --user my.yaml             # Validate a user config
  customization render default                   # Print an expanded system prompt
  customization run shorter --selection-file a.py --file a.py --line 3
  customization route "/bugs check the loop" --selection-file a.py
  customization subchat locate --json            # Subchat parameters for a tool
        """
    )

    parser.add_argument("--compiled", type=Path, help="Compiled-in config to use instead of the shipped one")
    parser.add_argument("--user", type=Path, help="User config (default: CUSTOMIZATION_USER_CONFIG or ~/.config)")
    parser.add_argument("--max-depth", dest="max_depth", type=int, help="Placeholder nesting ceiling")
    parser.add_argument("--max-length", dest="max_length", type=int,
                        help="Size ceiling for expanded text, in characters")
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")

    subparsers = parser.add_subparsers(dest="action", required=True)

    subparsers.add_parser("list", help="List prompts, commands, code lens actions and subchat tools")
    subparsers.add_parser("check", help="Load and merge the configs, report problems")

    render = subparsers.add_parser("render", help="Print an expanded system prompt")
    render.add_argument("prompt_id")
    _add_context_arguments(render)

    run = subparsers.add_parser("run", help="Print the messages of a toolbox command")
    run.add_argument("command_id")
    _add_context_arguments(run)

    lens = subparsers.add_parser("lens", help="Print the messages of a code lens action")
    lens.add_argument("lens_id")
    _add_context_arguments(lens)

    route = subparsers.add_parser("route", help="Route a '/command args' chat message")
    route.add_argument("message")
    _add_context_arguments(route)

    subchat = subparsers.add_parser("subchat", help="Print subchat parameters for a tool")
    subchat.add_argument("tool_name")

    return parser


def _add_context_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--file", dest="current_file", help="Value for %%CURRENT_FILE%%")
    parser.add_argument("--line", dest="cursor_line", type=int, help="Value for %%CURSOR_LINE%%")
    parser.add_argument("--selection-file", dest="selection_file", type=Path,
                        help="File whose text becomes %%CODE_SELECTION%%")
    parser.add_argument("--args", dest="command_args", help="Value for %%ARGS%%")
    parser.add_argument("--set", dest="values", action="append", default=[], metavar="KEY=VALUE",
                        help="Any other context value (repeatable)")


def build_context(args: argparse.Namespace) -> Dict[str, Any]:
    """Assemble the expansion context from command-line options."""
    ctx: Dict[str, Any] = {}
    if args.current_file is not None:
        ctx["CURRENT_FILE"] = args.current_file
    if args.cursor_line is not None:
        ctx["CURSOR_LINE"] = args.cursor_line
    if args.selection_file is not None:
        ctx["CODE_SELECTION"] = args.selection_file.read_text(encoding="utf-8")
    if args.command_args is not None:
        ctx["ARGS"] = args.command_args

    for item in args.values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ValueError(f"--set expects KEY=VALUE, got {item!r}")
        ctx[key] = value
    return ctx


def _print_messages(messages, as_json: bool) -> None:
    if as_json:
        print(json.dumps([m.to_dict() for m in messages], indent=2, ensure_ascii=False))
        return
    if not messages:
        print("(no messages)")
    for message in messages:
        print(f"--- {message.role.value}")
        print(message.content, end="" if message.content.endswith("\n") else "\n")


def _print_command_messages(messages, as_json: bool) -> None:
    """Toolbox commands without messages (such as 'help') show the command listing."""
    if not messages and not as_json:
        print(Customization.commands.format_help(Customization.config))
        return
    _print_messages(messages, as_json)


def execute(args: argparse.Namespace) -> int:
    """Run one CLI action against a freshly loaded configuration."""
    loader = ConfigLoader(
        compiled_path=str(args.compiled) if args.compiled else None,
        user_path=str(args.user) if args.user else None,
        max_expansion_depth=args.max_depth,
        max_expansion_length=args.max_length,
    )
    Customization.load_default(loader)

    if args.action == "check":
        info = Customization.get_info()
        if args.json:
            print(json.dumps(info, indent=2))
        else:
            user_state = "found" if loader.user_path.exists() else "absent"
            print(f"Compiled config: {loader.compiled_path}")
            print(f"User config:     {loader.user_path} ({user_state})")
            print(f"Fingerprint:     {info['fingerprint']}")
            print("OK")
        return 0

    if args.action == "list":
        info = Customization.get_info()
        if args.json:
            print(json.dumps(info, indent=2))
            return 0
        print("System prompts:")
        for prompt in info["prompts"]:
            print(f"  {prompt['id']:<20} show={prompt['visibility']:<10} {prompt['description']}".rstrip())
        print()
        print(Customization.commands.format_help(Customization.config))
        print()
        print("Code lens:")
        for lens in info["code_lens"]:
            print(f"  {lens['id']:<20} {lens['label']}")
        print()
        print("Subchat tools: " + (", ".join(info["subchat_tools"]) or "(none)"))
        return 0

    if args.action == "subchat":
        params = Customization.subchat_parameters(args.tool_name)
        if args.json:
            print(json.dumps(params.to_dict(), indent=2))
        else:
            for key, value in params.to_dict().items():
                print(f"{key}: {value}")
        return 0

    ctx = build_context(args)

    if args.action == "render":
        prompt = Customization.system_prompt(args.prompt_id, ctx)
        if args.json:
            print(json.dumps({
                "prompt_id": prompt.prompt_id,
                "visibility": prompt.visibility.value,
                "text": prompt.text,
            }, indent=2, ensure_ascii=False))
        else:
            print(prompt.text, end="" if prompt.text.endswith("\n") else "\n")
        return 0

    if args.action == "run":
        _print_command_messages(Customization.run_command(args.command_id, ctx), args.json)
        return 0

    if args.action == "lens":
        _print_messages(Customization.run_code_lens(args.lens_id, ctx), args.json)
        return 0

    if args.action == "route":
        routed = Customization.route(args.message, ctx)
        if routed is None:
            print("Not a slash command; the message would be sent as plain chat.")
            return 0
        _print_command_messages(routed.messages, args.json)
        return 0

    raise ValueError(f"Unknown action: {args.action}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for configuration or rendering errors)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_from_environment()

    try:
        return execute(args)
    except CustomizationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
