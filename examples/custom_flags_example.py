#!/usr/bin/env python3
"""
Example demonstrating how hand-built flags bind to a type by name alone.

No options are synthesized here: every flag is registered by hand, with its own
aliases and defaults, and TypeBinder only matches their names to the members of
AppConfig. This example shows two ways to add flags:
- Pass `flags=` to the constructor for upfront flags
- Call `add_flag(...)` to add additional flags later
"""

from type_binder import BinderArgParser, TypeBinder


class AppConfig:
    repeats: int = 1

    def __init__(self, name: str = "example", log: str = "") -> None:
        self.name = name
        self.log = log


if __name__ == "__main__":
    constructor_flags = [
        ("--log", {"type": str, "help": "Path to log file"}),
        {"names": ("-N", "--app-name"), "kwargs": {"dest": "name", "type": str}},
    ]

    parser = BinderArgParser(flags=constructor_flags)

    # A hand-built default reaches the 'repeats' property through the parse result
    parser.add_flag("--repeats", "-r", type=int, default=2, help="Number of repeats")

    args = ["--log", "/tmp/app.log", "-N", "demo"]

    result = parser.parse(args)
    cfg = TypeBinder(AppConfig).create_instance(result)

    print("Bound instance:")
    print(f"  name: {cfg.name}")
    print(f"  log: {cfg.log}")
    print(f"  repeats: {cfg.repeats}")
    print("Resolved values:")
    for key, value in result.values.items():
        print(f"  {key}: {value}")
