"""
BinderArgParser - argparse front end for TypeBinder.

This module registers the options synthesized from one or more types onto an
argparse.ArgumentParser, alongside any hand-built flags, and turns a command line
into resolved values and bound instances. It also supports loading values from
YAML or JSON configuration files.
"""

import argparse
import ast
import json
import logging
import os
import types
import typing
from collections.abc import Mapping, Sequence
from typing import Any, Literal, Optional, Type, Union

import yaml
from result import Err, Ok, Result

from .binder import TypeBinder
from .errors import MissingValueError
from .infrastructure import CancellationToken, Console, InvocationContext, ParseResult
from .naming import normalize_name
from .options import OptionDescriptor
from .resolved import ResolvedValues

logger = logging.getLogger(__name__)

# Stands in for "not supplied on the command line" in the argparse namespace.
_UNSET = object()

# Actions that read the current namespace value, so they cannot start from _UNSET.
_ACCUMULATING_ACTIONS = ("append", "append_const", "extend", "count")


def _get_optional_inner_type(type_hint: Any) -> Optional[Any]:
    """
    If type_hint is Optional[T] (i.e., Union[T, None] or T | None), return T.
    Otherwise, return None.
    """
    if typing.get_origin(type_hint) in (Union, types.UnionType):
        args = typing.get_args(type_hint)
        non_none_args = [a for a in args if a is not type(None)]
        if len(non_none_args) == 1 and type(None) in args:
            return non_none_args[0]
    return None


def _strict_bool(value: str) -> bool:
    """
    Parse a string to a boolean value strictly.

    Only accepts 'True', 'true', 'False', 'false', '1', '0' as valid values.
    Raises argparse.ArgumentTypeError for any other string.
    """
    if value in ("True", "true", "1"):
        return True
    elif value in ("False", "false", "0"):
        return False
    else:
        raise argparse.ArgumentTypeError(
            f"Invalid boolean value: '{value}'. Must be one of: True, true, False, false, 1, 0"
        )


def _list_type_factory(list_type: Any) -> typing.Callable[[str], list]:
    """
    Return a function that parses a comma separated string into a list of the
    correct element type.
    """
    args = typing.get_args(list_type)
    elem_type = args[0] if args else str

    def parse_list(s):
        if s.startswith("[") and s.endswith("]"):
            s = s[1:-1]
        items = [item.strip() for item in s.split(",") if item.strip()]
        result = []
        for item in items:
            try:
                value = (
                    ast.literal_eval(item) if elem_type in (int, float) else item
                )
                value = _strict_bool(item) if elem_type is bool else elem_type(value)
            except (ValueError, SyntaxError, TypeError, argparse.ArgumentTypeError):
                raise argparse.ArgumentTypeError(
                    f"Could not convert '{item}' to {getattr(elem_type, '__name__', elem_type)}"
                )
            result.append(value)
        return result

    return parse_list


def _format_description(description: str, default_value: Any) -> str:
    """Append default value info to the option description, escaped for argparse."""
    description = description.replace("%", "%%")
    if default_value is _UNSET or default_value is None:
        return description
    default_suffix = f"(default: {default_value})".replace("%", "%%")
    return f"{description} {default_suffix}" if description else default_suffix


def _get_basic_type_info(arg_type: Any) -> tuple[str, Any]:
    """
    Get metavar and parser type for basic types (int, float, str, bool).

    Returns:
        Tuple of (metavar, parser_type) for the given type.
    """
    basic_types = {
        int: ("INT", int),
        float: ("FLOAT", float),
        str: ("STRING", str),
        bool: ("BOOL", _strict_bool),
    }

    if arg_type in basic_types:
        return basic_types[arg_type]

    # Fallback for unknown types
    if hasattr(arg_type, "__name__"):
        metavar = arg_type.__name__.upper()
    else:
        metavar = str(arg_type).upper()
    return (metavar, arg_type)


class BinderArgParser:
    """
    A command-line parser whose options come from TypeBinder, hand-built flags,
    or both.

    The options synthesized for each target type are registered on an
    argparse.ArgumentParser. Parsing yields a ParseResult whose resolved values
    merge, from lowest to highest precedence: configured option defaults, the
    config file given with --config, and the command line.

    Example:
        class Settings:
            def __init__(self, int_option: int = 123, string_option: str = "the default"):
                ...

        parser = BinderArgParser(Settings)
        settings = parser.bind(Settings, ["--string-option", "not-the-default"])

        # Or load from config file:
        # python script.py --config config.yaml
    """

    def __init__(
        self,
        *target_types: Type[Any],
        flags: Optional[list] = None,
        config_flag: Union[str, list[str], tuple[str, ...]] = "--config",
        prog: Optional[str] = None,
        description: Optional[str] = None,
    ) -> None:
        """
        Initialize the BinderArgParser with zero or more target types.

        Args:
            *target_types: Types whose synthesized options are registered.
            flags: Hand-built flags added before the synthesized options. Each
                item is either a (names, kwargs) tuple or a
                {'names': ..., 'kwargs': {...}} dict.
            config_flag: Option string(s) of the config file argument.
            prog: Program name shown in usage.
            description: Description shown in help.
        """
        self.target_types: tuple[Type[Any], ...] = target_types
        self.parser: argparse.ArgumentParser = argparse.ArgumentParser(
            prog=prog, description=description
        )
        # Configured defaults by argparse dest; applied beneath config and CLI values.
        self._defaults: dict[str, Any] = {}
        self._none_is_unset: set[str] = set()
        # Argument types of synthesized options by normalized name.
        self._synthesized: dict[str, Any] = {}
        self._config_dest: str = "config"
        self._add_config_argument(config_flag)

        if flags:
            for item in flags:
                if isinstance(item, dict) and "names" in item:
                    names = item["names"]
                    kwargs = item.get("kwargs", {})
                elif isinstance(item, (list, tuple)) and len(item) == 2:
                    names, kwargs = item
                else:
                    raise ValueError(
                        "Each flag must be (names, kwargs) tuple or {'names': ..., 'kwargs': ...} dict"
                    )

                # Normalize single name to tuple for add_argument
                if isinstance(names, str):
                    names = (names,)

                self.add_flag(*names, **(kwargs or {}))

        for target_type in self.target_types:
            for option in TypeBinder(target_type).build_options():
                self.register_option(option)

    def add_flag(self, *names: str, **kwargs: Any) -> None:
        """
        Add a hand-built option or positional argument to the parser.

        A ``default=`` keyword becomes the option's configured default: it is
        resolved when the option is not supplied, exactly as if it had been.

        Example:
            parser.add_flag('--verbose', '-v', action='store_true', help='Enable verbose')
            parser.add_flag('value', type=int)

        Args:
            *names: One or more option strings (e.g. '--foo' or '-f', '--foo'),
                or a single positional argument name.
            **kwargs: Keyword arguments passed through to
                argparse.ArgumentParser.add_argument.
        """
        for n in names:
            if n in self.parser._option_string_actions:
                raise ValueError(f"Flag name conflict: {n}")

        default = kwargs.pop("default", _UNSET)
        action = kwargs.get("action")
        if action == "store_true" and default is _UNSET:
            default = False
        elif action == "store_false" and default is _UNSET:
            default = True

        if action in _ACCUMULATING_ACTIONS:
            added = self.parser.add_argument(*names, default=None, **kwargs)
            self._none_is_unset.add(added.dest)
        else:
            added = self.parser.add_argument(*names, default=_UNSET, **kwargs)
        if default is not _UNSET:
            self._defaults[added.dest] = default

    def register_option(self, option: OptionDescriptor) -> None:
        """
        Register one synthesized option on the parser.

        ``bool`` options accept either a bare flag (meaning True) or an explicit
        boolean value; ``Literal`` types become choices; ``list`` types take a
        comma separated value; ``Optional[T]`` registers as ``T``.

        Target types sharing a member name share its option, since binding is
        by name.

        Raises:
            ValueError: If an option of that name was already synthesized with
                a different argument type, or a hand-built flag holds one of
                its aliases.
        """
        key = normalize_name(option.name)
        if key in self._synthesized:
            registered = self._synthesized[key]
            if registered != option.argument_type:
                raise ValueError(
                    f"Option '{option.name}' is synthesized with conflicting types: "
                    f"{registered!r} and {option.argument_type!r}"
                )
            logger.debug("Option '%s' already registered; sharing it", option.name)
            return

        arg_type = option.argument_type
        inner_type = _get_optional_inner_type(arg_type)
        if inner_type is not None:
            arg_type = inner_type

        default = option.default if option.has_default else _UNSET
        kwargs: dict[str, Any] = {
            "dest": option.name,
            "help": _format_description(option.description, default),
        }
        if default is not _UNSET:
            kwargs["default"] = default

        type_origin = typing.get_origin(arg_type)
        if type_origin is Literal:
            choices = typing.get_args(arg_type)
            kwargs.update(
                type=type(choices[0]) if choices else str,
                choices=choices,
                metavar="{" + ",".join(str(choice) for choice in choices) + "}",
            )
        elif type_origin in (list, typing.List) or arg_type is list:
            kwargs.update(type=_list_type_factory(arg_type), metavar="LIST")
        else:
            metavar, parser_type = _get_basic_type_info(arg_type)
            if not callable(parser_type):
                parser_type = str
            kwargs.update(type=parser_type, metavar=metavar)
            if arg_type is bool:
                kwargs.update(nargs="?", const=True)

        self.add_flag(*sorted(option.aliases), **kwargs)
        self._synthesized[key] = option.argument_type

    def _add_config_argument(
        self, config_flag: Union[str, list[str], tuple[str, ...]] = "--config"
    ) -> None:
        """
        Add the config argument for loading values from YAML or JSON files.

        The caller may provide either a single option string (e.g. "--cfg") or a
        list/tuple of option strings (e.g. ["-c", "--cfg"]). The destination
        name created by argparse is recorded in `self._config_dest` so the rest
        of the code can look up the parsed value regardless of the option name.
        """
        if isinstance(config_flag, str):
            names = (config_flag,)
        else:
            names = tuple(config_flag)

        action = self.parser.add_argument(
            *names,
            type=str,
            metavar="FILE",
            default=_UNSET,
            help="Path to configuration file (YAML or JSON format)",
        )
        self._config_dest = action.dest

    def _load_config_file(self, config_path: str) -> dict[str, Any]:
        """
        Load configuration from a YAML or JSON file.

        Args:
            config_path (str): Path to the configuration file.

        Returns:
            dict[str, Any]: Dictionary containing the configuration data.

        Raises:
            FileNotFoundError: If the config file doesn't exist.
            ValueError: If the file format is not supported or invalid.
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        file_ext = os.path.splitext(config_path)[1].lower()

        with open(config_path, "r") as f:
            if file_ext in [".yaml", ".yml"]:
                try:
                    data = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid YAML file: {e}")
            elif file_ext == ".json":
                try:
                    data = json.load(f)
                except json.JSONDecodeError as e:
                    raise ValueError(f"Invalid JSON file: {e}")
            else:
                raise ValueError(
                    f"Unsupported file format: {file_ext}. "
                    "Supported formats are: .yaml, .yml, .json"
                )

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(
                f"Configuration file must contain a mapping, got {type(data).__name__}"
            )
        logger.debug("Loaded %d top-level keys from %s", len(data), config_path)
        return data

    def _config_values(self, config_data: dict[str, Any]) -> dict[str, Any]:
        """
        Flatten config data into name -> value pairs.

        Top-level keys apply to every target type; a section named after a
        target type's class overrides them for that type's members. String
        values of registered options are converted like command-line values.

        Raises:
            ValueError: If a value cannot be converted to its option's type.
        """
        section_names = {cls.__name__ for cls in self.target_types}
        items: list[tuple[str, Any]] = [
            (key, value) for key, value in config_data.items() if key not in section_names
        ]
        for cls in self.target_types:
            section = config_data.get(cls.__name__)
            if isinstance(section, Mapping):
                items.extend(section.items())

        actions = {
            normalize_name(action.dest): action
            for action in self.parser._actions
            if action.dest != self._config_dest
        }
        values: dict[str, Any] = {}
        for key, value in items:
            name = normalize_name(key)
            action = actions.get(name)
            if action is not None:
                value = self._convert_config_value(key, value, action)
            values[name] = value
        return values

    def _convert_config_value(
        self, key: str, value: Any, action: argparse.Action
    ) -> Any:
        if isinstance(value, str) and callable(action.type) and action.type is not str:
            try:
                value = action.type(value)
            except (ValueError, TypeError, argparse.ArgumentTypeError) as e:
                raise ValueError(
                    f"Invalid value for '{key}' in configuration file: {value!r} ({e})"
                ) from e
        choices = action.choices
        if value is not None and choices is not None and value not in choices:
            raise ValueError(
                f"Invalid value for '{key}' in configuration file: {value!r} "
                f"(choose from {', '.join(map(repr, choices))})"
            )
        return value

    def parse(self, args: Optional[Sequence[str]] = None) -> ParseResult:
        """
        Parse command-line arguments into resolved values.

        Args:
            args: Optional list of arguments to parse. If None, uses sys.argv.

        Returns:
            ParseResult: The namespace, the merged resolved values and the
            loaded config data. Options that were neither supplied nor given a
            default are absent from the resolved values.
        """
        namespace = self.parser.parse_args(args)
        parsed_args = vars(namespace)

        config_data: dict[str, Any] = {}
        config_path = parsed_args.get(self._config_dest, _UNSET)
        if config_path is not _UNSET:
            config_data = self._load_config_file(config_path)

        merged: dict[str, Any] = {}
        for dest, default in self._defaults.items():
            merged[normalize_name(dest)] = default
        merged.update(self._config_values(config_data))
        for dest, value in parsed_args.items():
            if dest == self._config_dest:
                continue
            if self._is_unset(dest, value):
                setattr(namespace, dest, merged.get(normalize_name(dest)))
            else:
                merged[normalize_name(dest)] = value

        return ParseResult(namespace, ResolvedValues(merged), config_data)

    def _is_unset(self, dest: str, value: Any) -> bool:
        return value is _UNSET or (value is None and dest in self._none_is_unset)

    def safe_parse(
        self, args: Optional[Sequence[str]] = None
    ) -> Result[ParseResult, str]:
        """
        Safely parse command-line arguments.

        Returns:
            Result[ParseResult, str]:
                - Ok[ParseResult] with the parse result,
                - Err with error message if parsing fails.
        """
        try:
            return Ok(self.parse(args))
        except SystemExit as e:
            return Err(f"Argument parsing failed with exit status {e.code}")
        except Exception as e:
            return Err(str(e))

    def bind(
        self,
        target_type: Type[Any],
        args: Optional[Sequence[str]] = None,
        console: Optional[Console] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Any:
        """
        Parse ``args`` and materialize an instance of ``target_type``.

        ``target_type`` need not be one of the types the parser was built from;
        its members bind to whatever registered options share their names.

        Raises:
            SystemExit: If parsing fails or a required constructor parameter
                has no value, after printing usage like any argparse error.
        """
        context = InvocationContext(self.parse(args), console, cancellation_token)
        try:
            return TypeBinder(target_type).create_instance(context)
        except MissingValueError as e:
            self.parser.error(str(e))

    def safe_bind(
        self,
        target_type: Type[Any],
        args: Optional[Sequence[str]] = None,
        console: Optional[Console] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Result[Any, str]:
        """
        Like bind, but returns the outcome instead of raising.

        Returns:
            Ok(instance), or Err with the error message.
        """
        try:
            context = InvocationContext(self.parse(args), console, cancellation_token)
        except SystemExit as e:
            return Err(f"Argument parsing failed with exit status {e.code}")
        except Exception as e:
            return Err(str(e))
        return TypeBinder(target_type).safe_create_instance(context)
