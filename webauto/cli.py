# webauto/cli.py
"""
@file cli.py
@brief Command-line interface for webauto.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

import yaml

from .config import SessionConfig
from .element import Element
from .exceptions import WebAutoError
from .predicates import Query, load_query
from .session import Session


def _configure_logging_from_env() -> None:
    """Configure logging from WEBAUTO_LOG_LEVEL (default WARNING)."""
    level = os.getenv("WEBAUTO_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_query(text: str) -> Query:
    """
    Parse a query given on the command line as YAML or JSON.

    Patterns are written as {re: "..."}, e.g. '{tag: a, href: {re: "^https"}}'.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise WebAutoError(f"Query is not valid YAML/JSON: {e}") from e
    return load_query(data)


def describe(element: Element) -> Dict[str, Any]:
    """Short JSON-friendly summary of an element."""
    if not element.exists():
        return {"found": False}
    return {
        "found": True,
        "tag": element.tag(),
        "id": element.attribute("id"),
        "class": element.attribute("class"),
        "text": element.text(),
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    argv = argv if argv is not None else sys.argv[1:]
    _configure_logging_from_env()

    p = argparse.ArgumentParser(
        prog="webauto",
        description="webauto - declarative element queries over Selenium WebDriver",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # -------------------------
    # find
    # -------------------------
    findp = sub.add_parser("find", help="Open a page and print the elements matching a query")
    findp.add_argument("--url", "-u", required=True, help="Page to open")
    findp.add_argument("--query", "-q", required=True, help="Query as YAML/JSON mapping or list of mappings")
    findp.add_argument("--config", "-c", default=None, help="Optional session configuration YAML")
    findp.add_argument("--browser", "-b", default=None, help="chrome, firefox, edge or safari (overrides config)")
    findp.add_argument("--headless", action="store_true", help="Run the browser without a window")
    findp.add_argument("--all", action="store_true", help="Print every match instead of the first")

    # -------------------------
    # validate-config
    # -------------------------
    valp = sub.add_parser("validate-config", help="Validate a session configuration file")
    valp.add_argument("path", help="Path to configuration YAML")

    args = p.parse_args(argv)

    if args.cmd == "validate-config":
        try:
            config = SessionConfig.load(args.path)
        except WebAutoError as e:
            print(f"X Configuration is invalid: {e}", file=sys.stderr)
            return 2
        print(f"+ Configuration is valid: {args.path}")
        print(f"  - Browser: {config.browser}")
        print(f"  - Cache: {'enabled' if config.cache.enabled else 'disabled'} "
              f"(include={len(config.cache.include)}, exclude={len(config.cache.exclude)})")
        return 0

    if args.cmd == "find":
        try:
            query = parse_query(args.query)
            config = SessionConfig.load(args.config) if args.config else SessionConfig()
        except WebAutoError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        try:
            session = Session.start(browser=args.browser, url=args.url, config=config,
                                    headless=args.headless or None)
        except WebAutoError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        with session:
            try:
                if args.all:
                    result: Any = [describe(el) for el in session.find_elements(query)]
                else:
                    result = describe(session.find_element(query))
            except WebAutoError as e:
                print(json.dumps({"status": "error", "error": f"{type(e).__name__}: {e}"}, indent=2),
                      file=sys.stderr)
                return 1
        print(json.dumps(result, indent=2, ensure_ascii=False))
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
