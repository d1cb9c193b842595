"""Command-line frontend for the SourceCart core engine."""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from sourcecart.core.adapters import listing_item_from_normalized, normalize
from sourcecart.core.canonical import NormalizedProduct, Source
from sourcecart.core.canonical.serialization import serialize_normalized_product
from sourcecart.core.client import SourceCartClient
from sourcecart.core.config import config_from_env
from sourcecart.core.variants import VariantIndex

load_dotenv(Path(__file__).resolve().parents[2] / ".env")

_SOURCE_CHOICES = [source.value for source in Source] + ["wholesale", "retail"]


def _json_dump(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _describe(normalized: NormalizedProduct, *, include_raw: bool) -> dict[str, Any]:
    index = VariantIndex(normalized.variants)
    payload = serialize_normalized_product(normalized, include_raw=include_raw)
    payload["groups"] = [group.to_dict() for group in index.groups.values()]
    payload["listing_item"] = listing_item_from_normalized(normalized).to_dict()
    return payload


def _cmd_normalize(args: argparse.Namespace) -> int:
    raw = json.loads(Path(args.input).read_text(encoding="utf-8"))
    _json_dump(_describe(normalize(raw, args.source), include_raw=args.include_raw))
    return 0


async def _fetch(source: str, product_id: str, *, token: str | None) -> Any:
    async with SourceCartClient(config_from_env(), token=token) as client:
        return await client.fetch_product(source, product_id)


def _cmd_fetch(args: argparse.Namespace) -> int:
    raw = asyncio.run(_fetch(args.source, args.product_id, token=args.token))
    if args.raw:
        _json_dump(raw)
        return 0
    _json_dump(_describe(normalize(raw, args.source), include_raw=args.include_raw))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sourcecart", description="SourceCart core engine CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    normalize_cmd = subparsers.add_parser("normalize", help="Normalize a saved product payload JSON file")
    normalize_cmd.add_argument("input", help="Product payload JSON path")
    normalize_cmd.add_argument("--source", default="1688", choices=_SOURCE_CHOICES)
    normalize_cmd.add_argument("--include-raw", action="store_true")
    normalize_cmd.set_defaults(func=_cmd_normalize)

    fetch_cmd = subparsers.add_parser("fetch", help="Fetch a product from the upstream API and normalize it")
    fetch_cmd.add_argument("source", choices=_SOURCE_CHOICES)
    fetch_cmd.add_argument("product_id")
    fetch_cmd.add_argument("--token", default=None, help="Bearer token for the upstream API")
    fetch_cmd.add_argument("--raw", action="store_true", help="Print the upstream payload without normalizing")
    fetch_cmd.add_argument("--include-raw", action="store_true")
    fetch_cmd.set_defaults(func=_cmd_fetch)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args) or 0)
    except Exception as exc:
        parser.exit(status=2, message=f"error: {exc}\n")


if __name__ == "__main__":
    raise SystemExit(main())
