"""Command-line entry point: scan an ID photo or match an address."""

import argparse
import asyncio
import base64
import json
import sys
from contextlib import AsyncExitStack
from pathlib import Path

from dotenv import load_dotenv

from idintake.clients.recognizer import create_recognizer_client
from idintake.core.config import get_app_settings, get_recognizer_settings, get_reference_settings
from idintake.core.exceptions import BaseError
from idintake.core.logging import configure_structured_logging
from idintake.domain.models import AddressInput
from idintake.processors.address_resolver import AddressResolver
from idintake.processors.ranking import get_ranking_strategy
from idintake.reference.store import create_reference_store
from idintake.services.intake import IntakeService


async def _with_service(stack: AsyncExitStack, with_recognizer: bool) -> IntakeService:
    recognizer_settings = get_recognizer_settings()
    reference_settings = get_reference_settings()

    recognizer = None
    if with_recognizer and recognizer_settings.is_configured:
        recognizer = await stack.enter_async_context(create_recognizer_client(recognizer_settings))
    store = await stack.enter_async_context(create_reference_store(reference_settings))
    resolver = AddressResolver(store, ranking=get_ranking_strategy(reference_settings.RANKING_STRATEGY))
    return IntakeService.from_settings(
        recognizer, store, resolver, get_app_settings(), recognizer_settings
    )


async def scan(image_path: Path) -> dict:
    payload = base64.b64encode(image_path.read_bytes()).decode("ascii")
    async with AsyncExitStack() as stack:
        service = await _with_service(stack, with_recognizer=True)
        result = await service.scan(payload)
    return result.model_dump(mode="json")


async def match(address: AddressInput) -> dict:
    async with AsyncExitStack() as stack:
        service = await _with_service(stack, with_recognizer=False)
        result = await service.match_address(address)
    return result.model_dump(mode="json")


def main(argv=None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(prog="idintake", description="Identity document intake")
    parser.add_argument("--log-level", type=str, default=None, help="Overrides LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Recognize an ID photo and print its fields")
    scan_parser.add_argument("image", type=Path, help="Path to a JPEG/PNG photo of the ID")

    match_parser = subparsers.add_parser("match", help="Resolve place names to PSGC codes")
    match_parser.add_argument("--province", type=str, default=None)
    match_parser.add_argument("--city", type=str, default=None)
    match_parser.add_argument("--barangay", type=str, default=None)
    match_parser.add_argument("--raw-address", type=str, default=None, help="Free text for ZIP lookup")

    args = parser.parse_args(argv)

    settings = get_app_settings()
    # Logs go to stderr; stdout carries only the JSON result.
    configure_structured_logging(level=args.log_level or settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    try:
        if args.command == "scan":
            if not args.image.is_file():
                print(f"Error: {args.image} does not exist", file=sys.stderr)
                return 2
            output = asyncio.run(scan(args.image))
        else:
            output = asyncio.run(
                match(
                    AddressInput(
                        province=args.province,
                        city=args.city,
                        barangay=args.barangay,
                        raw_address=args.raw_address,
                    )
                )
            )
    except BaseError as e:
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        return 1
    except (RuntimeError, ValueError) as e:
        # Misconfiguration, e.g. REFERENCE_SOURCE=postgrest without REFERENCE_API_URL
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
