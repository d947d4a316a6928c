#!/usr/bin/env python3
"""
Cleanup script to retire seeded gallery items via API endpoints.

Run:
    python seed/cleanup_gallery.py \
      --api-id <API-ID> \
      --api-key <API-KEY> \
      --uploaded-by seed
"""

import argparse
import sys
from typing import Any, cast

from aws_lambda_powertools import Logger
import requests

logger = Logger(service="cleanup")

GALLERY_API_URL = "http://localhost:4566/restapis/{0}/snd/_user_request_/v1/gallery"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cleanup seeded media via Gallery API")

    parser.add_argument(
        "--api-id",
        required=True,
        help="API Gateway ID (LocalStack)",
    )
    parser.add_argument(
        "--api-key",
        default=None,
        help="API key for x-api-key header (optional for local)",
    )
    parser.add_argument(
        "--uploaded-by",
        default="seed",
        help="Only retire items recorded with this uploader",
    )

    return parser.parse_args()


def cleanup_gallery() -> None:
    try:
        args = parse_args()

        headers: dict[str, str] = {}
        if args.api_key:
            headers["x-api-key"] = args.api_key

        base_url = GALLERY_API_URL.format(args.api_id)

        logger.info(
            "Starting cleanup process",
            extra={"api_base_url": base_url, "uploaded_by": args.uploaded_by},
        )

        response = requests.get(base_url, headers=headers, timeout=30)

        if not response.ok:
            logger.error(
                "Failed to list gallery",
                extra={"status": response.status_code, "response": response.text},
            )
            sys.exit(1)

        response_json = cast(dict[str, Any], response.json())
        items = [
            item
            for item in cast(list[dict[str, Any]], response_json.get("items", []))
            if item.get("uploaded_by") == args.uploaded_by
        ]

        if not items:
            logger.info("No gallery items found for cleanup")
            return

        for item in items:
            item_id = item["item_id"]

            delete_resp = requests.delete(
                f"{base_url}/{item_id}",
                headers=headers,
                timeout=30,
            )

            if delete_resp.ok:
                logger.info("Retired gallery item", extra={"item_id": item_id})
            else:
                logger.error(
                    "Failed to retire gallery item",
                    extra={
                        "item_id": item_id,
                        "status": delete_resp.status_code,
                        "response": delete_resp.text,
                    },
                )

        logger.info("Cleanup completed successfully")

    except Exception as exc:
        logger.exception("Cleanup failed", exc_info=exc)
        sys.exit(1)


if __name__ == "__main__":
    cleanup_gallery()
