#!/usr/bin/env python3
"""Seed the product catalog.

Creates brands, the Google Product Taxonomy category tree and products
for every leaf category through the catalog services. Existing rows are
kept, so the script can be re-run safely.

Usage:
    python scripts/seed_catalog.py --mode small
    python scripts/seed_catalog.py --mode full --seed 7
"""

import argparse
import asyncio

import structlog

from catalog_api.catalog.generator import CatalogGenerator, GeneratorConfig
from catalog_api.infrastructure.config import settings
from catalog_api.infrastructure.database import async_session_factory, create_tables
from catalog_api.infrastructure.logging import configure_logging

logger = structlog.get_logger()


def build_config(mode: str, seed: int | None) -> GeneratorConfig:
    config = GeneratorConfig.full() if mode == "full" else GeneratorConfig.small()
    if seed is not None:
        config.seed = seed
    return config


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed the product catalog")
    parser.add_argument(
        "--mode",
        choices=["small", "full"],
        default="small",
        help="Catalog size: small (~150 products) or full (~500 products)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed overriding the mode default",
    )
    args = parser.parse_args()

    configure_logging(settings.log_level)
    config = build_config(args.mode, args.seed)
    logger.info("Seeding catalog", mode=args.mode, seed=config.seed)

    await create_tables()
    report = await CatalogGenerator(async_session_factory, config).run()

    print("=" * 60)
    print("Catalog seeding complete")
    print("=" * 60)
    print(f"Brands created:     {report.brands_created}")
    print(f"Categories created: {report.categories_created}")
    print(f"Products created:   {report.products_created}")
    print(f"Skipped (existing): {report.skipped}")


if __name__ == "__main__":
    asyncio.run(main())
