#!/usr/bin/env python3
"""
Batch processing example: pseudonymize the data of several study sites at once.

Each site gets its own label pool and its own key, so labels and keys are never
shared between sites.
"""

import logging
import os

import pandas as pd

from tabular_pseudonymization import BatchProcessor, Config, RandomStrategy, SecretKey

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def make_site(site: str, n: int) -> pd.DataFrame:
    return pd.DataFrame({
        "name": [f"{site} participant {i}" for i in range(n)],
        "dob": [f"19{60 + i:02d}-0{1 + i % 9}-15" for i in range(n)],
        "score": [round(2.5 + 0.1 * i, 1) for i in range(n)],
    })


def main():
    """Main example function."""
    datasets = {site: make_site(site, n) for site, n in [("ghent", 4), ("leuven", 6), ("liege", 3)]}
    processor = BatchProcessor(Config(), max_workers=3)

    print("Randomized counters per site")
    batch = processor.process_datasets(
        datasets,
        lambda site: RandomStrategy(seed=sum(map(ord, site))),
        ["name", "dob"],
        ["score"],
    )
    for site, result in batch.results.items():
        print(f"{site}: {list(result.payload['label'])}")

    print("\nKeyed hashes, one key per site")
    # In production every site key would come from its own secret store entry
    site_keys = {site: os.urandom(32) for site in datasets}
    batch = processor.process_datasets(
        datasets,
        "hash",
        ["name", "dob"],
        ["score"],
        key_provider=lambda site: SecretKey(site_keys.pop(site)),
    )
    print(f"{batch.successful_datasets}/{batch.total_datasets} sites processed")
    for site, error in batch.errors.items():
        logger.error(f"{site}: {error}")

    return 0 if not batch.errors else 1


if __name__ == "__main__":
    exit(main())
