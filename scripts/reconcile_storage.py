#!/usr/bin/env python3
"""
ReelShare • Reconcile Storage Counters
======================================

Recomputes `orgs.storage_used_bytes` from the live, storage-backed videos of
one org (or every org) and prints the drift that was corrected.

Usage
-----
    python scripts/reconcile_storage.py --org <org-id>
    python scripts/reconcile_storage.py --all
"""

import argparse
import asyncio
import sys

from app.core.exceptions import AppException
from app.repositories.storage import get_storage_repository
from app.services.storage_accounting import StorageAccounting


async def _run(org_ids, *, all_orgs: bool) -> int:
    repository = get_storage_repository()
    accounting = StorageAccounting(repository)
    targets = list(org_ids or [])
    if all_orgs:
        targets = await repository.list_org_ids()

    failures = 0
    for org_id in targets:
        try:
            result = await accounting.reconcile(org_id)
        except AppException as e:
            failures += 1
            print(f"{org_id}: FAILED ({e.message})")
            continue
        print(
            f"{org_id}: before={result.before_bytes} used={result.used_bytes} "
            f"delta={result.delta_bytes}"
        )
    return 1 if failures else 0


def main() -> int:
    ap = argparse.ArgumentParser(description="Reconcile cached org storage usage")
    group = ap.add_mutually_exclusive_group(required=True)
    group.add_argument("--org", action="append", help="Org id to reconcile (repeatable)")
    group.add_argument("--all", action="store_true", help="Reconcile every org")
    args = ap.parse_args()
    return asyncio.run(_run(args.org, all_orgs=args.all))


if __name__ == "__main__":
    sys.exit(main())
