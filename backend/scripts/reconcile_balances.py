"""
Compare branch_products balances with the sum of remaining lot quantity.
Run from backend/: python scripts/reconcile_balances.py [--url DATABASE_URL] [--branch BRANCH_CODE]

Exit status is 1 when any (branch, product) pair drifts, so it can gate a cron job.
"""
import argparse
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_dir))

from sqlalchemy import create_engine, func
from sqlalchemy.orm import sessionmaker

from branchstock.config import settings
from branchstock.models import Branch, Product
from branchstock.services.inventory_service import InventoryService


def find_branch(db, code):
    """Branch by code, ignoring case."""
    return db.query(Branch).filter(func.upper(Branch.code) == code.strip().upper()).first()


def main():
    parser = argparse.ArgumentParser(description="Reconcile stock balances with FIFO lots")
    parser.add_argument("--url", "-u", help="Database URL (default: DATABASE_URL env)")
    parser.add_argument("--branch", "-b", help="Limit to one branch code")
    parser.add_argument("--limit", type=int, default=50, help="Max rows to print (default 50)")
    args = parser.parse_args()
    url = args.url or settings.database_connection_string
    if not url:
        print("ERROR: No database URL. Set DATABASE_URL or use --url")
        sys.exit(1)

    engine = create_engine(url)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    db = Session()
    try:
        branch_id = None
        if args.branch:
            branch = find_branch(db, args.branch)
            if not branch:
                print(f"ERROR: Unknown branch code {args.branch}")
                sys.exit(1)
            branch_id = branch.id

        drift = InventoryService.reconcile(db, branch_id=branch_id)
        if not drift:
            print("OK: balances in sync with lots")
            return

        codes = {b.id: b.code for b in db.query(Branch).all()}
        skus = {p.id: p.sku for p in db.query(Product).all()}
        print(f"DRIFT: {len(drift)} (branch, product) pairs where balance != lots")
        for r in drift[:args.limit]:
            print(
                f"  branch={codes.get(r['branch_id'], r['branch_id'])} "
                f"sku={skus.get(r['product_id'], r['product_id'])} "
                f"balance={r['balance_quantity']} lots={r['lot_quantity']} diff={r['difference']:+d}"
            )
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
