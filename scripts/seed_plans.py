import argparse
import sys

from src.analysis_gateway.infra.db import SessionLocal
from src.analysis_gateway.infra.uow import SqlAlchemyUoW


DEFAULT_PLANS = ["1:free:10", "2:basic:100", "3:pro:1000"]


# utils
def parse_plan(raw: str) -> tuple[int, str, int]:
    """
    Разбирает описание тарифа вида "plan_id:name:total_requests".
    """
    parts = raw.split(":")
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"expected plan_id:name:total_requests, got {raw!r}")
    plan_id, name, total = parts
    try:
        return int(plan_id), name.strip(), int(total)
    except ValueError:
        raise argparse.ArgumentTypeError(f"plan_id and total_requests must be integers: {raw!r}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create or update request plans.")
    parser.add_argument(
        "plans",
        nargs="*",
        type=parse_plan,
        help="plan_id:name:total_requests (default: %s)" % " ".join(DEFAULT_PLANS),
    )
    args = parser.parse_args(argv)
    plans = args.plans or [parse_plan(p) for p in DEFAULT_PLANS]

    db = SessionLocal()
    uow = SqlAlchemyUoW(db)
    try:
        for plan_id, name, total in plans:
            plan = uow.plans.upsert(plan_id, name=name, total_requests=total)
            print(f"plan {plan.plan_id} {plan.name!r}: {plan.total_requests} requests")
        uow.commit()
    except Exception:
        uow.rollback()
        raise
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
