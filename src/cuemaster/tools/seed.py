from __future__ import annotations

import argparse
import sys
from typing import Sequence

from cuemaster.infrastructure.kv.factory import build_store, kv_backend
from cuemaster.infrastructure.kv.gateway import KeyValueGateway


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the club's tables, rates and menu.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Overwrite existing data with the defaults and clear transactions.",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    gateway = KeyValueGateway(build_store())
    if args.reset:
        gateway.reset()
        print(f"store reset ({kv_backend()})")
    else:
        gateway.init()
        print(f"store initialized ({kv_backend()})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
