from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def load_env_file(env_path: str) -> None:
    if not os.path.exists(env_path):
        return
    with open(env_path, "r", encoding="utf-8") as env_file:
        for line in env_file:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            os.environ.setdefault(key, value)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fetch leads and employees from the CRM and print the lead analytics snapshot."
    )
    parser.add_argument(
        "--env-file",
        default=os.path.join(PROJECT_ROOT, ".env"),
        help="Path to .env file.",
    )
    parser.add_argument(
        "--section",
        default="all",
        choices=["all", "status", "performance", "summary", "trend", "sources"],
        help="Only print one aggregate.",
    )
    return parser.parse_args()


async def run(section: str) -> int:
    from src.api.dependencies import get_lead_crm_client, get_refresh_coordinator
    from src.core.config import get_settings
    from src.core.logging import configure_logging

    configure_logging(get_settings().log_level)
    coordinator = get_refresh_coordinator()
    try:
        snapshot = await coordinator.refresh()
    finally:
        await get_lead_crm_client().aclose()

    if snapshot is None:
        state = coordinator.get_refresh_state()
        print(json.dumps(state.model_dump(by_alias=True, mode="json"), indent=2), file=sys.stderr)
        return 1

    payload = snapshot.model_dump(by_alias=True, mode="json")
    section_keys = {
        "status": "statusDistribution",
        "performance": "employeePerformance",
        "summary": "summary",
        "trend": "trend",
        "sources": "sourceDistribution",
    }
    if section != "all":
        payload = payload[section_keys[section]]
    print(json.dumps(payload, indent=2))
    return 0


def main() -> None:
    args = parse_args()
    load_env_file(os.path.abspath(args.env_file))
    sys.exit(asyncio.run(run(args.section)))


if __name__ == "__main__":
    main()
