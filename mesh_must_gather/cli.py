import argparse
import logging

from mesh_must_gather import config
from mesh_must_gather.client import ClusterClient
from mesh_must_gather.gather import GatherRun
from mesh_must_gather.output import output_summary


def log_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if isinstance(level, int):
        return level
    return logging.INFO


def main():
    parser = argparse.ArgumentParser(
        description=(
            "Collect service mesh control plane diagnostics into "
            f"{config.BASE_COLLECTION_PATH}"
        )
    )
    parser.parse_args()

    logging.basicConfig(
        level=log_level(config.LOG_LEVEL),
        format="[%(asctime)s] %(levelname)s: %(message)s",
    )

    summary = GatherRun(ClusterClient(), config.BASE_COLLECTION_PATH).run()
    output_summary(summary)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
