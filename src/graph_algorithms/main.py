from __future__ import annotations

import asyncio
import logging

from .service import GraphAlgorithmsService


async def run_once(service: GraphAlgorithmsService) -> None:
    logger = logging.getLogger("graph-algorithms")
    try:
        summary = await service.run_snapshot_analysis()
        logger.info(
            "snapshot analysis complete snapshot_id=%s nodes=%s communities=%s modularity=%.4f",
            summary.snapshot_id,
            summary.node_count,
            summary.community_count,
            summary.modularity,
        )
        print(summary.model_dump_json(by_alias=True, indent=2))
    finally:
        service.close()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    asyncio.run(run_once(GraphAlgorithmsService.from_env()))


if __name__ == "__main__":
    main()
