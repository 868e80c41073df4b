from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.storage import partition_device
from ..pipeline import InstallCtx, PipelineState

logger = logging.getLogger(__name__)


class PartitionDrivesStep:
    step_id = "30_partition"
    reaches = PipelineState.PARTITIONED

    def applies(self, ctx: InstallCtx) -> bool:
        return True

    def run(self, ctx: InstallCtx) -> Dict[str, Any]:
        profile = ctx.profile
        logger.info("Starting drive partitioning...")
        ctx.confirm.confirm("PARTITION ALL DRIVES", profile)

        # partitions_to_apply() honours the host's early exit.
        done = []
        for target in profile.partitions_to_apply():
            partition_device(ctx.runner, target)
            done.append(target.device)

        logger.info("Partitions for %s are done.", profile.name)
        return {"partitioned": done, "partitions": profile.produced_partitions}
