from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.storage import mount_filesystem
from ..pipeline import InstallCtx, PipelineState

logger = logging.getLogger(__name__)


class MountFilesystemsStep:
    step_id = "50_mount"
    reaches = PipelineState.MOUNTED

    def applies(self, ctx: InstallCtx) -> bool:
        return True

    def run(self, ctx: InstallCtx) -> Dict[str, Any]:
        logger.info("Mounting filesystems...")
        # Root is always first; the host table guarantees no later mount hides an earlier one.
        mounted = [
            mount_filesystem(ctx.runner, target, target_root=ctx.target_root)
            for target in ctx.profile.mounts
        ]
        logger.info("All filesystems mounted.")
        return {"mounted": mounted}
