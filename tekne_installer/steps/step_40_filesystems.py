from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.storage import make_filesystem
from ..pipeline import InstallCtx, PipelineState

logger = logging.getLogger(__name__)


class CreateFilesystemsStep:
    step_id = "40_filesystems"
    reaches = PipelineState.FILESYSTEMS_BUILT

    def applies(self, ctx: InstallCtx) -> bool:
        return True

    def run(self, ctx: InstallCtx) -> Dict[str, Any]:
        logger.info("Creating filesystems...")
        built = {}
        for target in ctx.profile.filesystems_to_build():
            make_filesystem(ctx.runner, target)
            built[target.partition] = target.fstype

        logger.info("Filesystems created for %s.", ctx.profile.name)
        return {"filesystems": built}
