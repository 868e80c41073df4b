from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.storage import format_nvme
from ..pipeline import InstallCtx, PipelineState

logger = logging.getLogger(__name__)


class FormatDrivesStep:
    step_id = "20_format_drives"
    reaches = PipelineState.FORMATTED

    def applies(self, ctx: InstallCtx) -> bool:
        profile = ctx.profile
        if profile.skip_format:
            logger.info("Skipping NVMe format for %s (uses pre-existing drives).", profile.name)
            return False
        return bool(profile.nvme_drives)

    def run(self, ctx: InstallCtx) -> Dict[str, Any]:
        profile = ctx.profile
        ctx.confirm.confirm("FORMAT ALL NVME DRIVES", profile)

        formatted = []
        for drive in profile.nvme_drives:
            format_nvme(ctx.runner, drive, profile.nvme_format)
            formatted.append(drive)
        return {"formatted": formatted}
