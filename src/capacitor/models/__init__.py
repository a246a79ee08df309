# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Capacitor Models Module.

Exports the pydantic models of the node selection / fallback engine and of
the operations built on top of it.
"""

from capacitor.models.model_app_location import ModelAppLocation
from capacitor.models.model_app_stats import (
    ModelAppComponent,
    ModelAppStats,
    ModelContainerStats,
    ModelResourceUsage,
)
from capacitor.models.model_bulk_delete_report import (
    ModelBulkDeleteFailure,
    ModelBulkDeleteReport,
)
from capacitor.models.model_dashboard_config import ModelDashboardConfig
from capacitor.models.model_directory_listing import (
    ModelDirectoryListing,
    ModelFileInfo,
)
from capacitor.models.model_downloaded_file import ModelDownloadedFile
from capacitor.models.model_fallback_config import ModelFallbackConfig
from capacitor.models.model_fallback_result import (
    ModelAttemptRecord,
    ModelFallbackResult,
    ModelNodeSwitchEvent,
)
from capacitor.models.model_master_detection import (
    ModelMasterCandidate,
    ModelMasterDetectionResult,
)
from capacitor.models.model_node_address import (
    DEFAULT_FLUX_API_PORT,
    ModelNodeAddress,
    host_of,
    to_flux_api_port,
)
from capacitor.models.model_operation_outcome import ModelOperationOutcome
from capacitor.models.model_zelid_auth import ModelZelidAuth

__all__ = [
    "DEFAULT_FLUX_API_PORT",
    "ModelAppComponent",
    "ModelAppLocation",
    "ModelAppStats",
    "ModelAttemptRecord",
    "ModelBulkDeleteFailure",
    "ModelBulkDeleteReport",
    "ModelContainerStats",
    "ModelDashboardConfig",
    "ModelDirectoryListing",
    "ModelDownloadedFile",
    "ModelFallbackConfig",
    "ModelFallbackResult",
    "ModelFileInfo",
    "ModelMasterCandidate",
    "ModelMasterDetectionResult",
    "ModelNodeAddress",
    "ModelNodeSwitchEvent",
    "ModelOperationOutcome",
    "ModelResourceUsage",
    "ModelZelidAuth",
    "host_of",
    "to_flux_api_port",
]
