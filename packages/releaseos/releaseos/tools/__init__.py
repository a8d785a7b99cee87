"""ReleaseOS pipeline tools."""

from releaseos.tools._base import execute_with_events, record_artifact, run_external
from releaseos.tools.artifact_publisher import ArtifactPublisherTool
from releaseos.tools.artifact_validator import ArtifactValidatorTool
from releaseos.tools.cleanup import CleanupTool
from releaseos.tools.disk_image import DiskImageTool
from releaseos.tools.docs import DocsTool
from releaseos.tools.install_mapper import InstallMapperTool
from releaseos.tools.installer_harness import InstallerHarnessTool
from releaseos.tools.package_builder import PackageBuilderTool
from releaseos.tools.package_cache import PackageCacheTool
from releaseos.tools.source_stager import SourceStagerTool

__all__ = [
    "ArtifactPublisherTool",
    "ArtifactValidatorTool",
    "CleanupTool",
    "DiskImageTool",
    "DocsTool",
    "InstallMapperTool",
    "InstallerHarnessTool",
    "PackageBuilderTool",
    "PackageCacheTool",
    "SourceStagerTool",
    "execute_with_events",
    "record_artifact",
    "run_external",
]
