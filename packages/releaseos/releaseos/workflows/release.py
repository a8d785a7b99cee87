"""Release workflow — the installer's build targets as a file-artifact DAG."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from buildos.core.errors import MissingInputError
from buildos.core.identifiers import RunId, generate_run_id
from buildos.runtime.dag import DAGExecutor, DAGWorkflow
from buildos.runtime.event_log import EventLog, SQLiteEventLog
from buildos.runtime.sequence import SeqCounter
from buildos.runtime.task import TaskNode
from buildos.runtime.workspace import Workspace
from buildos.schemas.artifact import ArtifactMeta
from buildos.schemas.events import ArtifactRemoved
from buildos.tools.registry import ToolRegistry
from releaseos.domain.schemas import (
    BuildInput,
    CleanInput,
    DiskImageInput,
    DocsInput,
    HarnessInput,
    InstallMapInput,
    LintInput,
    PackageCacheInput,
    PublishInput,
    StageInput,
)
from releaseos.settings import PipelineSettings
from releaseos.tools._base import execute_with_events, record_artifact
from releaseos.tools.artifact_publisher import ArtifactPublisherTool
from releaseos.tools.artifact_validator import ArtifactValidatorTool
from releaseos.tools.cleanup import CleanupTool
from releaseos.tools.disk_image import DiskImageTool, image_is_complete
from releaseos.tools.docs import DocsTool
from releaseos.tools.install_mapper import InstallMapperTool
from releaseos.tools.installer_harness import InstallerHarnessTool
from releaseos.tools.package_builder import PackageBuilderTool
from releaseos.tools.package_cache import PackageCacheTool
from releaseos.tools.source_stager import SourceStagerTool, stamp_path

logger = logging.getLogger(__name__)

# Targets a user may request, in the order they are listed.
TARGETS: dict[str, str] = {
    "deb": "stage, build and lint the installer package",
    "install": "install the installer files under DESTDIR",
    "upload": "publish an already built package to the repository",
    "packages": "collect the packages shipped with the installer",
    "test.img": "create the scratch disk image for the smoke test",
    "check": "run the installer in test mode against the scratch image",
    "clean": "remove every generated artifact",
}


def create_registry() -> ToolRegistry:
    """Registry holding one instance of every release tool."""
    return ToolRegistry([
        SourceStagerTool(),
        PackageBuilderTool(),
        ArtifactValidatorTool(),
        InstallMapperTool(),
        DocsTool(),
        PackageCacheTool(),
        DiskImageTool(),
        InstallerHarnessTool(),
        ArtifactPublisherTool(),
        CleanupTool(),
    ])


def artifact_path(settings: PipelineSettings, root: str | Path) -> Path:
    """Where the packaging command leaves the artifact: next to the build directory."""
    build_dir = Workspace.at(root).resolve_path(settings.build_dir, follow_symlinks=False)
    return build_dir.parent / settings.artifact.filename


def build_release_workflow(
    settings: PipelineSettings,
    event_log: EventLog,
    run_id: RunId,
    seq_counter: SeqCounter,
    *,
    root: str | Path,
    destdir: str = "/",
    registry: ToolRegistry | None = None,
) -> DAGWorkflow:
    """Build the full target graph for one source tree.

    Task callables take no arguments; each one looks its tool up in the
    registry and runs it through ``execute_with_events`` so every stage
    is recorded against ``run_id``.
    """
    tools = registry or create_registry()
    workspace = Workspace.at(root)
    tree = workspace.root

    def path(rel: str) -> Path:
        return workspace.resolve_path(rel, follow_symlinks=False)

    build_dir = path(settings.build_dir)
    artifact = artifact_path(settings, tree)
    lint_report = build_dir / f"{settings.artifact.filename}.lintian"
    image = path(settings.image.path)
    cache_dir = path(settings.package_cache_dir)
    manifest = Path(settings.package_manifest)
    if not manifest.is_absolute():
        manifest = tree / manifest
    docs_dir = path(settings.docs_dir)

    source_files = workspace.expand(settings.sources)
    package_inputs = [
        *source_files,
        *workspace.expand(settings.docs_sources),
        *[p for p in workspace.expand(settings.build_descriptors) if p.exists()],
    ]

    def run(tool_name: str, input_data: Any) -> Any:
        return execute_with_events(
            tools.lookup(tool_name), input_data, event_log, run_id, seq_counter
        )

    def docs(target: str, env: dict[str, str] | None = None) -> None:
        run("docs", DocsInput(docs_dir=str(docs_dir), target=target, env=env or {}))

    # ── deb ──

    def stage() -> None:
        missing = [str(p.relative_to(tree)) for p in source_files if not p.is_file()]
        if missing:
            raise MissingInputError(f"Source file(s) missing: {', '.join(missing)}")
        run(
            "source_stager",
            StageInput(
                source_root=str(tree),
                build_dir=settings.build_dir,
                exclude=settings.stage_exclude,
            ),
        )

    def build() -> None:
        output = run(
            "package_builder",
            BuildInput(
                build_dir=str(build_dir),
                artifact=str(artifact),
                command=settings.build_command,
                timeout=settings.build_timeout,
            ),
        )
        meta = ArtifactMeta.from_file(
            Path(output.artifact),
            root=tree,
            produced_by_task="build",
            task_id=t_build.id,
            mime_type="application/vnd.debian.binary-package",
        )
        record_artifact(meta, event_log, run_id, seq_counter)
        for pattern in settings.artifact.metadata_patterns:
            for extra in sorted(artifact.parent.glob(pattern)):
                record_artifact(
                    ArtifactMeta.from_file(
                        extra, root=tree, produced_by_task="build", task_id=t_build.id
                    ),
                    event_log,
                    run_id,
                    seq_counter,
                )

    def lint() -> None:
        run(
            "artifact_validator",
            LintInput(
                artifact=str(artifact),
                command=settings.lint.command,
                exclude_categories=settings.lint.exclude_categories,
                fatal_severities=settings.lint.fatal_severities,
                report_path=str(lint_report),
            ),
        )

    # ── install ──

    def install() -> None:
        docs("install", {"DESTDIR": destdir})
        run(
            "install_mapper",
            InstallMapInput(source_root=str(tree), destdir=destdir, entries=settings.install),
        )

    # ── smoke test ──

    def packages() -> None:
        run(
            "package_cache",
            PackageCacheInput(manifest=str(manifest), cache_dir=str(cache_dir)),
        )

    def test_image() -> None:
        run(
            "disk_image",
            DiskImageInput(
                path=str(image),
                block_size=settings.image.block_size,
                block_count=settings.image.block_count,
            ),
        )

    def check() -> None:
        run(
            "installer_harness",
            HarnessInput(
                command=settings.harness.command,
                image=str(image.relative_to(tree)),
                cwd=str(tree),
                env=settings.harness.env,
            ),
        )

    # ── upload / clean ──

    def upload() -> None:
        run(
            "artifact_publisher",
            PublishInput(
                artifact=str(artifact),
                lint_report=str(lint_report),
                remote=settings.publish.remote,
                product=settings.publish.product,
                dist=settings.artifact.release_channel,
                transport=settings.publish.transport,
                remote_command=settings.publish.remote_command,
            ),
        )

    def clean() -> None:
        docs("clean")
        output = run(
            "cleanup",
            CleanInput(
                root=str(tree),
                patterns=settings.clean_patterns,
                recursive_patterns=settings.clean_recursive_patterns,
            ),
        )
        for removed in output.removed:
            event_log.append(
                ArtifactRemoved(
                    run_id=run_id,
                    seq=seq_counter.next(),
                    payload={"path": removed, "task_name": "clean"},
                )
            )

    t_stage = TaskNode(
        name="stage",
        callable=stage,
        inputs=package_inputs,
        outputs=[stamp_path(build_dir)],
    )
    t_build = TaskNode(
        name="build",
        callable=build,
        depends_on=[t_stage],
        inputs=package_inputs,
        outputs=[artifact],
    )
    t_deb = TaskNode(
        name="deb",
        callable=lint,
        depends_on=[t_build],
        inputs=[artifact],
        outputs=[lint_report],
    )
    t_install = TaskNode(name="install", callable=install)
    t_upload = TaskNode(name="upload", callable=upload)
    t_packages = TaskNode(
        name="packages",
        callable=packages,
        inputs=[manifest],
        outputs=[cache_dir],
    )
    t_image = TaskNode(
        name="test.img",
        callable=test_image,
        outputs=[image],
        output_check=lambda: image_is_complete(
            image, settings.image.block_size * settings.image.block_count
        ),
    )
    t_check = TaskNode(name="check", callable=check, depends_on=[t_packages, t_image])
    t_clean = TaskNode(name="clean", callable=clean)

    return DAGWorkflow(
        name="release",
        tasks=[
            t_stage,
            t_build,
            t_deb,
            t_install,
            t_upload,
            t_packages,
            t_image,
            t_check,
            t_clean,
        ],
    )


def run_targets(
    settings: PipelineSettings,
    targets: Sequence[str],
    *,
    root: str | Path,
    destdir: str = "/",
    event_log: EventLog | None = None,
    registry: ToolRegistry | None = None,
    max_parallel: int = 1,
) -> list[RunId]:
    """Bring each requested target up to date, one after another.

    Every target gets its own run and a freshly built graph, so file
    freshness is re-evaluated after the previous target changed the tree
    (``clean deb`` cleans first, then rebuilds). Stops at the first failing
    target by letting its TaskExecutionError propagate. A relative
    ``destdir`` is taken relative to the current directory.

    Returns the run IDs in target order.
    """
    unknown = [t for t in targets if t not in TARGETS]
    if unknown:
        raise ValueError(f"Unknown target(s): {', '.join(unknown)}")

    destdir = os.path.abspath(destdir)
    el = event_log or SQLiteEventLog()
    executor = DAGExecutor(el, max_parallel=max_parallel)
    run_ids: list[RunId] = []
    for target in targets:
        rid = generate_run_id()
        seq = SeqCounter()
        dag = build_release_workflow(
            settings, el, rid, seq, root=root, destdir=destdir, registry=registry
        )
        logger.info("target %s", target)
        executor.run(dag.select([target]), run_id=rid, seq=seq)
        run_ids.append(rid)
    return run_ids
