"""Fetch, unpack, build, generate bindings, link: the provisioning pipeline.

Stages run strictly in order and any failure aborts the run. There is no
rollback; every stage validates existing on-disk state by content digest,
so re-running after a failure converges without manual cleanup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from vendorbuild.bindings import BindgenGenerator, BindingGenerator, generate_bindings
from vendorbuild.builders import BuildArtifact, CMakeBuilder, NativeBuilder, build_library
from vendorbuild.config import ProvisionConfig
from vendorbuild.directives import DirectiveEmitter
from vendorbuild.fetch import FetchResult, fetch
from vendorbuild.observability import StructuredLogger
from vendorbuild.policy import Policy
from vendorbuild.unpack import UnpackResult, unpack


@dataclass(frozen=True, slots=True)
class ProvisionResult:
    fetch: FetchResult
    unpack: UnpackResult
    artifact: BuildArtifact
    bindings_path: Path


@dataclass(slots=True)
class ProvisionPipeline:
    config: ProvisionConfig
    builder: NativeBuilder
    binding_generator: BindingGenerator
    emitter: DirectiveEmitter = field(default_factory=DirectiveEmitter)
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    policy: Policy | None = None

    def run(self) -> ProvisionResult:
        config = self.config
        self.logger.log(
            operation="run",
            stage=None,
            message=f"provisioning {config.source.url}",
            extra={"out_dir": str(config.out_dir)},
        )

        fetched = fetch(
            config.source,
            config.archive_path,
            policy=self.policy,
            logger=self.logger,
            emitter=self.emitter,
        )
        unpacked = unpack(
            fetched.path,
            config.source_dir,
            emitter=self.emitter,
            logger=self.logger,
        )
        artifact = build_library(self.builder, config.source_dir, logger=self.logger)
        bindings_path = generate_bindings(
            self.binding_generator,
            config.header_path(artifact),
            config.bindings_path,
            logger=self.logger,
        )
        self.emitter.emit(artifact.root, library=config.library)
        self.logger.log(
            operation="link",
            stage="link",
            message=f"linking static library {config.library}",
            extra={"search_path": str(artifact.lib_dir)},
        )

        return ProvisionResult(
            fetch=fetched,
            unpack=unpacked,
            artifact=artifact,
            bindings_path=bindings_path,
        )


def provision(
    config: ProvisionConfig | None = None,
    *,
    builder: NativeBuilder | None = None,
    binding_generator: BindingGenerator | None = None,
    emitter: DirectiveEmitter | None = None,
    logger: StructuredLogger | None = None,
    policy: Policy | None = None,
) -> ProvisionResult:
    """Run the pipeline; ``config`` defaults to the pinned source under ``$OUT_DIR``."""
    if config is None:
        config = ProvisionConfig.from_env()
    pipeline = ProvisionPipeline(
        config=config,
        builder=builder if builder is not None else CMakeBuilder(out_dir=config.out_dir),
        binding_generator=binding_generator if binding_generator is not None else BindgenGenerator(),
        emitter=emitter if emitter is not None else DirectiveEmitter(),
        logger=logger if logger is not None else StructuredLogger(),
        policy=policy,
    )
    return pipeline.run()
