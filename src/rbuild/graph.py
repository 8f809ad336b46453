"""Build graph context.

Design:
    Every configure operation records what it synthesizes into an explicit
    BuildGraph that callers thread through their calls, rather than into
    ambient global state. Registration of a step and its aggregate target is
    all-or-nothing: collisions are detected before anything is recorded, so
    a failed synthesis never leaves partial targets behind.

    The graph can be saved as a JSON manifest for the host build system to
    consume; executing it is the host's job.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .errors import TargetCollisionError

logger = logging.getLogger(__name__)

MANIFEST_VERSION = 1


@dataclass(frozen=True)
class BuildStep:
    """A command producing declared outputs from declared inputs.

    Attributes:
        module_root: Crate root the step was synthesized for
        outputs: Files (or directories) the command produces
        command: Full argv of the command
        depends: Files or target names the step depends on
        working_dir: Directory the command runs in
        comment: Message shown by the host when the step runs
    """

    module_root: str
    outputs: tuple[Path, ...]
    command: tuple[str, ...]
    depends: tuple[str, ...]
    working_dir: Path
    comment: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module_root": self.module_root,
            "outputs": [str(p) for p in self.outputs],
            "command": list(self.command),
            "depends": list(self.depends),
            "working_dir": str(self.working_dir),
            "comment": self.comment,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildStep":
        return cls(
            module_root=data["module_root"],
            outputs=tuple(Path(p) for p in data["outputs"]),
            command=tuple(data["command"]),
            depends=tuple(data.get("depends", [])),
            working_dir=Path(data["working_dir"]),
            comment=data.get("comment", ""),
        )


@dataclass(frozen=True)
class AggregateTarget:
    """A named graph node with no command, grouping dependencies."""

    name: str
    depends: tuple[str, ...]
    default: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "depends": list(self.depends), "default": self.default}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AggregateTarget":
        return cls(name=data["name"], depends=tuple(data.get("depends", [])), default=bool(data.get("default", False)))


@dataclass
class BuildGraph:
    """Steps, aggregate targets and configure inputs of one configure run."""

    steps: List[BuildStep] = field(default_factory=list)
    targets: Dict[str, AggregateTarget] = field(default_factory=dict)
    configure_inputs: List[str] = field(default_factory=list)
    dependency_sets: Dict[str, List[str]] = field(default_factory=dict)
    _outputs: Dict[Path, BuildStep] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        for step in self.steps:
            for output in step.outputs:
                self._outputs[output] = step

    def has_target(self, name: str) -> bool:
        return name in self.targets

    def target(self, name: str) -> AggregateTarget:
        return self.targets[name]

    def default_targets(self) -> List[AggregateTarget]:
        return [target for target in self.targets.values() if target.default]

    def register(self, step: BuildStep, target: AggregateTarget) -> None:
        """Record a step and its aggregate target together.

        Raises:
            TargetCollisionError: If the target name is taken or an output is
                already produced by another step. Nothing is recorded then.
        """
        if target.name in self.targets:
            raise TargetCollisionError(
                step.module_root,
                f"target '{target.name}' is already defined; pass a distinct target name",
            )
        for output in step.outputs:
            owner = self._outputs.get(output)
            if owner is not None:
                raise TargetCollisionError(
                    step.module_root,
                    f"output {output} is already produced by the step for {owner.module_root}",
                )

        self.steps.append(step)
        for output in step.outputs:
            self._outputs[output] = step
        self.targets[target.name] = target
        logger.debug(f"Registered target {target.name} with {len(step.outputs)} output(s)")

    def add_configure_input(self, path: Path) -> None:
        """Declare a file whose change must re-trigger configuration."""
        key = str(path)
        if key not in self.configure_inputs:
            self.configure_inputs.append(key)

    def record_dependencies(self, module_root: str, paths: Iterable[str]) -> None:
        self.dependency_sets[module_root] = list(paths)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": MANIFEST_VERSION,
            "steps": [step.to_dict() for step in self.steps],
            "targets": [target.to_dict() for target in self.targets.values()],
            "configure_inputs": list(self.configure_inputs),
            "dependency_sets": {root: list(paths) for root, paths in self.dependency_sets.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildGraph":
        targets = [AggregateTarget.from_dict(t) for t in data.get("targets", [])]
        return cls(
            steps=[BuildStep.from_dict(s) for s in data.get("steps", [])],
            targets={t.name: t for t in targets},
            configure_inputs=list(data.get("configure_inputs", [])),
            dependency_sets={root: list(paths) for root, paths in data.get("dependency_sets", {}).items()},
        )

    def save(self, manifest_file: Path) -> None:
        """Save the manifest atomically (temp file + rename)."""
        manifest_file.parent.mkdir(parents=True, exist_ok=True)
        temp_file = manifest_file.with_suffix(".tmp")
        with open(temp_file, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        temp_file.replace(manifest_file)
        logger.debug(f"Saved build graph with {len(self.targets)} target(s) to {manifest_file}")

    @classmethod
    def load(cls, manifest_file: Path) -> Optional["BuildGraph"]:
        """Load a saved manifest, or None if it is missing or unreadable."""
        if not manifest_file.exists():
            logger.debug(f"Build graph manifest not found: {manifest_file}")
            return None
        try:
            with open(manifest_file, "r", encoding="utf-8") as f:
                return cls.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, TypeError, OSError) as e:
            logger.warning(f"Failed to load build graph from {manifest_file}: {e}")
            return None
