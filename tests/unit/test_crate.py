"""Tests for crate build-target synthesis."""

import pytest

from rbuild.crate import build_crate, build_crate_auto, merge_dependencies
from rbuild.errors import BuildTargetError, DependencyExtractionError, TargetCollisionError


class TestBuildCrate:
    """Test build_crate against a fake rustc."""

    def test_scenario_single_artifact(self, ctx, fake_rustc):
        fake_rustc.file_names["lib.rs"] = ["liblib.rlib"]

        crate = build_crate(ctx, "lib.rs", destination="out")

        expected = ctx.binary_dir / "out" / "liblib.rlib"
        assert crate.artifacts == (expected,)
        assert crate.name == "CRATE"
        assert ctx.graph.target("CRATE").depends == (str(expected),)
        assert crate.step.outputs == (expected,)

    def test_multiple_artifacts(self, ctx, fake_rustc):
        fake_rustc.file_names["lib.rs"] = ["liblib.a", "liblib.so"]

        crate = build_crate(ctx, "lib.rs", destination="out", flags=["--crate-type", "staticlib,dylib"])

        out_dir = ctx.binary_dir / "out"
        assert crate.artifacts == (out_dir / "liblib.a", out_dir / "liblib.so")
        assert crate.step.comment == "Building out/liblib.a, out/liblib.so"
        assert crate.full_target == ("CRATE", str(out_dir / "liblib.a"), str(out_dir / "liblib.so"))

    def test_step_command_and_inputs(self, ctx, fake_rustc):
        fake_rustc.file_names["lib.rs"] = ["liblib.rlib"]

        crate = build_crate(ctx, "lib.rs", destination="out", flags=["-O"], extra_deps=["lib.rs", "util.rs"])

        out_dir = ctx.binary_dir / "out"
        assert crate.step.command == (
            str(ctx.toolchain.rustc),
            "-O",
            "--out-dir",
            str(out_dir),
            str(ctx.source_dir / "lib.rs"),
        )
        assert crate.step.depends == ("lib.rs", "util.rs")
        assert crate.step.working_dir == ctx.source_dir
        assert out_dir.is_dir()

    def test_file_name_query_is_dry_run(self, ctx, fake_rustc):
        fake_rustc.file_names["lib.rs"] = ["liblib.rlib"]

        build_crate(ctx, "lib.rs", flags=["--test"])

        (cmd,) = fake_rustc.calls
        assert cmd[-4:] == ["--test", "--print", "file-names", str(ctx.source_dir / "lib.rs")]

    def test_global_flags_precede_crate_flags(self, ctx, fake_rustc):
        from dataclasses import replace

        ctx = replace(ctx, toolchain=ctx.toolchain.with_flags(rustc_flags=["-C", "debuginfo=2"]))
        fake_rustc.file_names["lib.rs"] = ["liblib.rlib"]

        crate = build_crate(ctx, "lib.rs", flags=["-O"])

        assert list(crate.step.command[1:4]) == ["-C", "debuginfo=2", "-O"]

    def test_default_build_membership(self, ctx, fake_rustc):
        fake_rustc.file_names["lib.rs"] = ["liblib.rlib"]

        build_crate(ctx, "lib.rs", target_name="lib", default_build=True)
        build_crate(ctx, "lib.rs", destination="test", target_name="lib_test", flags=["--test"])

        assert [t.name for t in ctx.graph.default_targets()] == ["lib"]

    def test_empty_destination_uses_build_dir(self, ctx, fake_rustc):
        fake_rustc.file_names["lib.rs"] = ["liblib.rlib"]

        crate = build_crate(ctx, "lib.rs")

        assert crate.artifacts == (ctx.binary_dir / "liblib.rlib",)
        assert crate.step.comment == "Building liblib.rlib"


class TestBuildCrateFailures:
    def test_no_file_names_is_fatal(self, ctx, fake_rustc):
        with pytest.raises(BuildTargetError, match="no output file names"):
            build_crate(ctx, "lib.rs")
        assert ctx.graph.targets == {}
        assert ctx.graph.steps == []

    def test_missing_module_root(self, ctx, fake_rustc):
        with pytest.raises(BuildTargetError, match="Build-target synthesis failed for module root nope.rs"):
            build_crate(ctx, "nope.rs")

    def test_compiler_failure(self, ctx, fake_rustc):
        fake_rustc.returncode = 101

        with pytest.raises(BuildTargetError, match="exit code 101"):
            build_crate(ctx, "lib.rs")

    def test_default_name_collision_detected(self, ctx, fake_rustc):
        (ctx.source_dir / "main.rs").write_text("fn main() {}\n")
        fake_rustc.file_names["lib.rs"] = ["liblib.rlib"]
        fake_rustc.file_names["main.rs"] = ["main"]

        first = build_crate(ctx, "lib.rs")
        with pytest.raises(TargetCollisionError, match="CRATE"):
            build_crate(ctx, "main.rs")

        assert ctx.graph.target("CRATE") == first.target
        assert ctx.graph.steps == [first.step]

    def test_output_collision_detected(self, ctx, fake_rustc):
        fake_rustc.file_names["lib.rs"] = ["liblib.rlib"]

        build_crate(ctx, "lib.rs", target_name="a")
        with pytest.raises(TargetCollisionError, match="already produced"):
            build_crate(ctx, "lib.rs", target_name="b")

        assert not ctx.graph.has_target("b")

    def test_destination_blocked_by_file_registers_nothing(self, ctx, fake_rustc):
        fake_rustc.file_names["lib.rs"] = ["liblib.rlib"]
        ctx.binary_dir.mkdir(parents=True)
        (ctx.binary_dir / "out").write_text("not a directory\n")

        with pytest.raises(BuildTargetError, match="cannot create destination"):
            build_crate(ctx, "lib.rs", destination="out")

        assert ctx.graph.targets == {}
        assert ctx.graph.steps == []


class TestBuildCrateAuto:
    def test_discovered_dependencies_become_inputs(self, ctx, fake_rustc):
        fake_rustc.dep_info["lib.rs"] = "liblib.rlib: lib.rs util.rs\n"
        fake_rustc.file_names["lib.rs"] = ["liblib.rlib"]

        crate = build_crate_auto(ctx, "lib.rs", destination="out", extra_deps=["build.rs", "util.rs"])

        assert crate.step.depends == ("lib.rs", "util.rs", "build.rs")
        assert len(fake_rustc.queries("dep-info")) == 1
        assert len(fake_rustc.queries("file-names")) == 1

    def test_module_root_spelling_normalized(self, ctx, fake_rustc):
        fake_rustc.dep_info["lib.rs"] = "liblib.rlib: lib.rs util.rs\n"
        fake_rustc.file_names["lib.rs"] = ["liblib.rlib"]

        crate = build_crate_auto(ctx, str(ctx.source_dir / "lib.rs"), destination="out")

        assert crate.step.module_root == "lib.rs"
        assert crate.step.depends == ("lib.rs", "util.rs")
        assert list(ctx.graph.dependency_sets) == ["lib.rs"]

    def test_extraction_failure_registers_nothing(self, ctx, fake_rustc):
        fake_rustc.dep_info["lib.rs"] = "garbage"
        fake_rustc.file_names["lib.rs"] = ["liblib.rlib"]

        with pytest.raises(DependencyExtractionError):
            build_crate_auto(ctx, "lib.rs")

        assert ctx.graph.targets == {}


def test_merge_dependencies_keeps_order_without_duplicates():
    assert merge_dependencies(["a.rs", "b.rs"], ["b.rs", "c"]) == ("a.rs", "b.rs", "c")
