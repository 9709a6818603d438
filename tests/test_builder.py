from pathlib import Path

import pytest

from cookbuild.builder import BuildJob, BuildPlanner, CompareEntry, cache_file_for
from cookbuild.document import H699Document, ValueType
from cookbuild.log import CookError
from cookbuild.recipe import PackageResolver


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "main.cc").write_text("int main(){}\n")
    return tmp_path


def make_doc(root, scopes, strings=None, arrays=None, numbers=None):
    doc = H699Document(root / "recipe")
    doc.lexer.scopes.extend(scopes)
    for key, value in (strings or {}).items():
        doc.new_key(key, ValueType.STRING)
        doc.set(key, value)
    for key, values in (arrays or {}).items():
        doc.new_key(key, ValueType.ARRAY)
        doc.set_array(key, values)
    for key, value in (numbers or {}).items():
        doc.new_key(key, ValueType.NUMBER)
        doc.set(key, value)
    return doc


def planner(stamps, increment=True, **kwargs):
    return BuildPlanner(
        increment=increment, stamp=lambda name: stamps.get(name, ""), **kwargs
    )


def test_cache_file_for_replaces_slashes():
    assert cache_file_for("CookCache", "src/main.cc") == Path("CookCache") / "src.main.cc.h699"


def test_first_plan_builds_target(workdir):
    doc = make_doc(workdir, ["main.cc"], {"main.cc.out": "app"})
    jobs = planner({"main.cc": "v1"}).plan(doc)
    assert [job.source for job in jobs] == ["main.cc"]
    job = jobs[0]
    assert job.binary == "bin/app"
    assert "g++" in job.command
    assert "main.cc" in job.command
    assert "-o bin/app" in job.command
    assert (workdir / "bin").is_dir()
    assert (workdir / "CookCache" / "increment.h699").is_file()


def test_default_output_is_name_before_dot(workdir):
    doc = make_doc(workdir, ["main.cc"])
    jobs = planner({"main.cc": "v1"}).plan(doc)
    assert jobs == [BuildJob("main.cc", jobs[0].command, "bin/main")]


def test_missing_target_is_an_error(workdir):
    doc = make_doc(workdir, ["absent.cc"])
    with pytest.raises(CookError):
        planner({}).plan(doc)


def test_unchanged_target_with_binary_is_skipped(workdir):
    stamps = {"main.cc": "v1"}
    doc = make_doc(workdir, ["main.cc"], {"main.cc.out": "app"})
    assert len(planner(stamps).plan(doc)) == 1
    (workdir / "bin" / "app").write_text("")
    assert planner(stamps).plan(doc) == []


def test_without_increment_everything_is_rebuilt(workdir):
    stamps = {"main.cc": "v1"}
    doc = make_doc(workdir, ["main.cc"], {"main.cc.out": "app"})
    planner(stamps).plan(doc)
    (workdir / "bin" / "app").write_text("")
    jobs = planner(stamps, increment=False).plan(doc)
    assert [job.source for job in jobs] == ["main.cc"]


def test_missing_binary_forces_rebuild(workdir):
    stamps = {"main.cc": "v1"}
    doc = make_doc(workdir, ["main.cc"], {"main.cc.out": "app"})
    planner(stamps).plan(doc)
    jobs = planner(stamps).plan(doc)
    assert [job.binary for job in jobs] == ["bin/app"]


def test_changed_target_is_rebuilt(workdir):
    stamps = {"main.cc": "v1"}
    doc = make_doc(workdir, ["main.cc"], {"main.cc.out": "app"})
    planner(stamps).plan(doc)
    (workdir / "bin" / "app").write_text("")
    stamps["main.cc"] = "v2"
    jobs = planner(stamps).plan(doc)
    assert [job.source for job in jobs] == ["main.cc"]


def test_combined_files_are_recorded_for_comparison(workdir):
    stamps = {"main.cc": "v1", "lib.cc": "L1"}
    doc = make_doc(
        workdir, ["main.cc"], {"main.cc.out": "app"}, {"main.cc.combine": ["lib.cc"]}
    )
    build = planner(stamps)
    jobs = build.plan(doc)
    cache_file = cache_file_for(Path("CookCache"), "main.cc")
    assert build.compare_files == [CompareEntry("main.cc", cache_file, "lib.cc")]
    assert "lib.cc " in jobs[0].command
    stored = H699Document(cache_file)
    stored.parse()
    assert stored.get("lib.cc").string_value == "L1"


def test_changed_combined_file_triggers_rebuild(workdir):
    stamps = {"main.cc": "v1", "lib.cc": "L1"}
    doc = make_doc(
        workdir, ["main.cc"], {"main.cc.out": "app"}, {"main.cc.combine": ["lib.cc"]}
    )
    planner(stamps).plan(doc)
    (workdir / "bin" / "app").write_text("")
    quiet = planner(stamps)
    assert quiet.plan(doc) == []
    assert quiet.compare_files == []
    stamps["lib.cc"] = "L2"
    jobs = planner(stamps).plan(doc)
    assert [job.source for job in jobs] == ["main.cc"]


def test_combine_rem_drops_file_from_command(workdir):
    stamps = {"main.cc": "v1", "a.cc": "A", "b.cc": "B"}
    doc = make_doc(
        workdir,
        ["main.cc"],
        {"main.cc.combine_rem": "b.cc"},
        {"main.cc.combine": ["a.cc", "b.cc"]},
    )
    jobs = planner(stamps).plan(doc)
    assert "a.cc " in jobs[0].command
    assert "b.cc" not in jobs[0].command


def test_global_scope_sets_defaults_without_a_job(workdir):
    stamps = {"main.cc": "v1"}
    doc = make_doc(
        workdir,
        ["global", "main.cc"],
        {"global.compiler": "clang++", "main.cc.out": "app"},
    )
    jobs = planner(stamps).plan(doc)
    assert [job.source for job in jobs] == ["main.cc"]
    assert "clang++ " in jobs[0].command


def test_non_string_bin_is_an_error(workdir):
    doc = make_doc(workdir, ["main.cc"], numbers={"main.cc.bin": "7"})
    with pytest.raises(CookError):
        planner({"main.cc": "v1"}).plan(doc)


def test_package_flags_are_added_to_command(workdir):
    resolver = PackageResolver(query=lambda name: f"-l{name}flag")
    doc = make_doc(workdir, ["main.cc"], {"main.cc.pkg_in": "gtk"})
    jobs = planner({"main.cc": "v1"}, resolver=resolver).plan(doc)
    assert "-lgtkflag" in jobs[0].command


def test_unknown_package_is_an_error(workdir):
    resolver = PackageResolver(query=lambda name: None)
    doc = make_doc(workdir, ["main.cc"], {"main.cc.pkg_in": "missing"})
    with pytest.raises(CookError):
        planner({"main.cc": "v1"}, resolver=resolver).plan(doc)