import re

from intl_analyzer.services.reconcile import compile_whitelist, diff, merge_key_maps, reconcile


def test_diff_is_key_set_difference():
    a = {"x": {"f1"}, "y": {"f2"}, "z": {"f3"}}
    b = {"y": {"g"}}
    assert diff(a, b) == {"x": {"f1"}, "z": {"f3"}}
    assert diff(a, a) == {}
    assert diff({}, b) == {}


def test_diff_trims_keys():
    assert diff({"  hello.world ": {"app/a.js"}}, {"hello.world": {"t.json"}}) == {}
    assert diff({" missing ": {"app/a.js"}}, {}) == {"missing": {"app/a.js"}}


def test_whitelist_only_shrinks_result_and_records_first_match():
    a = {"legacy.one": {"f"}, "legacy.two": {"f"}, "modern": {"f"}}
    first, second, unrelated = compile_whitelist([r"^legacy\.", r"one$", "never"])
    used = set()
    result = diff(a, {}, [first, second, unrelated], used)
    assert result == {"modern": {"f"}}
    assert set(result) <= set(diff(a, {}))
    assert used == {first}


def test_reconcile_directions():
    existing = {"a.b": {"translations/en.json"}, "a_unused": {"translations/en.json"}}
    used = {"a.b": {"app/x.js"}, "hello.world": {"app/y.js"}}
    result = reconcile(existing, used)
    assert result.unused == {"a_unused": {"translations/en.json"}}
    assert result.missing == {"hello.world": {"app/y.js"}}
    assert result.has_errors(fix=False)
    assert result.has_errors(fix=True)


def test_unused_only_errors_outside_fix_mode():
    result = reconcile({"old": {"translations/en.json"}}, {})
    assert result.has_errors(fix=False)
    assert not result.has_errors(fix=True)


def test_whitelist_usage_counts_in_both_directions():
    whitelist = compile_whitelist([r"^dynamic\.", r"^vendor\.", r"^stale\."])
    existing = {"vendor.copy": {"translations/en.json"}}
    used = {"dynamic.key": {"app/a.js"}}
    result = reconcile(existing, used, whitelist)
    assert result.unused == {} and result.missing == {}
    assert [w.pattern for w in result.unused_whitelist_entries] == [r"^stale\."]
    assert {w.pattern for w in result.used_whitelist_entries} == {r"^dynamic\.", r"^vendor\."}


def test_external_catalogs_satisfy_missing_but_are_never_unused():
    existing = {"own": {"translations/en.json"}}
    external = {"addon.key": {"node_modules/addon/translations/en.json"}, "addon.other": {"x"}}
    used = {"own": {"app/a.js"}, "addon.key": {"app/b.js"}}
    result = reconcile(existing, used, external=external)
    assert result.missing == {}
    assert result.unused == {}


def test_merge_key_maps_unions_files():
    assert merge_key_maps({"k": {"a"}}, {"k": {"b"}, "j": {"c"}}) == {"k": {"a", "b"}, "j": {"c"}}


def test_compile_whitelist_accepts_compiled_patterns():
    pattern = re.compile("x")
    assert compile_whitelist([pattern, "y"])[0] is pattern


def test_legacy_whitelist_entry_is_marked_used():
    whitelist = compile_whitelist([r"legacy\..*"])
    result = reconcile({"legacy.old": {"translations/en.json"}}, {}, whitelist)
    assert result.unused == {}
    assert result.unused_whitelist_entries == ()
    assert result.used_whitelist_entries == set(whitelist)
