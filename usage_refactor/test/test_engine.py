import pytest

from usage_refactor.engine import RewriteEngine, RunContext, count_lines, line_offset
from usage_refactor.config import RefactorConfig
from usage_refactor.errors import CallNotFound, LineOverflow, MalformedCall, UnbalancedCall
from usage_refactor.files import DryRunStore, FileStore
from usage_refactor.policies import DiagnosticPolicy, LeadingArgumentPolicy
from usage_refactor.report_parser import SourceLocation

API_C = """\
#include "api.h"

int api_open(int v)
{
    if (v < 0) {
        last_error_set(TAG, __FILE__, __LINE__, __func__,
                       "bad value %d",
                       v);
        return -1;
    }
    last_error_set(TAG, __FILE__, __LINE__, __func__, "ok");
    return 0;
}
"""

API_C_REWRITTEN = """\
#include "api.h"

int api_open(int v)
{
    if (v < 0) {
        last_error_set(BASE_ERROR_ID + 0, __FILE__, __LINE__, __func__, "bad value %d", v);
        /* TO-DELETE */ printf(__func__, "bad value %d", v);
        return -1;
    }
    last_error_set(BASE_ERROR_ID + 1, __FILE__, __LINE__, __func__, "ok");
    /* TO-DELETE */ printf(__func__, "ok");
    return 0;
}
"""

SINGLE_C = """\
void f(void)
{
    last_error_set(TAG, __FILE__, __LINE__, __func__, "once");
}
"""


def loc(text):
    return SourceLocation.parse(text)


@pytest.fixture
def project(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "api.c").write_text(API_C, encoding="utf-8")
    (tmp_path / "src" / "single.c").write_text(SINGLE_C, encoding="utf-8")
    return tmp_path


def read(root, path):
    with open(root / path, encoding="utf-8", newline="") as f:
        return f.read()


def run_engine(root, locations, policy=None, store=None):
    engine = RewriteEngine("last_error_set", policy or DiagnosticPolicy())
    context = RunContext(store=store or FileStore(root=str(root)))
    records = engine.run([loc(t) for t in locations], context)
    return records, context


class TestLineHelpers:

    def test_count_lines(self):
        assert count_lines("") == 0
        assert count_lines("a") == 1
        assert count_lines("a\n") == 1
        assert count_lines("a\nb") == 2

    def test_line_offset(self):
        assert line_offset("a\nbb\nc", 1) == 0
        assert line_offset("a\nbb\nc", 3) == 5


class TestRewriteEngine:

    def test_rewrite_two_calls_in_one_file(self, project):
        records, context = run_engine(project, ["src/api.c:6", "src/api.c:11"])
        assert read(project, "src/api.c") == API_C_REWRITTEN
        assert [r.resolved_line for r in records] == [6, 10]
        assert [r.delta for r in records] == [-1, 1]
        assert context.delta("src/api.c") == 0

    def test_locations_are_processed_in_sorted_order(self, project):
        run_engine(project, ["src/api.c:11", "src/api.c:6"])
        assert read(project, "src/api.c") == API_C_REWRITTEN

    def test_later_location_is_shifted_by_earlier_rewrite(self, project):
        policy = LeadingArgumentPolicy()
        records, context = run_engine(project, ["src/api.c:6", "src/api.c:11"], policy=policy)
        # the first call lost two lines, the second is found two lines up
        assert [r.resolved_line for r in records] == [6, 9]
        assert context.delta("src/api.c") == -2
        lines = read(project, "src/api.c").splitlines()
        assert lines[5] == '        last_error_set(ERR_0, TAG, __FILE__, __LINE__, __func__, "bad value %d", v);'
        assert lines[8] == '    last_error_set(ERR_1, TAG, __FILE__, __LINE__, __func__, "ok");'

    def test_stale_line_would_miss_the_call(self, project):
        # without the shift, line 11 of the rewritten file is past the second call
        run_engine(project, ["src/api.c:6"])
        with pytest.raises(CallNotFound):
            run_engine(project, ["src/api.c:11"])

    def test_deltas_are_kept_per_file(self, project):
        records, context = run_engine(project, ["src/api.c:6", "src/single.c:3"])
        assert context.delta("src/api.c") == -1
        assert context.delta("src/single.c") == 1
        assert context.delta("src/other.c") == 0
        assert records[1].resolved_line == 3

    def test_declaration_files_are_skipped(self, project):
        # src/api.h does not exist: it must not even be opened
        records, context = run_engine(project, ["src/api.h:3", "src/single.c:3"])
        assert len(records) == 1
        assert "BASE_ERROR_ID + 0" in read(project, "src/single.c")
        assert "src/api.h" not in context.deltas

    def test_call_not_found(self, project):
        with pytest.raises(CallNotFound) as exc:
            run_engine(project, ["src/api.c:12"])
        assert exc.value.path == "src/api.c"
        assert exc.value.line == 12
        assert read(project, "src/api.c") == API_C

    def test_line_overflow(self, project):
        with pytest.raises(LineOverflow) as exc:
            run_engine(project, ["src/api.c:14"])
        assert exc.value.line_count == 13

    def test_failure_keeps_earlier_rewrites(self, project):
        with pytest.raises(LineOverflow):
            run_engine(project, ["src/api.c:6", "src/api.c:11", "src/single.c:40"])
        assert read(project, "src/api.c") == API_C_REWRITTEN
        assert read(project, "src/single.c") == SINGLE_C

    def test_unbalanced_call_names_its_location(self, project):
        (project / "src" / "open.c").write_text(
            "int x;\nlast_error_set(T, F, L, fn, \"m\";\n", encoding="utf-8"
        )
        with pytest.raises(UnbalancedCall) as exc:
            run_engine(project, ["src/open.c:2"])
        assert exc.value.path == "src/open.c"
        assert exc.value.line == 2
        assert str(exc.value).startswith("src/open.c:2: unbalanced call")
        assert "resolved to line 2" in str(exc.value)

    def test_unbalanced_call_uses_the_report_line_after_a_shift(self, project):
        (project / "src" / "two.c").write_text(
            "last_error_set(T, F,\n  L, fn, \"a\");\nlast_error_set(T, F, L, fn, \"b\";\n",
            encoding="utf-8",
        )
        with pytest.raises(UnbalancedCall, match=r"^src/two.c:3: .*resolved to line 2"):
            run_engine(project, ["src/two.c:1", "src/two.c:3"], policy=LeadingArgumentPolicy())

    def test_too_few_arguments(self, project):
        (project / "src" / "short.c").write_text("last_error_set(TAG, x);\n", encoding="utf-8")
        with pytest.raises(MalformedCall):
            run_engine(project, ["src/short.c:1"])

    def test_call_in_comment_is_taken_for_the_call(self, project):
        (project / "src" / "comment.c").write_text(
            '/* last_error_set(a, b) */ last_error_set(TAG, __FILE__, __LINE__, __func__, "x");\n',
            encoding="utf-8",
        )
        run_engine(project, ["src/comment.c:1"], policy=LeadingArgumentPolicy())
        assert read(project, "src/comment.c") == (
            '/* last_error_set(ERR_0, a, b) */ last_error_set(TAG, __FILE__, __LINE__, __func__, "x");\n'
        )

    def test_crlf_file(self, project):
        with open(project / "src" / "dos.c", "w", encoding="utf-8", newline="") as f:
            f.write("{\r\n  last_error_set(T, F, L, fn, \"m\");\r\n}\r\n")
        records, context = run_engine(project, ["src/dos.c:2"])
        assert read(project, "src/dos.c") == (
            "{\r\n"
            "  last_error_set(BASE_ERROR_ID + 0, F, L, fn, \"m\");\r\n"
            "  /* TO-DELETE */ printf(fn, \"m\");\r\n"
            "}\r\n"
        )
        assert context.delta("src/dos.c") == 1


class TestRerun:

    def test_rerun_after_rename_does_not_find_the_call(self, project):
        policy = LeadingArgumentPolicy(rename_to="error_raise")
        run_engine(project, ["src/single.c:3"], policy=policy)
        first = read(project, "src/single.c")
        assert "error_raise(ERR_0, TAG" in first

        with pytest.raises(CallNotFound):
            run_engine(project, ["src/single.c:3"], policy=policy)
        assert read(project, "src/single.c") == first

    def test_rerun_keeping_the_name_rewrites_again(self, project):
        run_engine(project, ["src/single.c:3"])
        first = read(project, "src/single.c")
        run_engine(project, ["src/single.c:3"])
        second = read(project, "src/single.c")
        assert second != first
        assert second.count("/* TO-DELETE */") == 2


class TestStores:

    def test_dry_run_leaves_files_alone(self, project):
        store = DryRunStore(root=str(project))
        records, context = run_engine(
            project, ["src/api.c:6", "src/api.c:11"], store=store
        )
        assert len(records) == 2
        assert read(project, "src/api.c") == API_C
        assert store.overlay["src/api.c"] == API_C_REWRITTEN
        assert store.changed_paths == ["src/api.c"]

    def test_backup_keeps_the_original(self, project):
        store = FileStore(root=str(project), backup=True)
        run_engine(project, ["src/api.c:6", "src/api.c:11"], store=store)
        assert read(project, "src/api.c.bak") == API_C
        assert read(project, "src/api.c") == API_C_REWRITTEN
        assert store.changed_paths == ["src/api.c"]


class TestRunContext:

    def test_holds_the_configuration(self, project):
        config = RefactorConfig(root=str(project), function_name="log_error")
        context = RunContext(store=FileStore(root=config.root), config=config)
        assert context.config.function_name == "log_error"
        assert context.delta("src/api.c") == 0

    def test_default_configuration(self, project):
        context = RunContext(store=FileStore(root=str(project)))
        assert context.config == RefactorConfig()
