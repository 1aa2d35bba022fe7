"""Tests for the correlation engine"""

from __future__ import annotations

from typing import List, Optional

from patchcover.application.correlation import CorrelationEngine, correlate
from patchcover.domain.models.coverage_profile import CoverageProfile, ProfileBlock
from patchcover.domain.models.file_change import DiffFile, DiffLine, Hunk, LineOp


def make_block(start: int, end: int, num_stmt: int, count: int) -> ProfileBlock:
    return ProfileBlock(
        start_line=start, start_col=1, end_line=end, end_col=2, num_stmt=num_stmt, count=count
    )


def make_profile(file_name: str, *blocks: ProfileBlock) -> CoverageProfile:
    return CoverageProfile(file_name=file_name, mode="count", blocks=list(blocks))


def added_file(name: str, start: int, texts: List[str]) -> DiffFile:
    """Diff file with one hunk adding the given lines starting at `start`"""
    hunk = Hunk(
        old_start=start,
        old_count=0,
        new_start=start,
        new_count=len(texts),
        lines=[DiffLine(op=LineOp.ADD, text=text) for text in texts],
    )
    return DiffFile(new_name=name, hunks=[hunk])


CODE = ["x := compute()", "y := x + 1", "return y"]


class TestScenarios:
    """End-to-end scenarios for correlate"""

    def test_covered_block(self):
        """Added lines inside an executed block are fully covered"""
        diff = [added_file("a.go", 10, CODE)]
        profiles = [make_profile("a.go", make_block(10, 12, 2, 3))]

        report = correlate(diff, profiles)

        assert report.patch_num_stmt == 2
        assert report.patch_cover_count == 2
        assert report.patch_coverage == 100.0
        assert report.uncovered_files == []
        assert report.uncovered_lines == ""

    def test_uncovered_block(self):
        """Added lines inside an unexecuted block are reported"""
        diff = [added_file("a.go", 10, CODE)]
        profiles = [make_profile("a.go", make_block(10, 12, 2, 0))]

        report = correlate(diff, profiles)

        assert report.patch_num_stmt == 2
        assert report.patch_cover_count == 0
        assert report.patch_coverage == 0.0
        assert len(report.uncovered_files) == 1
        uncovered = report.uncovered_files[0]
        assert uncovered.file_name == "a.go"
        # The block is credited once, through its first added line
        assert [line.line_num for line in uncovered.lines] == [10]
        assert uncovered.lines[0].line_string == "x := compute()"
        assert "Uncovered lines in a.go:" in report.uncovered_lines
        assert "<code>x := compute()</code>" in report.uncovered_lines

    def test_blank_line_is_not_counted(self):
        """A blank added line in an unexecuted block is dropped from the patch"""
        diff = [added_file("a.go", 20, [""])]
        profiles = [make_profile("a.go", make_block(20, 20, 1, 0))]

        report = correlate(diff, profiles)

        assert report.patch_num_stmt == 0
        assert report.patch_cover_count == 0
        assert report.patch_coverage == 100.0
        assert report.uncovered_files == []

    def test_no_previous_profile(self):
        """Without a baseline there is no previous coverage"""
        diff = [added_file("a.go", 10, CODE)]
        profiles = [make_profile("a.go", make_block(10, 12, 2, 3))]

        report = correlate(diff, profiles)

        assert report.has_prev_coverage is False
        assert report.prev_coverage == 0.0
        assert report.prev_num_stmt == 0
        assert report.coverage_delta == 0.0

    def test_diff_file_without_profile(self):
        """A changed file absent from the profile adds nothing to the patch"""
        diff = [added_file("b.go", 1, CODE)]
        profiles = [make_profile("a.go", make_block(1, 3, 4, 0))]

        report = correlate(diff, profiles)

        assert report.patch_num_stmt == 0
        assert report.patch_cover_count == 0
        assert report.patch_coverage == 100.0
        # Repository totals still include a.go
        assert report.num_stmt == 4
        assert report.cover_count == 0


class TestPatchMatching:
    """Tests for matching blocks to added lines"""

    def test_suffix_matching_with_module_prefix(self):
        """Profile names carry the module path, diff names are repo-relative"""
        diff = [added_file("pkg/file.go", 5, CODE)]
        profiles = [make_profile("github.com/org/repo/pkg/file.go", make_block(5, 7, 3, 1))]

        report = correlate(diff, profiles)

        assert report.patch_num_stmt == 3
        assert report.patch_cover_count == 3

    def test_block_credited_once(self):
        """Several added lines in one block count the block's statements once"""
        diff = [added_file("a.go", 1, ["a()", "b()", "c()", "d()"])]
        profiles = [make_profile("a.go", make_block(1, 4, 4, 1))]

        report = correlate(diff, profiles)

        assert report.patch_num_stmt == 4
        assert report.patch_cover_count == 4

    def test_line_numbers_count_context_and_deleted_lines(self):
        """An added line's number is its offset among all hunk lines"""
        hunk = Hunk(
            old_start=10,
            old_count=2,
            new_start=10,
            new_count=2,
            lines=[
                DiffLine(op=LineOp.CONTEXT, text="ctx()"),  # new line 10
                DiffLine(op=LineOp.DELETE, text="old()"),
                DiffLine(op=LineOp.ADD, text="added()"),  # new_start + 2
            ],
        )
        diff = [DiffFile(new_name="a.go", hunks=[hunk])]
        miss = make_profile("a.go", make_block(11, 11, 1, 0))
        hit = make_profile("a.go", make_block(12, 12, 1, 0))

        assert correlate(diff, [miss]).patch_num_stmt == 0
        assert correlate(diff, [hit]).patch_num_stmt == 1

    def test_blocks_outside_patch_are_ignored(self):
        """Blocks not touched by added lines only count towards totals"""
        diff = [added_file("a.go", 10, CODE)]
        profiles = [
            make_profile(
                "a.go",
                make_block(1, 5, 3, 0),
                make_block(10, 12, 2, 1),
                make_block(20, 25, 5, 1),
            )
        ]

        report = correlate(diff, profiles)

        assert report.patch_num_stmt == 2
        assert report.patch_cover_count == 2
        assert report.num_stmt == 10
        assert report.cover_count == 7
        assert report.coverage == 70.0

    def test_deleted_lines_do_not_count(self):
        """Only added lines take part in patch coverage"""
        hunk = Hunk(
            old_start=3,
            old_count=1,
            new_start=3,
            new_count=0,
            lines=[DiffLine(op=LineOp.DELETE, text="gone()")],
        )
        diff = [DiffFile(new_name="a.go", hunks=[hunk])]
        profiles = [make_profile("a.go", make_block(3, 3, 1, 0))]

        report = correlate(diff, profiles)

        assert report.patch_num_stmt == 0
        assert report.patch_coverage == 100.0

    def test_first_added_line_wins(self):
        """The block takes the text of the first added line it contains

        A leading comment line makes the whole unexecuted block look like
        non-code, even though a later added line is a real statement.
        """
        diff = [added_file("a.go", 1, ["// explain", "doWork()"])]
        profiles = [make_profile("a.go", make_block(1, 2, 1, 0))]

        report = correlate(diff, profiles)

        assert report.patch_num_stmt == 0
        assert report.uncovered_files == []

    def test_suffix_matching_can_hit_unrelated_file(self):
        """Suffix matching has no ambiguity check: 'file.go' matches 'otherfile.go'"""
        diff = [added_file("file.go", 1, ["run()"])]
        profiles = [make_profile("github.com/org/repo/otherfile.go", make_block(1, 1, 1, 0))]

        report = correlate(diff, profiles)

        assert report.patch_num_stmt == 1
        assert report.uncovered_files[0].file_name == "github.com/org/repo/otherfile.go"


class TestInvalidLineCorrection:
    """Tests for the removal of non-code lines from the patch"""

    def test_comment_and_tag_lines_excluded(self):
        """Comments and struct tags in unexecuted blocks leave the patch count"""
        diff = [
            added_file(
                "a.go",
                1,
                [
                    "// comment",
                    "/* block",
                    "end */",
                    'Name string `json:"name"`',
                    "call()",
                ],
            )
        ]
        profiles = [
            make_profile(
                "a.go",
                make_block(1, 1, 1, 0),
                make_block(2, 2, 1, 0),
                make_block(3, 3, 1, 0),
                make_block(4, 4, 1, 0),
                make_block(5, 5, 2, 0),
            )
        ]

        report = correlate(diff, profiles)

        assert report.patch_num_stmt == 2
        assert report.patch_cover_count == 0
        assert [line.line_string for line in report.uncovered_files[0].lines] == ["call()"]

    def test_invalid_lines_in_covered_blocks_keep_credit(self):
        """Only unexecuted candidates are corrected; covered blocks are untouched"""
        diff = [added_file("a.go", 1, ["", "call()"])]
        profiles = [make_profile("a.go", make_block(1, 1, 2, 5), make_block(2, 2, 1, 0))]

        report = correlate(diff, profiles)

        assert report.patch_num_stmt == 3
        assert report.patch_cover_count == 2
        assert round(report.patch_coverage, 2) == 66.67

    def test_executed_block_on_non_code_line_keeps_credit(self):
        """An executed block hit only by a blank line is not removed from the patch

        Non-code correction applies to unexecuted blocks alone, so this block
        keeps its statements and its credit.
        """
        diff = [added_file("a.go", 20, [""])]
        profiles = [make_profile("a.go", make_block(20, 20, 2, 5))]

        report = correlate(diff, profiles)

        assert report.patch_num_stmt == 2
        assert report.patch_cover_count == 2
        assert report.patch_coverage == 100.0
        assert report.uncovered_files == []

    def test_custom_classifier(self):
        """A different classifier can be plugged into the engine"""

        class HashComments:
            def is_invalid(self, line: str) -> bool:
                return line.strip().startswith("#")

        diff = [added_file("a.go", 1, ["# note", "// not a comment here"])]
        profiles = [make_profile("a.go", make_block(1, 1, 1, 0), make_block(2, 2, 1, 0))]

        report = CorrelationEngine(HashComments()).correlate(diff, profiles)

        assert report.patch_num_stmt == 1
        assert report.uncovered_files[0].lines[0].line_string == "// not a comment here"


class TestTotals:
    """Tests for repository and baseline totals"""

    def test_previous_profile_totals(self):
        """Baseline totals are plain block sums"""
        profiles = [make_profile("a.go", make_block(1, 2, 4, 1))]
        prev = [
            make_profile("a.go", make_block(1, 2, 3, 1), make_block(3, 4, 1, 0)),
            make_profile("b.go", make_block(1, 1, 4, 0)),
        ]

        report = correlate([], profiles, prev)

        assert report.has_prev_coverage is True
        assert report.prev_num_stmt == 8
        assert report.prev_cover_count == 3
        assert report.prev_coverage == 37.5
        assert report.coverage == 100.0
        assert report.coverage_delta == 62.5

    def test_empty_previous_profile_still_counts_as_baseline(self):
        """An empty baseline is still a baseline"""
        report = correlate([], [], [])

        assert report.has_prev_coverage is True
        assert report.prev_coverage == 0.0

    def test_empty_inputs(self):
        """No profiles and no diff give zero totals and a full patch score"""
        report = correlate([], [])

        assert report.num_stmt == 0
        assert report.coverage == 0.0
        assert report.patch_num_stmt == 0
        assert report.patch_coverage == 100.0


class TestInvariants:
    """Properties that hold for any input"""

    def _mixed_inputs(self):
        diff = [
            added_file("pkg/a.go", 1, ["", "a()", "// c", "b()", "c()"]),
            added_file("pkg/b.go", 10, ["x()", "y()"]),
        ]
        profiles = [
            make_profile(
                "mod/pkg/a.go",
                make_block(1, 1, 1, 0),
                make_block(2, 2, 2, 1),
                make_block(3, 3, 1, 1),
                make_block(4, 5, 3, 0),
            ),
            make_profile("mod/pkg/b.go", make_block(10, 11, 2, 0)),
            make_profile("mod/pkg/c.go", make_block(1, 9, 9, 9)),
        ]
        return diff, profiles

    def test_counts_never_exceed_totals(self):
        """Covered counts never exceed statement counts"""
        diff, profiles = self._mixed_inputs()

        report = correlate(diff, profiles, profiles)

        assert 0 <= report.patch_cover_count <= report.patch_num_stmt
        assert 0 <= report.cover_count <= report.num_stmt
        assert 0 <= report.prev_cover_count <= report.prev_num_stmt

    def test_correlation_is_idempotent(self):
        """Same inputs give identical reports"""
        diff, profiles = self._mixed_inputs()
        engine = CorrelationEngine()

        first = engine.correlate(diff, profiles)
        second = engine.correlate(diff, profiles)

        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_uncovered_files_keep_profile_order(self):
        """Uncovered lines are grouped per file in profile order"""
        diff, profiles = self._mixed_inputs()

        report = correlate(diff, profiles)

        assert [uncovered.file_name for uncovered in report.uncovered_files] == [
            "mod/pkg/a.go",
            "mod/pkg/b.go",
        ]
        assert report.uncovered_lines.index("mod/pkg/a.go") < report.uncovered_lines.index(
            "mod/pkg/b.go"
        )
