"""Tests for the per-file hierarchical report."""
from sca.analyzer.models import AnalyzedEntity, Position
from sca.analyzer.report import FAILED_MARK, PASSED_MARK, SEPARATOR, build_report, render_entity


def entity(name, references=1, row=0, column=0, children=(), prefix=False):
    return AnalyzedEntity(
        name=name,
        node_type='property_identifier',
        position=Position(row, column),
        file_path='src/user.ts',
        references=references,
        has_useless_prefix=prefix,
        children=tuple(children),
    )


def user_interface():
    return entity('User', 3, 0, 10, children=[
        entity('name', 2, 1, 2),
        entity('userAge', 1, 2, 2, prefix=True),
        entity('unused', 0, 3, 2),
    ])


class TestBuildReport:

    def test_clean_file_renders_nothing(self):
        assert build_report([entity('ok', 4)]) == ''
        assert build_report([]) == ''

    def test_only_failing_branches(self):
        report = build_report([user_interface(), entity('Other', 2, 6, 6)])

        assert report == '\n'.join([
            'src/user.ts',
            f'[{PASSED_MARK}] User:0:10 :: ()',
            f'\t[{FAILED_MARK}] userAge:2:2 :: (useless prefix)',
            f'\t[{FAILED_MARK}] unused:3:2 :: (dead code)',
            SEPARATOR,
        ]) + '\n'

    def test_show_all(self):
        report = build_report([user_interface()], show_all=True)

        assert report.splitlines() == [
            'src/user.ts',
            f'[{PASSED_MARK}] User:0:10 :: ()',
            f'\t[{PASSED_MARK}] name:1:2 :: ()',
            f'\t[{FAILED_MARK}] userAge:2:2 :: (useless prefix)',
            f'\t[{FAILED_MARK}] unused:3:2 :: (dead code)',
            SEPARATOR,
        ]

    def test_clean_file_with_show_all_still_renders(self):
        report = build_report([entity('ok', 4)], show_all=True)
        assert report.splitlines() == ['src/user.ts', f'[{PASSED_MARK}] ok:0:0 :: ()', SEPARATOR]

    def test_separator_is_eighty_dashes(self):
        assert SEPARATOR == '-' * 80


class TestRenderEntity:

    def test_both_reasons_in_order(self):
        line = render_entity(entity('UserName', 0, 4, 2, prefix=True))
        assert line == f'[{FAILED_MARK}] UserName:4:2 :: (dead code, useless prefix)'

    def test_indentation_follows_depth(self):
        tree = entity('A', 0, children=[entity('B', 0, 1, children=[entity('C', 0, 2)])])
        assert render_entity(tree).splitlines() == [
            f'[{FAILED_MARK}] A:0:0 :: (dead code)',
            f'\t[{FAILED_MARK}] B:1:0 :: (dead code)',
            f'\t\t[{FAILED_MARK}] C:2:0 :: (dead code)',
        ]

    def test_clean_branch_is_hidden(self):
        assert render_entity(entity('A', 2, children=[entity('b', 1)])) is None

    def test_dead_grandchild_keeps_ancestors(self):
        tree = entity('A', 2, children=[
            entity('b', 1, 1, children=[entity('c', 0, 2)]),
            entity('d', 1, 3),
        ])
        assert render_entity(tree).splitlines() == [
            f'[{PASSED_MARK}] A:0:0 :: ()',
            f'\t[{PASSED_MARK}] b:1:0 :: ()',
            f'\t\t[{FAILED_MARK}] c:2:0 :: (dead code)',
        ]
