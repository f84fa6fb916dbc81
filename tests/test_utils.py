from pytest import mark, raises
from xlsxwriter.utility import xl_col_to_name

from xlsxwriter_reporter.utils import accepts_no_arguments, column_letter, humanize, parameterize, underscore


class TestColumnLetter:
    @mark.parametrize('number, letters', [
        (1, 'A'),
        (26, 'Z'),
        (27, 'AA'),
        (52, 'AZ'),
        (53, 'BA'),
        (702, 'ZZ'),
        (703, 'AAA'),
        (16384, 'XFD'),
    ])
    def test_bijective_base_26(self, number, letters):
        assert column_letter(number) == letters

    def test_agrees_with_xlsxwriter(self):
        assert column_letter(731) == xl_col_to_name(730)

    def test_zero_is_rejected(self):
        with raises(ValueError, match='must be positive'):
            column_letter(0)


class TestNames:
    def test_humanize(self):
        assert humanize('id') == 'Id'
        assert humanize('name') == 'Name'
        assert humanize('first_name') == 'First name'
        assert humanize('author_id') == 'Author'
        assert humanize('HTML_body') == 'Html body'

    def test_underscore(self):
        assert underscore('UserReport') == 'user_report'
        assert underscore('HTTPLogReport') == 'http_log_report'
        assert underscore('already_snake') == 'already_snake'

    def test_parameterize(self):
        assert parameterize('User report') == 'user-report'
        assert parameterize('  Monthly Sales: Q1/Q2  ') == 'monthly-sales-q1-q2'
        assert parameterize('Café Ünits') == 'cafe-units'
        assert parameterize('User report', '_') == 'user_report'


class TestAcceptsNoArguments:
    def test_signatures(self):
        def optional(limit=None, *args, **kwargs):
            pass

        assert accepts_no_arguments(optional)
        assert accepts_no_arguments([].copy)
        assert not accepts_no_arguments([].count)
        assert not accepts_no_arguments(lambda record: record)
