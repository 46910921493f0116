import io
import math

import pytest

from sprcalc import calc
from sprcalc import lex
from sprcalc import parse
from sprcalc.lex import Token


def evaluate(text):
    return calc.evaluate(calc.tokenize(text))


@pytest.mark.parametrize('text, value', [
    ('42', 42.0),
    ('3.25', 3.25),
    ('.5', 0.5),
    ('7.', 7.0),
    ('2+3*4', 14.0),
    ('(2+3)*4', 20.0),
    ('10-3-2', 5.0),
    ('100/5/2', 10.0),
    ('2*3/4*5', 7.5),
    ('--5', 5.0),
    ('-5+3', -2.0),
    ('+-+4', -4.0),
    ('-(2+3)*2', -10.0),
    ('2*-3', -6.0),
    ('((((1))))', 1.0),
    ('1.5 * (2 - 0.5) / 3', 0.75),
])
def test_values(text, value):
    assert evaluate(text) == value


def test_whitespace_is_ignored():
    assert evaluate('  2  +  3  ') == evaluate('2+3') == 5.0
    assert evaluate('\t1\n*\n2 ') == 2.0


def test_evaluation_is_repeatable():
    tokens = calc.tokenize('8 / (3 - 1) - 1')
    assert calc.evaluate(tokens) == calc.evaluate(tokens) == 3.0


def test_division_by_zero_is_not_an_error():
    assert evaluate('1/0') == math.inf
    assert evaluate('-1/0') == -math.inf
    assert evaluate('1/-0') == -math.inf
    assert math.isnan(evaluate('0/0'))
    assert math.isnan(evaluate('(1/0)*0'))


def test_huge_literal_is_infinite():
    assert evaluate('1' + '0' * 400) == math.inf


def test_tokenize():
    assert calc.tokenize('(1.5+2)*-x/ 3') == [
        Token('LPAREN', '('),
        Token('NUMBER', 1.5),
        Token('PLUS', '+'),
        Token('NUMBER', 2.0),
        Token('RPAREN', ')'),
        Token('TIMES', '*'),
        Token('MINUS', '-'),
        Token(lex.INVALID, 'x'),
        Token('DIVIDE', '/'),
        Token('NUMBER', 3.0),
    ]
    assert calc.tokenize('') == []
    assert calc.tokenize('   ') == []


def test_numbers_do_not_span_whitespace():
    assert calc.tokenize('1 2') == [Token('NUMBER', 1.0), Token('NUMBER', 2.0)]


def test_rendered_tokens_tokenize_the_same():
    tokens = calc.tokenize('(1+2)*3')
    text = ' '.join(str(t) for t in tokens)
    assert text == '( 1.0 + 2.0 ) * 3.0'
    assert calc.tokenize(text) == tokens


@pytest.mark.parametrize('text', ['1.2.3', '.', '1..', '..5'])
def test_malformed_number_is_one_error(text):
    with pytest.raises(lex.InvalidNumber) as excinfo:
        calc.tokenize('2 + ' + text + ' * 4')
    assert excinfo.value.text == text
    assert excinfo.value.info.column == 4
    assert excinfo.value.info.length == len(text)
    assert isinstance(excinfo.value, calc.EvalError)


def test_invalid_character():
    tokens = calc.tokenize('2#3')
    assert Token(lex.INVALID, '#') in tokens
    with pytest.raises(parse.UnexpectedToken) as excinfo:
        calc.evaluate(tokens)
    assert excinfo.value.token == Token(lex.INVALID, '#')
    assert isinstance(excinfo.value, parse.InvalidCharacter)
    assert excinfo.value.char == '#'


@pytest.mark.parametrize('text', ['2+', '', '   ', '(2+3', '-', '4*(', '((1)'])
def test_unexpected_end(text):
    with pytest.raises(parse.UnexpectedEnd):
        evaluate(text)


@pytest.mark.parametrize('text, token', [
    ('2+3)', Token('RPAREN', ')')),
    ('*3', Token('TIMES', '*')),
    ('2+*3', Token('TIMES', '*')),
    ('2 3', Token('NUMBER', 3.0)),
    ('(2+3 4)', Token('NUMBER', 4.0)),
    ('()', Token('RPAREN', ')')),
    ('1)(', Token('RPAREN', ')')),
])
def test_unexpected_token(text, token):
    with pytest.raises(parse.UnexpectedToken) as excinfo:
        evaluate(text)
    assert excinfo.value.token == token
    assert not isinstance(excinfo.value, parse.InvalidCharacter)


def test_expected_tokens_are_reported():
    with pytest.raises(parse.UnexpectedEnd) as excinfo:
        evaluate('2*')
    assert excinfo.value.expected == ['LPAREN', 'MINUS', 'NUMBER', 'PLUS']


def test_deep_nesting_is_rejected():
    with pytest.raises(parse.NestingTooDeep):
        evaluate('(' * 5000 + '1' + ')' * 5000)
    with pytest.raises(parse.NestingTooDeep):
        evaluate('-' * 5000 + '1')


def test_moderate_nesting_is_fine():
    assert evaluate('(' * 30 + '2' + ')' * 30) == 2.0
    assert evaluate('-' * 100 + '2') == 2.0


def test_lazy_evaluation():
    assert calc.calculate('(1 +', lazy=True) is None
    assert calc.calculate('(1 +\n2)', lazy=True) == 3.0
    with pytest.raises(parse.UnexpectedToken):
        calc.calculate('1 )', lazy=True)


def test_error_rendering():
    line = '2 + 3 )'
    with pytest.raises(calc.EvalError) as excinfo:
        calc.calculate(line, filename='<stdin>')
    out = io.StringIO()
    excinfo.value.print(line, file=out)
    assert out.getvalue().splitlines() == [
        '<stdin>(1): parse error: unexpected token ), '
            'expected one of the following: DIVIDE MINUS PLUS TIMES',
        '2 + 3 )',
        '      ^',
    ]


def test_error_rendering_at_end_of_input():
    line = '(1 + 2'
    with pytest.raises(calc.EvalError) as excinfo:
        calc.calculate(line)
    out = io.StringIO()
    excinfo.value.print(line, file=out)
    lines = out.getvalue().splitlines()
    assert lines[0].startswith('parse error: unexpected end of input')
    assert lines[1:] == ['(1 + 2', '      ^']
